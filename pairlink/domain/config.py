"""
Connection configuration and supervisor settings.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from pairlink.domain.errors import ConfigurationError


DEFAULT_AUTH_DIRECTORY = "pairlink_auth_info"
DEFAULT_BROWSER = ("Ubuntu", "Chrome", "22.04")

# Hooks may be plain callables or coroutine functions
Hook = Callable[..., Union[None, Awaitable[None]]]

_PHONE_SEPARATORS = re.compile(r"[\s\-().+]")


def normalize_phone_number(phone_number: str) -> str:
    """
    Strip formatting from a phone number, leaving country code + digits.

    Raises:
        ConfigurationError: If nothing usable remains
    """
    digits = _PHONE_SEPARATORS.sub("", phone_number or "")
    if not digits:
        raise ConfigurationError("phone_number is required")
    if not digits.isdigit():
        raise ConfigurationError(f"phone_number must contain only digits: {phone_number!r}")
    return digits


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Per-connection input, built once by the caller.

    The same instance is handed to every reconnection attempt and is never
    mutated.
    """
    phone_number: str
    auth_directory: str = DEFAULT_AUTH_DIRECTORY

    # Optional hooks
    on_pairing_code: Optional[Hook] = None
    on_connected: Optional[Hook] = None
    on_disconnected: Optional[Hook] = None
    on_message: Optional[Hook] = None

    def __post_init__(self):
        object.__setattr__(self, "phone_number", normalize_phone_number(self.phone_number))
        if not self.auth_directory:
            raise ConfigurationError("auth_directory must not be empty")

    @classmethod
    def from_env(
        cls,
        phone_number: Optional[str] = None,
        prefix: str = "PAIRLINK_",
        **hooks: Any,
    ) -> "ConnectionConfig":
        """
        Build a config from environment variables.

        Reads ``{prefix}PHONE_NUMBER`` (unless phone_number is given) and
        ``{prefix}AUTH_DIR``.
        """
        return cls(
            phone_number=phone_number or os.environ.get(f"{prefix}PHONE_NUMBER", ""),
            auth_directory=os.environ.get(f"{prefix}AUTH_DIR", DEFAULT_AUTH_DIRECTORY),
            **hooks,
        )


@dataclass
class SupervisorSettings:
    """
    Reconnection policy.

    Delays are fixed (no backoff growth). max_attempts of None means retry
    until pairing completes or the process is stopped externally.
    """
    pairing_wait_delay: float = 3.0
    reconnect_delay: float = 5.0
    max_attempts: Optional[int] = None

    # None means ask the transport for the latest version
    protocol_version: Optional[Tuple[int, int, int]] = None
    browser: Tuple[str, str, str] = field(default=DEFAULT_BROWSER)

    def __post_init__(self):
        if self.pairing_wait_delay < 0 or self.reconnect_delay < 0:
            raise ConfigurationError("reconnect delays must be non-negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

    @classmethod
    def from_env(cls, prefix: str = "PAIRLINK_") -> "SupervisorSettings":
        """
        Read settings from ``{prefix}PAIRING_WAIT_DELAY``,
        ``{prefix}RECONNECT_DELAY`` and ``{prefix}MAX_ATTEMPTS``.
        """
        defaults = cls()
        try:
            pairing_wait = float(os.environ.get(f"{prefix}PAIRING_WAIT_DELAY", defaults.pairing_wait_delay))
            reconnect = float(os.environ.get(f"{prefix}RECONNECT_DELAY", defaults.reconnect_delay))
            max_attempts_raw = os.environ.get(f"{prefix}MAX_ATTEMPTS")
            max_attempts = int(max_attempts_raw) if max_attempts_raw else None
        except ValueError as e:
            raise ConfigurationError(f"Invalid supervisor setting in environment: {e}") from e

        return cls(
            pairing_wait_delay=pairing_wait,
            reconnect_delay=reconnect,
            max_attempts=max_attempts,
        )
