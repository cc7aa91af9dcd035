"""
Transport Port - Interface for the messaging service connection.

The wire protocol and cryptographic session layer live behind this port.

Implementations:
- MemoryTransport: Scripted in-process transport (testing and demos)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from pairlink.domain.credentials import Credentials


@dataclass(frozen=True)
class ProtocolVersion:
    """Protocol version advertised to the remote service."""
    version: Tuple[int, int, int]
    is_latest: bool = True

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.version)


@dataclass
class SessionOptions:
    """Everything a transport needs to open one session attempt."""
    version: Tuple[int, int, int]
    credentials: Credentials
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("pairlink.transport"))
    print_qr_in_terminal: bool = False
    browser: Tuple[str, str, str] = ("Ubuntu", "Chrome", "22.04")
    extra: Dict[str, Any] = field(default_factory=dict)


class SessionHandle(ABC):
    """
    One live session attempt.

    Emits ``connection.update`` (ConnectionUpdate), ``creds.update``
    (Credentials) and ``messages.upsert`` (MessagesUpsert). Handlers may be
    coroutine functions; a session delivers events one at a time, in order.
    """

    @property
    @abstractmethod
    def credentials(self) -> Credentials:
        """Current authentication state as seen by the transport."""
        pass

    @property
    def user_id(self) -> Optional[str]:
        """Account identifier once registered."""
        return self.credentials.me

    @abstractmethod
    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        """Subscribe a handler to an event."""
        pass

    @abstractmethod
    def off(self, event: str, handler: Callable[[Any], Any]) -> None:
        """Remove a previously subscribed handler. Unknown handlers are ignored."""
        pass

    @abstractmethod
    async def request_pairing_code(self, phone_number: str) -> str:
        """
        Ask the remote service for a pairing code.

        Args:
            phone_number: Digits only, country code first

        Returns:
            Pairing code to enter on the primary device

        Raises:
            PairingError: Malformed number or remote rejection
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection and drop all subscriptions. Idempotent."""
        pass


class TransportPort(ABC):
    """Port: Factory for session attempts."""

    @abstractmethod
    async def open_session(self, options: SessionOptions) -> SessionHandle:
        """
        Open a new session attempt.

        Args:
            options: Version, logger and loaded credentials

        Returns:
            New session handle (never a reused one)

        Raises:
            TransportError: If the transport cannot be constructed
        """
        pass

    @abstractmethod
    async def fetch_latest_version(self) -> ProtocolVersion:
        """
        Look up the protocol version to advertise.

        Raises:
            TransportError: If the version cannot be determined
        """
        pass
