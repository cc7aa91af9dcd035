"""
Retry decisions derived from a connection closure.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pairlink.domain.events import CloseCause


class DecisionKind(Enum):
    """What the supervisor does after a closure."""
    RETRY_AFTER = "retry_after"
    TERMINAL_LOGGED_OUT = "terminal_logged_out"
    TERMINAL_OTHER = "terminal_other"


@dataclass(frozen=True)
class RetryDecision:
    """
    Derived value, never persisted.

    ``delay`` is only set for RETRY_AFTER. ``reason`` is what gets handed to
    ``on_disconnected`` for terminal outcomes.
    """
    kind: DecisionKind
    delay: float = 0.0
    reason: Optional[str] = None
    expected: bool = False  # closure is the normal wait-for-pairing cycle

    @classmethod
    def retry_after(cls, delay: float, expected: bool = False) -> "RetryDecision":
        return cls(kind=DecisionKind.RETRY_AFTER, delay=delay, expected=expected)

    @classmethod
    def logged_out(cls) -> "RetryDecision":
        return cls(kind=DecisionKind.TERMINAL_LOGGED_OUT, reason="logged_out")

    @classmethod
    def terminal(cls, reason: str) -> "RetryDecision":
        return cls(kind=DecisionKind.TERMINAL_OTHER, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.kind != DecisionKind.RETRY_AFTER


def classify_closure(
    cause: Optional[CloseCause],
    registered: bool,
    pairing_wait_delay: float = 3.0,
    reconnect_delay: float = 5.0,
) -> RetryDecision:
    """
    Decide what follows a closure. Pure function of (cause, registered).

    - logged-out status while unregistered: the remote side is waiting for
      the user to enter the pairing code; reconnect after a short wait
    - logged-out status while registered: the session was revoked; stop
    - anything else: reconnect after the (longer) generic delay
    """
    if cause is not None and cause.is_logged_out:
        if not registered:
            return RetryDecision.retry_after(pairing_wait_delay, expected=True)
        return RetryDecision.logged_out()

    return RetryDecision.retry_after(reconnect_delay)
