"""
Session event values emitted by a transport session.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional


# Event names a session emits
CONNECTION_UPDATE = "connection.update"
CREDS_UPDATE = "creds.update"
MESSAGES_UPSERT = "messages.upsert"

SESSION_EVENTS = (CONNECTION_UPDATE, CREDS_UPDATE, MESSAGES_UPSERT)


class ConnectionPhase(Enum):
    """Connection lifecycle phases reported by the transport."""
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSE = "close"


class DisconnectReason(IntEnum):
    """Closure status codes reported by the remote service."""
    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    CONNECTION_REPLACED = 440
    TIMED_OUT = 408
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    UNAVAILABLE_SERVICE = 503


# Statuses meaning "authorization revoked or not yet granted"
LOGGED_OUT_STATUSES = frozenset({DisconnectReason.LOGGED_OUT})


@dataclass(frozen=True)
class CloseCause:
    """Why a connection closed: a status code (may be unknown) and a message."""
    status_code: Optional[int] = None
    message: str = ""

    @property
    def is_logged_out(self) -> bool:
        return self.status_code in LOGGED_OUT_STATUSES


@dataclass(frozen=True)
class ConnectionUpdate:
    """
    Transient connection event.

    ``phase`` is None when the update carries no lifecycle change (for
    example a QR refresh). ``close_cause`` is only meaningful on CLOSE.
    """
    phase: Optional[ConnectionPhase] = None
    qr: Optional[str] = None
    close_cause: Optional[CloseCause] = None

    @classmethod
    def connecting(cls) -> "ConnectionUpdate":
        return cls(phase=ConnectionPhase.CONNECTING)

    @classmethod
    def opened(cls) -> "ConnectionUpdate":
        return cls(phase=ConnectionPhase.OPEN)

    @classmethod
    def closed(cls, status_code: Optional[int] = None, message: str = "") -> "ConnectionUpdate":
        return cls(
            phase=ConnectionPhase.CLOSE,
            close_cause=CloseCause(status_code=status_code, message=message),
        )


class DeliveryType(Enum):
    """How a batch of messages reached the session."""
    NOTIFY = "notify"    # live delivery
    APPEND = "append"    # history backfill / replay


@dataclass(frozen=True)
class MessageEnvelope:
    """
    Opaque inbound message.

    The payload is whatever the transport decoded; it is forwarded to the
    application untouched.
    """
    id: str
    remote_jid: Optional[str] = None
    from_me: bool = False
    payload: Any = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MessagesUpsert:
    """A batch of inbound messages with its delivery type."""
    messages: List[MessageEnvelope]
    delivery: DeliveryType = DeliveryType.NOTIFY
