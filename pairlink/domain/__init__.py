"""
Domain Models - Pure values for the pairing lifecycle.

No infrastructure dependencies. Domain logic only.
"""

from pairlink.domain.credentials import Credentials
from pairlink.domain.config import ConnectionConfig, SupervisorSettings
from pairlink.domain.decision import RetryDecision, DecisionKind, classify_closure
from pairlink.domain.events import (
    CloseCause,
    ConnectionPhase,
    ConnectionUpdate,
    DeliveryType,
    DisconnectReason,
    MessageEnvelope,
    MessagesUpsert,
)
from pairlink.domain.errors import (
    PairlinkError,
    ConfigurationError,
    StorageError,
    TransportError,
    PairingError,
)

__all__ = [
    "Credentials",
    "ConnectionConfig",
    "SupervisorSettings",
    "RetryDecision",
    "DecisionKind",
    "classify_closure",
    "CloseCause",
    "ConnectionPhase",
    "ConnectionUpdate",
    "DeliveryType",
    "DisconnectReason",
    "MessageEnvelope",
    "MessagesUpsert",
    "PairlinkError",
    "ConfigurationError",
    "StorageError",
    "TransportError",
    "PairingError",
]
