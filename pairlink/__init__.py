"""
Pairlink - Phone-number pairing & connection lifecycle

Hexagonal architecture for establishing and keeping an authenticated
session with a messaging service, pairing by phone number instead of a QR
code.

Usage:
    from pairlink import ConnectionConfig, connect
    from pairlink.adapters import FileCredentialStore, MemoryTransport

    config = ConnectionConfig(
        phone_number="15551234567",
        on_pairing_code=lambda code: print(f"Pairing code: {code}"),
        on_disconnected=lambda reason: print(f"Disconnected: {reason}"),
    )

    # Pair (or reuse stored credentials) and keep reconnecting
    connection = await connect(config, transport=MemoryTransport())
    await connection.wait_closed()
"""

__version__ = "0.1.0"

from pairlink.sdk.client import PairingClient, Connection, connect
from pairlink.domain.config import ConnectionConfig, SupervisorSettings
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import (
    PairlinkError,
    ConfigurationError,
    StorageError,
    TransportError,
    PairingError,
)

__all__ = [
    "PairingClient",
    "Connection",
    "connect",
    "ConnectionConfig",
    "SupervisorSettings",
    "Credentials",
    "PairlinkError",
    "ConfigurationError",
    "StorageError",
    "TransportError",
    "PairingError",
]
