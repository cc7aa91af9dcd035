"""
Ports - Interfaces for credential storage and the transport session.

Hexagonal architecture: These define WHAT we need, not HOW.
Adapters provide the HOW.
"""

from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.ports.transport_port import (
    TransportPort,
    SessionHandle,
    SessionOptions,
    ProtocolVersion,
)

__all__ = [
    # Credential storage
    "CredentialStorePort",
    # Transport
    "TransportPort",
    "SessionHandle",
    "SessionOptions",
    "ProtocolVersion",
]
