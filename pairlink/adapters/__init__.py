"""
Adapters - Implementations of ports.

Credential Storage:
- FileCredentialStore: JSON document inside an auth directory
- RedisCredentialStore: Redis-backed storage
- DynamoDBCredentialStore: AWS DynamoDB storage
- VaultCredentialStore: HashiCorp Vault KV v2
- MemoryCredentialStore: In-memory storage (testing)

Transport:
- MemoryTransport: Scripted in-process transport (testing and demos)
"""

# Credential Storage
from pairlink.adapters.file_credential_store import FileCredentialStore
from pairlink.adapters.memory_credential_store import MemoryCredentialStore
from pairlink.adapters.redis_credential_store import RedisCredentialStore
from pairlink.adapters.dynamodb_credential_store import DynamoDBCredentialStore
from pairlink.adapters.vault_credential_store import VaultCredentialStore

# Transport
from pairlink.adapters.emitter import EventEmitter
from pairlink.adapters.memory_transport import MemoryTransport, MemorySession

__all__ = [
    # Credential Storage
    "FileCredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "DynamoDBCredentialStore",
    "VaultCredentialStore",
    # Transport
    "EventEmitter",
    "MemoryTransport",
    "MemorySession",
]
