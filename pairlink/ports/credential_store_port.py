"""
Credential Store Port - Interface for loading and persisting credentials.

Implementations:
- FileCredentialStore: JSON document inside an auth directory
- RedisCredentialStore: Redis-backed storage
- DynamoDBCredentialStore: AWS DynamoDB storage
- VaultCredentialStore: HashiCorp Vault KV v2
- MemoryCredentialStore: In-memory storage (testing only)
"""

from abc import ABC, abstractmethod
from pairlink.domain.credentials import Credentials


class CredentialStorePort(ABC):
    """Port: Durable storage for one account's credentials."""

    @abstractmethod
    async def load(self) -> Credentials:
        """
        Load the stored credentials.

        Returns:
            Stored credentials, or fresh unregistered credentials if nothing
            has been stored yet

        Raises:
            StorageError: If storage is inaccessible or contents are corrupt
        """
        pass

    @abstractmethod
    async def save(self, credentials: Credentials) -> None:
        """
        Persist credentials durably.

        Must not return before the write is complete.

        Args:
            credentials: Credentials to persist (replaces what is stored)

        Raises:
            StorageError: On write failure. Callers treat this as fatal.
        """
        pass

    async def clear(self) -> None:
        """
        Forget stored credentials.

        Optional; stores that cannot clear raise NotImplementedError.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support clear()")
