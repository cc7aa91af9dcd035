"""
Memory Credential Store - In-memory credential storage (testing only).
"""

from typing import List, Optional
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import StorageError


class MemoryCredentialStore(CredentialStorePort):
    """
    In-memory credential storage.

    WARNING: Only for testing. Credentials are lost on restart, which
    means pairing has to be repeated.

    Every save is recorded in ``saved`` and every load counted in
    ``load_count`` so tests can assert on persistence ordering.
    """

    def __init__(self, initial: Optional[Credentials] = None):
        """
        Initialize in-memory storage.

        Args:
            initial: Credentials to start with (fresh if omitted)
        """
        self._credentials: Optional[Credentials] = initial
        self.saved: List[Credentials] = []
        self.load_count = 0

        # Set to make the next load/save fail
        self.fail_load: Optional[StorageError] = None
        self.fail_save: Optional[StorageError] = None

    @property
    def current(self) -> Optional[Credentials]:
        return self._credentials

    async def load(self) -> Credentials:
        """Return stored credentials (fresh if none)."""
        self.load_count += 1
        if self.fail_load:
            raise self.fail_load
        return self._credentials or Credentials.fresh()

    async def save(self, credentials: Credentials) -> None:
        """Replace stored credentials."""
        if self.fail_save:
            raise self.fail_save
        self._credentials = credentials
        self.saved.append(credentials)

    async def clear(self) -> None:
        self._credentials = None
