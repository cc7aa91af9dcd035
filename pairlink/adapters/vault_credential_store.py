"""
HashiCorp Vault Credential Store - Production-grade credential storage.
"""

import asyncio
from typing import Optional
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import StorageError


class VaultCredentialStore(CredentialStorePort):
    """
    HashiCorp Vault credential store.

    Uses KV Secrets Engine v2; every save becomes a new secret version.
    hvac is synchronous; calls run in a worker thread.
    Requires: pip install hvac
    """

    def __init__(
        self,
        account_id: str,
        url: str = "http://localhost:8200",
        token: Optional[str] = None,
        mount_point: str = "secret",
        path_prefix: str = "pairlink",
        client=None,
    ):
        """
        Initialize Vault store.

        Args:
            account_id: Account the credentials belong to
            url: Vault server URL
            token: Vault token (or use VAULT_TOKEN env var)
            mount_point: KV mount point (default: secret)
            path_prefix: Path prefix for secrets (default: pairlink)
            client: Pre-built hvac.Client (skips authentication check)
        """
        try:
            import hvac
            from hvac import exceptions as hvac_exceptions
        except ImportError:
            raise ImportError("hvac package required: pip install hvac")

        self._account_id = account_id
        self._mount_point = mount_point
        self._path_prefix = path_prefix
        self._invalid_path = hvac_exceptions.InvalidPath
        self._vault_error = hvac_exceptions.VaultError

        if client is None:
            client = hvac.Client(url=url, token=token)
            if not client.is_authenticated():
                raise StorageError("Vault authentication failed")
        self._client = client

    @property
    def path(self) -> str:
        """Vault path for this account's credentials."""
        return f"{self._path_prefix}/{self._account_id}/creds"

    async def load(self) -> Credentials:
        """Read the latest credentials version from Vault."""
        try:
            response = await asyncio.to_thread(
                self._client.secrets.kv.v2.read_secret_version,
                path=self.path,
                mount_point=self._mount_point,
            )
        except self._invalid_path:
            return Credentials.fresh()
        except self._vault_error as e:
            raise StorageError(f"Cannot read {self.path} from Vault: {e}") from e

        try:
            return Credentials.from_dict(response["data"]["data"])
        except (KeyError, TypeError) as e:
            raise StorageError(f"Corrupt credentials at {self.path}: {e}") from e

    async def save(self, credentials: Credentials) -> None:
        """Write credentials as a new secret version."""
        try:
            await asyncio.to_thread(
                self._client.secrets.kv.v2.create_or_update_secret,
                path=self.path,
                secret=credentials.to_dict(),
                mount_point=self._mount_point,
            )
        except self._vault_error as e:
            raise StorageError(f"Cannot write {self.path} to Vault: {e}") from e

    async def clear(self) -> None:
        """Delete all versions and metadata for the credentials."""
        try:
            await asyncio.to_thread(
                self._client.secrets.kv.v2.delete_metadata_and_all_versions,
                path=self.path,
                mount_point=self._mount_point,
            )
        except self._vault_error as e:
            raise StorageError(f"Cannot delete {self.path} from Vault: {e}") from e
