"""
File Credential Store - JSON credentials inside an auth directory.

The document layout is whatever ``Credentials.to_dict()`` produces; the
transport's own key material travels inside ``extra``.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import StorageError

logger = logging.getLogger(__name__)


class FileCredentialStore(CredentialStorePort):
    """
    Credentials stored as ``<auth_directory>/creds.json``.

    Saves write a temporary file in the same directory, fsync it and
    atomically replace the previous document, so a crash mid-save leaves
    either the old or the new credentials, never a torn file.
    """

    FILENAME = "creds.json"

    def __init__(self, auth_directory: Union[str, Path]):
        """
        Initialize file store.

        Args:
            auth_directory: Directory holding the credentials document
                (created on first save)
        """
        self._directory = Path(auth_directory)

    @property
    def path(self) -> Path:
        return self._directory / self.FILENAME

    async def load(self) -> Credentials:
        """Load credentials, or fresh ones if nothing was saved yet."""
        return await asyncio.to_thread(self._load_sync)

    async def save(self, credentials: Credentials) -> None:
        """Persist credentials atomically."""
        await asyncio.to_thread(self._save_sync, credentials)

    async def clear(self) -> None:
        """Remove the credentials document if present."""
        try:
            await asyncio.to_thread(self.path.unlink)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Cannot remove {self.path}: {e}") from e

    def _load_sync(self) -> Credentials:
        if self._directory.exists() and not self._directory.is_dir():
            raise StorageError(f"Auth directory is not a directory: {self._directory}")

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No credentials at %s, starting fresh", self.path)
            return Credentials.fresh()
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt credentials file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Corrupt credentials file {self.path}: expected an object")

        return Credentials.from_dict(data)

    def _save_sync(self, credentials: Credentials) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=".creds-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(credentials.to_dict(), f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
