"""
Redis Credential Store - Redis-backed credential storage.
"""

import json
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import StorageError


class RedisCredentialStore(CredentialStorePort):
    """
    Redis-backed credential storage.

    Credentials are stored as JSON under one key per account, without
    expiration. Suitable when several hosts may run the connection (one at
    a time).
    """

    def __init__(
        self,
        account_id: str,
        redis_client=None,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "pairlink:creds:",
    ):
        """
        Initialize Redis credential store.

        Args:
            account_id: Account the credentials belong to (usually the phone number)
            redis_client: redis.asyncio.Redis instance (created from redis_url if omitted)
            redis_url: Connection URL used when no client is given
            prefix: Key prefix for credentials
        """
        self._account_id = account_id
        self._redis = redis_client
        self._redis_url = redis_url
        self._prefix = prefix

    def _get_redis(self):
        """Lazy load Redis client."""
        if self._redis is None:
            try:
                import redis.asyncio as aioredis
            except ImportError:
                raise ImportError("redis package required: pip install redis")
            self._redis = aioredis.from_url(self._redis_url, decode_responses=True)
        return self._redis

    def _errors(self):
        from redis.exceptions import RedisError
        return RedisError

    @property
    def key(self) -> str:
        """Redis key holding this account's credentials."""
        return f"{self._prefix}{self._account_id}"

    async def load(self) -> Credentials:
        """
        Load credentials from Redis.

        Returns:
            Stored credentials, or fresh ones if the key does not exist
        """
        redis = self._get_redis()
        try:
            data = await redis.get(self.key)
        except self._errors() as e:
            raise StorageError(f"Cannot read {self.key} from Redis: {e}") from e

        if not data:
            return Credentials.fresh()

        try:
            return Credentials.from_dict(json.loads(data))
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            raise StorageError(f"Corrupt credentials under {self.key}: {e}") from e

    async def save(self, credentials: Credentials) -> None:
        """
        Store credentials in Redis.

        Args:
            credentials: Credentials to persist
        """
        redis = self._get_redis()
        try:
            await redis.set(self.key, json.dumps(credentials.to_dict()))
        except self._errors() as e:
            raise StorageError(f"Cannot write {self.key} to Redis: {e}") from e

    async def clear(self) -> None:
        """Delete the credentials key."""
        redis = self._get_redis()
        try:
            await redis.delete(self.key)
        except self._errors() as e:
            raise StorageError(f"Cannot delete {self.key} from Redis: {e}") from e
