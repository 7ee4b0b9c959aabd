"""
Redis-backed credential storage for dashstore.

Lets several dashboard processes share one session. Multi-key writes use
MSET and deletes a single DEL, both atomic on the Redis side.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import redis.asyncio as redis

from .store import KeyValueStorage, StorageError


logger = logging.getLogger(__name__)


class RedisStorage(KeyValueStorage):
    """
    Redis key/value storage.

    Args:
        client: A ``redis.asyncio.Redis`` client created with
            ``decode_responses=True``
        key_prefix: Prefix applied to every key
    """

    def __init__(self, client: Any, key_prefix: str = "dashstore:"):
        self._redis = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "dashstore:") -> "RedisStorage":
        """Create storage from a Redis URL, e.g. ``redis://localhost:6379/0``."""
        return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _get_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        keys = list(keys)
        try:
            values = await self._redis.mget([self._get_key(key) for key in keys])
        except redis.RedisError as e:
            raise StorageError(f"Failed to read from Redis: {e}") from e
        return dict(zip(keys, values))

    async def set_many(self, values: Dict[str, str]) -> None:
        try:
            await self._redis.mset({self._get_key(k): v for k, v in values.items()})
        except redis.RedisError as e:
            raise StorageError(f"Failed to write to Redis: {e}") from e

    async def delete_many(self, keys: Iterable[str]) -> None:
        names = [self._get_key(key) for key in keys]
        if not names:
            return
        try:
            await self._redis.delete(*names)
        except redis.RedisError as e:
            raise StorageError(f"Failed to delete from Redis: {e}") from e

    async def close(self) -> None:
        await self._redis.aclose()
        logger.info("Disconnected from Redis")
