"""
Factory for credential storage backends.
"""

from typing import Optional

from .store import KeyValueStorage
from .memory import MemoryStorage
from .file import FileStorage
from .distributed import RedisStorage


STORAGE_BACKENDS = ("memory", "file", "redis")


def create_storage(
    backend: str = "memory",
    path: Optional[str] = None,
    redis_url: Optional[str] = None,
    key_prefix: str = "dashstore:",
) -> KeyValueStorage:
    """
    Create a storage backend by name.

    Args:
        backend: One of "memory", "file" or "redis"
        path: JSON file path for the file backend
        redis_url: Connection URL for the redis backend
        key_prefix: Key prefix for the redis backend

    Returns:
        KeyValueStorage instance

    Raises:
        ValueError: If the backend is unknown or its settings are missing
    """
    backend = backend.lower()

    if backend == "memory":
        return MemoryStorage()

    if backend == "file":
        if not path:
            raise ValueError("file storage requires a path")
        return FileStorage(path)

    if backend == "redis":
        if not redis_url:
            raise ValueError("redis storage requires a redis_url")
        return RedisStorage.from_url(redis_url, key_prefix=key_prefix)

    raise ValueError(f"Unknown storage backend: {backend} (expected one of {STORAGE_BACKENDS})")
