"""
Credential storage package for dashstore.

In-memory, JSON file and Redis backends for the persisted session keys.
"""

from .store import (
    ACCESS_TOKEN_KEY,
    PROFILE_KEY,
    EXPIRY_KEY,
    SESSION_KEYS,
    Credential,
    KeyValueStorage,
    StorageError,
)

from .memory import MemoryStorage
from .file import FileStorage
from .distributed import RedisStorage
from .factory import STORAGE_BACKENDS, create_storage

__all__ = [
    "ACCESS_TOKEN_KEY",
    "PROFILE_KEY",
    "EXPIRY_KEY",
    "SESSION_KEYS",
    "Credential",
    "KeyValueStorage",
    "StorageError",
    "MemoryStorage",
    "FileStorage",
    "RedisStorage",
    "STORAGE_BACKENDS",
    "create_storage",
]
