"""
In-memory credential storage for dashstore.

Suitable for tests and short-lived scripts; nothing survives the process.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from .store import KeyValueStorage


logger = logging.getLogger(__name__)


class MemoryStorage(KeyValueStorage):
    """
    In-memory key/value storage.

    A single lock guards the dictionary so multi-key writes are atomic
    with respect to other tasks.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        async with self._lock:
            return {key: self._data.get(key) for key in keys}

    async def set_many(self, values: Dict[str, str]) -> None:
        async with self._lock:
            self._data.update(values)
            logger.debug(f"Stored keys: {sorted(values)}")

    async def delete_many(self, keys: Iterable[str]) -> None:
        async with self._lock:
            for key in keys:
                self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Copy of the stored data."""
        return dict(self._data)
