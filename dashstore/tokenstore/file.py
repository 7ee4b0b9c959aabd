"""
JSON file credential storage for dashstore.

The whole document is rewritten on every change: the new content goes to
a temporary file in the same directory which then replaces the original,
so a crash mid-write leaves either the old or the new document.
"""

import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Dict, Iterable, Optional

from .store import KeyValueStorage, StorageError


logger = logging.getLogger(__name__)


class FileStorage(KeyValueStorage):
    """Key/value storage persisted as a single JSON object on disk."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.file_path):
            return {}

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable storage file {self.file_path}: {e}")
            return {}

        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.file_path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".dashstore-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Failed to write {self.file_path}: {e}") from e

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        async with self._lock:
            data = self._read()
            return {key: data.get(key) for key in keys}

    async def set_many(self, values: Dict[str, str]) -> None:
        async with self._lock:
            data = self._read()
            data.update(values)
            self._write(data)

    async def delete_many(self, keys: Iterable[str]) -> None:
        async with self._lock:
            data = self._read()
            for key in keys:
                data.pop(key, None)
            self._write(data)
