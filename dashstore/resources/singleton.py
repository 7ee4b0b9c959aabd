"""
Store for root-level resources that hold a single record (settings, profile).
"""

from typing import Any, Dict, Optional

from ..events import EventBus
from ..transport.encoding import is_file_like
from .client import ResourceClient
from .store import BaseStore


class SingletonResourceStore(BaseStore):
    """
    Observable cache of a single record served at ``/<resource>``.

    The record lives in ``selected``; ``collection`` stays empty.
    """

    def __init__(self, client: ResourceClient, event_bus: Optional[EventBus] = None, name: Optional[str] = None):
        self.client = client
        super().__init__(name or client.resource, event_bus)

    async def fetch(self, **options: Any) -> Optional[Dict[str, Any]]:
        """GET the record."""
        self._begin()
        try:
            item = await self.client.get_root(**options)
        except Exception as e:
            self._fail(e)
            raise

        self._set(selected=item, loading=False)
        return self.selected

    async def save(self, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """PUT the record and keep the server's version."""
        self._begin()
        try:
            item = await self.client.put_root(body, **options)
        except Exception as e:
            self._fail(e)
            raise

        if item is None:
            changes = {k: v for k, v in body.items() if not is_file_like(v)}
            item = {**(self._state.selected or {}), **changes}
        self._set(selected=item, loading=False)
        return self.selected

    async def clear(self, **options: Any) -> None:
        """DELETE the record."""
        self._begin()
        try:
            await self.client.delete_root(**options)
        except Exception as e:
            self._fail(e)
            raise

        self._set(selected=None, loading=False)
