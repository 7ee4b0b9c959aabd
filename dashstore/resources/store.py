"""
Observable state containers built on a ResourceClient.

Cache strategies:
  - create: full refetch of the collection after success
  - update: in-place patch of the matching record (and of the selection)
    from the server's response
  - delete: in-place removal of the matching record
The refetch is always consistent with the server at the cost of a second
round trip; the patches are cheaper but may miss concurrent changes made
by other users until the next fetch_all.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..common.utils import find_index, resolve_identity, same_identity
from ..errors import ConfigurationError, DashStoreError
from ..events import EventBus, EventType
from ..transport.encoding import is_file_like
from .client import ResourceClient, require_identity, split_identity
from .envelope import ResourceEnvelope


logger = logging.getLogger(__name__)


@dataclass
class ResourceState:
    """
    Client-side cache of one resource.

    Attributes:
        collection: Records in server order
        selected: Currently selected single record
        loading: True while an operation is in flight (last write wins)
        error: Message of the last failed operation, cleared on each new one
        meta: Pagination data from the last fetch_all
        created: Record returned by the last successful create
        updated: Record returned by the last successful update
    """

    collection: List[Dict[str, Any]] = field(default_factory=list)
    selected: Optional[Dict[str, Any]] = None
    loading: bool = False
    error: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created: Optional[Dict[str, Any]] = None
    updated: Optional[Dict[str, Any]] = None

    def copy(self) -> "ResourceState":
        """Snapshot safe to hand to readers."""
        return ResourceState(
            collection=[dict(r) if isinstance(r, dict) else r for r in self.collection],
            selected=dict(self.selected) if isinstance(self.selected, dict) else self.selected,
            loading=self.loading,
            error=self.error,
            meta=dict(self.meta) if isinstance(self.meta, dict) else self.meta,
            created=dict(self.created) if isinstance(self.created, dict) else self.created,
            updated=dict(self.updated) if isinstance(self.updated, dict) else self.updated,
        )


Listener = Callable[[ResourceState], None]


def error_message(error: BaseException) -> str:
    if isinstance(error, DashStoreError):
        return error.message
    return str(error) or error.__class__.__name__


class BaseStore:
    """
    State holder with synchronous change notification.

    Only the store mutates its state; readers get copies.
    """

    def __init__(self, name: str, event_bus: Optional[EventBus] = None):
        self.name = name
        self._state = ResourceState()
        self._listeners: List[Listener] = []
        self._unbind: Optional[Callable[[], None]] = None
        if event_bus is not None:
            self.bind(event_bus)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"

    @property
    def state(self) -> ResourceState:
        return self._state.copy()

    @property
    def collection(self) -> List[Dict[str, Any]]:
        return self.state.collection

    @property
    def selected(self) -> Optional[Dict[str, Any]]:
        return self.state.selected

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def meta(self) -> Optional[Dict[str, Any]]:
        return self.state.meta

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with a state snapshot after every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def bind(self, event_bus: EventBus) -> None:
        """Reset this store whenever the credential is cleared."""
        self.unbind()
        self._unbind = event_bus.subscribe(EventType.CREDENTIAL_CLEARED, lambda event: self.reset())

    def unbind(self) -> None:
        if self._unbind is not None:
            self._unbind()
            self._unbind = None

    def reset(self) -> None:
        """Drop all cached data, e.g. after logout."""
        self._state = ResourceState()
        logger.debug(f"Store {self.name} reset")
        self._notify()

    def _set(self, **changes: Any) -> None:
        for key, value in changes.items():
            setattr(self._state, key, value)
        self._notify()

    def _notify(self) -> None:
        snapshot = self._state.copy()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Listener of store {self.name} failed")

    def _begin(self) -> None:
        self._set(loading=True, error=None)

    def _fail(self, error: BaseException) -> None:
        self._set(loading=False, error=error_message(error))


class ResourceStore(BaseStore):
    """
    Observable cache of one remote collection.

    Every operation clears ``error`` when it starts, records the failure
    message if it fails and re-raises the exception for the caller.

    Args:
        client: Resource client for the collection
        event_bus: Bus whose credential_cleared events reset the store
        name: Store name (defaults to the resource path)
    """

    def __init__(self, client: ResourceClient, event_bus: Optional[EventBus] = None, name: Optional[str] = None):
        self.client = client
        super().__init__(name or client.resource, event_bus)

    async def fetch_all(self, params: Optional[Dict[str, Any]] = None, **options: Any) -> List[Dict[str, Any]]:
        """
        Load the collection.

        On failure the previous collection is kept.
        """
        self._begin()
        try:
            envelope: ResourceEnvelope = await self.client.list(params, **options)
        except Exception as e:
            self._fail(e)
            raise

        self._set(collection=envelope.items, meta=envelope.meta, loading=False)
        return self.collection

    async def fetch_one(self, resource_id: Any, **options: Any) -> Optional[Dict[str, Any]]:
        """Load one record into ``selected``."""
        self._begin()
        try:
            require_identity(resource_id, "get", self.client.label)
            item = await self.client.get(resource_id, **options)
        except Exception as e:
            self._fail(e)
            raise

        self._set(selected=item, loading=False)
        return self.selected

    async def create_one(self, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """
        Create a record, then refetch the collection.

        A failed refetch is recorded in ``error`` but does not undo or hide
        the successful create.
        """
        self._begin()
        try:
            created = await self.client.create(body, **options)
        except Exception as e:
            self._fail(e)
            raise

        self._set(created=created)
        try:
            await self.fetch_all()
        except DashStoreError as e:
            logger.warning(f"Refetch of {self.name} after create failed: {e}")

        return created

    async def update_one(self, resource_id: Any, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """Update a record and patch it in place in the cache."""
        self._begin()
        try:
            require_identity(resource_id, "update", self.client.label)
            updated = await self.client.update(resource_id, body, **options)
        except Exception as e:
            self._fail(e)
            raise

        if isinstance(updated, dict) and same_identity(resolve_identity(updated), resource_id):
            patch = updated
        else:
            patch = {k: v for k, v in body.items() if not is_file_like(v)}

        if find_index(self._state.collection, resource_id) < 0:
            logger.debug(f"{self.name}/{resource_id} not cached, collection unchanged")

        collection = [
            {**record, **patch} if same_identity(resolve_identity(record), resource_id) else record
            for record in self._state.collection
        ]

        selected = self._state.selected
        if same_identity(resolve_identity(selected), resource_id):
            selected = {**selected, **patch}

        self._set(collection=collection, selected=selected, updated=updated, loading=False)
        return updated

    async def update_one_from_object(self, obj: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """Legacy form of update_one taking one merged object."""
        try:
            resource_id, body = split_identity(obj)
        except ConfigurationError as e:
            self._begin()
            self._fail(e)
            raise
        return await self.update_one(resource_id, body, **options)

    async def delete_one(self, resource_id: Any, **options: Any) -> None:
        """Delete a record and drop it from the cache."""
        self._begin()
        try:
            require_identity(resource_id, "delete", self.client.label)
            await self.client.remove(resource_id, **options)
        except Exception as e:
            self._fail(e)
            raise

        collection = [
            record for record in self._state.collection
            if not same_identity(resolve_identity(record), resource_id)
        ]

        selected = self._state.selected
        if same_identity(resolve_identity(selected), resource_id):
            selected = None

        self._set(collection=collection, selected=selected, loading=False)
