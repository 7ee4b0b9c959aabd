"""
Generic CRUD client for one remote collection.
"""

import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from ..common.utils import IDENTITY_FIELDS, resolve_identity
from ..errors import (
    ConfigurationError,
    NotFound,
    TransportError,
    error_from_response,
)
from ..transport.http import HttpTransport, TransportResponse
from .envelope import ResourceEnvelope, normalize_item, normalize_list


logger = logging.getLogger(__name__)


def require_identity(resource_id: Any, operation: str, label: str) -> Any:
    """
    Reject missing identifiers before anything goes over the network.

    Raises:
        ConfigurationError: If the identifier is None, empty or not a scalar
    """
    if (
        resource_id is None
        or isinstance(resource_id, (bool, dict, list, tuple))
        or (isinstance(resource_id, str) and not resource_id.strip())
    ):
        raise ConfigurationError(f"{operation} {label}: missing id")
    return resource_id


def split_identity(obj: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
    """
    Split a merged object into its identity and the remaining body.

    Args:
        obj: Record carrying ``id``, ``_id`` or ``uuid``

    Returns:
        (identity, body without any identity field)

    Raises:
        ConfigurationError: If the object has no identity field
    """
    identity = resolve_identity(obj)
    if identity is None:
        raise ConfigurationError("update: object has no id, _id or uuid field")

    body = {k: v for k, v in obj.items() if k not in IDENTITY_FIELDS}
    return identity, body


class ResourceClient:
    """
    CRUD operations against ``/<resource>`` and ``/<resource>/:id``.

    Args:
        transport: Shared HTTP transport
        resource: Collection path segment, e.g. "workshops"
        label: Name used in fallback error messages (defaults to resource)
        protected: Require a valid credential before sending
        idempotent_delete: Treat a 404 on delete as success
        timeout: Default timeout for this resource, overriding the transport's
    """

    def __init__(
        self,
        transport: HttpTransport,
        resource: str,
        *,
        label: Optional[str] = None,
        protected: bool = True,
        idempotent_delete: bool = True,
        timeout: Optional[Any] = None,
    ):
        if not resource or not resource.strip("/"):
            raise ConfigurationError("ResourceClient requires a resource path")

        self.transport = transport
        self.resource = resource.strip("/")
        self.label = label or self.resource
        self.protected = protected
        self.idempotent_delete = idempotent_delete
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"ResourceClient({self.resource!r})"

    def item_path(self, resource_id: Any) -> str:
        return f"{self.resource}/{quote(str(resource_id), safe='')}"

    def failure_message(self, operation: str) -> str:
        return f"Failed to {operation} {self.label}"

    async def _call(self, operation: str, method: str, path: str, **options: Any) -> TransportResponse:
        options.setdefault("timeout", self.timeout)

        try:
            response = await self.transport.request(
                method, path, auth_required=self.protected, **options
            )
        except TransportError as e:
            raise type(e)(
                self.failure_message(operation),
                code=e.code,
                status=e.status,
                cause=e.cause or e,
            ) from e

        if not response.ok:
            raise error_from_response(response.status, response.body, self.failure_message(operation))

        return response

    async def list(self, params: Optional[Dict[str, Any]] = None, **options: Any) -> ResourceEnvelope:
        """
        GET the collection.

        Args:
            params: Query parameters, e.g. ``{"type": "video"}``

        Returns:
            ResourceEnvelope with the flat item list and any pagination meta
        """
        response = await self._call("fetch", "GET", self.resource, params=params, **options)
        return normalize_list(response.body)

    async def get(self, resource_id: Any, **options: Any) -> Optional[Dict[str, Any]]:
        """
        GET a single record.

        Raises:
            NotFound: If the server answers 404
        """
        require_identity(resource_id, "get", self.label)
        response = await self._call("get", "GET", self.item_path(resource_id), **options)
        return normalize_item(response.body).item

    async def create(self, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """POST a new record; file-like values switch the body to multipart."""
        response = await self._call("create", "POST", self.resource, payload=body, **options)
        return normalize_item(response.body).item

    async def update(self, resource_id: Any, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """
        PATCH a record.

        Args:
            resource_id: Identity of the record
            body: Fields to change

        Returns:
            The updated record as returned by the server
        """
        require_identity(resource_id, "update", self.label)
        response = await self._call(
            "update", "PATCH", self.item_path(resource_id), payload=body, **options
        )
        return normalize_item(response.body).item

    async def update_from_object(self, obj: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """Legacy form of update taking one merged object with an identity field."""
        resource_id, body = split_identity(obj)
        return await self.update(resource_id, body, **options)

    async def remove(self, resource_id: Any, **options: Any) -> None:
        """
        DELETE a record.

        A 404 counts as success when idempotent_delete is on: the record
        is gone either way.
        """
        require_identity(resource_id, "delete", self.label)
        try:
            await self._call("delete", "DELETE", self.item_path(resource_id), **options)
        except NotFound:
            if not self.idempotent_delete:
                raise
            logger.debug(f"{self.resource}/{resource_id} already deleted")

    # Root-level operations for singleton resources such as settings

    async def get_root(self, **options: Any) -> Optional[Dict[str, Any]]:
        """GET ``/<resource>`` as a single record."""
        response = await self._call("load", "GET", self.resource, **options)
        return normalize_item(response.body).item

    async def put_root(self, body: Dict[str, Any], **options: Any) -> Optional[Dict[str, Any]]:
        """PUT ``/<resource>`` replacing the single record."""
        response = await self._call("update", "PUT", self.resource, payload=body, **options)
        return normalize_item(response.body).item

    async def delete_root(self, **options: Any) -> None:
        """DELETE ``/<resource>``."""
        try:
            await self._call("delete", "DELETE", self.resource, **options)
        except NotFound:
            if not self.idempotent_delete:
                raise
            logger.debug(f"{self.resource} already deleted")
