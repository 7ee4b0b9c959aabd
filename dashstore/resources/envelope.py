"""
Response envelope normalization.

Endpoints wrap their payloads differently (bare arrays, ``{data: [...]}``,
``{items: [...]}``, ``{result: [...]}``, bare objects). Everything is
reduced to a ResourceEnvelope before it reaches a store; unrecognized
shapes become an empty collection or a null item, never an exception.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.utils import resolve_identity


LIST_KEYS = ("data", "items", "result")

PAGINATION_FIELDS = {
    "current_page": "page",
    "page": "page",
    "last_page": "total_pages",
    "total_pages": "total_pages",
    "total": "total",
    "per_page": "per_page",
}


@dataclass
class ResourceEnvelope:
    """
    Normalized response.

    Attributes:
        item: Single record, for single-item responses
        items: Flat list of records
        meta: Pagination data, if any was found
    """

    item: Optional[Dict[str, Any]] = None
    items: List[Dict[str, Any]] = field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None


def extract_meta(body: Any) -> Optional[Dict[str, Any]]:
    """
    Collect pagination fields from a response body.

    Looks in ``meta`` first, then at top level; known Laravel-style keys
    are renamed, unknown keys inside ``meta`` are kept as they are.
    """
    if not isinstance(body, dict):
        return None

    meta: Dict[str, Any] = {}
    raw_meta = body.get("meta")
    sources = [body]
    if isinstance(raw_meta, dict):
        sources.insert(0, raw_meta)
        meta.update({k: v for k, v in raw_meta.items() if k not in PAGINATION_FIELDS})

    for source in sources:
        for key, name in PAGINATION_FIELDS.items():
            if key in source and name not in meta:
                meta[name] = source[key]

    return meta or None


def normalize_list(body: Any) -> ResourceEnvelope:
    """Normalize a collection response."""
    if isinstance(body, list):
        return ResourceEnvelope(items=list(body))

    if isinstance(body, dict):
        for key in LIST_KEYS:
            value = body.get(key)
            if isinstance(value, list):
                return ResourceEnvelope(items=list(value), meta=extract_meta(body))

    return ResourceEnvelope()


def unwrap_item(body: Any) -> Optional[Dict[str, Any]]:
    """Return the record carried by a single-item response, or None."""
    if not isinstance(body, dict):
        return None

    data = body.get("data")
    if isinstance(data, dict):
        return data

    # {"data": null} or {"data": [...]} wrappers carry no single record
    if "data" in body and resolve_identity(body) is None:
        return None

    return body


def normalize_item(body: Any) -> ResourceEnvelope:
    """Normalize a single-item response; the record is also wrapped as items."""
    item = unwrap_item(body)
    return ResourceEnvelope(item=item, items=[item] if item is not None else [])
