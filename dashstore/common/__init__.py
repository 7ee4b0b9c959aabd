"""
Common utilities for dashstore.
"""

from .utils import (
    IDENTITY_FIELDS,
    get_current_time,
    to_epoch_millis,
    from_epoch_millis,
    resolve_identity,
    same_identity,
    find_index,
    safe_dict_get,
    first_present,
    sanitize_dict,
    safe_json_loads,
)

__all__ = [
    "IDENTITY_FIELDS",
    "get_current_time",
    "to_epoch_millis",
    "from_epoch_millis",
    "resolve_identity",
    "same_identity",
    "find_index",
    "safe_dict_get",
    "first_present",
    "sanitize_dict",
    "safe_json_loads",
]
