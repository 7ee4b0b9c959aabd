"""
Common utilities and helper functions for dashstore.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


IDENTITY_FIELDS = ("id", "_id", "uuid")

SENSITIVE_KEYS = ("password", "token", "access_token", "authorization", "secret")


def get_current_time() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def to_epoch_millis(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def from_epoch_millis(value: Any) -> datetime:
    """
    Parse epoch milliseconds (int or numeric string) into a UTC datetime.

    Raises:
        ValueError: If the value is not a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid epoch millis: {value!r}")
    millis = float(str(value).strip())
    return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)


def resolve_identity(record: Any) -> Optional[Any]:
    """
    Resolve the identifier of a loosely-typed record.

    Tries ``id``, then ``_id``, then ``uuid``. Empty strings and ``None``
    are skipped.

    Args:
        record: Record to inspect

    Returns:
        The identifier, or None if the record has none
    """
    if not isinstance(record, dict):
        return None

    for key in IDENTITY_FIELDS:
        value = record.get(key)
        if value is not None and value != "":
            return value

    return None


def same_identity(left: Any, right: Any) -> bool:
    """Compare two identifiers by their string form."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


def find_index(records: Iterable[Any], identity: Any) -> int:
    """Index of the first record whose identity matches, or -1."""
    for index, record in enumerate(records):
        if same_identity(resolve_identity(record), identity):
            return index
    return -1


def safe_dict_get(dictionary: Any, key: str, default: Any = None) -> Any:
    """Safely get a value from something that may not be a dictionary."""
    if isinstance(dictionary, dict):
        return dictionary.get(key, default)
    return default


def first_present(data: Any, paths: List[str], default: Any = None) -> Any:
    """
    Return the first non-empty value found along dotted paths.

    Args:
        data: Nested dictionary
        paths: Dotted key paths, e.g. ``["access_token", "data.token"]``
        default: Value returned when no path resolves

    Returns:
        First truthy value found, otherwise default
    """
    for path in paths:
        current = data
        for part in path.split("."):
            current = safe_dict_get(current, part)
            if current is None:
                break
        if current:
            return current
    return default


def sanitize_dict(data: Dict[str, Any], sensitive_keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Mask sensitive values of a dictionary for logging.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Keys to mask (case-insensitive)

    Returns:
        Sanitized copy of the dictionary
    """
    keys = {k.lower() for k in (sensitive_keys or SENSITIVE_KEYS)}
    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in keys:
            sanitized[key] = "***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, keys)
        else:
            sanitized[key] = value
    return sanitized


def safe_json_loads(value: Optional[str], default: Any = None) -> Any:
    """Parse JSON, returning default when the value is missing or malformed."""
    if value is None:
        return default
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return default
