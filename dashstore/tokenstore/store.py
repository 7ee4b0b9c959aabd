"""
Credential storage types and interfaces for dashstore.

This module provides the credential data structure and the durable
key/value storage interface the token provider persists it through.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, Optional

from ..common.utils import (
    get_current_time,
    to_epoch_millis,
    from_epoch_millis,
    safe_json_loads,
)


logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "access_token"
PROFILE_KEY = "admin"
EXPIRY_KEY = "expiry_time"

SESSION_KEYS = (ACCESS_TOKEN_KEY, PROFILE_KEY, EXPIRY_KEY)


@dataclass
class Credential:
    """
    Bearer credential with its expiry.

    Attributes:
        token: Opaque bearer token
        expires_at: Expiry timestamp (UTC)
        profile: Admin profile returned at login, if any
    """

    token: str
    expires_at: datetime
    profile: Optional[Dict[str, Any]] = field(default=None)

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the credential authorizes requests.

        Returns:
            True iff the token is non-empty and now < expires_at
        """
        if not self.token:
            return False
        return (now or get_current_time()) < self.expires_at

    def is_expired(self) -> bool:
        """Check if credential is expired."""
        return get_current_time() >= self.expires_at

    def time_until_expiry(self) -> timedelta:
        """Get time until credential expires."""
        return self.expires_at - get_current_time()

    def to_storage(self) -> Dict[str, str]:
        """
        Serialize to the persisted key layout.

        Returns:
            Mapping with access_token, admin (JSON) and expiry_time (epoch millis)
        """
        return {
            ACCESS_TOKEN_KEY: self.token,
            PROFILE_KEY: json.dumps(self.profile),
            EXPIRY_KEY: str(to_epoch_millis(self.expires_at)),
        }

    @classmethod
    def from_storage(cls, values: Dict[str, Optional[str]]) -> Optional["Credential"]:
        """
        Rebuild a credential from the persisted key layout.

        Args:
            values: Mapping as returned by KeyValueStorage.get_many

        Returns:
            Credential, or None when the token is absent or the expiry
            cannot be parsed
        """
        token = values.get(ACCESS_TOKEN_KEY)
        if not token:
            return None

        raw_expiry = values.get(EXPIRY_KEY)
        if raw_expiry is None:
            logger.warning("Stored credential has no expiry time")
            return None

        try:
            expires_at = from_epoch_millis(raw_expiry)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Stored expiry time is not a timestamp: {raw_expiry!r}")
            return None

        profile = safe_json_loads(values.get(PROFILE_KEY))
        if profile is not None and not isinstance(profile, dict):
            profile = None

        return cls(token=token, expires_at=expires_at, profile=profile)

    @classmethod
    def issue(cls, token: str, lifetime: timedelta, profile: Optional[Dict[str, Any]] = None) -> "Credential":
        """Create a credential expiring ``lifetime`` from now."""
        return cls(token=token, expires_at=get_current_time() + lifetime, profile=profile)


class StorageError(Exception):
    """Raised by storage backends when a read or write fails."""
    pass


class KeyValueStorage(ABC):
    """
    Abstract base class for durable key/value storage.

    Multi-key writes and deletes must be all-or-nothing so readers never
    observe a token without its profile or expiry.
    """

    @abstractmethod
    async def get_many(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        """
        Read several keys.

        Args:
            keys: Keys to read

        Returns:
            Mapping of every requested key to its value or None
        """
        pass

    @abstractmethod
    async def set_many(self, values: Dict[str, str]) -> None:
        """
        Write several keys in one atomic operation.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_many(self, keys: Iterable[str]) -> None:
        """
        Remove several keys in one atomic operation.

        Raises:
            StorageError: If the delete fails
        """
        pass

    async def get(self, key: str) -> Optional[str]:
        """Read a single key."""
        values = await self.get_many([key])
        return values.get(key)

    async def close(self) -> None:
        """Release backend resources."""
        pass
