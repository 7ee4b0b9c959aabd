"""
Token provider for dashstore.

Resolves the current credential from durable storage, supplies it to the
transport, and tears the session down when it expires or is rejected.
"""

import logging
from typing import Optional

from ..errors import SessionExpired, Unauthenticated
from ..events import EventBus, EventType
from ..tokenstore import Credential, KeyValueStorage, SESSION_KEYS


logger = logging.getLogger(__name__)


class TokenProvider:
    """
    Reads, writes and clears the persisted credential.

    Args:
        storage: Durable key/value storage
        event_bus: Bus receiving credential lifecycle events
    """

    def __init__(self, storage: KeyValueStorage, event_bus: Optional[EventBus] = None):
        self.storage = storage
        self.event_bus = event_bus or EventBus()

    async def get_credential(self) -> Optional[Credential]:
        """
        Read the credential from storage.

        Returns:
            Credential, or None if absent, unparsable or unreadable
        """
        try:
            values = await self.storage.get_many(SESSION_KEYS)
        except Exception as e:
            logger.warning(f"Failed to read credential from storage: {e}")
            return None

        return Credential.from_storage(values)

    @staticmethod
    def is_valid(credential: Optional[Credential]) -> bool:
        """True iff a credential is present and not yet expired."""
        return credential is not None and credential.is_valid()

    async def set_credential(self, credential: Credential) -> None:
        """
        Persist a credential, overwriting any previous one in a single write.

        Raises:
            StorageError: If the backend fails to write
        """
        await self.storage.set_many(credential.to_storage())
        logger.debug(f"Credential stored, expires at {credential.expires_at.isoformat()}")
        self.event_bus.emit(EventType.CREDENTIAL_SET, source="token_provider")

    async def clear_credential(self, reason: str = "logout") -> None:
        """
        Remove every trace of the credential and broadcast the teardown.

        Args:
            reason: Why the credential was cleared, passed along in the event
        """
        await self.storage.delete_many(SESSION_KEYS)
        logger.info(f"Credential cleared ({reason})")
        self.event_bus.emit(EventType.CREDENTIAL_CLEARED, source="token_provider", reason=reason)

    async def ensure_valid(self) -> Credential:
        """
        Pre-flight check for protected calls.

        Returns:
            The valid credential

        Raises:
            SessionExpired: A credential was present but expired; it has been cleared
            Unauthenticated: No credential is stored
        """
        credential = await self.get_credential()

        if credential is None:
            raise Unauthenticated("Not authenticated")

        if not credential.is_valid():
            await self.clear_credential(reason="expired")
            self.event_bus.emit(EventType.SESSION_EXPIRED, source="token_provider")
            raise SessionExpired("Session expired, please login again")

        return credential
