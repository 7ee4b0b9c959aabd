"""
Session management: login, profile, logout and expiry checks.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Optional

from ..common.utils import first_present, sanitize_dict
from ..errors import Unauthenticated, error_from_response, extract_server_message
from ..events import EventType
from ..resources.envelope import unwrap_item
from ..tokenstore import Credential
from ..transport.http import HttpTransport
from .provider import TokenProvider


logger = logging.getLogger(__name__)

TOKEN_PATHS = ["access_token", "token", "data.access_token", "data.token"]
PROFILE_PATHS = ["admin", "user", "data.admin", "data.user"]


@dataclass
class SessionConfig:
    """Session configuration."""
    session_ttl: timedelta = field(default_factory=lambda: timedelta(hours=24))
    check_interval: timedelta = field(default_factory=lambda: timedelta(minutes=24))
    login_path: str = "login"
    profile_path: str = "profile"


class SessionManager:
    """
    Drives the admin session on top of the token provider.

    Args:
        transport: HTTP transport used for login and profile calls
        token_provider: Provider persisting the credential
        config: Session configuration
    """

    def __init__(
        self,
        transport: HttpTransport,
        token_provider: TokenProvider,
        config: Optional[SessionConfig] = None,
    ):
        self.transport = transport
        self.token_provider = token_provider
        self.config = config or SessionConfig()
        self.event_bus = token_provider.event_bus

        self.admin: Optional[Dict[str, Any]] = None
        self.profile: Optional[Dict[str, Any]] = None
        self.initialized = False

        self._watch_task: Optional[asyncio.Task] = None
        self._running = False

    async def login(self, email: str, password: str) -> Credential:
        """
        Authenticate with email and password and persist the credential.

        The token is looked up in ``access_token``, ``token``,
        ``data.access_token`` and ``data.token``; the profile in ``admin``,
        ``user``, ``data.admin`` and ``data.user``.

        Returns:
            The stored credential

        Raises:
            Unauthenticated: Credentials rejected or no token in the response
        """
        payload = {"email": email, "password": password}
        logger.debug(f"Login request: {sanitize_dict(payload)}")
        response = await self.transport.post(self.config.login_path, payload=payload)
        body = response.body if isinstance(response.body, dict) else {}

        if not response.ok:
            raise error_from_response(response.status, body, "Login failed")

        token = first_present(body, TOKEN_PATHS)
        if not token:
            message = extract_server_message(body) or "Login failed: token not present in response."
            raise Unauthenticated(message, status=response.status)

        admin = first_present(body, PROFILE_PATHS)
        if not isinstance(admin, dict):
            admin = None

        credential = Credential.issue(str(token), self.config.session_ttl, profile=admin)
        await self.token_provider.set_credential(credential)

        self.admin = admin
        self.initialized = True
        logger.info(f"Logged in as {email}")
        self.event_bus.emit(EventType.LOGIN, source="session", email=email)
        return credential

    async def get_profile(self) -> Optional[Dict[str, Any]]:
        """Fetch the signed-in admin's profile."""
        response = await self.transport.get(self.config.profile_path, auth_required=True)
        if not response.ok:
            raise error_from_response(response.status, response.body, "Failed to get profile")

        self.profile = unwrap_item(response.body)
        return self.profile

    async def logout(self) -> None:
        """Clear the credential; bound stores reset through the event bus."""
        await self.token_provider.clear_credential(reason="logout")
        self.admin = None
        self.profile = None
        self.event_bus.emit(EventType.LOGOUT, source="session")

    async def restore(self) -> Optional[Credential]:
        """
        Rehydrate the session from storage at startup.

        Returns:
            The stored credential, or None
        """
        credential = await self.token_provider.get_credential()
        self.admin = credential.profile if credential else None
        self.initialized = True
        return credential

    async def is_authenticated(self) -> bool:
        credential = await self.token_provider.get_credential()
        return self.token_provider.is_valid(credential)

    async def check_session(self) -> bool:
        """
        Tear the session down if its credential has expired.

        Returns:
            False if an expired session was just cleared, True otherwise
        """
        credential = await self.token_provider.get_credential()
        if credential is None or credential.is_valid():
            return True

        await self.token_provider.clear_credential(reason="expired")
        self.admin = None
        self.profile = None
        logger.info("Session expired, please login again")
        self.event_bus.emit(EventType.SESSION_EXPIRED, source="session")
        return False

    async def start_watch(self) -> None:
        """Start the periodic session check task."""
        if not self._running:
            self._running = True
            self._watch_task = asyncio.create_task(self._watch())
            logger.info("Started session watch")

    async def stop_watch(self) -> None:
        """Stop the periodic session check task."""
        if self._running:
            self._running = False
            if self._watch_task:
                self._watch_task.cancel()
                try:
                    await self._watch_task
                except asyncio.CancelledError:
                    pass
                self._watch_task = None
            logger.info("Stopped session watch")

    async def _watch(self) -> None:
        interval = self.config.check_interval.total_seconds()
        while self._running:
            try:
                await asyncio.sleep(interval)
                if self._running:
                    await self.check_session()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in session watch: {e}")
