"""
Tests for login, profile, logout and session expiry.
"""

import asyncio
from datetime import timedelta

import pytest

from dashstore.auth import SessionConfig, SessionManager
from dashstore.errors import SessionExpired, Unauthenticated, ValidationError
from dashstore.events import EventType
from dashstore.tokenstore import Credential


@pytest.fixture
def session(transport, provider):
    return SessionManager(transport, provider, SessionConfig(session_ttl=timedelta(hours=2)))


class TestLogin:
    """Test credential extraction from login responses."""

    @pytest.mark.asyncio
    async def test_login(self, backend, session, provider, event_bus):
        logins = []
        event_bus.subscribe(EventType.LOGIN, logins.append)

        credential = await session.login("admin@example.com", "secret")

        assert credential.token == backend.token
        assert credential.profile == {"id": 7, "name": "Admin"}
        assert session.admin == {"id": 7, "name": "Admin"}
        assert timedelta(minutes=119) < credential.time_until_expiry() <= timedelta(hours=2)

        stored = await provider.get_credential()
        assert stored.token == backend.token
        assert logins[0].metadata["email"] == "admin@example.com"
        assert "Authorization" not in backend.last().headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response,token", [
        ({"token": "t1"}, "t1"),
        ({"data": {"access_token": "t2", "admin": {"id": 1}}}, "t2"),
        ({"data": {"token": "t3", "user": {"id": 2}}}, "t3"),
    ])
    async def test_token_locations(self, backend, session, response, token):
        backend.login_response = response

        credential = await session.login("admin@example.com", "secret")

        assert credential.token == token

    @pytest.mark.asyncio
    async def test_nested_profile(self, backend, session):
        backend.login_response = {"data": {"token": "t", "user": {"id": 2}}}

        credential = await session.login("admin@example.com", "secret")

        assert credential.profile == {"id": 2}

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, session, provider):
        with pytest.raises(Unauthenticated) as exc_info:
            await session.login("admin@example.com", "wrong")

        assert exc_info.value.message == "auth.The provided credentials are incorrect."
        assert await provider.get_credential() is None

    @pytest.mark.asyncio
    async def test_missing_token(self, backend, session, provider):
        backend.login_response = {"admin": {"id": 1}}

        with pytest.raises(Unauthenticated) as exc_info:
            await session.login("admin@example.com", "secret")

        assert exc_info.value.message == "Login failed: token not present in response."
        assert await provider.get_credential() is None

    @pytest.mark.asyncio
    async def test_missing_token_with_server_message(self, backend, session):
        backend.login_response = {"message": "Account locked"}

        with pytest.raises(Unauthenticated) as exc_info:
            await session.login("admin@example.com", "secret")

        assert exc_info.value.message == "Account locked"

    @pytest.mark.asyncio
    async def test_validation_failure(self, backend, session):
        backend.failures[("POST", "login")] = (
            422, {"message": "The email field is required.", "errors": {"email": ["required"]}}
        )

        with pytest.raises(ValidationError) as exc_info:
            await session.login("", "secret")

        assert exc_info.value.status == 422
        assert exc_info.value.message == "The email field is required."


class TestProfileAndLogout:
    """Test profile loading and logout."""

    @pytest.mark.asyncio
    async def test_get_profile(self, session):
        await session.login("admin@example.com", "secret")

        profile = await session.get_profile()

        assert profile["email"] == "admin@example.com"
        assert session.profile == profile

    @pytest.mark.asyncio
    async def test_profile_requires_login(self, backend, session):
        with pytest.raises(Unauthenticated):
            await session.get_profile()
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_logout(self, session, provider, storage, event_bus):
        events = []
        event_bus.subscribe(EventType.CREDENTIAL_CLEARED, events.append)
        event_bus.subscribe(EventType.LOGOUT, events.append)
        await session.login("admin@example.com", "secret")

        await session.logout()

        assert storage.snapshot() == {}
        assert session.admin is None
        assert not await session.is_authenticated()
        assert [e.type for e in events] == [EventType.CREDENTIAL_CLEARED, EventType.LOGOUT]


class TestExpiry:
    """Test restore, check_session and the watch task."""

    @pytest.mark.asyncio
    async def test_restore(self, session, provider):
        await provider.set_credential(Credential.issue("tok", timedelta(hours=1), profile={"id": 3}))

        credential = await session.restore()

        assert credential.token == "tok"
        assert session.admin == {"id": 3}
        assert session.initialized

    @pytest.mark.asyncio
    async def test_restore_without_credential(self, session):
        assert await session.restore() is None
        assert session.admin is None
        assert session.initialized

    @pytest.mark.asyncio
    async def test_check_session_valid(self, session, logged_in):
        assert await session.check_session() is True
        assert await session.is_authenticated()

    @pytest.mark.asyncio
    async def test_check_session_without_credential(self, session):
        assert await session.check_session() is True
        assert not await session.is_authenticated()

    @pytest.mark.asyncio
    async def test_check_session_expired(self, session, provider, storage, event_bus):
        expired = []
        event_bus.subscribe(EventType.SESSION_EXPIRED, expired.append)
        await provider.set_credential(Credential.issue("tok", timedelta(seconds=-1)))

        assert await session.check_session() is False

        assert storage.snapshot() == {}
        assert len(expired) == 1

    @pytest.mark.asyncio
    async def test_protected_call_after_expiry(self, transport, provider):
        await provider.set_credential(Credential.issue("tok", timedelta(seconds=-1)))

        with pytest.raises(SessionExpired):
            await transport.get("workshops", auth_required=True)

    @pytest.mark.asyncio
    async def test_watch_clears_expired_session(self, transport, provider, storage):
        config = SessionConfig(check_interval=timedelta(milliseconds=10))
        session = SessionManager(transport, provider, config)
        await provider.set_credential(Credential.issue("tok", timedelta(milliseconds=30)))

        await session.start_watch()
        try:
            await asyncio.sleep(0.2)
        finally:
            await session.stop_watch()

        assert storage.snapshot() == {}
        assert session._watch_task is None

    @pytest.mark.asyncio
    async def test_start_watch_is_idempotent(self, session):
        await session.start_watch()
        task = session._watch_task
        await session.start_watch()

        assert session._watch_task is task
        await session.stop_watch()
