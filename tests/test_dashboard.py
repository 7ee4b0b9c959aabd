"""
End-to-end tests for the Dashboard wiring.
"""

from datetime import timedelta

import pytest

from dashstore import Config, Dashboard, ResourceStore, SingletonResourceStore
from dashstore.errors import ConfigurationError
from dashstore.tokenstore import Credential, MemoryStorage
from dashstore.transport import TransportConfig


@pytest.fixture
def config(backend):
    return Config(transport=TransportConfig(base_url=backend.base_url))


@pytest.fixture
async def dashboard(config):
    dash = Dashboard.new(config, storage=MemoryStorage())
    yield dash
    await dash.close()


class TestDashboard:
    """Test building and driving a Dashboard."""

    def test_stores(self, dashboard):
        assert set(dashboard.stores) == {
            "workshops", "services", "blogs", "subscribers", "who-am-i", "settings", "profile",
        }
        assert isinstance(dashboard.store("workshops"), ResourceStore)
        assert isinstance(dashboard.store("settings"), SingletonResourceStore)

        with pytest.raises(KeyError):
            dashboard.store("invoices")

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            Dashboard.new(Config(transport=TransportConfig(base_url="")))

    def test_resource_timeouts(self, backend):
        config = Config(
            transport=TransportConfig(base_url=backend.base_url),
            resource_timeouts={"blogs": timedelta(seconds=5)},
            idempotent_delete=False,
        )
        dash = Dashboard.new(config, storage=MemoryStorage())

        assert dash.store("blogs").client.timeout == timedelta(seconds=5)
        assert dash.store("workshops").client.timeout is None
        assert dash.store("workshops").client.idempotent_delete is False

    @pytest.mark.asyncio
    async def test_login_fetch_logout(self, dashboard):
        await dashboard.start(watch=False)
        await dashboard.login("admin@example.com", "secret")

        workshops = dashboard.store("workshops")
        settings = dashboard.store("settings")
        await workshops.fetch_all()
        await settings.fetch()
        assert len(workshops.collection) == 2
        assert settings.selected["site_name"] == "Programs House"

        await dashboard.logout()

        assert workshops.collection == []
        assert settings.selected is None
        assert not await dashboard.session.is_authenticated()

    @pytest.mark.asyncio
    async def test_start_clears_expired_session(self, config):
        storage = MemoryStorage(Credential.issue("old", timedelta(seconds=-1)).to_storage())
        dash = Dashboard.new(config, storage=storage)

        await dash.start(watch=False)
        try:
            assert storage.snapshot() == {}
        finally:
            await dash.close()

    @pytest.mark.asyncio
    async def test_start_restores_session(self, backend, config):
        credential = Credential.issue(backend.token, timedelta(hours=1), profile={"id": 7})
        dash = Dashboard.new(config, storage=MemoryStorage(credential.to_storage()))

        async with dash:
            assert dash.session.admin == {"id": 7}
            assert dash.session._running
            await dash.store("workshops").fetch_all()
            assert len(dash.store("workshops").collection) == 2

        assert not dash.session._running
