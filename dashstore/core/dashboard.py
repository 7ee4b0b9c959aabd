"""
Dashboard wiring for dashstore.

Builds the credential storage, event bus, token provider, transport,
session manager and one shared store per resource from a Config.
"""

import logging
from typing import Dict, Optional, Union

import aiohttp

from ..auth import SessionManager, TokenProvider
from ..events import EventBus
from ..resources import ResourceClient, ResourceStore, SingletonResourceStore
from ..tokenstore import KeyValueStorage, create_storage
from ..transport import HttpTransport
from .config import Config


logger = logging.getLogger(__name__)

AnyStore = Union[ResourceStore, SingletonResourceStore]


class Dashboard:
    """
    Entry point tying every component together.
    Use Dashboard.new() to construct an instance.

    Lifecycle: ``start()`` rehydrates the persisted session and starts the
    session watch; ``logout()`` clears the credential, which resets every
    store; ``close()`` stops the watch and releases the HTTP session.
    """

    def __init__(
        self,
        config: Config,
        storage: KeyValueStorage,
        event_bus: EventBus,
        token_provider: TokenProvider,
        transport: HttpTransport,
        session: SessionManager,
        stores: Dict[str, AnyStore],
    ):
        self.config = config
        self.storage = storage
        self.event_bus = event_bus
        self.token_provider = token_provider
        self.transport = transport
        self.session = session
        self.stores = stores

    @classmethod
    def new(
        cls,
        config: Optional[Config] = None,
        storage: Optional[KeyValueStorage] = None,
        http_session: Optional[aiohttp.ClientSession] = None,
    ) -> "Dashboard":
        """
        Create a Dashboard with the provided configuration.

        Args:
            config: Configuration (defaults to Config.from_env())
            storage: Credential storage overriding the configured backend
            http_session: aiohttp session to reuse

        Returns:
            Dashboard instance

        Raises:
            ConfigurationError: If configuration is invalid

        Example:
            dashboard = Dashboard.new(Config.from_env())
            await dashboard.start()
            workshops = await dashboard.store("workshops").fetch_all()
        """
        config = config or Config.from_env()
        config.validate()
        config.apply_logging()

        if storage is None:
            storage = create_storage(
                config.storage.backend,
                path=config.storage.path,
                redis_url=config.storage.redis_url,
                key_prefix=config.storage.key_prefix,
            )

        event_bus = EventBus()
        token_provider = TokenProvider(storage, event_bus)
        transport = HttpTransport(config.transport, token_provider, session=http_session)
        session = SessionManager(transport, token_provider, config.session)

        stores: Dict[str, AnyStore] = {}
        for name in config.resources:
            client = cls._client(config, transport, name)
            stores[name] = ResourceStore(client, event_bus)
        for name in config.singletons:
            client = cls._client(config, transport, name)
            stores[name] = SingletonResourceStore(client, event_bus)

        logger.debug(f"Dashboard built for {config.base_url} with stores {sorted(stores)}")
        return cls(config, storage, event_bus, token_provider, transport, session, stores)

    @staticmethod
    def _client(config: Config, transport: HttpTransport, name: str) -> ResourceClient:
        return ResourceClient(
            transport,
            name,
            idempotent_delete=config.idempotent_delete,
            timeout=config.resource_timeouts.get(name),
        )

    def store(self, name: str) -> AnyStore:
        """
        Get the shared store of a resource.

        Raises:
            KeyError: If no store is configured under that name
        """
        try:
            return self.stores[name]
        except KeyError:
            raise KeyError(f"No store configured for resource: {name}") from None

    async def start(self, watch: bool = True) -> None:
        """Restore the persisted session and optionally start the session watch."""
        await self.session.restore()
        await self.session.check_session()
        if watch:
            await self.session.start_watch()

    async def login(self, email: str, password: str) -> None:
        await self.session.login(email, password)

    async def logout(self) -> None:
        await self.session.logout()

    async def close(self) -> None:
        """Stop background work and release resources."""
        await self.session.stop_watch()
        await self.transport.close()
        await self.storage.close()

    async def __aenter__(self) -> "Dashboard":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
