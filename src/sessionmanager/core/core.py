from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import redis.asyncio as aioredis
from pymongo import AsyncMongoClient

from sessionmanager.config import Config
from sessionmanager.core.modules.account.directory import AccountDirectory, MongoAccountDirectory
from sessionmanager.core.modules.session.redis_store import RedisSessionStore
from sessionmanager.core.modules.session.store import SessionStore

if TYPE_CHECKING:
    from sessionmanager.core.modules.account.service import AccountService
    from sessionmanager.core.modules.auth.service import AuthService
    from sessionmanager.core.modules.cipher.service import CipherService
    from sessionmanager.core.modules.session.service import SessionService
    from sessionmanager.core.modules.token.service import TokenService


class Service:
    """Base class for services, wired to the Core after construction."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    cipher: CipherService
    account: AccountService
    token: TokenService
    session: SessionService
    auth: AuthService

    def __init__(self, config: Config) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for startup - the account service seeds the admin through the cipher
        service_configs = [
            ("cipher", "sessionmanager.core.modules.cipher.service", "CipherService"),
            ("account", "sessionmanager.core.modules.account.service", "AccountService"),
            ("token", "sessionmanager.core.modules.token.service", "TokenService"),
            ("session", "sessionmanager.core.modules.session.service", "SessionService"),
            ("auth", "sessionmanager.core.modules.auth.service", "AuthService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(config)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, the session store, the account directory and all services.

    The store and directory can be passed in (tests use the in-memory
    implementations); otherwise Redis and MongoDB clients are built from config.
    """

    config: Config
    session_store: SessionStore
    account_directory: AccountDirectory
    mongo_client: AsyncMongoClient[dict[str, Any]] | None
    services: Services

    def __init__(
        self,
        config: Config,
        session_store: SessionStore | None = None,
        account_directory: AccountDirectory | None = None,
    ) -> None:
        self.config = config
        self.mongo_client = None

        if session_store is None:
            session_store = RedisSessionStore(aioredis.Redis.from_url(config.redis_url, decode_responses=True))
        self.session_store = session_store

        if account_directory is None:
            self.mongo_client = AsyncMongoClient(config.database_url, uuidRepresentation="standard")
            database = self.mongo_client.get_database(urlparse(config.database_url).path[1:])
            account_directory = MongoAccountDirectory(database.get_collection("accounts"))
        self.account_directory = account_directory

        self.services = Services(config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close backend connections on shutdown."""
        await self.services.stop_all()
        await self.session_store.close()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
