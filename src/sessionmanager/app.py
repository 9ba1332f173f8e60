from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from sessionmanager.config import Config
from sessionmanager.core.core import Core
from sessionmanager.core.modules.account.directory import AccountDirectory
from sessionmanager.core.modules.auth.models import LoginResult, Principal, TokenPair
from sessionmanager.core.modules.session.models import SessionStats, SessionView
from sessionmanager.core.modules.session.store import SessionStore
from sessionmanager.core.modules.token.models import TokenClaims


class App:
    """Facade for all application operations, delegating to the auth service in Core."""

    def __init__(
        self,
        config: Config,
        session_store: SessionStore | None = None,
        account_directory: AccountDirectory | None = None,
    ) -> None:
        self._core = Core(config, session_store=session_store, account_directory=account_directory)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    def read_claims(self, access_token: str) -> TokenClaims:
        """Validate a bearer credential's signature, issuer, audience and expiry."""
        return self._core.services.auth.read_claims(access_token)

    async def authenticate(self, access_token: str) -> Principal:
        """Validate a bearer credential and require its session to be live."""
        return await self._core.services.auth.authenticate(access_token)

    async def login(self, username: str, password: str, device_info: str) -> LoginResult:
        """Authenticate (or register) and create a session."""
        return await self._core.services.auth.login(username, password, device_info)

    async def logout(self, account_id: UUID, session_id: str) -> None:
        """Delete a session."""
        await self._core.services.auth.logout(account_id, session_id)

    async def renew_session(self, account_id: UUID, session_id: str) -> None:
        """Extend a session's sliding expiry."""
        await self._core.services.auth.renew(account_id, session_id)

    async def refresh(self, access_token: str, refresh_token: str) -> TokenPair:
        """Rotate an expired credential into a new session."""
        return await self._core.services.auth.refresh(access_token, refresh_token)

    async def get_active_sessions(self, principal: Principal) -> list[SessionView]:
        """List the caller's live sessions."""
        return await self._core.services.auth.list_sessions(principal)

    async def get_session_stats(self, principal: Principal) -> SessionStats:
        """Session report, global for admins."""
        return await self._core.services.auth.get_stats(principal)
