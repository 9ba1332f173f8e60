from datetime import timedelta
from uuid import UUID, uuid4

import structlog

from sessionmanager import utils
from sessionmanager.core.core import Service
from sessionmanager.core.modules.account.directory import UsernameTakenError
from sessionmanager.core.modules.account.models import Account, AccountView, Role
from sessionmanager.core.modules.auth.models import LoginResult, Principal, TokenPair
from sessionmanager.core.modules.auth.validators import validate_login, validate_session_id
from sessionmanager.core.modules.session.models import SessionStats, SessionView
from sessionmanager.core.modules.token.models import TokenClaims
from sessionmanager.errors import AuthenticationError, NotFoundError
from sessionmanager.utils import short_token

logger = structlog.get_logger(__name__)


class AuthService(Service):
    """Login, logout, renewal and refresh rotation.

    A bearer credential is only trusted once the session it names is found
    in the store, so revoking a session revokes every credential minted for it.
    """

    async def login(self, username: str, password: str, device_info: str) -> LoginResult:
        """Authenticate (or auto-register) and open a new session.

        Existing sessions beyond the device limit are evicted, oldest activity first.
        """
        validate_login(username, password, device_info)
        accounts = self.core.services.account

        account = await accounts.get_by_username(username)
        if account is None:
            if not self.config.auto_register:
                raise AuthenticationError("Invalid username or password")
            try:
                account = await accounts.register(username, password)
            except UsernameTakenError:
                # A concurrent first login registered it; fall back to a password check
                account = await accounts.get_by_username(username)
                if account is None:
                    raise
                logger.debug("registration_race_lost", account_id=str(account.id))
                if not accounts.verify_password(account, password):
                    logger.info("login_rejected", account_id=str(account.id))
                    raise AuthenticationError("Invalid username or password") from None
        elif not accounts.verify_password(account, password):
            logger.info("login_rejected", account_id=str(account.id))
            raise AuthenticationError("Invalid username or password")

        session_id = str(uuid4())
        await self.core.services.session.create_session(account.id, session_id, device_info)
        pair = self._issue(account, session_id)
        logger.info("login_succeeded", account_id=str(account.id), session=short_token(session_id))
        return LoginResult(**pair.model_dump(), session_id=session_id, account=AccountView.from_domain(account))

    async def logout(self, account_id: UUID, session_id: str) -> None:
        """Delete the session. A session that is already gone raises NotFoundError."""
        validate_session_id(session_id)
        if not await self.core.services.session.delete_session(session_id, account_id):
            raise NotFoundError("Session not found or already logged out")
        logger.info("logout_succeeded", account_id=str(account_id), session=short_token(session_id))

    async def renew(self, account_id: UUID, session_id: str) -> None:
        """Slide the session's expiry. A session that is already gone raises NotFoundError."""
        sessions = self.core.services.session
        session = await sessions.get_session(session_id)
        if session is None or session.account_id != account_id:
            raise NotFoundError("Session not found or expired")
        await sessions.extend_session(account_id, session_id)

    async def refresh(self, access_token: str, refresh_token: str) -> TokenPair:
        """Rotate an expired bearer credential into a new session and credential.

        The old session is deleted before the new one is created. The two
        are separate store calls: a failure in between leaves the account
        with no session for this device, never with two.
        """
        sessions = self.core.services.session

        claims = self.core.services.token.decode_identifiers(access_token)
        # TODO: persist a hash of the refresh secret per session and compare it here
        if not refresh_token:
            raise AuthenticationError("Missing refresh token")

        session = await sessions.get_session(claims.session_id)
        if session is None or session.account_id != claims.account_id:
            raise AuthenticationError("Session not found (it may have been rotated already)")

        window = timedelta(minutes=self.config.refresh_token_expiry_minutes)
        if session.last_active_at + window < utils.now():
            await sessions.delete_session(session.token, session.account_id)
            logger.info("refresh_window_elapsed", account_id=str(session.account_id), session=short_token(session.token))
            raise AuthenticationError("Refresh token expired")

        account = await self.core.services.account.get_by_id(session.account_id)
        if account is None:
            raise AuthenticationError("Account not found")

        if not await sessions.delete_session(session.token, account.id):
            raise AuthenticationError("Session not found (it may have been rotated already)")

        new_session_id = str(uuid4())
        await sessions.create_session(account.id, new_session_id, session.device_info, created_at=session.created_at)
        logger.info(
            "session_rotated",
            account_id=str(account.id),
            old_session=short_token(session.token),
            new_session=short_token(new_session_id),
        )
        return self._issue(account, new_session_id)

    def read_claims(self, access_token: str) -> TokenClaims:
        """Validate the credential itself without consulting the store."""
        return self.core.services.token.decode(access_token)

    async def authenticate(self, access_token: str) -> Principal:
        """Validate the credential and require its session to be live."""
        claims = self.read_claims(access_token)
        session = await self.core.services.session.get_session(claims.session_id)
        if session is None or session.account_id != claims.account_id:
            raise AuthenticationError("Session expired or revoked")
        return Principal(
            account_id=claims.account_id,
            session_id=claims.session_id,
            role=claims.role,
            username=claims.username,
        )

    async def list_sessions(self, principal: Principal) -> list[SessionView]:
        """List the caller's live sessions and keep the current one alive."""
        sessions = self.core.services.session
        active = await sessions.list_active(principal.account_id)
        await sessions.extend_session(principal.account_id, principal.session_id)
        return [SessionView.from_domain(s, principal.session_id) for s in active]

    async def get_stats(self, principal: Principal) -> SessionStats:
        """Global report for admins, own sessions for everyone else. Keeps the current session alive."""
        sessions = self.core.services.session
        scope = None if principal.role == Role.ADMIN else principal.account_id
        stats = await sessions.aggregate_stats(scope)
        for row in stats.sessions:
            row.is_current = row.token == principal.session_id
        await sessions.extend_session(principal.account_id, principal.session_id)
        return stats

    def _issue(self, account: Account, session_id: str) -> TokenPair:
        tokens = self.core.services.token
        return TokenPair(
            access_token=tokens.issue(account, session_id),
            refresh_token=tokens.generate_refresh_secret(),
            expires_in=tokens.expires_in,
        )
