from datetime import datetime
from uuid import UUID

import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.session.models import Session, SessionDetail, SessionStats
from sessionmanager.core.modules.session.store import SessionStore
from sessionmanager.errors import InfrastructureError
from sessionmanager.utils import now, recency_score, short_token

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Session lifecycle on top of the store: TTL and device limit policy, listing and stats."""

    @property
    def store(self) -> SessionStore:
        return self.core.session_store

    @property
    def limit(self) -> int:
        return max(1, self.config.max_concurrent_sessions)

    async def create_session(
        self, account_id: UUID, token: str, device_info: str, created_at: datetime | None = None
    ) -> Session:
        """Store a new session, evicting the account's least recently active ones over the limit."""
        current = now()
        session = Session(
            token=token,
            account_id=account_id,
            device_info=device_info,
            created_at=created_at or current,
            last_active_at=current,
        )
        evicted = await self.store.create_with_eviction(session, recency_score(), self.config.session_ttl_seconds, self.limit)
        if evicted:
            logger.info(
                "sessions_evicted",
                account_id=str(account_id),
                evicted=[short_token(t) for t in evicted],
                limit=self.limit,
            )
        logger.debug("session_created", account_id=str(account_id), token=short_token(token))
        return session

    async def get_session(self, token: str) -> Session | None:
        return await self.store.get(token)

    async def extend_session(self, account_id: UUID, token: str) -> None:
        """Slide the session's TTL and bump its recency. No effect if it is already gone."""
        await self.store.renew_if_present(account_id, token, recency_score(), self.config.session_ttl_seconds, now())

    async def delete_session(self, token: str, account_id: UUID) -> bool:
        deleted = await self.store.delete_and_unindex(token, account_id)
        if deleted:
            logger.debug("session_deleted", account_id=str(account_id), token=short_token(token))
        return deleted

    async def list_active(self, account_id: UUID) -> list[Session]:
        """Live sessions of an account, oldest activity first.

        Index entries whose record has expired are removed on the way.
        """
        tokens = await self.store.index_tokens(account_id)
        sessions = await self.store.get_many(tokens)
        stale = [token for token, session in zip(tokens, sessions, strict=True) if session is None]
        if stale:
            try:
                await self.store.remove_from_index(account_id, stale)
                logger.debug("stale_index_entries_removed", account_id=str(account_id), count=len(stale))
            except InfrastructureError:
                logger.warning("stale_index_cleanup_failed", account_id=str(account_id), count=len(stale))
        return [session for session in sessions if session is not None]

    async def aggregate_stats(self, account_id: UUID | None = None) -> SessionStats:
        """Report live sessions for one account, or for every account when *account_id* is None.

        The global report is a best-effort snapshot built from a cursor scan.
        """
        if account_id is not None:
            sessions = await self.list_active(account_id)
        else:
            tokens: list[str] = []
            async for indexed_account_id in self.store.iter_indexed_accounts():
                tokens.extend(await self.store.index_tokens(indexed_account_id))
            sessions = [s for s in await self.store.get_many(list(dict.fromkeys(tokens))) if s is not None]

        accounts = await self.core.services.account.get_by_ids({s.account_id for s in sessions})
        accounts_by_id = {account.id: account for account in accounts}
        rows = [SessionDetail.from_session(s, accounts_by_id.get(s.account_id)) for s in sessions]

        return SessionStats(
            total_sessions=len(rows),
            users_online=len({row.account_id for row in rows}),
            sessions=rows,
        )
