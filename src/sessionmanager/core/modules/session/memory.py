import asyncio
import itertools
import time
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sessionmanager.core.modules.session.models import Session
from sessionmanager.core.modules.session.store import SessionStore


@dataclass
class _Record:
    session: Session
    expires_at: float


class InMemorySessionStore(SessionStore):
    """In-memory session store for testing.

    Mirrors the Redis layout: index entries never expire on their own, records
    do. Every operation runs under one lock. Equal scores are ordered by write
    order, so a renewed entry sorts after an untouched one with the same score.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._records: dict[str, _Record] = {}
        self._indexes: dict[UUID, dict[str, tuple[int, int]]] = {}
        self._writes = itertools.count()

    def _live(self, token: str) -> _Record | None:
        record = self._records.get(token)
        if record is None:
            return None
        if record.expires_at <= self._clock():
            del self._records[token]
            return None
        return record

    def _ordered(self, account_id: UUID) -> list[str]:
        index = self._indexes.get(account_id, {})
        return [token for token, _ in sorted(index.items(), key=lambda item: item[1])]

    async def create_with_eviction(self, session: Session, score: int, ttl: int, limit: int) -> list[str]:
        async with self._lock:
            index = self._indexes.setdefault(session.account_id, {})
            evicted: list[str] = []
            if len(index) >= limit:
                evicted = self._ordered(session.account_id)[: len(index) - limit + 1]
                for token in evicted:
                    del index[token]
                    self._records.pop(token, None)
            index[session.token] = (score, next(self._writes))
            self._records[session.token] = _Record(session.model_copy(), self._clock() + ttl)
            return evicted

    async def get(self, token: str) -> Session | None:
        async with self._lock:
            record = self._live(token)
            return record.session.model_copy() if record else None

    async def get_many(self, tokens: Sequence[str]) -> list[Session | None]:
        async with self._lock:
            records = [self._live(token) for token in tokens]
            return [record.session.model_copy() if record else None for record in records]

    async def renew_if_present(
        self, account_id: UUID, token: str, score: int, ttl: int, last_active_at: datetime
    ) -> bool:
        async with self._lock:
            record = self._live(token)
            if record is None:
                return False
            record.session = record.session.model_copy(update={"last_active_at": last_active_at})
            record.expires_at = self._clock() + ttl
            index = self._indexes.get(account_id, {})
            if token in index:
                index[token] = (score, next(self._writes))
            return True

    async def delete_and_unindex(self, token: str, account_id: UUID) -> bool:
        async with self._lock:
            if self._live(token) is None:
                return False
            del self._records[token]
            self._unindex(account_id, [token])
            return True

    async def index_tokens(self, account_id: UUID) -> list[str]:
        async with self._lock:
            return self._ordered(account_id)

    async def remove_from_index(self, account_id: UUID, tokens: Sequence[str]) -> None:
        async with self._lock:
            self._unindex(account_id, tokens)

    async def iter_indexed_accounts(self) -> AsyncIterator[UUID]:
        async with self._lock:
            account_ids = list(self._indexes)
        for account_id in account_ids:
            yield account_id

    def _unindex(self, account_id: UUID, tokens: Sequence[str]) -> None:
        index = self._indexes.get(account_id)
        if index is None:
            return
        for token in tokens:
            index.pop(token, None)
        if not index:
            # Redis drops empty sorted sets
            del self._indexes[account_id]
