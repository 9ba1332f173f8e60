"""Session store contract.

A store keeps two structures per account: an ordered index of session
tokens scored by recency, and one record per token with its own TTL. The
index and the records do not expire together, so an index entry may point
at a record that is already gone.

The three multi-key operations (``create_with_eviction``,
``renew_if_present``, ``delete_and_unindex``) must each execute atomically
against the backend. Nothing outside the store coordinates concurrent callers.

Backend failures raise InfrastructureError. A store must never report an
unreachable backend as an absent session.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from datetime import datetime
from uuid import UUID

from sessionmanager.core.modules.session.models import Session


class SessionStore(ABC):
    @abstractmethod
    async def create_with_eviction(self, session: Session, score: int, ttl: int, limit: int) -> list[str]:
        """Index and store *session*, first evicting the lowest-score entries so at most *limit* remain.

        Returns the evicted tokens, whose records are deleted in the same step.
        """

    @abstractmethod
    async def get(self, token: str) -> Session | None: ...

    @abstractmethod
    async def get_many(self, tokens: Sequence[str]) -> list[Session | None]:
        """Batch read, positionally aligned with *tokens*."""

    @abstractmethod
    async def renew_if_present(
        self, account_id: UUID, token: str, score: int, ttl: int, last_active_at: datetime
    ) -> bool:
        """Refresh a live record's TTL and last activity, and its index score if still indexed.

        Never inserts into the index. Returns False if the record was already gone.
        """

    @abstractmethod
    async def delete_and_unindex(self, token: str, account_id: UUID) -> bool:
        """Delete the record; only if it existed also drop the index entry."""

    @abstractmethod
    async def index_tokens(self, account_id: UUID) -> list[str]:
        """Tokens in the account's index, lowest score first."""

    @abstractmethod
    async def remove_from_index(self, account_id: UUID, tokens: Sequence[str]) -> None: ...

    @abstractmethod
    def iter_indexed_accounts(self) -> AsyncIterator[UUID]:
        """Iterate account ids that have an index, without blocking the backend.

        The result is best-effort: indexes created or removed during the scan
        may or may not be seen.
        """

    async def close(self) -> None:
        """Release backend connections."""
