"""Account directory backends.

The directory is the system of record for accounts. Lookups that fail
because the database is unreachable raise InfrastructureError, never None.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any
from uuid import UUID

import structlog
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from sessionmanager.core.modules.account.models import Account
from sessionmanager.errors import InfrastructureError, ValidationError

logger = structlog.get_logger(__name__)


class UsernameTakenError(ValidationError):
    """Another account already holds the username."""


class AccountDirectory(ABC):
    """Lookup and creation of accounts."""

    @abstractmethod
    async def get_by_username(self, username: str) -> Account | None: ...

    @abstractmethod
    async def get_by_id(self, account_id: UUID) -> Account | None: ...

    @abstractmethod
    async def get_by_ids(self, account_ids: Iterable[UUID]) -> list[Account]: ...

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Persist a new account. Raises UsernameTakenError if the username is taken."""

    async def ensure_indexes(self) -> None:
        """Create backend indexes, if the backend has any."""


class MongoAccountDirectory(AccountDirectory):
    """Accounts stored in a MongoDB collection, unique on username."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def ensure_indexes(self) -> None:
        try:
            await self._collection.create_index([("username", 1)], unique=True)
        except PyMongoError as e:
            raise _backend_error("ensure_indexes", e) from e

    async def get_by_username(self, username: str) -> Account | None:
        try:
            doc = await self._collection.find_one({"username": username})
        except PyMongoError as e:
            raise _backend_error("get_by_username", e) from e
        return Account.model_validate(doc) if doc else None

    async def get_by_id(self, account_id: UUID) -> Account | None:
        try:
            doc = await self._collection.find_one({"_id": account_id})
        except PyMongoError as e:
            raise _backend_error("get_by_id", e) from e
        return Account.model_validate(doc) if doc else None

    async def get_by_ids(self, account_ids: Iterable[UUID]) -> list[Account]:
        ids = list(set(account_ids))
        if not ids:
            return []
        try:
            return await Account.from_cursor(self._collection.find({"_id": {"$in": ids}}))
        except PyMongoError as e:
            raise _backend_error("get_by_ids", e) from e

    async def create(self, account: Account) -> Account:
        try:
            await self._collection.insert_one(account.to_mongo())
        except DuplicateKeyError as e:
            raise UsernameTakenError(f"Account '{account.username}' already exists") from e
        except PyMongoError as e:
            raise _backend_error("create", e) from e
        return account


class InMemoryAccountDirectory(AccountDirectory):
    """In-memory account directory for testing."""

    def __init__(self) -> None:
        self._accounts: dict[UUID, Account] = {}

    async def get_by_username(self, username: str) -> Account | None:
        return next((a for a in self._accounts.values() if a.username == username), None)

    async def get_by_id(self, account_id: UUID) -> Account | None:
        return self._accounts.get(account_id)

    async def get_by_ids(self, account_ids: Iterable[UUID]) -> list[Account]:
        return [self._accounts[i] for i in set(account_ids) if i in self._accounts]

    async def create(self, account: Account) -> Account:
        if await self.get_by_username(account.username) is not None:
            raise UsernameTakenError(f"Account '{account.username}' already exists")
        self._accounts[account.id] = account
        return account

    async def delete(self, account_id: UUID) -> None:
        self._accounts.pop(account_id, None)


def _backend_error(operation: str, error: Exception) -> InfrastructureError:
    logger.error("account_directory_error", operation=operation, error=str(error))
    return InfrastructureError(f"Account directory error during {operation}")
