import hmac
from collections.abc import Iterable
from uuid import UUID

import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.account.directory import AccountDirectory
from sessionmanager.core.modules.account.models import Account, Role

logger = structlog.get_logger(__name__)


class AccountService(Service):
    """Provisions accounts and checks their passwords."""

    @property
    def directory(self) -> AccountDirectory:
        return self.core.account_directory

    async def get_by_username(self, username: str) -> Account | None:
        return await self.directory.get_by_username(username)

    async def get_by_id(self, account_id: UUID) -> Account | None:
        return await self.directory.get_by_id(account_id)

    async def get_by_ids(self, account_ids: Iterable[UUID]) -> list[Account]:
        return await self.directory.get_by_ids(account_ids)

    async def register(self, username: str, password: str, role: Role = Role.USER) -> Account:
        """Create an account, storing the password encrypted."""
        cipher_text, iv = self.core.services.cipher.encrypt(password)
        account = Account(username=username, password_cipher_text=cipher_text, password_iv=iv, role=role)
        await self.directory.create(account)
        logger.info("account_registered", account_id=str(account.id), role=role)
        return account

    def verify_password(self, account: Account, password: str) -> bool:
        """Decrypt the stored password and compare in constant time."""
        stored = self.core.services.cipher.decrypt(account.password_cipher_text, account.password_iv)
        return hmac.compare_digest(stored.encode("utf-8"), password.encode("utf-8"))

    async def ensure_admin_account_exists(self) -> None:
        """Seed the configured admin account if it is missing."""
        if await self.directory.get_by_username(self.config.admin_username) is not None:
            logger.debug("admin_account_exists", username=self.config.admin_username)
            return
        await self.register(self.config.admin_username, self.config.admin_password, Role.ADMIN)
        logger.info("admin_account_seeded", username=self.config.admin_username)

    async def on_start(self) -> None:
        """Initialize indexes and the admin account."""
        await self.directory.ensure_indexes()
        await self.ensure_admin_account_exists()
