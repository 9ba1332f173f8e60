from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pymongo.asynchronous.cursor import AsyncCursor


class Role(StrEnum):
    USER = "User"
    ADMIN = "Admin"


class Account(BaseModel):
    """Account document with an encrypted password. Stored with its id as ``_id``."""

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)
    username: str
    password_cipher_text: str  # base64 AES-256-CBC ciphertext
    password_iv: str  # base64 IV, unique per encryption
    role: Role = Role.USER

    model_config = ConfigDict(populate_by_name=True)

    def to_mongo(self) -> dict[str, Any]:
        data = self.model_dump()
        data["_id"] = data.pop("id")
        return data

    @classmethod
    async def from_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list["Account"]:
        return [cls.model_validate(doc) async for doc in cursor]


class AccountView(BaseModel):
    """Account information (API representation)."""

    id: UUID = Field(..., description="Account ID")
    username: str = Field(..., description="Username")
    role: Role = Field(..., description="Account role")

    @classmethod
    def from_domain(cls, account: Account) -> "AccountView":
        """Create view model from domain model."""
        return cls(id=account.id, username=account.username, role=account.role)
