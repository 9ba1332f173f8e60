from uuid import UUID

from pydantic import BaseModel


class TokenClaims(BaseModel):
    """Identifiers carried by a bearer credential."""

    account_id: UUID  # sub
    session_id: str  # jti
    role: str
    username: str = ""
