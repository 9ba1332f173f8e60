from uuid import UUID

from pydantic import BaseModel, Field

from sessionmanager.core.modules.account.models import AccountView


class Principal(BaseModel):
    """Caller identified by a valid bearer credential whose session is still live."""

    account_id: UUID
    session_id: str
    role: str
    username: str = ""


class TokenPair(BaseModel):
    """Bearer credential plus the refresh secret that goes with it."""

    access_token: str = Field(..., description="Signed bearer credential")
    refresh_token: str = Field(..., description="Opaque refresh secret, returned once")
    token_type: str = Field("Bearer", description="Authorization scheme")
    expires_in: int = Field(..., description="Bearer credential lifetime in seconds")


class LoginResult(TokenPair):
    session_id: str = Field(..., description="ID of the session that was created")
    account: AccountView = Field(..., description="Authenticated account")
