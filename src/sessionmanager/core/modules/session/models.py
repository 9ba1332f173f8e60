"""Session management models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from sessionmanager.core.modules.account.models import Account
from sessionmanager.utils import now


class Session(BaseModel):
    """Server-held login session.

    Stored as JSON under ``session:{token}`` with a sliding TTL, and indexed
    by recency in the owning account's ``user_sessions:{account_id}`` set.
    """

    token: str
    account_id: UUID
    device_info: str
    created_at: datetime = Field(default_factory=now)
    last_active_at: datetime = Field(default_factory=now)


class SessionView(BaseModel):
    """Session as shown to its owner."""

    token: str = Field(..., description="Session ID")
    device_info: str = Field(..., description="Device label given at login")
    created_at: datetime = Field(..., description="When the session was created")
    last_active_at: datetime = Field(..., description="Last login or renewal")
    is_current: bool = Field(False, description="Whether this is the session making the request")

    @classmethod
    def from_domain(cls, session: Session, current_token: str | None = None) -> "SessionView":
        return cls(
            token=session.token,
            device_info=session.device_info,
            created_at=session.created_at,
            last_active_at=session.last_active_at,
            is_current=session.token == current_token,
        )


class SessionDetail(SessionView):
    """Session row of a stats report, with its owning account."""

    account_id: UUID = Field(..., description="Owning account ID")
    username: str = Field(..., description="Owning account username")
    role: str = Field(..., description="Owning account role")

    @classmethod
    def from_session(cls, session: Session, account: Account | None) -> "SessionDetail":
        return cls(
            token=session.token,
            device_info=session.device_info,
            created_at=session.created_at,
            last_active_at=session.last_active_at,
            account_id=session.account_id,
            username=account.username if account else "Unknown",
            role=str(account.role) if account else "N/A",
        )


class SessionStats(BaseModel):
    """Aggregate report over live sessions."""

    total_sessions: int = Field(..., description="Number of live sessions", ge=0)
    users_online: int = Field(..., description="Number of distinct accounts with a live session", ge=0)
    sessions: list[SessionDetail] = Field(default_factory=list, description="One row per live session")
