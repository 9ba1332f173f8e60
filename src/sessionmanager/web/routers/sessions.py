from fastapi import APIRouter
from pydantic import BaseModel, Field

from sessionmanager.core.modules.session.models import SessionView
from sessionmanager.web.deps import AppDep, PrincipalDep, TokenClaimsDep
from sessionmanager.web.openapi import ErrorResponse, Link
from sessionmanager.web.routers.auth import MessageResponse

router = APIRouter(tags=["sessions"])


class SessionListResponse(BaseModel):
    sessions: list[SessionView] = Field(..., description="Live sessions, oldest first")
    links: list[Link] = Field(default_factory=list)


@router.post(
    "/sessions/renew",
    summary="Renew session",
    description="Reset the sliding expiry of the current session and mark it most recently used.",
    operation_id="renewSession",
    responses={
        200: {"description": "Session renewed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Session expired or evicted"},
    },
)
async def renew_session(app: AppDep, claims: TokenClaimsDep) -> MessageResponse:
    await app.renew_session(claims.account_id, claims.session_id)
    return MessageResponse(
        message="Session renewed",
        links=[Link(rel="sessions", href="/api/sessions", method="GET")],
    )


@router.get(
    "/sessions",
    summary="List sessions",
    description="List the caller's live sessions. The current session is flagged and renewed.",
    operation_id="listSessions",
    responses={
        200: {"description": "Live sessions"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_sessions(app: AppDep, principal: PrincipalDep) -> SessionListResponse:
    sessions = await app.get_active_sessions(principal)
    return SessionListResponse(
        sessions=sessions,
        links=[
            Link(rel="self", href="/api/sessions", method="GET"),
            Link(rel="logout", href="/api/auth/logout", method="DELETE"),
        ],
    )
