from fastapi import APIRouter
from pydantic import Field

from sessionmanager.core.modules.session.models import SessionStats
from sessionmanager.web.deps import AppDep, PrincipalDep
from sessionmanager.web.openapi import ErrorResponse, Link

router = APIRouter(tags=["admin"])


class SessionStatsResponse(SessionStats):
    links: list[Link] = Field(default_factory=list)


@router.get(
    "/admin/stats",
    summary="Session statistics",
    description="Live session report. Admins see every account, other callers see their own sessions.",
    operation_id="getSessionStats",
    responses={
        200: {"description": "Session report"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"},
    },
)
async def get_session_stats(app: AppDep, principal: PrincipalDep) -> SessionStatsResponse:
    stats = await app.get_session_stats(principal)
    return SessionStatsResponse(
        **stats.model_dump(),
        links=[Link(rel="sessions", href="/api/sessions", method="GET")],
    )
