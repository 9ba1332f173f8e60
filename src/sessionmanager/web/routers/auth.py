from typing import Annotated

from fastapi import APIRouter, Header
from pydantic import BaseModel, Field

from sessionmanager.core.modules.account.models import AccountView
from sessionmanager.web.deps import AccessTokenDep, AppDep, TokenClaimsDep
from sessionmanager.web.openapi import ErrorResponse, Link

router = APIRouter(tags=["auth"])


class LoginRequest(BaseModel):
    """Authentication request."""

    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Password for authentication")
    device_name: str = Field(..., description="Label of the device the session belongs to")


class TokenResponse(BaseModel):
    """Bearer credential with its refresh secret."""

    access_token: str = Field(..., description="Bearer credential for subsequent requests")
    refresh_token: str = Field(..., description="Secret for rotating an expired credential")
    token_type: str = Field(..., description="Authorization scheme")
    expires_in: int = Field(..., description="Credential lifetime in seconds")
    links: list[Link] = Field(default_factory=list)


class LoginResponse(TokenResponse):
    """Authentication response."""

    session_id: str = Field(..., description="ID of the created session")
    account: AccountView = Field(..., description="Authenticated account")


class MessageResponse(BaseModel):
    message: str
    links: list[Link] = Field(default_factory=list)


def session_links() -> list[Link]:
    return [
        Link(rel="sessions", href="/api/sessions", method="GET"),
        Link(rel="renew", href="/api/sessions/renew", method="POST"),
        Link(rel="logout", href="/api/auth/logout", method="DELETE"),
    ]


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with username and password and open a session for the given device. "
    "Unknown usernames are registered when auto-registration is enabled.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        503: {"model": ErrorResponse, "description": "Backend unavailable"},
    },
)
async def login(login_data: LoginRequest, app: AppDep) -> LoginResponse:
    result = await app.login(login_data.username, login_data.password, login_data.device_name)
    return LoginResponse(**result.model_dump(), links=session_links())


@router.delete(
    "/auth/logout",
    summary="End session",
    description="Delete the session named by the bearer credential.",
    operation_id="logout",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Session not found or already logged out"},
    },
)
async def logout(app: AppDep, claims: TokenClaimsDep) -> MessageResponse:
    await app.logout(claims.account_id, claims.session_id)
    return MessageResponse(
        message="Logged out successfully",
        links=[Link(rel="login", href="/api/auth/login", method="POST")],
    )


@router.post(
    "/auth/refresh",
    summary="Rotate credential",
    description="Exchange an expired bearer credential and its refresh secret for a new session and credential. "
    "The old session is deleted.",
    operation_id="refresh",
    responses={
        200: {"description": "Credential rotated"},
        401: {"model": ErrorResponse, "description": "Rotation rejected"},
    },
)
async def refresh(
    app: AppDep,
    access_token: AccessTokenDep,
    x_refresh_token: Annotated[str, Header(description="Refresh secret issued with the credential")] = "",
) -> TokenResponse:
    pair = await app.refresh(access_token, x_refresh_token)
    return TokenResponse(**pair.model_dump(), links=session_links())
