from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sessionmanager.app import App
from sessionmanager.core.modules.auth.models import Principal
from sessionmanager.core.modules.token.models import TokenClaims
from sessionmanager.errors import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> str:
    """Raw bearer credential from the Authorization header, not yet validated."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationError("Missing or invalid 'Authorization' header")
    return credentials.credentials


async def get_token_claims(
    app: Annotated[App, Depends(get_app)],
    access_token: Annotated[str, Depends(get_access_token)],
) -> TokenClaims:
    """Claims of a valid credential. The session may already be gone."""
    return app.read_claims(access_token)


async def get_principal(
    app: Annotated[App, Depends(get_app)],
    access_token: Annotated[str, Depends(get_access_token)],
) -> Principal:
    """Caller with a valid credential and a live session."""
    return await app.authenticate(access_token)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AccessTokenDep = Annotated[str, Depends(get_access_token)]
TokenClaimsDep = Annotated[TokenClaims, Depends(get_token_claims)]
PrincipalDep = Annotated[Principal, Depends(get_principal)]
