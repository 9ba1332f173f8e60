import secrets
import time
from typing import Any
from uuid import UUID

import jwt
import structlog

from sessionmanager.core.core import Service
from sessionmanager.core.modules.account.models import Account
from sessionmanager.core.modules.token.models import TokenClaims
from sessionmanager.errors import AuthenticationError

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


class TokenService(Service):
    """Mints and reads the signed bearer credential bound to a session."""

    @property
    def expires_in(self) -> int:
        """Credential lifetime in seconds."""
        return self.config.jwt_expiry_minutes * 60

    def issue(self, account: Account, session_id: str) -> str:
        now = int(time.time())
        payload: dict[str, Any] = {
            "sub": str(account.id),
            "jti": session_id,
            "role": str(account.role),
            "username": account.username,
            "iss": self.config.jwt_issuer,
            "aud": self.config.jwt_audience,
            "iat": now,
            "exp": now + self.expires_in,
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=ALGORITHM)

    def decode(self, token: str) -> TokenClaims:
        """Fully validate signature, issuer, audience and expiry."""
        return self._decode(token, verify_exp=True)

    def decode_identifiers(self, token: str) -> TokenClaims:
        """Read a possibly expired credential.

        Signature, issuer and audience are still checked; only expiry is
        skipped. Use this solely to recover the session id for refresh rotation.
        """
        return self._decode(token, verify_exp=False)

    def generate_refresh_secret(self) -> str:
        return secrets.token_urlsafe(64)

    def _decode(self, token: str, verify_exp: bool) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[ALGORITHM],
                issuer=self.config.jwt_issuer,
                audience=self.config.jwt_audience,
                options={"verify_exp": verify_exp, "require": ["exp", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.debug("token_rejected", reason=str(e))
            raise AuthenticationError("Invalid token") from e

        try:
            account_id = UUID(str(payload["sub"]))
        except ValueError as e:
            raise AuthenticationError("Invalid token: subject is not an account id") from e

        session_id = str(payload["jti"])
        if not session_id:
            raise AuthenticationError("Invalid token: missing session id")

        return TokenClaims(
            account_id=account_id,
            session_id=session_id,
            role=str(payload.get("role", "")),
            username=str(payload.get("username", "")),
        )
