"""Error types shared by the services and the web layer.

UserError subclasses carry messages that are safe to return to a client.
Anything else is an internal failure and is answered with a generic message.
"""

from abc import ABC


class UserError(ABC, Exception):
    """Caller-facing failure. The message is returned as-is, so keep it free of secrets."""


class ValidationError(UserError):
    """Login input or an identifier is malformed."""


class AuthenticationError(UserError):
    """Credential, password or refresh attempt rejected."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Authenticated caller lacks the role for the operation."""


class NotFoundError(UserError):
    """The session (or account) named by the caller no longer exists."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class InfrastructureError(Exception):
    """Raised when the session store or account directory cannot be reached.

    Never shown to the user verbatim. Callers must treat it as a denial,
    not as an absent session.
    """

    def __init__(self, message: str = "Backend unavailable") -> None:
        super().__init__(message)
