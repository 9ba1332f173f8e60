from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="SessionManager API",
            version="0.1.0",
            summary="Login sessions with per-account device limits and refresh rotation",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = {
            "BearerAuth": {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Bearer credential returned by login or refresh",
            },
        }
        openapi_schema["security"] = [{"BearerAuth": []}]

        # Reachable without a bearer credential
        public_endpoints = {
            ("POST", "/api/auth/login"),
            ("GET", "/health"),
        }

        for path, path_item in openapi_schema["paths"].items():
            for method, operation in path_item.items():
                if (method.upper(), path) in public_endpoints:
                    operation["security"] = []

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Invalid username or password", "type": "authentication_error"},
                {"message": "Session not found or already logged out", "type": "not_found"},
                {"message": "Service temporarily unavailable", "type": "service_unavailable"},
            ]
        }
    }


class Link(BaseModel):
    """Hypermedia link to a related action."""

    rel: str = Field(..., description="Relation name")
    href: str = Field(..., description="Target path")
    method: str = Field(..., description="HTTP method")
