from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str  # MongoDB URL including database name, e.g. mongodb://localhost:27017/sessionmanager
    redis_url: str = "redis://localhost:6379/0"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []

    # Bearer credential
    jwt_secret: str
    jwt_issuer: str = "SessionManager"
    jwt_audience: str = "SessionManagerClient"
    jwt_expiry_minutes: int = Field(60, gt=0)

    aes_key: str  # base64-encoded 32-byte key for stored passwords

    # Session policy
    max_concurrent_sessions: int = 2
    session_timeout_minutes: int = Field(60, gt=0)  # sliding TTL of a session record
    # Refresh window measured from last activity. Rotation also needs the record to still exist,
    # so a window longer than session_timeout_minutes is capped by the record TTL.
    refresh_token_expiry_minutes: int = Field(10080, gt=0)
    auto_register: bool = True  # unknown usernames are provisioned on first login

    # Seeded on startup when missing
    admin_username: str = "admin"
    admin_password: str = "Admin123!"

    model_config = {
        "env_file": [".env"],
        "env_prefix": "SESSIONMANAGER_",
        "extra": "ignore",
    }

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_timeout_minutes * 60
