"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the token services
share a consistent configuration surface.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GiteaSettings(BaseSettings):
    """Configuration for the Gitea OAuth2 flow and token lifecycle."""

    model_config = SettingsConfigDict(
        env_prefix="GITEA_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    redirect_uri: str = Field(
        "http://localhost:8000/api/auth/gitea/callback",
        description="Redirect URI registered with the Gitea OAuth2 application.",
    )
    token_expiration_margin_seconds: int = Field(
        300,
        description="Tokens expiring within this window are refreshed before use.",
    )
    authorization_timeout_seconds: float = Field(
        300.0,
        description="How long to wait for the user to complete an authorization.",
    )
    open_browser: bool = Field(
        False,
        description="Open the authorization URL in a local browser when starting a flow.",
    )

    @field_validator("redirect_uri")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class CommitMessageSettings(BaseSettings):
    """Commit message templates; ``{{path}}`` is replaced with the file path."""

    model_config = SettingsConfigDict(
        env_prefix="GIT_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    create_file_message: str = "Create {{path}}"
    update_file_message: str = "Update {{path}}"
    delete_file_message: str = "Delete {{path}}"


class HttpSettings(BaseSettings):
    """Transport and retry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="HTTP_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    timeout_seconds: float = 10.0
    identity_retry_attempts: int = Field(
        3,
        description="Attempts made for an identity lookup that keeps failing transiently.",
    )
    identity_retry_backoff_seconds: float = 1.0


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description="Secret used to derive the key encrypting stored tokens.",
    )
    oauth_state_secret: Optional[str] = Field(
        None,
        validation_alias="OAUTH_STATE_SECRET",
        description="Secret signing OAuth state values. A random one is used when unset.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    token_db_path: Optional[str] = Field(
        None,
        validation_alias="TOKEN_DB_PATH",
        description="SQLite file holding linked accounts. Tokens stay in memory when unset.",
    )
    gitea: GiteaSettings = Field(default_factory=GiteaSettings)
    commit_messages: CommitMessageSettings = Field(default_factory=CommitMessageSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "CommitMessageSettings",
    "GiteaSettings",
    "HttpSettings",
    "SecuritySettings",
    "get_settings",
]
