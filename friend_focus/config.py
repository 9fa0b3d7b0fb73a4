"""
Configuration and settings for the Friend Focus service.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field, NameEmail, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PLACEHOLDER_AUTH_SECRET = "change-me-to-a-random-secret"
PRODUCTION_PHOTOS_DIR = "/data/photos"

_http_url = TypeAdapter(AnyHttpUrl)
_name_email = TypeAdapter(NameEmail)


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    app_env: Literal["development", "production", "test"] = Field(
        default="development"
    )
    log_level: str = Field(default="INFO")

    # Database (SQLite file path or any SQLAlchemy URL)
    database_url: str = Field(default="sqlite.db")

    # Auth provider
    auth_secret: str = Field(..., min_length=1)
    auth_url: str = Field(default="http://localhost:5173")
    session_cookie_name: str = Field(default="friend_focus.session_token")

    # Outbound email (Resend)
    resend_api_key: Optional[str] = Field(default=None)
    resend_from_email: str = Field(default="Friend Focus <onboarding@resend.dev>")

    # Google integrations
    google_client_id: Optional[str] = Field(default=None)
    google_client_secret: Optional[str] = Field(default=None)
    google_maps_api_key: Optional[str] = Field(default=None)

    # Photo storage: local directory, or an S3-compatible bucket when set
    photos_dir: Optional[str] = Field(default=None)
    photos_bucket: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @field_validator("auth_url")
    @classmethod
    def _validate_auth_url(cls, value: str) -> str:
        _http_url.validate_python(value)
        return value.rstrip("/")

    @field_validator("resend_from_email")
    @classmethod
    def _validate_from_email(cls, value: str) -> str:
        _name_email.validate_python(value)
        return value

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    def resolved_photos_dir(self) -> str:
        if self.photos_dir:
            return self.photos_dir
        if self.app_env == "production":
            return PRODUCTION_PHOTOS_DIR
        return os.path.join(os.getcwd(), "data", "photos")


def warn_insecure_defaults(settings: Settings) -> None:
    """Log configuration problems that are tolerated but unsafe in production."""
    if settings.app_env != "production":
        return
    if settings.auth_secret == PLACEHOLDER_AUTH_SECRET:
        logger.warning(
            "AUTH_SECRET is still the default value. "
            "Set a secure random secret for production."
        )
    if not settings.google_oauth_configured:
        logger.warning(
            "GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET not set. "
            "Google sign-in is disabled."
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
