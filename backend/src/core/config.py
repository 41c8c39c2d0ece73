"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Application database (photos, folders, roster, collections, audit log)
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Identity database - shared with other applications, holds user accounts
    auth_database_url: str = Field(validation_alias="AUTH_DATABASE_URL")

    # Session tokens (HS256 JWTs issued by /auth/login)
    session_secret: str = Field(validation_alias="SESSION_SECRET")
    session_ttl_hours: int = Field(default=24, validation_alias="SESSION_TTL_HOURS")

    # Object storage (S3-compatible)
    s3_bucket_name: str = Field(validation_alias="S3_BUCKET_NAME")
    s3_region: str | None = Field(default=None, validation_alias="S3_REGION")
    s3_endpoint_url: str | None = Field(default=None, validation_alias="S3_ENDPOINT_URL")
    aws_access_key_id: str | None = Field(default=None, validation_alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(
        default=None, validation_alias="AWS_SECRET_ACCESS_KEY",
    )
    upload_url_ttl_seconds: int = Field(default=15 * 60, validation_alias="UPLOAD_URL_TTL_SECONDS")
    download_url_ttl_seconds: int = Field(
        default=60 * 60, validation_alias="DOWNLOAD_URL_TTL_SECONDS",
    )
    max_upload_bytes: int = Field(default=25 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")

    # User enrichment cache freshness window
    user_cache_ttl_seconds: int = Field(default=300, validation_alias="USER_CACHE_TTL_SECONDS")

    # Base URL used when building public share links
    app_url: str = Field(default="http://localhost:3000", validation_alias="APP_URL")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Reject session secrets too short to sign tokens safely."""
        if len(self.session_secret) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters long.")
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
