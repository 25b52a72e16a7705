"""
Application Configuration

Uses pydantic-settings for environment variable loading with validation.
All configuration for the sync server, the capture hooks and the bootstrap
script is centralized here.

Variables use the FLOWSYNC_ prefix. The platform's conventional names
(WATCH_SERVER_*, DB_POSTGRESDB_*, N8N_*) are accepted as aliases so the same
environment file can be shared with the platform containers.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via .env file.
    Secrets (webhook secret, owner password, encryption key) should only ever
    be provided via environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLOWSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # ==========================================================================
    # File representation
    # ==========================================================================
    base_dir: Path = Field(
        default=Path("."),
        description="Root holding the workflows/ and credentials/ directories"
    )

    credentials_dir: Path | None = Field(
        default=None,
        description="Directory holding manifest.yml and the shared API key file (defaults to <base_dir>/credentials)"
    )

    # ==========================================================================
    # Sync Server
    # ==========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind host"
    )

    port: int = Field(
        default=3456,
        validation_alias=AliasChoices("FLOWSYNC_PORT", "WATCH_SERVER_PORT"),
        description="Server port"
    )

    webhook_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_WEBHOOK_SECRET", "WATCH_SERVER_SECRET"),
        description="Shared secret expected in the x-webhook-secret header (unset disables auth)"
    )

    # ==========================================================================
    # Capture hooks (platform side)
    # ==========================================================================
    sync_server_host: str = Field(
        default="n8n-watch-server",
        validation_alias=AliasChoices("FLOWSYNC_SYNC_SERVER_HOST", "WATCH_SERVER_HOST"),
        description="Host of the sync server as seen from the platform"
    )

    sync_server_url: str | None = Field(
        default=None,
        description="Full sync server URL (overrides host/port)"
    )

    delivery_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for event delivery to the sync server"
    )

    # ==========================================================================
    # Platform API (credential schema lookups)
    # ==========================================================================
    platform_url: str = Field(
        default="http://n8n:5678",
        validation_alias=AliasChoices("FLOWSYNC_PLATFORM_URL", "N8N_API_URL"),
        description="Base URL of the live platform API"
    )

    schema_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for credential schema lookups"
    )

    # ==========================================================================
    # Database (platform PostgreSQL, bootstrap only)
    # ==========================================================================
    db_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_DB_HOST", "DB_POSTGRESDB_HOST"),
    )

    db_port: int = Field(
        default=5432,
        validation_alias=AliasChoices("FLOWSYNC_DB_PORT", "DB_POSTGRESDB_PORT"),
    )

    db_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_DB_NAME", "DB_POSTGRESDB_DATABASE"),
    )

    db_user: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_DB_USER", "DB_POSTGRESDB_USER"),
    )

    db_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_DB_PASSWORD", "DB_POSTGRESDB_PASSWORD"),
    )

    # ==========================================================================
    # Bootstrap
    # ==========================================================================
    owner_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_OWNER_EMAIL", "N8N_OWNER_EMAIL"),
        description="Owner account email (creates the owner on bootstrap if set)"
    )

    owner_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_OWNER_PASSWORD", "N8N_OWNER_PASSWORD"),
        description="Owner account password"
    )

    encryption_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FLOWSYNC_ENCRYPTION_KEY", "N8N_ENCRYPTION_KEY"),
        description="Platform encryption key used for credential data"
    )

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @computed_field
    @property
    def workflows_dir(self) -> Path:
        """Root of the workflow file tree."""
        return self.base_dir / "workflows"

    @computed_field
    @property
    def manifest_path(self) -> Path:
        """Location of the credential manifest."""
        return (self.credentials_dir or self.base_dir / "credentials") / "manifest.yml"

    @computed_field
    @property
    def api_key_path(self) -> Path:
        """Location of the shared service API key file."""
        return (self.credentials_dir or self.base_dir / "credentials") / ".n8n-api-key"

    @computed_field
    @property
    def auth_enabled(self) -> bool:
        """Check if webhook authentication is enabled."""
        return bool(self.webhook_secret)

    @property
    def sync_server_base_url(self) -> str:
        """Base URL the capture hooks deliver events to."""
        if self.sync_server_url:
            return self.sync_server_url.rstrip("/")
        return f"http://{self.sync_server_host}:{self.port}"

    @property
    def database_configured(self) -> bool:
        """Check if the platform database connection is configured."""
        return bool(self.db_host and self.db_name and self.db_user)

    @property
    def database_url(self) -> URL:
        """Async PostgreSQL connection URL for the platform database."""
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
