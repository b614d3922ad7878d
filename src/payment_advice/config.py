"""Application configuration using pydantic-settings."""

from __future__ import annotations

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream payment advice API
    api_base_url: str = Field(
        "http://localhost:8080/api/payment-advice",
        description="Upstream payment advice endpoint (queried with filter parameters)",
    )
    access_token: str = Field("", description="Value sent in the upstream accessToken header")
    client_id: str = Field("", description="Value sent in the upstream clientId header")
    upstream_timeout_seconds: float = Field(
        30.0,
        description="Timeout for upstream payment advice requests",
    )

    # Delivery
    delivery: Literal["inline", "filesystem", "database", "object"] = Field(
        "inline",
        description="How decoded PDFs are handed to the caller",
    )
    response_mode: Literal["strict", "lenient"] = Field(
        "strict",
        description="strict maps errors to HTTP status codes, lenient always answers 200",
    )
    public_base_url: str = Field(
        "http://localhost:3000",
        description="Public URL of this service, used to build fileUrl links",
    )

    # Artifact storage
    storage_dir: Path = Field(
        Path(tempfile.gettempdir()) / "payment-advice",
        description="Directory for the filesystem delivery",
    )
    database_url: str = Field(
        "sqlite+aiosqlite:///./payment_advice.db",
        description="SQLAlchemy async URL for the database delivery",
    )
    db_echo: bool = Field(False, description="Echo SQL statements for debugging")
    object_store_url: str = Field(
        "",
        description="Base URL artifacts are PUT to for the object delivery",
    )
    object_store_public_url: str = Field(
        "",
        description="Public base URL of uploaded objects (defaults to object_store_url)",
    )
    artifact_ttl_seconds: int = Field(600, description="Lifetime of stored artifacts")
    reaper_interval_seconds: float = Field(
        30.0,
        description="How often expired artifacts are swept",
    )

    # Maintenance
    maintenance_key: str = Field(
        "",
        description="Shared secret for the maintenance admin routes (empty disables them)",
    )

    # Application
    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(3000, description="Bind port")

    # Logging
    log_level: str = Field("INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field("json", description="Log format (json or console)")

    @property
    def upstream_headers(self) -> dict[str, str]:
        """Headers the upstream API expects on every request."""
        return {
            "accessToken": self.access_token,
            "clientId": self.client_id,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
