"""
Configuration settings for Farm Connect.

Uses Pydantic Settings to load environment variables for the record store
connection, logging, export/document output, and the bulk slip generator.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Record store
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("farm_connect", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Reports and documents
    output_dir: Path = Field(Path("output"), alias="OUTPUT_DIR")
    display_timezone: Optional[str] = Field(None, alias="DISPLAY_TIMEZONE")
    organization_name: str = Field("FARM CONNECT", alias="ORGANIZATION_NAME")
    currency_symbol: str = Field("Rs.", alias="CURRENCY_SYMBOL")
    legacy_reference_fallback: bool = Field(False, alias="LEGACY_REFERENCE_FALLBACK")
    recent_limit: int = Field(5, alias="RECENT_LIMIT")

    # Bulk slip generation
    bulk_delay_ms: int = Field(500, alias="BULK_DELAY_MS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a Postgres DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


__all__ = ["Settings", "get_settings", "build_dsn"]
