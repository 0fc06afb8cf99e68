# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Application configuration using Pydantic settings."""

from functools import lru_cache
from pathlib import Path

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

    # Database
    database_url: str = Field(
        default="sqlite:///./data/booking_calendar.db",
        description="SQLite database URL for comment storage",
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory holding static CSV exports and link tables",
    )

    # Lodgify API
    lodgify_api_key: str = Field(
        default="",
        description="Lodgify API key sent as X-ApiKey",
    )
    lodgify_base_url: str = Field(
        default="https://api.lodgify.com/v2",
        description="Lodgify API base URL",
    )

    # VRBO iCal feeds
    vrbo_links_csv: str = Field(
        default="vrbo_ical_sync_links.csv",
        description="CSV file (inside data_dir) listing apartment_name,ical_url",
    )
    ics_cache_ttl_minutes: int = Field(
        default=30,
        ge=0,
        le=1440,
        description="How long fetched iCal feeds are reused",
    )

    # Static CSV exports merged into the staff calendar
    static_csv_files: str = Field(
        default="",
        description="Comma-separated CSV filenames inside data_dir",
    )

    # Property directory override (JSON object of property id -> name)
    property_names_json: str = Field(
        default="",
        description="Override for the Lodgify property id to name table",
    )

    # Accounting
    commission_rate: float = Field(
        default=15.0,
        ge=0,
        le=100,
        description="Commission percentage charged by commission sources",
    )
    commission_sources: str = Field(
        default="Airbnb,VRBO",
        description="Comma-separated channels that charge commission",
    )

    # Security
    owner_password: str = Field(
        default="",
        description="Password granting the owner role",
    )
    staff_password: str = Field(
        default="",
        description="Password granting the staff role",
    )
    session_secret: str = Field(
        default="",
        description="Fernet key used to sign session tokens",
    )
    session_ttl_minutes: int = Field(
        default=720,
        ge=1,
        description="Session token lifetime in minutes",
    )

    # Features
    comments_backend_enabled: bool = Field(
        default=True,
        description="Enable the comments storage endpoints",
    )

    # Application mode
    standalone_mode: bool = Field(
        default=False,
        description="Disable authentication for local development",
    )

    # Server configuration
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8099,
        description="Server port",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def static_csv_filenames(self) -> list[str]:
        """Static CSV filenames as a list."""
        return [f.strip() for f in self.static_csv_files.split(",") if f.strip()]

    @property
    def commission_source_names(self) -> frozenset[str]:
        """Commission-charging channels as a set."""
        return frozenset(
            s.strip() for s in self.commission_sources.split(",") if s.strip()
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings instance.
    """
    return Settings()
