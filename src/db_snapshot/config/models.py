"""Pydantic models for database and backup configuration."""

from pydantic import BaseModel, Field

from db_snapshot.catalog.defaults import DEFAULT_JSONB_COLUMNS, DEFAULT_TIMESTAMP_COLUMNS


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"  # Only postgres is supported


class BackupSettings(BaseModel):
    """``[backup]`` section of db.toml."""

    directory: str = "backups"
    extension: str = ".json"
    jsonb_columns: list[str] = Field(default_factory=lambda: list(DEFAULT_JSONB_COLUMNS))
    timestamp_columns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TIMESTAMP_COLUMNS)
    )


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    backup: BackupSettings = Field(default_factory=BackupSettings)


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect()."""

    success: bool
    profile_name: str | None = None
    error: str | None = None
