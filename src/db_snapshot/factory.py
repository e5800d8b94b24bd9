"""Database adapter factory.

Resolves the active database profile (env var or ``.db-profile`` lock file),
substitutes the profile password into its URL, and builds an
``AsyncPostgresAdapter`` configured with the backup column settings from
db.toml.

Usage:
    from db_snapshot.factory import connect, get_adapter

    result = await connect("local")          # test connection, write lock file
    adapter = await get_adapter()            # uses the locked profile
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from db_snapshot.adapters.postgres import AsyncPostgresAdapter
from db_snapshot.catalog.defaults import DEFAULT_JSONB_COLUMNS, DEFAULT_TIMESTAMP_COLUMNS
from db_snapshot.config.loader import load_db_config
from db_snapshot.config.models import ConnectionResult, DatabaseProfile

logger = logging.getLogger(__name__)

# Profile lock file path
_PROFILE_LOCK_FILE = Path.cwd() / ".db-profile"


# ============================================================================
# Profile Lock File Operations
# ============================================================================


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def read_profile_lock() -> str | None:
    """Read profile name from lock file.

    Returns:
        Profile name if lock file exists, None otherwise
    """
    if _PROFILE_LOCK_FILE.exists():
        return _PROFILE_LOCK_FILE.read_text().strip()
    return None


def write_profile_lock(profile_name: str) -> None:
    """Write profile name to lock file.

    Only call this after a successful connection test.
    """
    _PROFILE_LOCK_FILE.write_text(profile_name)


def resolve_active_profile(env_prefix: str = "") -> tuple[str, str] | None:
    """Find the active profile name and where it was set.

    Priority:
    1. ``{env_prefix}DB_PROFILE`` env var (for initial connect or CI/CD)
    2. .db-profile file (profile from previous connect)

    Returns:
        ``(profile_name, source)`` where source is the env var name or
        ``.db-profile``, or None if neither is set.
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile, env_var

    lock_profile = read_profile_lock()
    if lock_profile:
        return lock_profile, _PROFILE_LOCK_FILE.name

    return None


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from env var or lock file.

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    resolved = resolve_active_profile(env_prefix)
    if resolved is None:
        raise ProfileNotFoundError(
            "No database profile configured.\n"
            f"Run: {env_prefix}DB_PROFILE=<name> db-snapshot connect\n"
            "List profiles with: db-snapshot profiles"
        )
    return resolved[0]


# ============================================================================
# Connection
# ============================================================================


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    The password is URL-encoded before substitution.
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


async def connect(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> ConnectionResult:
    """Test the connection for a profile and persist it as the active one.

    Args:
        profile_name: Profile name from db.toml.  If None, uses
            ``{env_prefix}DB_PROFILE`` or the existing lock file.
        env_prefix: Prefix for the profile environment variable.
        config_path: Path to db.toml (default: ``./db.toml``).

    Returns:
        ConnectionResult with success status or the error message.

    Example:
        >>> result = await connect("local")
        >>> if result.success:
        ...     print(f"Connected to {result.profile_name}")
    """
    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix)
        except ProfileNotFoundError as e:
            return ConnectionResult(success=False, error=str(e))

    try:
        config = load_db_config(config_path)
    except FileNotFoundError as e:
        return ConnectionResult(success=False, error=str(e))

    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys())
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Profile '{profile_name}' not found. Available: {available}",
        )

    adapter = AsyncPostgresAdapter(database_url=resolve_url(config.profiles[profile_name]))
    try:
        await adapter.test_connection()
    except Exception as e:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to connect to database: {e}",
        )
    finally:
        await adapter.close()

    write_profile_lock(profile_name)
    logger.info("Connected to profile %s", profile_name)
    return ConnectionResult(success=True, profile_name=profile_name)


# ============================================================================
# Database Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
) -> AsyncPostgresAdapter:
    """Create an adapter for a profile or a direct URL.

    A new adapter is created on every call; the caller closes it.

    Args:
        profile_name: Profile name from db.toml.  Ignored when
            ``database_url`` is given.  If None, the active profile is used.
        env_prefix: Prefix for the profile environment variable.
        database_url: Direct connection URL.  Uses the default backup
            column settings.
        config_path: Path to db.toml (default: ``./db.toml``).

    Raises:
        ProfileNotFoundError: If no profile is configured
        KeyError: If the profile is not in db.toml
        ValueError: If the profile's provider is not supported

    Example:
        >>> adapter = await get_adapter("local")
        >>> rows = await adapter.select("users", "id, email")
    """
    if database_url is not None:
        return AsyncPostgresAdapter(
            database_url=database_url,
            jsonb_columns=list(DEFAULT_JSONB_COLUMNS),
            timestamp_columns=list(DEFAULT_TIMESTAMP_COLUMNS),
        )

    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    config = load_db_config(config_path)
    if profile_name not in config.profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    profile = config.profiles[profile_name]
    if profile.provider != "postgres":
        raise ValueError(
            f"Unsupported provider '{profile.provider}' for profile '{profile_name}'"
        )

    return AsyncPostgresAdapter(
        database_url=resolve_url(profile),
        jsonb_columns=config.backup.jsonb_columns,
        timestamp_columns=config.backup.timestamp_columns,
    )
