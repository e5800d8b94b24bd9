"""db-snapshot: full-database snapshot backup and transactional restore.

Captures every table of the back-office database into one JSON document,
stores documents as timestamped files, and restores a document by replacing
all data inside a single transaction.

Usage:
    from db_snapshot import BackupService, SnapshotStorage, get_adapter
    from db_snapshot import DEFAULT_CATALOG, EntityCatalog, EntityDef
    from db_snapshot import load_db_config, DatabaseProfile, DatabaseConfig
"""

__version__ = "0.1.0"

# Adapters
from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.adapters.memory import InMemoryAdapter
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

# Catalog
from db_snapshot.catalog.defaults import DEFAULT_CATALOG
from db_snapshot.catalog.models import EntityCatalog, EntityDef, ForeignKey, NestedChild

# Config
from db_snapshot.config.loader import load_db_config
from db_snapshot.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

# Factory
from db_snapshot.factory import (
    ProfileNotFoundError,
    connect,
    get_adapter,
    resolve_url,
)

# Backup
from db_snapshot.audit import AuditSink, DatabaseAuditSink
from db_snapshot.backup.builder import capture_snapshot
from db_snapshot.backup.models import RestoreSummary, SnapshotDocument
from db_snapshot.backup.restore import restore_snapshot, validate_snapshot
from db_snapshot.backup.service import BackupService
from db_snapshot.backup.storage import SnapshotStorage

# Errors
from db_snapshot.errors import (
    CaptureFailedError,
    CatalogError,
    CorruptSnapshotError,
    InvalidFormatError,
    RestoreFailedError,
    SnapshotError,
    SnapshotNotFoundError,
    ValidationFailedError,
    WriteFailedError,
)

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncPostgresAdapter",
    "InMemoryAdapter",
    # Catalog
    "DEFAULT_CATALOG",
    "EntityCatalog",
    "EntityDef",
    "ForeignKey",
    "NestedChild",
    # Config
    "load_db_config",
    "BackupSettings",
    "DatabaseConfig",
    "DatabaseProfile",
    # Factory
    "ProfileNotFoundError",
    "connect",
    "get_adapter",
    "resolve_url",
    # Backup
    "AuditSink",
    "DatabaseAuditSink",
    "BackupService",
    "RestoreSummary",
    "SnapshotDocument",
    "SnapshotStorage",
    "capture_snapshot",
    "restore_snapshot",
    "validate_snapshot",
    # Errors
    "CaptureFailedError",
    "CatalogError",
    "CorruptSnapshotError",
    "InvalidFormatError",
    "RestoreFailedError",
    "SnapshotError",
    "SnapshotNotFoundError",
    "ValidationFailedError",
    "WriteFailedError",
]
