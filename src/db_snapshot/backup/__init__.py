"""Snapshot capture, storage and restore.

Usage:
    from db_snapshot.backup import BackupService, SnapshotStorage

    service = BackupService(adapter, SnapshotStorage("backups"))
    created = await service.create_backup()
"""

from db_snapshot.backup.builder import capture_snapshot
from db_snapshot.backup.models import (
    FORMAT_VERSION,
    BackupCreated,
    BackupDownload,
    BackupInfo,
    OperationResult,
    RestoreSummary,
    SnapshotDocument,
)
from db_snapshot.backup.restore import restore_snapshot, validate_snapshot
from db_snapshot.backup.service import BackupService
from db_snapshot.backup.storage import SnapshotStorage

__all__ = [
    "FORMAT_VERSION",
    "BackupCreated",
    "BackupDownload",
    "BackupInfo",
    "BackupService",
    "OperationResult",
    "RestoreSummary",
    "SnapshotDocument",
    "SnapshotStorage",
    "capture_snapshot",
    "restore_snapshot",
    "validate_snapshot",
]
