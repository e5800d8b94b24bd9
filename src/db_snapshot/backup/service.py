"""Backup service: the boundary used by the CLI and any HTTP layer.

Ties together capture, storage, restore and the audit trail.  Each method
performs one operation, returns a confirmation model and, for mutating
operations, reports to the audit sink once the operation has completed.
Errors from ``db_snapshot.errors`` propagate unchanged.

Usage:
    from db_snapshot.backup.service import BackupService
    from db_snapshot.backup.storage import SnapshotStorage

    service = BackupService(adapter, SnapshotStorage("backups"), audit=DatabaseAuditSink(adapter))
    created = await service.create_backup(actor_id="u1", source_address="10.0.0.5")
    await service.restore_backup(created.filename, actor_id="u1")
"""

import logging

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.audit import (
    CREATE_BACKUP,
    DELETE_BACKUP,
    RESTORE_BACKUP,
    UPLOAD_BACKUP,
    AuditSink,
)
from db_snapshot.backup.builder import capture_snapshot
from db_snapshot.backup.models import (
    BackupCreated,
    BackupDownload,
    BackupInfo,
    OperationResult,
    RestoreSummary,
)
from db_snapshot.backup.restore import restore_snapshot
from db_snapshot.backup.storage import SnapshotStorage
from db_snapshot.catalog import DEFAULT_CATALOG, EntityCatalog

logger = logging.getLogger(__name__)


class BackupService:
    """Snapshot operations over one database and one artifact directory.

    Args:
        adapter: Database adapter implementing ``DatabaseClient`` Protocol.
        storage: Artifact store.
        catalog: Entity catalog (default: the back-office catalog).
        audit: Optional audit sink.  When ``None`` nothing is audited.
    """

    def __init__(
        self,
        adapter: DatabaseClient,
        storage: SnapshotStorage,
        catalog: EntityCatalog = DEFAULT_CATALOG,
        audit: AuditSink | None = None,
    ) -> None:
        self.adapter = adapter
        self.storage = storage
        self.catalog = catalog
        self.audit = audit
        self.last_restore: RestoreSummary | None = None

    def list_backups(self) -> list[BackupInfo]:
        """Stored artifacts, newest first."""
        return self.storage.list()

    async def create_backup(
        self,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> BackupCreated:
        """Capture the store and write a new artifact.

        Raises:
            CaptureFailedError: If reading the store fails.
            WriteFailedError: If the artifact cannot be written.
        """
        document = await capture_snapshot(self.adapter, self.catalog)
        filename = self.storage.write(document)
        logger.info("Backup created: %s", filename)
        await self._audit(CREATE_BACKUP, f"Created backup: {filename}", actor_id, source_address)
        return BackupCreated(message="Backup created successfully", filename=filename)

    async def restore_backup(
        self,
        filename: str,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> OperationResult:
        """Replace the store's contents with artifact *filename*.

        The artifact is read and parsed before the store is touched.  The
        audit entry is written only after the restore has committed.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
            CorruptSnapshotError: If it cannot be parsed, or
                ``InvalidFormatError`` if it lacks a required group.
            RestoreFailedError: If the transactional replace failed and was
                rolled back.
        """
        document = self.storage.read(filename)
        summary = await restore_snapshot(self.adapter, document, self.catalog)
        summary.filename = filename
        self.last_restore = summary
        logger.info("System restored from %s", filename)
        await self._audit(RESTORE_BACKUP, f"Restored backup: {filename}", actor_id, source_address)
        return OperationResult(message="System restored successfully")

    async def delete_backup(
        self,
        filename: str,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> OperationResult:
        """Remove artifact *filename*.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
        """
        self.storage.delete(filename)
        await self._audit(DELETE_BACKUP, f"Deleted backup: {filename}", actor_id, source_address)
        return OperationResult(message="Backup deleted successfully")

    def download_backup(self, filename: str) -> BackupDownload:
        """Stream artifact *filename* for external retrieval.

        Raises:
            SnapshotNotFoundError: If the artifact does not exist.
        """
        chunks = self.storage.download(filename)
        return BackupDownload(filename=filename, chunks=chunks)

    async def upload_backup(
        self,
        filename: str,
        content: bytes,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> BackupCreated:
        """Store an externally produced artifact without parsing it.

        Raises:
            ValidationFailedError: If *filename* has the wrong extension.
            WriteFailedError: If the artifact cannot be written.
        """
        stored = self.storage.upload(content, filename)
        await self._audit(UPLOAD_BACKUP, f"Uploaded backup: {stored}", actor_id, source_address)
        return BackupCreated(message="Backup uploaded successfully", filename=stored)

    async def _audit(
        self,
        action: str,
        details: str,
        actor_id: str | None,
        source_address: str | None,
    ) -> None:
        if self.audit is None:
            return
        await self.audit(action, details, actor_id=actor_id, source_address=source_address)
