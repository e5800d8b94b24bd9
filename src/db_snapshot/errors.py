"""Error taxonomy for snapshot capture, storage, and restore.

Every failure surfaced by the engine is one of these types so that callers
(the CLI, an HTTP layer) can map them to distinct responses.  None of them
are retried by the engine.

Usage:
    from db_snapshot.errors import SnapshotNotFoundError, RestoreFailedError

    try:
        await service.restore_backup("backup-2026-01-01.json")
    except SnapshotNotFoundError:
        ...
    except RestoreFailedError as e:
        print(e.cause)
"""


class SnapshotError(Exception):
    """Base class for all snapshot engine errors."""

    pass


class CatalogError(SnapshotError):
    """Raised when an entity catalog is inconsistent (unknown refs, cycles)."""

    pass


class SnapshotNotFoundError(SnapshotError):
    """Raised when a snapshot artifact does not exist."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Backup not found: {filename}")


class CorruptSnapshotError(SnapshotError):
    """Raised when a snapshot artifact cannot be parsed as a document."""

    pass


class InvalidFormatError(CorruptSnapshotError):
    """Raised when a parsed snapshot lacks a required entity group."""

    pass


class ValidationFailedError(SnapshotError):
    """Raised when input fails basic shape checks (e.g. wrong extension)."""

    pass


class WriteFailedError(SnapshotError):
    """Raised when an artifact could not be written to storage."""

    pass


class CaptureFailedError(SnapshotError):
    """Raised when reading the store during capture fails."""

    pass


class RestoreFailedError(SnapshotError):
    """Raised when the transactional replace could not complete.

    The transaction has been rolled back, so the store holds exactly what
    it held before the restore started.

    Attributes:
        cause: The underlying exception.
        entity: Catalog entity being processed when the failure happened,
            or ``None`` if it happened outside the delete/create passes.
    """

    def __init__(self, cause: BaseException, entity: str | None = None) -> None:
        self.cause = cause
        self.entity = entity
        where = f" while restoring '{entity}'" if entity else ""
        super().__init__(f"Failed to restore backup{where}: {cause}")
