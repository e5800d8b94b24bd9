"""Snapshot document and result models.

Usage:
    from db_snapshot.backup.models import SnapshotDocument

    doc = SnapshotDocument(timestamp=datetime.now(timezone.utc), data={"users": []})
    text = doc.model_dump_json(indent=2)
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

FORMAT_VERSION = "1.0"


class SnapshotDocument(BaseModel):
    """A full, verbatim copy of every catalog entity.

    Attributes:
        version: Format version of the document shape itself.
        timestamp: When the snapshot was captured.  Optional so that
            externally produced documents still load; restore never reads it.
        data: Entity name -> list of row dicts.  Rows of entities with
            nested children embed those children under their key.
    """

    version: str = FORMAT_VERSION
    timestamp: datetime | None = None
    data: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    def count(self, entity: str) -> int:
        """Number of top-level records for *entity* (0 if absent)."""
        return len(self.data.get(entity, []))


class BackupInfo(BaseModel):
    """A stored snapshot artifact as returned by ``SnapshotStorage.list()``."""

    filename: str
    size_bytes: int
    created_at: datetime


class RestoreSummary(BaseModel):
    """Outcome of a committed restore.

    Attributes:
        filename: Artifact the snapshot was read from, when known.
        deleted_tables: Tables emptied during the delete pass, in order.
        created: Per-table number of rows created (nested child tables
            included).
    """

    filename: str | None = None
    deleted_tables: list[str] = Field(default_factory=list)
    created: dict[str, int] = Field(default_factory=dict)

    @property
    def total_created(self) -> int:
        return sum(self.created.values())


class OperationResult(BaseModel):
    """Confirmation payload for restore and delete."""

    message: str


class BackupCreated(OperationResult):
    """Confirmation payload for create and upload."""

    filename: str


@dataclass
class BackupDownload:
    """A snapshot artifact streamed for external retrieval.

    Example:
        download = service.download_backup("backup-2026-01-01T00-00-00-000Z.json")
        with open(download.filename, "wb") as f:
            for chunk in download.chunks:
                f.write(chunk)
    """

    filename: str
    chunks: Iterator[bytes]
    media_type: str = "application/json"

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'
