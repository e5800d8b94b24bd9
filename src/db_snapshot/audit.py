"""Audit trail for snapshot operations.

``BackupService`` reports each completed create, restore, delete and
upload to an ``AuditSink``.  ``DatabaseAuditSink`` writes the entry to the
``audit_logs`` table.  A failing audit write is logged and swallowed: the
audited operation has already completed and is not undone.

Usage:
    from db_snapshot.audit import DatabaseAuditSink

    audit = DatabaseAuditSink(adapter)
    await audit("CREATE_BACKUP", "Created backup: backup-....json", actor_id="u1")
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from db_snapshot.adapters.base import DatabaseClient

logger = logging.getLogger(__name__)

CREATE_BACKUP = "CREATE_BACKUP"
RESTORE_BACKUP = "RESTORE_BACKUP"
DELETE_BACKUP = "DELETE_BACKUP"
UPLOAD_BACKUP = "UPLOAD_BACKUP"


@runtime_checkable
class AuditSink(Protocol):
    """Receives one entry per completed snapshot operation."""

    async def __call__(
        self,
        action: str,
        details: str,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> None:
        ...


class DatabaseAuditSink:
    """Writes audit entries through a ``DatabaseClient``.

    Args:
        adapter: Adapter used for the insert (autocommit, outside any
            restore transaction).
        table: Audit table name.
    """

    def __init__(self, adapter: DatabaseClient, table: str = "audit_logs") -> None:
        self._adapter = adapter
        self._table = table

    async def __call__(
        self,
        action: str,
        details: str,
        actor_id: str | None = None,
        source_address: str | None = None,
    ) -> None:
        entry = {
            "id": str(uuid.uuid4()),
            "user_id": actor_id,
            "action": action,
            "details": details,
            "ip_address": source_address,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._adapter.insert(self._table, entry)
        except Exception:
            logger.exception("Failed to write audit entry %s: %s", action, details)
