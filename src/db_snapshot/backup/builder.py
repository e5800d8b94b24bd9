"""Snapshot capture driven by an EntityCatalog.

Reads every row of every catalog entity inside one read-only transaction
and assembles a ``SnapshotDocument``.  Nothing is filtered or redacted:
stored credentials such as password hashes are copied verbatim.

Usage:
    from db_snapshot.backup.builder import capture_snapshot

    document = await capture_snapshot(adapter)
    filename = storage.write(document)
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from db_snapshot.adapters.base import DatabaseClient, DatabaseSession
from db_snapshot.backup.models import SnapshotDocument
from db_snapshot.catalog import DEFAULT_CATALOG, EntityCatalog, EntityDef
from db_snapshot.errors import CaptureFailedError

logger = logging.getLogger(__name__)


async def capture_snapshot(
    adapter: DatabaseClient,
    catalog: EntityCatalog = DEFAULT_CATALOG,
) -> SnapshotDocument:
    """Capture the full contents of every catalog entity.

    Entities are read in ``catalog.create_order()``.  For entities with
    nested children, the child table is read once and its rows are
    attached to their parent records under the child's key.

    Args:
        adapter: Database adapter implementing ``DatabaseClient`` Protocol.
        catalog: Entity catalog describing what to read.

    Returns:
        The captured ``SnapshotDocument``.

    Raises:
        CaptureFailedError: If any read fails.  No partial document is
            returned.

    Example:
        document = await capture_snapshot(adapter, DEFAULT_CATALOG)
        document.data["plans"][0]["prices"]
    """
    captured_at = datetime.now(timezone.utc)
    data: dict[str, list[dict[str, Any]]] = {}

    try:
        async with adapter.transaction(read_only=True) as session:
            for entity in catalog.ordered():
                data[entity.name] = await _read_entity(session, entity)
                logger.debug("Captured %d %s", len(data[entity.name]), entity.name)
    except Exception as e:
        raise CaptureFailedError(f"Failed to capture snapshot: {e}") from e

    return SnapshotDocument(timestamp=captured_at, data=data)


async def _read_entity(session: DatabaseSession, entity: EntityDef) -> list[dict]:
    """Read an entity's rows with nested children attached."""
    rows = await session.select(entity.table, "*", order_by=entity.pk)

    for child in entity.nested:
        child_rows = await session.select(child.table, "*", order_by=child.pk)
        by_parent: dict[Any, list[dict]] = defaultdict(list)
        for child_row in child_rows:
            by_parent[child_row.get(child.parent_field)].append(child_row)
        for row in rows:
            row[child.key] = by_parent.get(row.get(entity.pk), [])

    return rows
