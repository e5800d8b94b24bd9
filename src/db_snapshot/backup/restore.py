"""Transactional restore driven by an EntityCatalog.

Replaces the entire contents of every catalog entity with the contents of
a ``SnapshotDocument``.  All deletes and creates run inside one
transaction: either the store ends up holding exactly the snapshot, or it
is left exactly as it was.  Table names and ordering come from the
catalog -- no hardcoded table names.

Usage:
    from db_snapshot.backup.restore import restore_snapshot, validate_snapshot

    document = storage.read("backup-2026-01-15T02-00-00-000Z.json")
    validate_snapshot(document)
    summary = await restore_snapshot(adapter, document)
    summary.created["subscription_plans"]
"""

import logging
from typing import Any

from db_snapshot.adapters.base import DatabaseClient, DatabaseSession
from db_snapshot.backup.models import RestoreSummary, SnapshotDocument
from db_snapshot.catalog import DEFAULT_CATALOG, EntityCatalog, EntityDef
from db_snapshot.errors import InvalidFormatError, RestoreFailedError

logger = logging.getLogger(__name__)

REQUIRED_ENTITIES = ("users",)


def validate_snapshot(
    document: SnapshotDocument,
    required: tuple[str, ...] = REQUIRED_ENTITIES,
) -> None:
    """Check that *document* carries every required entity group.

    Only presence is checked.  Missing non-required groups are treated as
    empty at restore time.

    Raises:
        InvalidFormatError: If a required group is absent.
    """
    missing = [name for name in required if name not in document.data]
    if missing:
        raise InvalidFormatError(
            f"Invalid backup format: missing {', '.join(missing)}"
        )


async def restore_snapshot(
    adapter: DatabaseClient,
    document: SnapshotDocument,
    catalog: EntityCatalog = DEFAULT_CATALOG,
) -> RestoreSummary:
    """Replace every catalog entity with the contents of *document*.

    Runs two passes inside a single transaction:

    1. Delete every row of every entity in ``catalog.delete_order()``.
       Nested child tables are emptied before their parent.
    2. Create every record in ``catalog.create_order()``.  Records with
       nested children are created one at a time, parent first; other
       groups are bulk-inserted.  Empty or absent groups are skipped.

    Args:
        adapter: Database adapter implementing ``DatabaseClient`` Protocol.
        document: Snapshot to restore.  Validated with
            :func:`validate_snapshot` before any write.
        catalog: Entity catalog describing tables and ordering.

    Returns:
        ``RestoreSummary`` of the committed transaction.

    Raises:
        InvalidFormatError: If the document lacks a required group.  The
            store is not touched.
        RestoreFailedError: If any delete or create fails.  The transaction
            is rolled back.

    Example:
        summary = await restore_snapshot(adapter, document, DEFAULT_CATALOG)
        print(summary.total_created)
    """
    validate_snapshot(document)

    summary = RestoreSummary()
    current: str | None = None

    try:
        async with adapter.transaction() as session:
            for name in catalog.delete_order():
                current = name
                entity = catalog.get(name)
                for child in entity.nested:
                    await session.delete(child.table)
                    summary.deleted_tables.append(child.table)
                await session.delete(entity.table)
                summary.deleted_tables.append(entity.table)

            for entity in catalog.ordered():
                current = entity.name
                records = document.data.get(entity.name) or []
                if not records:
                    continue
                if entity.nested:
                    for record in records:
                        await _create_nested(session, entity, record, summary)
                else:
                    count = await session.insert_many(entity.table, records)
                    _add(summary, entity.table, count)
                logger.debug("Restored %d %s", len(records), entity.name)
            current = None
    except Exception as e:
        raise RestoreFailedError(e, entity=current) from e

    logger.info(
        "Restore committed: %d rows across %d tables",
        summary.total_created,
        len(summary.created),
    )
    return summary


async def _create_nested(
    session: DatabaseSession,
    entity: EntityDef,
    record: dict[str, Any],
    summary: RestoreSummary,
) -> None:
    """Create one parent record, then its embedded children."""
    child_keys = {child.key for child in entity.nested}
    parent = {k: v for k, v in record.items() if k not in child_keys}
    await session.insert(entity.table, parent)
    _add(summary, entity.table, 1)

    for child in entity.nested:
        children = record.get(child.key) or []
        if not children:
            continue
        rows = [{**row, child.parent_field: parent.get(entity.pk)} for row in children]
        count = await session.insert_many(child.table, rows)
        _add(summary, child.table, count)


def _add(summary: RestoreSummary, table: str, count: int) -> None:
    summary.created[table] = summary.created.get(table, 0) + count
