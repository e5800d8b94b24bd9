"""In-memory database adapter.

Provides ``InMemoryAdapter``, a ``DatabaseClient`` that keeps every table
as a list of dicts in process memory.  It enforces primary-key uniqueness
and foreign keys (RESTRICT on delete) so it behaves like the relational
store for ordering and rollback purposes.

Invariants:
    - All data is lost on process exit
    - A transaction works on a private copy of every table; the copy
      replaces the live tables only when the block exits without error
    - ``insert_many`` is all-or-nothing within its call

Usage:
    from db_snapshot.adapters.memory import InMemoryAdapter
    from db_snapshot.catalog import DEFAULT_CATALOG

    adapter = InMemoryAdapter.for_catalog(DEFAULT_CATALOG)
    await adapter.insert("users", {"id": "u1", "email": "a@example.com"})
"""

import copy
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from db_snapshot.catalog.models import EntityCatalog


class ConstraintViolationError(Exception):
    """Raised when a write breaks a primary-key or foreign-key constraint."""

    pass


class InMemorySession:
    """``DatabaseSession`` over a dict of in-memory tables."""

    def __init__(
        self,
        tables: dict[str, list[dict]],
        primary_keys: dict[str, str],
        foreign_keys: dict[str, list[tuple[str, str]]],
    ) -> None:
        self._tables = tables
        self._primary_keys = primary_keys
        self._foreign_keys = foreign_keys

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows matching all *filters*."""
        rows = [r for r in self._tables.get(table, []) if _matches(r, filters)]
        if order_by:
            rows = sorted(rows, key=lambda r: (r.get(order_by) is None, r.get(order_by)))
        if columns.strip() != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return copy.deepcopy(rows)

    async def insert(self, table: str, data: dict) -> dict:
        """Insert one row after checking constraints."""
        row = {k: v for k, v in data.items() if not k.startswith("_")}
        self._check_insert(table, row, self._tables.get(table, []))
        self._tables.setdefault(table, []).append(copy.deepcopy(row))
        return copy.deepcopy(row)

    async def insert_many(self, table: str, rows: list[dict]) -> int:
        """Insert rows; if any row fails nothing from this call is kept."""
        staged = list(self._tables.get(table, []))
        for data in rows:
            row = {k: v for k, v in data.items() if not k.startswith("_")}
            self._check_insert(table, row, staged)
            staged.append(copy.deepcopy(row))
        self._tables[table] = staged
        return len(rows)

    async def delete(self, table: str, filters: dict[str, Any] | None = None) -> None:
        """Delete matching rows, refusing if another row still references one."""
        existing = self._tables.get(table, [])
        doomed = [r for r in existing if _matches(r, filters)]
        if not doomed:
            return

        pk = self._primary_keys.get(table)
        if pk is not None:
            doomed_keys = {r.get(pk) for r in doomed}
            for other, fks in self._foreign_keys.items():
                for field, ref_table in fks:
                    if ref_table != table:
                        continue
                    for row in self._tables.get(other, []):
                        if other == table and row in doomed:
                            continue
                        if row.get(field) in doomed_keys:
                            raise ConstraintViolationError(
                                f"Cannot delete from {table}: row in {other} "
                                f"references it via {field}={row.get(field)!r}"
                            )

        self._tables[table] = [r for r in existing if not _matches(r, filters)]

    def _check_insert(self, table: str, row: dict, current: list[dict]) -> None:
        pk = self._primary_keys.get(table)
        if pk is not None:
            if row.get(pk) is None:
                raise ConstraintViolationError(f"{table}.{pk} cannot be null")
            if any(r.get(pk) == row[pk] for r in current):
                raise ConstraintViolationError(
                    f"Duplicate key {table}.{pk}={row[pk]!r}"
                )

        for field, ref_table in self._foreign_keys.get(table, []):
            value = row.get(field)
            if value is None:
                continue
            ref_pk = self._primary_keys.get(ref_table, "id")
            # Self-references may point at rows staged in this same call
            candidates = current if ref_table == table else self._tables.get(ref_table, [])
            if not any(r.get(ref_pk) == value for r in candidates):
                raise ConstraintViolationError(
                    f"Foreign key violation: {table}.{field}={value!r} "
                    f"not present in {ref_table}.{ref_pk}"
                )


class InMemoryAdapter:
    """In-memory implementation of the ``DatabaseClient`` protocol.

    Args:
        primary_keys: Table name -> primary key column.  Tables not listed
            have no uniqueness constraint.
        foreign_keys: Table name -> list of ``(column, referenced_table)``.
            The referenced column is that table's primary key.

    Example:
        adapter = InMemoryAdapter(
            primary_keys={"users": "id", "licenses": "id"},
            foreign_keys={"licenses": [("user_id", "users")]},
        )
    """

    def __init__(
        self,
        primary_keys: dict[str, str] | None = None,
        foreign_keys: dict[str, list[tuple[str, str]]] | None = None,
    ) -> None:
        self._tables: dict[str, list[dict]] = {}
        self._primary_keys: dict[str, str] = dict(primary_keys or {})
        self._foreign_keys: dict[str, list[tuple[str, str]]] = {
            k: list(v) for k, v in (foreign_keys or {}).items()
        }

    @classmethod
    def for_catalog(cls, catalog: EntityCatalog) -> "InMemoryAdapter":
        """Build an adapter whose constraints mirror *catalog*'s foreign keys."""
        primary_keys: dict[str, str] = {}
        foreign_keys: dict[str, list[tuple[str, str]]] = defaultdict(list)

        for entity in catalog.entities:
            primary_keys[entity.table] = entity.pk
            for ref in entity.references:
                foreign_keys[entity.table].append((ref.field, catalog.get(ref.entity).table))
            for child in entity.nested:
                primary_keys[child.table] = child.pk
                foreign_keys[child.table].append((child.parent_field, entity.table))
                for ref in child.references:
                    foreign_keys[child.table].append(
                        (ref.field, catalog.get(ref.entity).table)
                    )

        return cls(primary_keys=primary_keys, foreign_keys=dict(foreign_keys))

    def _session(self, tables: dict[str, list[dict]]) -> InMemorySession:
        return InMemorySession(tables, self._primary_keys, self._foreign_keys)

    @asynccontextmanager
    async def transaction(self, read_only: bool = False) -> AsyncIterator[InMemorySession]:
        """Work on a private copy; publish it only if the block succeeds."""
        working = copy.deepcopy(self._tables)
        yield self._session(working)
        if not read_only:
            self._tables = working

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from the live tables."""
        return await self._session(self._tables).select(table, columns, filters, order_by)

    async def insert(self, table: str, data: dict) -> dict:
        """Insert one row."""
        async with self.transaction() as session:
            return await session.insert(table, data)

    async def insert_many(self, table: str, rows: list[dict]) -> int:
        """Insert rows atomically."""
        async with self.transaction() as session:
            return await session.insert_many(table, rows)

    async def delete(self, table: str, filters: dict[str, Any] | None = None) -> None:
        """Delete rows."""
        async with self.transaction() as session:
            await session.delete(table, filters)

    async def close(self) -> None:
        """No-op; data stays available until the adapter is discarded."""
        return None


def _matches(row: dict, filters: dict[str, Any] | None) -> bool:
    if not filters:
        return True
    return all(row.get(k) == v for k, v in filters.items())
