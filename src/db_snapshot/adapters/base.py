"""Database client protocol definitions.

Defines the ``DatabaseSession`` Protocol (CRUD inside one transaction) and
the ``DatabaseClient`` Protocol (autocommit CRUD plus ``transaction()``)
that all adapters must implement.  All I/O methods are ``async def``.

Rows are plain dicts keyed by column name; the engine never depends on an
ORM model class.

Usage:
    from db_snapshot.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        async with client.transaction() as session:
            await session.delete("plan_prices")
            await session.insert_many("currencies", [{"code": "USD", "rate": 1}])
        await client.close()
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol


class DatabaseSession(Protocol):
    """CRUD operations bound to one open transaction.

    Nothing done through a session is visible outside it until the
    enclosing ``transaction()`` block exits without an exception.
    """

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name.
            columns: Comma-separated column names, or ``"*"``.
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.
        """
        ...

    async def insert(self, table: str, data: dict) -> dict:
        """Insert one row and return the created row.

        Raises:
            Exception: If duplicate key or constraint violation.
        """
        ...

    async def insert_many(self, table: str, rows: list[dict]) -> int:
        """Insert many rows in one call and return the number inserted.

        Raises:
            Exception: If any row violates a constraint.  No row from the
                call is kept in that case.
        """
        ...

    async def delete(self, table: str, filters: dict[str, Any] | None = None) -> None:
        """Delete rows matching *filters*, or every row when *filters* is ``None``."""
        ...


class DatabaseClient(DatabaseSession, Protocol):
    """Database client interface that all adapters must implement.

    The CRUD methods inherited from ``DatabaseSession`` each run in their
    own short transaction.  Multi-statement work goes through
    ``transaction()``.

    Example:
        async with client.transaction(read_only=True) as session:
            users = await session.select("users")
    """

    def transaction(
        self, read_only: bool = False
    ) -> AbstractAsyncContextManager[DatabaseSession]:
        """Open one atomic transaction.

        Commits when the block exits normally and rolls back when it
        raises.  ``read_only=True`` asks for a consistent read view
        (snapshot isolation) for the whole block.
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
