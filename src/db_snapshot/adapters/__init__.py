"""Database adapters package.

Provides the ``DatabaseClient`` / ``DatabaseSession`` Protocols and the
concrete async adapters: ``AsyncPostgresAdapter`` for production and
``InMemoryAdapter`` for tests and local experiments.

Usage:
    from db_snapshot.adapters import DatabaseClient, AsyncPostgresAdapter, InMemoryAdapter
"""

from db_snapshot.adapters.base import DatabaseClient, DatabaseSession
from db_snapshot.adapters.memory import ConstraintViolationError, InMemoryAdapter
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "DatabaseClient",
    "DatabaseSession",
    "AsyncPostgresAdapter",
    "InMemoryAdapter",
    "ConstraintViolationError",
]
