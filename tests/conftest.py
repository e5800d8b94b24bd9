"""Shared fixtures: an in-memory back-office store and a temp artifact directory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from db_snapshot.adapters.memory import InMemoryAdapter
from db_snapshot.backup.storage import SnapshotStorage
from db_snapshot.catalog import DEFAULT_CATALOG


SEED_ROWS: dict[str, list[dict]] = {
    "currencies": [
        {"code": "USD", "name": "US Dollar", "symbol": "$", "exchange_rate": 1.0},
        {"code": "EUR", "name": "Euro", "symbol": "€", "exchange_rate": 0.92},
    ],
    "users": [
        {
            "id": "u1",
            "email": "admin@example.com",
            "password_hash": "$2b$10$abcdefghijklmnopqrstuv",
            "role": "SUPER_ADMIN",
            "created_at": "2026-01-01T00:00:00+00:00",
        },
        {
            "id": "u2",
            "email": "support@example.com",
            "password_hash": "$2b$10$zyxwvutsrqponmlkjihgfe",
            "role": "SUPPORT",
            "created_at": "2026-01-02T00:00:00+00:00",
        },
    ],
    "subscription_plans": [
        {"id": "p1", "name": "Clinic Pro", "features": {"sms": True}, "limits": {"users": 10}},
    ],
    "plan_prices": [
        {"id": "pp1", "plan_id": "p1", "currency": "USD", "monthly_price": 49.0},
        {"id": "pp2", "plan_id": "p1", "currency": "EUR", "monthly_price": 45.0},
    ],
    "licenses": [
        {
            "id": "l1",
            "license_key": "ABCD-1234",
            "plan_id": "p1",
            "user_id": "u1",
            "status": "ACTIVE",
            "expire_date": "2027-01-01T00:00:00+00:00",
        },
    ],
}


async def seed(adapter: InMemoryAdapter, rows: dict[str, list[dict]] = SEED_ROWS) -> None:
    """Insert *rows* table by table (tables listed parents first)."""
    for table, table_rows in rows.items():
        await adapter.insert_many(table, table_rows)


@pytest.fixture
def adapter() -> InMemoryAdapter:
    """Empty in-memory store with the default catalog's constraints."""
    return InMemoryAdapter.for_catalog(DEFAULT_CATALOG)


@pytest.fixture
async def seeded_adapter(adapter: InMemoryAdapter) -> InMemoryAdapter:
    """Store holding 2 users, 1 plan with 2 prices, 1 license and no tickets."""
    await seed(adapter)
    return adapter


@pytest.fixture
def storage(tmp_path: Path) -> SnapshotStorage:
    return SnapshotStorage(tmp_path / "backups")


class RecordingAdapter:
    """Adapter whose transaction yields an ``AsyncMock`` session.

    Every call made through the session is kept in ``session.mock_calls``
    in the order it happened.
    """

    def __init__(self) -> None:
        self.session = AsyncMock()
        self.session.select.return_value = []
        self.session.insert.side_effect = lambda table, data: dict(data)
        self.session.insert_many.side_effect = lambda table, rows: len(rows)
        self.read_only_flags: list[bool] = []

    @asynccontextmanager
    async def transaction(self, read_only: bool = False) -> AsyncIterator[AsyncMock]:
        self.read_only_flags.append(read_only)
        yield self.session

    async def close(self) -> None:
        return None


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()
