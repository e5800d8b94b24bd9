"""Tests for the in-memory adapter used as a stand-in relational store."""

import pytest

from db_snapshot.adapters.base import DatabaseClient
from db_snapshot.adapters.memory import ConstraintViolationError, InMemoryAdapter


@pytest.fixture
def shop() -> InMemoryAdapter:
    return InMemoryAdapter(
        primary_keys={"authors": "id", "books": "id"},
        foreign_keys={"books": [("author_id", "authors")]},
    )


class TestCrud:
    """Basic select/insert/delete behaviour."""

    async def test_insert_and_select(self, shop):
        await shop.insert("authors", {"id": "a1", "name": "Ann"})
        rows = await shop.select("authors")
        assert rows == [{"id": "a1", "name": "Ann"}]

    async def test_select_filters_and_order(self, shop):
        await shop.insert_many("authors", [
            {"id": "a2", "name": "Bob"},
            {"id": "a1", "name": "Ann"},
        ])
        assert [r["id"] for r in await shop.select("authors", order_by="id")] == ["a1", "a2"]
        assert await shop.select("authors", "name", filters={"id": "a2"}) == [{"name": "Bob"}]

    async def test_select_returns_copies(self, shop):
        await shop.insert("authors", {"id": "a1", "tags": ["x"]})
        rows = await shop.select("authors")
        rows[0]["tags"].append("y")
        assert (await shop.select("authors"))[0]["tags"] == ["x"]

    async def test_metadata_fields_dropped(self, shop):
        row = await shop.insert("authors", {"id": "a1", "_source": "import"})
        assert row == {"id": "a1"}

    async def test_delete_all(self, shop):
        await shop.insert_many("authors", [{"id": "a1"}, {"id": "a2"}])
        await shop.delete("authors")
        assert await shop.select("authors") == []

    async def test_satisfies_protocol(self, shop):
        client: DatabaseClient = shop
        await client.close()


class TestConstraints:
    """Primary and foreign keys are enforced."""

    async def test_duplicate_primary_key(self, shop):
        await shop.insert("authors", {"id": "a1"})
        with pytest.raises(ConstraintViolationError, match="Duplicate key"):
            await shop.insert("authors", {"id": "a1"})

    async def test_insert_many_is_all_or_nothing(self, shop):
        with pytest.raises(ConstraintViolationError):
            await shop.insert_many("authors", [{"id": "a1"}, {"id": "a2"}, {"id": "a1"}])
        assert await shop.select("authors") == []

    async def test_missing_foreign_key(self, shop):
        with pytest.raises(ConstraintViolationError, match="Foreign key"):
            await shop.insert("books", {"id": "b1", "author_id": "ghost"})

    async def test_null_foreign_key_allowed(self, shop):
        await shop.insert("books", {"id": "b1", "author_id": None})

    async def test_delete_restricted_while_referenced(self, shop):
        await shop.insert("authors", {"id": "a1"})
        await shop.insert("books", {"id": "b1", "author_id": "a1"})
        with pytest.raises(ConstraintViolationError, match="Cannot delete from authors"):
            await shop.delete("authors")
        await shop.delete("books")
        await shop.delete("authors")


class TestTransactions:
    """Transactions publish their changes only on success."""

    async def test_commit(self, shop):
        async with shop.transaction() as session:
            await session.insert("authors", {"id": "a1"})
            assert await shop.select("authors") == []
        assert len(await shop.select("authors")) == 1

    async def test_rollback_on_error(self, shop):
        await shop.insert("authors", {"id": "a1"})
        with pytest.raises(RuntimeError):
            async with shop.transaction() as session:
                await session.delete("authors")
                await session.insert("authors", {"id": "a2"})
                raise RuntimeError("boom")
        assert await shop.select("authors") == [{"id": "a1"}]

    async def test_read_only_discards_writes(self, shop):
        async with shop.transaction(read_only=True) as session:
            await session.insert("authors", {"id": "a1"})
        assert await shop.select("authors") == []
