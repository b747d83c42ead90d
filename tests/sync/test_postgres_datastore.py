"""Tests for the PostgresDataStore adapter.

Unit tests run against a fake asyncpg pool. Integration tests need a
running PostgreSQL and are skipped unless DATABASE_URL is set; they use
'TEST-' prefixed keys and delete them afterwards.
"""

import json
import os
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest
import pytest_asyncio
from dotenv import load_dotenv

from appsync.datastore.database import close_pool, create_pool
from appsync.datastore.exceptions import (
    DatastoreError,
    RecordExistError,
    RecordNotExistError,
    TransactionError,
)
from appsync.sync.adapters.postgres_datastore import PostgresDataStore, _affected_rows
from appsync.sync.domain.entities import (
    Application,
    ApplicationComponent,
    Creator,
)
from appsync.sync.domain.ports import ListOptions

# Load environment variables from .env file (for local development)
load_dotenv()

requires_database = pytest.mark.skipif(
    not os.getenv("DATABASE_URL"),
    reason="DATABASE_URL not set",
)


def _fake_pool(conn):
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=conn)
    pool.release = AsyncMock()
    return pool


# ============================================
# Unit Tests (fake pool)
# ============================================

class TestPostgresDataStoreUnit:
    """Tests for statement results and error mapping."""

    @pytest.fixture
    def conn(self):
        conn = MagicMock()
        conn.fetchval = AsyncMock()
        conn.execute = AsyncMock()
        conn.fetch = AsyncMock(return_value=[])
        return conn

    @pytest.fixture
    def store(self, conn):
        return PostgresDataStore(_fake_pool(conn))

    def test_affected_rows(self):
        assert _affected_rows("UPDATE 1") == 1
        assert _affected_rows("DELETE 0") == 0
        assert _affected_rows(None) == 0

    async def test_get_decodes_payload(self, store, conn):
        conn.fetchval.return_value = json.dumps({"name": "demo", "alias": "Demo"})

        app = await store.get(Application(name="demo"))

        assert app == Application(name="demo", alias="Demo")
        assert conn.fetchval.call_args.args[1:] == ("application", "demo")

    async def test_get_missing_raises_not_exist(self, store, conn):
        conn.fetchval.return_value = None

        with pytest.raises(RecordNotExistError):
            await store.get(Application(name="demo"))

    async def test_add_conflict_raises_exist(self, store, conn):
        conn.fetchval.return_value = None

        with pytest.raises(RecordExistError):
            await store.add(Application(name="demo"))

    async def test_add_stamps_create_time(self, store, conn):
        conn.fetchval.return_value = "demo"
        app = Application(name="demo")

        await store.add(app)

        assert app.create_time is not None
        assert conn.fetchval.call_args.args[5] == app.create_time

    async def test_put_without_row_raises_not_exist(self, store, conn):
        conn.execute.return_value = "UPDATE 0"

        with pytest.raises(RecordNotExistError):
            await store.put(Application(name="demo"))

    async def test_delete_without_row_raises_not_exist(self, store, conn):
        conn.execute.return_value = "DELETE 0"

        with pytest.raises(RecordNotExistError):
            await store.delete(Application(name="demo"))

    async def test_driver_errors_are_converted(self, store, conn):
        conn.execute.side_effect = asyncpg.DeadlockDetectedError("deadlock detected")

        with pytest.raises(TransactionError):
            await store.delete(Application(name="demo"))

    async def test_unique_violation_on_add_is_record_exist(self, store, conn):
        conn.fetchval.side_effect = asyncpg.UniqueViolationError("duplicate key value")

        with pytest.raises(RecordExistError):
            await store.add(Application(name="demo"))

    async def test_ensure_schema_commits_transaction(self, store, conn):
        transaction = MagicMock()
        transaction.start = AsyncMock()
        transaction.commit = AsyncMock()
        transaction.rollback = AsyncMock()
        conn.transaction.return_value = transaction

        await store.ensure_schema()

        transaction.commit.assert_awaited_once()
        transaction.rollback.assert_not_awaited()

    async def test_list_filters_on_index_and_pages(self, store, conn):
        await store.list(
            ApplicationComponent(app_primary_key="demo"),
            ListOptions(page=2, page_size=10, sort_by_create_time_desc=True),
        )

        sql, *args = conn.fetch.call_args.args
        assert "DESC" in sql
        assert "LIMIT $3 OFFSET $4" in sql
        assert args[0] == "application_component"
        assert json.loads(args[1]) == {"app_primary_key": "demo"}
        assert args[2:] == [10, 10]

    async def test_missing_pool_is_a_datastore_error(self):
        store = PostgresDataStore(None)

        with pytest.raises(DatastoreError):
            await store.get(Application(name="demo"))


# ============================================
# Integration Tests
# ============================================

@pytest_asyncio.fixture
async def pg_store():
    """PostgresDataStore on a real pool, with TEST- rows removed afterwards."""
    pool = await create_pool(os.getenv("DATABASE_URL"), min_size=1, max_size=2)
    store = PostgresDataStore(pool)
    await store.ensure_schema()
    yield store
    async with pool.acquire() as conn:
        await conn.execute(
            "DELETE FROM appsync_records "
            "WHERE primary_key LIKE 'TEST-%' OR record_index->>'app_primary_key' LIKE 'TEST-%'"
        )
    await close_pool(pool)


@requires_database
class TestPostgresDataStoreIntegration:
    """Round trips against a live database."""

    async def test_add_get_put_delete(self, pg_store):
        await pg_store.add(Application(name="TEST-demo", alias="one"))
        first = await pg_store.get(Application(name="TEST-demo"))

        first.alias = "two"
        await pg_store.put(first)
        second = await pg_store.get(Application(name="TEST-demo"))

        assert second.alias == "two"
        assert second.create_time == first.create_time

        await pg_store.delete(second)
        with pytest.raises(RecordNotExistError):
            await pg_store.get(Application(name="TEST-demo"))

    async def test_duplicate_add_raises(self, pg_store):
        await pg_store.add(Application(name="TEST-dup"))

        with pytest.raises(RecordExistError):
            await pg_store.add(Application(name="TEST-dup"))

    async def test_list_by_application_scope(self, pg_store):
        for name in ("web", "db"):
            await pg_store.add(
                ApplicationComponent(
                    app_primary_key="TEST-app", name=name, creator=Creator.SYNC_MANAGED
                )
            )

        found = await pg_store.list(ApplicationComponent(app_primary_key="TEST-app"))

        assert {c.name for c in found} == {"web", "db"}
        assert all(c.creator is Creator.SYNC_MANAGED for c in found)

    async def test_composite_keys_with_dashes_are_distinct_rows(self, pg_store):
        await pg_store.add(ApplicationComponent(app_primary_key="TEST-shop", name="a-web"))
        await pg_store.add(ApplicationComponent(app_primary_key="TEST-shop-a", name="web"))

        found = await pg_store.list(ApplicationComponent(app_primary_key="TEST-shop-a"))

        assert [c.name for c in found] == ["web"]
