"""PostgreSQL datastore adapter.

This adapter implements IDataStore on a single generic table. Each row
holds one entity: its kind, primary key, key/scope index (JSONB, used for
list filtering) and the full entity payload (JSONB).

Single statements are atomic per key, which is all the sync protocol
relies on. Not-found and duplicate conditions are detected from the
statement result rather than by a separate read.
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ...datastore.database import (
    convert_db_exception,
    database_connection,
    database_transaction,
)
from ...datastore.exceptions import RecordExistError, RecordNotExistError
from ..domain.entities import Entity
from ..domain.ports import E, IDataStore, ListOptions
from .record_mapper import EntityRecordMapper

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS appsync_records (
    table_name   TEXT        NOT NULL,
    primary_key  TEXT        NOT NULL,
    record_index JSONB       NOT NULL,
    payload      JSONB       NOT NULL,
    create_time  TIMESTAMPTZ NOT NULL,
    update_time  TIMESTAMPTZ NOT NULL,
    PRIMARY KEY (table_name, primary_key)
);
CREATE INDEX IF NOT EXISTS appsync_records_index_idx
    ON appsync_records USING GIN (record_index);
"""


def _affected_rows(status: str) -> int:
    """Parse the row count from an asyncpg command status like 'UPDATE 1'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


class PostgresDataStore(IDataStore):
    """PostgreSQL implementation of IDataStore.

    Example:
        pool = await create_pool(config.database_url)
        datastore = PostgresDataStore(pool)
        await datastore.ensure_schema()
    """

    def __init__(
        self,
        pool: "asyncpg.Pool",
        mapper: EntityRecordMapper | None = None,
    ):
        """Initialize the datastore.

        Args:
            pool: asyncpg connection pool for database operations
            mapper: Entity/row mapper (default EntityRecordMapper)
        """
        self.pool = pool
        self.mapper = mapper or EntityRecordMapper()

    async def ensure_schema(self) -> None:
        """Create the records table and its index if they do not exist."""
        async with database_transaction(self.pool) as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("Datastore schema ensured")

    async def get(self, entity: E) -> E:
        try:
            async with database_connection(self.pool) as conn:
                payload = await conn.fetchval(
                    """
                    SELECT payload FROM appsync_records
                    WHERE table_name = $1 AND primary_key = $2
                    """,
                    entity.table_name,
                    entity.primary_key(),
                )
        except Exception as e:
            raise convert_db_exception(e)

        if payload is None:
            raise RecordNotExistError(
                table=entity.table_name, primary_key=entity.primary_key()
            )
        return self.mapper.map_to_entity(entity.table_name, payload)

    async def add(self, entity: Entity) -> None:
        now = datetime.now(timezone.utc)
        if entity.create_time is None:
            entity.set_create_time(now)
        entity.set_update_time(now)

        try:
            async with database_connection(self.pool) as conn:
                inserted = await conn.fetchval(
                    """
                    INSERT INTO appsync_records (
                        table_name, primary_key, record_index, payload,
                        create_time, update_time
                    ) VALUES ($1, $2, $3::jsonb, $4::jsonb, $5, $6)
                    ON CONFLICT (table_name, primary_key) DO NOTHING
                    RETURNING primary_key
                    """,
                    *self.mapper.map_to_record(entity),
                )
        except Exception as e:
            raise convert_db_exception(e)

        if inserted is None:
            raise RecordExistError(
                table=entity.table_name, primary_key=entity.primary_key()
            )

    async def put(self, entity: Entity) -> None:
        entity.set_update_time()
        try:
            async with database_connection(self.pool) as conn:
                status = await conn.execute(
                    """
                    UPDATE appsync_records SET
                        record_index = $3::jsonb,
                        payload = $4::jsonb,
                        create_time = COALESCE($5, create_time),
                        update_time = $6
                    WHERE table_name = $1 AND primary_key = $2
                    """,
                    *self.mapper.map_to_record(entity),
                )
        except Exception as e:
            raise convert_db_exception(e)

        if _affected_rows(status) == 0:
            raise RecordNotExistError(
                table=entity.table_name, primary_key=entity.primary_key()
            )

    async def delete(self, entity: Entity) -> None:
        try:
            async with database_connection(self.pool) as conn:
                status = await conn.execute(
                    """
                    DELETE FROM appsync_records
                    WHERE table_name = $1 AND primary_key = $2
                    """,
                    entity.table_name,
                    entity.primary_key(),
                )
        except Exception as e:
            raise convert_db_exception(e)

        if _affected_rows(status) == 0:
            raise RecordNotExistError(
                table=entity.table_name, primary_key=entity.primary_key()
            )

    async def list(self, query: E, options: ListOptions | None = None) -> list[E]:
        options = options or ListOptions()
        order = "DESC" if options.sort_by_create_time_desc else "ASC"
        sql = f"""
            SELECT payload FROM appsync_records
            WHERE table_name = $1 AND record_index @> $2::jsonb
            ORDER BY create_time {order}, primary_key
        """
        args: list = [query.table_name, self.mapper.map_to_record(query)[2]]
        if options.page > 0 and options.page_size > 0:
            sql += " LIMIT $3 OFFSET $4"
            args += [options.page_size, (options.page - 1) * options.page_size]

        try:
            async with database_connection(self.pool) as conn:
                rows = await conn.fetch(sql, *args)
        except Exception as e:
            raise convert_db_exception(e)

        return [self.mapper.map_to_entity(query.table_name, row["payload"]) for row in rows]
