"""In-memory datastore adapter.

Implements IDataStore on a dictionary keyed by (table name, primary key).
Used for dry runs and as the reference datastore in tests. Entities are
deep-copied on the way in and out, so callers never share state with
the store.
"""

import copy
import logging
from datetime import datetime, timezone

from ...datastore.exceptions import RecordExistError, RecordNotExistError
from ..domain.entities import Entity
from ..domain.ports import E, IDataStore, ListOptions

logger = logging.getLogger(__name__)


class InMemoryDataStore(IDataStore):
    """Dictionary-backed implementation of IDataStore.

    Keys are addressed the same way the Postgres adapter addresses them,
    so behaviour (not-found and duplicate errors, list filtering, create
    time stamping) matches across both.
    """

    def __init__(self):
        self._records: dict[tuple[str, str], Entity] = {}

    @staticmethod
    def _key(entity: Entity) -> tuple[str, str]:
        return (entity.table_name, entity.primary_key())

    async def get(self, entity: E) -> E:
        stored = self._records.get(self._key(entity))
        if stored is None:
            raise RecordNotExistError(
                table=entity.table_name, primary_key=entity.primary_key()
            )
        return copy.deepcopy(stored)

    async def add(self, entity: Entity) -> None:
        key = self._key(entity)
        if key in self._records:
            raise RecordExistError(table=key[0], primary_key=key[1])
        now = datetime.now(timezone.utc)
        if entity.create_time is None:
            entity.set_create_time(now)
        entity.set_update_time(now)
        self._records[key] = copy.deepcopy(entity)
        logger.debug(f"Added {key[0]} {key[1]}")

    async def put(self, entity: Entity) -> None:
        key = self._key(entity)
        if key not in self._records:
            raise RecordNotExistError(table=key[0], primary_key=key[1])
        entity.set_update_time()
        self._records[key] = copy.deepcopy(entity)

    async def delete(self, entity: Entity) -> None:
        key = self._key(entity)
        if self._records.pop(key, None) is None:
            raise RecordNotExistError(table=key[0], primary_key=key[1])
        logger.debug(f"Deleted {key[0]} {key[1]}")

    async def list(self, query: E, options: ListOptions | None = None) -> list[E]:
        index = query.index()
        matches = [
            copy.deepcopy(record)
            for (table, _), record in self._records.items()
            if table == query.table_name and record.index().items() >= index.items()
        ]
        options = options or ListOptions()
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        matches.sort(
            key=lambda r: r.create_time or oldest,
            reverse=options.sort_by_create_time_desc,
        )
        if options.page > 0 and options.page_size > 0:
            start = (options.page - 1) * options.page_size
            matches = matches[start:start + options.page_size]
        return matches

    def count(self, table_name: str | None = None) -> int:
        """Number of stored records, optionally of one kind."""
        if table_name is None:
            return len(self._records)
        return sum(1 for table, _ in self._records if table == table_name)
