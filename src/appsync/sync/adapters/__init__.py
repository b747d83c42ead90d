"""Adapters layer - Infrastructure implementations for application sync.

This layer contains concrete implementations of the ports defined in the domain layer:
- PostgresDataStore: PostgreSQL implementation of IDataStore
- InMemoryDataStore: Dictionary implementation of IDataStore (dry runs, tests)
- EntityRecordMapper: Entity <-> stored row / JSON transformation
- DatastoreProjectService, DatastoreEnvService, DatastoreTargetService:
  creation services implemented on any IDataStore
"""

from .memory_datastore import InMemoryDataStore
from .postgres_datastore import PostgresDataStore
from .record_mapper import EntityRecordMapper
from .services import (
    DatastoreEnvService,
    DatastoreProjectService,
    DatastoreTargetService,
)

__all__ = [
    # Datastores
    "InMemoryDataStore",
    "PostgresDataStore",
    # Mapping
    "EntityRecordMapper",
    # Services
    "DatastoreProjectService",
    "DatastoreEnvService",
    "DatastoreTargetService",
]
