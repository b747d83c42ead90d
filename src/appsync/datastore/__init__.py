"""Datastore infrastructure shared by the sync module.

- exceptions: error hierarchy (not-found / already-exists signals, storage errors)
- database: asyncpg pool and transaction helpers
- resilience: retry with exponential backoff
"""

from .exceptions import (
    AlreadyExistsError,
    ApplicationSyncError,
    AppSyncError,
    ConfigurationError,
    DatastoreError,
    RecordExistError,
    RecordNotExistError,
)

__all__ = [
    "AppSyncError",
    "ConfigurationError",
    "DatastoreError",
    "RecordNotExistError",
    "RecordExistError",
    "AlreadyExistsError",
    "ApplicationSyncError",
]
