"""Use cases layer - Business logic orchestration for application sync.

This layer contains the sync protocol:
- Single-record syncers (fetch, then update in place or create)
- Collection syncers (three-way compare, ownership-gated delete, upsert)
- The application sync use case that runs them in dependency order

Use cases depend only on ports, not concrete implementations.
"""

from .store_collections import (
    CollectionSyncer,
    store_components,
    store_policies,
    store_targets,
)
from .store_records import (
    RecordSyncer,
    store_app_meta,
    store_application_revision,
    store_env,
    store_env_binding,
    store_project,
    store_workflow,
    store_workflow_record,
)
from .sync_application import SyncApplicationUseCase

__all__ = [
    # Generic syncers
    "RecordSyncer",
    "CollectionSyncer",
    # Single-record syncers
    "store_project",
    "store_app_meta",
    "store_env",
    "store_env_binding",
    "store_workflow",
    "store_workflow_record",
    "store_application_revision",
    # Collection syncers
    "store_components",
    "store_policies",
    "store_targets",
    # Driver
    "SyncApplicationUseCase",
]
