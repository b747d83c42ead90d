"""Sync module - Clean Architecture implementation of application datastore sync.

Reconciles a materialized application description against the records in
the datastore so that the stored project, application, environment,
components, policies, workflow, history and targets converge on the
desired state without deleting records sync does not own.

Architecture:
    domain/     - Pure domain entities, name comparator and port interfaces
    use_cases/  - Sync protocol and application orchestration
    adapters/   - Infrastructure implementations (PostgreSQL, in-memory)
"""

from .domain.entities import (
    Application,
    ApplicationComponent,
    ApplicationPolicy,
    ApplicationRevision,
    CollectionSyncResult,
    Creator,
    DataStoreApp,
    DeleteFailure,
    Env,
    EnvBinding,
    Project,
    SyncAction,
    SyncResult,
    Target,
    Workflow,
    WorkflowRecord,
)
from .domain.ports import (
    IDataStore,
    IEnvService,
    IProjectService,
    ITargetService,
)
from .use_cases.sync_application import SyncApplicationUseCase

__all__ = [
    # Entities
    "Project",
    "Application",
    "Env",
    "EnvBinding",
    "ApplicationComponent",
    "ApplicationPolicy",
    "Workflow",
    "WorkflowRecord",
    "ApplicationRevision",
    "Target",
    "Creator",
    "DataStoreApp",
    # Result Entities
    "SyncAction",
    "SyncResult",
    "CollectionSyncResult",
    "DeleteFailure",
    # Ports
    "IDataStore",
    "IProjectService",
    "IEnvService",
    "ITargetService",
    # Use case
    "SyncApplicationUseCase",
]
