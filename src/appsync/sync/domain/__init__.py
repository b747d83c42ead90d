"""Domain layer - Pure domain entities and port interfaces.

This layer contains:
- Entities: Pure data structures representing the synced records
- Compare: The three-way name comparator
- Ports: Abstract interfaces defining contracts for adapters

No infrastructure dependencies allowed in this layer.
"""

from .compare import NameComparison, three_way_compare
from .entities import (
    Application,
    ApplicationComponent,
    ApplicationPolicy,
    ApplicationRevision,
    ClusterTarget,
    CollectionSyncResult,
    CreateEnvRequest,
    CreateProjectRequest,
    CreateTargetRequest,
    Creator,
    DataStoreApp,
    DeleteFailure,
    Entity,
    Env,
    EnvBinding,
    Project,
    SyncAction,
    SyncResult,
    Target,
    Workflow,
    WorkflowRecord,
)
from .ports import (
    IDataStore,
    IEnvService,
    IProjectService,
    ITargetService,
    ListOptions,
)

__all__ = [
    # Record Entities
    "Entity",
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
    "ClusterTarget",
    "Creator",
    # Envelope and Requests
    "DataStoreApp",
    "CreateProjectRequest",
    "CreateEnvRequest",
    "CreateTargetRequest",
    # Result Entities
    "SyncAction",
    "SyncResult",
    "CollectionSyncResult",
    "DeleteFailure",
    # Comparator
    "NameComparison",
    "three_way_compare",
    # Ports
    "IDataStore",
    "IProjectService",
    "IEnvService",
    "ITargetService",
    "ListOptions",
]
