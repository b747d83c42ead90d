"""Domain entities for application sync operations.

These are pure data structures with no infrastructure dependencies.
Every persisted entity knows its own storage identity (table name,
primary key and index fields), which is all the datastore port needs.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, Field

# Default owner of projects created by sync
DEFAULT_ADMIN_USER_NAME = "admin"

# Description stamped on projects generated by sync
AUTO_GEN_PROJECT_DESC = "Automatically generated by sync mechanism."


class Creator(str, Enum):
    """Who owns a component or policy record.

    Only SYNC_MANAGED records may be deleted by the collection syncer.
    """

    SYNC_MANAGED = "Automatically generated by sync mechanism"
    EXTERNALLY_OWNED = "external"

    @classmethod
    def from_value(cls, value: str | None) -> "Creator":
        """Map a stored creator string onto the two ownership variants."""
        if value == cls.SYNC_MANAGED.value:
            return cls.SYNC_MANAGED
        return cls.EXTERNALLY_OWNED


@dataclass(kw_only=True)
class Entity:
    """Base for every record kind stored by the datastore.

    Subclasses declare ``table_name`` and ``key_fields``. ``primary_key`` is
    the single key value, or a JSON array of the values for composite keys.
    ``index`` returns the non-empty key fields so a partially filled entity
    can act as a list filter.
    """

    table_name: ClassVar[str] = ""
    key_fields: ClassVar[tuple[str, ...]] = ("name",)

    create_time: datetime | None = None
    update_time: datetime | None = None

    def primary_key(self) -> str:
        if len(self.key_fields) == 1:
            return str(getattr(self, self.key_fields[0]))
        # JSON array so values containing the separator cannot collide
        return json.dumps([str(getattr(self, f)) for f in self.key_fields])

    def index(self) -> dict[str, str]:
        return {
            f: str(getattr(self, f))
            for f in self.key_fields
            if getattr(self, f) not in (None, "")
        }

    def set_create_time(self, when: datetime | None = None) -> None:
        self.create_time = when or datetime.now(timezone.utc)

    def set_update_time(self, when: datetime | None = None) -> None:
        self.update_time = when or datetime.now(timezone.utc)


# ============================================
# Singleton Entities
# ============================================


@dataclass(kw_only=True)
class Project(Entity):
    """A project groups applications, environments and targets."""

    table_name: ClassVar[str] = "project"

    name: str = ""
    alias: str = ""
    owner: str = ""
    description: str = ""
    namespace: str = ""


@dataclass(kw_only=True)
class Application(Entity):
    """Application metadata, one record per synced application."""

    table_name: ClassVar[str] = "application"

    name: str = ""
    alias: str = ""
    project: str = ""
    description: str = ""
    icon: str = ""
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class Env(Entity):
    """An environment binds a namespace in a project to a set of targets."""

    table_name: ClassVar[str] = "env"

    name: str = ""
    alias: str = ""
    description: str = ""
    project: str = ""
    namespace: str = ""
    targets: list[str] = field(default_factory=list)

    def has_same_targets(self, other: "Env") -> bool:
        """Order-insensitive comparison of bound target names."""
        return sorted(self.targets) == sorted(other.targets)


@dataclass(kw_only=True)
class EnvBinding(Entity):
    """Links an application to its environment.

    ``name`` is the environment name.
    """

    table_name: ClassVar[str] = "envbinding"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "name")

    app_primary_key: str = ""
    name: str = ""
    app_deploy_name: str = ""


@dataclass(kw_only=True)
class Workflow(Entity):
    """The active workflow of an application."""

    table_name: ClassVar[str] = "workflow"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "name")

    app_primary_key: str = ""
    name: str = ""
    alias: str = ""
    description: str = ""
    env_name: str = ""
    default: bool = True
    steps: list[dict[str, Any]] = field(default_factory=list)


@dataclass(kw_only=True)
class WorkflowRecord(Entity):
    """An immutable record of one workflow execution."""

    table_name: ClassVar[str] = "workflow_record"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "name")

    app_primary_key: str = ""
    name: str = ""
    workflow_name: str = ""
    revision: str = ""
    status: str = ""
    message: str = ""
    start_time: datetime | None = None
    finished: bool = False
    steps: list[dict[str, Any]] = field(default_factory=list)


@dataclass(kw_only=True)
class ApplicationRevision(Entity):
    """A versioned snapshot of an application, one record per version."""

    table_name: ClassVar[str] = "application_revision"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "version")

    app_primary_key: str = ""
    version: str = ""
    revision_cr_name: str = ""
    status: str = ""
    env_name: str = ""
    workflow_name: str = ""
    apply_app_config: str = ""
    triggered_by: str = ""
    note: str = ""

    @property
    def name(self) -> str:
        return self.version


# ============================================
# Collection Entities
# ============================================


@dataclass(kw_only=True)
class ApplicationComponent(Entity):
    """A component of an application."""

    table_name: ClassVar[str] = "application_component"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "name")

    app_primary_key: str = ""
    name: str = ""
    alias: str = ""
    description: str = ""
    type: str = ""
    main: bool = False
    depends_on: list[str] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    creator: Creator = Creator.EXTERNALLY_OWNED

    @property
    def sync_deletable(self) -> bool:
        """Business rule: only components generated by sync may be removed by it."""
        return self.creator is Creator.SYNC_MANAGED


@dataclass(kw_only=True)
class ApplicationPolicy(Entity):
    """A policy of an application.

    Reference policies point at shared definitions owned elsewhere and are
    flagged explicitly so deletion never depends on the creator tag alone.
    """

    table_name: ClassVar[str] = "application_policy"
    key_fields: ClassVar[tuple[str, ...]] = ("app_primary_key", "name")

    app_primary_key: str = ""
    name: str = ""
    description: str = ""
    type: str = ""
    properties: dict[str, Any] = field(default_factory=dict)
    env_name: str = ""
    workflow_policy: bool = False
    is_reference: bool = False
    creator: Creator = Creator.EXTERNALLY_OWNED

    @property
    def sync_deletable(self) -> bool:
        """Business rule: sync only removes policies it generated and that are not references."""
        return self.creator is Creator.SYNC_MANAGED and not self.is_reference


@dataclass
class ClusterTarget:
    """Cluster connection of a deployment target."""

    cluster_name: str = ""
    namespace: str = ""


@dataclass(kw_only=True)
class Target(Entity):
    """A deployment target (cluster + namespace)."""

    table_name: ClassVar[str] = "target"

    name: str = ""
    alias: str = ""
    project: str = ""
    description: str = ""
    cluster: ClusterTarget | None = None
    variable: dict[str, Any] = field(default_factory=dict)


# ============================================
# Creation Service Requests
# ============================================


class CreateProjectRequest(BaseModel):
    """Request accepted by the project creation service."""

    name: str
    alias: str = ""
    description: str = ""
    owner: str = ""
    namespace: str = ""


class CreateEnvRequest(BaseModel):
    """Request accepted by the environment creation service."""

    name: str
    alias: str = ""
    description: str = ""
    project: str = ""
    namespace: str = ""
    targets: list[str] = Field(default_factory=list)
    allow_target_conflict: bool = False


class CreateTargetRequest(BaseModel):
    """Request accepted by the target creation service."""

    name: str
    alias: str = ""
    project: str = ""
    description: str = ""
    cluster: ClusterTarget | None = None
    variable: dict[str, Any] = Field(default_factory=dict)


# ============================================
# Entity Envelope
# ============================================


@dataclass
class DataStoreApp:
    """The desired state of one application, fully materialized.

    Every record the sync writes for the application is carried here;
    ``record`` and ``revision`` are optional because an application that
    never ran has neither.
    """

    project: CreateProjectRequest
    app_meta: Application
    env: Env
    env_binding: EnvBinding
    components: list[ApplicationComponent] = field(default_factory=list)
    policies: list[ApplicationPolicy] = field(default_factory=list)
    workflow: Workflow | None = None
    targets: list[Target] = field(default_factory=list)
    record: WorkflowRecord | None = None
    revision: ApplicationRevision | None = None

    @property
    def app_primary_key(self) -> str:
        return self.app_meta.primary_key()


# ============================================
# Result Entities
# ============================================


class SyncAction(str, Enum):
    """Outcome of syncing one singleton record."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"


@dataclass
class DeleteFailure:
    """A best-effort deletion that failed and was skipped."""

    kind: str
    name: str
    error: str


@dataclass
class CollectionSyncResult:
    """Outcome of syncing one collection of entities."""

    kind: str
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    delete_failures: list[DeleteFailure] = field(default_factory=list)

    @property
    def has_delete_failures(self) -> bool:
        return bool(self.delete_failures)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "created": list(self.created),
            "updated": list(self.updated),
            "deleted": list(self.deleted),
            "unchanged": list(self.unchanged),
            "delete_failures": [
                {"name": f.name, "error": f.error} for f in self.delete_failures
            ],
        }


@dataclass
class SyncResult:
    """Result of syncing one application.

    Contains the outcome of every step that ran and any errors encountered.
    """

    app_name: str
    success: bool
    synced_at: datetime
    completed_at: datetime | None = None
    records: dict[str, SyncAction] = field(default_factory=dict)
    collections: dict[str, CollectionSyncResult] = field(default_factory=dict)
    failed_step: str | None = None
    error_details: list[str] = field(default_factory=list)

    @property
    def delete_failures(self) -> list[DeleteFailure]:
        failures: list[DeleteFailure] = []
        for result in self.collections.values():
            failures.extend(result.delete_failures)
        return failures

    @property
    def duration_seconds(self) -> float | None:
        """Calculate sync duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.synced_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging and CLI output."""
        return {
            "app": self.app_name,
            "success": self.success,
            "synced_at": self.synced_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "records": {k: v.value for k, v in self.records.items()},
            "collections": {k: v.to_dict() for k, v in self.collections.items()},
            "failed_step": self.failed_step,
            "errors": list(self.error_details),
        }
