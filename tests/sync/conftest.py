"""Shared fixtures for sync tests."""

from typing import Any

import pytest

from appsync.datastore.exceptions import DatastoreError
from appsync.sync.adapters import (
    DatastoreEnvService,
    DatastoreProjectService,
    DatastoreTargetService,
    InMemoryDataStore,
)
from appsync.sync.domain.entities import (
    Application,
    ApplicationComponent,
    ApplicationPolicy,
    ApplicationRevision,
    ClusterTarget,
    CreateProjectRequest,
    Creator,
    DataStoreApp,
    Entity,
    Env,
    EnvBinding,
    Target,
    Workflow,
    WorkflowRecord,
)


class FaultyDataStore(InMemoryDataStore):
    """In-memory datastore that fails chosen operations and records every call.

    ``failures`` maps (operation, entity name) to the exception to raise,
    e.g. ``{("delete", "a"): DatastoreError("boom")}``.
    """

    def __init__(self):
        super().__init__()
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str, str]] = []

    def _check(self, op: str, entity: Entity) -> None:
        name = getattr(entity, "name", "")
        self.calls.append((op, entity.table_name, name))
        error = self.failures.get((op, name))
        if error is not None:
            raise error

    async def get(self, entity):
        self._check("get", entity)
        return await super().get(entity)

    async def add(self, entity):
        self._check("add", entity)
        await super().add(entity)

    async def put(self, entity):
        self._check("put", entity)
        await super().put(entity)

    async def delete(self, entity):
        self._check("delete", entity)
        await super().delete(entity)

    def ops(self, op: str, table_name: str | None = None) -> list[str]:
        """Entity names passed to ``op``, optionally for one kind."""
        return [
            name
            for o, table, name in self.calls
            if o == op and (table_name is None or table == table_name)
        ]

    async def list(self, query, options=None):
        self._check("list", query)
        return await super().list(query, options)


def _make_component(name: str, creator: Creator = Creator.SYNC_MANAGED, **kwargs: Any):
    return ApplicationComponent(
        app_primary_key="demo", name=name, type="webservice", creator=creator, **kwargs
    )


def _make_policy(name: str, creator: Creator = Creator.SYNC_MANAGED, **kwargs: Any):
    return ApplicationPolicy(
        app_primary_key="demo", name=name, type="topology", creator=creator, **kwargs
    )


def _make_app(**overrides: Any) -> DataStoreApp:
    """Build a complete desired state for the application "demo"."""
    fields: dict[str, Any] = dict(
        project=CreateProjectRequest(name="team-a", alias="Team A"),
        app_meta=Application(name="demo", project="team-a", alias="Demo"),
        env=Env(
            name="syncenv-default",
            project="team-a",
            namespace="default",
            targets=["syncenv-local-default"],
        ),
        env_binding=EnvBinding(app_primary_key="demo", name="syncenv-default"),
        components=[_make_component("web"), _make_component("worker")],
        policies=[_make_policy("topology-local")],
        workflow=Workflow(
            app_primary_key="demo",
            name="workflow-syncenv-default",
            env_name="syncenv-default",
            steps=[{"name": "deploy", "type": "deploy"}],
        ),
        targets=[
            Target(
                name="syncenv-local-default",
                project="team-a",
                cluster=ClusterTarget(cluster_name="local", namespace="default"),
            )
        ],
        record=WorkflowRecord(
            app_primary_key="demo",
            name="demo-v1",
            workflow_name="workflow-syncenv-default",
            revision="demo-v1",
            status="succeeded",
            finished=True,
        ),
        revision=ApplicationRevision(
            app_primary_key="demo",
            version="demo-v1",
            revision_cr_name="demo-v1",
            status="complete",
            env_name="syncenv-default",
        ),
    )
    fields.update(overrides)
    return DataStoreApp(**fields)


@pytest.fixture
def datastore() -> FaultyDataStore:
    return FaultyDataStore()


@pytest.fixture
def env_service(datastore) -> DatastoreEnvService:
    return DatastoreEnvService(datastore)


@pytest.fixture
def target_service(datastore) -> DatastoreTargetService:
    return DatastoreTargetService(datastore)


@pytest.fixture
def project_service(datastore) -> DatastoreProjectService:
    return DatastoreProjectService(datastore)


@pytest.fixture
def storage_error() -> DatastoreError:
    return DatastoreError("storage unavailable")


@pytest.fixture
def make_app():
    return _make_app


@pytest.fixture
def make_component():
    return _make_component


@pytest.fixture
def make_policy():
    return _make_policy
