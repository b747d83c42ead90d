"""Single-record syncers - converge one singleton record per application.

Every singleton kind follows the same shape, implemented once in
``RecordSyncer``:

1. Fetch the stored record by key
2. Found: keep its create time and overwrite it (unless unchanged)
3. Not found: create it
4. Any other datastore error propagates unchanged

Workflow records and revisions are append-only and go through
``RecordSyncer.append`` instead, which never overwrites.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ...datastore.exceptions import (
    EnvAlreadyExistsError,
    ProjectAlreadyExistsError,
    RecordNotExistError,
)
from ..domain.entities import (
    AUTO_GEN_PROJECT_DESC,
    DEFAULT_ADMIN_USER_NAME,
    Application,
    CreateEnvRequest,
    DataStoreApp,
    Entity,
    Env,
    EnvBinding,
    Project,
    SyncAction,
    Workflow,
)
from ..domain.ports import IDataStore, IEnvService, IProjectService

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


def identity_of(entity: E) -> E:
    """Return a fresh entity of the same kind carrying only its key fields."""
    return type(entity)(**{f: getattr(entity, f) for f in entity.key_fields})


class RecordSyncer:
    """Fetch-then-write convergence for a single record.

    Example:
        syncer = RecordSyncer(datastore)
        action = await syncer.sync(app.app_meta)
    """

    def __init__(self, datastore: IDataStore):
        self.ds = datastore

    async def sync(
        self,
        desired: E,
        lookup: E | None = None,
        unchanged: Callable[[E, E], bool] | None = None,
        create: Callable[[E], Awaitable[SyncAction]] | None = None,
    ) -> SyncAction:
        """Create or update ``desired``.

        Args:
            desired: Desired record, written in full
            lookup: Key-only entity to fetch by (defaults to desired's key)
            unchanged: Predicate ``(existing, desired)``; when true the write
                is skipped
            create: Replaces the raw datastore insert when the record is new;
                returns the action it actually took

        Returns:
            The action taken

        Raises:
            Any datastore error other than RecordNotExistError
        """
        if lookup is None:
            lookup = identity_of(desired)
        try:
            existing = await self.ds.get(lookup)
        except RecordNotExistError:
            if create is not None:
                return await create(desired)
            await self.ds.add(desired)
            return SyncAction.CREATED

        if unchanged is not None and unchanged(existing, desired):
            return SyncAction.UNCHANGED

        desired.create_time = existing.create_time
        await self.ds.put(desired)
        return SyncAction.UPDATED

    async def append(self, desired: E) -> SyncAction:
        """Insert ``desired`` unless a record with its identity already exists.

        Stored records are never overwritten.
        """
        matches = await self.ds.list(identity_of(desired))
        if matches:
            return SyncAction.UNCHANGED
        await self.ds.add(desired)
        return SyncAction.CREATED


async def store_project(
    app: DataStoreApp,
    ds: IDataStore,
    project_service: IProjectService | None,
) -> SyncAction:
    """Create the application's project if it does not exist yet.

    An existing project is never updated. Creation is skipped entirely when
    no project service is configured.
    """
    request = app.project
    try:
        await ds.get(Project(name=request.name))
        return SyncAction.UNCHANGED
    except RecordNotExistError:
        pass

    if project_service is None:
        logger.debug(f"Project {request.name} missing, project creation disabled")
        return SyncAction.SKIPPED

    request = request.model_copy(
        update={"owner": DEFAULT_ADMIN_USER_NAME, "description": AUTO_GEN_PROJECT_DESC}
    )
    try:
        await project_service.create_project(request)
    except ProjectAlreadyExistsError:
        return SyncAction.UNCHANGED
    return SyncAction.CREATED


async def store_app_meta(app: DataStoreApp, ds: IDataStore) -> SyncAction:
    """Sync application metadata."""
    return await RecordSyncer(ds).sync(
        app.app_meta, lookup=Application(name=app.app_meta.name)
    )


async def store_env(
    app: DataStoreApp,
    ds: IDataStore,
    env_service: IEnvService,
) -> SyncAction:
    """Sync the application's environment.

    One namespace belongs to one environment. The write is skipped when the
    stored environment already binds the same targets; new environments go
    through the environment service, tolerating a concurrent creation.
    """

    async def create(env: Env) -> SyncAction:
        try:
            await env_service.create_env(
                CreateEnvRequest(
                    name=env.name,
                    alias=env.alias,
                    description=env.description,
                    project=env.project,
                    namespace=env.namespace,
                    targets=list(env.targets),
                    allow_target_conflict=True,
                )
            )
        except EnvAlreadyExistsError:
            logger.debug(f"Env {env.name} created concurrently")
            return SyncAction.UNCHANGED
        return SyncAction.CREATED

    return await RecordSyncer(ds).sync(
        app.env,
        lookup=Env(name=app.env.name),
        unchanged=lambda existing, desired: existing.has_same_targets(desired),
        create=create,
    )


async def store_env_binding(app: DataStoreApp, ds: IDataStore) -> SyncAction:
    """Sync the binding between the application and its environment."""
    eb = app.env_binding
    return await RecordSyncer(ds).sync(
        eb, lookup=EnvBinding(app_primary_key=eb.app_primary_key, name=eb.name)
    )


async def store_workflow(app: DataStoreApp, ds: IDataStore) -> SyncAction:
    """Sync the application's only workflow."""
    if app.workflow is None:
        return SyncAction.SKIPPED
    return await RecordSyncer(ds).sync(
        app.workflow,
        lookup=Workflow(app_primary_key=app.app_meta.name, name=app.workflow.name),
    )


async def store_workflow_record(app: DataStoreApp, ds: IDataStore) -> SyncAction:
    """Sync the latest workflow execution record. Records are append-only."""
    if app.record is None:
        return SyncAction.SKIPPED
    return await RecordSyncer(ds).append(app.record)


async def store_application_revision(app: DataStoreApp, ds: IDataStore) -> SyncAction:
    """Sync the application revision. Each version is written once."""
    if app.revision is None:
        return SyncAction.SKIPPED
    return await RecordSyncer(ds).append(app.revision)


__all__ = [
    "RecordSyncer",
    "identity_of",
    "store_project",
    "store_app_meta",
    "store_env",
    "store_env_binding",
    "store_workflow",
    "store_workflow_record",
    "store_application_revision",
]
