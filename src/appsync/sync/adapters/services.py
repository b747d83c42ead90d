"""Datastore-backed creation services.

These adapters implement the project, environment and target creation
ports directly on an IDataStore. They apply the defaults a record gets
when it is first created (alias, owner, namespace) and report a taken
name with the matching AlreadyExists error.
"""

import logging

from ...datastore.exceptions import (
    EnvAlreadyExistsError,
    ProjectAlreadyExistsError,
    RecordExistError,
    TargetAlreadyExistsError,
)
from ..domain.entities import (
    DEFAULT_ADMIN_USER_NAME,
    CreateEnvRequest,
    CreateProjectRequest,
    CreateTargetRequest,
    Env,
    Project,
    Target,
)
from ..domain.ports import IDataStore, IEnvService, IProjectService, ITargetService

logger = logging.getLogger(__name__)


class DatastoreProjectService(IProjectService):
    """Creates projects, owned by the admin user unless told otherwise."""

    def __init__(self, datastore: IDataStore):
        self.ds = datastore

    async def create_project(self, request: CreateProjectRequest) -> Project:
        project = Project(
            name=request.name,
            alias=request.alias or request.name,
            owner=request.owner or DEFAULT_ADMIN_USER_NAME,
            description=request.description,
            namespace=request.namespace,
        )
        try:
            await self.ds.add(project)
        except RecordExistError as e:
            raise ProjectAlreadyExistsError(name=request.name, cause=e)
        logger.info(f"Created project {project.name}")
        return project


class DatastoreEnvService(IEnvService):
    """Creates environments.

    Unless ``allow_target_conflict`` is set, a target may only be bound by
    one environment of a project; a conflicting request raises ValueError.
    """

    def __init__(self, datastore: IDataStore):
        self.ds = datastore

    async def create_env(self, request: CreateEnvRequest) -> Env:
        if not request.allow_target_conflict and request.targets:
            for other in await self.ds.list(Env()):
                if other.project != request.project:
                    continue
                shared = set(other.targets) & set(request.targets)
                if shared:
                    raise ValueError(
                        f"targets {sorted(shared)} already used by env {other.name}"
                    )

        env = Env(
            name=request.name,
            alias=request.alias or request.name,
            description=request.description,
            project=request.project,
            namespace=request.namespace or request.name,
            targets=list(request.targets),
        )
        try:
            await self.ds.add(env)
        except RecordExistError as e:
            raise EnvAlreadyExistsError(name=request.name, cause=e)
        logger.info(f"Created env {env.name} with targets {env.targets}")
        return env


class DatastoreTargetService(ITargetService):
    """Creates deployment targets."""

    def __init__(self, datastore: IDataStore):
        self.ds = datastore

    async def create_target(self, request: CreateTargetRequest) -> Target:
        target = Target(
            name=request.name,
            alias=request.alias or request.name,
            project=request.project,
            description=request.description,
            cluster=request.cluster,
            variable=dict(request.variable),
        )
        try:
            await self.ds.add(target)
        except RecordExistError as e:
            raise TargetAlreadyExistsError(name=request.name, cause=e)
        logger.info(f"Created target {target.name}")
        return target
