"""Collection syncers - converge a named set of records scoped to one application.

``CollectionSyncer`` implements the shared protocol once:

1. List every stored entity in the application's scope
2. Three-way compare stored names against desired names
3. Delete phase: remove stale entities that sync itself generated.
   Failures are recorded and skipped, never fatal
4. Create-or-update phase: add new names, overwrite kept ones while
   preserving their create time. The first failure aborts the phase

Components and policies use it directly. Targets are shared across
applications, so ``store_targets`` only ever creates missing ones.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Generic, TypeVar

from ...datastore.exceptions import RecordNotExistError, TargetAlreadyExistsError
from ..domain.compare import three_way_compare
from ..domain.entities import (
    ApplicationComponent,
    ApplicationPolicy,
    CollectionSyncResult,
    CreateTargetRequest,
    DeleteFailure,
    Entity,
    Target,
)
from ..domain.ports import IDataStore, ITargetService

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


def _sync_deletable(entity) -> bool:
    return entity.sync_deletable


class CollectionSyncer(Generic[T]):
    """Ownership-gated add/update/delete of one collection of entities.

    Args:
        datastore: Port for record persistence
        deletable: Predicate deciding whether sync may delete a stale
            entity; defaults to the entity's ``sync_deletable`` rule

    Example:
        syncer = CollectionSyncer[ApplicationComponent](datastore)
        result = await syncer.sync(
            ApplicationComponent(app_primary_key="my-app"),
            desired_components,
        )
    """

    def __init__(
        self,
        datastore: IDataStore,
        deletable: Callable[[T], bool] = _sync_deletable,
    ):
        self.ds = datastore
        self.deletable = deletable

    async def sync(self, scope: T, desired: Sequence[T]) -> CollectionSyncResult:
        """Converge the entities in ``scope`` to ``desired``.

        Args:
            scope: Entity with only its scope key set, used as list filter
            desired: Desired entities of the same kind

        Returns:
            CollectionSyncResult, including any non-fatal delete failures

        Raises:
            The listing error, or the first create/update error
        """
        kind = scope.table_name
        scope_key = "/".join(scope.index().values())
        result = CollectionSyncResult(kind=kind)

        existing = await self.ds.list(scope)
        existing_by_name = {e.name: e for e in existing}
        comparison = three_way_compare(
            [e.name for e in existing],
            [d.name for d in desired],
        )

        for entity in existing:
            if not self.deletable(entity):
                continue
            if entity.name not in comparison.to_delete:
                continue
            try:
                await self.ds.delete(entity)
            except RecordNotExistError:
                pass
            except Exception as e:
                logger.warning(
                    f"delete {kind} {entity.name} for app {scope_key} failure {e}"
                )
                result.delete_failures.append(
                    DeleteFailure(kind=kind, name=entity.name, error=str(e))
                )
                continue
            result.deleted.append(entity.name)

        for entity in desired:
            try:
                if entity.name in comparison.to_add and entity.name not in existing_by_name:
                    await self.ds.add(entity)
                    existing_by_name[entity.name] = entity
                    result.created.append(entity.name)
                else:
                    old = existing_by_name.get(entity.name)
                    if old is not None:
                        entity.create_time = old.create_time
                    await self.ds.put(entity)
                    result.updated.append(entity.name)
            except Exception as e:
                logger.warning(
                    f"convert {kind} {entity.name} for app {scope_key} "
                    f"into datastore failure {e}"
                )
                raise

        if result.delete_failures:
            logger.info(
                f"Synced {kind} for app {scope_key} with "
                f"{len(result.delete_failures)} delete failure(s)"
            )
        return result


async def store_components(
    app_primary_key: str,
    components: Sequence[ApplicationComponent],
    ds: IDataStore,
) -> CollectionSyncResult:
    """Sync application components; user-created components are never deleted."""
    syncer: CollectionSyncer[ApplicationComponent] = CollectionSyncer(ds)
    return await syncer.sync(
        ApplicationComponent(app_primary_key=app_primary_key), components
    )


async def store_policies(
    app_primary_key: str,
    policies: Sequence[ApplicationPolicy],
    ds: IDataStore,
) -> CollectionSyncResult:
    """Sync application policies; user-created and reference policies are never deleted."""
    syncer: CollectionSyncer[ApplicationPolicy] = CollectionSyncer(ds)
    return await syncer.sync(
        ApplicationPolicy(app_primary_key=app_primary_key), policies
    )


async def store_targets(
    targets: Sequence[Target],
    ds: IDataStore,
    target_service: ITargetService,
) -> CollectionSyncResult:
    """Create deployment targets that do not exist yet.

    Existing targets are left untouched and no target is ever deleted.
    """
    result = CollectionSyncResult(kind=Target.table_name)
    for target in targets:
        try:
            await ds.get(Target(name=target.name))
            result.unchanged.append(target.name)
            continue
        except RecordNotExistError:
            pass

        try:
            await target_service.create_target(
                CreateTargetRequest(
                    name=target.name,
                    alias=target.alias,
                    project=target.project,
                    description=target.description,
                    cluster=target.cluster,
                    variable=dict(target.variable),
                )
            )
        except TargetAlreadyExistsError:
            result.unchanged.append(target.name)
            continue
        result.created.append(target.name)
    return result


__all__ = [
    "CollectionSyncer",
    "store_components",
    "store_policies",
    "store_targets",
]
