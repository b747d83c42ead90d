"""Sync Application Use Case - Orchestrates the reconciliation of one application.

This use case drives the single-record and collection syncers in the order
their references require. It depends on ports (interfaces) for all external
operations, making it fully testable without infrastructure.

Workflow:
1. Project (created if missing, never updated)
2. Application metadata
3. Environment
4. Environment binding
5. Components
6. Policies
7. Workflow
8. Workflow record (append-only)
9. Application revision (append-only)
10. Targets (created if missing, never updated)

Steps are applied independently; there is no cross-step transaction. The
first fatal error stops the run, and re-running with the same desired
state converges.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from ...datastore.exceptions import ApplicationSyncError
from ...datastore.resilience import DEFAULT_RETRYABLE_EXCEPTIONS, retry_async
from ..domain.entities import (
    CollectionSyncResult,
    DataStoreApp,
    SyncAction,
    SyncResult,
)
from ..domain.ports import IDataStore, IEnvService, IProjectService, ITargetService
from .store_collections import store_components, store_policies, store_targets
from .store_records import (
    store_app_meta,
    store_application_revision,
    store_env,
    store_env_binding,
    store_project,
    store_workflow,
    store_workflow_record,
)

logger = logging.getLogger(__name__)

Step = tuple[str, Callable[[DataStoreApp], Awaitable[SyncAction | CollectionSyncResult]]]


class SyncApplicationUseCase:
    """Orchestrates the application sync workflow.

    This use case follows the Clean Architecture pattern:
    - Depends only on port interfaces, not concrete implementations
    - Contains the ordering contract of the sync
    - Returns domain objects (SyncResult), not infrastructure types

    Example:
        use_case = SyncApplicationUseCase(
            datastore=PostgresDataStore(pool),
            env_service=DatastoreEnvService(datastore),
            target_service=DatastoreTargetService(datastore),
            project_service=DatastoreProjectService(datastore),
        )
        result = await use_case.execute(app)
    """

    def __init__(
        self,
        datastore: IDataStore,
        env_service: IEnvService,
        target_service: ITargetService,
        project_service: IProjectService | None = None,
        max_attempts: int = 1,
        retry_delay: float = 1.0,
    ):
        """Initialize the use case with its dependencies.

        Args:
            datastore: Port for record persistence
            env_service: Port for environment creation
            target_service: Port for target creation
            project_service: Port for project creation; None disables it
            max_attempts: Attempts per application when a transient
                datastore error occurs
            retry_delay: Initial delay in seconds between attempts
        """
        self.ds = datastore
        self.env_service = env_service
        self.target_service = target_service
        self.project_service = project_service
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def _steps(self) -> list[Step]:
        ds = self.ds
        return [
            ("project", lambda app: store_project(app, ds, self.project_service)),
            ("app_meta", lambda app: store_app_meta(app, ds)),
            ("env", lambda app: store_env(app, ds, self.env_service)),
            ("env_binding", lambda app: store_env_binding(app, ds)),
            (
                "components",
                lambda app: store_components(app.app_primary_key, app.components, ds),
            ),
            (
                "policies",
                lambda app: store_policies(app.app_primary_key, app.policies, ds),
            ),
            ("workflow", lambda app: store_workflow(app, ds)),
            ("workflow_record", lambda app: store_workflow_record(app, ds)),
            ("revision", lambda app: store_application_revision(app, ds)),
            ("targets", lambda app: store_targets(app.targets, ds, self.target_service)),
        ]

    async def _run_steps(self, app: DataStoreApp, result: SyncResult) -> None:
        for name, step in self._steps():
            result.failed_step = name
            outcome = await step(app)
            if isinstance(outcome, CollectionSyncResult):
                result.collections[name] = outcome
            else:
                result.records[name] = outcome
            logger.debug(f"App {result.app_name} step {name}: {outcome}")
        result.failed_step = None

    async def execute(
        self,
        app: DataStoreApp,
        raise_on_error: bool = False,
    ) -> SyncResult:
        """Execute the application sync workflow.

        Args:
            app: Desired state of the application
            raise_on_error: Raise ApplicationSyncError on a fatal error
                instead of reporting it in the result

        Returns:
            SyncResult with per-step outcomes and any errors

        Raises:
            ApplicationSyncError: Only when raise_on_error is set
        """
        started_at = datetime.now(timezone.utc)
        result = SyncResult(app_name=app.app_meta.name, success=False, synced_at=started_at)

        logger.info(f"Starting sync of app {result.app_name}")

        try:
            await retry_async(
                self._run_steps,
                app,
                result,
                max_attempts=self.max_attempts,
                initial_delay=self.retry_delay,
                retryable_exceptions=DEFAULT_RETRYABLE_EXCEPTIONS,
            )
            result.success = True
        except Exception as e:
            error_msg = f"Sync of app {result.app_name} failed at {result.failed_step}: {e}"
            logger.error(error_msg)
            result.error_details.append(error_msg)
            if raise_on_error:
                raise ApplicationSyncError(
                    error_msg,
                    app_name=result.app_name,
                    step=result.failed_step or "unknown",
                    cause=e,
                    recoverable=getattr(e, "recoverable", False),
                ) from e
        finally:
            result.completed_at = datetime.now(timezone.utc)

        logger.info(
            f"App {result.app_name} sync completed in {result.duration_seconds:.2f}s: "
            f"success={result.success}, {len(result.delete_failures)} delete failures"
        )
        return result
