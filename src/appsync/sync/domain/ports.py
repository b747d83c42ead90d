"""Port interfaces for application sync operations.

Ports define the contracts between the sync use cases and the infrastructure.
These are abstract base classes that adapters must implement.

Following the Hexagonal Architecture (Ports and Adapters) pattern:
- Ports are interfaces defined in the domain layer
- Adapters implement these ports in the adapters layer
- Use cases depend only on ports, not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TypeVar

from .entities import (
    CreateEnvRequest,
    CreateProjectRequest,
    CreateTargetRequest,
    Entity,
    Env,
    Project,
    Target,
)

E = TypeVar("E", bound=Entity)


@dataclass
class ListOptions:
    """Paging and ordering for ``IDataStore.list``.

    ``page`` is 1-based; ``page_size`` of 0 returns every match.
    """

    page: int = 0
    page_size: int = 0
    sort_by_create_time_desc: bool = False


class IDataStore(ABC):
    """Port for keyed record persistence.

    Every operation addresses a record through its entity's ``table_name``
    and key fields. Implementations must raise ``RecordNotExistError`` for
    missing records and ``RecordExistError`` on duplicate adds, so the sync
    use cases can tell steady-state signals from real failures.
    """

    @abstractmethod
    async def get(self, entity: E) -> E:
        """Fetch the stored record with the same key as ``entity``.

        Args:
            entity: Entity with at least its key fields populated

        Returns:
            The stored entity

        Raises:
            RecordNotExistError: If no record has that key
        """
        ...

    @abstractmethod
    async def add(self, entity: Entity) -> None:
        """Insert a new record.

        Sets ``create_time`` and ``update_time`` when they are empty.

        Raises:
            RecordExistError: If a record with the same key exists
        """
        ...

    @abstractmethod
    async def put(self, entity: Entity) -> None:
        """Overwrite the full content of an existing record.

        Raises:
            RecordNotExistError: If no record has that key
        """
        ...

    @abstractmethod
    async def list(
        self,
        query: E,
        options: ListOptions | None = None,
    ) -> list[E]:
        """List records of ``query``'s kind matching its non-empty key fields.

        Args:
            query: Partially populated entity used as a scope filter
            options: Optional paging and ordering

        Returns:
            Matching entities, oldest first unless options say otherwise
        """
        ...

    @abstractmethod
    async def delete(self, entity: Entity) -> None:
        """Remove a record by key.

        Raises:
            RecordNotExistError: If no record has that key
        """
        ...


class IProjectService(ABC):
    """Port for project creation with business defaults applied."""

    @abstractmethod
    async def create_project(self, request: CreateProjectRequest) -> Project:
        """Create a project.

        Raises:
            ProjectAlreadyExistsError: If the project name is taken
        """
        ...


class IEnvService(ABC):
    """Port for environment creation with business defaults applied."""

    @abstractmethod
    async def create_env(self, request: CreateEnvRequest) -> Env:
        """Create an environment.

        Raises:
            EnvAlreadyExistsError: If the environment name is taken
        """
        ...


class ITargetService(ABC):
    """Port for deployment target creation with business defaults applied."""

    @abstractmethod
    async def create_target(self, request: CreateTargetRequest) -> Target:
        """Create a target.

        Raises:
            TargetAlreadyExistsError: If the target name is taken
        """
        ...
