"""Record mapper adapter for transforming between domain entities and stored rows.

Entities are persisted as a JSON payload next to their key columns. This
adapter owns that transformation in both directions, plus loading a
serialized application envelope for the CLI.
"""

import json
from dataclasses import fields
from datetime import datetime
from typing import Any

from ..domain.entities import (
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
    Project,
    Target,
    Workflow,
    WorkflowRecord,
)

# Every kind the datastore can hold, keyed by table name
ENTITY_TYPES: dict[str, type[Entity]] = {
    cls.table_name: cls
    for cls in (
        Project,
        Application,
        Env,
        EnvBinding,
        ApplicationComponent,
        ApplicationPolicy,
        Workflow,
        WorkflowRecord,
        ApplicationRevision,
        Target,
    )
}

_DATETIME_FIELDS = {"create_time", "update_time", "start_time"}


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    # Handle ISO 8601 with Z suffix
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class EntityRecordMapper:
    """Maps entities to JSON payloads / database rows and back.

    This class handles:
    - Datetime serialization (ISO 8601)
    - Creator tags (stored as their string value)
    - Nested cluster connection of targets
    """

    def to_payload(self, entity: Entity) -> dict[str, Any]:
        """Transform an entity into a JSON-safe dictionary."""
        payload: dict[str, Any] = {}
        for f in fields(entity):
            value = getattr(entity, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Creator):
                value = value.value
            elif isinstance(value, ClusterTarget):
                value = {"cluster_name": value.cluster_name, "namespace": value.namespace}
            payload[f.name] = value
        return payload

    def from_payload(self, entity_type: type[Entity], payload: dict[str, Any]) -> Entity:
        """Transform a stored dictionary back into an entity.

        Unknown keys are ignored so older rows still load after fields
        are removed.
        """
        known = {f.name for f in fields(entity_type)}
        kwargs: dict[str, Any] = {}
        for key, value in payload.items():
            if key not in known:
                continue
            if key in _DATETIME_FIELDS:
                value = _parse_datetime(value)
            elif key == "creator":
                value = Creator.from_value(value)
            elif key == "cluster" and isinstance(value, dict):
                value = ClusterTarget(**value)
            kwargs[key] = value
        return entity_type(**kwargs)

    def map_to_record(self, entity: Entity) -> tuple[Any, ...]:
        """Transform an entity to a database record tuple.

        The tuple ordering matches the INSERT statement of the Postgres
        datastore: table, primary key, index, payload, create time,
        update time.
        """
        return (
            entity.table_name,
            entity.primary_key(),
            json.dumps(entity.index()),
            json.dumps(self.to_payload(entity)),
            entity.create_time,
            entity.update_time,
        )

    def map_to_entity(self, table_name: str, payload: str | dict[str, Any]) -> Entity:
        """Transform a stored payload column back into an entity."""
        if isinstance(payload, str):
            payload = json.loads(payload)
        return self.from_payload(ENTITY_TYPES[table_name], payload)

    def envelope_from_dict(self, raw: dict[str, Any]) -> DataStoreApp:
        """Build an application envelope from its serialized form.

        Args:
            raw: Dictionary with the envelope's field names as keys

        Returns:
            DataStoreApp ready to be synced
        """

        def one(entity_type: type[Entity], key: str) -> Any:
            value = raw.get(key)
            return self.from_payload(entity_type, value) if value else None

        def many(entity_type: type[Entity], key: str) -> list[Any]:
            return [self.from_payload(entity_type, item) for item in raw.get(key) or []]

        return DataStoreApp(
            project=CreateProjectRequest.model_validate(raw["project"]),
            app_meta=one(Application, "app_meta"),
            env=one(Env, "env"),
            env_binding=one(EnvBinding, "env_binding"),
            components=many(ApplicationComponent, "components"),
            policies=many(ApplicationPolicy, "policies"),
            workflow=one(Workflow, "workflow"),
            targets=many(Target, "targets"),
            record=one(WorkflowRecord, "record"),
            revision=one(ApplicationRevision, "revision"),
        )
