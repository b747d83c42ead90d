"""Tests for the EntityRecordMapper adapter."""

import json
from datetime import datetime, timezone

import pytest

from appsync.sync.adapters.record_mapper import ENTITY_TYPES, EntityRecordMapper
from appsync.sync.domain.entities import (
    ApplicationComponent,
    ApplicationRevision,
    ClusterTarget,
    Creator,
    Target,
    WorkflowRecord,
)


class TestEntityRecordMapper:
    """Tests for EntityRecordMapper."""

    @pytest.fixture
    def mapper(self):
        """Create an EntityRecordMapper instance."""
        return EntityRecordMapper()

    @pytest.fixture
    def raw_envelope(self):
        """Serialized desired state as written by the CLI user."""
        return {
            "project": {"name": "team-a", "alias": "Team A"},
            "app_meta": {"name": "demo", "project": "team-a"},
            "env": {"name": "syncenv-default", "targets": ["syncenv-local-default"]},
            "env_binding": {"app_primary_key": "demo", "name": "syncenv-default"},
            "components": [
                {
                    "app_primary_key": "demo",
                    "name": "web",
                    "type": "webservice",
                    "creator": Creator.SYNC_MANAGED.value,
                },
                {"app_primary_key": "demo", "name": "db", "creator": "alice"},
            ],
            "policies": [
                {
                    "app_primary_key": "demo",
                    "name": "shared",
                    "is_reference": True,
                    "creator": Creator.SYNC_MANAGED.value,
                }
            ],
            "targets": [
                {
                    "name": "syncenv-local-default",
                    "cluster": {"cluster_name": "local", "namespace": "default"},
                }
            ],
            "record": {
                "app_primary_key": "demo",
                "name": "demo-v1",
                "start_time": "2024-01-15T10:30:00Z",
            },
        }

    def test_all_kinds_registered(self):
        assert set(ENTITY_TYPES) == {
            "project",
            "application",
            "env",
            "envbinding",
            "application_component",
            "application_policy",
            "workflow",
            "workflow_record",
            "application_revision",
            "target",
        }

    def test_map_to_record(self, mapper):
        """Test the row tuple matches the INSERT column order."""
        created = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
        comp = ApplicationComponent(
            app_primary_key="demo",
            name="web",
            creator=Creator.SYNC_MANAGED,
            create_time=created,
        )

        table, pk, index, payload, create_time, update_time = mapper.map_to_record(comp)

        assert table == "application_component"
        assert json.loads(pk) == ["demo", "web"]
        assert json.loads(index) == {"app_primary_key": "demo", "name": "web"}
        assert json.loads(payload)["creator"] == Creator.SYNC_MANAGED.value
        assert json.loads(payload)["create_time"] == "2024-01-15T10:30:00+00:00"
        assert create_time == created
        assert update_time is None

    def test_payload_round_trip_keeps_nested_types(self, mapper):
        target = Target(
            name="prod",
            cluster=ClusterTarget(cluster_name="east", namespace="apps"),
            variable={"region": "us-east"},
        )

        row = mapper.map_to_record(target)
        restored = mapper.map_to_entity("target", row[3])

        assert restored == target
        assert isinstance(restored.cluster, ClusterTarget)

    def test_map_to_entity_accepts_decoded_payload(self, mapper):
        restored = mapper.map_to_entity(
            "application_revision", {"app_primary_key": "demo", "version": "v3"}
        )

        assert isinstance(restored, ApplicationRevision)
        assert restored.name == "v3"

    def test_unknown_payload_keys_are_ignored(self, mapper):
        restored = mapper.from_payload(
            ApplicationComponent, {"name": "web", "retired_field": 1}
        )

        assert restored.name == "web"

    def test_unknown_creator_is_externally_owned(self, mapper):
        restored = mapper.from_payload(ApplicationComponent, {"name": "web", "creator": "bob"})

        assert restored.creator is Creator.EXTERNALLY_OWNED

    def test_envelope_from_dict(self, mapper, raw_envelope):
        app = mapper.envelope_from_dict(raw_envelope)

        assert app.project.name == "team-a"
        assert app.app_primary_key == "demo"
        assert app.env.targets == ["syncenv-local-default"]
        assert [c.name for c in app.components] == ["web", "db"]
        assert app.components[0].sync_deletable is True
        assert app.components[1].sync_deletable is False
        assert app.policies[0].sync_deletable is False
        assert app.targets[0].cluster.cluster_name == "local"
        assert isinstance(app.record, WorkflowRecord)
        assert app.record.start_time == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_envelope_optional_parts_default_to_none(self, mapper, raw_envelope):
        app = mapper.envelope_from_dict(raw_envelope)

        assert app.workflow is None
        assert app.revision is None
