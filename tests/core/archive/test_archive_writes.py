# tests/core/archive/test_archive_writes.py
"""Tests for WorkflowArchive.archive_workflow."""

from collections.abc import Callable
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from wfarchive.contracts import (
    ARCHIVING_STATUS_LABEL,
    ARCHIVING_STATUS_PERSISTED,
    EncodingError,
    InvalidArgumentError,
    StoreError,
    Workflow,
)
from wfarchive.core.archive import ArchiveDB, WorkflowArchive, archived_workflow_labels_table, archived_workflows_table
from wfarchive.core.instanceid import StaticInstanceIDService

WorkflowFactory = Callable[..., Workflow]


class _FailingCodec:
    def encode(self, workflow: Workflow) -> bytes:
        raise EncodingError(f"cannot serialize workflow {workflow.uid!r}")

    def decode(self, data: bytes) -> Workflow:
        raise AssertionError("decode should not be called")


def _records(db: ArchiveDB) -> list[dict[str, object]]:
    with db.connection() as conn:
        return [dict(row._mapping) for row in conn.execute(select(archived_workflows_table))]


def _labels(db: ArchiveDB, uid: str) -> dict[str, str]:
    query = select(archived_workflow_labels_table.c.name, archived_workflow_labels_table.c.value).where(
        archived_workflow_labels_table.c.uid == uid
    )
    with db.connection() as conn:
        return {row.name: row.value for row in conn.execute(query)}


class TestArchiveWorkflow:
    def test_record_columns_populated(self, archive: WorkflowArchive, archive_db: ArchiveDB, make_workflow: WorkflowFactory) -> None:
        archive.archive_workflow(make_workflow("u-1", name="hello", namespace="team-a"))

        [record] = _records(archive_db)
        assert record["clustername"] == "cluster-a"
        assert record["instanceid"] == "instance-x"
        assert record["uid"] == "u-1"
        assert record["name"] == "hello"
        assert record["namespace"] == "team-a"
        assert record["phase"] == "Succeeded"

    def test_marker_label_stamped_in_place(self, archive: WorkflowArchive, make_workflow: WorkflowFactory) -> None:
        workflow = make_workflow("u-1", labels={"team": "data"})

        archive.archive_workflow(workflow)

        assert workflow.labels[ARCHIVING_STATUS_LABEL] == ARCHIVING_STATUS_PERSISTED

    def test_labels_indexed_including_marker(self, archive: WorkflowArchive, archive_db: ArchiveDB, make_workflow: WorkflowFactory) -> None:
        archive.archive_workflow(make_workflow("u-1", labels={"team": "data", "env": "prod"}))

        assert _labels(archive_db, "u-1") == {
            "team": "data",
            "env": "prod",
            ARCHIVING_STATUS_LABEL: ARCHIVING_STATUS_PERSISTED,
        }

    def test_rearchive_replaces_record_and_labels(
        self, archive: WorkflowArchive, archive_db: ArchiveDB, make_workflow: WorkflowFactory
    ) -> None:
        archive.archive_workflow(make_workflow("u-1", labels={"team": "data", "old": "yes"}))
        archive.archive_workflow(make_workflow("u-1", name="renamed", labels={"team": "ml"}))

        records = _records(archive_db)
        assert len(records) == 1
        assert records[0]["name"] == "renamed"
        assert _labels(archive_db, "u-1") == {"team": "ml", ARCHIVING_STATUS_LABEL: ARCHIVING_STATUS_PERSISTED}

    def test_stored_body_round_trips(self, archive: WorkflowArchive, make_workflow: WorkflowFactory) -> None:
        workflow = make_workflow("u-1", labels={"team": "data"})
        archive.archive_workflow(workflow)

        assert archive.get_workflow(uid="u-1") == workflow

    def test_encoding_failure_writes_nothing(self, archive_db: ArchiveDB, make_workflow: WorkflowFactory) -> None:
        archive = WorkflowArchive(
            archive_db,
            cluster_name="cluster-a",
            managed_namespace="",
            instance_id_service=StaticInstanceIDService("instance-x"),
            codec=_FailingCodec(),
        )

        with pytest.raises(EncodingError):
            archive.archive_workflow(make_workflow("u-1"))

        assert _records(archive_db) == []
        assert _labels(archive_db, "u-1") == {}

    def test_missing_uid_rejected(self, archive: WorkflowArchive, make_workflow: WorkflowFactory) -> None:
        with pytest.raises(InvalidArgumentError, match="has no uid"):
            archive.archive_workflow(make_workflow(""))

    @pytest.mark.parametrize("field", ["started_at", "finished_at"])
    def test_incomplete_workflow_rejected(
        self, archive: WorkflowArchive, archive_db: ArchiveDB, make_workflow: WorkflowFactory, field: str
    ) -> None:
        workflow = make_workflow("u-1")
        setattr(workflow.status, field, None)

        with pytest.raises(InvalidArgumentError, match="startedAt/finishedAt"):
            archive.archive_workflow(workflow)

        assert ARCHIVING_STATUS_LABEL not in workflow.labels
        assert _records(archive_db) == []


class TestArchiveWorkflowFailures:
    def test_failed_label_insert_keeps_previous_version(
        self, archive: WorkflowArchive, archive_db: ArchiveDB, make_workflow: WorkflowFactory
    ) -> None:
        archive.archive_workflow(make_workflow("u-1", name="first", labels={"team": "data"}))

        # NULL label value violates NOT NULL on the last statement of the transaction
        broken = make_workflow("u-1", name="second", labels={"team": None})
        with pytest.raises(StoreError) as exc_info:
            archive.archive_workflow(broken)

        assert exc_info.value.original is not None
        assert exc_info.value.__cause__ is exc_info.value.original
        [record] = _records(archive_db)
        assert record["name"] == "first"
        assert _labels(archive_db, "u-1") == {"team": "data", ARCHIVING_STATUS_LABEL: ARCHIVING_STATUS_PERSISTED}

    def test_unreachable_store_raises_store_error(self, archive: WorkflowArchive, make_workflow: WorkflowFactory) -> None:
        failure = OperationalError("DELETE", None, Exception("database is down"))
        with patch.object(ArchiveDB, "connection", side_effect=failure), pytest.raises(StoreError, match="database is down") as exc_info:
            archive.archive_workflow(make_workflow("u-1"))

        assert exc_info.value.original is failure

    def test_uid_owned_by_other_instance_conflicts(self, archive_for: Callable[..., WorkflowArchive], make_workflow: WorkflowFactory) -> None:
        archive_for(instance_id="instance-x").archive_workflow(make_workflow("u-1"))

        # The scoped delete cannot see the other instance's row, so the insert collides on (clustername, uid)
        with pytest.raises(StoreError):
            archive_for(instance_id="instance-y").archive_workflow(make_workflow("u-1"))

        assert archive_for(instance_id="instance-x").get_workflow(uid="u-1") is not None
