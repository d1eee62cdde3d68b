# tests/cli/conftest.py
"""Shared fixtures for CLI tests."""

import logging
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from wfarchive.contracts import ObjectMeta, Workflow, WorkflowPhase, WorkflowStatus
from wfarchive.core.archive import ArchiveDB, WorkflowArchive
from wfarchive.core.instanceid import StaticInstanceIDService

SeedFn = Callable[..., None]


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """The CLI points the root handler at the runner's stream; put the original back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def cli_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run each CLI test from an empty directory so no stray settings.yaml is picked up."""
    monkeypatch.chdir(tmp_path)
    for name in ("WFARCHIVE_CLUSTER_NAME", "WFARCHIVE_INSTANCE_ID", "WFARCHIVE_ARCHIVE_TTL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def db_url(cli_workdir: Path) -> str:
    return f"sqlite:///{cli_workdir / 'archive.db'}"


@pytest.fixture
def seed(db_url: str) -> SeedFn:
    """Archive a workflow into the CLI test database.

    Defaults match the settings defaults (cluster "default", empty instance id)
    so the CLI sees seeded rows without extra flags.
    """

    def _seed(
        uid: str,
        *,
        name: str | None = None,
        namespace: str = "argo",
        labels: dict[str, str] | None = None,
        finished_at: datetime | None = None,
        cluster_name: str = "default",
        instance_id: str = "",
    ) -> None:
        finished = finished_at if finished_at is not None else datetime(2024, 3, 1, 12, 5, tzinfo=UTC)
        workflow = Workflow(
            metadata=ObjectMeta(name=name or f"wf-{uid}", namespace=namespace, uid=uid, labels=dict(labels or {})),
            status=WorkflowStatus(
                phase=WorkflowPhase.SUCCEEDED,
                started_at=finished - timedelta(minutes=5),
                finished_at=finished,
            ),
            spec={"entrypoint": "main"},
        )
        with ArchiveDB.from_url(db_url) as db:
            archive = WorkflowArchive(
                db,
                cluster_name=cluster_name,
                managed_namespace="",
                instance_id_service=StaticInstanceIDService(instance_id),
            )
            archive.archive_workflow(workflow)

    return _seed
