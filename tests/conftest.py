"""Shared test fixtures.

Fixture Scoping Strategy
========================
- archive_db: Function-scoped. Archive tests assert exact counts and
  orderings, so every test gets a fresh in-memory database.
- archive / archive_for: Function-scoped wrappers over archive_db.
- make_workflow: Factory for terminal workflows with sensible defaults.
"""

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta

import pytest

from wfarchive.contracts import ObjectMeta, Workflow, WorkflowPhase, WorkflowStatus
from wfarchive.core.archive import ArchiveDB, WorkflowArchive
from wfarchive.core.instanceid import StaticInstanceIDService

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)

CLUSTER = "cluster-a"
INSTANCE = "instance-x"

WorkflowFactory = Callable[..., Workflow]
ArchiveFactory = Callable[..., WorkflowArchive]


def _make_workflow(
    uid: str,
    *,
    name: str | None = None,
    namespace: str = "argo",
    labels: dict[str, str] | None = None,
    started_at: datetime | None = None,
    finished_at: datetime | None = None,
    phase: WorkflowPhase = WorkflowPhase.SUCCEEDED,
) -> Workflow:
    started = started_at if started_at is not None else BASE_TIME
    finished = finished_at if finished_at is not None else started + timedelta(minutes=5)
    return Workflow(
        metadata=ObjectMeta(
            name=name if name is not None else f"wf-{uid}",
            namespace=namespace,
            uid=uid,
            labels=dict(labels or {}),
        ),
        status=WorkflowStatus(phase=phase, started_at=started, finished_at=finished),
        spec={"entrypoint": "main"},
    )


@pytest.fixture
def make_workflow() -> WorkflowFactory:
    """Factory for archived-ready workflows (terminal phase, both timestamps set)."""
    return _make_workflow


@pytest.fixture
def archive_db() -> Iterator[ArchiveDB]:
    """Fresh in-memory archive database."""
    db = ArchiveDB.in_memory()
    yield db
    db.close()


@pytest.fixture
def archive_for(archive_db: ArchiveDB) -> ArchiveFactory:
    """Build archives for arbitrary tenant scopes over the shared test database."""

    def _archive_for(cluster_name: str = CLUSTER, instance_id: str = INSTANCE, managed_namespace: str = "") -> WorkflowArchive:
        return WorkflowArchive(
            archive_db,
            cluster_name=cluster_name,
            managed_namespace=managed_namespace,
            instance_id_service=StaticInstanceIDService(instance_id),
        )

    return _archive_for


@pytest.fixture
def archive(archive_for: ArchiveFactory) -> WorkflowArchive:
    """Archive scoped to (cluster-a, all namespaces, instance-x)."""
    return archive_for()
