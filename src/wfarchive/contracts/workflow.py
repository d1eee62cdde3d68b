"""Workflow object model persisted by the archive.

This is the minimal shape the archive needs: identity and labels in
ObjectMeta, timing and terminal phase in WorkflowStatus, and an opaque
spec mapping carried through untouched. The dict form mirrors the
Kubernetes resource layout (camelCase keys, RFC 3339 timestamps).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from wfarchive.contracts.enums import WorkflowPhase

ARCHIVING_STATUS_LABEL = "workflows.argoproj.io/workflow-archiving-status"
ARCHIVING_STATUS_PERSISTED = "Persisted"

_RFC3339 = "%Y-%m-%dT%H:%M:%SZ"


def format_time(value: datetime | None) -> str | None:
    """Render a datetime as RFC 3339 UTC (second precision)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(_RFC3339)


def parse_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


@dataclass
class ObjectMeta:
    """Identity and labels of a workflow."""

    name: str
    namespace: str
    uid: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    creation_timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "uid": self.uid,
        }
        if self.labels:
            data["labels"] = dict(self.labels)
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.creation_timestamp is not None:
            data["creationTimestamp"] = format_time(self.creation_timestamp)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectMeta:
        return cls(
            name=data["name"],
            namespace=data["namespace"],
            uid=data["uid"],
            labels=dict(data.get("labels") or {}),
            annotations=dict(data.get("annotations") or {}),
            creation_timestamp=parse_time(data.get("creationTimestamp")),
        )


@dataclass
class WorkflowStatus:
    """Observed state of a workflow at archive time."""

    phase: WorkflowPhase
    started_at: datetime | None = None
    finished_at: datetime | None = None
    message: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.phase, WorkflowPhase):
            raise TypeError(f"phase must be WorkflowPhase, got {type(self.phase).__name__}: {self.phase!r}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"phase": self.phase.value}
        if self.started_at is not None:
            data["startedAt"] = format_time(self.started_at)
        if self.finished_at is not None:
            data["finishedAt"] = format_time(self.finished_at)
        if self.message:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowStatus:
        return cls(
            phase=WorkflowPhase(data["phase"]),
            started_at=parse_time(data.get("startedAt")),
            finished_at=parse_time(data.get("finishedAt")),
            message=data.get("message", ""),
        )


@dataclass
class Workflow:
    """A workflow resource.

    ``spec`` is carried as an opaque mapping; the archive never inspects it.
    """

    metadata: ObjectMeta
    status: WorkflowStatus
    spec: dict[str, Any] = field(default_factory=dict)

    @property
    def uid(self) -> str:
        return self.metadata.uid

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    def mark_persisted(self) -> None:
        """Stamp the archival-status label in place."""
        self.metadata.labels[ARCHIVING_STATUS_LABEL] = ARCHIVING_STATUS_PERSISTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "spec": self.spec,
            "status": self.status.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workflow:
        return cls(
            metadata=ObjectMeta.from_dict(data["metadata"]),
            status=WorkflowStatus.from_dict(data["status"]),
            spec=dict(data.get("spec") or {}),
        )
