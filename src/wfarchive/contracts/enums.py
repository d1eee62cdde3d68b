"""Status codes and operator kinds used across subsystem boundaries."""

from enum import StrEnum


class WorkflowPhase(StrEnum):
    """Lifecycle phase of a workflow.

    Stored in the database (archived_workflows.phase).
    Only terminal phases are expected in the archive.
    """

    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (WorkflowPhase.SUCCEEDED, WorkflowPhase.FAILED, WorkflowPhase.ERROR)


class SelectorOperator(StrEnum):
    """Label selector operators, using the Kubernetes selector spelling."""

    EQUALS = "="
    DOUBLE_EQUALS = "=="
    NOT_EQUALS = "!="
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"
    IN = "in"
    NOT_IN = "notin"
    GREATER_THAN = "gt"
    LESS_THAN = "lt"
