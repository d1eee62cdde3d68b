"""Collaborator protocols consumed by the archive.

The archive does not own instance ownership or the workflow wire format;
it is handed implementations of these protocols at construction.
"""

from typing import Protocol, runtime_checkable

from wfarchive.contracts.workflow import Workflow


@runtime_checkable
class InstanceIDService(Protocol):
    """Supplies the identifier of the controller instance that owns archived data."""

    def instance_id(self) -> str:
        """Return the current owning instance identifier.

        An empty string is a valid identifier (no instance configured).
        """
        ...


@runtime_checkable
class WorkflowCodec(Protocol):
    """Serializes workflows to and from the opaque archived body."""

    def encode(self, workflow: Workflow) -> bytes:
        """Serialize a workflow.

        Raises:
            EncodingError: If the workflow cannot be serialized
        """
        ...

    def decode(self, data: bytes) -> Workflow:
        """Deserialize a workflow.

        Raises:
            EncodingError: If the body is not a valid workflow
        """
        ...
