"""Shared contracts for cross-boundary data types.

This package is a leaf module with no outbound dependencies to core.
Settings classes live in wfarchive.core.config.
"""

from wfarchive.contracts.enums import SelectorOperator, WorkflowPhase
from wfarchive.contracts.errors import (
    AmbiguousResultError,
    ArchiveDisabledError,
    ArchiveError,
    EncodingError,
    InvalidArgumentError,
    SelectorSyntaxError,
    StoreError,
    UnsupportedSelectorError,
)
from wfarchive.contracts.selectors import LabelRequirement
from wfarchive.contracts.services import InstanceIDService, WorkflowCodec
from wfarchive.contracts.workflow import (
    ARCHIVING_STATUS_LABEL,
    ARCHIVING_STATUS_PERSISTED,
    ObjectMeta,
    Workflow,
    WorkflowStatus,
)

__all__ = [
    "ARCHIVING_STATUS_LABEL",
    "ARCHIVING_STATUS_PERSISTED",
    "AmbiguousResultError",
    "ArchiveDisabledError",
    "ArchiveError",
    "EncodingError",
    "InstanceIDService",
    "InvalidArgumentError",
    "LabelRequirement",
    "ObjectMeta",
    "SelectorOperator",
    "SelectorSyntaxError",
    "StoreError",
    "UnsupportedSelectorError",
    "Workflow",
    "WorkflowCodec",
    "WorkflowPhase",
    "WorkflowStatus",
]
