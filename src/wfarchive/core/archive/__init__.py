"""Archive: persistence and querying of completed workflows.

Primary API:
    WorkflowArchive - Archive, list, count, get and delete workflows
    NullWorkflowArchive - Disabled archive
    ArchiveDB - Database connection management

Query building:
    TenantScope - Mandatory (cluster, namespace, instance) predicate
    label_clause, parse_selector - Label selector translation
    Dialect - SQL flavor of the backing store
"""

from wfarchive.core.archive.archive import NullWorkflowArchive, WorkflowArchive
from wfarchive.core.archive.database import ArchiveDB
from wfarchive.core.archive.dialects import Dialect
from wfarchive.core.archive.predicates import TenantScope
from wfarchive.core.archive.schema import (
    archived_workflow_labels_table,
    archived_workflows_table,
    metadata,
)
from wfarchive.core.archive.selectors import label_clause, parse_selector

__all__ = [
    "ArchiveDB",
    "Dialect",
    "NullWorkflowArchive",
    "TenantScope",
    "WorkflowArchive",
    "archived_workflow_labels_table",
    "archived_workflows_table",
    "label_clause",
    "metadata",
    "parse_selector",
]
