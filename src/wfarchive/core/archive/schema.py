# src/wfarchive/core/archive/schema.py
"""SQLAlchemy table definitions for the workflow archive.

Uses SQLAlchemy Core (not ORM) for explicit control over queries
and compatibility with multiple database backends.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
)

# Shared metadata for all tables
metadata = MetaData()

ARCHIVE_TABLE_NAME = "argo_archived_workflows"
LABELS_TABLE_NAME = f"{ARCHIVE_TABLE_NAME}_labels"

# === Archived workflows ===
# One row per (clustername, uid). Everything except `workflow` is a
# denormalized index over the body.

archived_workflows_table = Table(
    ARCHIVE_TABLE_NAME,
    metadata,
    Column("clustername", String(64), nullable=False),
    Column("uid", String(128), nullable=False),
    Column("instanceid", String(64), nullable=False),
    Column("name", String(256), nullable=False),
    Column("namespace", String(256), nullable=False),
    Column("phase", String(25), nullable=False),
    Column("startedat", DateTime(timezone=True), nullable=False),
    Column("finishedat", DateTime(timezone=True), nullable=False),
    Column("workflow", Text, nullable=False),
    PrimaryKeyConstraint("clustername", "uid"),
    Index("ix_archived_workflows_scope_namespace", "clustername", "instanceid", "namespace"),
    Index("ix_archived_workflows_scope_startedat", "clustername", "instanceid", "startedat"),
    Index("ix_archived_workflows_scope_finishedat", "clustername", "instanceid", "finishedat"),
)

# === Label index ===
# Derived from the labels inside the body; never authoritative.
# The label key column is "name" because KEY is reserved in MySQL.
# No foreign key: label rows are removed explicitly alongside their record.

archived_workflow_labels_table = Table(
    LABELS_TABLE_NAME,
    metadata,
    Column("clustername", String(64), nullable=False),
    Column("uid", String(128), nullable=False),
    Column("name", String(317), nullable=False),
    Column("value", String(63), nullable=False),
    PrimaryKeyConstraint("clustername", "uid", "name"),
    Index("ix_archived_workflow_labels_name_value", "clustername", "name", "value"),
)
