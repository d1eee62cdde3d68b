"""Predicate builders and tenant scoping for archive queries.

All builders return SQLAlchemy boolean clauses over the archived
workflows table. An empty or missing argument means "no constraint"
and yields true(), which and_() folds away; it never means
"equals empty string".
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import and_, true
from sqlalchemy.sql.elements import ColumnElement

from wfarchive.core.archive.schema import archived_workflows_table

_wf = archived_workflows_table.c


def as_utc(value: datetime) -> datetime:
    """Normalize a timestamp to aware UTC. Naive values are taken to be UTC.

    SQLite stores DateTime as text without an offset, so every timestamp
    written or compared must already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def namespace_equal(namespace: str | None) -> ColumnElement[bool]:
    if not namespace:
        return true()
    return _wf.namespace == namespace


def name_equal(name: str | None) -> ColumnElement[bool]:
    if not name:
        return true()
    return _wf.name == name


def name_prefix(prefix: str | None) -> ColumnElement[bool]:
    """Starts-with match; LIKE wildcards inside the prefix are escaped."""
    if not prefix:
        return true()
    return _wf.name.startswith(prefix, autoescape=True)


def started_at_range(min_started_at: datetime | None, max_started_at: datetime | None) -> ColumnElement[bool]:
    """Exclusive bounds on startedat; None leaves that side open."""
    conds: list[ColumnElement[bool]] = []
    if min_started_at is not None:
        conds.append(_wf.startedat > as_utc(min_started_at))
    if max_started_at is not None:
        conds.append(_wf.startedat < as_utc(max_started_at))
    return and_(true(), *conds)


def uid_equal(uid: str) -> ColumnElement[bool]:
    return _wf.uid == uid


@dataclass(frozen=True)
class TenantScope:
    """Mandatory scoping predicate for every archive read and delete.

    Resolved per call so a change of owning instance takes effect
    immediately.
    """

    cluster_name: str
    managed_namespace: str
    instance_id: str

    def clause(self) -> ColumnElement[bool]:
        return and_(
            _wf.clustername == self.cluster_name,
            namespace_equal(self.managed_namespace),
            _wf.instanceid == self.instance_id,
        )
