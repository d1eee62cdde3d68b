# src/wfarchive/core/archive/archive.py
"""Workflow archive: persistence and querying of completed workflows.

Every read and delete is AND-ed with the tenant scope (cluster,
managed namespace, owning instance). Writes replace the record and
its label index rows in a single transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.sql.elements import ColumnElement

from wfarchive.contracts.errors import (
    AmbiguousResultError,
    ArchiveDisabledError,
    EncodingError,
    InvalidArgumentError,
)
from wfarchive.contracts.selectors import LabelRequirement
from wfarchive.contracts.services import InstanceIDService, WorkflowCodec
from wfarchive.contracts.workflow import Workflow
from wfarchive.core.archive._database_ops import DatabaseOps
from wfarchive.core.archive.dialects import expired_cutoff
from wfarchive.core.archive.predicates import (
    TenantScope,
    as_utc,
    name_equal,
    name_prefix,
    namespace_equal,
    started_at_range,
    uid_equal,
)
from wfarchive.core.archive.schema import archived_workflow_labels_table, archived_workflows_table
from wfarchive.core.archive.selectors import label_clause
from wfarchive.core.codec import JsonWorkflowCodec
from wfarchive.core.logging import get_logger

if TYPE_CHECKING:
    from wfarchive.core.archive.database import ArchiveDB

logger = get_logger(__name__)

_wf = archived_workflows_table.c
_labels = archived_workflow_labels_table.c


class WorkflowArchive:
    """Archive of completed workflows for one tenant scope.

    Stateless between calls: every operation is one round trip or one
    transaction against the store, and the owning instance id is read
    from the injected service on each call.
    """

    def __init__(
        self,
        db: ArchiveDB,
        cluster_name: str,
        managed_namespace: str,
        instance_id_service: InstanceIDService,
        codec: WorkflowCodec | None = None,
    ) -> None:
        """Initialize the archive.

        Args:
            db: Archive database connection
            cluster_name: Cluster identity stamped on and required of every record
            managed_namespace: Restrict all operations to this namespace ("" = all)
            instance_id_service: Supplies the owning controller instance id
            codec: Workflow body serializer (defaults to JSON)
        """
        self._db = db
        self._ops = DatabaseOps(db)
        self._cluster_name = cluster_name
        self._managed_namespace = managed_namespace
        self._instance_id_service = instance_id_service
        self._codec: WorkflowCodec = codec if codec is not None else JsonWorkflowCodec()

    def is_enabled(self) -> bool:
        return True

    @property
    def scope(self) -> TenantScope:
        return TenantScope(self._cluster_name, self._managed_namespace, self._instance_id_service.instance_id())

    def _scoped(self, *conds: ColumnElement[bool]) -> ColumnElement[bool]:
        return and_(self.scope.clause(), *conds)

    # === Writes ===

    def archive_workflow(self, workflow: Workflow) -> None:
        """Persist a workflow, replacing any earlier archive of the same uid.

        Stamps the archival-status label onto ``workflow`` (in place) before
        encoding. The record delete/insert and the label delete/insert run in
        one transaction; a failure at any step leaves the previous state.

        Raises:
            InvalidArgumentError: If the workflow has no uid or lacks startedAt/finishedAt
            EncodingError: If the workflow cannot be serialized (nothing written)
            StoreError: If any statement fails (transaction rolled back)
        """
        if not workflow.uid:
            raise InvalidArgumentError(f"workflow {workflow.namespace}/{workflow.name} has no uid")
        if workflow.status.started_at is None or workflow.status.finished_at is None:
            raise InvalidArgumentError(f"workflow {workflow.uid!r} has no startedAt/finishedAt; only completed workflows can be archived")
        logger.debug("Archiving workflow", uid=workflow.uid, labels=dict(workflow.labels))
        workflow.mark_persisted()
        body = self._codec.encode(workflow).decode("utf-8")

        scope = self.scope
        with self._ops.transaction() as conn:
            conn.execute(delete(archived_workflows_table).where(and_(scope.clause(), uid_equal(workflow.uid))))
            conn.execute(
                insert(archived_workflows_table).values(
                    clustername=scope.cluster_name,
                    instanceid=scope.instance_id,
                    uid=workflow.uid,
                    name=workflow.name,
                    namespace=workflow.namespace,
                    phase=workflow.status.phase.value,
                    startedat=as_utc(workflow.status.started_at),
                    finishedat=as_utc(workflow.status.finished_at),
                    workflow=body,
                )
            )
            conn.execute(
                delete(archived_workflow_labels_table).where(
                    _labels.clustername == scope.cluster_name,
                    _labels.uid == workflow.uid,
                )
            )
            if workflow.labels:
                conn.execute(
                    insert(archived_workflow_labels_table),
                    [
                        {"clustername": scope.cluster_name, "uid": workflow.uid, "name": key, "value": value}
                        for key, value in workflow.labels.items()
                    ],
                )

    # === Reads ===

    def _filter_clause(
        self,
        namespace: str,
        name: str,
        name_prefix_: str,
        min_started_at: datetime | None,
        max_started_at: datetime | None,
        label_requirements: Sequence[LabelRequirement] | None,
    ) -> ColumnElement[bool]:
        return self._scoped(
            namespace_equal(namespace),
            name_equal(name),
            name_prefix(name_prefix_),
            started_at_range(min_started_at, max_started_at),
            label_clause(label_requirements, self._db.dialect),
        )

    def list_workflows(
        self,
        namespace: str = "",
        name: str = "",
        name_prefix: str = "",
        min_started_at: datetime | None = None,
        max_started_at: datetime | None = None,
        label_requirements: Sequence[LabelRequirement] | None = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[Workflow]:
        """List archived workflows, most recently started first.

        Args:
            namespace: Exact namespace ("" = any)
            name: Exact name ("" = any)
            name_prefix: Name starts-with ("" = any)
            min_started_at: Exclusive lower bound on startedAt (None = open)
            max_started_at: Exclusive upper bound on startedAt (None = open)
            label_requirements: Label selector requirements, all of which must hold
            limit: Maximum rows; 0 returns every match and ignores offset
            offset: Rows to skip in startedAt-descending order

        Returns:
            Decoded workflows. Rows whose body cannot be decoded are logged
            and left out; the call still succeeds.

        Raises:
            UnsupportedSelectorError: If a requirement cannot be translated
            StoreError: If the query fails
        """
        where = self._filter_clause(namespace, name, name_prefix, min_started_at, max_started_at, label_requirements)
        # uid breaks startedAt ties so pages don't overlap
        query = (
            select(_wf.uid, _wf.name, _wf.workflow)
            .where(where)
            .order_by(_wf.startedat.desc(), _wf.uid)
        )
        if limit > 0:
            query = query.limit(limit).offset(max(offset, 0))

        workflows: list[Workflow] = []
        for row in self._ops.execute_fetchall(query):
            try:
                workflow = self._codec.decode(row.workflow.encode("utf-8"))
            except EncodingError as e:
                logger.error("Unable to decode archived workflow", workflow_uid=row.uid, workflow_name=row.name, error=str(e))
                continue
            workflow.mark_persisted()
            workflows.append(workflow)
        return workflows

    def count_workflows(
        self,
        namespace: str = "",
        name: str = "",
        name_prefix: str = "",
        min_started_at: datetime | None = None,
        max_started_at: datetime | None = None,
        label_requirements: Sequence[LabelRequirement] | None = None,
    ) -> int:
        """Count archived workflows matching the same filters as list_workflows.

        Raises:
            UnsupportedSelectorError: If a requirement cannot be translated
            StoreError: If the query fails
        """
        where = self._filter_clause(namespace, name, name_prefix, min_started_at, max_started_at, label_requirements)
        query = select(func.count()).select_from(archived_workflows_table).where(where)
        return int(self._ops.execute_scalar(query))

    def get_workflow(self, uid: str = "", namespace: str = "", name: str = "") -> Workflow | None:
        """Fetch one archived workflow by uid, or by namespace and name.

        Returns:
            The workflow, or None if nothing matches in this tenant scope

        Raises:
            InvalidArgumentError: If uid is empty and namespace or name is missing
            AmbiguousResultError: If namespace/name matches more than one workflow
            EncodingError: If the stored body cannot be decoded
            StoreError: If the query fails
        """
        if uid:
            where = self._scoped(uid_equal(uid))
        elif namespace and name:
            where = self._scoped(namespace_equal(namespace), name_equal(name))
            total = self._ops.execute_scalar(select(func.count()).select_from(archived_workflows_table).where(where))
            if total > 1:
                raise AmbiguousResultError(int(total), namespace, name)
        else:
            raise InvalidArgumentError("both name and namespace are required if uid is not specified")

        row = self._ops.execute_fetchone(select(_wf.workflow).where(where))
        if row is None:
            return None
        workflow = self._codec.decode(row.workflow.encode("utf-8"))
        workflow.mark_persisted()
        return workflow

    def list_label_keys(self) -> set[str]:
        """Distinct label keys across archived workflows visible in this scope."""
        query = select(_labels.name).where(self._labels_visible()).distinct()
        return {row[0] for row in self._ops.execute_fetchall(query)}

    def list_label_values(self, key: str) -> set[str]:
        """Distinct values of one label key across archived workflows visible in this scope."""
        query = select(_labels.value).where(_labels.name == key, self._labels_visible()).distinct()
        return {row[0] for row in self._ops.execute_fetchall(query)}

    def _labels_visible(self, *record_conds: ColumnElement[bool]) -> ColumnElement[bool]:
        """Label rows whose record exists in this tenant scope (and matches ``record_conds``)."""
        record = select(_wf.uid).where(
            _wf.clustername == _labels.clustername,
            _wf.uid == _labels.uid,
            self._scoped(*record_conds),
        )
        return and_(_labels.clustername == self._cluster_name, record.exists())

    # === Deletes ===

    def _delete_scoped(self, *record_conds: ColumnElement[bool]) -> int:
        # Labels first: their delete is correlated to the records about to go
        with self._ops.transaction() as conn:
            conn.execute(delete(archived_workflow_labels_table).where(self._labels_visible(*record_conds)))
            result = conn.execute(delete(archived_workflows_table).where(self._scoped(*record_conds)))
            return int(result.rowcount)

    def delete_workflow(self, uid: str) -> int:
        """Delete one archived workflow and its label rows.

        Deleting a uid that is not archived is not an error.

        Returns:
            Number of records deleted (0 or 1)

        Raises:
            StoreError: If the delete fails (nothing deleted)
        """
        rows_affected = self._delete_scoped(uid_equal(uid))
        logger.debug("Deleted archived workflow", uid=uid, rows_affected=rows_affected)
        return rows_affected

    def delete_expired_workflows(self, ttl: timedelta) -> int:
        """Delete archived workflows that finished more than ``ttl`` ago.

        "Now" is the database server's clock, not this process's.

        Returns:
            Number of records deleted

        Raises:
            StoreError: If the delete fails (nothing deleted)
        """
        cutoff = expired_cutoff(self._db.dialect, ttl)
        rows_affected = self._delete_scoped(_wf.finishedat < cutoff)
        logger.info("Deleted archived workflows", rows_affected=rows_affected, ttl_seconds=int(ttl.total_seconds()))
        return rows_affected


class NullWorkflowArchive:
    """Stand-in used when workflow archiving is turned off.

    Writes are dropped, listings are empty, and lookups that would
    otherwise have to report "not found" for data that was never kept
    raise ArchiveDisabledError instead.
    """

    def is_enabled(self) -> bool:
        return False

    def archive_workflow(self, workflow: Workflow) -> None:
        return None

    def list_workflows(
        self,
        namespace: str = "",
        name: str = "",
        name_prefix: str = "",
        min_started_at: datetime | None = None,
        max_started_at: datetime | None = None,
        label_requirements: Sequence[LabelRequirement] | None = None,
        limit: int = 0,
        offset: int = 0,
    ) -> list[Workflow]:
        return []

    def count_workflows(
        self,
        namespace: str = "",
        name: str = "",
        name_prefix: str = "",
        min_started_at: datetime | None = None,
        max_started_at: datetime | None = None,
        label_requirements: Sequence[LabelRequirement] | None = None,
    ) -> int:
        return 0

    def get_workflow(self, uid: str = "", namespace: str = "", name: str = "") -> Workflow | None:
        raise ArchiveDisabledError("getting archived workflows not supported: archiving is disabled")

    def delete_workflow(self, uid: str) -> int:
        raise ArchiveDisabledError("deleting archived workflows not supported: archiving is disabled")

    def delete_expired_workflows(self, ttl: timedelta) -> int:
        return 0

    def list_label_keys(self) -> set[str]:
        return set()

    def list_label_values(self, key: str) -> set[str]:
        return set()
