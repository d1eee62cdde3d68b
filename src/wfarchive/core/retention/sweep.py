"""Retention sweeper for archived workflows.

Deletes archived workflows (and their label rows) whose finishedAt is
older than the retention period, measured against the database clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from time import perf_counter
from typing import TYPE_CHECKING

from wfarchive.core.logging import get_logger

if TYPE_CHECKING:
    from wfarchive.core.archive.archive import NullWorkflowArchive, WorkflowArchive

logger = get_logger(__name__)


@dataclass
class SweepResult:
    """Result of a retention sweep."""

    deleted_count: int
    ttl_seconds: int
    duration_seconds: float


class RetentionSweeper:
    """Applies a retention period to one archive's tenant scope.

    Records belonging to other clusters or instances are never touched,
    because the underlying delete carries the archive's tenant scope.
    """

    def __init__(self, archive: WorkflowArchive | NullWorkflowArchive) -> None:
        self._archive = archive

    def sweep(self, ttl: timedelta) -> SweepResult:
        """Delete archived workflows that finished more than ``ttl`` ago.

        Args:
            ttl: Retention period; must be at least one second

        Returns:
            SweepResult with the number of records deleted

        Raises:
            ValueError: If ttl is shorter than one second
            StoreError: If the delete fails
        """
        ttl_seconds = int(ttl.total_seconds())
        if ttl_seconds < 1:
            raise ValueError(f"retention ttl must be at least one second, got {ttl!r}")

        start_time = perf_counter()
        deleted_count = self._archive.delete_expired_workflows(ttl)
        duration_seconds = perf_counter() - start_time

        logger.debug("Retention sweep finished", deleted_count=deleted_count, duration_seconds=round(duration_seconds, 3))
        return SweepResult(
            deleted_count=deleted_count,
            ttl_seconds=ttl_seconds,
            duration_seconds=duration_seconds,
        )
