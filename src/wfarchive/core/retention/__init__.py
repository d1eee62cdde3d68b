"""Retention management for archived workflows.

Provides RetentionSweeper for deleting archived workflows past their
retention period.
"""

from wfarchive.core.retention.sweep import RetentionSweeper, SweepResult

__all__ = ["RetentionSweeper", "SweepResult"]
