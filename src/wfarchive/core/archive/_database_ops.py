"""Database operation helpers for the archive.

Consolidates the repeated `with self._db.connection() as conn:` pattern
and translates driver failures into StoreError at one seam.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import Connection, Executable
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from wfarchive.contracts.errors import StoreError

if TYPE_CHECKING:
    from wfarchive.core.archive.database import ArchiveDB


class DatabaseOps:
    """Helper for common database operations.

    Each helper is one round trip in its own transaction. Use
    ``transaction()`` when several statements must commit together.
    """

    def __init__(self, db: "ArchiveDB") -> None:
        self._db = db

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """One atomic unit of work.

        Commits when the block exits normally; rolls back on any exception.
        Store failures surface as StoreError, everything else propagates as is.
        """
        try:
            with self._db.connection() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise StoreError(f"archive store operation failed: {e}", original=e) from e

    def execute_fetchone(self, query: Executable) -> Row[Any] | None:
        """Execute query and return single row or None."""
        with self.transaction() as conn:
            result = conn.execute(query)
            return result.fetchone()

    def execute_fetchall(self, query: Executable) -> list[Row[Any]]:
        """Execute query and return all rows."""
        with self.transaction() as conn:
            result = conn.execute(query)
            return list(result.fetchall())

    def execute_scalar(self, query: Executable) -> Any:
        """Execute query and return the first column of the first row."""
        with self.transaction() as conn:
            return conn.execute(query).scalar_one()
