"""SQL dialect differences for archive queries.

Everything dialect-specific that the query layer needs is rendered here,
so the rest of the archive composes plain SQLAlchemy clauses.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from enum import StrEnum

from sqlalchemy import DateTime, any_, func, literal_column
from sqlalchemy.dialects import postgresql
from sqlalchemy.engine import Engine
from sqlalchemy.sql.elements import ColumnElement


class Dialect(StrEnum):
    """SQL flavor of the backing store."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"

    @property
    def supports_native_arrays(self) -> bool:
        return self is Dialect.POSTGRESQL

    @classmethod
    def from_name(cls, name: str) -> Dialect:
        """Resolve a SQLAlchemy dialect name ("postgresql", "mysql", "mariadb", "sqlite")."""
        if name == "mariadb":
            return cls.MYSQL
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"unsupported archive database dialect {name!r}") from None

    @classmethod
    def for_engine(cls, engine: Engine) -> Dialect:
        return cls.from_name(engine.dialect.name)


def value_in(column: ColumnElement[str], values: Sequence[str], dialect: Dialect) -> ColumnElement[bool]:
    """Membership test of ``column`` against a literal value list.

    PostgreSQL compares against a single array parameter (= ANY (ARRAY[...]));
    the others use an IN list.
    """
    if dialect.supports_native_arrays:
        return column == any_(postgresql.array(list(values)))
    return column.in_(list(values))


def expired_cutoff(dialect: Dialect, ttl: timedelta) -> ColumnElement[object]:
    """The store's own current time minus ``ttl``.

    Evaluated by the database so archiver and store clocks never mix.
    Seconds are truncated to an integer and interpolated as a literal:
    not every dialect accepts a bound parameter inside an interval.
    """
    seconds = int(ttl.total_seconds())
    if dialect is Dialect.POSTGRESQL:
        return literal_column(f"current_timestamp - interval '{seconds} seconds'", type_=DateTime(timezone=True))
    if dialect is Dialect.MYSQL:
        return literal_column(f"UTC_TIMESTAMP() - INTERVAL {seconds} SECOND", type_=DateTime())
    # SQLite stores datetimes as UTC text; datetime('now') is UTC text in the same layout
    return func.datetime("now", f"-{seconds} seconds")
