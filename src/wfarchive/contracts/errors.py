"""Exception taxonomy for the workflow archive.

Every failure the archive reports derives from ArchiveError so callers
can catch the whole family at a service boundary. "Not found" is not an
error: lookups return None.
"""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for all archive failures."""

    pass


class EncodingError(ArchiveError):
    """Raised when a workflow body cannot be serialized or deserialized.

    On archive this is raised before any store interaction. During listing,
    rows that fail to decode are logged and skipped instead.
    """

    pass


class StoreError(ArchiveError):
    """Raised when the backing store reports a failure.

    The driver exception is chained as __cause__ and kept on ``original``.
    If the failure happened mid-transaction the transaction was rolled back.
    """

    def __init__(self, message: str, original: BaseException | None = None) -> None:
        self.original = original
        super().__init__(message)


class UnsupportedSelectorError(ArchiveError):
    """Raised when a label requirement uses an operator that cannot be translated.

    The whole query fails; there is no best-effort filtering.
    """

    def __init__(self, key: str, operator: str, reason: str | None = None) -> None:
        self.key = key
        self.operator = operator
        detail = f": {reason}" if reason else ""
        super().__init__(f"unsupported label selector operator {operator!r} for key {key!r}{detail}")


class SelectorSyntaxError(ArchiveError, ValueError):
    """Raised when a label selector string cannot be parsed."""

    pass


class InvalidArgumentError(ArchiveError, ValueError):
    """Raised when an operation is called with an unusable argument combination."""

    pass


class AmbiguousResultError(ArchiveError):
    """Raised when a namespace/name lookup matches more than one archived workflow.

    This is a data-integrity signal, not a normal not-found case.

    Attributes:
        count: Number of matching records
        namespace: Namespace that was looked up
        name: Name that was looked up
    """

    def __init__(self, count: int, namespace: str, name: str) -> None:
        self.count = count
        self.namespace = namespace
        self.name = name
        super().__init__(f"found {count} archived workflows with namespace/name: {namespace}/{name}")


class ArchiveDisabledError(ArchiveError):
    """Raised by the disabled archive for operations that cannot return an empty answer."""

    pass
