"""Exception types raised by dbprops."""

from typing import Any, Optional


class DbPropsError(Exception):
    """Base class for dbprops errors."""
    pass


class SessionClosedError(DbPropsError):
    """Raised when a session's snapshots are replayed a second time."""
    pass


class DocumentWriteError(DbPropsError):
    """Raised when writing a document's metadata block fails during save.

    Documents before ``index`` are already written; documents after it
    are untouched. ``report`` holds the partial save report.
    """

    def __init__(self, ref: Any, index: int, message: str, report: Optional[Any] = None):
        super().__init__(message)
        self.ref = ref
        self.index = index
        self.report = report


class DocumentReadError(DbPropsError):
    """Raised when a selected document cannot be decoded as UTF-8 text."""

    def __init__(self, ref: Any, message: str):
        super().__init__(message)
        self.ref = ref
