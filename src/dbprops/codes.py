"""Code constants for dbprops.

These constants prevent stringly-typed type labels and rejection codes
and ensure client code compares against the values the engine emits.
"""

from enum import Enum


class PropertyType(str, Enum):
    """Display type labels inferred for a property value."""

    NULL = "Null"
    LIST = "List"
    CHECKBOX = "Checkbox"
    NUMBER = "Number"
    DATE = "Date"
    DATETIME = "Date & Time"
    TEXT = "Text"


class EditCode(str, Enum):
    """Reasons an edit to the working schema was rejected (no-op)."""

    EMPTY_NAME = "EMPTY_NAME"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    RESERVED_KEY = "RESERVED_KEY"
    UNKNOWN_ID = "UNKNOWN_ID"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    SESSION_CLOSED = "SESSION_CLOSED"
