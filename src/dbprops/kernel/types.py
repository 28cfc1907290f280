"""Pydantic models for the unified schema, snapshots and replay output."""

import re
from datetime import date, datetime
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from dbprops.codes import EditCode, PropertyType

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$")


class UnifiedProperty(BaseModel):
    """One entry of the working schema.

    ``id`` is the join key to every document's snapshot; ``key`` is the
    current (possibly renamed) name. ``type`` is the display label fixed
    at aggregation time. ``default`` is only used for documents whose
    snapshot has no entry with this ``id``.
    """
    id: str
    key: str
    type: str
    default: Any = None


class SnapshotEntry(BaseModel):
    """A key/value pair as it was in one document at aggregation time."""
    id: str
    key: str
    value: Any = None

    model_config = ConfigDict(frozen=True)


class DocumentSnapshot(BaseModel):
    """Per-document capture of its own metadata block, keyed by identifier."""
    document: Optional[str] = None  # Label used in reports (usually the path)
    entries: Tuple[SnapshotEntry, ...] = ()

    model_config = ConfigDict(frozen=True)

    def get(self, id: str) -> SnapshotEntry | None:
        """Get the entry carrying this identifier."""
        for entry in self.entries:
            if entry.id == id:
                return entry
        return None


class FrontmatterEntry(BaseModel):
    """A key/value pair emitted for a document at replay time."""
    key: str
    value: Any = None

    model_config = ConfigDict(frozen=True)


class EditResult(BaseModel):
    """Outcome of an edit operation. Rejected edits leave the schema unchanged."""
    applied: bool
    code: Optional[EditCode] = None
    id: Optional[str] = None  # Identifier touched (or minted, for add)

    def __bool__(self) -> bool:
        return self.applied


def infer_type(value: Any) -> PropertyType:
    """Infer the display type label of a metadata value.

    Checks run in a fixed priority order. ``bool`` is tested before
    numbers because it is an ``int`` subclass.
    """
    if value is None or value == "":
        return PropertyType.NULL
    if isinstance(value, (list, tuple)):
        return PropertyType.LIST
    if isinstance(value, bool):
        return PropertyType.CHECKBOX
    if isinstance(value, (int, float)):
        return PropertyType.NUMBER
    if isinstance(value, (date, datetime)):
        return PropertyType.DATETIME
    if isinstance(value, str):
        if DATE_PATTERN.match(value):
            return PropertyType.DATE
        if DATETIME_PATTERN.match(value):
            return PropertyType.DATETIME
    return PropertyType.TEXT
