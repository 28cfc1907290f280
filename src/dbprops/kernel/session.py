"""Editing session: the working schema and the operations applied to it."""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

from dbprops.codes import EditCode, PropertyType
from dbprops.errors import SessionClosedError

from .aggregate import IdFactory, aggregate, new_id
from .diff import ChangeEvent, diff_properties
from .replay import iter_replay
from .types import DocumentSnapshot, EditResult, FrontmatterEntry, UnifiedProperty

logger = logging.getLogger(__name__)

# Host-structural keys that are never offered a rename
RESERVED_KEYS = ("tags", "aliases", "cssclasses")


class SchemaSession:
    """Working schema for one editing workflow.

    The session owns a mutable, ordered list of properties and an immutable
    tuple of snapshots. Edits touch only the working list and never raise
    on invalid input; they return an ``EditResult`` whose ``code`` says why
    the edit was rejected. Snapshots are consumed once by ``replay()``,
    after which the session is closed.
    """

    def __init__(
        self,
        properties: Iterable[UnifiedProperty],
        snapshots: Iterable[DocumentSnapshot],
        reserved_keys: Iterable[str] = RESERVED_KEYS,
        id_factory: Optional[IdFactory] = None,
    ):
        self._properties: List[UnifiedProperty] = [p.model_copy() for p in properties]
        self._initial: Tuple[UnifiedProperty, ...] = tuple(p.model_copy() for p in self._properties)
        self._snapshots: Tuple[DocumentSnapshot, ...] = tuple(snapshots)
        self._reserved = frozenset(reserved_keys)
        self._mint = id_factory or new_id
        self._closed = False

    @classmethod
    def from_documents(
        cls,
        documents: Sequence[Optional[Mapping[str, Any]]],
        labels: Optional[Sequence[str]] = None,
        reserved_keys: Iterable[str] = RESERVED_KEYS,
        id_factory: Optional[IdFactory] = None,
    ) -> "SchemaSession":
        """Aggregate metadata blocks and open a session on the result."""
        properties, snapshots = aggregate(documents, labels=labels, id_factory=id_factory)
        return cls(properties, snapshots, reserved_keys=reserved_keys, id_factory=id_factory)

    # Read surface

    @property
    def properties(self) -> Tuple[UnifiedProperty, ...]:
        """Copies of the working list, in its current order."""
        return tuple(p.model_copy() for p in self._properties)

    @property
    def snapshots(self) -> Tuple[DocumentSnapshot, ...]:
        return self._snapshots

    @property
    def keys(self) -> List[str]:
        return [p.key for p in self._properties]

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def can_save(self) -> bool:
        """True when at least one document was aggregated, even if none had keys."""
        return bool(self._snapshots) and not self._closed

    def __len__(self) -> int:
        return len(self._properties)

    def index_of(self, id: str) -> int:
        """Get the working-list index of an identifier (-1 when absent)."""
        for index, prop in enumerate(self._properties):
            if prop.id == id:
                return index
        return -1

    def get(self, id: str) -> UnifiedProperty | None:
        """Get a copy of the property with this identifier."""
        index = self.index_of(id)
        return self._properties[index].model_copy() if index != -1 else None

    def find(self, key: str) -> UnifiedProperty | None:
        """Get a copy of the property currently named ``key``."""
        for prop in self._properties:
            if prop.key == key:
                return prop.model_copy()
        return None

    def is_reserved(self, id: str) -> bool:
        """True if the property is a host-structural key (no rename offered)."""
        index = self.index_of(id)
        return index != -1 and self._properties[index].key in self._reserved

    def changes(self) -> List[ChangeEvent]:
        """Change events between the aggregated list and the working list."""
        return diff_properties(self._initial, self._properties)

    # Edit operations

    def add(self, name: str, default_value: Any = "", default_type: str = PropertyType.TEXT.value) -> EditResult:
        """Append a new property that no document has yet."""
        if self._closed:
            return self._reject(EditCode.SESSION_CLOSED, "add", name)
        name = (name or "").strip()
        if not name:
            return self._reject(EditCode.EMPTY_NAME, "add", name)
        if name in self.keys:
            return self._reject(EditCode.DUPLICATE_NAME, "add", name)
        prop = UnifiedProperty(
            id=self._mint(),
            key=name,
            type=default_type.value if isinstance(default_type, PropertyType) else str(default_type),
            default=default_value,
        )
        self._properties.append(prop)
        logger.debug("Added property %r (%s)", name, prop.id)
        return EditResult(applied=True, id=prop.id)

    def delete(self, id: str) -> EditResult:
        """Remove a property from the working list. Snapshots are untouched."""
        if self._closed:
            return self._reject(EditCode.SESSION_CLOSED, "delete", id)
        index = self.index_of(id)
        if index == -1:
            return self._reject(EditCode.UNKNOWN_ID, "delete", id)
        removed = self._properties.pop(index)
        logger.debug("Deleted property %r (%s)", removed.key, id)
        return EditResult(applied=True, id=id)

    def rename(self, id: str, new_name: str) -> EditResult:
        """Change a property's key. The identifier, and so every value join, is kept."""
        if self._closed:
            return self._reject(EditCode.SESSION_CLOSED, "rename", id)
        index = self.index_of(id)
        if index == -1:
            return self._reject(EditCode.UNKNOWN_ID, "rename", id)
        prop = self._properties[index]
        if prop.key in self._reserved:
            return self._reject(EditCode.RESERVED_KEY, "rename", prop.key)
        new_name = (new_name or "").strip()
        if not new_name:
            return self._reject(EditCode.EMPTY_NAME, "rename", prop.key)
        if any(other.key == new_name for other in self._properties if other.id != id):
            return self._reject(EditCode.DUPLICATE_NAME, "rename", new_name)
        logger.debug("Renamed property %r to %r (%s)", prop.key, new_name, id)
        prop.key = new_name
        return EditResult(applied=True, id=id)

    def reorder(self, id: str, target_index: int) -> EditResult:
        """Move a property to ``target_index``; the others keep their relative order."""
        if self._closed:
            return self._reject(EditCode.SESSION_CLOSED, "reorder", id)
        index = self.index_of(id)
        if index == -1:
            return self._reject(EditCode.UNKNOWN_ID, "reorder", id)
        if isinstance(target_index, bool) or not isinstance(target_index, int) \
                or not 0 <= target_index < len(self._properties):
            return self._reject(EditCode.INDEX_OUT_OF_RANGE, "reorder", id)
        if index != target_index:
            prop = self._properties.pop(index)
            self._properties.insert(target_index, prop)
        return EditResult(applied=True, id=id)

    # Replay

    def replay(self) -> Iterator[Tuple[DocumentSnapshot, List[FrontmatterEntry]]]:
        """
        Yield (snapshot, entries) for each document, one at a time.

        Snapshots are consumed exactly once: the session is closed as soon
        as replay starts, and a second call raises ``SessionClosedError``.
        """
        if self._closed:
            raise SessionClosedError("Session snapshots were already replayed")
        self._closed = True
        return iter_replay(tuple(self._properties), self._snapshots)

    def _reject(self, code: EditCode, operation: str, subject: Any) -> EditResult:
        logger.debug("Rejected %s of %r: %s", operation, subject, code.value)
        return EditResult(applied=False, code=code)
