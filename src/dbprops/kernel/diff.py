"""Structural diff between the aggregated schema and the edited working list."""

from dataclasses import dataclass
from typing import List, Literal, Sequence

from .types import UnifiedProperty


@dataclass
class ChangeEvent:
    """A single change event between two property lists."""
    change_type: Literal[
        "PROPERTY_REMOVED",  # ID not in the edited list
        "PROPERTY_ADDED",  # ID not in the aggregated list
        "PROPERTY_RENAMED",  # Key changed (ID unchanged)
        "PROPERTY_MOVED",  # Position among surviving properties changed
    ]
    element_id: str  # Stable property identifier
    old_value: str | None = None  # Old key (or old index for moves)
    new_value: str | None = None  # New key (or new index for moves)
    details: dict | None = None


def diff_properties(before: Sequence[UnifiedProperty], after: Sequence[UnifiedProperty]) -> List[ChangeEvent]:
    """
    Compute the change events turning ``before`` into ``after``.
    Uses identifiers to track identity, so a rename is never reported as
    a removal plus an addition.
    """
    events: List[ChangeEvent] = []

    before_by_id = {p.id: p for p in before}
    after_by_id = {p.id: p for p in after}

    for prop in before:
        if prop.id not in after_by_id:
            events.append(ChangeEvent(
                change_type="PROPERTY_REMOVED",
                element_id=prop.id,
                old_value=prop.key,
            ))

    for prop in after:
        if prop.id not in before_by_id:
            events.append(ChangeEvent(
                change_type="PROPERTY_ADDED",
                element_id=prop.id,
                new_value=prop.key,
                details={"type": prop.type, "default": prop.default},
            ))

    for prop in after:
        old = before_by_id.get(prop.id)
        if old is not None and old.key != prop.key:
            events.append(ChangeEvent(
                change_type="PROPERTY_RENAMED",
                element_id=prop.id,
                old_value=old.key,
                new_value=prop.key,
            ))

    # Order is compared among surviving properties only, so deletes and
    # appends alone never report moves
    old_order = [p.id for p in before if p.id in after_by_id]
    new_order = [p.id for p in after if p.id in before_by_id]
    if old_order != new_order:
        old_index = {id: i for i, id in enumerate(old_order)}
        for new_index, id in enumerate(new_order):
            if old_index[id] != new_index:
                events.append(ChangeEvent(
                    change_type="PROPERTY_MOVED",
                    element_id=id,
                    old_value=str(old_index[id]),
                    new_value=str(new_index),
                    details={"key": after_by_id[id].key},
                ))

    return events
