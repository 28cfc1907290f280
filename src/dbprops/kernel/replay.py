"""Replay of the working schema onto each document's snapshot."""

import copy
from typing import Iterator, List, Sequence, Tuple

from .types import DocumentSnapshot, FrontmatterEntry, UnifiedProperty


def replay_document(properties: Sequence[UnifiedProperty], snapshot: DocumentSnapshot) -> List[FrontmatterEntry]:
    """
    Compute one document's new metadata block.

    For each property in working-list order, the value comes from the
    snapshot entry with the same identifier and the name always comes from
    the working list. Documents without that identifier get the property's
    default. Properties missing from the working list are never emitted:
    the result replaces the whole block.
    """
    values = {entry.id: entry.value for entry in snapshot.entries}
    entries: List[FrontmatterEntry] = []
    for prop in properties:
        value = values[prop.id] if prop.id in values else prop.default
        entries.append(FrontmatterEntry(key=prop.key, value=copy.deepcopy(value)))
    return entries


def iter_replay(
    properties: Sequence[UnifiedProperty],
    snapshots: Sequence[DocumentSnapshot],
) -> Iterator[Tuple[DocumentSnapshot, List[FrontmatterEntry]]]:
    """Yield (snapshot, entries) one document at a time, in snapshot order."""
    properties = tuple(properties)
    for snapshot in snapshots:
        yield snapshot, replay_document(properties, snapshot)
