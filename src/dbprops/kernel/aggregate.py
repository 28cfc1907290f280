"""Schema aggregation: unified key list plus per-document snapshots."""

import copy
import logging
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .types import DocumentSnapshot, SnapshotEntry, UnifiedProperty, infer_type

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
TYPE_SEPARATOR = " | "


def new_id() -> str:
    """Mint a process-unique property identifier."""
    return str(uuid.uuid4())


def aggregate(
    documents: Sequence[Optional[Mapping[str, Any]]],
    labels: Optional[Sequence[str]] = None,
    id_factory: Optional[IdFactory] = None,
) -> Tuple[List[UnifiedProperty], List[DocumentSnapshot]]:
    """
    Build the unified schema and the per-document snapshots.

    Documents are scanned in input order and keys in each block's native
    order. The first sighting of a key name mints its identifier; later
    sightings reuse it and add their inferred type to the property's type
    set. Identity assignment starts fresh on every call.

    Args:
        documents: Metadata blocks, one per document. ``None`` or a
            non-mapping block contributes no keys and an empty snapshot.
        labels: Optional per-document labels copied onto the snapshots.
        id_factory: Identifier minting function (defaults to UUID4).

    Returns:
        (properties in first-seen order, snapshots in input order)
    """
    if labels is not None and len(labels) != len(documents):
        raise ValueError(
            f"Got {len(labels)} labels for {len(documents)} documents"
        )
    mint = id_factory or new_id

    ids: Dict[str, str] = {}
    types: Dict[str, Dict[str, None]] = {}  # key -> ordered set of type labels
    snapshots: List[DocumentSnapshot] = []

    for index, block in enumerate(documents):
        entries: List[SnapshotEntry] = []
        if isinstance(block, Mapping):
            for key, value in block.items():
                key = str(key)
                if key not in ids:
                    ids[key] = mint()
                    types[key] = {}
                types[key].setdefault(infer_type(value).value, None)
                entries.append(SnapshotEntry(id=ids[key], key=key, value=copy.deepcopy(value)))
        elif block is not None:
            logger.debug("Ignoring non-mapping metadata block in document %d", index)
        snapshots.append(DocumentSnapshot(
            document=labels[index] if labels is not None else None,
            entries=tuple(entries),
        ))

    properties = [
        UnifiedProperty(id=ids[key], key=key, type=TYPE_SEPARATOR.join(types[key]), default="")
        for key in ids
    ]
    logger.debug("Aggregated %d documents into %d properties", len(snapshots), len(properties))
    return properties, snapshots
