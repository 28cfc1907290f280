"""Centralized canonical JSON serialization for CLI output.

Sorted keys and stable separators, so two runs over the same notes print
the same bytes.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization.

    Rules:
    - UTF-8 (no ASCII escaping)
    - Sorted keys
    - Stable separators (",", ":")
    - Non-JSON values (dates from frontmatter) are written as strings

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
