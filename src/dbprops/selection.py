"""Fuzzy selection among folders or tags."""

from typing import List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

DEFAULT_THRESHOLD = 55.0


def rank_choices(
    query: str,
    choices: Sequence[str],
    limit: int = 20,
    threshold: float = DEFAULT_THRESHOLD,
) -> List[Tuple[str, float]]:
    """Rank ``choices`` against ``query``, best first.

    An empty query returns the choices in their given order with a score
    of 100.
    """
    query = (query or "").strip()
    if not query:
        return [(choice, 100.0) for choice in choices[:limit]]
    matches = process.extract(
        query,
        list(choices),
        scorer=fuzz.WRatio,
        processor=str.lower,
        score_cutoff=threshold,
        limit=None,
    )
    ranked = [(choice, float(score)) for choice, score, _ in matches]
    ranked.sort(key=lambda hit: (-hit[1], hit[0].lower()))
    return ranked[:limit]


def choose(query: str, choices: Sequence[str], threshold: float = DEFAULT_THRESHOLD) -> Optional[str]:
    """Pick a single choice: an exact match, else the best fuzzy match."""
    query = (query or "").strip()
    if not query:
        return None
    if query in choices:
        return query
    ranked = rank_choices(query, choices, limit=1, threshold=threshold)
    return ranked[0][0] if ranked else None
