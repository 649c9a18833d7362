"""Edit distance used by the search tree and the resolver's fuzzy stage."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance (unit-cost insert, delete, substitute).

    This is a metric, which the BK-tree's pruning relies on.
    """
    return Levenshtein.distance(a, b)


def max_edit_distance(
    query: str,
    *,
    short_query_length: int = 5,
    short_query_max_distance: int = 1,
    length_divisor: int = 3,
) -> int:
    """Edit budget for a query: small for short names, len/3 otherwise."""
    if len(query) < short_query_length:
        return short_query_max_distance
    return len(query) // length_divisor
