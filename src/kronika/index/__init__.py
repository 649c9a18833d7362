"""Identity index and metric search tree.

Submodules:
- token_index: name -> owner table with priority and ambiguity tracking
- bktree: BK-tree for bounded edit-distance search over index keys
- distance: Levenshtein distance and edit budgets
"""

from kronika.index.bktree import BKTree, SearchTreeNode
from kronika.index.distance import edit_distance, max_edit_distance
from kronika.index.token_index import (
    PRIORITY_NAME,
    PRIORITY_WORD,
    Ambiguous,
    IndexEntry,
    TokenIndex,
    Unique,
    normalize_key,
    roster_owner_wins,
)

__all__ = [
    "PRIORITY_NAME",
    "PRIORITY_WORD",
    "Ambiguous",
    "BKTree",
    "IndexEntry",
    "SearchTreeNode",
    "TokenIndex",
    "Unique",
    "edit_distance",
    "max_edit_distance",
    "normalize_key",
    "roster_owner_wins",
]
