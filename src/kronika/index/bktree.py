"""BK-tree over index keys for bounded edit-distance search.

Each child hangs off its parent at the edit distance between the two keys.
When searching for keys within ``T`` of a query that is ``d`` away from a
node, only children attached at distances in ``[d - T, d + T]`` can hold a
match (triangle inequality), so the rest of the tree is skipped.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from kronika.index.distance import edit_distance


@dataclass
class SearchTreeNode:
    key: str
    children: dict[int, SearchTreeNode] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]


class BKTree:
    """Metric tree supporting "all keys within T edits" queries.

    Usage:
        tree = BKTree(["xeron", "bracada"])
        tree.search("xrom", 2)  # [("xeron", 2)]
    """

    def __init__(
        self,
        keys: Iterable[str] = (),
        *,
        distance: Callable[[str, str], int] = edit_distance,
    ) -> None:
        self._distance = distance
        self._root: SearchTreeNode | None = None
        self._size = 0
        for key in keys:
            self.add(key)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and any(found == key for found, _ in self.search(key, 0))

    def add(self, key: str) -> bool:
        """Insert ``key``; returns False if it was already present."""
        if self._root is None:
            self._root = SearchTreeNode(key)
            self._size = 1
            return True

        node = self._root
        while True:
            d = self._distance(key, node.key)
            if d == 0:
                return False
            child = node.children.get(d)
            if child is None:
                node.children[d] = SearchTreeNode(key)
                self._size += 1
                return True
            node = child

    def search(self, query: str, threshold: int) -> list[tuple[str, int]]:
        """Return every ``(key, distance)`` with ``distance <= threshold``.

        Results come in traversal order (root first, then children by
        ascending attachment distance).
        """
        if self._root is None or threshold < 0:
            return []

        matches: list[tuple[str, int]] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            d = self._distance(query, node.key)
            if d <= threshold:
                matches.append((node.key, d))
            low, high = d - threshold, d + threshold
            # Reverse so the smallest attachment distance is visited first
            for attach in sorted(node.children, reverse=True):
                if low <= attach <= high:
                    stack.append(node.children[attach])
        return matches
