"""Free-text name resolution against the identity index.

Algorithm overview (each stage runs only if the previous one found nothing
usable, i.e. unique and matching the type filter):

1. Exact lookup
   - Case-insensitive index lookup of the raw query
   - Ambiguous or wrong-type hits fall through, they are never returned

2. Declension stripping
   - Strip the longest case ending from every word ("Xeronowi" -> "Xeron")
   - Look the stem up in the stem index, validate each candidate key

3. Stem alternation
   - Undo consonant changes at the stem boundary ("Bracadzie" -> "Bracada")
   - Look each candidate base form up directly

4. Approximate match
   - Budget: 1 edit below 5 characters, len // 3 otherwise (or an override)
   - BK-tree search when a tree is available, closest usable key wins
   - Otherwise a full scan with length-difference pruning

Results, including misses, can be cached per (query, type filter) in a
``ResolutionCache`` shared across one batch of lookups.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final

from kronika.config import settings
from kronika.index.bktree import BKTree
from kronika.index.distance import edit_distance, max_edit_distance
from kronika.index.token_index import IndexEntry, TokenIndex, Unique, normalize_key
from kronika.models.entity import Owner, owner_type
from kronika.models.enums import EntityType, MatchStage

logger = logging.getLogger(__name__)


class _NoMatch:
    """Cached marker for "looked up, nothing found"."""

    _instance: _NoMatch | None = None

    def __new__(cls) -> _NoMatch:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH: Final = _NoMatch()


@dataclass(frozen=True)
class ResolutionRequest:
    """One lookup: the query plus the filter and budget that apply to it."""

    query: str
    type_filter: EntityType | None = None
    max_distance: int | None = None

    @property
    def cache_key(self) -> tuple[str, EntityType | None, int | None]:
        return (self.query, self.type_filter, self.max_distance)


@dataclass(frozen=True)
class Resolution:
    """A successful lookup and how it was made."""

    owner: Owner
    stage: MatchStage
    key: str
    """Index key that matched (as stored, original casing)."""

    distance: int = 0
    """Edit distance for approximate matches, 0 otherwise."""


class ResolutionCache:
    """Per-batch memo of resolver results, misses included.

    Not safe for concurrent mutation; give each caller its own cache.
    """

    def __init__(self) -> None:
        self._results: dict[tuple[str, EntityType | None, int | None], Resolution | _NoMatch] = {}

    def __len__(self) -> int:
        return len(self._results)

    def lookup(self, request: ResolutionRequest) -> Resolution | _NoMatch | None:
        """Return the cached result, ``NO_MATCH`` for a cached miss, None if unseen."""
        return self._results.get(request.cache_key)

    def store(self, request: ResolutionRequest, result: Resolution | None) -> None:
        self._results[request.cache_key] = result if result is not None else NO_MATCH

    def clear(self) -> None:
        self._results.clear()


class NameResolver:
    """Resolves free-text names to players, characters and entities.

    Usage:
        index = TokenIndex.build(store, players)
        resolver = NameResolver.for_index(index)
        owner = resolver.resolve("Xeronowi")
        place = resolver.resolve("Bracadzie", EntityType.PLACE)
    """

    def __init__(
        self,
        index: TokenIndex,
        tree: BKTree | None = None,
        *,
        short_query_length: int | None = None,
        short_query_max_distance: int | None = None,
        fuzzy_length_divisor: int | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            index: Identity index to resolve against. Its morphology rules are used.
            tree: BK-tree over the index's normalized keys; None forces full scans.
            short_query_length: Queries shorter than this use the short budget.
            short_query_max_distance: Edit budget for short queries.
            fuzzy_length_divisor: Longer queries allow len // divisor edits.
        """
        self._index = index
        self._tree = tree
        self._rules = index.rules
        self._short_query_length = short_query_length or settings.short_query_length
        self._short_query_max_distance = (
            short_query_max_distance
            if short_query_max_distance is not None
            else settings.short_query_max_distance
        )
        self._length_divisor = fuzzy_length_divisor or settings.fuzzy_length_divisor

    @classmethod
    def for_index(cls, index: TokenIndex, *, use_search_tree: bool | None = None) -> NameResolver:
        """Build a resolver, with a BK-tree over the index keys unless disabled."""
        if use_search_tree is None:
            use_search_tree = settings.use_search_tree
        tree = BKTree(index.keys()) if use_search_tree else None
        return cls(index, tree)

    @property
    def index(self) -> TokenIndex:
        return self._index

    def resolve(
        self,
        query: str,
        type_filter: EntityType | None = None,
        *,
        max_distance: int | None = None,
        cache: ResolutionCache | None = None,
    ) -> Owner | None:
        """Resolve ``query`` to its owner, or None if no stage finds a usable match."""
        result = self.resolve_detailed(
            query, type_filter, max_distance=max_distance, cache=cache
        )
        return result.owner if result is not None else None

    def resolve_detailed(
        self,
        query: str,
        type_filter: EntityType | None = None,
        *,
        max_distance: int | None = None,
        cache: ResolutionCache | None = None,
    ) -> Resolution | None:
        """Like ``resolve`` but reports the stage, matched key and distance."""
        request = ResolutionRequest(query, type_filter, max_distance)

        if cache is not None:
            cached = cache.lookup(request)
            if isinstance(cached, Resolution):
                return cached
            if cached is NO_MATCH:
                return None

        result = self._run(request)

        if cache is not None:
            cache.store(request, result)
        return result

    def _run(self, request: ResolutionRequest) -> Resolution | None:
        if not request.query.strip():
            return None

        for stage in (self._exact, self._declension, self._alternation, self._approximate):
            result = stage(request)
            if result is not None:
                logger.debug(
                    "Resolved %r via %s to %r (key %r)",
                    request.query,
                    result.stage.value,
                    result.owner,
                    result.key,
                )
                return result

        logger.debug("No match for %r (filter=%s)", request.query, request.type_filter)
        return None

    def _usable(self, entry: IndexEntry | None, request: ResolutionRequest) -> Owner | None:
        """The entry's owner if it is unique and passes the type filter."""
        if not isinstance(entry, Unique):
            return None
        if request.type_filter is not None and owner_type(entry.owner) != request.type_filter:
            return None
        return entry.owner

    def _exact(self, request: ResolutionRequest) -> Resolution | None:
        entry = self._index.get(request.query)
        owner = self._usable(entry, request)
        if owner is None or entry is None:
            return None
        return Resolution(owner, MatchStage.EXACT, entry.key)

    def _declension(self, request: ResolutionRequest) -> Resolution | None:
        stem = self._rules.stem_phrase(request.query)
        for key in self._index.stem_candidates(stem):
            entry = self._index.get(key)
            owner = self._usable(entry, request)
            if owner is not None and entry is not None:
                return Resolution(owner, MatchStage.DECLENSION, entry.key)
        return None

    def _alternation(self, request: ResolutionRequest) -> Resolution | None:
        for candidate in self._rules.alternation_candidates(request.query):
            entry = self._index.get(candidate)
            owner = self._usable(entry, request)
            if owner is not None and entry is not None:
                return Resolution(owner, MatchStage.ALTERNATION, entry.key)
        return None

    def _approximate(self, request: ResolutionRequest) -> Resolution | None:
        query = normalize_key(request.query)
        threshold = request.max_distance
        if threshold is None:
            threshold = max_edit_distance(
                query,
                short_query_length=self._short_query_length,
                short_query_max_distance=self._short_query_max_distance,
                length_divisor=self._length_divisor,
            )

        if self._tree is not None:
            return self._approximate_tree(self._tree, query, threshold, request)
        return self._approximate_scan(query, threshold, request)

    def _approximate_tree(
        self, tree: BKTree, query: str, threshold: int, request: ResolutionRequest
    ) -> Resolution | None:
        # Stable sort keeps traversal order among equal distances
        candidates = sorted(tree.search(query, threshold), key=lambda match: match[1])
        for key, distance in candidates:
            entry = self._index.get(key)
            owner = self._usable(entry, request)
            if owner is not None and entry is not None:
                return Resolution(owner, MatchStage.FUZZY, entry.key, distance)
        return None

    def _approximate_scan(
        self, query: str, threshold: int, request: ResolutionRequest
    ) -> Resolution | None:
        best: Resolution | None = None
        for key in self._index.keys():
            # Edit distance is at least the length difference
            if abs(len(key) - len(query)) > threshold:
                continue
            distance = edit_distance(query, key)
            if distance > threshold or (best is not None and distance >= best.distance):
                continue
            entry = self._index.get(key)
            owner = self._usable(entry, request)
            if owner is None or entry is None:
                continue
            best = Resolution(owner, MatchStage.FUZZY, entry.key, distance)
            if distance <= 1:
                break
        return best
