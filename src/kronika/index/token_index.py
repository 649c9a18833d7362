"""Name -> owner lookup table for players, characters and entities.

Every full name, alias and generic name is indexed at priority 1; each word
of a multi-word name is indexed on its own at priority 2 if it is at least
``min_token_length`` characters long. A smaller priority number wins.

Collisions at equal priority:
- the same owner inserting the same key again is a no-op;
- a roster owner (player or character) beats an entity of a player-linked
  type (``roster_owner_wins``);
- anything else makes the slot Ambiguous, remembering every contender.

Keys compare case-insensitively (``str.lower``) but diacritics are kept, so
"Łódź" and "Lodz" are different keys. Entries remember the casing of the
first key inserted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union

from kronika.config import settings
from kronika.models.entity import Entity, Owner, Player
from kronika.morphology import POLISH_RULES, MorphologyRules

logger = logging.getLogger(__name__)

PRIORITY_NAME = 1
"""Full name or declared alias."""

PRIORITY_WORD = 2
"""Single word taken from a multi-word name."""


@dataclass(frozen=True)
class Unique:
    """Index slot owned by exactly one owner."""

    key: str
    owner: Owner
    priority: int


@dataclass(frozen=True)
class Ambiguous:
    """Index slot shared by several owners at the same priority."""

    key: str
    owners: tuple[Owner, ...]
    priority: int


IndexEntry = Union[Unique, Ambiguous]


def normalize_key(key: str) -> str:
    """Case-fold for lookups; diacritics and inner spacing are preserved."""
    return " ".join(key.split()).lower()


def roster_owner_wins(incoming: Owner, existing: Owner) -> bool:
    """Tie-break: a roster owner beats an entity of a player-linked type.

    A player who also has a store entry (or a character mirrored as a
    ``Postać Gracza`` entity) must resolve to the roster record rather than
    turn the key ambiguous. No other type pair gets this treatment.
    """
    return (
        not isinstance(incoming, Entity)
        and isinstance(existing, Entity)
        and existing.type.is_player_linked
    )


class TokenIndex:
    """Case-insensitive identity index with a parallel stem index."""

    def __init__(
        self,
        rules: MorphologyRules = POLISH_RULES,
        *,
        min_token_length: int | None = None,
    ) -> None:
        self._rules = rules
        self._min_token_length = (
            min_token_length if min_token_length is not None else settings.min_token_length
        )
        self._entries: dict[str, IndexEntry] = {}
        self._stems: dict[str, list[str]] = {}

    @classmethod
    def build(
        cls,
        entities: Iterable[Entity],
        players: Iterable[Player] = (),
        *,
        rules: MorphologyRules = POLISH_RULES,
        min_token_length: int | None = None,
    ) -> TokenIndex:
        """Index every player, roster character and entity.

        Players go first. Expired aliases are indexed too since narrative
        text may still use an old name.
        """
        index = cls(rules, min_token_length=min_token_length)
        for player in players:
            index.add_name(player.name, player)
            for character in player.characters:
                for name in character.names():
                    index.add_name(name, character)

        for entity in entities:
            for name in entity.names():
                index.add_name(name, entity)
            for name in entity.generic_names:
                index.add_name(name, entity)

        ambiguous = sum(1 for entry in index if isinstance(entry, Ambiguous))
        logger.debug("Built token index: %d keys, %d ambiguous", len(index), ambiguous)
        return index

    @property
    def rules(self) -> MorphologyRules:
        return self._rules

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[IndexEntry]:
        return iter(self._entries.values())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._entries

    def get(self, key: str) -> IndexEntry | None:
        return self._entries.get(normalize_key(key))

    def keys(self) -> list[str]:
        """Normalized (lower-cased) keys in insertion order."""
        return list(self._entries)

    def stem_candidates(self, stem: str) -> list[str]:
        """Normalized keys whose stemmed form equals ``stem``."""
        return list(self._stems.get(normalize_key(stem), ()))

    def add_name(self, name: str, owner: Owner) -> None:
        """Index a full name and, for multi-word names, its long-enough words."""
        name = " ".join(name.split())
        if not name:
            return
        self.add(name, owner, PRIORITY_NAME)

        words = name.split()
        if len(words) < 2:
            return
        for word in words:
            if len(word) >= self._min_token_length:
                self.add(word, owner, PRIORITY_WORD)

    def add(self, key: str, owner: Owner, priority: int) -> IndexEntry:
        """Insert one key, applying the priority and ambiguity rules."""
        norm = normalize_key(key)
        existing = self._entries.get(norm)

        if existing is None:
            entry: IndexEntry = Unique(key, owner, priority)
            self._entries[norm] = entry
            self._register_stem(norm)
            return entry

        if priority < existing.priority:
            entry = Unique(existing.key, owner, priority)
            self._entries[norm] = entry
            return entry

        if priority > existing.priority:
            return existing

        entry = self._merge_equal(existing, owner)
        self._entries[norm] = entry
        return entry

    def _merge_equal(self, existing: IndexEntry, owner: Owner) -> IndexEntry:
        if isinstance(existing, Unique):
            current = existing.owner
            if current is owner or roster_owner_wins(current, owner):
                return existing
            if roster_owner_wins(owner, current):
                return Unique(existing.key, owner, existing.priority)
            logger.debug("Key %r is ambiguous", existing.key)
            return Ambiguous(existing.key, (current, owner), existing.priority)

        owners = existing.owners
        if any(other is owner for other in owners):
            return existing
        if all(roster_owner_wins(owner, other) for other in owners):
            return Unique(existing.key, owner, existing.priority)
        if any(roster_owner_wins(other, owner) for other in owners):
            return existing
        return Ambiguous(existing.key, (*owners, owner), existing.priority)

    def _register_stem(self, norm: str) -> None:
        stem = normalize_key(self._rules.stem_phrase(norm))
        self._stems.setdefault(stem, []).append(norm)
