"""Enumerations for the Kronika data model."""

from enum import Enum


class EntityType(str, Enum):
    """Kind of entity kept in the store.

    The value is the Polish label used in canonical paths (``Lokacja/...``).
    """

    PERSON = "Postać"
    ORGANIZATION = "Organizacja"
    PLACE = "Lokacja"
    ITEM = "Przedmiot"
    PLAYER = "Gracz"  # Player-linked: the player's own entry in the store
    PLAYER_CHARACTER = "Postać Gracza"  # Player-linked: a roster character

    @property
    def is_player_linked(self) -> bool:
        return self in (EntityType.PLAYER, EntityType.PLAYER_CHARACTER)

    @classmethod
    def parse(cls, label: str) -> "EntityType":
        """Look up a type by value or member name, case-insensitively."""
        wanted = label.strip().lower()
        for member in cls:
            if member.value.lower() == wanted or member.name.lower() == wanted:
                return member
        msg = f"Unknown entity type: {label!r}"
        raise ValueError(msg)


class OwnerKind(str, Enum):
    """What an index entry points at."""

    ENTITY = "entity"
    PLAYER = "player"
    CHARACTER = "character"


class HistoryField(str, Enum):
    """Typed attribute histories carried by an entity.

    Values are the directive tag names used in session records.
    """

    ALIAS = "alias"
    LOCATION = "lokacja"
    GROUP = "grupa"
    OWNER = "właściciel"
    STATUS = "status"
    DOOR = "drzwi"
    TYPE = "typ"
    QUANTITY = "ilość"

    @property
    def is_single_valued(self) -> bool:
        """True when only one entry is meant to hold at a time."""
        return self in SINGLE_VALUED_FIELDS


SINGLE_VALUED_FIELDS = frozenset({
    HistoryField.LOCATION,
    HistoryField.OWNER,
    HistoryField.STATUS,
    HistoryField.TYPE,
    HistoryField.QUANTITY,
})


class MatchStage(str, Enum):
    """Which resolver stage produced a match."""

    EXACT = "exact"
    DECLENSION = "declension"
    ALTERNATION = "alternation"
    FUZZY = "fuzzy"
