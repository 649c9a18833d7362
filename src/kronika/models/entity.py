"""In-memory entity, player and character records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Union

from kronika.models.enums import EntityType, HistoryField, OwnerKind
from kronika.models.temporal import (
    TemporalValue,
    last_active,
    parse_temporal,
    sort_history,
    union_history,
)

if TYPE_CHECKING:
    from kronika.schemas import CharacterRecord, EntityRecord, PlayerRecord


def _parse_all(raw_values: list[str]) -> list[TemporalValue]:
    return [parse_temporal(raw) for raw in raw_values if raw.strip()]


@dataclass(eq=False)
class Entity:
    """A named thing in the store with time-versioned attributes.

    ``(type, name)`` is the addressing key. Instances hash by identity so they
    can key memo tables such as the canonical path cache.
    """

    name: str
    type: EntityType
    alias_history: list[TemporalValue] = field(default_factory=list)
    location_history: list[TemporalValue] = field(default_factory=list)
    group_history: list[TemporalValue] = field(default_factory=list)
    owner_history: list[TemporalValue] = field(default_factory=list)
    status_history: list[TemporalValue] = field(default_factory=list)
    door_history: list[TemporalValue] = field(default_factory=list)
    type_history: list[TemporalValue] = field(default_factory=list)
    quantity_history: list[TemporalValue] = field(default_factory=list)
    generic_names: list[str] = field(default_factory=list)
    overrides: dict[str, list[TemporalValue]] = field(default_factory=dict)

    # Derived fields, recomputed by the store after merges
    canonical_path: str | None = None
    current_location: str | None = None
    current_status: str | None = None

    @property
    def key(self) -> tuple[EntityType, str]:
        return (self.type, self.name)

    def history(self, which: HistoryField) -> list[TemporalValue]:
        """Return the live history list for ``which`` (mutations stick)."""
        return getattr(self, _HISTORY_ATTRS[which])

    def histories(self) -> dict[HistoryField, list[TemporalValue]]:
        return {which: self.history(which) for which in HistoryField}

    def sort_histories(self) -> None:
        """Order every history by start bound; undated entries first."""
        for history in self.histories().values():
            sort_history(history)
        for values in self.overrides.values():
            sort_history(values)

    def refresh_derived(self, as_of: date | None = None) -> None:
        """Recompute the scalar fields from the current histories.

        The canonical path is left to ``CanonicalPathResolver`` since it
        depends on other entities.
        """
        location = last_active(self.location_history, as_of)
        status = last_active(self.status_history, as_of)
        self.current_location = location.text if location else None
        self.current_status = status.text if status else None

    def names(self) -> list[str]:
        """Name plus every alias ever held."""
        return [self.name, *(alias.text for alias in self.alias_history)]

    def absorb(self, other: Entity) -> None:
        """Union ``other``'s histories into this entity.

        ``other`` is treated as the later-applied source: for single-valued
        histories its undated entries replace this entity's undated entries.
        """
        for which, incoming in other.histories().items():
            target = self.history(which)
            if which.is_single_valued and any(not item.is_bounded for item in incoming):
                target[:] = [item for item in target if item.is_bounded]
            union_history(target, incoming)

        for name in other.generic_names:
            if name not in self.generic_names:
                self.generic_names.append(name)

        for tag, values in other.overrides.items():
            union_history(self.overrides.setdefault(tag, []), values)

    @classmethod
    def from_record(cls, record: EntityRecord) -> Entity:
        return cls(
            name=record.name.strip(),
            type=record.type,
            alias_history=_parse_all(record.aliases),
            location_history=_parse_all(record.location),
            group_history=_parse_all(record.group),
            owner_history=_parse_all(record.owner),
            status_history=_parse_all(record.status),
            door_history=_parse_all(record.door),
            type_history=_parse_all(record.type_history),
            quantity_history=_parse_all(record.quantity),
            generic_names=[name.strip() for name in record.generic_names if name.strip()],
            overrides={tag: _parse_all(values) for tag, values in record.overrides.items()},
        )

    def to_record(self) -> EntityRecord:
        from kronika.schemas import EntityRecord

        def dump(history: list[TemporalValue]) -> list[str]:
            return [str(item) for item in history]

        return EntityRecord(
            name=self.name,
            type=self.type,
            aliases=dump(self.alias_history),
            location=dump(self.location_history),
            group=dump(self.group_history),
            owner=dump(self.owner_history),
            status=dump(self.status_history),
            door=dump(self.door_history),
            type_history=dump(self.type_history),
            quantity=dump(self.quantity_history),
            generic_names=list(self.generic_names),
            overrides={tag: dump(values) for tag, values in self.overrides.items()},
        )

    def __repr__(self) -> str:
        return f"Entity({self.type.value}/{self.name})"


_HISTORY_ATTRS: dict[HistoryField, str] = {
    HistoryField.ALIAS: "alias_history",
    HistoryField.LOCATION: "location_history",
    HistoryField.GROUP: "group_history",
    HistoryField.OWNER: "owner_history",
    HistoryField.STATUS: "status_history",
    HistoryField.DOOR: "door_history",
    HistoryField.TYPE: "type_history",
    HistoryField.QUANTITY: "quantity_history",
}


@dataclass(eq=False)
class Character:
    """A character on a player's roster."""

    name: str
    aliases: list[TemporalValue] = field(default_factory=list)
    player: Player | None = field(default=None, repr=False)

    def names(self) -> list[str]:
        return [self.name, *(alias.text for alias in self.aliases)]


@dataclass(eq=False)
class Player:
    """A player and the characters they own."""

    name: str
    characters: list[Character] = field(default_factory=list)

    def add_character(self, character: Character) -> None:
        character.player = self
        self.characters.append(character)

    @classmethod
    def from_record(cls, record: PlayerRecord) -> Player:
        player = cls(name=record.name.strip())
        for char in record.characters:
            player.add_character(_character_from_record(char))
        return player

    def to_record(self) -> PlayerRecord:
        from kronika.schemas import CharacterRecord, PlayerRecord

        return PlayerRecord(
            name=self.name,
            characters=[
                CharacterRecord(name=char.name, aliases=[str(alias) for alias in char.aliases])
                for char in self.characters
            ],
        )


def _character_from_record(record: CharacterRecord) -> Character:
    return Character(name=record.name.strip(), aliases=_parse_all(record.aliases))


Owner = Union[Entity, Player, Character]
"""Anything an identity-index key can point at."""


def owner_kind(owner: Owner) -> OwnerKind:
    if isinstance(owner, Player):
        return OwnerKind.PLAYER
    if isinstance(owner, Character):
        return OwnerKind.CHARACTER
    return OwnerKind.ENTITY


def owner_type(owner: Owner) -> EntityType:
    """The entity type an owner counts as when a type filter is applied."""
    if isinstance(owner, Player):
        return EntityType.PLAYER
    if isinstance(owner, Character):
        return EntityType.PLAYER_CHARACTER
    return owner.type
