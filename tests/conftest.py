"""Shared pytest fixtures for Kronika tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from kronika.index.token_index import TokenIndex
from kronika.models import Character, Entity, EntityType, Player, parse_temporal
from kronika.resolution.resolver import NameResolver
from kronika.store.entity_store import EntityStore

# Type aliases for factory fixtures
MakeEntity = Callable[..., Entity]
MakePlayer = Callable[..., Player]


@pytest.fixture
def make_entity() -> MakeEntity:
    """Factory fixture for creating Entity instances from raw strings."""

    def _make(
        name: str,
        type: EntityType = EntityType.PERSON,
        *,
        aliases: Sequence[str] = (),
        location: Sequence[str] = (),
        status: Sequence[str] = (),
        door: Sequence[str] = (),
        quantity: Sequence[str] = (),
        generic_names: Sequence[str] = (),
    ) -> Entity:
        return Entity(
            name=name,
            type=type,
            alias_history=[parse_temporal(raw) for raw in aliases],
            location_history=[parse_temporal(raw) for raw in location],
            status_history=[parse_temporal(raw) for raw in status],
            door_history=[parse_temporal(raw) for raw in door],
            quantity_history=[parse_temporal(raw) for raw in quantity],
            generic_names=list(generic_names),
        )

    return _make


@pytest.fixture
def make_player() -> MakePlayer:
    """Factory fixture for creating a Player with a character roster."""

    def _make(name: str, characters: dict[str, list[str]] | None = None) -> Player:
        player = Player(name=name)
        for char_name, aliases in (characters or {}).items():
            player.add_character(
                Character(name=char_name, aliases=[parse_temporal(a) for a in aliases])
            )
        return player

    return _make


@pytest.fixture
def players(make_player: MakePlayer) -> list[Player]:
    return [make_player("Anna", {"Lira": ["Cicha Stopa"]})]


@pytest.fixture
def store(make_entity: MakeEntity) -> EntityStore:
    """A small campaign world with nested places and a few people."""
    entities = [
        make_entity("Enroth", EntityType.PLACE),
        make_entity("Erathia", EntityType.PLACE, location=["Enroth"]),
        make_entity("Bracada", EntityType.PLACE, location=["Erathia"]),
        make_entity("Steadwick", EntityType.PLACE, location=["Erathia"]),
        make_entity("Xeron Demonlord", aliases=["Xeron"], status=["żywy"]),
        make_entity("Kupiec Orrin", location=["Bracada (2024-01-01:)"]),
        make_entity("Gildia Kupców", EntityType.ORGANIZATION),
        make_entity(
            "Sakiewka Orrina",
            EntityType.ITEM,
            quantity=["12"],
            generic_names=["Złota Korona"],
        ),
        make_entity("Anna", EntityType.PLAYER),
        make_entity("Lira", EntityType.PLAYER_CHARACTER),
    ]
    store = EntityStore(entities)
    store.refresh()
    return store


@pytest.fixture
def index(store: EntityStore, players: list[Player]) -> TokenIndex:
    return TokenIndex.build(store, players)


@pytest.fixture
def resolver(index: TokenIndex) -> NameResolver:
    return NameResolver.for_index(index, use_search_tree=True)
