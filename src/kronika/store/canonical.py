"""Canonical path (CN) resolution.

Places nest through their location history, so an inn inside a city inside a
region gets ``Lokacja/Enroth/Erathia/Gospoda``. Every other type is flat:
``Postać/Xeron Demonlord``.

The walk is iterative with a visited set. Results are memoized per entity
(identity) and every place passed on the way is memoized too, so a store is
resolved in roughly one pass over its places. A location cycle gives its
smallest-named member the flat path and nests the other members under it, so
the result does not depend on which place the walk started from.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from kronika.models.entity import Entity
from kronika.models.enums import EntityType
from kronika.models.temporal import all_active, last_active

if TYPE_CHECKING:
    from kronika.store.entity_store import EntityStore

logger = logging.getLogger(__name__)

PLACE_ROOT = EntityType.PLACE.value


def flat_path(entity: Entity) -> str:
    """``Type/Name`` path used for non-places and as the cycle fallback."""
    return f"{entity.type.value}/{entity.name}"


class CanonicalPathResolver:
    """Computes and memoizes canonical paths for the entities of one store."""

    def __init__(self, store: EntityStore, *, as_of: date | None = None) -> None:
        self._store = store
        self._as_of = as_of
        self._cache: dict[Entity, str] = {}

    def invalidate(self) -> None:
        """Forget every memoized path (call after locations change)."""
        self._cache.clear()

    def parent_name(self, place: Entity) -> str | None:
        """Where a place sits: its active location, else its first active door."""
        location = last_active(place.location_history, self._as_of)
        if location is not None:
            return location.text
        doors = all_active(place.door_history, self._as_of)
        if doors:
            return doors[0].text
        return None

    def resolve(self, entity: Entity) -> str:
        """Return the canonical path of ``entity``."""
        cached = self._cache.get(entity)
        if cached is not None:
            return cached

        if entity.type is not EntityType.PLACE:
            path = flat_path(entity)
            self._cache[entity] = path
            return path

        chain: list[Entity] = []
        visited: set[Entity] = set()
        current = entity
        while True:
            known = self._cache.get(current)
            if known is not None:
                prefix = known
                break

            if current in visited:
                start = chain.index(current)
                prefix = self._break_cycle(chain[start:], entity)
                chain = chain[:start]
                break

            visited.add(current)
            chain.append(current)

            parent_name = self.parent_name(current)
            if parent_name is None:
                prefix = PLACE_ROOT
                break

            parent = self._store.find_place(parent_name)
            if parent is None:
                # Unknown parent becomes the root segment
                prefix = f"{PLACE_ROOT}/{parent_name}"
                break
            current = parent

        path = prefix
        for place in reversed(chain):
            path = f"{path}/{place.name}"
            self._cache[place] = path
        return path

    def _break_cycle(self, cycle: list[Entity], entity: Entity) -> str:
        """Memoize paths for a location cycle and return the path of its head.

        ``cycle[k]`` sits in ``cycle[k + 1]`` and the last member sits in the
        first. The member with the smallest name gets the flat path and the
        others nest under it, whichever member the walk entered at.
        """
        anchor = min(range(len(cycle)), key=lambda k: cycle[k].name)
        logger.warning(
            "Location cycle through %s while resolving path of %r, %r gets a flat path",
            " -> ".join(repr(place.name) for place in cycle),
            entity.name,
            cycle[anchor].name,
        )

        path = flat_path(cycle[anchor])
        self._cache[cycle[anchor]] = path
        for step in range(1, len(cycle)):
            place = cycle[(anchor - step) % len(cycle)]
            path = f"{path}/{place.name}"
            self._cache[place] = path
        return self._cache[cycle[0]]
