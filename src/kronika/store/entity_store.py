"""In-memory entity store merged from several ordered sources.

Sources are applied in ascending primacy. An entity that shows up in more
than one source is merged into a single record keyed by ``(type, name)``:

- histories are unioned, each entry keeps its own validity range;
- for single-valued attributes (location, owner, status, type, quantity) an
  undated entry from a later-applied source replaces earlier undated ones;
- aliases, groups, doors, generic names and overrides always union.

After merging, histories are sorted by start date and the derived fields
(current location and status, canonical path) are recomputed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date

from kronika.config import settings
from kronika.models.entity import Entity
from kronika.models.enums import EntityType
from kronika.schemas import EntityRecord, SourceRecord
from kronika.store.canonical import CanonicalPathResolver

logger = logging.getLogger(__name__)


@dataclass
class EntitySource:
    """A named batch of decoded entity records with its primacy."""

    name: str
    primacy: int = 0
    records: Sequence[EntityRecord] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]

    @classmethod
    def from_record(cls, record: SourceRecord) -> EntitySource:
        return cls(name=record.name, primacy=record.primacy, records=record.entities)

    def load(self) -> list[Entity]:
        """Convert this source's records, merging duplicates within the source."""
        by_key: dict[tuple[EntityType, str], Entity] = {}
        for record in self.records:
            entity = Entity.from_record(record)
            existing = by_key.get(entity.key)
            if existing is None:
                by_key[entity.key] = entity
            else:
                existing.absorb(entity)
        return list(by_key.values())


class EntityStore:
    """The merged set of entities for one resolution session.

    Usage:
        store = EntityStore.from_sources([base, campaign_overrides])
        erathia = store.get("Erathia", EntityType.PLACE)
        erathia.canonical_path  # "Lokacja/Enroth/Erathia"
    """

    def __init__(self, entities: Iterable[Entity] = (), *, as_of: date | None = None) -> None:
        self._by_key: dict[tuple[EntityType, str], Entity] = {}
        self._by_name: dict[str, list[Entity]] = {}
        self._as_of = as_of
        self._paths = CanonicalPathResolver(self, as_of=as_of)
        for entity in entities:
            self.add(entity)

    @classmethod
    def from_sources(
        cls,
        sources: Sequence[EntitySource],
        *,
        parallel: bool | None = None,
        max_workers: int | None = None,
        as_of: date | None = None,
    ) -> EntityStore:
        """Load and merge sources in primacy order.

        Loading each source is independent, so it may run in a thread pool;
        the merge itself always runs in primacy order and gives the same
        store either way.
        """
        if parallel is None:
            parallel = settings.parallel_source_load
        ordered = [
            source
            for _, source in sorted(enumerate(sources), key=lambda item: (item[1].primacy, item[0]))
        ]

        if parallel and len(ordered) > 1:
            workers = max_workers or settings.source_load_workers
            with ThreadPoolExecutor(max_workers=workers) as pool:
                loaded = list(pool.map(EntitySource.load, ordered))
        else:
            loaded = [source.load() for source in ordered]

        store = cls(as_of=as_of)
        for source, entities in zip(ordered, loaded):
            logger.debug("Merging %d entities from source %r", len(entities), source.name)
            for entity in entities:
                store.add(entity)

        store.refresh()
        logger.info("Loaded %d entities from %d sources", len(store), len(ordered))
        return store

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._by_key.values()))

    def __contains__(self, entity: object) -> bool:
        return isinstance(entity, Entity) and self._by_key.get(entity.key) is entity

    @property
    def paths(self) -> CanonicalPathResolver:
        return self._paths

    def add(self, entity: Entity) -> Entity:
        """Add an entity, merging it into an existing one with the same key.

        Returns the entity now held by the store.
        """
        existing = self._by_key.get(entity.key)
        if existing is not None:
            existing.absorb(entity)
            return existing

        self._by_key[entity.key] = entity
        self._by_name.setdefault(entity.name.lower(), []).append(entity)
        return entity

    def get(self, name: str, type: EntityType) -> Entity | None:
        return self._by_key.get((type, name))

    def find_by_name(self, name: str) -> list[Entity]:
        """Entities with this name (any type), matched case-insensitively."""
        return list(self._by_name.get(name.strip().lower(), ()))

    def find_place(self, name: str) -> Entity | None:
        """The place called ``name``, preferring an exact-case match."""
        exact = self.get(name, EntityType.PLACE)
        if exact is not None:
            return exact
        for entity in self.find_by_name(name):
            if entity.type is EntityType.PLACE:
                return entity
        return None

    def places(self) -> list[Entity]:
        return [entity for entity in self._by_key.values() if entity.type is EntityType.PLACE]

    def refresh(self, entities: Iterable[Entity] | None = None) -> None:
        """Re-sort histories and recompute derived fields.

        Only ``entities`` are re-sorted (all when None), but canonical paths
        are recomputed store-wide: moving one place moves everything inside it.
        """
        targets = list(self._by_key.values()) if entities is None else list(entities)
        for entity in targets:
            entity.sort_histories()
            entity.refresh_derived(self._as_of)

        self._paths.invalidate()
        for entity in self._by_key.values():
            entity.canonical_path = self._paths.resolve(entity)

    def to_records(self) -> list[EntityRecord]:
        return [entity.to_record() for entity in self._by_key.values()]
