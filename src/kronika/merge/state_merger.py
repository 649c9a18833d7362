"""Applies dated change-directives from session records onto the store.

For each directive (in session-date order):
1. Resolve the target: a unique exact entity name first, then the name
   resolver. A player or character hit maps back to the store entity of the
   same name. Unresolved targets are logged and skipped.
2. For each tag/value pair:
   - values without an explicit validity range hold from the session date on
   - known tags go to the typed histories, quantity accepts +N / -N deltas
   - unknown tags go to the entity's overrides
3. Touched entities are re-sorted and their derived fields recomputed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from kronika.index.token_index import TokenIndex
from kronika.models.entity import Entity, Owner, Player
from kronika.models.enums import HistoryField
from kronika.models.temporal import TemporalValue, last_active, parse_temporal
from kronika.resolution.resolver import NameResolver, ResolutionCache
from kronika.schemas import ChangeDirective, TagChange
from kronika.store.entity_store import EntityStore

logger = logging.getLogger(__name__)

# Directive tag -> history, ASCII spellings included
TAG_FIELDS: dict[str, HistoryField] = {
    **{which.value: which for which in HistoryField},
    "wlasciciel": HistoryField.OWNER,
    "ilosc": HistoryField.QUANTITY,
}

_DELTA_RE = re.compile(r"^(?P<sign>[+-])\s*(?P<amount>\d+)$")


def route_tag(tag: str) -> HistoryField | None:
    """The typed history a directive tag belongs to, None for free-form tags."""
    return TAG_FIELDS.get(tag.strip().lower())


@dataclass
class SkippedDirective:
    """A directive whose target could not be resolved."""

    target: str
    session_date: date


@dataclass
class MergeReport:
    """Outcome of applying one batch of directives."""

    applied: int = 0
    """Directives whose target resolved."""

    changes: int = 0
    """Tag/value pairs written."""

    skipped: list[SkippedDirective] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    touched: list[Entity] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]


class StateMerger:
    """Writes session changes back into an entity store.

    Usage:
        merger = StateMerger(store, players=players)
        report = merger.apply(directives)
    """

    def __init__(
        self,
        store: EntityStore,
        resolver: NameResolver | None = None,
        *,
        players: Iterable[Player] = (),
    ) -> None:
        self._store = store
        if resolver is None:
            resolver = NameResolver.for_index(TokenIndex.build(store, players))
        self._resolver = resolver

    def apply(self, directives: Iterable[ChangeDirective]) -> MergeReport:
        """Apply every directive; one bad target never stops the batch."""
        report = MergeReport()
        cache = ResolutionCache()
        touched: dict[Entity, None] = {}

        for directive in sorted(directives, key=lambda d: d.session_date):
            entity = self.resolve_target(directive.target, cache=cache)
            if entity is None:
                logger.warning(
                    "Unresolved entity reference %r (session %s), skipping directive",
                    directive.target,
                    directive.session_date.isoformat(),
                )
                report.skipped.append(SkippedDirective(directive.target, directive.session_date))
                continue

            for change in directive.changes:
                self._apply_change(entity, change, directive.session_date)
                report.changes += 1
            report.applied += 1
            touched[entity] = None

        report.touched = list(touched)
        self._store.refresh(report.touched)
        logger.info(
            "Applied %d directives (%d changes), skipped %d",
            report.applied,
            report.changes,
            len(report.skipped),
        )
        return report

    def resolve_target(self, text: str, *, cache: ResolutionCache | None = None) -> Entity | None:
        """Map a directive's free-text target onto a store entity."""
        wanted = text.strip()
        exact = [entity for entity in self._store.find_by_name(wanted) if entity.name == wanted]
        if len(exact) == 1:
            return exact[0]

        owner = self._resolver.resolve(wanted, cache=cache)
        if owner is None:
            return None
        if isinstance(owner, Entity):
            return owner
        return self._entity_for_roster_owner(owner)

    def _entity_for_roster_owner(self, owner: Owner) -> Entity | None:
        candidates = self._store.find_by_name(owner.name)
        for entity in candidates:
            if entity.type.is_player_linked:
                return entity
        if candidates:
            return candidates[0]
        logger.debug("Roster owner %r has no store entity", owner.name)
        return None

    def _apply_change(self, entity: Entity, change: TagChange, session_date: date) -> None:
        value = parse_temporal(change.value)
        if not value.is_bounded:
            value = value.with_start(session_date)

        which = route_tag(change.tag)
        if which is None:
            entity.overrides.setdefault(change.tag.strip(), []).append(value)
            return

        if which is HistoryField.QUANTITY:
            value = self._apply_delta(entity, value, session_date)
        entity.history(which).append(value)

    def _apply_delta(self, entity: Entity, value: TemporalValue, session_date: date) -> TemporalValue:
        """Turn ``+N`` / ``-N`` into an absolute count against the active quantity."""
        match = _DELTA_RE.match(value.text.strip())
        if match is None:
            return value

        current = last_active(entity.quantity_history, value.valid_from or session_date)
        base = 0
        if current is not None:
            try:
                base = int(current.text.strip())
            except ValueError:
                logger.warning(
                    "Quantity %r of %r is not a number, applying %s to 0",
                    current.text,
                    entity.name,
                    value.text,
                )

        amount = int(match["amount"])
        total = base + amount if match["sign"] == "+" else base - amount
        return TemporalValue(str(total), value.valid_from, value.valid_to)


def merge_state(
    store: EntityStore,
    directives: Iterable[ChangeDirective],
    players: Iterable[Player] = (),
    *,
    resolver: NameResolver | None = None,
) -> EntityStore:
    """Apply ``directives`` to ``store`` in place and return it."""
    StateMerger(store, resolver, players=players).apply(directives)
    return store
