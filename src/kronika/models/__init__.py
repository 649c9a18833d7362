"""Data model for Kronika."""

from kronika.models.entity import (
    Character,
    Entity,
    Owner,
    Player,
    owner_kind,
    owner_type,
)
from kronika.models.enums import EntityType, HistoryField, MatchStage, OwnerKind
from kronika.models.temporal import (
    TemporalValue,
    all_active,
    is_active,
    last_active,
    parse_date_bound,
    parse_temporal,
)

__all__ = [
    "Character",
    "Entity",
    "EntityType",
    "HistoryField",
    "MatchStage",
    "Owner",
    "OwnerKind",
    "Player",
    "TemporalValue",
    "all_active",
    "is_active",
    "last_active",
    "owner_kind",
    "owner_type",
    "parse_date_bound",
    "parse_temporal",
]
