"""Pydantic schemas for records exchanged with the parsing collaborators.

The entity and session parsers decode their text formats into these shapes.
History fields hold raw strings; each may carry a validity annotation such as
``"Erathia (2024-01:2024-06)"`` (see ``kronika.models.temporal``).
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from kronika.models.enums import EntityType


def _coerce_entity_type(v: Any) -> Any:
    """Accept type labels ("Lokacja") as well as member names ("place")."""
    if isinstance(v, str):
        return EntityType.parse(v)
    return v


def _coerce_to_string(v: Any) -> str:
    """Coerce directive values to strings.

    Session parsers may hand over numbers for quantities (3 instead of "3").
    """
    if v is None:
        return ""
    return str(v)


class EntityRecord(BaseModel):
    """One entity as decoded from a single source."""

    name: str = Field(description="Canonical name, unique within its type")
    type: Annotated[EntityType, BeforeValidator(_coerce_entity_type)] = Field(
        description="Entity kind (label or member name)"
    )
    aliases: list[str] = Field(default_factory=list, description="Alternate names")
    location: list[str] = Field(default_factory=list, description="Location history")
    group: list[str] = Field(default_factory=list, description="Group membership history")
    owner: list[str] = Field(default_factory=list, description="Ownership history")
    status: list[str] = Field(default_factory=list, description="Status history")
    door: list[str] = Field(default_factory=list, description="Door/connection history")
    type_history: list[str] = Field(default_factory=list, description="Sub-type history")
    quantity: list[str] = Field(default_factory=list, description="Open-ended count history")
    generic_names: list[str] = Field(
        default_factory=list,
        description="Untimed category labels, e.g. denomination names",
    )
    overrides: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Arbitrary tag -> raw values not covered by the typed histories",
    )


class SourceRecord(BaseModel):
    """An ordered source of entity records."""

    name: str
    primacy: int = Field(default=0, description="Higher primacy is applied later and wins")
    entities: list[EntityRecord] = Field(default_factory=list)


class CharacterRecord(BaseModel):
    """A character owned by a player."""

    name: str
    aliases: list[str] = Field(default_factory=list)


class PlayerRecord(BaseModel):
    """A player and their character roster."""

    name: str
    characters: list[CharacterRecord] = Field(default_factory=list)


class TagChange(BaseModel):
    """A single tag/value pair on a change-directive."""

    tag: str = Field(description="Attribute tag, e.g. 'lokacja' or 'ilość'")
    value: Annotated[str, BeforeValidator(_coerce_to_string)] = Field(
        description="Raw value, optionally annotated with an explicit validity range"
    )


class ChangeDirective(BaseModel):
    """A dated change to an entity, extracted from a session record."""

    target: str = Field(description="Free-text reference to the entity")
    session_date: date = Field(description="Date of the session the change happened in")
    changes: list[TagChange] = Field(default_factory=list)


class Snapshot(BaseModel):
    """Everything needed to build a resolution session."""

    players: list[PlayerRecord] = Field(default_factory=list)
    sources: list[SourceRecord] = Field(default_factory=list)
