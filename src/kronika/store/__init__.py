"""Entity store and canonical path resolution."""

from kronika.store.canonical import CanonicalPathResolver, flat_path
from kronika.store.entity_store import EntitySource, EntityStore

__all__ = [
    "CanonicalPathResolver",
    "EntitySource",
    "EntityStore",
    "flat_path",
]
