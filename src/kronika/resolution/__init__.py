"""Name resolution for Kronika.

Submodules:
- resolver: exact, declension, stem-alternation and edit-distance stages

The morphology rules it relies on live in ``kronika.morphology``.
"""

from kronika.resolution.resolver import (
    NO_MATCH,
    NameResolver,
    Resolution,
    ResolutionCache,
    ResolutionRequest,
)

__all__ = [
    "NO_MATCH",
    "NameResolver",
    "Resolution",
    "ResolutionCache",
    "ResolutionRequest",
]
