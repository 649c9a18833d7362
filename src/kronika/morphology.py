"""Polish noun morphology heuristics for name matching.

Two kinds of rule are used by the resolver:

- Case endings (dative ``-owi``, instrumental ``-em``, locative ``-ie`` ...)
  that are stripped to get at a name's stem. The longest matching ending
  wins, provided the stem keeps ``min_stem_length`` characters.
- Stem alternations, where the final consonant of the stem changes in front
  of an ending (``Bracada`` -> ``Bracadzie``). Each pair maps the inflected
  ending back to the base ending.

Rules are immutable and passed to the index and resolver explicitly.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from kronika.config import settings

# Noun and adjective case endings, any order (sorted longest first on use)
POLISH_CASE_SUFFIXES: tuple[str, ...] = (
    "owie",
    "owi",
    "ami",
    "ach",
    "iem",
    "ego",
    "emu",
    "ów",
    "em",
    "om",
    "ie",
    "ą",
    "ę",
    "a",
    "u",
    "y",
    "i",
    "e",
    "o",
)

# (inflected ending, base ending), tried in this order
POLISH_STEM_ALTERNATIONS: tuple[tuple[str, str], ...] = (
    ("dzie", "da"),
    ("dzie", "d"),
    ("ście", "st"),
    ("cie", "ta"),
    ("cie", "t"),
    ("rze", "ra"),
    ("rze", "r"),
    ("dze", "ga"),
    ("sze", "cha"),
    ("ce", "ka"),
    ("le", "ła"),
    ("le", "ł"),
)


@dataclass(frozen=True)
class MorphologyRules:
    """Case endings and stem alternations for one language."""

    suffixes: tuple[str, ...] = POLISH_CASE_SUFFIXES
    alternations: tuple[tuple[str, str], ...] = POLISH_STEM_ALTERNATIONS
    min_stem_length: int = 3

    def __post_init__(self) -> None:
        ordered = tuple(sorted((s.lower() for s in self.suffixes), key=len, reverse=True))
        object.__setattr__(self, "suffixes", ordered)

    def stem(self, word: str) -> str:
        """Strip the longest case ending that leaves a long enough stem.

        Casing of the kept part is preserved. Words that only match endings
        which would over-strip them come back unchanged.
        """
        lowered = word.lower()
        for suffix in self.suffixes:
            if lowered.endswith(suffix) and len(word) - len(suffix) >= self.min_stem_length:
                return word[: -len(suffix)]
        return word

    def stem_phrase(self, text: str) -> str:
        """Stem every word of a (possibly multi-word) name."""
        return " ".join(self.stem(word) for word in text.split())

    def alternation_candidates(self, text: str) -> Iterator[str]:
        """Yield base forms for every alternation whose ending matches ``text``."""
        words = text.split()
        if not words:
            return
        last = words[-1].lower()
        for inflected, base in self.alternations:
            if last.endswith(inflected) and len(last) - len(inflected) >= self.min_stem_length:
                yield text.rstrip()[: -len(inflected)] + base


POLISH_RULES = MorphologyRules(min_stem_length=settings.min_stem_length)
