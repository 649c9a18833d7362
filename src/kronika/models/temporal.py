"""Time-bounded attribute values and "as of" resolution.

A TemporalValue is a piece of text with an optional validity interval. Both
bounds are inclusive and either may be absent (unbounded past or future).

Validity annotations are written after the value in parentheses::

    Erathia (2024-01:2024-06)
    Steadwick (2025-03-01:)
    Stary Most (:1205)

Partial dates expand to the first day of the period for a start bound and to
the last calendar day of the period for an end bound.
"""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date

logger = logging.getLogger(__name__)

# "<text> (<from>:<to>)" with optional whitespace, bounds may be empty
_ANNOTATION_RE = re.compile(r"^(?P<text>.*?)\s*\((?P<start>[^():]*):(?P<end>[^():]*)\)\s*$")
_DATE_RE = re.compile(r"^(?P<year>\d{1,4})(?:-(?P<month>\d{1,2})(?:-(?P<day>\d{1,2}))?)?$")


@dataclass(frozen=True)
class TemporalValue:
    """A value together with the interval during which it holds."""

    text: str
    valid_from: date | None = None
    valid_to: date | None = None

    @property
    def is_bounded(self) -> bool:
        """True if at least one validity bound is set."""
        return self.valid_from is not None or self.valid_to is not None

    def with_start(self, start: date) -> TemporalValue:
        """Return a copy that holds from ``start`` with no end."""
        return replace(self, valid_from=start, valid_to=None)

    def __str__(self) -> str:
        if not self.is_bounded:
            return self.text
        start = self.valid_from.isoformat() if self.valid_from else ""
        end = self.valid_to.isoformat() if self.valid_to else ""
        return f"{self.text} ({start}:{end})"


def parse_date_bound(fragment: str, *, end: bool = False) -> date | None:
    """Parse a full or partial date used as an interval bound.

    Args:
        fragment: ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``. Empty means unbounded.
        end: Expand partial dates to the last day of the period instead of the first.

    Returns:
        The bound date, or None for an empty fragment.

    Raises:
        ValueError: If the fragment is not a valid date.
    """
    fragment = fragment.strip()
    if not fragment:
        return None

    match = _DATE_RE.match(fragment)
    if match is None:
        msg = f"Malformed date fragment: {fragment!r}"
        raise ValueError(msg)

    year = int(match["year"])
    if match["month"] is None:
        return date(year, 12, 31) if end else date(year, 1, 1)

    month = int(match["month"])
    if match["day"] is None:
        if not 1 <= month <= 12:
            msg = f"Month out of range: {fragment!r}"
            raise ValueError(msg)
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, last_day if end else 1)

    return date(year, month, int(match["day"]))


def parse_temporal(raw: str) -> TemporalValue:
    """Parse a raw value with an optional validity annotation.

    Never raises: if the annotation cannot be parsed the whole raw string
    becomes a plain, unbounded value.
    """
    raw = raw.strip()
    match = _ANNOTATION_RE.match(raw)
    if match is None or not match["text"]:
        return TemporalValue(raw)

    try:
        start = parse_date_bound(match["start"])
        end = parse_date_bound(match["end"], end=True)
    except ValueError:
        logger.debug("Unparseable validity in %r, keeping it as plain text", raw)
        return TemporalValue(raw)

    return TemporalValue(match["text"], start, end)


def is_active(item: TemporalValue, as_of: date | None) -> bool:
    """Check whether ``item`` holds on ``as_of`` (always true when as_of is None)."""
    if as_of is None or not item.is_bounded:
        return True
    if item.valid_from is not None and as_of < item.valid_from:
        return False
    if item.valid_to is not None and as_of > item.valid_to:
        return False
    return True


def last_active(history: Sequence[TemporalValue], as_of: date | None = None) -> TemporalValue | None:
    """Return the last recorded entry active on ``as_of``."""
    for item in reversed(history):
        if is_active(item, as_of):
            return item
    return None


def all_active(history: Iterable[TemporalValue], as_of: date | None = None) -> list[TemporalValue]:
    """Return every entry active on ``as_of``, in recorded order."""
    return [item for item in history if is_active(item, as_of)]


def sort_history(history: list[TemporalValue]) -> None:
    """Stable in-place sort by start bound; entries without a start come first."""
    history.sort(key=lambda item: (item.valid_from is not None, item.valid_from or date.min))


def union_history(target: list[TemporalValue], incoming: Iterable[TemporalValue]) -> None:
    """Append entries from ``incoming`` that ``target`` does not hold yet."""
    seen = set(target)
    for item in incoming:
        if item not in seen:
            target.append(item)
            seen.add(item)
