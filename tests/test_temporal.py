"""Tests for temporal values and "as of" resolution."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from kronika.models.temporal import (
    TemporalValue,
    all_active,
    is_active,
    last_active,
    parse_date_bound,
    parse_temporal,
    sort_history,
    union_history,
)


class TestParseDateBound:
    """Tests for partial date expansion."""

    def test_full_date(self) -> None:
        assert parse_date_bound("2024-04-15") == date(2024, 4, 15)

    def test_year_as_start(self) -> None:
        assert parse_date_bound("2024") == date(2024, 1, 1)

    def test_year_as_end(self) -> None:
        assert parse_date_bound("2024", end=True) == date(2024, 12, 31)

    def test_month_as_start(self) -> None:
        assert parse_date_bound("2024-06") == date(2024, 6, 1)

    def test_month_as_end(self) -> None:
        assert parse_date_bound("2024-06", end=True) == date(2024, 6, 30)

    def test_february_leap_year(self) -> None:
        assert parse_date_bound("2024-02", end=True) == date(2024, 2, 29)

    def test_february_common_year(self) -> None:
        assert parse_date_bound("2023-02", end=True) == date(2023, 2, 28)

    def test_empty_is_unbounded(self) -> None:
        assert parse_date_bound("") is None
        assert parse_date_bound("   ", end=True) is None

    @pytest.mark.parametrize("fragment", ["20x4", "2024-13", "2024-02-30", "jutro", "2024/01"])
    def test_malformed_raises(self, fragment: str) -> None:
        with pytest.raises(ValueError):
            parse_date_bound(fragment)


class TestParseTemporal:
    """Tests for parsing values with validity annotations."""

    def test_plain_value(self) -> None:
        assert parse_temporal("Erathia") == TemporalValue("Erathia")

    def test_closed_range(self) -> None:
        value = parse_temporal("Erathia (2024-01:2024-06)")
        assert value == TemporalValue("Erathia", date(2024, 1, 1), date(2024, 6, 30))

    def test_open_end(self) -> None:
        value = parse_temporal("Steadwick (2025-03-01:)")
        assert value == TemporalValue("Steadwick", date(2025, 3, 1), None)

    def test_open_start(self) -> None:
        value = parse_temporal("Stary Most (:1205)")
        assert value == TemporalValue("Stary Most", None, date(1205, 12, 31))

    def test_parenthesis_without_range_is_text(self) -> None:
        assert parse_temporal("Xeron (Demon)").text == "Xeron (Demon)"

    def test_malformed_range_becomes_plain_text(self) -> None:
        value = parse_temporal("Erathia (20x4:2024-06)")
        assert value == TemporalValue("Erathia (20x4:2024-06)")
        assert not value.is_bounded

    def test_invalid_month_becomes_plain_text(self) -> None:
        value = parse_temporal("Erathia (2024-13:)")
        assert value.text == "Erathia (2024-13:)"
        assert not value.is_bounded

    def test_str_round_trip(self) -> None:
        value = TemporalValue("Bracada", date(2024, 1, 1), date(2024, 6, 30))
        assert parse_temporal(str(value)) == value

    def test_value_is_immutable(self) -> None:
        value = TemporalValue("Bracada")
        with pytest.raises(FrozenInstanceError):
            value.text = "Steadwick"  # type: ignore[misc]


class TestActiveResolution:
    """Tests for is_active, last_active and all_active."""

    @pytest.fixture
    def history(self) -> list[TemporalValue]:
        return [
            parse_temporal("A (2024-01:2024-06)"),
            parse_temporal("B (2024-07:)"),
        ]

    def test_last_active_inside_first_interval(self, history: list[TemporalValue]) -> None:
        result = last_active(history, date(2024, 4, 15))
        assert result is not None and result.text == "A"

    def test_last_active_after_switch(self, history: list[TemporalValue]) -> None:
        result = last_active(history, date(2025, 1, 1))
        assert result is not None and result.text == "B"

    def test_last_active_without_date_is_most_recent(self, history: list[TemporalValue]) -> None:
        result = last_active(history, None)
        assert result is not None and result.text == "B"

    def test_last_active_before_everything(self, history: list[TemporalValue]) -> None:
        assert last_active(history, date(2023, 12, 31)) is None

    def test_last_active_empty(self) -> None:
        assert last_active([], date(2024, 1, 1)) is None

    def test_bounds_are_inclusive(self) -> None:
        item = parse_temporal("A (2024-01-01:2024-01-31)")
        assert is_active(item, date(2024, 1, 1))
        assert is_active(item, date(2024, 1, 31))
        assert not is_active(item, date(2024, 2, 1))

    def test_unbounded_item_always_active(self) -> None:
        assert is_active(TemporalValue("A"), date(1, 1, 1))

    def test_no_date_means_active(self) -> None:
        assert is_active(parse_temporal("A (2024-01:2024-02)"), None)

    def test_last_recorded_wins_on_overlap(self) -> None:
        history = [TemporalValue("old"), TemporalValue("new")]
        result = last_active(history, date(2024, 1, 1))
        assert result is not None and result.text == "new"

    def test_all_active_keeps_order(self) -> None:
        history = [
            parse_temporal("Gildia Kupców (2020:)"),
            parse_temporal("Straż (2021:2022)"),
            parse_temporal("Zakon (2022:)"),
        ]
        active = all_active(history, date(2022, 6, 1))
        assert [item.text for item in active] == ["Gildia Kupców", "Straż", "Zakon"]
        assert [item.text for item in all_active(history, date(2023, 1, 1))] == [
            "Gildia Kupców",
            "Zakon",
        ]


class TestHistoryHelpers:
    """Tests for sorting and unioning histories."""

    def test_sort_puts_undated_first(self) -> None:
        history = [
            parse_temporal("C (2025:)"),
            TemporalValue("undated"),
            parse_temporal("A (2024:)"),
            parse_temporal("ends (:2023)"),
        ]
        sort_history(history)
        assert [item.text for item in history] == ["undated", "ends", "A", "C"]

    def test_sort_is_stable_for_equal_starts(self) -> None:
        history = [parse_temporal("first (2024:)"), parse_temporal("second (2024:)")]
        sort_history(history)
        assert [item.text for item in history] == ["first", "second"]

    def test_union_skips_duplicates(self) -> None:
        target = [TemporalValue("A"), parse_temporal("B (2024:)")]
        union_history(target, [parse_temporal("B (2024:)"), TemporalValue("C")])
        assert [item.text for item in target] == ["A", "B", "C"]

    def test_union_keeps_same_text_with_other_validity(self) -> None:
        target = [parse_temporal("B (2024:)")]
        union_history(target, [parse_temporal("B (2025:)")])
        assert len(target) == 2
