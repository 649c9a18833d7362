"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from kronika.cli import app
from kronika.schemas import Snapshot

runner = CliRunner()

SNAPSHOT = {
    "players": [{"name": "Anna", "characters": [{"name": "Lira", "aliases": ["Cicha Stopa"]}]}],
    "sources": [
        {
            "name": "świat",
            "primacy": 0,
            "entities": [
                {"name": "Enroth", "type": "Lokacja"},
                {"name": "Erathia", "type": "Lokacja", "location": ["Enroth"]},
                {"name": "Bracada", "type": "Lokacja", "location": ["Erathia"]},
                {"name": "Steadwick", "type": "Lokacja", "location": ["Erathia"]},
                {
                    "name": "Kupiec Orrin",
                    "type": "Postać",
                    "location": ["Bracada (2024-01-01:)"],
                },
                {"name": "Sakiewka", "type": "Przedmiot", "quantity": ["12"]},
            ],
        },
        {
            "name": "kampania",
            "primacy": 1,
            "entities": [{"name": "Kupiec Orrin", "type": "Postać", "status": ["żywy"]}],
        },
    ],
}


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(SNAPSHOT, ensure_ascii=False), encoding="utf-8")
    return path


class TestResolve:
    """Tests for `kronika resolve`."""

    def test_resolves_inflected_name(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Bracadzie"])
        assert result.exit_code == 0
        assert "Bracada" in result.output
        assert "alternation" in result.output

    def test_no_match_exits_with_error(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Zzyzx"])
        assert result.exit_code == 1
        assert "no match" in result.output

    def test_type_filter(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Bracada", "--type", "Postać"])
        assert result.exit_code == 1

    def test_unknown_type(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Bracada", "--type", "Smok"])
        assert result.exit_code == 1
        assert "Unknown entity type" in result.output

    def test_reports_owner_kind(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Lirą", "Bracada"])
        assert result.exit_code == 0
        assert "Kind" in result.output
        assert "character" in result.output
        assert "entity" in result.output

    def test_full_scan(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(snapshot_path), "Steadwik", "--no-tree"])
        assert result.exit_code == 0
        assert "fuzzy" in result.output

    def test_missing_snapshot(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["resolve", str(tmp_path / "missing.json"), "Enroth"])
        assert result.exit_code == 1
        assert "Cannot load snapshot" in result.output

    def test_invalid_snapshot(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text('{"sources": [{"entities": [{"name": "X", "type": "Smok"}]}]}')
        result = runner.invoke(app, ["resolve", str(path), "X"])
        assert result.exit_code == 1


class TestShowEntity:
    """Tests for `kronika show-entity`."""

    def test_shows_path_and_merged_histories(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["show-entity", str(snapshot_path), "Orrinowi"])
        assert result.exit_code == 0
        assert "Entity Details" in result.output
        assert "Postać/Kupiec Orrin" in result.output
        assert "żywy" in result.output

    def test_place_path(self, snapshot_path: Path) -> None:
        result = runner.invoke(
            app, ["show-entity", str(snapshot_path), "Bracada", "--type", "Lokacja"]
        )
        assert result.exit_code == 0
        assert "Lokacja/Enroth/Erathia/Bracada" in result.output

    def test_not_found(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["show-entity", str(snapshot_path), "Zzyzx"])
        assert result.exit_code == 1
        assert "Entity not found" in result.output

    def test_bad_date(self, snapshot_path: Path) -> None:
        result = runner.invoke(
            app, ["show-entity", str(snapshot_path), "Bracada", "--as-of", "wczoraj"]
        )
        assert result.exit_code == 1
        assert "Invalid date" in result.output


class TestMergeState:
    """Tests for `kronika merge-state`."""

    @pytest.fixture
    def directives_path(self, tmp_path: Path) -> Path:
        path = tmp_path / "directives.json"
        directives = [
            {
                "target": "Kupiec Orrin",
                "session_date": "2025-03-01",
                "changes": [{"tag": "lokacja", "value": "Steadwick"}],
            },
            {
                "target": "Sakiewka",
                "session_date": "2025-03-01",
                "changes": [{"tag": "ilość", "value": "+3"}],
            },
            {
                "target": "Zzyzx Qwerty",
                "session_date": "2025-03-02",
                "changes": [{"tag": "status", "value": "martwy"}],
            },
        ]
        path.write_text(json.dumps(directives, ensure_ascii=False), encoding="utf-8")
        return path

    def test_report(self, snapshot_path: Path, directives_path: Path) -> None:
        result = runner.invoke(app, ["merge-state", str(snapshot_path), str(directives_path)])
        assert result.exit_code == 0
        assert "Merge Report" in result.output
        assert "Unresolved Targets" in result.output
        assert "Zzyzx Qwerty" in result.output

    def test_writes_merged_snapshot(
        self, snapshot_path: Path, directives_path: Path, tmp_path: Path
    ) -> None:
        output = tmp_path / "merged.json"
        result = runner.invoke(
            app,
            ["merge-state", str(snapshot_path), str(directives_path), "--output", str(output)],
        )
        assert result.exit_code == 0

        merged = Snapshot.model_validate_json(output.read_text(encoding="utf-8"))
        assert [player.name for player in merged.players] == ["Anna"]
        (source,) = merged.sources
        records = {record.name: record for record in source.entities}
        assert records["Kupiec Orrin"].location == [
            "Bracada (2024-01-01:)",
            "Steadwick (2025-03-01:)",
        ]
        assert records["Kupiec Orrin"].status == ["żywy"]
        assert records["Sakiewka"].quantity == ["12", "15 (2025-03-01:)"]

    def test_bad_directives(self, snapshot_path: Path, tmp_path: Path) -> None:
        path = tmp_path / "directives.json"
        path.write_text('[{"target": "Enroth"}]')
        result = runner.invoke(app, ["merge-state", str(snapshot_path), str(path)])
        assert result.exit_code == 1
        assert "Cannot load directives" in result.output


class TestStats:
    """Tests for `kronika stats`."""

    def test_counts(self, snapshot_path: Path) -> None:
        result = runner.invoke(app, ["stats", str(snapshot_path)])
        assert result.exit_code == 0
        assert "Entities by Type" in result.output
        assert "Lokacja" in result.output

    def test_ambiguous_owners_show_kind(self, tmp_path: Path) -> None:
        path = tmp_path / "snapshot.json"
        snapshot = {
            "players": [{"name": "Orrin", "characters": []}],
            "sources": [{"name": "świat", "entities": [{"name": "Orrin", "type": "Postać"}]}],
        }
        path.write_text(json.dumps(snapshot, ensure_ascii=False), encoding="utf-8")

        result = runner.invoke(app, ["stats", str(path)])
        assert result.exit_code == 0
        assert "Ambiguous Keys" in result.output
        assert "Orrin (player)" in result.output
        assert "Orrin (entity)" in result.output
