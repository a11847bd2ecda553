"""Tests for reading usage records and summaries from disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ccstats.data.records import RecordLoadError, load_records, load_summary


def test_jsonl_skips_bad_lines(tmp_path: Path) -> None:
    path = tmp_path / "usage.jsonl"
    path.write_text(
        '{"session_id": "a", "active_time_seconds": 60}\n'
        "not json\n"
        "\n"
        "[1, 2]\n"
        '{"session_id": "b"}\n'
    )
    records = load_records(path)
    assert [record["session_id"] for record in records] == ["a", "b"]


def test_jsonl_fixture_round_trip(records_file: Path) -> None:
    assert len(load_records(records_file)) == 4


def test_json_list(tmp_path: Path) -> None:
    path = tmp_path / "usage.json"
    path.write_text(json.dumps([{"session_id": "a"}, "junk", {"session_id": "b"}]))
    assert [record["session_id"] for record in load_records(path)] == ["a", "b"]


def test_json_records_object(tmp_path: Path) -> None:
    path = tmp_path / "usage.json"
    path.write_text(json.dumps({"records": [{"session_id": "a"}]}))
    assert load_records(path) == [{"session_id": "a"}]


def test_json_without_records_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "usage.json"
    path.write_text(json.dumps({"sessions": []}))
    with pytest.raises(RecordLoadError, match="records"):
        load_records(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(RecordLoadError, match="Cannot read"):
        load_records(tmp_path / "missing.jsonl")


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "usage.json"
    path.write_text("{oops")
    with pytest.raises(RecordLoadError, match="Invalid JSON"):
        load_records(path)


class TestLoadSummary:
    def test_reads_object(self, tmp_path: Path, summary_data) -> None:
        path = tmp_path / "summary.json"
        path.write_text(json.dumps(summary_data))
        assert load_summary(path) == summary_data

    def test_rejects_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "summary.json"
        path.write_text("[]")
        with pytest.raises(RecordLoadError, match="JSON object"):
            load_summary(path)
