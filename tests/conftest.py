"""Shared fixtures for ccstats tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from ccstats.models.analytics import BasicStats

SAMPLE_RECORDS: list[dict[str, Any]] = [
    {
        "session_id": "s1",
        "timestamp": "2025-03-03T09:00:00Z",
        "model": "claude-sonnet-4",
        "active_time_seconds": 3600,
        "token_usage": {"input": 600, "output": 400, "total": 1000},
        "tool_usage": {"Read": 4, "Edit": 3},
        "files_modified": ["src/a.py"],
        "cost_usd": 0.2,
    },
    {
        "session_id": "s2",
        "timestamp": "2025-03-03T14:30:00Z",
        "active_time_seconds": 1800,
        "token_usage": {"input": 500, "output": 300},
        "tool_usage": {"Grep": 2, "Write": 1},
        "files_modified": ["src/b.py"],
        "cost_usd": 0.1,
    },
    {
        "session_id": "s3",
        "timestamp": "2025-03-04T10:00:00Z",
        "model": "claude-sonnet-4",
        "active_time_seconds": 3600,
        "token_usage": {"input": 900, "output": 600, "total": 1500},
        "tool_usage": {"Edit": 5, "Bash": 2},
        "files_modified": ["src/a.py", "src/c.py"],
        "cost_usd": 0.3,
    },
    {
        "session_id": "s4",
        "timestamp": "2025-03-05T16:00:00Z",
        "model": "claude-opus-4",
        "active_time_seconds": 5400,
        "token_usage": {"input": 1400, "output": 1000, "total": 2400},
        "tool_usage": {"MultiEdit": 2, "Read": 3, "Task": 1},
        "files_modified": ["tests/test_a.py"],
        "cost_usd": 0.5,
    },
]


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """Four sessions spread over three days."""
    return [dict(record) for record in SAMPLE_RECORDS]


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """JSON Lines file holding the sample records."""
    path = tmp_path / "usage.jsonl"
    path.write_text("\n".join(json.dumps(record) for record in SAMPLE_RECORDS) + "\n")
    return path


@pytest.fixture
def summary_data() -> dict[str, Any]:
    """A pre-aggregated summary for a 90 minute window."""
    return {
        "project": "/work/demo",
        "timespan": {
            "start": "2025-03-03T09:00:00Z",
            "end": "2025-03-03T10:30:00Z",
            "duration_minutes": 90,
        },
        "tokens": {"input": 1200, "output": 800, "total": 2000},
        "costs": {"input": 0.1, "output": 0.3, "total": 0.4},
        "activity": {
            "sessions": 2,
            "messages": 40,
            "tools_used": ["Edit", "Edit", "Read", "Bash"],
            "files_modified": ["src/a.py", "src/b.py"],
        },
    }


def make_stats(
    hours: float = 1.0,
    tokens: int = 1500,
    cost: float = 0.1,
    tools: dict[str, int] | None = None,
    sessions: int = 1,
    files: list[str] | None = None,
    model_usage: dict[str, int] | None = None,
) -> BasicStats:
    """BasicStats with consistent derived fields."""
    files = files or []
    return BasicStats(
        session_count=sessions,
        total_time_seconds=hours * 3600,
        total_time_hours=hours,
        total_tokens=tokens,
        total_cost_usd=cost,
        files_modified_count=len(files),
        files_modified=files,
        tool_usage=tools if tools is not None else {"Edit": 6, "Write": 2},
        model_usage=model_usage or {},
    )


@pytest.fixture
def stats_factory() -> Callable[..., BasicStats]:
    """Factory for BasicStats; see ``make_stats``."""
    return make_stats
