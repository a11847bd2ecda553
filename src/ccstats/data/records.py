"""Load usage records and aggregated summaries from JSON files."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class RecordLoadError(Exception):
    """Raised when an input file cannot be read or has the wrong shape."""


def load_records(path: Path) -> list[dict[str, Any]]:
    """Read raw usage records from a ``.jsonl`` or ``.json`` file.

    JSON Lines files hold one record object per line; lines that are not
    valid JSON objects are logged and skipped. JSON files hold either a list
    of records or an object with a ``records`` list. Records are returned
    unvalidated; the stats calculator skips malformed ones.
    """
    text = _read_text(path)
    if path.suffix.lower() == ".jsonl":
        return list(_parse_json_lines(text, path))

    data = _parse_json(text, path)
    if isinstance(data, dict):
        data = data.get("records")
    if not isinstance(data, list):
        raise RecordLoadError(f"{path}: expected a list of records or a 'records' list")
    records = [entry for entry in data if isinstance(entry, dict)]
    if len(records) != len(data):
        logger.warning("Skipped %d non-object entries in %s", len(data) - len(records), path)
    return records


def load_summary(path: Path) -> dict[str, Any]:
    """Read one aggregated summary object."""
    data = _parse_json(_read_text(path), path)
    if not isinstance(data, dict):
        raise RecordLoadError(f"{path}: expected a JSON object")
    return data


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RecordLoadError(f"Cannot read {path}: {exc}") from exc


def _parse_json(text: str, path: Path) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise RecordLoadError(f"Invalid JSON in {path}: {exc}") from exc


def _parse_json_lines(text: str, path: Path) -> Iterator[dict[str, Any]]:
    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON at %s:%d", path, line_num)
            continue
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object record at %s:%d", path, line_num)
            continue
        yield raw
