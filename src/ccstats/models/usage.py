"""Raw usage input models handed over by the data-source layer."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


def coerce_number(value: Any) -> float:
    """Coerce loosely typed numeric input to float, falling back to 0."""
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_count(value: Any) -> int:
    """Coerce a loosely typed counter to int, falling back to 0."""
    return int(coerce_number(value))


def coerce_count_map(value: Any) -> dict[str, int]:
    """Normalize a name -> count mapping, dropping non-string keys."""
    if not isinstance(value, dict):
        return {}
    return {str(k): coerce_count(v) for k, v in value.items() if isinstance(k, str)}


def coerce_path_list(value: Any) -> list[str]:
    if not isinstance(value, list | tuple):
        return []
    return [item for item in value if isinstance(item, str) and item]


class TokenUsage(BaseModel):
    """Token counts for one record or summary."""

    input: int = 0
    output: int = 0
    total: int = 0

    @field_validator("input", "output", "total", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return coerce_count(value)

    @model_validator(mode="before")
    @classmethod
    def _default_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("total") is None:
            data = dict(data)
            data["total"] = coerce_count(data.get("input")) + coerce_count(data.get("output"))
        return data


class UsageRecord(BaseModel):
    """One session-scoped usage record.

    Numeric fields are coerced leniently but never clamped here; negative
    values survive so the stats calculator can clamp them.
    """

    session_id: str = Field(min_length=1)
    timestamp: str = ""
    model: str = ""
    active_time_seconds: float = 0.0
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    tool_usage: dict[str, int] = Field(default_factory=dict)
    files_modified: list[str] = Field(default_factory=list)
    cost_usd: float = 0.0

    @field_validator("session_id", mode="before")
    @classmethod
    def _session_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("timestamp", "model", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("active_time_seconds", "cost_usd", mode="before")
    @classmethod
    def _number(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("token_usage", mode="before")
    @classmethod
    def _tokens(cls, value: Any) -> Any:
        return value if isinstance(value, dict | TokenUsage) else {}

    @field_validator("tool_usage", mode="before")
    @classmethod
    def _tools(cls, value: Any) -> dict[str, int]:
        return coerce_count_map(value)

    @field_validator("files_modified", mode="before")
    @classmethod
    def _files(cls, value: Any) -> list[str]:
        return coerce_path_list(value)


class TimeSpan(BaseModel):
    start: str = ""
    end: str = ""
    duration_minutes: float = 0.0

    @field_validator("duration_minutes", mode="before")
    @classmethod
    def _minutes(cls, value: Any) -> float:
        return coerce_number(value)


class CostTotals(BaseModel):
    input: float = 0.0
    output: float = 0.0
    total: float = 0.0

    @field_validator("input", "output", "total", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> float:
        return coerce_number(value)


class ActivitySummary(BaseModel):
    """Activity block of an aggregated summary.

    ``tools_used`` accepts either a list of tool names (one invocation per
    entry) or a name -> count mapping.
    """

    sessions: int = 0
    messages: int = 0
    tools_used: dict[str, int] = Field(default_factory=dict)
    files_modified: list[str] = Field(default_factory=list)

    @field_validator("sessions", "messages", mode="before")
    @classmethod
    def _count(cls, value: Any) -> int:
        return coerce_count(value)

    @field_validator("tools_used", mode="before")
    @classmethod
    def _tools(cls, value: Any) -> dict[str, int]:
        if isinstance(value, list | tuple):
            counts: dict[str, int] = {}
            for name in value:
                if isinstance(name, str) and name:
                    counts[name] = counts.get(name, 0) + 1
            return counts
        return coerce_count_map(value)

    @field_validator("files_modified", mode="before")
    @classmethod
    def _files(cls, value: Any) -> list[str]:
        return coerce_path_list(value)


class AggregatedSummary(BaseModel):
    """One pre-aggregated usage summary for a whole analysis window."""

    project: str = ""
    timespan: TimeSpan = Field(default_factory=TimeSpan)
    tokens: TokenUsage = Field(default_factory=TokenUsage)
    costs: CostTotals = Field(default_factory=CostTotals)
    activity: ActivitySummary = Field(default_factory=ActivitySummary)
