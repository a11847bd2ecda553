"""Configuration for ccstats."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

DEFAULT_LINE_WEIGHTS: Mapping[str, int] = MappingProxyType(
    {
        "Edit": 15,
        "MultiEdit": 35,
        "Write": 60,
        "NotebookEdit": 25,
        "Task": 40,
        "Bash": 8,
        "Read": 0,
        "Grep": 0,
        "Glob": 0,
        "LS": 0,
        "WebFetch": 0,
    }
)


@dataclass(frozen=True)
class Config:
    """Analytics configuration."""

    language: str = "zh-CN"
    trend_analyzer: str = "basic"
    granularity: str = "day"
    line_weights: Mapping[str, int] = field(default_factory=lambda: dict(DEFAULT_LINE_WEIGHTS))
    default_line_weight: int = 10
    max_insights: int = 8
    max_suggestions: int = 6
    anomaly_threshold: float = 2.0
