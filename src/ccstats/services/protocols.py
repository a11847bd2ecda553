"""Protocol definitions for services."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any, Protocol

from result import Result

from ccstats.models.analytics import (
    AnalysisReport,
    BasicStats,
    ComparisonReport,
    EfficiencyMetrics,
    RecommendationBundle,
    SmartInsights,
    ToolUsageReport,
    TrendAnalysis,
)


class TrendAnalyzerProtocol(Protocol):
    """Interface shared by the registered trend analyzers."""

    name: str

    def analyze(
        self,
        periods: Sequence[BasicStats],
        timeframe: str = "week",
        *,
        labels: Sequence[str] | None = None,
        end_date: date | None = None,
    ) -> TrendAnalysis: ...


class InsightsGeneratorProtocol(Protocol):
    """Interface for insight generation."""

    def generate(
        self,
        stats: BasicStats,
        efficiency: EfficiencyMetrics,
        trends: TrendAnalysis,
        language: str | None = None,
    ) -> SmartInsights: ...


class RecommendationEngineProtocol(Protocol):
    """Interface for recommendation generation."""

    def generate(
        self,
        stats: BasicStats,
        efficiency: EfficiencyMetrics,
        trends: TrendAnalysis,
        language: str | None = None,
    ) -> RecommendationBundle: ...


class AnalyticsServiceProtocol(Protocol):
    """Interface for end-to-end analysis requests."""

    def analyze_records(
        self,
        records: Iterable[object],
        *,
        language: str | None = None,
        timeframe: str = "week",
        granularity: str | None = None,
    ) -> Result[AnalysisReport, str]: ...

    def analyze_summary(
        self,
        summary: Mapping[str, Any],
        *,
        language: str | None = None,
        timeframe: str = "week",
    ) -> Result[AnalysisReport, str]: ...

    def analyze_tool_usage(
        self, stats: BasicStats, language: str | None = None
    ) -> Result[ToolUsageReport, str]: ...

    def compare(
        self, current: BasicStats, previous: BasicStats, language: str | None = None
    ) -> Result[ComparisonReport, str]: ...
