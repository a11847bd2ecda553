"""Analytics models."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

Priority = Literal["high", "medium", "low"]
InsightCategory = Literal["efficiency", "cost", "productivity", "tools", "trends"]


class BasicStats(BaseModel):
    """Aggregated totals over a set of usage records."""

    session_count: int = 0
    total_time_seconds: float = 0.0
    total_time_hours: float = 0.0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    files_modified_count: int = 0
    files_modified: list[str] = Field(default_factory=list)
    tool_usage: dict[str, int] = Field(default_factory=dict)
    model_usage: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> BasicStats:
        return cls()


class ValidationReport(BaseModel):
    """Outcome of validating a BasicStats instance."""

    valid: bool
    issues: list[str] = Field(default_factory=list)
    corrected: BasicStats


class StatsComparison(BaseModel):
    """Fractional change of the current period against the previous one."""

    time_change: float = 0.0
    tokens_change: float = 0.0
    cost_change: float = 0.0
    files_change: float = 0.0
    sessions_change: float = 0.0
    efficiency_change: float = 0.0


class EfficiencyRating(StrEnum):
    """Ordered rating buckets over the productivity score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    AVERAGE = "average"
    NEEDS_IMPROVEMENT = "needs_improvement"
    POOR = "poor"
    NO_DATA = "no_data"


class EfficiencyMetrics(BaseModel):
    """Normalized productivity indicators derived from BasicStats."""

    tokens_per_hour: float = 0.0
    lines_per_hour: float = 0.0
    estimated_lines_changed: int = 0
    productivity_score: float = 0.0
    cost_per_hour: float = 0.0
    efficiency_rating: EfficiencyRating = EfficiencyRating.NO_DATA

    @classmethod
    def no_data(cls) -> EfficiencyMetrics:
        return cls()

    @property
    def has_data(self) -> bool:
        return self.efficiency_rating != EfficiencyRating.NO_DATA


class ToolUsageAnalysis(BaseModel):
    """Per-tool usage and efficiency entry."""

    tool_name: str
    usage_count: int = 0
    usage_rate: float = 0.0
    estimated_lines: int = 0
    efficiency_score: float = 0.0


class CostBreakdown(BaseModel):
    """Approximate split of the total cost."""

    input_cost: float = 0.0
    output_cost: float = 0.0
    model_costs: dict[str, float] = Field(default_factory=dict)


class CostAnalysis(BaseModel):
    total_cost: float = 0.0
    cost_per_hour: float = 0.0
    cost_per_line: float = 0.0
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    optimization_suggestions: list[str] = Field(default_factory=list)


class DailyMetric(BaseModel):
    """Metrics of one period in a trend series."""

    tokens: int = 0
    time_hours: float = 0.0
    productivity_score: float = 0.0
    cost: float = 0.0
    files_count: int = 0


class AnomalyCounts(BaseModel):
    productivity: int = 0
    tokens: int = 0
    time: int = 0


class SeasonalityAnalysis(BaseModel):
    has_pattern: bool = False
    pattern_description: str = ""
    weekly_patterns: dict[str, float] = Field(default_factory=dict)


class TrendAnalysis(BaseModel):
    """Signed fractional deltas between the two halves of a period series.

    ``0.15`` means +15%. The advanced analyzer additionally fills
    ``anomalies``, ``seasonality`` and ``confidence_score``.
    """

    productivity_trend: float = 0.0
    token_trend: float = 0.0
    time_trend: float = 0.0
    daily_metrics: dict[str, DailyMetric] = Field(default_factory=dict)
    message: str = ""
    timeframe: str = ""
    analyzer: str = "basic"
    anomalies: AnomalyCounts | None = None
    seasonality: SeasonalityAnalysis | None = None
    confidence_score: float | None = None


class Insight(BaseModel):
    """One language-tagged observation."""

    type: str
    title: str = ""
    content: str
    priority: Priority = "low"


class SmartInsights(BaseModel):
    insights: list[Insight] = Field(default_factory=list)
    priority: Priority = "low"
    category: InsightCategory = "productivity"
    language: str = ""

    @property
    def messages(self) -> list[str]:
        return [insight.content for insight in self.insights]


class RecommendationBundle(BaseModel):
    priority: Priority = "low"
    suggestions: list[str] = Field(default_factory=list)
    language: str = ""


class ToolUsageReport(BaseModel):
    tool_analysis: list[ToolUsageAnalysis] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    efficiency_score: float = 0.0


class ComparisonReport(BaseModel):
    comparison: StatsComparison = Field(default_factory=StatsComparison)
    insights: list[str] = Field(default_factory=list)


class AnalysisReport(BaseModel):
    """Everything the analytics engine derives for one request."""

    timeframe: str
    language: str
    basic_stats: BasicStats
    efficiency: EfficiencyMetrics
    tool_analysis: list[ToolUsageAnalysis] = Field(default_factory=list)
    cost_analysis: CostAnalysis = Field(default_factory=CostAnalysis)
    trends: TrendAnalysis = Field(default_factory=TrendAnalysis)
    insights: SmartInsights = Field(default_factory=SmartInsights)
    recommendations: RecommendationBundle = Field(default_factory=RecommendationBundle)
    summary: str = ""
    generated_at: str = ""
