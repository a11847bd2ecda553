"""Pydantic models for ccstats."""

from ccstats.models.analytics import (
    AnalysisReport,
    AnomalyCounts,
    BasicStats,
    ComparisonReport,
    CostAnalysis,
    CostBreakdown,
    DailyMetric,
    EfficiencyMetrics,
    EfficiencyRating,
    Insight,
    RecommendationBundle,
    SeasonalityAnalysis,
    SmartInsights,
    StatsComparison,
    ToolUsageAnalysis,
    ToolUsageReport,
    TrendAnalysis,
    ValidationReport,
)
from ccstats.models.usage import (
    ActivitySummary,
    AggregatedSummary,
    CostTotals,
    TimeSpan,
    TokenUsage,
    UsageRecord,
)

__all__ = [
    "ActivitySummary",
    "AggregatedSummary",
    "AnalysisReport",
    "AnomalyCounts",
    "BasicStats",
    "ComparisonReport",
    "CostAnalysis",
    "CostBreakdown",
    "CostTotals",
    "DailyMetric",
    "EfficiencyMetrics",
    "EfficiencyRating",
    "Insight",
    "RecommendationBundle",
    "SeasonalityAnalysis",
    "SmartInsights",
    "StatsComparison",
    "TimeSpan",
    "TokenUsage",
    "ToolUsageAnalysis",
    "ToolUsageReport",
    "TrendAnalysis",
    "UsageRecord",
    "ValidationReport",
]
