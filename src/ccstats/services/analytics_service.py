"""Analytics service: end-to-end analysis of usage records and summaries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from result import Err, Ok, Result

from ccstats.i18n import DEFAULT_LANGUAGE, normalize_language, rating_label
from ccstats.models.analytics import (
    AnalysisReport,
    BasicStats,
    ComparisonReport,
    EfficiencyMetrics,
    StatsComparison,
    ToolUsageAnalysis,
    ToolUsageReport,
    TrendAnalysis,
)
from ccstats.services.basic_stats import BasicStatsCalculator, StatsComparator
from ccstats.services.code_estimator import read_edit_counts
from ccstats.services.efficiency import EfficiencyCalculator
from ccstats.services.insights import InsightsGenerator
from ccstats.services.protocols import TrendAnalyzerProtocol
from ccstats.services.recommendations import RecommendationEngine
from ccstats.services.trends import TrendsAnalyzer

logger = logging.getLogger(__name__)

# Fractional change needed before a comparison is worth mentioning.
TIME_CHANGE_THRESHOLD = 0.2
EFFICIENCY_CHANGE_THRESHOLD = 0.15
COST_CHANGE_THRESHOLD = 0.25
LOW_TOOL_SCORE = 5.0
FEW_TOOLS = 3

MESSAGES: dict[str, dict[str, str]] = {
    "zh-CN": {
        "summary": (
            "开发 {hours:.1f} 小时，消耗 {tokens:,} 个 Token，"
            "生产力评分 {score:.1f}/10（{rating}）"
        ),
        "time_up": "工作时间增加了 {pct:.1f}%",
        "time_down": "工作时间减少了 {pct:.1f}%",
        "efficiency_up": "开发效率提升了 {pct:.1f}%",
        "efficiency_down": "开发效率下降了 {pct:.1f}%",
        "cost_up": "成本增加了 {pct:.1f}%",
        "cost_down": "成本减少了 {pct:.1f}%",
        "low_tool": "{tool} 工具使用效率较低，建议优化使用方式",
        "few_tools": "工具使用种类较少，可以尝试更多 Claude Code 功能",
        "read_heavy": "阅读操作较多，建议提前整理需求，减少重复阅读",
    },
    "en-US": {
        "summary": (
            "{hours:.1f} hours of development, {tokens:,} tokens, "
            "productivity {score:.1f}/10 ({rating})"
        ),
        "time_up": "Working time increased {pct:.1f}%",
        "time_down": "Working time decreased {pct:.1f}%",
        "efficiency_up": "Efficiency improved {pct:.1f}%",
        "efficiency_down": "Efficiency dropped {pct:.1f}%",
        "cost_up": "Cost increased {pct:.1f}%",
        "cost_down": "Cost decreased {pct:.1f}%",
        "low_tool": "{tool} is used inefficiently; consider changing how you use it",
        "few_tools": "Only a few tools are in use; try more Claude Code features",
        "read_heavy": "Reads dominate; clarify requirements up front to avoid rereading",
    },
}


class AnalyticsService:
    """Runs the full analytics pipeline and reports failures as ``Err``."""

    def __init__(
        self,
        stats_calculator: BasicStatsCalculator | None = None,
        efficiency_calculator: EfficiencyCalculator | None = None,
        trend_analyzer: TrendAnalyzerProtocol | None = None,
        insights_generator: InsightsGenerator | None = None,
        recommendation_engine: RecommendationEngine | None = None,
        *,
        language: str = DEFAULT_LANGUAGE,
        granularity: str = "day",
    ) -> None:
        self._stats = stats_calculator or BasicStatsCalculator()
        self._efficiency = efficiency_calculator or EfficiencyCalculator()
        self._trends = trend_analyzer or TrendsAnalyzer()
        self._insights = insights_generator or InsightsGenerator()
        self._recommendations = recommendation_engine or RecommendationEngine()
        self._comparator = StatsComparator()
        self._language = normalize_language(language)
        self._granularity = granularity

    def analyze_records(
        self,
        records: Iterable[object],
        *,
        language: str | None = None,
        timeframe: str = "week",
        granularity: str | None = None,
    ) -> Result[AnalysisReport, str]:
        """Analyze raw usage records.

        Args:
            records: UsageRecord instances or mappings; malformed ones are skipped.
            language: Report language, defaults to the service language.
            timeframe: Label of the analysed window.
            granularity: 'day', 'week' or 'month' buckets for the trend series.
        """
        lang = normalize_language(language, self._language)
        try:
            batch = list(records or [])
            logger.info("Analyzing %d usage records (%s)", len(batch), timeframe)
            stats = self._stats.from_records(batch)
            periods = self._stats.group_by_period(batch, granularity or self._granularity)
            trends = self._trends.analyze(list(periods.values()), timeframe, labels=list(periods))
            return Ok(self._build_report(stats, trends, lang, timeframe))
        except Exception as exc:
            logger.exception("Record analysis failed")
            return Err(f"Analysis failed: {exc}")

    def analyze_summary(
        self,
        summary: Mapping[str, Any],
        *,
        language: str | None = None,
        timeframe: str = "week",
    ) -> Result[AnalysisReport, str]:
        """Analyze one pre-aggregated summary; trends need more than one period."""
        lang = normalize_language(language, self._language)
        try:
            stats = self._stats.from_aggregated_summary(summary)
            trends = self._trends.analyze([stats], timeframe)
            return Ok(self._build_report(stats, trends, lang, timeframe))
        except Exception as exc:
            logger.exception("Summary analysis failed")
            return Err(f"Analysis failed: {exc}")

    def analyze_tool_usage(
        self, stats: BasicStats, language: str | None = None
    ) -> Result[ToolUsageReport, str]:
        lang = normalize_language(language, self._language)
        try:
            analysis = self._efficiency.analyze_tool_usage(stats.tool_usage, stats.total_time_hours)
            score = 0.0
            if analysis:
                score = round(sum(t.efficiency_score for t in analysis) / len(analysis), 1)
            return Ok(
                ToolUsageReport(
                    tool_analysis=analysis,
                    recommendations=tool_recommendations(analysis, stats, lang),
                    efficiency_score=score,
                )
            )
        except Exception as exc:
            logger.exception("Tool usage analysis failed")
            return Err(f"Analysis failed: {exc}")

    def compare(
        self, current: BasicStats, previous: BasicStats, language: str | None = None
    ) -> Result[ComparisonReport, str]:
        """Compare two periods and describe the notable changes."""
        lang = normalize_language(language, self._language)
        try:
            comparison = self._comparator.compare(current, previous)
            return Ok(
                ComparisonReport(
                    comparison=comparison,
                    insights=comparison_insights(comparison, lang),
                )
            )
        except Exception as exc:
            logger.exception("Period comparison failed")
            return Err(f"Analysis failed: {exc}")

    def quick_summary(
        self, stats: BasicStats, efficiency: EfficiencyMetrics, language: str | None = None
    ) -> str:
        lang = normalize_language(language, self._language)
        return MESSAGES[lang]["summary"].format(
            hours=stats.total_time_hours,
            tokens=stats.total_tokens,
            score=efficiency.productivity_score,
            rating=rating_label(efficiency.efficiency_rating, lang),
        )

    def _build_report(
        self, stats: BasicStats, trends: TrendAnalysis, language: str, timeframe: str
    ) -> AnalysisReport:
        efficiency = self._efficiency.calculate(stats)
        tool_analysis = self._efficiency.analyze_tool_usage(
            stats.tool_usage, stats.total_time_hours
        )
        cost_analysis = self._efficiency.calculate_cost_analysis(stats, language)
        insights = self._insights.generate(
            stats, efficiency, trends, language, cost_analysis=cost_analysis
        )
        recommendations = self._recommendations.generate(
            stats, efficiency, trends, language, cost_analysis=cost_analysis
        )
        logger.debug(
            "Report ready: score=%.1f insights=%d suggestions=%d",
            efficiency.productivity_score,
            len(insights.insights),
            len(recommendations.suggestions),
        )
        return AnalysisReport(
            timeframe=timeframe,
            language=language,
            basic_stats=stats,
            efficiency=efficiency,
            tool_analysis=tool_analysis,
            cost_analysis=cost_analysis,
            trends=trends,
            insights=insights,
            recommendations=recommendations,
            summary=self.quick_summary(stats, efficiency, language),
            generated_at=datetime.now(UTC).isoformat(),
        )


def comparison_insights(comparison: StatsComparison, language: str) -> list[str]:
    messages = MESSAGES[language]
    insights: list[str] = []
    checks = (
        ("time", comparison.time_change, TIME_CHANGE_THRESHOLD),
        ("efficiency", comparison.efficiency_change, EFFICIENCY_CHANGE_THRESHOLD),
        ("cost", comparison.cost_change, COST_CHANGE_THRESHOLD),
    )
    for key, change, threshold in checks:
        if abs(change) > threshold:
            direction = "up" if change > 0 else "down"
            insights.append(messages[f"{key}_{direction}"].format(pct=abs(change) * 100))
    return insights


def tool_recommendations(
    analysis: list[ToolUsageAnalysis], stats: BasicStats, language: str
) -> list[str]:
    messages = MESSAGES[language]
    recommendations: list[str] = []
    weak = [t for t in analysis if t.efficiency_score < LOW_TOOL_SCORE]
    if weak:
        recommendations.append(messages["low_tool"].format(tool=weak[0].tool_name))
    if len(analysis) < FEW_TOOLS:
        recommendations.append(messages["few_tools"])
    reads, edits = read_edit_counts(stats.tool_usage)
    if reads > edits * 2:
        recommendations.append(messages["read_heavy"])
    return recommendations
