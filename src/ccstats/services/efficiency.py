"""Efficiency metrics, per-tool analysis and cost analysis."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ccstats.i18n import normalize_language
from ccstats.models.analytics import (
    BasicStats,
    CostAnalysis,
    CostBreakdown,
    EfficiencyMetrics,
    EfficiencyRating,
    ToolUsageAnalysis,
)
from ccstats.services.code_estimator import (
    CodeEstimator,
    clean_tool_usage,
    read_edit_counts,
)

logger = logging.getLogger(__name__)

# Rating lower bounds, best first.
RATING_THRESHOLDS: tuple[tuple[float, EfficiencyRating], ...] = (
    (8.5, EfficiencyRating.EXCELLENT),
    (7.0, EfficiencyRating.GOOD),
    (5.5, EfficiencyRating.FAIR),
    (4.0, EfficiencyRating.AVERAGE),
    (2.5, EfficiencyRating.NEEDS_IMPROVEMENT),
)

TOKEN_RATE_REFERENCE = 1500
LINE_RATE_REFERENCE = 100
TOOL_BREADTH_REFERENCE = 6
LONG_SESSION_HOURS = 2.0
# Maximum weighted composite before rescaling to 0-10.
SCORE_SCALE = 3.0

TOOL_BASE_SCORES: dict[str, float] = {
    "Edit": 8,
    "MultiEdit": 9,
    "Write": 7,
    "Task": 8,
    "Read": 5,
    "Bash": 6,
    "Grep": 4,
    "Glob": 4,
    "LS": 3,
}
DEFAULT_TOOL_SCORE = 5.0

INPUT_COST_SHARE = 0.3
OUTPUT_COST_SHARE = 0.7
HIGH_COST_PER_HOUR = 15.0
HIGH_COST_PER_LINE = 0.1
READ_EDIT_RATIO = 2
MANY_SESSIONS = 10

COST_SUGGESTIONS: dict[str, dict[str, str]] = {
    "zh-CN": {
        "cost_per_hour": "每小时成本较高（${value:.2f}），建议复查模型选择和上下文长度",
        "cost_per_line": "每行代码成本较高（${value:.3f}），尝试给出更明确的指令以减少往返",
        "read_heavy": "读取操作是编辑操作的 {value:.1f} 倍，减少重复读取以节省 token",
        "sessions": "共 {value:.0f} 个会话，合并相关任务到更少的会话中可减少上下文重建",
    },
    "en-US": {
        "cost_per_hour": (
            "Cost per hour is high (${value:.2f}); review model choice and context size"
        ),
        "cost_per_line": (
            "Cost per line is high (${value:.3f}); give sharper instructions to cut round-trips"
        ),
        "read_heavy": "Reads outnumber edits {value:.1f} to 1; reduce redundant reads",
        "sessions": (
            "{value:.0f} sessions recorded; consolidate related work into fewer sessions"
        ),
    },
}


def rate_efficiency(score: float) -> EfficiencyRating:
    """Map a 0-10 productivity score onto its rating bucket."""
    for threshold, rating in RATING_THRESHOLDS:
        if score >= threshold:
            return rating
    return EfficiencyRating.POOR


class EfficiencyCalculator:
    """Derives EfficiencyMetrics, tool and cost analyses from BasicStats."""

    def __init__(self, estimator: CodeEstimator | None = None) -> None:
        self._estimator = estimator or CodeEstimator()

    @property
    def estimator(self) -> CodeEstimator:
        return self._estimator

    def calculate(self, stats: BasicStats) -> EfficiencyMetrics:
        """Compute efficiency metrics; zero hours yields the no-data result."""
        try:
            hours = stats.total_time_hours
            if hours <= 0:
                return EfficiencyMetrics.no_data()

            tokens = max(0, stats.total_tokens)
            lines = self._estimator.estimate(stats.tool_usage)
            tokens_per_hour = round(tokens / hours, 1)
            lines_per_hour = round(lines / hours, 1)
            score = self.productivity_score(stats, tokens_per_hour, lines_per_hour)
            return EfficiencyMetrics(
                tokens_per_hour=tokens_per_hour,
                lines_per_hour=lines_per_hour,
                estimated_lines_changed=lines,
                productivity_score=score,
                cost_per_hour=round(max(0.0, stats.total_cost_usd) / hours, 2),
                efficiency_rating=rate_efficiency(score),
            )
        except Exception:
            logger.exception("Failed to calculate efficiency metrics")
            return EfficiencyMetrics.no_data()

    def productivity_score(
        self, stats: BasicStats, tokens_per_hour: float, lines_per_hour: float
    ) -> float:
        """Weighted composite of throughput, tool breadth and session pacing.

        Token throughput (weight 0.3) saturates at 3 points for 1500 tokens/h,
        line throughput (0.4) at 4 points for 100 lines/h and tool breadth
        (0.2) at 2 points for six distinct tools. Sessions averaging more than
        two hours halve the pacing term (0.1). The weighted sum is rescaled
        to 0-10.
        """
        token_score = min(3.0, tokens_per_hour / TOKEN_RATE_REFERENCE * 3)
        lines_score = min(4.0, lines_per_hour / LINE_RATE_REFERENCE * 4)
        used_tools = sum(1 for count in clean_tool_usage(stats.tool_usage).values() if count > 0)
        tools_score = min(2.0, used_tools / TOOL_BREADTH_REFERENCE * 2)

        sessions = max(1, stats.session_count)
        session_score = 1.0 if stats.total_time_hours / sessions <= LONG_SESSION_HOURS else 0.5

        composite = token_score * 0.3 + lines_score * 0.4 + tools_score * 0.2 + session_score * 0.1
        score = composite / SCORE_SCALE * 10
        return round(min(10.0, max(0.0, score)), 1)

    def analyze_tool_usage(
        self, tool_usage: Mapping[str, Any] | None, hours: float
    ) -> list[ToolUsageAnalysis]:
        """Per-tool rate and efficiency, most used first."""
        try:
            usage = clean_tool_usage(tool_usage)
            entries = []
            for name, count in sorted(usage.items(), key=lambda item: (-item[1], item[0])):
                rate = round(count / hours, 2) if hours > 0 else 0.0
                lines = count * self._estimator.weight_for(name)
                entries.append(
                    ToolUsageAnalysis(
                        tool_name=name,
                        usage_count=count,
                        usage_rate=rate,
                        estimated_lines=lines,
                        efficiency_score=tool_efficiency_score(name, lines, rate),
                    )
                )
            return entries
        except Exception:
            logger.exception("Failed to analyze tool usage")
            return []

    def calculate_cost_analysis(self, stats: BasicStats, language: str = "zh-CN") -> CostAnalysis:
        """Cost rates, an approximate breakdown and localized savings tips."""
        try:
            cost = max(0.0, stats.total_cost_usd)
            hours = stats.total_time_hours
            lines = self._estimator.estimate(stats.tool_usage)
            cost_per_hour = round(cost / hours, 2) if hours > 0 else 0.0
            cost_per_line = round(cost / lines, 4) if lines > 0 else 0.0

            return CostAnalysis(
                total_cost=round(cost, 4),
                cost_per_hour=cost_per_hour,
                cost_per_line=cost_per_line,
                cost_breakdown=cost_breakdown(stats),
                optimization_suggestions=cost_suggestions(
                    stats, cost_per_hour, cost_per_line, language
                ),
            )
        except Exception:
            logger.exception("Failed to calculate cost analysis")
            return CostAnalysis()


def tool_efficiency_score(tool_name: str, estimated_lines: int, usage_rate: float) -> float:
    """Base rank of the tool scaled by its output and invocation rate."""
    base = TOOL_BASE_SCORES.get(tool_name, DEFAULT_TOOL_SCORE)
    if estimated_lines > 50:
        lines_factor = 1.2
    elif estimated_lines > 20:
        lines_factor = 1.0
    else:
        lines_factor = 0.8
    if usage_rate > 3:
        rate_factor = 0.9
    elif usage_rate > 1:
        rate_factor = 1.0
    else:
        rate_factor = 0.8
    return round(min(10.0, max(0.0, base * lines_factor * rate_factor)), 1)


def cost_breakdown(stats: BasicStats) -> CostBreakdown:
    """Split the total cost 30/70 into input/output and by model token share."""
    cost = max(0.0, stats.total_cost_usd)
    model_tokens = {name: max(0, count) for name, count in stats.model_usage.items()}
    total_tokens = sum(model_tokens.values())
    model_costs = {}
    if total_tokens > 0:
        model_costs = {
            name: round(cost * count / total_tokens, 4)
            for name, count in model_tokens.items()
            if count > 0
        }
    return CostBreakdown(
        input_cost=round(cost * INPUT_COST_SHARE, 4),
        output_cost=round(cost * OUTPUT_COST_SHARE, 4),
        model_costs=model_costs,
    )


def cost_suggestions(
    stats: BasicStats, cost_per_hour: float, cost_per_line: float, language: str
) -> list[str]:
    templates = COST_SUGGESTIONS[normalize_language(language)]
    suggestions: list[str] = []
    if cost_per_hour > HIGH_COST_PER_HOUR:
        suggestions.append(templates["cost_per_hour"].format(value=cost_per_hour))
    if cost_per_line > HIGH_COST_PER_LINE:
        suggestions.append(templates["cost_per_line"].format(value=cost_per_line))
    reads, edits = read_edit_counts(stats.tool_usage)
    if reads > READ_EDIT_RATIO * edits and reads > 0:
        ratio = reads / edits if edits else float(reads)
        suggestions.append(templates["read_heavy"].format(value=ratio))
    if stats.session_count > MANY_SESSIONS:
        suggestions.append(templates["sessions"].format(value=stats.session_count))
    return suggestions

