"""Table-driven rules shared by the insight and recommendation generators.

A rule pairs a predicate over an :class:`AnalysisContext` with one message
template per language. Templates are ``str.format`` strings receiving the
context as ``ctx`` and the localized rating label as ``rating``, e.g.
``"{ctx.efficiency.tokens_per_hour:.0f} tokens/h"``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field

from ccstats.i18n import rating_label
from ccstats.models.analytics import (
    BasicStats,
    CostAnalysis,
    EfficiencyMetrics,
    InsightCategory,
    Priority,
    TrendAnalysis,
)
from ccstats.services.code_estimator import clean_tool_usage, read_edit_counts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisContext:
    """Everything a rule predicate or template may look at."""

    stats: BasicStats
    efficiency: EfficiencyMetrics
    trends: TrendAnalysis
    cost_analysis: CostAnalysis | None = None

    @property
    def tools(self) -> dict[str, int]:
        usage = clean_tool_usage(self.stats.tool_usage)
        return {name: count for name, count in usage.items() if count > 0}

    @property
    def tool_count(self) -> int:
        return len(self.tools)

    @property
    def dominant_tool(self) -> str:
        """Most used tool; ties resolve alphabetically."""
        tools = self.tools
        if not tools:
            return ""
        return min(tools.items(), key=lambda item: (-item[1], item[0]))[0]

    @property
    def dominant_tool_count(self) -> int:
        return self.tools.get(self.dominant_tool, 0)

    @property
    def reads(self) -> int:
        return read_edit_counts(self.stats.tool_usage)[0]

    @property
    def edits(self) -> int:
        return read_edit_counts(self.stats.tool_usage)[1]

    @property
    def has_data(self) -> bool:
        s = self.stats
        return bool(
            s.total_time_hours > 0 or s.total_tokens > 0 or s.total_cost_usd > 0 or self.tools
        )

    @property
    def cost_per_line(self) -> float:
        return self.cost_analysis.cost_per_line if self.cost_analysis else 0.0

    @property
    def productivity_pct(self) -> float:
        return abs(self.trends.productivity_trend) * 100

    @property
    def token_pct(self) -> float:
        return abs(self.trends.token_trend) * 100

    @property
    def time_pct(self) -> float:
        return abs(self.trends.time_trend) * 100


Predicate = Callable[[AnalysisContext], bool]


@dataclass
class Rule:
    """One predicate with its localized output."""

    id: str
    predicate: Predicate
    templates: dict[str, str]
    titles: dict[str, str] = field(default_factory=dict)
    category: InsightCategory = "productivity"
    priority: Priority = "low"
    enabled: bool = True

    def matches(self, ctx: AnalysisContext) -> bool:
        return self.enabled and bool(self.predicate(ctx))

    def render(self, ctx: AnalysisContext, language: str) -> str:
        rating = rating_label(ctx.efficiency.efficiency_rating, language)
        return self.templates[language].format(ctx=ctx, rating=rating)

    def title(self, language: str) -> str:
        return self.titles.get(language, "")


@dataclass(frozen=True)
class RuleMatch:
    rule: Rule
    message: str


def evaluate_rules(
    rules: Iterable[Rule], ctx: AnalysisContext, language: str
) -> Iterator[RuleMatch]:
    """Yield matching rules in order with their rendered message.

    A rule whose predicate or template fails is logged and skipped.
    """
    for rule in rules:
        try:
            if not rule.matches(ctx):
                continue
            message = rule.render(ctx, language)
        except Exception:
            logger.exception("Rule %s failed, skipping", rule.id)
            continue
        yield RuleMatch(rule=rule, message=message)
