"""Bilingual insight generation over stats, efficiency and trends."""

from __future__ import annotations

import logging
from dataclasses import replace

from ccstats.i18n import DEFAULT_LANGUAGE, normalize_language
from ccstats.models.analytics import (
    BasicStats,
    CostAnalysis,
    EfficiencyMetrics,
    Insight,
    InsightCategory,
    Priority,
    SmartInsights,
    TrendAnalysis,
)
from ccstats.services.rules import AnalysisContext, Rule, evaluate_rules

logger = logging.getLogger(__name__)

DEFAULT_MAX_INSIGHTS = 8
HIGH_SCORE = 7.0
LOW_SCORE = 4.0
HIGH_TOKEN_RATE = 1500
LOW_TOKEN_RATE = 300
HIGH_COST_RATE = 20.0
LOW_COST_RATE = 5.0
DIVERSE_TOOLS = 5
LONG_DAY_HOURS = 6.0
RISING_TREND = 0.1
FALLING_PRODUCTIVITY = -0.15
BUSY_FILES = 10
FOCUSED_FILES = 3

_PRIORITY_RANK: dict[Priority, int] = {"high": 0, "medium": 1, "low": 2}

DEFAULT_INSIGHT_RULES: tuple[Rule, ...] = (
    Rule(
        id="no_data",
        predicate=lambda ctx: not ctx.has_data,
        titles={"zh-CN": "暂无数据", "en-US": "No data"},
        templates={
            "zh-CN": "当前时间段没有可分析的使用数据",
            "en-US": "No usage data is available for this period",
        },
    ),
    Rule(
        id="high_productivity",
        category="efficiency",
        predicate=lambda ctx: (
            ctx.efficiency.has_data and ctx.efficiency.productivity_score >= HIGH_SCORE
        ),
        titles={"zh-CN": "高效开发", "en-US": "High productivity"},
        templates={
            "zh-CN": "开发效率{rating}，生产力评分 {ctx.efficiency.productivity_score:.1f}/10",
            "en-US": (
                "Productivity is {rating} with a score of "
                "{ctx.efficiency.productivity_score:.1f}/10"
            ),
        },
    ),
    Rule(
        id="low_productivity",
        category="efficiency",
        priority="high",
        predicate=lambda ctx: (
            ctx.efficiency.has_data and ctx.efficiency.productivity_score < LOW_SCORE
        ),
        titles={"zh-CN": "效率偏低", "en-US": "Low productivity"},
        templates={
            "zh-CN": (
                "生产力评分仅 {ctx.efficiency.productivity_score:.1f}/10（{rating}），"
                "开发节奏有提升空间"
            ),
            "en-US": (
                "Productivity score is only {ctx.efficiency.productivity_score:.1f}/10 "
                "({rating}); there is room to speed up"
            ),
        },
    ),
    Rule(
        id="declining_productivity",
        category="trends",
        priority="high",
        predicate=lambda ctx: ctx.trends.productivity_trend < FALLING_PRODUCTIVITY,
        titles={"zh-CN": "效率下降", "en-US": "Declining productivity"},
        templates={
            "zh-CN": "生产力较前期下降了 {ctx.productivity_pct:.1f}%",
            "en-US": "Productivity dropped {ctx.productivity_pct:.1f}% against the earlier period",
        },
    ),
    Rule(
        id="improving_productivity",
        category="trends",
        predicate=lambda ctx: ctx.trends.productivity_trend > RISING_TREND,
        titles={"zh-CN": "效率提升", "en-US": "Improving productivity"},
        templates={
            "zh-CN": "生产力较前期提升了 {ctx.productivity_pct:.1f}%",
            "en-US": "Productivity rose {ctx.productivity_pct:.1f}% against the earlier period",
        },
    ),
    Rule(
        id="high_cost_rate",
        category="cost",
        priority="high",
        predicate=lambda ctx: ctx.efficiency.cost_per_hour > HIGH_COST_RATE,
        titles={"zh-CN": "成本偏高", "en-US": "High cost"},
        templates={
            "zh-CN": "每小时成本达到 ${ctx.efficiency.cost_per_hour:.2f}，高于常见水平",
            "en-US": "Spending ${ctx.efficiency.cost_per_hour:.2f} per hour, above the usual range",
        },
    ),
    Rule(
        id="high_token_rate",
        priority="medium",
        predicate=lambda ctx: ctx.efficiency.tokens_per_hour > HIGH_TOKEN_RATE,
        titles={"zh-CN": "Token 消耗较快", "en-US": "Heavy token use"},
        templates={
            "zh-CN": "每小时消耗 {ctx.efficiency.tokens_per_hour:,.0f} tokens，AI 协作非常密集",
            "en-US": (
                "{ctx.efficiency.tokens_per_hour:,.0f} tokens per hour; AI collaboration "
                "is very intensive"
            ),
        },
    ),
    Rule(
        id="low_token_rate",
        priority="medium",
        predicate=lambda ctx: 0 < ctx.efficiency.tokens_per_hour < LOW_TOKEN_RATE,
        titles={"zh-CN": "Token 使用较少", "en-US": "Light token use"},
        templates={
            "zh-CN": "每小时仅消耗 {ctx.efficiency.tokens_per_hour:,.0f} tokens，可以更多地借助 AI",
            "en-US": (
                "Only {ctx.efficiency.tokens_per_hour:,.0f} tokens per hour; the assistant "
                "could take on more work"
            ),
        },
    ),
    Rule(
        id="dominant_tool",
        category="tools",
        predicate=lambda ctx: ctx.tool_count > 0,
        titles={"zh-CN": "常用工具", "en-US": "Most used tool"},
        templates={
            "zh-CN": "最常用的工具是 {ctx.dominant_tool}（{ctx.dominant_tool_count} 次）",
            "en-US": "Most used tool is {ctx.dominant_tool} ({ctx.dominant_tool_count} calls)",
        },
    ),
    Rule(
        id="diverse_tools",
        category="tools",
        predicate=lambda ctx: ctx.tool_count >= DIVERSE_TOOLS,
        titles={"zh-CN": "工具多样", "en-US": "Diverse tooling"},
        templates={
            "zh-CN": "使用了 {ctx.tool_count} 种工具，工具组合丰富",
            "en-US": "{ctx.tool_count} different tools in use, a well rounded toolkit",
        },
    ),
    Rule(
        id="limited_tools",
        category="tools",
        priority="medium",
        predicate=lambda ctx: 0 < ctx.tool_count <= 2,
        titles={"zh-CN": "工具单一", "en-US": "Limited tooling"},
        templates={
            "zh-CN": "仅使用了 {ctx.tool_count} 种工具，尝试更多工具可能提升效率",
            "en-US": "Only {ctx.tool_count} tool(s) used; other tools may speed things up",
        },
    ),
    Rule(
        id="rising_tokens",
        category="trends",
        predicate=lambda ctx: ctx.trends.token_trend > RISING_TREND,
        titles={"zh-CN": "Token 增长", "en-US": "Token growth"},
        templates={
            "zh-CN": "Token 使用量增长了 {ctx.token_pct:.1f}%",
            "en-US": "Token usage grew {ctx.token_pct:.1f}%",
        },
    ),
    Rule(
        id="falling_tokens",
        category="trends",
        predicate=lambda ctx: ctx.trends.token_trend < -RISING_TREND,
        titles={"zh-CN": "Token 减少", "en-US": "Token decline"},
        templates={
            "zh-CN": "Token 使用量减少了 {ctx.token_pct:.1f}%",
            "en-US": "Token usage fell {ctx.token_pct:.1f}%",
        },
    ),
    Rule(
        id="rising_time",
        category="trends",
        predicate=lambda ctx: ctx.trends.time_trend > RISING_TREND,
        titles={"zh-CN": "投入时间增加", "en-US": "More time invested"},
        templates={
            "zh-CN": "开发时间增加了 {ctx.time_pct:.1f}%",
            "en-US": "Development time increased {ctx.time_pct:.1f}%",
        },
    ),
    Rule(
        id="falling_time",
        category="trends",
        predicate=lambda ctx: ctx.trends.time_trend < -RISING_TREND,
        titles={"zh-CN": "投入时间减少", "en-US": "Less time invested"},
        templates={
            "zh-CN": "开发时间减少了 {ctx.time_pct:.1f}%",
            "en-US": "Development time decreased {ctx.time_pct:.1f}%",
        },
    ),
    Rule(
        id="long_day",
        priority="medium",
        predicate=lambda ctx: ctx.stats.total_time_hours > LONG_DAY_HOURS,
        titles={"zh-CN": "长时间工作", "en-US": "Long hours"},
        templates={
            "zh-CN": "累计开发 {ctx.stats.total_time_hours:.1f} 小时，注意劳逸结合",
            "en-US": "{ctx.stats.total_time_hours:.1f} hours of development; remember to rest",
        },
    ),
    Rule(
        id="low_cost_rate",
        category="cost",
        predicate=lambda ctx: 0 < ctx.efficiency.cost_per_hour < LOW_COST_RATE,
        titles={"zh-CN": "成本可控", "en-US": "Cost under control"},
        templates={
            "zh-CN": "每小时成本 ${ctx.efficiency.cost_per_hour:.2f}，成本控制良好",
            "en-US": "Cost stays at ${ctx.efficiency.cost_per_hour:.2f} per hour",
        },
    ),
    Rule(
        id="busy_files",
        predicate=lambda ctx: ctx.stats.files_modified_count > BUSY_FILES,
        titles={"zh-CN": "改动广泛", "en-US": "Wide changes"},
        templates={
            "zh-CN": "修改了 {ctx.stats.files_modified_count} 个文件，开发活动活跃",
            "en-US": "{ctx.stats.files_modified_count} files modified; a very active period",
        },
    ),
    Rule(
        id="focused_files",
        predicate=lambda ctx: (
            0 < ctx.stats.files_modified_count <= FOCUSED_FILES
            and ctx.efficiency.productivity_score > 6
        ),
        titles={"zh-CN": "专注开发", "en-US": "Focused work"},
        templates={
            "zh-CN": "集中修改了 {ctx.stats.files_modified_count} 个文件，工作专注且高效",
            "en-US": "Work focused on {ctx.stats.files_modified_count} file(s) with good output",
        },
    ),
)

SUMMARY_RULE = Rule(
    id="summary",
    predicate=lambda ctx: True,
    titles={"zh-CN": "概览", "en-US": "Overview"},
    templates={
        "zh-CN": (
            "共 {ctx.stats.session_count} 个会话，{ctx.stats.total_time_hours:.1f} 小时，"
            "{ctx.stats.total_tokens:,} tokens，效率评级：{rating}"
        ),
        "en-US": (
            "{ctx.stats.session_count} sessions, {ctx.stats.total_time_hours:.1f} hours, "
            "{ctx.stats.total_tokens:,} tokens, rating: {rating}"
        ),
    },
)


class InsightsGenerator:
    """Evaluates an ordered rule table into SmartInsights.

    Each instance owns its own copy of the table, so adding, removing or
    toggling rules never leaks into other generators.
    """

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        max_insights: int = DEFAULT_MAX_INSIGHTS,
        rules: tuple[Rule, ...] | list[Rule] | None = None,
    ) -> None:
        self._language = normalize_language(language)
        self._max_insights = max(1, max_insights)
        table = DEFAULT_INSIGHT_RULES if rules is None else rules
        self._rules = [replace(rule) for rule in table]

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def add_rule(self, rule: Rule, position: int | None = None) -> None:
        """Insert a rule, replacing any existing rule with the same id."""
        self.remove_rule(rule.id)
        if position is None:
            self._rules.append(rule)
        else:
            self._rules.insert(position, rule)

    def remove_rule(self, rule_id: str) -> bool:
        before = len(self._rules)
        self._rules = [rule for rule in self._rules if rule.id != rule_id]
        return len(self._rules) != before

    def toggle_rule(self, rule_id: str, enabled: bool) -> bool:
        for rule in self._rules:
            if rule.id == rule_id:
                rule.enabled = enabled
                return True
        return False

    def generate(
        self,
        stats: BasicStats,
        efficiency: EfficiencyMetrics,
        trends: TrendAnalysis,
        language: str | None = None,
        cost_analysis: CostAnalysis | None = None,
    ) -> SmartInsights:
        """Return at most ``max_insights`` insights in rule order."""
        lang = normalize_language(language, self._language)
        try:
            ctx = AnalysisContext(stats, efficiency, trends, cost_analysis)
            insights = [
                _to_insight(match.rule, match.message, lang)
                for match in evaluate_rules(self._rules, ctx, lang)
            ][: self._max_insights]
            if not insights:
                insights = [_to_insight(SUMMARY_RULE, SUMMARY_RULE.render(ctx, lang), lang)]
                category: InsightCategory = "productivity"
            else:
                category = _lead(insights, self._rules)
            logger.debug("Generated %d insights (%s)", len(insights), lang)
            return SmartInsights(
                insights=insights,
                priority=_highest_priority(insights),
                category=category,
                language=lang,
            )
        except Exception:
            logger.exception("Insight generation failed")
            return SmartInsights(
                insights=[Insight(type="summary", content=_FAILURE_MESSAGE[lang])],
                language=lang,
            )


_FAILURE_MESSAGE = {
    "zh-CN": "暂时无法生成洞察",
    "en-US": "Insights are unavailable right now",
}


def _to_insight(rule: Rule, message: str, language: str) -> Insight:
    return Insight(
        type=rule.id,
        title=rule.title(language),
        content=message,
        priority=rule.priority,
    )


def _highest_priority(insights: list[Insight]) -> Priority:
    return min((i.priority for i in insights), key=_PRIORITY_RANK.__getitem__, default="low")


def _lead(insights: list[Insight], rules: list[Rule]) -> InsightCategory:
    """Category of the first insight carrying the highest priority."""
    by_id = {rule.id: rule for rule in rules}
    top = _highest_priority(insights)
    lead = next(i for i in insights if i.priority == top)
    return by_id[lead.type].category
