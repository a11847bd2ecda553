"""Prioritized, bilingual recommendations."""

from __future__ import annotations

import logging
from dataclasses import replace

from ccstats.i18n import DEFAULT_LANGUAGE, normalize_language
from ccstats.models.analytics import (
    BasicStats,
    CostAnalysis,
    EfficiencyMetrics,
    Priority,
    RecommendationBundle,
    TrendAnalysis,
)
from ccstats.services.code_estimator import BATCH_EDIT_TOOLS
from ccstats.services.rules import AnalysisContext, Rule, evaluate_rules

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUGGESTIONS = 6
HIGH_PRIORITY_SCORE = 3.0
LOW_PRIORITY_SCORE = 7.0
HIGH_PRIORITY_TREND = -0.2
LOW_SCORE = 5.0
LOW_LINE_RATE = 30
HIGH_TOKEN_RATE = 1800
READ_EDIT_RATIO = 3
DECLINING_TREND = -0.1
TOKEN_GROWTH = 0.2
HIGH_COST_RATE = 15.0
HIGH_COST_PER_LINE = 0.08
MANY_SESSIONS = 10
SEARCH_TOOLS = frozenset({"Grep", "Glob"})


def recommendation_priority(efficiency: EfficiencyMetrics, trends: TrendAnalysis) -> Priority:
    score = efficiency.productivity_score
    trend = trends.productivity_trend
    if score < HIGH_PRIORITY_SCORE or trend < HIGH_PRIORITY_TREND:
        return "high"
    if score >= LOW_PRIORITY_SCORE and trend >= 0:
        return "low"
    return "medium"


def _low_score(ctx: AnalysisContext) -> bool:
    return ctx.efficiency.has_data and ctx.efficiency.productivity_score < LOW_SCORE


DEFAULT_RECOMMENDATION_RULES: tuple[Rule, ...] = (
    Rule(
        id="no_data",
        predicate=lambda ctx: not ctx.has_data,
        templates={
            "zh-CN": "开始使用 Claude Code 并记录会话数据，以便获得个性化建议",
            "en-US": "Start recording Claude Code sessions to get personalized advice",
        },
    ),
    Rule(
        id="focus_blocks",
        predicate=_low_score,
        templates={
            "zh-CN": "采用番茄工作法，以 25 分钟为单位专注完成单个任务",
            "en-US": "Work in focused 25-minute blocks on a single task",
        },
    ),
    Rule(
        id="reduce_interruptions",
        predicate=_low_score,
        templates={
            "zh-CN": "减少开发过程中的上下文切换和打断",
            "en-US": "Cut down on context switches and interruptions while coding",
        },
    ),
    Rule(
        id="keep_pace",
        predicate=lambda ctx: ctx.efficiency.productivity_score >= LOW_PRIORITY_SCORE,
        templates={
            "zh-CN": "保持当前的高效开发节奏",
            "en-US": "Keep up the current development pace",
        },
    ),
    Rule(
        id="batch_edits",
        predicate=lambda ctx: (
            ctx.efficiency.has_data
            and ctx.efficiency.lines_per_hour < LOW_LINE_RATE
            and BATCH_EDIT_TOOLS.isdisjoint(ctx.tools)
        ),
        templates={
            "zh-CN": "使用 MultiEdit 批量修改文件，减少逐处编辑的往返",
            "en-US": "Use MultiEdit to batch related changes instead of editing one spot at a time",
        },
    ),
    Rule(
        id="concise_prompts",
        predicate=lambda ctx: ctx.efficiency.tokens_per_hour > HIGH_TOKEN_RATE,
        templates={
            "zh-CN": "精简提示词和上下文，避免 token 消耗过快",
            "en-US": "Keep prompts and context concise to slow down token burn",
        },
    ),
    Rule(
        id="search_tools",
        predicate=lambda ctx: ctx.tool_count > 0 and SEARCH_TOOLS.isdisjoint(ctx.tools),
        templates={
            "zh-CN": "使用 Grep 和 Glob 定位代码，而不是逐个打开文件",
            "en-US": "Use Grep and Glob to locate code instead of opening files one by one",
        },
    ),
    Rule(
        id="task_tool",
        predicate=lambda ctx: ctx.tool_count > 0 and "Task" not in ctx.tools,
        templates={
            "zh-CN": "将较大的多步骤工作交给 Task 工具处理",
            "en-US": "Delegate larger multi-step work to the Task tool",
        },
    ),
    Rule(
        id="plan_reads",
        predicate=lambda ctx: ctx.reads > 0 and ctx.reads > READ_EDIT_RATIO * ctx.edits,
        templates={
            "zh-CN": "先明确修改计划再阅读代码，减少无目的的文件读取",
            "en-US": "Plan the change before reading code to avoid aimless file reads",
        },
    ),
    Rule(
        id="review_decline",
        predicate=lambda ctx: ctx.trends.productivity_trend < DECLINING_TREND,
        templates={
            "zh-CN": "效率呈下降趋势，回顾近期工作方式的变化",
            "en-US": "Productivity is slipping; review what changed in your recent workflow",
        },
    ),
    Rule(
        id="token_growth",
        predicate=lambda ctx: ctx.trends.token_trend > TOKEN_GROWTH,
        templates={
            "zh-CN": "Token 用量增长较快，留意上下文是否过长",
            "en-US": "Token usage is growing fast; watch for oversized context",
        },
    ),
    Rule(
        id="batch_questions",
        predicate=lambda ctx: ctx.efficiency.cost_per_hour > HIGH_COST_RATE,
        templates={
            "zh-CN": "把相关问题合并后一次提出，降低每小时成本",
            "en-US": "Batch related questions into one request to lower hourly cost",
        },
    ),
    Rule(
        id="larger_rounds",
        predicate=lambda ctx: ctx.cost_per_line > HIGH_COST_PER_LINE,
        templates={
            "zh-CN": "让 AI 在每轮对话中完成更多代码，降低每行成本",
            "en-US": "Let the assistant write more code per round-trip to lower cost per line",
        },
    ),
    Rule(
        id="consolidate_sessions",
        predicate=lambda ctx: ctx.stats.session_count > MANY_SESSIONS,
        templates={
            "zh-CN": "将相关任务合并到更少的会话中，减少重复建立上下文",
            "en-US": "Consolidate related tasks into fewer sessions to avoid rebuilding context",
        },
    ),
)

GENERIC_SUGGESTION = {
    "zh-CN": "继续保持当前的开发习惯，并定期回顾使用数据",
    "en-US": "Keep your current habits and review your usage data regularly",
}


class RecommendationEngine:
    """Turns stats, efficiency and trends into a RecommendationBundle.

    Predicates are shared by every language, so a given input yields the same
    number of suggestions in zh-CN and en-US.
    """

    def __init__(
        self,
        language: str = DEFAULT_LANGUAGE,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
        rules: tuple[Rule, ...] | list[Rule] | None = None,
    ) -> None:
        self._language = normalize_language(language)
        self._max_suggestions = max(1, max_suggestions)
        table = DEFAULT_RECOMMENDATION_RULES if rules is None else rules
        self._rules = [replace(rule) for rule in table]

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def generate(
        self,
        stats: BasicStats,
        efficiency: EfficiencyMetrics,
        trends: TrendAnalysis,
        language: str | None = None,
        cost_analysis: CostAnalysis | None = None,
    ) -> RecommendationBundle:
        """Priority plus at least one suggestion; never raises."""
        lang = normalize_language(language, self._language)
        try:
            priority = recommendation_priority(efficiency, trends)
        except Exception:
            logger.exception("Failed to compute recommendation priority")
            priority = "high"

        suggestions: list[str] = []
        try:
            ctx = AnalysisContext(stats, efficiency, trends, cost_analysis)
            for match in evaluate_rules(self._rules, ctx, lang):
                if match.message not in suggestions:
                    suggestions.append(match.message)
                if len(suggestions) >= self._max_suggestions:
                    break
        except Exception:
            logger.exception("Recommendation rules failed")
            suggestions = []

        if not suggestions:
            suggestions = [GENERIC_SUGGESTION[lang]]
        logger.debug("Generated %d suggestions at %s priority", len(suggestions), priority)
        return RecommendationBundle(priority=priority, suggestions=suggestions, language=lang)
