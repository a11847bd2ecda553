"""Tests for the rule-driven insights generator."""

from __future__ import annotations

import pytest

from ccstats.models.analytics import BasicStats, EfficiencyMetrics, TrendAnalysis
from ccstats.services.efficiency import EfficiencyCalculator
from ccstats.services.insights import InsightsGenerator
from ccstats.services.rules import Rule


@pytest.fixture
def generator() -> InsightsGenerator:
    return InsightsGenerator()


def _types(insights) -> list[str]:  # type: ignore[no-untyped-def]
    return [insight.type for insight in insights.insights]


@pytest.mark.parametrize("language", ["zh-CN", "en-US"])
def test_all_zero_input_yields_no_data(generator: InsightsGenerator, language: str) -> None:
    result = generator.generate(
        BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis(), language
    )
    assert _types(result) == ["no_data"]
    assert result.messages[0]
    assert result.language == language


def test_productive_hour(generator: InsightsGenerator, stats_factory) -> None:
    stats = stats_factory()
    efficiency = EfficiencyCalculator().calculate(stats)
    result = generator.generate(stats, efficiency, TrendAnalysis(), "en-US")
    types = _types(result)
    assert types[0] == "high_productivity"
    assert "dominant_tool" in types
    assert "limited_tools" in types
    assert "low_cost_rate" in types
    dominant = result.insights[types.index("dominant_tool")]
    assert dominant.content == "Most used tool is Edit (6 calls)"
    assert "Excellent" in result.messages[0]


def test_chinese_uses_localized_rating(generator: InsightsGenerator, stats_factory) -> None:
    stats = stats_factory()
    efficiency = EfficiencyCalculator().calculate(stats)
    result = generator.generate(stats, efficiency, TrendAnalysis(), "zh-CN")
    assert "卓越" in result.messages[0]
    assert result.insights[0].title == "高效开发"


def test_deterministic(generator: InsightsGenerator, stats_factory) -> None:
    stats = stats_factory(tools={"Read": 4, "Edit": 4, "Bash": 1})
    efficiency = EfficiencyCalculator().calculate(stats)
    trends = TrendAnalysis(productivity_trend=0.3, token_trend=-0.2)
    first = generator.generate(stats, efficiency, trends, "en-US")
    second = generator.generate(stats, efficiency, trends, "en-US")
    assert first == second


def test_trend_rules(generator: InsightsGenerator, stats_factory) -> None:
    stats = stats_factory()
    efficiency = EfficiencyCalculator().calculate(stats)

    rising = generator.generate(stats, efficiency, TrendAnalysis(productivity_trend=0.25), "en-US")
    assert "improving_productivity" in _types(rising)
    assert any("25.0%" in message for message in rising.messages)

    falling = generator.generate(
        stats, efficiency, TrendAnalysis(productivity_trend=-0.2), "en-US"
    )
    assert "declining_productivity" in _types(falling)
    assert falling.priority == "high"
    assert falling.category == "trends"

    # a dip above the declining threshold stays quiet
    mild = generator.generate(stats, efficiency, TrendAnalysis(productivity_trend=-0.12), "en-US")
    assert "declining_productivity" not in _types(mild)


def test_low_productivity_is_high_priority(generator: InsightsGenerator, stats_factory) -> None:
    stats = stats_factory(hours=5.0, tokens=500, tools={"Read": 2})
    efficiency = EfficiencyCalculator().calculate(stats)
    result = generator.generate(stats, efficiency, TrendAnalysis(), "en-US")
    assert "low_productivity" in _types(result)
    assert "low_token_rate" in _types(result)
    assert result.priority == "high"
    assert result.category == "efficiency"


def test_output_is_capped(stats_factory) -> None:
    generator = InsightsGenerator(max_insights=2)
    stats = stats_factory(hours=8.0, tokens=200_000, cost=200.0)
    efficiency = EfficiencyCalculator().calculate(stats)
    trends = TrendAnalysis(productivity_trend=0.5, token_trend=0.5, time_trend=0.5)
    assert len(generator.generate(stats, efficiency, trends).insights) == 2


def test_language_is_normalized(generator: InsightsGenerator) -> None:
    result = generator.generate(BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis(), "en")
    assert result.language == "en-US"
    default = generator.generate(BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis())
    assert default.language == "zh-CN"


class TestRuleManagement:
    def test_summary_fallback_when_nothing_fires(self, generator: InsightsGenerator) -> None:
        assert generator.toggle_rule("no_data", False)
        result = generator.generate(
            BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis(), "en-US"
        )
        assert _types(result) == ["summary"]
        assert "No data" in result.messages[0]

    def test_toggle_does_not_leak_between_instances(self, generator: InsightsGenerator) -> None:
        generator.toggle_rule("no_data", False)
        other = InsightsGenerator()
        result = other.generate(BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis())
        assert _types(result) == ["no_data"]

    def test_add_and_remove(self, generator: InsightsGenerator) -> None:
        custom = Rule(
            id="custom",
            predicate=lambda ctx: True,
            templates={"zh-CN": "自定义", "en-US": "custom"},
            priority="medium",
        )
        generator.add_rule(custom, position=0)
        assert generator.rules[0].id == "custom"
        result = generator.generate(
            BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis(), "en-US"
        )
        assert _types(result) == ["custom", "no_data"]
        assert result.priority == "medium"

        assert generator.remove_rule("custom")
        assert not generator.remove_rule("custom")
        assert not generator.toggle_rule("custom", True)

    def test_failing_rule_is_skipped(self, generator: InsightsGenerator) -> None:
        def explode(ctx) -> bool:  # type: ignore[no-untyped-def]
            raise RuntimeError("boom")

        generator.add_rule(
            Rule(id="broken", predicate=explode, templates={"zh-CN": "x", "en-US": "x"}), 0
        )
        result = generator.generate(BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis())
        assert _types(result) == ["no_data"]

    def test_empty_rule_table_is_respected(self) -> None:
        generator = InsightsGenerator(rules=[])
        assert generator.rules == []
        result = generator.generate(
            BasicStats(), EfficiencyMetrics.no_data(), TrendAnalysis(), "en-US"
        )
        assert _types(result) == ["summary"]
