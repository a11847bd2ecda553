"""Tests for the basic and advanced trend analyzers."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from ccstats.models.analytics import BasicStats, DailyMetric
from ccstats.services.trends import (
    TREND_ANALYZERS,
    AdvancedTrendsAnalyzer,
    TrendsAnalyzer,
    analyze_seasonality,
    create_trend_analyzer,
    detect_anomalies,
    moving_average,
    split_halves,
    trend_ratio,
)


def period(tokens: int, hours: float = 3.0, files: int = 0) -> BasicStats:
    return BasicStats(
        session_count=1,
        total_time_seconds=hours * 3600,
        total_time_hours=hours,
        total_tokens=tokens,
        files_modified_count=files,
        files_modified=[f"f{i}.py" for i in range(files)],
    )


ANALYZERS = [TrendsAnalyzer(), AdvancedTrendsAnalyzer()]


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class TestHelpers:
    def test_trend_ratio(self) -> None:
        assert trend_ratio(100, 150) == 0.5
        assert trend_ratio(200, 100) == -0.5
        for value in (-3, 0, 7.5, 1e9):
            assert trend_ratio(0, value) == 0

    def test_split_halves_drops_middle_of_odd_series(self) -> None:
        assert split_halves([1, 2, 3, 4, 5]) == ([1, 2], [4, 5])
        assert split_halves([1, 2, 3, 4]) == ([1, 2], [3, 4])
        assert split_halves([1]) == ([], [])

    def test_moving_average_is_trailing(self) -> None:
        assert moving_average([3.0, 6.0, 9.0, 12.0]) == [3.0, 4.5, 6.0, 9.0]

    def test_detect_anomalies_flags_spike(self) -> None:
        values = [10.0, 10.0, 10.0, 10.0, 100.0, 10.0, 10.0, 10.0, 10.0]
        assert detect_anomalies(values) == [False] * 4 + [True] + [False] * 4

    def test_detect_anomalies_on_flat_series(self) -> None:
        assert detect_anomalies([5.0] * 6) == [False] * 6


class TestContract:
    @pytest.mark.parametrize("analyzer", ANALYZERS, ids=lambda a: a.name)
    @pytest.mark.parametrize("periods", [[], [period(1000)]])
    def test_fewer_than_two_periods(self, analyzer: TrendsAnalyzer, periods) -> None:
        result = analyzer.analyze(periods, "week")
        assert result.productivity_trend == 0
        assert result.token_trend == 0
        assert result.time_trend == 0
        assert result.daily_metrics == {}
        assert result.message

    @pytest.mark.parametrize("analyzer", ANALYZERS, ids=lambda a: a.name)
    def test_two_period_scenario(self, analyzer: TrendsAnalyzer) -> None:
        result = analyzer.analyze([period(500), period(1000)], "week")
        assert result.token_trend > 0
        assert result.productivity_trend > 0
        assert result.time_trend == 0
        assert len(result.daily_metrics) == 2

    def test_basic_values(self) -> None:
        result = TrendsAnalyzer().analyze([period(500), period(1000)])
        assert result.token_trend == 1.0
        assert result.productivity_trend == pytest.approx(1.0)
        assert result.analyzer == "basic"

    def test_daily_metric_keys_count_back_from_end_date(self) -> None:
        result = TrendsAnalyzer().analyze(
            [period(100), period(200), period(300, files=3)], end_date=date(2025, 1, 10)
        )
        assert list(result.daily_metrics) == ["2025-01-08", "2025-01-09", "2025-01-10"]
        last = result.daily_metrics["2025-01-10"]
        assert last.tokens == 300
        assert last.files_count == 3
        assert last.time_hours == 3.0
        assert last.productivity_score == pytest.approx(0.5 + 5.0)

    def test_labels_are_used_as_keys(self) -> None:
        result = TrendsAnalyzer().analyze(
            [period(100), period(200)], labels=["2025-W01", "2025-W02"]
        )
        assert list(result.daily_metrics) == ["2025-W01", "2025-W02"]

    def test_duplicate_labels_fall_back_to_dates(self) -> None:
        result = TrendsAnalyzer().analyze(
            [period(100), period(200), period(300)],
            labels=["2025-W01", "2025-W01", "2025-W02"],
            end_date=date(2025, 1, 10),
        )
        assert list(result.daily_metrics) == ["2025-01-08", "2025-01-09", "2025-01-10"]

    def test_odd_series_ignores_middle_period(self) -> None:
        result = TrendsAnalyzer().analyze([period(100), period(9999), period(200)])
        assert result.token_trend == 1.0

    def test_zero_first_half_gives_zero_trend(self) -> None:
        result = TrendsAnalyzer().analyze([period(0, hours=0), period(500, hours=2)])
        assert result.token_trend == 0
        assert result.time_trend == 0
        assert result.productivity_trend == 0


class TestAdvanced:
    def test_short_series_falls_back_to_basic(self) -> None:
        periods = [period(100), period(200), period(300)]
        advanced = AdvancedTrendsAnalyzer().analyze(periods)
        basic = TrendsAnalyzer().analyze(periods)
        assert advanced.token_trend == basic.token_trend
        assert advanced.productivity_trend == basic.productivity_trend
        assert "basic" in advanced.message
        assert advanced.analyzer == "advanced"

    def test_long_series_reports_anomalies_and_confidence(self) -> None:
        tokens = [1000, 1100, 1200, 1300, 20000, 1500, 1600, 1700, 1800, 1900]
        result = AdvancedTrendsAnalyzer().analyze([period(t) for t in tokens])
        assert result.anomalies is not None
        assert result.anomalies.tokens >= 1
        assert result.confidence_score is not None
        assert 10 <= result.confidence_score <= 90

    @pytest.mark.parametrize(
        "tokens",
        [
            [1000, 1100, 1200, 1300, 20000, 1500, 1600, 1700, 1800, 1900],
            [5000, 4800, 4700, 100, 4400, 4300, 4100, 4000],
            [1000, 1000, 1000, 1000, 1000, 1000],
            [800, 3000, 900, 2800, 1000, 2600, 1100, 2500, 1200],
            [100, 200, 50000, 300, 400],
        ],
    )
    def test_signs_agree_with_basic(self, tokens: list[int]) -> None:
        hours = [2.0 + (i % 3) * 0.5 for i in range(len(tokens))]
        periods = [period(t, h) for t, h in zip(tokens, hours, strict=True)]
        basic = TrendsAnalyzer().analyze(periods)
        advanced = AdvancedTrendsAnalyzer().analyze(periods)
        for field in ("productivity_trend", "token_trend", "time_trend"):
            assert _sign(getattr(advanced, field)) == _sign(getattr(basic, field)), field

    def test_weekly_seasonality(self) -> None:
        start = date(2025, 1, 6)  # a Monday
        metrics = {
            (start + timedelta(days=i)).isoformat(): DailyMetric(
                productivity_score=9.0 if i % 7 == 0 else 1.0
            )
            for i in range(14)
        }
        seasonality = analyze_seasonality(metrics)
        assert seasonality.has_pattern
        assert seasonality.weekly_patterns["Mon"] == 9.0
        assert "Mon" in seasonality.pattern_description

    def test_no_seasonality_on_short_series(self) -> None:
        metrics = {f"2025-01-0{i}": DailyMetric(productivity_score=i) for i in range(1, 8)}
        assert not analyze_seasonality(metrics).has_pattern


class TestRegistry:
    def test_registry_names(self) -> None:
        assert set(TREND_ANALYZERS) == {"basic", "advanced"}

    def test_create_by_name(self) -> None:
        assert type(create_trend_analyzer("basic")) is TrendsAnalyzer
        advanced = create_trend_analyzer("advanced", anomaly_threshold=3.0)
        assert isinstance(advanced, AdvancedTrendsAnalyzer)

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError):
            create_trend_analyzer("quantum")
