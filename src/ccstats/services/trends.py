"""Trend analysis over an ordered series of BasicStats periods."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import date, timedelta

from ccstats.models.analytics import (
    AnomalyCounts,
    BasicStats,
    DailyMetric,
    SeasonalityAnalysis,
    TrendAnalysis,
)

logger = logging.getLogger(__name__)

MIN_TREND_POINTS = 2
MIN_ADVANCED_POINTS = 5
MIN_SEASONALITY_POINTS = 14
SMOOTHING_WINDOW = 3
ANOMALY_WINDOW = 5
ANOMALY_WEIGHT = 0.25
SEASONALITY_VARIANCE = 0.5
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def trend_ratio(first: float, second: float) -> float:
    """Fractional change from ``first`` to ``second``; 0 when ``first`` is 0."""
    if first == 0:
        return 0.0
    return (second - first) / first


def split_halves(values: Sequence[float]) -> tuple[list[float], list[float]]:
    """Split a series into first and second half.

    For odd lengths the middle point belongs to neither half.
    """
    n = len(values)
    return list(values[: n // 2]), list(values[(n + 1) // 2 :])


def mean(values: Sequence[float], weights: Sequence[float] | None = None) -> float:
    if not values:
        return 0.0
    if weights is None:
        return sum(values) / len(values)
    total = sum(weights)
    if total <= 0:
        return 0.0
    return sum(v * w for v, w in zip(values, weights, strict=True)) / total


def tokens_per_hour(stats: BasicStats) -> float:
    if stats.total_time_hours <= 0:
        return 0.0
    return max(0, stats.total_tokens) / stats.total_time_hours


def simple_productivity_score(stats: BasicStats) -> float:
    """0-10 score of one period: token throughput plus file output."""
    if stats.total_time_hours <= 0:
        return 0.0
    token_score = min(5.0, tokens_per_hour(stats) / 200)
    files_score = min(5.0, max(0, stats.files_modified_count) / stats.total_time_hours * 5)
    return round(token_score + files_score, 2)


MetricSeries = dict[str, list[float]]

_SERIES: dict[str, Callable[[BasicStats], float]] = {
    "productivity": tokens_per_hour,
    "tokens": lambda s: float(max(0, s.total_tokens)),
    "time": lambda s: max(0.0, s.total_time_hours),
}

_TREND_FIELDS = {
    "productivity": "productivity_trend",
    "tokens": "token_trend",
    "time": "time_trend",
}


class TrendsAnalyzer:
    """Compares the averages of the first and second half of a series."""

    name = "basic"

    def analyze(
        self,
        periods: Sequence[BasicStats],
        timeframe: str = "week",
        *,
        labels: Sequence[str] | None = None,
        end_date: date | None = None,
    ) -> TrendAnalysis:
        """Compute productivity, token and time trends.

        Args:
            periods: One BasicStats per sub-period, oldest first.
            timeframe: Label of the analysed window, echoed in messages.
            labels: Keys for ``daily_metrics``; defaults to one ISO date per
                period counting back from ``end_date``.
            end_date: Date of the last period (default: today).
        """
        points = [p for p in (periods or []) if isinstance(p, BasicStats)]
        logger.debug("Analyzing %s trends over %d periods", timeframe, len(points))
        if len(points) < MIN_TREND_POINTS:
            return insufficient_data_result(timeframe, self.name)
        try:
            result = self._analyze(points, timeframe, labels, end_date)
            result.analyzer = self.name
            return result
        except Exception:
            logger.exception("Trend analysis failed")
            return error_result(timeframe, self.name)

    def _analyze(
        self,
        points: list[BasicStats],
        timeframe: str,
        labels: Sequence[str] | None,
        end_date: date | None,
    ) -> TrendAnalysis:
        series = build_series(points)
        trends = {
            _TREND_FIELDS[metric]: half_trend(values) for metric, values in series.items()
        }
        return TrendAnalysis(
            **trends,
            daily_metrics=build_daily_metrics(points, labels, end_date),
            timeframe=timeframe,
        )


class AdvancedTrendsAnalyzer(TrendsAnalyzer):
    """Smoothing, anomaly down-weighting and weekly seasonality.

    Returns the same fields as the basic analyzer. A refined trend whose sign
    differs from the basic trend is replaced by the basic value.
    """

    name = "advanced"

    def __init__(self, anomaly_threshold: float = 2.0) -> None:
        self._threshold = anomaly_threshold
        self._basic = TrendsAnalyzer()

    def _analyze(
        self,
        points: list[BasicStats],
        timeframe: str,
        labels: Sequence[str] | None,
        end_date: date | None,
    ) -> TrendAnalysis:
        basic = self._basic._analyze(points, timeframe, labels, end_date)
        if len(points) < MIN_ADVANCED_POINTS:
            basic.message = (
                f"Only {len(points)} {timeframe} periods available; "
                "falling back to basic trend analysis"
            )
            return basic

        series = build_series(points)
        trends: dict[str, float] = {}
        anomaly_counts: dict[str, int] = {}
        for metric, values in series.items():
            flags = detect_anomalies(values, self._threshold)
            anomaly_counts[metric] = sum(flags)
            weights = [ANOMALY_WEIGHT if flag else 1.0 for flag in flags]
            smoothed = moving_average(values, weights, SMOOTHING_WINDOW)
            refined = half_trend(smoothed, weights)

            field = _TREND_FIELDS[metric]
            reference = getattr(basic, field)
            if _sign(refined) != _sign(reference):
                logger.debug(
                    "Refined %s trend %.4f disagrees with basic %.4f; keeping basic",
                    metric,
                    refined,
                    reference,
                )
                refined = reference
            trends[field] = refined

        seasonality = analyze_seasonality(basic.daily_metrics)
        return TrendAnalysis(
            **trends,
            daily_metrics=basic.daily_metrics,
            timeframe=timeframe,
            anomalies=AnomalyCounts(**anomaly_counts),
            seasonality=seasonality if seasonality.has_pattern else None,
            confidence_score=confidence_score(sum(anomaly_counts.values()), len(points)),
        )


def build_series(points: Sequence[BasicStats]) -> MetricSeries:
    return {metric: [extract(p) for p in points] for metric, extract in _SERIES.items()}


def half_trend(values: Sequence[float], weights: Sequence[float] | None = None) -> float:
    """``trend_ratio`` of the (weighted) averages of both halves."""
    first, second = split_halves(values)
    if weights is None:
        return trend_ratio(mean(first), mean(second))
    first_w, second_w = split_halves(weights)
    return trend_ratio(mean(first, first_w), mean(second, second_w))


def build_daily_metrics(
    points: Sequence[BasicStats],
    labels: Sequence[str] | None = None,
    end_date: date | None = None,
) -> dict[str, DailyMetric]:
    if labels is None or len(labels) != len(points) or len(set(labels)) != len(labels):
        if labels is not None:
            logger.warning(
                "Ignoring %d labels (%d distinct) for %d periods",
                len(labels),
                len(set(labels)),
                len(points),
            )
        last = end_date or date.today()
        labels = [
            (last - timedelta(days=len(points) - index - 1)).isoformat()
            for index in range(len(points))
        ]

    metrics: dict[str, DailyMetric] = {}
    for label, stats in zip(labels, points, strict=True):
        metrics[label] = DailyMetric(
            tokens=max(0, stats.total_tokens),
            time_hours=max(0.0, stats.total_time_hours),
            productivity_score=simple_productivity_score(stats),
            cost=max(0.0, stats.total_cost_usd),
            files_count=max(0, stats.files_modified_count),
        )
    return metrics


def detect_anomalies(values: Sequence[float], threshold: float = 2.0) -> list[bool]:
    """Flag points more than ``threshold`` std devs from their neighbours' mean.

    Neighbours are the points of a centered window of ANOMALY_WINDOW, not
    counting the point itself.
    """
    flags: list[bool] = []
    half = ANOMALY_WINDOW // 2
    for index, value in enumerate(values):
        lo = max(0, index - half)
        neighbours = [v for i, v in enumerate(values[lo : index + half + 1], lo) if i != index]
        if len(neighbours) < 2:
            flags.append(False)
            continue
        center = mean(neighbours)
        std = math.sqrt(sum((v - center) ** 2 for v in neighbours) / len(neighbours))
        if std == 0:
            flags.append(value != center and center != 0)
        else:
            flags.append(abs(value - center) > threshold * std)
    return flags


def moving_average(
    values: Sequence[float], weights: Sequence[float] | None = None, window: int = SMOOTHING_WINDOW
) -> list[float]:
    """Trailing weighted moving average with the same length as the input."""
    if weights is None:
        weights = [1.0] * len(values)
    smoothed: list[float] = []
    for index in range(len(values)):
        lo = max(0, index - window + 1)
        smoothed.append(mean(values[lo : index + 1], weights[lo : index + 1]))
    return smoothed


def analyze_seasonality(daily_metrics: dict[str, DailyMetric]) -> SeasonalityAnalysis:
    """Detect a weekday productivity pattern in date-keyed metrics."""
    by_weekday: dict[int, list[float]] = {}
    for label, metric in daily_metrics.items():
        try:
            weekday = date.fromisoformat(label).weekday()
        except ValueError:
            continue
        by_weekday.setdefault(weekday, []).append(metric.productivity_score)

    if sum(len(v) for v in by_weekday.values()) < MIN_SEASONALITY_POINTS:
        return SeasonalityAnalysis(pattern_description="Not enough daily data for seasonality")

    patterns = {WEEKDAYS[day]: round(mean(scores), 2) for day, scores in sorted(by_weekday.items())}
    averages = list(patterns.values())
    has_pattern = False
    if len(averages) >= 5:
        center = mean(averages)
        variance = sum((v - center) ** 2 for v in averages) / len(averages)
        has_pattern = variance > SEASONALITY_VARIANCE

    description = "No weekly pattern detected"
    if has_pattern:
        best = max(patterns.items(), key=lambda item: item[1])[0]
        description = f"Weekly pattern detected; productivity peaks on {best}"
    return SeasonalityAnalysis(
        has_pattern=has_pattern,
        pattern_description=description,
        weekly_patterns=patterns,
    )


def confidence_score(anomalies: int, points: int) -> float:
    """0-90 confidence: grows with series length, shrinks with anomaly rate."""
    if points <= 0:
        return 0.0
    base = min(90.0, points / 30 * 90)
    penalty = anomalies / (points * len(_SERIES)) * 30
    return round(max(10.0, base - penalty), 1)


def insufficient_data_result(timeframe: str, analyzer: str = "basic") -> TrendAnalysis:
    return TrendAnalysis(
        message=(
            f"Not enough {timeframe} data for trend analysis "
            f"(at least {MIN_TREND_POINTS} periods are required)"
        ),
        timeframe=timeframe,
        analyzer=analyzer,
    )


def error_result(timeframe: str, analyzer: str = "basic") -> TrendAnalysis:
    return TrendAnalysis(
        message=f"Trend analysis for {timeframe} failed",
        timeframe=timeframe,
        analyzer=analyzer,
    )


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


TREND_ANALYZERS: dict[str, Callable[..., TrendsAnalyzer]] = {
    TrendsAnalyzer.name: TrendsAnalyzer,
    AdvancedTrendsAnalyzer.name: AdvancedTrendsAnalyzer,
}


def create_trend_analyzer(name: str = "basic", **kwargs: float) -> TrendsAnalyzer:
    """Instantiate a registered analyzer by name."""
    factory = TREND_ANALYZERS.get(name)
    if factory is None:
        raise KeyError(f"Unknown trend analyzer: {name}")
    if factory is TrendsAnalyzer:
        return factory()
    return factory(**kwargs)
