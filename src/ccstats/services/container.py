"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ccstats.services.analytics_service import AnalyticsService
from ccstats.services.basic_stats import BasicStatsCalculator
from ccstats.services.code_estimator import CodeEstimator
from ccstats.services.efficiency import EfficiencyCalculator
from ccstats.services.insights import InsightsGenerator
from ccstats.services.recommendations import RecommendationEngine
from ccstats.services.trends import TrendsAnalyzer, create_trend_analyzer

if TYPE_CHECKING:
    from ccstats.config import Config


@dataclass
class ServiceContainer:
    """Holds all analytics services. Built once from a Config."""

    estimator: CodeEstimator
    stats_calculator: BasicStatsCalculator
    efficiency_calculator: EfficiencyCalculator
    trend_analyzer: TrendsAnalyzer
    insights_generator: InsightsGenerator
    recommendation_engine: RecommendationEngine
    analytics_service: AnalyticsService

    @classmethod
    def create(cls, config: Config) -> ServiceContainer:
        """Factory that wires all dependencies."""
        estimator = CodeEstimator(config.line_weights, config.default_line_weight)
        stats_calculator = BasicStatsCalculator()
        efficiency_calculator = EfficiencyCalculator(estimator)
        trend_analyzer = create_trend_analyzer(
            config.trend_analyzer, anomaly_threshold=config.anomaly_threshold
        )
        insights_generator = InsightsGenerator(config.language, config.max_insights)
        recommendation_engine = RecommendationEngine(config.language, config.max_suggestions)

        analytics_service = AnalyticsService(
            stats_calculator,
            efficiency_calculator,
            trend_analyzer,
            insights_generator,
            recommendation_engine,
            language=config.language,
            granularity=config.granularity,
        )
        return cls(
            estimator=estimator,
            stats_calculator=stats_calculator,
            efficiency_calculator=efficiency_calculator,
            trend_analyzer=trend_analyzer,
            insights_generator=insights_generator,
            recommendation_engine=recommendation_engine,
            analytics_service=analytics_service,
        )
