"""Supported report languages and localized labels."""

from __future__ import annotations

import logging
from typing import Literal

from ccstats.models.analytics import EfficiencyRating

logger = logging.getLogger(__name__)

Language = Literal["zh-CN", "en-US"]

SUPPORTED_LANGUAGES: tuple[Language, ...] = ("zh-CN", "en-US")
DEFAULT_LANGUAGE: Language = "zh-CN"

RATING_LABELS: dict[str, dict[EfficiencyRating, str]] = {
    "zh-CN": {
        EfficiencyRating.EXCELLENT: "卓越",
        EfficiencyRating.GOOD: "优秀",
        EfficiencyRating.FAIR: "良好",
        EfficiencyRating.AVERAGE: "一般",
        EfficiencyRating.NEEDS_IMPROVEMENT: "待改进",
        EfficiencyRating.POOR: "较差",
        EfficiencyRating.NO_DATA: "无数据",
    },
    "en-US": {
        EfficiencyRating.EXCELLENT: "Excellent",
        EfficiencyRating.GOOD: "Good",
        EfficiencyRating.FAIR: "Fair",
        EfficiencyRating.AVERAGE: "Average",
        EfficiencyRating.NEEDS_IMPROVEMENT: "Needs improvement",
        EfficiencyRating.POOR: "Poor",
        EfficiencyRating.NO_DATA: "No data",
    },
}


def normalize_language(language: str | None, default: Language = DEFAULT_LANGUAGE) -> Language:
    """Map user input such as ``en``, ``EN_us`` or ``zh`` onto a supported tag."""
    if not language:
        return default
    value = language.strip().replace("_", "-").lower()
    if value.startswith("en"):
        return "en-US"
    if value.startswith("zh"):
        return "zh-CN"
    logger.warning("Unsupported language %r, falling back to %s", language, default)
    return default


def rating_label(rating: EfficiencyRating, language: str) -> str:
    return RATING_LABELS[normalize_language(language)][rating]
