"""Heuristic lines-of-code estimate from tool invocation counts."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from ccstats.config import DEFAULT_LINE_WEIGHTS
from ccstats.models.usage import coerce_count

logger = logging.getLogger(__name__)

EDIT_TOOLS: frozenset[str] = frozenset({"Edit", "MultiEdit", "Write", "NotebookEdit"})
READ_TOOLS: frozenset[str] = frozenset({"Read", "Grep", "Glob", "LS", "WebFetch"})
BATCH_EDIT_TOOLS: frozenset[str] = frozenset({"MultiEdit"})

DEFAULT_TOOL_WEIGHT = 10
MIN_CORRECTION = 0.5
MAX_CORRECTION = 2.0
MAX_DIVERSITY_FACTOR = 1.3
DIVERSITY_STEP = 0.05
# Invocations of one tool beyond this count are damped.
FREQUENCY_THRESHOLD = 20
FREQUENCY_DAMPING = 0.9
EDIT_FACTOR_BASE = 0.8
EDIT_FACTOR_SPAN = 0.4


def clean_tool_usage(tool_usage: Mapping[str, Any] | None) -> dict[str, int]:
    """Drop malformed entries and clamp counts at zero."""
    if not isinstance(tool_usage, Mapping):
        return {}
    cleaned: dict[str, int] = {}
    for name, count in tool_usage.items():
        if not isinstance(name, str):
            continue
        cleaned[name] = max(0, coerce_count(count))
    return cleaned


def read_edit_counts(tool_usage: Mapping[str, Any] | None) -> tuple[int, int]:
    """Return (read-class, edit-class) invocation totals."""
    usage = clean_tool_usage(tool_usage)
    reads = sum(count for name, count in usage.items() if name in READ_TOOLS)
    edits = sum(count for name, count in usage.items() if name in EDIT_TOOLS)
    return reads, edits


def _damped(count: int) -> float:
    if count <= FREQUENCY_THRESHOLD:
        return float(count)
    return FREQUENCY_THRESHOLD + (count - FREQUENCY_THRESHOLD) * FREQUENCY_DAMPING


class CodeEstimator:
    """Estimates changed lines of code from a tool usage map.

    The weight table is injected at construction. Live updates through
    ``update_model`` take a lock, so one writer and many readers can share an
    instance; callers wanting fully independent settings should hold their
    own estimator.
    """

    def __init__(
        self,
        weights: Mapping[str, int] | None = None,
        default_weight: int = DEFAULT_TOOL_WEIGHT,
    ) -> None:
        self._weights: dict[str, int] = dict(DEFAULT_LINE_WEIGHTS if weights is None else weights)
        self._default_weight = default_weight
        self._lock = threading.Lock()

    def get_model(self) -> dict[str, int]:
        """Return a copy of the current weight table."""
        with self._lock:
            return dict(self._weights)

    def update_model(self, weights: Mapping[str, int], *, replace: bool = False) -> None:
        """Merge (or replace) the weight table; non-mapping input is ignored."""
        if not isinstance(weights, Mapping):
            logger.warning("Ignoring line weights of type %s", type(weights).__name__)
            return
        logger.info("Updating line estimation model with %d weights", len(weights))
        cleaned = {name: max(0, coerce_count(value)) for name, value in weights.items()}
        with self._lock:
            if replace:
                self._weights = cleaned
            else:
                self._weights.update(cleaned)

    def weight_for(self, tool_name: str) -> int:
        with self._lock:
            return self._weights.get(tool_name, self._default_weight)

    def raw_estimate(self, tool_usage: Mapping[str, Any] | None) -> int:
        """Uncorrected estimate: sum of count x weight."""
        weights = self.get_model()
        usage = clean_tool_usage(tool_usage)
        return sum(count * weights.get(name, self._default_weight) for name, count in usage.items())

    def correction_factor(self, tool_usage: Mapping[str, Any] | None) -> float:
        """Correction applied on top of the raw estimate, within [0.5, 2.0]."""
        usage = clean_tool_usage(tool_usage)
        raw = self.raw_estimate(usage)
        if raw <= 0:
            return 1.0
        return self._corrected(usage, self.get_model()) / raw

    def estimate(self, tool_usage: Mapping[str, Any] | None) -> int:
        """Estimated lines changed, ``round(raw x correction)``."""
        try:
            usage = clean_tool_usage(tool_usage)
            weights = self.get_model()
            raw = sum(
                count * weights.get(name, self._default_weight) for name, count in usage.items()
            )
            if raw <= 0:
                return 0
            corrected = self._corrected(usage, weights)
            logger.debug(
                "Line estimate: raw=%d corrected=%.2f tools=%d", raw, corrected, len(usage)
            )
            return max(0, round(corrected))
        except Exception:
            logger.exception("Line estimation failed")
            return 0

    def _corrected(self, usage: dict[str, int], weights: dict[str, int]) -> float:
        raw = 0.0
        damped = 0.0
        damped_edit = 0.0
        for name, count in usage.items():
            weight = weights.get(name, self._default_weight)
            raw += count * weight
            lines = _damped(count) * weight
            damped += lines
            if name in EDIT_TOOLS:
                damped_edit += lines

        used = sum(1 for count in usage.values() if count > 0)
        diversity = min(MAX_DIVERSITY_FACTOR, 1 + max(0, used - 1) * DIVERSITY_STEP)

        # 0.8 * lines + 0.4 * edit lines == lines * (0.8 + 0.4 * edit share),
        # written in sums so every term grows with every count.
        corrected = diversity * (EDIT_FACTOR_BASE * damped + EDIT_FACTOR_SPAN * damped_edit)
        return min(raw * MAX_CORRECTION, max(raw * MIN_CORRECTION, corrected))
