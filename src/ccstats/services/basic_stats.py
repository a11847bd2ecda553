"""Basic stats aggregation, merging, validation and period comparison."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from ccstats.models.analytics import BasicStats, StatsComparison, ValidationReport
from ccstats.models.usage import AggregatedSummary, UsageRecord
from ccstats.services.trends import trend_ratio

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
GRANULARITIES = ("day", "week", "month")


def seconds_to_hours(seconds: float) -> float:
    return round(seconds / 3600, 1)


def _coerce_record(entry: object) -> UsageRecord | None:
    if isinstance(entry, UsageRecord):
        return entry
    if not isinstance(entry, Mapping):
        return None
    try:
        return UsageRecord.model_validate(dict(entry))
    except ValidationError as exc:
        logger.warning("Skipping malformed usage record: %s", exc.errors()[0]["msg"])
        return None


def _add_counts(target: dict[str, int], counts: Mapping[str, int]) -> None:
    for name, count in counts.items():
        target[name] = target.get(name, 0) + max(0, count)


class BasicStatsCalculator:
    """Aggregates raw usage into BasicStats.

    Public methods never raise: malformed entries are skipped, negative
    numbers are clamped to zero and unexpected failures degrade to an
    all-zero result.
    """

    def from_records(self, records: Iterable[object] | None) -> BasicStats:
        """Aggregate a batch of usage records."""
        if not records:
            return BasicStats.empty()
        try:
            sessions: set[str] = set()
            total_seconds = 0.0
            total_tokens = 0
            total_cost = 0.0
            files: dict[str, None] = {}
            tool_usage: dict[str, int] = {}
            model_usage: dict[str, int] = {}
            skipped = 0

            for entry in records:
                record = _coerce_record(entry)
                if record is None:
                    skipped += 1
                    continue
                sessions.add(record.session_id)
                tokens = max(0, record.token_usage.total)
                total_seconds += max(0.0, record.active_time_seconds)
                total_tokens += tokens
                total_cost += max(0.0, record.cost_usd)
                files.update(dict.fromkeys(record.files_modified))
                _add_counts(tool_usage, record.tool_usage)
                if tokens:
                    model = record.model or DEFAULT_MODEL
                    model_usage[model] = model_usage.get(model, 0) + tokens

            if skipped:
                logger.warning("Skipped %d invalid usage records", skipped)

            return BasicStats(
                session_count=len(sessions),
                total_time_seconds=total_seconds,
                total_time_hours=seconds_to_hours(total_seconds),
                total_tokens=total_tokens,
                total_cost_usd=total_cost,
                files_modified_count=len(files),
                files_modified=list(files),
                tool_usage=tool_usage,
                model_usage=model_usage,
            )
        except Exception:
            logger.exception("Failed to aggregate usage records")
            return BasicStats.empty()

    def from_aggregated_summary(
        self, summary: AggregatedSummary | Mapping[str, Any] | None
    ) -> BasicStats:
        """Convert one pre-aggregated summary (duration in minutes)."""
        if summary is None:
            return BasicStats.empty()
        try:
            if not isinstance(summary, AggregatedSummary):
                summary = AggregatedSummary.model_validate(dict(summary))
        except (ValidationError, TypeError, ValueError) as exc:
            logger.warning("Invalid aggregated summary: %s", exc)
            return BasicStats.empty()

        try:
            seconds = max(0.0, summary.timespan.duration_minutes) * 60
            tokens = max(0, summary.tokens.total)
            cost = max(0.0, summary.costs.total)
            tool_usage: dict[str, int] = {}
            _add_counts(tool_usage, summary.activity.tools_used)
            files = list(dict.fromkeys(summary.activity.files_modified))

            has_activity = bool(seconds or tokens or cost or files or any(tool_usage.values()))
            sessions = summary.activity.sessions
            if sessions <= 0:
                sessions = 1 if has_activity else 0

            return BasicStats(
                session_count=sessions,
                total_time_seconds=seconds,
                total_time_hours=seconds_to_hours(seconds),
                total_tokens=tokens,
                total_cost_usd=cost,
                files_modified_count=len(files),
                files_modified=files,
                tool_usage=tool_usage,
                model_usage={DEFAULT_MODEL: tokens} if tokens else {},
            )
        except Exception:
            logger.exception("Failed to convert aggregated summary")
            return BasicStats.empty()

    def merge(self, stats_list: Iterable[BasicStats] | None) -> BasicStats:
        """Sum several BasicStats; files are unioned, maps summed key-wise."""
        items = [s for s in (stats_list or []) if isinstance(s, BasicStats)]
        if not items:
            return BasicStats.empty()
        if len(items) == 1:
            return items[0].model_copy(deep=True)
        try:
            files: dict[str, None] = {}
            tool_usage: dict[str, int] = {}
            model_usage: dict[str, int] = {}
            for stats in items:
                files.update(dict.fromkeys(stats.files_modified))
                _add_counts(tool_usage, stats.tool_usage)
                _add_counts(model_usage, stats.model_usage)

            total_seconds = sum(max(0.0, s.total_time_seconds) for s in items)
            return BasicStats(
                session_count=sum(max(0, s.session_count) for s in items),
                total_time_seconds=total_seconds,
                total_time_hours=seconds_to_hours(total_seconds),
                total_tokens=sum(max(0, s.total_tokens) for s in items),
                total_cost_usd=sum(max(0.0, s.total_cost_usd) for s in items),
                files_modified_count=len(files),
                files_modified=list(files),
                tool_usage=tool_usage,
                model_usage=model_usage,
            )
        except Exception:
            logger.exception("Failed to merge %d stats", len(items))
            return BasicStats.empty()

    def validate_and_correct(self, stats: BasicStats) -> ValidationReport:
        """Check BasicStats invariants and return a corrected copy."""
        if not isinstance(stats, BasicStats):
            logger.warning("Cannot validate %s, expected BasicStats", type(stats).__name__)
            return ValidationReport(
                valid=False,
                issues=[f"expected BasicStats, got {type(stats).__name__}"],
                corrected=BasicStats.empty(),
            )
        try:
            return self._validate(stats)
        except Exception as exc:
            logger.exception("Failed to validate stats")
            return ValidationReport(
                valid=False,
                issues=[f"validation failed: {exc}"],
                corrected=BasicStats.empty(),
            )

    def _validate(self, stats: BasicStats) -> ValidationReport:
        issues: list[str] = []
        corrected = stats.model_copy(deep=True)

        if corrected.total_time_seconds < 0:
            issues.append("total_time_seconds must not be negative")
            corrected.total_time_seconds = 0.0

        expected_hours = seconds_to_hours(corrected.total_time_seconds)
        if not math.isclose(corrected.total_time_hours, expected_hours, abs_tol=1e-9):
            issues.append("total_time_hours does not match total_time_seconds")
            corrected.total_time_hours = expected_hours

        if corrected.total_tokens < 0:
            issues.append("total_tokens must not be negative")
            corrected.total_tokens = 0

        if corrected.total_cost_usd < 0:
            issues.append("total_cost_usd must not be negative")
            corrected.total_cost_usd = 0.0

        negative_tools = sorted(name for name, count in corrected.tool_usage.items() if count < 0)
        if negative_tools:
            issues.append(f"tool_usage has negative counts: {', '.join(negative_tools)}")
            corrected.tool_usage = {k: max(0, v) for k, v in corrected.tool_usage.items()}

        unique_files = list(dict.fromkeys(corrected.files_modified))
        if len(unique_files) != len(corrected.files_modified) or (
            corrected.files_modified_count != len(unique_files)
        ):
            issues.append("files_modified_count does not match files_modified")
            corrected.files_modified = unique_files
            corrected.files_modified_count = len(unique_files)

        if corrected.session_count <= 0:
            issues.append("session_count must be greater than 0")
            corrected.session_count = 1

        return ValidationReport(valid=not issues, issues=issues, corrected=corrected)

    def group_by_period(
        self, records: Iterable[object] | None, granularity: str = "day"
    ) -> dict[str, BasicStats]:
        """Bucket records by day, ISO week or month of their timestamp.

        Records whose timestamp cannot be parsed are left out of every bucket.
        Buckets are returned in chronological order.
        """
        if granularity not in GRANULARITIES:
            logger.warning("Unknown granularity %r, using 'day'", granularity)
            granularity = "day"

        buckets: dict[str, list[UsageRecord]] = {}
        for entry in records or []:
            record = _coerce_record(entry)
            if record is None:
                continue
            label = period_label(record.timestamp, granularity)
            if label is None:
                logger.debug("Record %s has no usable timestamp", record.session_id)
                continue
            buckets.setdefault(label, []).append(record)

        return {label: self.from_records(buckets[label]) for label in sorted(buckets)}


def period_label(timestamp: str, granularity: str = "day") -> str | None:
    """Return the bucket label for an ISO timestamp, or None if unparsable."""
    if not timestamp:
        return None
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    match granularity:
        case "week":
            year, week, _ = moment.isocalendar()
            return f"{year}-W{week:02d}"
        case "month":
            return moment.strftime("%Y-%m")
        case _:
            return moment.date().isoformat()


class StatsComparator:
    """Compares two BasicStats periods."""

    def compare(self, current: BasicStats, previous: BasicStats) -> StatsComparison:
        current_rate = _tokens_per_hour(current)
        previous_rate = _tokens_per_hour(previous)
        return StatsComparison(
            time_change=trend_ratio(previous.total_time_hours, current.total_time_hours),
            tokens_change=trend_ratio(previous.total_tokens, current.total_tokens),
            cost_change=trend_ratio(previous.total_cost_usd, current.total_cost_usd),
            files_change=trend_ratio(previous.files_modified_count, current.files_modified_count),
            sessions_change=trend_ratio(previous.session_count, current.session_count),
            efficiency_change=trend_ratio(previous_rate, current_rate),
        )


def _tokens_per_hour(stats: BasicStats) -> float:
    if stats.total_time_hours <= 0:
        return 0.0
    return stats.total_tokens / stats.total_time_hours
