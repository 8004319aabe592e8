"""
Pure aggregation helpers for the admin report dashboard.

Inputs are report rows as returned by Supabase (dicts with string
timestamps); nothing here touches storage.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional

from app.core.constants import TREND_DAYS
from app.models.report import (
    ReportStatus,
    ResolutionRates,
    ResponseTimeMetrics,
    TrendPoint,
    parse_timestamp,
)


def aggregate_report_stats(reports: Iterable[Mapping[str, Any]]) -> dict[str, dict[str, int]]:
    """Count reports by category, priority and status."""
    by_category: Counter = Counter()
    by_priority: Counter = Counter()
    by_status: Counter = Counter()

    for report in reports:
        by_category[report.get("category") or "other"] += 1
        if report.get("priority"):
            by_priority[report["priority"]] += 1
        if report.get("status"):
            by_status[report["status"]] += 1

    return {
        "by_category": dict(by_category),
        "by_priority": dict(by_priority),
        "by_status": dict(by_status),
    }


def calculate_resolution_rates(by_status: Mapping[str, int]) -> ResolutionRates:
    """
    Resolution rate: resolved share of closed reports.
    Pending rate: open (pending + reviewing) share of all reports.
    Both as percentages.
    """
    resolved = by_status.get(ReportStatus.RESOLVED.value, 0)
    rejected = by_status.get(ReportStatus.REJECTED.value, 0)
    open_count = by_status.get(ReportStatus.PENDING.value, 0) + by_status.get(
        ReportStatus.REVIEWING.value, 0
    )
    completed = resolved + rejected
    total = completed + open_count

    return ResolutionRates(
        resolution_rate=(resolved / completed) * 100 if completed else 0.0,
        pending_rate=(open_count / total) * 100 if total else 0.0,
    )


def calculate_response_time_metrics(reports: Iterable[Mapping[str, Any]]) -> ResponseTimeMetrics:
    """Average, median and p95 hours from creation to resolution."""
    durations = []
    for report in reports:
        created = parse_timestamp(report.get("created_at"))
        resolved = parse_timestamp(report.get("resolved_at"))
        if created is None or resolved is None:
            continue
        durations.append((resolved - created).total_seconds() / 3600)

    if not durations:
        return ResponseTimeMetrics(average=0.0, median=0.0, p95=0.0, sample_size=0)

    durations.sort()
    n = len(durations)
    return ResponseTimeMetrics(
        average=sum(durations) / n,
        median=durations[n // 2],
        p95=durations[min(int(n * 0.95), n - 1)],
        sample_size=n,
    )


def build_daily_trend(
    reports: Iterable[Mapping[str, Any]],
    days: int = TREND_DAYS,
    now: Optional[datetime] = None,
) -> list[TrendPoint]:
    """Reports per UTC day for the last `days` days (today included), oldest first."""
    now = parse_timestamp(now) or datetime.now(timezone.utc)
    today = now.astimezone(timezone.utc).date()
    window = [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
    counts = {day: 0 for day in window}

    for report in reports:
        created = parse_timestamp(report.get("created_at"))
        if created is None:
            continue
        day = created.astimezone(timezone.utc).date()
        if day in counts:
            counts[day] += 1

    return [TrendPoint(date=day.isoformat(), count=counts[day]) for day in window]
