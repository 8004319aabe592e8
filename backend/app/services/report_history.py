"""
Read-only history lookups that feed the triage engine.

Three ports, each answering one question:
- ReporterHistoryPort: how reliable has this reporter been?
- TargetHistoryPort: how often has this author been found in violation?
- RecentReportsPort: who else reported this target recently?

SupabaseReportHistory implements all three against the reports table and
caches the results in Redis. Tests and the admin preview pass fakes or
literal values instead.
"""

import logging
from typing import Optional, Protocol

from supabase import Client

from app.core.cache import cache_get, cache_set
from app.core.constants import (
    HISTORY_CACHE_TTL_SECONDS,
    PREVIOUS_REPORTS_LIMIT,
    RECENT_REPORTS_CACHE_TTL_SECONDS,
)
from app.core.database import get_supabase
from app.core.redis import ReportCacheKeys
from app.models.report import ReportStatus, parse_timestamp
from app.models.triage import PreviousReport, ReporterHistory, TargetHistory

logger = logging.getLogger(__name__)


class ReporterHistoryPort(Protocol):
    def get_reporter_history(self, reporter_id: str) -> Optional[ReporterHistory]: ...


class TargetHistoryPort(Protocol):
    def get_target_history(self, author_id: Optional[str]) -> Optional[TargetHistory]: ...


class RecentReportsPort(Protocol):
    def get_recent_reports(
        self, target_id: str, target_type: str, limit: int = PREVIOUS_REPORTS_LIMIT
    ) -> list[PreviousReport]: ...


class SupabaseReportHistory:
    """History aggregates computed from the reports table, cached in Redis."""

    def __init__(self, supabase: Optional[Client] = None) -> None:
        self._supabase = supabase

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    def get_reporter_history(self, reporter_id: str) -> Optional[ReporterHistory]:
        """
        Outcome counts for everything this reporter has filed.

        Returns None for a reporter with no reports at all, so the engine
        skips the trust step instead of applying the neutral multiplier.
        """
        cache_key = ReportCacheKeys.reporter_history(reporter_id)
        cached = cache_get(cache_key)
        if cached is None:
            result = (
                self.supabase.table("reports")
                .select("status")
                .eq("reporter_id", reporter_id)
                .execute()
            )
            rows = result.data or []
            cached = {
                "total_reports": len(rows),
                "valid_reports": sum(1 for r in rows if r.get("status") == ReportStatus.RESOLVED),
                "false_reports": sum(1 for r in rows if r.get("status") == ReportStatus.REJECTED),
            }
            cache_set(cache_key, cached, ttl=HISTORY_CACHE_TTL_SECONDS)

        history = ReporterHistory(**cached)
        if history.total_reports == 0:
            return None
        return history

    def get_target_history(self, author_id: Optional[str]) -> Optional[TargetHistory]:
        """Violation record of a content author; None when unknown or never reported."""
        if not author_id:
            return None

        cache_key = ReportCacheKeys.target_history(author_id)
        cached = cache_get(cache_key)
        if cached is None:
            result = (
                self.supabase.table("reports")
                .select("status, resolved_at, updated_at")
                .eq("target_author_id", author_id)
                .execute()
            )
            rows = result.data or []
            resolved = [r for r in rows if r.get("status") == ReportStatus.RESOLVED]
            violation_times = []
            for row in resolved:
                ts = parse_timestamp(row.get("resolved_at") or row.get("updated_at"))
                if ts is not None:
                    violation_times.append(ts)
            cached = {
                "violation_count": len(resolved),
                "reported_count": len(rows),
                "last_violation": max(violation_times).isoformat() if violation_times else None,
                "warning_count": self._get_warning_count(author_id) if rows else None,
            }
            cache_set(cache_key, cached, ttl=HISTORY_CACHE_TTL_SECONDS)

        if cached["reported_count"] == 0:
            return None
        return TargetHistory(**cached)

    def _get_warning_count(self, author_id: str) -> Optional[int]:
        result = (
            self.supabase.table("users")
            .select("warning_count")
            .eq("id", author_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return result.data[0].get("warning_count")

    def get_recent_reports(
        self, target_id: str, target_type: str, limit: int = PREVIOUS_REPORTS_LIMIT
    ) -> list[PreviousReport]:
        """Latest reports against one target, newest first."""
        cache_key = ReportCacheKeys.recent_reports(target_type, target_id)
        cached = cache_get(cache_key)
        if cached is None:
            result = (
                self.supabase.table("reports")
                .select("id, status, created_at")
                .eq("target_id", target_id)
                .eq("target_type", target_type)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            cached = result.data or []
            cache_set(cache_key, cached, ttl=RECENT_REPORTS_CACHE_TTL_SECONDS)

        return [PreviousReport(**row) for row in cached[:limit]]
