"""
Report intake service.

Handles:
- Validating abuse report submissions
- Duplicate prevention (same reporter + target inside DEDUP_WINDOW_HOURS)
- Fetching reporter / target / recent-report history in parallel
- Triage via the shared engine, then persisting the report as pending
- Auto-hiding content when the decision asks for it
- Audit logging, moderator notification and analytics

The scoring itself lives in triage_engine; this module only gathers its
inputs and acts on its output.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from supabase import Client

from app.core.cache import cache_delete, cache_delete_pattern
from app.core.constants import AUTO_HIDE_REASON, DEDUP_WINDOW_HOURS, NOTIFY_PRIORITIES
from app.core.database import get_supabase
from app.core.posthog import capture
from app.core.redis import ReportCacheKeys
from app.models.report import (
    DuplicateReportError,
    NotificationError,
    PersistenceError,
    ReportStatus,
    ReportSubmission,
    ReportValidationError,
    SubmitReportRequest,
    SubmitReportResponse,
    TargetType,
)
from app.models.triage import AutoAction, Decision
from app.services.audit_service import AuditLogService, severity_for_priority
from app.services.report_history import (
    RecentReportsPort,
    ReporterHistoryPort,
    SupabaseReportHistory,
    TargetHistoryPort,
)
from app.services.triage_engine import TriageEngine

logger = logging.getLogger(__name__)

# Content table holding each target type
TARGET_TABLES = {
    TargetType.POST: "posts",
    TargetType.COMMENT: "comments",
    TargetType.USER: "users",
}

_REQUIRED_FIELDS = ("target_type", "target_id", "category", "reporter_id")


class ReportIntakeService:
    """Accepts abuse reports and triages them."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        engine: Optional[TriageEngine] = None,
        reporter_history: Optional[ReporterHistoryPort] = None,
        target_history: Optional[TargetHistoryPort] = None,
        recent_reports: Optional[RecentReportsPort] = None,
        audit: Optional[AuditLogService] = None,
    ) -> None:
        self._supabase = supabase
        self.engine = engine or TriageEngine()
        self._reporter_history = reporter_history
        self._target_history = target_history
        self._recent_reports = recent_reports
        self._audit = audit

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    @property
    def reporter_history(self) -> ReporterHistoryPort:
        if self._reporter_history is None:
            self._reporter_history = SupabaseReportHistory(self._supabase)
        return self._reporter_history

    @property
    def target_history(self) -> TargetHistoryPort:
        if self._target_history is None:
            self._target_history = SupabaseReportHistory(self._supabase)
        return self._target_history

    @property
    def recent_reports(self) -> RecentReportsPort:
        if self._recent_reports is None:
            self._recent_reports = SupabaseReportHistory(self._supabase)
        return self._recent_reports

    @property
    def audit(self) -> AuditLogService:
        if self._audit is None:
            self._audit = AuditLogService(self._supabase)
        return self._audit

    # =========================================================================
    # Public API
    # =========================================================================

    async def submit_report(
        self,
        request: SubmitReportRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmitReportResponse:
        """Validate, dedup, triage and persist one report."""
        submission = self.validate_submission(request)
        now = datetime.now(timezone.utc)

        self._ensure_not_duplicate(submission, now)

        # Independent read-only lookups; no ordering between them
        reporter_history, target_history, previous_reports = await asyncio.gather(
            asyncio.to_thread(self.reporter_history.get_reporter_history, submission.reporter_id),
            asyncio.to_thread(
                self.target_history.get_target_history, submission.target_author_id
            ),
            asyncio.to_thread(
                self.recent_reports.get_recent_reports,
                submission.target_id,
                submission.target_type.value,
            ),
        )

        decision = self.engine.compute_decision(
            submission.category,
            reporter_history,
            target_history,
            previous_reports,
            now=now,
        )

        row = self._build_report_row(submission, decision, now, ip_address, user_agent)
        report = self._insert_report(row)
        report_id = str(report["id"])

        logger.info(
            "Report submitted: id=%s reporter=%s target=%s/%s category=%s priority=%s score=%.2f",
            report_id,
            submission.reporter_id,
            submission.target_type.value,
            submission.target_id,
            submission.category,
            decision.priority.value,
            decision.score,
        )

        if decision.feedback.auto_action == AutoAction.TEMPORARY_HIDE:
            self._hide_target(submission, report_id, now)

        self.audit.record(
            action="REPORT_CREATED",
            actor_id=submission.reporter_id,
            target_id=submission.target_id,
            details={
                "report_id": report_id,
                "target_type": submission.target_type.value,
                "category": submission.category,
                "priority": decision.priority.value,
                "priority_score": decision.score,
                "false_report_score": decision.false_report_probability,
                "auto_action": row["auto_action"],
                "triage_version": decision.config_version,
            },
            severity=severity_for_priority(decision.priority),
            ip_address=ip_address,
            user_agent=user_agent,
        )

        if decision.priority.value in NOTIFY_PRIORITIES:
            self._notify_moderators(report_id, submission, decision)

        capture(
            submission.reporter_id,
            "report_submitted",
            {
                "category": submission.category,
                "target_type": submission.target_type.value,
                "priority": decision.priority.value,
                "auto_action": row["auto_action"],
            },
            report_id=report_id,
        )

        self._invalidate_caches(submission)

        return SubmitReportResponse(
            success=True,
            report_id=report_id,
            message=decision.feedback.message,
            estimated_time=decision.feedback.estimated_time,
            priority=decision.priority,
        )

    def validate_submission(self, request: SubmitReportRequest) -> ReportSubmission:
        """Check required fields and normalize the submission."""
        values = {name: (getattr(request, name) or "").strip() for name in _REQUIRED_FIELDS}
        if not all(values.values()):
            raise ReportValidationError("missing required fields")

        try:
            target_type = TargetType(values["target_type"].lower())
        except ValueError:
            raise ReportValidationError("invalid target type") from None

        if target_type == TargetType.USER and values["target_id"] == values["reporter_id"]:
            raise ReportValidationError("cannot report yourself")

        description = (request.description or "").strip() or None
        target_author_id = (request.target_author_id or "").strip() or None
        if target_type == TargetType.USER and target_author_id is None:
            target_author_id = values["target_id"]

        return ReportSubmission(
            target_type=target_type,
            target_id=values["target_id"],
            category=values["category"].lower(),
            reporter_id=values["reporter_id"],
            description=description,
            target_author_id=target_author_id,
        )

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _ensure_not_duplicate(self, submission: ReportSubmission, now: datetime) -> None:
        since = now - timedelta(hours=DEDUP_WINDOW_HOURS)
        existing = (
            self.supabase.table("reports")
            .select("id")
            .eq("reporter_id", submission.reporter_id)
            .eq("target_id", submission.target_id)
            .eq("target_type", submission.target_type.value)
            .gte("created_at", since.isoformat())
            .limit(1)
            .execute()
        )
        if existing.data:
            raise DuplicateReportError(f"already reported within {DEDUP_WINDOW_HOURS} hours")

    def _build_report_row(
        self,
        submission: ReportSubmission,
        decision: Decision,
        now: datetime,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> dict[str, Any]:
        auto_action = decision.feedback.auto_action
        return {
            "reporter_id": submission.reporter_id,
            "target_type": submission.target_type.value,
            "target_id": submission.target_id,
            "target_author_id": submission.target_author_id,
            "category": submission.category,
            "description": submission.description or "",
            "status": ReportStatus.PENDING.value,
            "priority": decision.priority.value,
            "priority_score": decision.score,
            "false_report_score": decision.false_report_probability,
            "triage_version": decision.config_version,
            "auto_action": auto_action.value if auto_action else None,
            "metadata": {
                "ip_address": ip_address or "unknown",
                "user_agent": user_agent or "unknown",
            },
            "created_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }

    def _insert_report(self, row: dict[str, Any]) -> dict[str, Any]:
        try:
            result = self.supabase.table("reports").insert(row).execute()
        except Exception as e:
            logger.error(
                "Report insert failed: reporter=%s target=%s: %s",
                row["reporter_id"],
                row["target_id"],
                e,
            )
            raise PersistenceError("Failed to save report") from e

        if not result.data:
            raise PersistenceError("Report insert returned no row")
        return dict(result.data[0])

    def _hide_target(self, submission: ReportSubmission, report_id: str, now: datetime) -> None:
        """Temporarily hide reported content pending review."""
        table = TARGET_TABLES[submission.target_type]
        try:
            self.supabase.table(table).update(
                {
                    "is_hidden": True,
                    "hidden_reason": AUTO_HIDE_REASON,
                    "hidden_at": now.isoformat(),
                }
            ).eq("id", submission.target_id).execute()
        except Exception:
            # The report is already stored; a reviewer can still hide manually
            logger.exception(
                "Auto-hide failed for %s %s (report=%s)",
                submission.target_type.value,
                submission.target_id,
                report_id,
            )
            return

        logger.info(
            "Auto-hid %s %s after report=%s",
            submission.target_type.value,
            submission.target_id,
            report_id,
        )
        self.audit.record(
            action="CONTENT_AUTO_HIDDEN",
            actor_id="system",
            target_id=submission.target_id,
            details={"report_id": report_id, "target_type": submission.target_type.value},
            severity="high",
        )

    def _notify_moderators(
        self, report_id: str, submission: ReportSubmission, decision: Decision
    ) -> None:
        try:
            self._enqueue_notification(report_id, submission, decision)
        except NotificationError as e:
            logger.warning("Moderator notification skipped for report=%s: %s", report_id, e)

    def _enqueue_notification(
        self, report_id: str, submission: ReportSubmission, decision: Decision
    ) -> None:
        from app.tasks.report_tasks import notify_moderators

        try:
            notify_moderators.delay(
                report_id=report_id,
                category=submission.category,
                priority=decision.priority.value,
                target_type=submission.target_type.value,
                target_id=submission.target_id,
                score=decision.score,
            )
        except Exception as e:
            raise NotificationError(f"Could not enqueue moderator notification: {e}") from e

    def _invalidate_caches(self, submission: ReportSubmission) -> None:
        keys = [
            ReportCacheKeys.reporter_history(submission.reporter_id),
            ReportCacheKeys.recent_reports(submission.target_type.value, submission.target_id),
        ]
        if submission.target_author_id:
            keys.append(ReportCacheKeys.target_history(submission.target_author_id))
        cache_delete(*keys)
        cache_delete_pattern(ReportCacheKeys.stats_pattern())
