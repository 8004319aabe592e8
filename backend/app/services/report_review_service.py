"""
Admin-side report handling.

Handles:
- Listing / filtering / paginating reports
- Dashboard aggregates (status, priority, category, 7-day trend)
- Report detail with related reports on the same target
- Status transitions: pending -> reviewing -> resolved | rejected
- Sanctions on resolution (warn, suspend, ban, remove content)
- Undoing auto-hide when a report is rejected
- Triage preview on hypothetical inputs

Closing a report invalidates the reporter's and the author's cached
history: today's outcome is tomorrow's trust input for intake.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional

from supabase import Client

from app.core.cache import cache_delete, cache_delete_pattern, cache_get, cache_set
from app.core.constants import (
    AUTO_HIDE_REASON,
    RELATED_REPORTS_LIMIT,
    REPORT_SORT_FIELDS,
    STATS_CACHE_TTL_SECONDS,
    TREND_DAYS,
)
from app.core.database import get_supabase
from app.core.posthog import capture
from app.core.redis import ReportCacheKeys
from app.models.report import (
    STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    InvalidStatusTransitionError,
    Pagination,
    PersistenceError,
    ReportDetailResponse,
    ReportListParams,
    ReportListResponse,
    ReportNotFoundError,
    ReportRecord,
    ReportStatsResponse,
    ReportStatus,
    ReportValidationError,
    ResolutionAction,
    TargetType,
    TriagePreviewRequest,
    TriagePreviewResponse,
    UpdateReportStatusRequest,
)
from app.models.triage import AutoAction, PreviousReport, ReporterHistory, TargetHistory
from app.services.audit_service import AuditLogService
from app.services.report_service import TARGET_TABLES
from app.services.report_stats import (
    aggregate_report_stats,
    build_daily_trend,
    calculate_resolution_rates,
    calculate_response_time_metrics,
)
from app.services.triage_engine import TriageEngine

logger = logging.getLogger(__name__)

# Columns a resolution overwrites; restored when a sanction fails
_REVIEW_FIELDS = (
    "status",
    "reviewed_by",
    "reviewed_at",
    "resolution",
    "resolved_at",
    "updated_at",
)

# Actions that punish the reported party; only valid on resolved reports
SANCTION_ACTIONS = frozenset(
    {
        ResolutionAction.WARNING_ISSUED,
        ResolutionAction.CONTENT_REMOVED,
        ResolutionAction.USER_SUSPENDED,
        ResolutionAction.USER_BANNED,
    }
)


class ReportReviewService:
    """Service behind the admin report endpoints."""

    def __init__(
        self,
        supabase: Optional[Client] = None,
        engine: Optional[TriageEngine] = None,
        audit: Optional[AuditLogService] = None,
    ) -> None:
        self._supabase = supabase
        self.engine = engine or TriageEngine()
        self._audit = audit

    @property
    def supabase(self) -> Client:
        if self._supabase is None:
            self._supabase = get_supabase()
        return self._supabase

    @property
    def audit(self) -> AuditLogService:
        if self._audit is None:
            self._audit = AuditLogService(self._supabase)
        return self._audit

    # =========================================================================
    # Read surface
    # =========================================================================

    def list_reports(self, params: ReportListParams) -> ReportListResponse:
        """Filtered, sorted, paginated report list."""
        limit = params.effective_limit
        offset = (params.page - 1) * limit
        sort_by = params.sort_by if params.sort_by in REPORT_SORT_FIELDS else "created_at"

        query = self.supabase.table("reports").select("*", count="exact")
        if params.status:
            query = query.eq("status", params.status.value)
        if params.priority:
            query = query.eq("priority", params.priority.value)
        if params.category:
            query = query.eq("category", params.category.strip().lower())

        result = (
            query.order(sort_by, desc=params.sort_order != "asc")
            .range(offset, offset + limit - 1)
            .execute()
        )

        total = result.count or 0
        pages = math.ceil(total / limit) if total else 0
        return ReportListResponse(
            reports=[ReportRecord(**row) for row in result.data or []],
            pagination=Pagination(
                page=params.page,
                limit=limit,
                total=total,
                pages=pages,
                has_next=params.page < pages,
                has_prev=params.page > 1,
            ),
        )

    def get_report_stats(self) -> ReportStatsResponse:
        """Dashboard aggregates, cached for a few minutes."""
        cache_key = ReportCacheKeys.stats()
        cached = cache_get(cache_key)
        if cached is not None:
            return ReportStatsResponse(**cached)

        result = (
            self.supabase.table("reports")
            .select("status, priority, category, created_at, resolved_at")
            .execute()
        )
        rows = result.data or []
        counts = aggregate_report_stats(rows)

        stats = ReportStatsResponse(
            total=len(rows),
            by_status=counts["by_status"],
            by_priority=counts["by_priority"],
            by_category=counts["by_category"],
            recent_trend=build_daily_trend(rows, days=TREND_DAYS),
            resolution_rates=calculate_resolution_rates(counts["by_status"]),
            response_times=calculate_response_time_metrics(rows),
        )
        cache_set(cache_key, stats.model_dump(mode="json"), ttl=STATS_CACHE_TTL_SECONDS)
        return stats

    def get_report_detail(self, report_id: str) -> ReportDetailResponse:
        """A report plus other reports against the same target."""
        report = self._get_report_row(report_id)
        related = (
            self.supabase.table("reports")
            .select("id, category, status, priority, created_at")
            .eq("target_id", report["target_id"])
            .eq("target_type", report["target_type"])
            .neq("id", report_id)
            .order("created_at", desc=True)
            .limit(RELATED_REPORTS_LIMIT)
            .execute()
        )
        return ReportDetailResponse(
            report=ReportRecord(**report),
            related_reports=related.data or [],
        )

    def preview_decision(self, request: TriagePreviewRequest) -> TriagePreviewResponse:
        """What the engine would decide for these inputs. Persists nothing."""
        reporter_history = (
            ReporterHistory(**request.reporter_history.model_dump())
            if request.reporter_history
            else None
        )
        target_history = (
            TargetHistory(**request.target_history.model_dump())
            if request.target_history
            else None
        )
        previous = [PreviousReport(created_at=ts) for ts in request.previous_report_times]

        decision = self.engine.compute_decision(
            request.category, reporter_history, target_history, previous
        )
        return TriagePreviewResponse(
            score=decision.score,
            priority=decision.priority,
            false_report_probability=decision.false_report_probability,
            message=decision.feedback.message,
            estimated_time=decision.feedback.estimated_time,
            auto_action=decision.feedback.auto_action,
            config_version=decision.config_version,
        )

    # =========================================================================
    # Workflow
    # =========================================================================

    def update_status(self, report_id: str, request: UpdateReportStatusRequest) -> ReportRecord:
        """
        Move a report through the review workflow.

        The status write only matches a report still in the status it was
        read in, so two admins closing the same report cannot both win.
        Sanctions run after that write; if one fails the report is put back
        in its previous status and the admin can retry.
        """
        report = self._get_report_row(report_id)
        current = ReportStatus(report["status"])
        target = request.status

        if target not in STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current, target)

        action = self._resolve_action(target, request.resolution_action)
        sanction = None
        if target == ReportStatus.RESOLVED and action in SANCTION_ACTIONS:
            sanction = action
        if sanction is not None:
            self._check_sanction_target(report, sanction)

        now = datetime.now(timezone.utc)
        update: dict[str, Any] = {
            "status": target.value,
            "reviewed_by": request.admin_id,
            "reviewed_at": now.isoformat(),
            "updated_at": now.isoformat(),
        }
        if target in TERMINAL_STATUSES:
            update["resolution"] = {
                "action": action.value,
                "notes": request.notes,
                "resolved_by": request.admin_id,
                "resolved_at": now.isoformat(),
            }
            update["resolved_at"] = now.isoformat()

        self._write_status(report_id, current, target, update)

        if sanction is not None:
            try:
                self._apply_sanction(report, sanction, request.admin_id, now)
            except PersistenceError:
                self._reopen(report, target)
                raise

        logger.info(
            "Report %s moved %s -> %s by admin=%s",
            report_id,
            current.value,
            target.value,
            request.admin_id,
        )
        self.audit.record(
            action="REPORT_UPDATED",
            actor_id=request.admin_id,
            target_id=report_id,
            details={
                "previous_status": current.value,
                "new_status": target.value,
                "resolution": update.get("resolution"),
            },
            severity="medium",
        )

        auto_hidden = report.get("auto_action") == AutoAction.TEMPORARY_HIDE
        if target == ReportStatus.REJECTED and auto_hidden:
            self._restore_hidden_target(report, report_id)

        if target in TERMINAL_STATUSES:
            self._invalidate_history(report)

        capture(
            request.admin_id,
            "report_reviewed",
            {
                "previous_status": current.value,
                "new_status": target.value,
                "action": action.value if action else None,
            },
            report_id=report_id,
        )

        return ReportRecord(**{**report, **update})

    # =========================================================================
    # Private helpers
    # =========================================================================

    def _get_report_row(self, report_id: str) -> dict[str, Any]:
        result = self.supabase.table("reports").select("*").eq("id", report_id).limit(1).execute()
        if not result.data:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return dict(result.data[0])

    @staticmethod
    def _resolve_action(
        target: ReportStatus, requested: Optional[ResolutionAction]
    ) -> Optional[ResolutionAction]:
        if target not in TERMINAL_STATUSES:
            return None
        if target == ReportStatus.REJECTED:
            if requested in SANCTION_ACTIONS:
                raise ReportValidationError("sanctions require a resolved report")
            return requested or ResolutionAction.FALSE_REPORT
        if requested == ResolutionAction.FALSE_REPORT:
            raise ReportValidationError("false_report requires a rejected report")
        return requested or ResolutionAction.NO_ACTION

    @staticmethod
    def _target_author(report: dict[str, Any]) -> Optional[str]:
        if report.get("target_author_id"):
            return report["target_author_id"]
        if report.get("target_type") == TargetType.USER:
            return report.get("target_id")
        return None

    def _check_sanction_target(self, report: dict[str, Any], action: ResolutionAction) -> None:
        if action == ResolutionAction.CONTENT_REMOVED:
            if TargetType(report["target_type"]) == TargetType.USER:
                raise ReportValidationError("content removal requires a post or comment target")
        elif self._target_author(report) is None:
            raise ReportValidationError("report has no target author to sanction")

    def _write_status(
        self,
        report_id: str,
        current: ReportStatus,
        target: ReportStatus,
        update: dict[str, Any],
    ) -> None:
        try:
            result = (
                self.supabase.table("reports")
                .update(update)
                .eq("id", report_id)
                .eq("status", current.value)
                .execute()
            )
        except Exception as e:
            logger.error("Report update failed: id=%s status=%s: %s", report_id, target.value, e)
            raise PersistenceError("Failed to update report") from e

        if not result.data:
            # Another admin moved the report since it was read
            latest = ReportStatus(self._get_report_row(report_id)["status"])
            logger.warning(
                "Report %s changed concurrently: expected %s, found %s",
                report_id,
                current.value,
                latest.value,
            )
            raise InvalidStatusTransitionError(latest, target)

    def _reopen(self, report: dict[str, Any], target: ReportStatus) -> None:
        """Put a report back in the status it had before a failed resolution."""
        previous = {key: report.get(key) for key in _REVIEW_FIELDS}
        try:
            self.supabase.table("reports").update(previous).eq("id", report["id"]).eq(
                "status", target.value
            ).execute()
        except Exception:
            logger.exception(
                "Failed to reopen report %s after sanction failure; it stays %s",
                report["id"],
                target.value,
            )

    def _apply_sanction(
        self, report: dict[str, Any], action: ResolutionAction, admin_id: str, now: datetime
    ) -> None:
        if action == ResolutionAction.CONTENT_REMOVED:
            table = TARGET_TABLES[TargetType(report["target_type"])]
            self._write_sanction(
                table,
                report["target_id"],
                {"is_deleted": True, "deleted_at": now.isoformat(), "deleted_reason": "report"},
            )
            self._audit_sanction("CONTENT_REMOVED", admin_id, report["target_id"], report)
            return

        author_id = self._target_author(report)
        if action == ResolutionAction.WARNING_ISSUED:
            # Atomic increment; concurrent warnings must not overwrite each other
            try:
                self.supabase.rpc(
                    "increment_warning_count",
                    {"p_user_id": author_id, "p_warned_at": now.isoformat()},
                ).execute()
            except Exception as e:
                logger.error("Warning increment failed: user=%s: %s", author_id, e)
                raise PersistenceError("Failed to update users") from e
            self._audit_sanction("USER_WARNED", admin_id, author_id, report)
        elif action == ResolutionAction.USER_SUSPENDED:
            self._write_sanction(
                "users", author_id, {"status": "suspended", "suspended_at": now.isoformat()}
            )
            self._audit_sanction("USER_SUSPENDED", admin_id, author_id, report)
        elif action == ResolutionAction.USER_BANNED:
            self._write_sanction(
                "users", author_id, {"status": "banned", "banned_at": now.isoformat()}
            )
            self._audit_sanction("USER_BANNED", admin_id, author_id, report)

    def _write_sanction(self, table: str, row_id: str, values: dict[str, Any]) -> None:
        try:
            self.supabase.table(table).update(values).eq("id", row_id).execute()
        except Exception as e:
            logger.error("Sanction write failed: table=%s id=%s: %s", table, row_id, e)
            raise PersistenceError(f"Failed to update {table}") from e

    def _audit_sanction(
        self, action: str, admin_id: str, target_id: str, report: dict[str, Any]
    ) -> None:
        logger.info("Sanction %s applied to %s (report=%s)", action, target_id, report["id"])
        self.audit.record(
            action=action,
            actor_id=admin_id,
            target_id=target_id,
            details={"report_id": report["id"], "category": report.get("category")},
            severity="high",
        )

    def _restore_hidden_target(self, report: dict[str, Any], report_id: str) -> None:
        """
        Un-hide content hidden by this report's auto-action.

        Skipped while another open report against the same target also
        auto-hid it, and when the content was re-hidden for another reason.
        """
        try:
            others = (
                self.supabase.table("reports")
                .select("id")
                .eq("target_id", report["target_id"])
                .eq("target_type", report["target_type"])
                .eq("auto_action", AutoAction.TEMPORARY_HIDE.value)
                .in_("status", [ReportStatus.PENDING.value, ReportStatus.REVIEWING.value])
                .neq("id", report_id)
                .limit(1)
                .execute()
            )
            if others.data:
                logger.info(
                    "Keeping %s %s hidden: report %s still open",
                    report["target_type"],
                    report["target_id"],
                    others.data[0]["id"],
                )
                return

            table = TARGET_TABLES[TargetType(report["target_type"])]
            self.supabase.table(table).update(
                {"is_hidden": False, "hidden_reason": None, "hidden_at": None}
            ).eq("id", report["target_id"]).eq("hidden_reason", AUTO_HIDE_REASON).execute()
        except Exception:
            logger.exception(
                "Failed to restore auto-hidden %s %s (report=%s)",
                report["target_type"],
                report["target_id"],
                report_id,
            )
            return
        logger.info("Restored auto-hidden %s %s", report["target_type"], report["target_id"])

    def _invalidate_history(self, report: dict[str, Any]) -> None:
        keys = [
            ReportCacheKeys.reporter_history(report["reporter_id"]),
            ReportCacheKeys.recent_reports(report["target_type"], report["target_id"]),
        ]
        author_id = self._target_author(report)
        if author_id:
            keys.append(ReportCacheKeys.target_history(author_id))
        cache_delete(*keys)
        cache_delete_pattern(ReportCacheKeys.stats_pattern())
