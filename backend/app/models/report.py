"""
Report intake, review and admin models.

Lifecycle: pending -> reviewing -> resolved | rejected. Triage fields
(priority, priority_score, false_report_score) are written once at intake
and never recomputed; review only changes status and resolution.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from app.core.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    REPORT_CATEGORY_MAX_LENGTH,
    REPORT_DESCRIPTION_MAX_LENGTH,
    RESOLUTION_NOTES_MAX_LENGTH,
)
from app.models.triage import AutoAction, Priority

logger = logging.getLogger(__name__)

_DATETIME = TypeAdapter(datetime)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp as stored by Supabase; naive values are taken as UTC.

    Accepts a "Z" suffix and any fraction length, both of which PostgREST
    returns. Returns None for missing or unparseable values.
    """
    if value is None:
        return None
    try:
        parsed = _DATETIME.validate_python(value)
    except ValidationError:
        logger.warning("Unparseable report timestamp: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ===========================================
# Enums
# ===========================================


class TargetType(str, Enum):
    """What kind of thing is being reported."""

    POST = "post"
    COMMENT = "comment"
    USER = "user"


class ReportStatus(str, Enum):
    """Review state of a persisted report."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ResolutionAction(str, Enum):
    """Outcome recorded when a report is closed."""

    WARNING_ISSUED = "warning_issued"
    CONTENT_REMOVED = "content_removed"
    USER_SUSPENDED = "user_suspended"
    USER_BANNED = "user_banned"
    NO_ACTION = "no_action"
    FALSE_REPORT = "false_report"


# Allowed status moves. Terminal states have no outgoing edges.
STATUS_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset(
        {ReportStatus.REVIEWING, ReportStatus.RESOLVED, ReportStatus.REJECTED}
    ),
    ReportStatus.REVIEWING: frozenset({ReportStatus.RESOLVED, ReportStatus.REJECTED}),
    ReportStatus.RESOLVED: frozenset(),
    ReportStatus.REJECTED: frozenset(),
}

TERMINAL_STATUSES = frozenset({ReportStatus.RESOLVED, ReportStatus.REJECTED})


# ===========================================
# Request Models
# ===========================================


class SubmitReportRequest(BaseModel):
    """
    Abuse report submission.

    Required fields are declared optional so that a missing field surfaces
    as a ReportValidationError (400) from the intake service instead of a
    framework-level 422.
    """

    target_type: Optional[str] = None
    target_id: Optional[str] = None
    category: Optional[str] = Field(None, max_length=REPORT_CATEGORY_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=REPORT_DESCRIPTION_MAX_LENGTH)
    reporter_id: Optional[str] = None
    target_author_id: Optional[str] = None


class UpdateReportStatusRequest(BaseModel):
    """Admin status change, optionally closing the report with an action."""

    status: ReportStatus
    admin_id: str
    resolution_action: Optional[ResolutionAction] = None
    notes: Optional[str] = Field(None, max_length=RESOLUTION_NOTES_MAX_LENGTH)


class ReporterHistoryInput(BaseModel):
    """Admin-supplied reporter counts for a triage preview."""

    total_reports: int = Field(0, ge=0)
    valid_reports: int = Field(0, ge=0)
    false_reports: int = Field(0, ge=0)


class TargetHistoryInput(BaseModel):
    """Admin-supplied target counts for a triage preview."""

    violation_count: int = Field(0, ge=0)
    reported_count: int = Field(0, ge=0)
    last_violation: Optional[datetime] = None
    warning_count: Optional[int] = None


class TriagePreviewRequest(BaseModel):
    """Run the triage engine on hypothetical inputs without persisting."""

    category: str = Field(..., min_length=1, max_length=REPORT_CATEGORY_MAX_LENGTH)
    reporter_history: Optional[ReporterHistoryInput] = None
    target_history: Optional[TargetHistoryInput] = None
    previous_report_times: list[datetime] = Field(default_factory=list, max_length=50)


class ReportListParams(BaseModel):
    """Filters and paging for the admin report list."""

    status: Optional[ReportStatus] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    sort_by: str = "created_at"
    sort_order: str = "desc"

    @property
    def effective_limit(self) -> int:
        return min(self.limit, MAX_PAGE_SIZE)


# ===========================================
# Internal Models
# ===========================================


class ReportSubmission(BaseModel):
    """A validated submission, ready for triage."""

    target_type: TargetType
    target_id: str
    category: str
    reporter_id: str
    description: Optional[str] = None
    target_author_id: Optional[str] = None


# ===========================================
# Response Models
# ===========================================


class SubmitReportResponse(BaseModel):
    """Acknowledgement returned to the reporter."""

    success: bool = True
    report_id: str
    message: str
    estimated_time: str
    priority: Priority


class Resolution(BaseModel):
    """How a closed report was handled."""

    action: ResolutionAction
    notes: Optional[str] = None
    resolved_by: str
    resolved_at: datetime


class ReportRecord(BaseModel):
    """A persisted report as the admin surface sees it."""

    id: str
    target_type: TargetType
    target_id: str
    target_author_id: Optional[str] = None
    category: str
    description: Optional[str] = None
    reporter_id: str
    status: ReportStatus
    priority: Priority
    priority_score: float
    false_report_score: float = 0.0
    triage_version: Optional[str] = None
    auto_action: Optional[AutoAction] = None
    resolution: Optional[Resolution] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class ReportListResponse(BaseModel):
    """Paginated admin report list."""

    reports: list[ReportRecord]
    pagination: Pagination


class TrendPoint(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int


class ResolutionRates(BaseModel):
    resolution_rate: float  # resolved / (resolved + rejected), percent
    pending_rate: float  # (pending + reviewing) / total, percent


class ResponseTimeMetrics(BaseModel):
    """Time from submission to resolution, in hours."""

    average: float
    median: float
    p95: float
    sample_size: int


class ReportStatsResponse(BaseModel):
    """Aggregate counts for the admin dashboard."""

    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    by_category: dict[str, int]
    recent_trend: list[TrendPoint]
    resolution_rates: ResolutionRates
    response_times: ResponseTimeMetrics


class ReportDetailResponse(BaseModel):
    """One report plus other reports against the same target."""

    report: ReportRecord
    related_reports: list[dict[str, Any]]


class TriagePreviewResponse(BaseModel):
    """Decision the engine would produce for the given inputs."""

    score: float
    priority: Priority
    false_report_probability: float
    message: str
    estimated_time: str
    auto_action: Optional[AutoAction] = None
    config_version: str


# ===========================================
# Exception Classes
# ===========================================


class ReportError(Exception):
    """Base exception for report handling errors."""

    pass


class ReportValidationError(ReportError):
    """Missing or invalid submission fields."""

    pass


class DuplicateReportError(ReportError):
    """Same reporter already reported this target inside the dedup window."""

    pass


class PersistenceError(ReportError):
    """Storage write failed; safe for the caller to retry."""

    pass


class NotificationError(ReportError):
    """Best-effort side channel failed (moderator email)."""

    pass


class ReportNotFoundError(ReportError):
    """No report with the given id."""

    pass


class InvalidStatusTransitionError(ReportError):
    """Requested status change is not allowed from the current state."""

    def __init__(self, current: ReportStatus, requested: ReportStatus):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move report from {current.value} to {requested.value}")
