"""Pydantic models for the report triage API."""

from app.models.report import (
    DuplicateReportError,
    InvalidStatusTransitionError,
    NotificationError,
    PersistenceError,
    ReportError,
    ReportNotFoundError,
    ReportStatus,
    ReportValidationError,
    ResolutionAction,
    SubmitReportRequest,
    SubmitReportResponse,
    TargetType,
)
from app.models.triage import (
    AutoAction,
    Decision,
    Feedback,
    Priority,
    ReportCategory,
    ReporterHistory,
    TargetHistory,
    TriageConfig,
)

__all__ = [
    # Triage models
    "AutoAction",
    "Decision",
    "Feedback",
    "Priority",
    "ReportCategory",
    "ReporterHistory",
    "TargetHistory",
    "TriageConfig",
    # Report models
    "ReportStatus",
    "ResolutionAction",
    "SubmitReportRequest",
    "SubmitReportResponse",
    "TargetType",
    # Exceptions
    "DuplicateReportError",
    "InvalidStatusTransitionError",
    "NotificationError",
    "PersistenceError",
    "ReportError",
    "ReportNotFoundError",
    "ReportValidationError",
]
