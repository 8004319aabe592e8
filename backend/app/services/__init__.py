"""Business logic services for the report triage API."""

from app.services.report_review_service import ReportReviewService
from app.services.report_service import ReportIntakeService
from app.services.triage_engine import TriageEngine, compute_decision

__all__ = [
    "ReportIntakeService",
    "ReportReviewService",
    "TriageEngine",
    "compute_decision",
]
