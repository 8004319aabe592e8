"""
Admin report review router.

All endpoints require the X-Admin-Secret header.

Endpoints:
- GET /: List reports (filter by status, priority, category; sort; paginate)
- GET /stats: Dashboard aggregates
- POST /triage-preview: Run the triage engine on hypothetical inputs
- GET /{report_id}: Report detail with related reports
- PATCH /{report_id}: Change status / resolve with an action
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.core.auth import require_admin
from app.core.constants import DEFAULT_PAGE_SIZE
from app.models.report import (
    ReportDetailResponse,
    ReportListParams,
    ReportListResponse,
    ReportRecord,
    ReportStatsResponse,
    ReportStatus,
    TriagePreviewRequest,
    TriagePreviewResponse,
    UpdateReportStatusRequest,
)
from app.models.triage import Priority
from app.services.report_review_service import ReportReviewService

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


def get_review_service() -> ReportReviewService:
    return ReportReviewService()


@router.get("/", response_model=ReportListResponse)
async def list_reports(
    status: Optional[ReportStatus] = None,
    priority: Optional[Priority] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    sort_by: str = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    review_service: ReportReviewService = Depends(get_review_service),
) -> ReportListResponse:
    """List reports for the moderation queue."""
    params = ReportListParams(
        status=status,
        priority=priority,
        category=category,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return review_service.list_reports(params)


@router.get("/stats", response_model=ReportStatsResponse)
async def get_report_stats(
    review_service: ReportReviewService = Depends(get_review_service),
) -> ReportStatsResponse:
    """Counts by status, priority and category, plus the 7-day trend."""
    return review_service.get_report_stats()


@router.post("/triage-preview", response_model=TriagePreviewResponse)
async def preview_triage(
    body: TriagePreviewRequest,
    review_service: ReportReviewService = Depends(get_review_service),
) -> TriagePreviewResponse:
    """Show the decision the engine would make. Nothing is stored."""
    return review_service.preview_decision(body)


@router.get("/{report_id}", response_model=ReportDetailResponse)
async def get_report(
    report_id: str,
    review_service: ReportReviewService = Depends(get_review_service),
) -> ReportDetailResponse:
    """One report with the other reports filed against its target."""
    return review_service.get_report_detail(report_id)


@router.patch("/{report_id}", response_model=ReportRecord)
async def update_report_status(
    report_id: str,
    body: UpdateReportStatusRequest,
    review_service: ReportReviewService = Depends(get_review_service),
) -> ReportRecord:
    """Move a report through review; closing it may apply a sanction."""
    return review_service.update_status(report_id, body)
