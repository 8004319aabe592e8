"""
Public report intake router.

Endpoints:
- POST /: Submit an abuse report; returns the triage acknowledgement
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.core.rate_limit import SUBMIT_REPORT_LIMIT, get_client_ip, limiter
from app.models.report import SubmitReportRequest, SubmitReportResponse
from app.services.report_service import ReportIntakeService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_report_service() -> ReportIntakeService:
    return ReportIntakeService()


@router.post("/", response_model=SubmitReportResponse)
@limiter.limit(SUBMIT_REPORT_LIMIT)
async def submit_report(
    request: Request,
    body: SubmitReportRequest,
    report_service: ReportIntakeService = Depends(get_report_service),
) -> SubmitReportResponse:
    """Submit an abuse report against a post, comment or user."""
    return await report_service.submit_report(
        body,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
