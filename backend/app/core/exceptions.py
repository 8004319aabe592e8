"""
Global exception handlers for FastAPI.

Maps report domain exceptions to HTTP responses, eliminating try/except
boilerplate from routers. Register with register_exception_handlers(app).

Error bodies are {"error": <message>, "code": <CODE>}.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, code: Optional[str] = None) -> JSONResponse:
    """Build a standardized error JSON response."""
    content: dict = {"error": error}
    if code:
        content["code"] = code
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the FastAPI app."""
    from app.models.report import (
        DuplicateReportError,
        InvalidStatusTransitionError,
        PersistenceError,
        ReportNotFoundError,
        ReportValidationError,
    )

    # --- Intake handlers ---

    @app.exception_handler(ReportValidationError)
    async def _report_validation(request: Request, exc: ReportValidationError) -> JSONResponse:
        return error_response(400, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(DuplicateReportError)
    async def _duplicate_report(request: Request, exc: DuplicateReportError) -> JSONResponse:
        return error_response(400, str(exc), "DUPLICATE_REPORT")

    @app.exception_handler(PersistenceError)
    async def _persistence(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return error_response(503, "Storage temporarily unavailable. Please retry.", "PERSISTENCE_ERROR")

    # --- Review handlers ---

    @app.exception_handler(ReportNotFoundError)
    async def _report_not_found(request: Request, exc: ReportNotFoundError) -> JSONResponse:
        return error_response(404, "Report not found.", "REPORT_NOT_FOUND")

    @app.exception_handler(InvalidStatusTransitionError)
    async def _invalid_transition(
        request: Request, exc: InvalidStatusTransitionError
    ) -> JSONResponse:
        return error_response(409, str(exc), "INVALID_STATUS_TRANSITION")

    # --- Framework handlers ---

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        error = f"{location}: {message}" if location else message
        return error_response(422, error, "VALIDATION_ERROR")

    # --- Catch-all ---

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error.", "INTERNAL_ERROR")
