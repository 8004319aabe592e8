import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from app.core.config import get_settings
from app.core.exceptions import register_exception_handlers
from app.core.logging_config import setup_logging
from app.core.middleware import CorrelationIDMiddleware, RequestLoggingMiddleware
from app.core.posthog import init_posthog, shutdown_posthog
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.core.redis import close_redis, init_redis
from app.routers import admin_reports, health, reports

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    logger.info("Starting %s...", settings.app_name)
    await init_redis()
    logger.info("Redis connection initialized")
    init_posthog()
    yield
    logger.info("Shutting down %s...", settings.app_name)
    shutdown_posthog()
    await close_redis()
    logger.info("Redis connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Abuse report intake, triage and moderator review API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging, then correlation IDs outermost so every log line carries one
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# Rate limiting (slowapi + Redis)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Global exception handlers (domain exceptions → HTTP responses)
register_exception_handlers(app)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(reports.router, prefix=f"{settings.api_prefix}/reports", tags=["Reports"])
app.include_router(
    admin_reports.router,
    prefix=f"{settings.api_prefix}/admin/reports",
    tags=["Admin Reports"],
)
