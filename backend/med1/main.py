"""
MED1 Backend - FastAPI Application Entry Point

Multi-tenant API for doctors: leads, patients, referrals, landing pages,
quizzes, productivity tools and DRE financial reporting, plus the patient
portal surface.
"""

import logging
import sys
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .core.config import settings
from .core.database import engine, init_db
from .api import (
    auth_router,
    circles_router,
    dashboard_router,
    doctor_referrals_router,
    doctors_router,
    dre_router,
    habits_router,
    health_router,
    indications_router,
    interest_options_router,
    leads_router,
    outbound_router,
    pages_router,
    patients_router,
    pipelines_router,
    pivot_router,
    portal_router,
    public_router,
    quiz_public_router,
    quizzes_router,
    referrals_router,
    services_router,
    slugify_router,
    stars_router,
    tasks_router,
    thoughts_router,
    users_router,
)
from .schemas.common import ErrorDetail, ErrorResponse
from .services.cache import get_cache


logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

INSECURE_SECRET_KEY = "dev-secret-key-change-in-production"
HEALTH_PATHS = ("/health", "/health/ready", "/health/live")


# =============================================================================
# Rate Limiting Middleware
# =============================================================================

class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware using sliding window algorithm.

    Limits requests per IP address to prevent abuse.
    Returns HTTP 429 when limit exceeded.
    """

    def __init__(self, app, requests_per_minute: int = 60):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.window_size = 60  # seconds
        # {ip: [timestamp1, timestamp2, ...]}
        self.request_log: Dict[str, List[float]] = defaultdict(list)
        self._last_sweep = 0.0

    def _get_client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        if request.client:
            return request.client.host
        return "unknown"

    def _clean_old_requests(self, ip: str, current_time: float) -> None:
        """Remove requests outside the sliding window."""
        cutoff = current_time - self.window_size
        recent = [ts for ts in self.request_log.get(ip, ()) if ts > cutoff]
        if recent:
            self.request_log[ip] = recent
        else:
            self.request_log.pop(ip, None)

    def _sweep_idle_clients(self, current_time: float) -> None:
        """Drop every IP with no request inside the window, at most once per window."""
        if current_time - self._last_sweep < self.window_size:
            return
        self._last_sweep = current_time
        cutoff = current_time - self.window_size
        idle = [ip for ip, stamps in self.request_log.items() if not stamps or stamps[-1] <= cutoff]
        for ip in idle:
            del self.request_log[ip]

    def _is_rate_limited(self, ip: str) -> bool:
        current_time = time.time()
        self._sweep_idle_clients(current_time)
        self._clean_old_requests(ip, current_time)

        if len(self.request_log[ip]) >= self.requests_per_minute:
            return True

        self.request_log[ip].append(current_time)
        return False

    async def dispatch(self, request: Request, call_next):
        if request.url.path in HEALTH_PATHS:
            return await call_next(request)

        client_ip = self._get_client_ip(request)

        if self._is_rate_limited(client_ip):
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "success": False,
                    "error": "rate_limit_exceeded",
                    "message": (
                        "Too many requests. Please try again later. "
                        f"Limit: {self.requests_per_minute} requests per minute."
                    ),
                },
                headers={
                    "Retry-After": "60",
                    "X-RateLimit-Limit": str(self.requests_per_minute),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        remaining = max(0, self.requests_per_minute - len(self.request_log[client_ip]))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        response.headers["X-RateLimit-Remaining"] = str(remaining)

        return response


# =============================================================================
# Performance Monitoring Middleware
# =============================================================================

class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Track response times and log slow requests.

    Adds X-Response-Time header to all responses.
    """

    SLOW_REQUEST_THRESHOLD_MS = 500

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time_ms = (time.time() - start_time) * 1000
        response.headers["X-Response-Time"] = f"{process_time_ms:.2f}ms"

        if process_time_ms > self.SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} "
                f"took {process_time_ms:.2f}ms"
            )

        if settings.debug:
            logger.debug(f"{request.method} {request.url.path} - {process_time_ms:.2f}ms")

        return response


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: refuse insecure secrets in production, check the cache and
    create tables for local databases. Shutdown: dispose of the engine pool.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

    if settings.secret_key == INSECURE_SECRET_KEY:
        if settings.is_production:
            logger.critical("SECRET_KEY still uses the development default; refusing to start")
            sys.exit(1)
        logger.warning("SECRET_KEY uses the development default; change it before deploying")

    if not settings.portal_api_key:
        logger.warning("PORTAL_API_KEY is not set; every portal request will be rejected")

    cache = get_cache()
    if cache.is_connected:
        logger.info("Redis cache connected")
    else:
        logger.info("Redis cache not available - operating without cache")

    if settings.is_development or settings.is_sqlite:
        init_db()
        logger.info("Database tables created")

    yield

    logger.info("Shutting down...")
    engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================

def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "API for doctors to manage leads, patients, referral rewards, "
            "landing pages and DRE reports, plus the patient portal."
        ),
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # Compress responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(PerformanceMonitoringMiddleware)

    cors_origins = settings.cors_origins_list
    allow_all = "*" in cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else cors_origins,
        allow_credentials=not allow_all,  # credentials not compatible with wildcard
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-Response-Time",
        ],
    )

    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.rate_limit_per_minute)

    for router in (
        health_router,
        auth_router,
        users_router,
        doctors_router,
        dashboard_router,
        leads_router,
        patients_router,
        referrals_router,
        doctor_referrals_router,
        indications_router,
        slugify_router,
        pages_router,
        quizzes_router,
        quiz_public_router,
        public_router,
        circles_router,
        habits_router,
        thoughts_router,
        tasks_router,
        stars_router,
        outbound_router,
        pipelines_router,
        interest_options_router,
        services_router,
        dre_router,
        pivot_router,
        portal_router,
    ):
        app.include_router(router)

    return app


app = create_application()


# =============================================================================
# Exception Handlers
# =============================================================================

def _error_field(loc) -> str:
    return ".".join(str(part) for part in loc if part not in ("body", "query", "path", "header"))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report malformed or missing input as 400 with one detail per problem.
    """
    details = [
        ErrorDetail(
            field=_error_field(error.get("loc", ())) or None,
            message=error.get("msg", "Invalid value"),
            code=error.get("type"),
        )
        for error in exc.errors()
    ]
    message = "Invalid request"
    if details:
        first = details[0]
        message = f"{first.field}: {first.message}" if first.field else first.message

    body = ErrorResponse(error="validation_error", message=message, details=details)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """
    Handle ValueError exceptions.

    Returns user-friendly error response without exposing internals.
    """
    body = ErrorResponse(error="validation_error", message=str(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(exclude_none=True))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and return a generic message."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
    )
    body = ErrorResponse(error="internal_error", message="An unexpected error occurred. Please try again later.")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump(exclude_none=True))


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "disabled" if settings.is_production else "/docs",
    }


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "med1.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
