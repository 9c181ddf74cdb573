"""Main FastAPI application entry point."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator, metrics
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text

from finhome.cache import cache_manager
from finhome.config import settings
from finhome.database import AsyncSessionLocal, close_db, init_db
from finhome.logging_config import bind_contextvars, clear_contextvars, configure_logging, get_logger
from finhome.services.category_service import seed_default_categories

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# =============================================================================
# Sentry Integration (Error Tracking)
# =============================================================================
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        send_default_pii=False,  # Don't send PII automatically
        attach_stacktrace=True,
    )
    logger.info("Sentry initialized", dsn_configured=True, environment=settings.environment)
else:
    logger.debug("Sentry not configured - no DSN provided")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting application", app_name=settings.app_name, version=settings.app_version)

    try:
        await init_db()

        async with AsyncSessionLocal() as session:
            seeded = await seed_default_categories(session)
            await session.commit()
        if seeded:
            logger.info("Seeded default categories", count=seeded)

        # Redis is optional: token blacklist and cache degrade without it
        try:
            await cache_manager.connect()
        except Exception as e:
            logger.warning("Redis unavailable, continuing without cache", error=str(e))

        logger.info("Application started successfully")

        yield

    finally:
        # Shutdown
        logger.info("Shutting down application")
        await close_db()
        await cache_manager.disconnect()
        logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Personal and household finance API: expenses, budgets, goals and home purchase planning",
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add GZip compression for responses > 1KB
app.add_middleware(GZipMiddleware, minimum_size=1000)

# =============================================================================
# Prometheus Metrics Instrumentation
# =============================================================================
if settings.enable_metrics:
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/health", "/health/live", "/health/ready", "/metrics"],
        inprogress_name="http_requests_inprogress",
        inprogress_labels=True,
    )
    instrumentator.add(metrics.default(metric_namespace="finhome", metric_subsystem="http"))
    instrumentator.add(
        metrics.latency(
            metric_namespace="finhome",
            metric_subsystem="http",
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
        )
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False, should_gzip=True)
    logger.info("Prometheus /metrics endpoint enabled")

# Configure CORS (MUST be outermost middleware so all responses get CORS headers)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def add_request_metadata(request: Request, call_next) -> Response:
    """Add request ID and timing to all requests."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start_time = time.perf_counter()

    request.state.request_id = request_id

    # Bind request context for all logs in this request
    clear_contextvars()
    bind_contextvars(request_id=request_id, path=request.url.path, method=request.method)

    response = await call_next(request)

    process_time = time.perf_counter() - start_time
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{process_time:.4f}"

    logger.info(
        "Request completed",
        status_code=response.status_code,
        process_time_ms=round(process_time * 1000, 2),
    )

    return response


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        Welcome message
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/health/ready")
async def readiness_check() -> dict:
    """Readiness check - verifies the database and Redis are reachable.

    Redis being unconfigured does not make the service unready.
    """
    checks = {"status": "healthy", "checks": {}}
    all_healthy = True

    try:
        start = time.perf_counter()
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        latency = (time.perf_counter() - start) * 1000
        checks["checks"]["database"] = {"status": "healthy", "latency_ms": round(latency, 2)}
    except Exception as e:
        checks["checks"]["database"] = {"status": "unhealthy", "error": str(e)}
        all_healthy = False

    try:
        if cache_manager.redis:
            start = time.perf_counter()
            await cache_manager.redis.ping()
            latency = (time.perf_counter() - start) * 1000
            checks["checks"]["redis"] = {"status": "healthy", "latency_ms": round(latency, 2)}
        else:
            checks["checks"]["redis"] = {"status": "not_configured"}
    except Exception as e:
        checks["checks"]["redis"] = {"status": "unhealthy", "error": str(e)}
        all_healthy = False

    if not all_healthy:
        checks["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=checks)

    return checks


@app.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check - basic check that the service is running."""
    return {"status": "alive"}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return request validation failures as 400 with field details."""
    logger.warning("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content={"error": "Validation error", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response
    """
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Import and include routers
from finhome.routes import (  # noqa: E402
    achievements,
    admin,
    auth,
    budgets,
    calculators,
    categories,
    goals,
    milestones,
    plans,
    recurring,
    subscription,
    transactions,
    wallets,
)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(wallets.router, prefix="/api/wallets", tags=["wallets"])
app.include_router(categories.router, prefix="/api/categories", tags=["categories"])
app.include_router(transactions.router, prefix="/api/transactions", tags=["transactions"])
app.include_router(recurring.router, prefix="/api/recurring", tags=["recurring"])
app.include_router(budgets.router, prefix="/api/budgets", tags=["budgets"])
app.include_router(goals.router, prefix="/api/goals", tags=["goals"])
app.include_router(plans.router, prefix="/api/plans", tags=["plans"])
app.include_router(milestones.router, prefix="/api/milestones", tags=["plans"])
app.include_router(calculators.router, prefix="/api/calculators", tags=["calculators"])
app.include_router(achievements.router, prefix="/api/achievements", tags=["achievements"])
app.include_router(subscription.router, prefix="/api/subscription", tags=["subscription"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
