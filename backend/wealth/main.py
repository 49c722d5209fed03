# backend/wealth/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from wealth.config import settings
from wealth.database import check_database_health
from wealth.middleware import (
    RATE_LIMIT_HEALTH,
    CorrelationIdMiddleware,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from wealth.routers import (
    accounts_router,
    assets_router,
    budgets_router,
    exclusion_tags_router,
    expenses_router,
    fixed_deposits_router,
    goals_router,
    instruments_router,
    overview_router,
    positions_router,
    recurring_deposits_router,
    refresh_router,
    sips_router,
    tags_router,
)
from wealth.schemas.errors import ErrorDetail, ValidationErrorDetail
from wealth.services.exceptions import (
    ExternalLookupFailure,
    InstrumentNotFoundError,
    InvalidStateTransition,
    NotFoundError,
    RateLimitError,
    ServiceError,
    ValidationError,
)
from wealth.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Personal wealth ledger: deposits, SIPs, stocks, crypto and expenses",
    version="0.1.0",
    debug=settings.debug,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================
# Origins are configured via CORS_ORIGINS environment variable

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; these handlers map them
# to status codes and the shared ErrorDetail body.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle domain validation errors (400)."""
    logger.warning(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error="ValidationError",
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(InstrumentNotFoundError)
async def instrument_not_found_handler(request: Request, exc: InstrumentNotFoundError) -> JSONResponse:
    """Handle unknown instrument ids (404)."""
    logger.warning(f"Instrument not found: {exc.instrument_class} {exc.instrument_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error="InstrumentNotFoundError",
            message=str(exc),
            details={"instrument_class": exc.instrument_class, "instrument_id": exc.instrument_id},
        ).model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Handle every other missing resource (404)."""
    logger.warning(f"Not found: {exc}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
        ).model_dump(),
    )


@app.exception_handler(InvalidStateTransition)
async def invalid_transition_handler(request: Request, exc: InvalidStateTransition) -> JSONResponse:
    """Handle actions the instrument's state does not allow (409)."""
    return JSONResponse(
        status_code=409,
        content=ErrorDetail(
            error="InvalidStateTransition",
            message=str(exc),
            details={
                "instrument_class": exc.instrument_class,
                "instrument_id": exc.instrument_id,
                "state": exc.state,
                "action": exc.action,
            },
        ).model_dump(),
    )


@app.exception_handler(RateLimitError)
async def upstream_rate_limit_handler(request: Request, exc: RateLimitError) -> JSONResponse:
    """Handle an upstream price source throttling us (429)."""
    logger.warning(f"Upstream rate limit: {exc}")
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return JSONResponse(
        status_code=429,
        content=ErrorDetail(
            error="RateLimitError",
            message=str(exc),
            details={"provider": exc.provider, "retry_after": exc.retry_after},
        ).model_dump(),
        headers=headers,
    )


@app.exception_handler(ExternalLookupFailure)
async def external_lookup_handler(request: Request, exc: ExternalLookupFailure) -> JSONResponse:
    """Handle a price/NAV source failure surfaced directly, e.g. by search (502)."""
    logger.error(f"External lookup failed: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"provider": exc.provider} if exc.provider else None,
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to ErrorDetail.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        409: "ConflictError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query parameters (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(fixed_deposits_router)  # /fixed-deposits/*
app.include_router(sips_router)  # /sips/*
app.include_router(recurring_deposits_router)  # /recurring-deposits/*
app.include_router(positions_router)  # /positions/*
app.include_router(instruments_router)  # /instruments/{class_id}/*
app.include_router(expenses_router)  # /expenses/*
app.include_router(tags_router)  # /tags/*
app.include_router(exclusion_tags_router)  # /exclusion-tags/*
app.include_router(budgets_router)  # /budgets/{year}/{month}
app.include_router(overview_router)  # /overview
app.include_router(accounts_router)  # /accounts/*
app.include_router(assets_router)  # /other-assets/*
app.include_router(goals_router)  # /goals/*
app.include_router(refresh_router)  # /refresh/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health of the ledger store.

    Returns HTTP 503 if the database is unreachable. The external price
    sources are not probed: a refresh tolerates them being down.
    """
    database = check_database_health()
    healthy = database["status"] == "healthy"
    response_data = {
        "status": "healthy" if healthy else "unhealthy",
        "environment": settings.environment,
        "checks": {"database": database},
    }
    if not healthy:
        return JSONResponse(status_code=503, content=response_data)
    return response_data


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Always 200 while the process is up; does NOT check dependencies."""
    return {"status": "alive"}


@app.get("/health/ready", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def readiness_check(request: Request):
    """200 when the database answers, 503 otherwise."""
    if check_database_health()["status"] != "healthy":
        logger.error("Readiness check failed: database unavailable")
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": "Database unavailable"},
        )
    return {"status": "ready"}
