# ==== BACK OFFICE MAIN APPLICATION MODULE ==== #

"""
Main FastAPI application for the back office API.

Wires middleware, observability, routers and the error envelope shared by
every endpoint: ``{error, detail, message, correlation_id, code}``.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.business.errors import DomainError
from backoffice.middleware.correlation import CorrelationMiddleware
from backoffice.middleware.tenancy import TenancyMiddleware
from backoffice.observability.logging import ContextualLogger, init_logging
from backoffice.observability.metrics import init_metrics, metrics_router
from backoffice.observability.tracing import init_tracing
from backoffice.resilience.circuit_breaker import CircuitBreakerError
from backoffice.routes import (
    admin,
    catalog,
    company_settings,
    customers,
    dashboard,
    employees,
    expenses,
    files,
    inventory,
    invoices,
    projects,
    purchase_orders,
    quotes,
    reports,
    suppliers,
    timesheets,
)
from backoffice.services.idempotency import get_idempotency_service
from backoffice.settings import settings
from backoffice.storage.db import close_database, get_session, init_database


logger = ContextualLogger(__name__)


# ==== APPLICATION LIFECYCLE MANAGEMENT ==== #


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise logging, tracing and the database; release them on shutdown."""
    # --► STARTUP SEQUENCE
    init_logging(settings.LOG_LEVEL, settings.LOG_TO_FILE, settings.LOG_DIR)
    init_tracing(settings.SERVICE_NAME)
    init_database()
    logger.info("Back office API started", environment=settings.APP_ENV)

    yield

    # --► SHUTDOWN SEQUENCE
    await get_idempotency_service().close()
    await close_database()


# ==== APPLICATION FACTORY ==== #


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Application with middleware, routers and exception handlers
    """
    app = FastAPI(
        title="Back Office API",
        description="Quotes, invoices, purchasing, inventory and timesheets for small businesses",
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url="/redoc" if settings.APP_ENV == "dev" else None,
    )

    # --► OBSERVABILITY INITIALIZATION
    init_metrics(app)

    # --► MIDDLEWARE STACK CONFIGURATION
    # ⚠️ Added last runs first: CORS, then correlation, then tenancy
    app.add_middleware(TenancyMiddleware, require_tenant=True)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-Id"],
    )

    _register_health_endpoints(app)
    _register_routers(app)
    _register_exception_handlers(app)

    FastAPIInstrumentor.instrument_app(app)
    return app


# ==== ENDPOINT REGISTRATION HELPERS ==== #


def _register_health_endpoints(app: FastAPI) -> None:
    @app.get("/healthz", tags=["health"])
    async def health_check() -> dict:
        """Liveness probe."""
        return {
            "status": "ok",
            "service": settings.SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/readyz", tags=["health"])
    async def readiness_check() -> JSONResponse:
        """Readiness probe; 503 while the database is unreachable."""
        database_status = await _database_status()
        ready = database_status == "connected"
        return JSONResponse(
            status_code=200 if ready else 503,
            content={
                "status": "ready" if ready else "not_ready",
                "service": settings.SERVICE_NAME,
                "environment": settings.APP_ENV,
                "database_status": database_status,
            },
        )

    @app.get("/info", tags=["info"])
    async def app_info() -> dict:
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "environment": settings.APP_ENV,
            "database_status": await _database_status(),
            "email_provider": settings.EMAIL_PROVIDER,
            "tracing": "enabled" if settings.OTEL_EXPORTER_OTLP_ENDPOINT else "disabled",
        }


async def _database_status() -> str:
    try:
        async with get_session() as db:
            await db.execute(text("SELECT 1"))
        return "connected"
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database check failed", error=str(exc))
        return "disconnected"


def _register_routers(app: FastAPI) -> None:
    app.include_router(metrics_router, prefix="", tags=["monitoring"])

    api_routers = (
        (customers.router, "/customers", "customers"),
        (suppliers.router, "/suppliers", "suppliers"),
        (catalog.router, "/catalog", "catalog"),
        (projects.router, "/projects", "projects"),
        (quotes.router, "/quotes", "quotes"),
        (invoices.router, "/invoices", "invoices"),
        (purchase_orders.router, "/purchase-orders", "purchase-orders"),
        (inventory.router, "/inventory", "inventory"),
        (employees.router, "/employees", "employees"),
        (timesheets.router, "/timesheets", "timesheets"),
        (expenses.router, "/expenses", "expenses"),
        (company_settings.router, "/company-settings", "company-settings"),
        (reports.router, "/reports", "reports"),
        (dashboard.router, "/dashboard", "dashboard"),
        (files.router, "/files", "files"),
    )
    for router, prefix, tag in api_routers:
        app.include_router(router, prefix=f"/api{prefix}", tags=[tag])

    app.include_router(admin.router, prefix="/admin", tags=["admin"])


# ==== EXCEPTION HANDLERS ==== #


def _error_body(request: Request, error: str, message: str, code: str, detail=None) -> dict:
    return {
        "error": error,
        "detail": detail if detail is not None else message,
        "message": message,
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
        "code": code,
    }


_ERROR_TITLES = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    405: "Method not allowed",
    409: "Conflict",
    422: "Unprocessable entity",
    502: "Bad gateway",
    503: "Service unavailable",
}

_HTTP_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Business rule violations raised by the service layer."""
        if exc.status_code >= 500:
            logger.error("External dependency failed", code=exc.code, error=exc.message)
        else:
            logger.info("Request rejected", code=exc.code, status=exc.status_code, error=exc.message)

        body = _error_body(
            request,
            _ERROR_TITLES.get(exc.status_code, "Error"),
            exc.message,
            exc.code,
        )
        if exc.context:
            body["context"] = jsonable_encoder(exc.context)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(CircuitBreakerError)
    async def circuit_open_handler(request: Request, exc: CircuitBreakerError) -> JSONResponse:
        logger.warning("Circuit breaker open", breaker=exc.name)
        return JSONResponse(
            status_code=503,
            content=_error_body(
                request,
                "Service unavailable",
                f"Dependency '{exc.name}' is temporarily unavailable",
                "SERVICE_UNAVAILABLE",
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else _ERROR_TITLES.get(exc.status_code, "Error")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request,
                _ERROR_TITLES.get(exc.status_code, "Error"),
                message,
                _HTTP_CODES.get(exc.status_code, "HTTP_ERROR"),
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
                "correlation_id": getattr(request.state, "correlation_id", "unknown"),
                "code": "INTERNAL_ERROR",
            },
        )


# ==== APPLICATION INSTANCE ==== #


app = create_app()
