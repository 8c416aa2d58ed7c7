# ==== PROMETHEUS METRICS ==== #

"""
Prometheus metrics for the back office API.

Request latency, database session usage and business counters for documents,
conversions, payments, stock movements and document delivery.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY
)


# ==== REQUEST METRICS ==== #

http_request_latency_seconds = Histogram(
    "backoffice_http_request_latency_seconds",
    "HTTP request latency in seconds",
    ["method", "route", "status"]
)

# Database metrics
db_connections_active = Gauge(
    "backoffice_db_connections_active",
    "Number of active database sessions"
)


# ==== BUSINESS METRICS ==== #

documents_created_total = Counter(
    "backoffice_documents_created_total",
    "Numbered documents created",
    ["tenant", "doc_type"]
)

quote_conversions_total = Counter(
    "backoffice_quote_conversions_total",
    "Quote to invoice conversion attempts",
    ["tenant", "outcome"]
)

payments_recorded_total = Counter(
    "backoffice_payments_recorded_total",
    "Invoice payments recorded",
    ["tenant", "method"]
)

payments_amount_cents = Histogram(
    "backoffice_payments_amount_cents",
    "Recorded payment amounts in cents",
    ["tenant"],
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000]
)

inventory_movements_total = Counter(
    "backoffice_inventory_movements_total",
    "Inventory transactions recorded",
    ["tenant", "transaction_type"]
)

documents_emailed_total = Counter(
    "backoffice_documents_emailed_total",
    "Document emails by provider and outcome",
    ["provider", "doc_type", "status"]
)

pdf_render_seconds = Histogram(
    "backoffice_pdf_render_seconds",
    "Time spent rendering document PDFs",
    ["doc_type"]
)

status_transitions_total = Counter(
    "backoffice_status_transitions_total",
    "Scheduled status transitions applied by maintenance jobs",
    ["doc_type", "status"]
)

# Cache metrics
cache_hits_total = Counter(
    "backoffice_cache_hits_total",
    "Total cache hits",
    ["cache_type", "operation"]
)

cache_misses_total = Counter(
    "backoffice_cache_misses_total",
    "Total cache misses",
    ["cache_type", "operation"]
)

# System metrics
app_info = Gauge(
    "backoffice_app_info",
    "Application information",
    ["version", "environment", "service_name"]
)


def init_metrics(app) -> None:
    """Initialize metrics collection.

    Args:
        app: FastAPI application instance
    """
    from backoffice.settings import settings
    app_info.labels(
        version=settings.SERVICE_VERSION,
        environment=settings.APP_ENV,
        service_name=settings.SERVICE_NAME
    ).set(1)


# Metrics router for Prometheus scraping
metrics_router = APIRouter()


@metrics_router.get("/metrics")
def get_metrics() -> PlainTextResponse:
    """Expose Prometheus metrics for scraping.

    Returns:
        Prometheus metrics in text format
    """
    return PlainTextResponse(
        generate_latest(REGISTRY).decode("utf-8"),
        media_type="text/plain"
    )
