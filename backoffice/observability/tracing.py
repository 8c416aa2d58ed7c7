# ==== OPENTELEMETRY TRACING CONFIGURATION ==== #

"""
OpenTelemetry tracing configuration for the back office API.

Sets up OTLP span export and automatic instrumentation for SQLAlchemy, Redis
and HTTPX. Local runs without an exporter endpoint keep the no-op provider.
"""

from typing import Any, Dict

from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from backoffice.settings import settings


# ==== TRACING INITIALIZATION ==== #


def init_tracing(service_name: str) -> bool:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Args:
        service_name (str): Name of the service for tracing identification

    Returns:
        bool: True when an exporter was configured
    """
    endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT

    # ⚠️ Allow local runs without an APM backend
    if not endpoint:
        return False

    resource_attrs = _parse_key_values(settings.OTEL_RESOURCE_ATTRIBUTES)
    resource_attrs["service.name"] = settings.OTEL_SERVICE_NAME or service_name
    resource_attrs.setdefault("service.version", settings.SERVICE_VERSION)
    resource_attrs.setdefault("deployment.environment", settings.APP_ENV)

    provider = TracerProvider(resource=Resource.create(resource_attrs))
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=_parse_key_values(settings.OTEL_EXPORTER_OTLP_HEADERS)
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    _setup_auto_instrumentation()
    return True


def _parse_key_values(raw: str | None) -> Dict[str, Any]:
    """Parse comma-separated ``key=value`` pairs.

    Args:
        raw: Raw environment value

    Returns:
        Dictionary of parsed pairs
    """
    pairs: Dict[str, Any] = {}
    if not raw:
        return pairs

    for part in filter(None, map(str.strip, raw.split(","))):
        if "=" in part:
            key, value = part.split("=", 1)
            pairs[key.strip()] = value.strip()

    return pairs


def _setup_auto_instrumentation() -> None:
    """Setup automatic instrumentation for common libraries."""
    try:
        # FastAPI instrumentation is done in main.py
        SQLAlchemyInstrumentor().instrument()
        RedisInstrumentor().instrument()
        HTTPXClientInstrumentor().instrument()
    except Exception as e:
        # Don't fail startup if instrumentation fails
        logger.warning(f"Failed to setup auto-instrumentation: {e}")


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for the given module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)
