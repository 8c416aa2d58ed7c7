# ==== STRUCTURED LOGGING WITH LOGURU ==== #

"""
Structured logging with loguru for the back office API.

This module configures JSON logging to stdout, optional rotated log files,
interception of standard library logging and OpenTelemetry trace correlation.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict

from loguru import logger
from opentelemetry import trace
from opentelemetry.instrumentation.logging import LoggingInstrumentor


# ==== STANDARD LOGGING INTERCEPTION ==== #


class InterceptHandler(logging.Handler):
    """Route standard library log records through loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


# ==== INITIALIZATION ==== #


def init_logging(level: str = "INFO", to_file: bool = False, log_dir: str = "logs") -> None:
    """Initialize structured logging with loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        to_file: Also write rotated JSON log files
        log_dir: Directory for log files when ``to_file`` is set
    """
    logger.remove()

    logger.add(
        sys.stdout,
        format="{message}",
        serialize=True,
        level=level.upper(),
        enqueue=True,
        colorize=False,
        backtrace=True,
        diagnose=False,
    )

    # --► FILE HANDLERS WITH ROTATION
    if to_file:
        logs_dir = Path(log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            logs_dir / "backoffice_{time:YYYY-MM-DD}.log",
            rotation="100 MB",
            retention="30 days",
            compression="gz",
            serialize=True,
            level="DEBUG",
            enqueue=True,
        )
        logger.add(
            logs_dir / "backoffice_errors_{time:YYYY-MM-DD}.log",
            rotation="50 MB",
            retention="90 days",
            compression="gz",
            serialize=True,
            level="ERROR",
            enqueue=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Reduce noise from third-party libraries
    for noisy in ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access", "fontTools"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    try:
        LoggingInstrumentor().instrument(set_logging_format=False)
    except Exception as e:
        logger.warning(f"Failed to setup OpenTelemetry logging: {e}")

    logger.info("Structured logging initialized", level=level, to_file=to_file)


# ==== CONTEXTUAL LOGGER ==== #


class ContextualLogger:
    """Loguru logger that binds keyword context and the active trace ids.

    Usage::

        log = ContextualLogger(__name__)
        log.info("Quote converted", tenant="acme", quote_id=12)
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logger.bind(logger_name=name)

    def _add_context(self, extra: Dict[str, Any] | None = None) -> Dict[str, Any]:
        context: Dict[str, Any] = {"logger_name": self.name}
        if extra:
            context.update(extra)

        span = trace.get_current_span()
        span_context = span.get_span_context()
        if span_context.is_valid:
            context["trace_id"] = format(span_context.trace_id, "032x")
            context["span_id"] = format(span_context.span_id, "016x")

        return context

    def debug(self, msg: str, **kwargs: Any) -> None:
        self.logger.bind(**self._add_context(kwargs)).debug(msg)

    def info(self, msg: str, **kwargs: Any) -> None:
        self.logger.bind(**self._add_context(kwargs)).info(msg)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self.logger.bind(**self._add_context(kwargs)).warning(msg)

    def error(self, msg: str, **kwargs: Any) -> None:
        self.logger.bind(**self._add_context(kwargs)).error(msg)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log exception with full traceback and context."""
        self.logger.bind(**self._add_context(kwargs)).exception(msg)


def get_logger(name: str) -> ContextualLogger:
    """Get a contextual logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextualLogger instance
    """
    return ContextualLogger(name)


def log_business_event(event_type: str, tenant: str, **context: Any) -> None:
    """Log a domain event such as a quote conversion or a recorded payment.

    Args:
        event_type: Type of business event
        tenant: Tenant identifier
        **context: Additional business context
    """
    logger.bind(
        event_type=event_type,
        tenant=tenant,
        business_event=True,
        **context
    ).info(f"Business event: {event_type}")
