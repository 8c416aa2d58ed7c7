"""Retry policies for calls to email providers and Redis."""

import smtplib
from dataclasses import dataclass

import httpx
import redis.asyncio as redis
from prometheus_client import Counter
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)

from backoffice.observability.tracing import get_tracer

tracer = get_tracer(__name__)

# Metrics
retry_attempts_total = Counter(
    "backoffice_retry_attempts_total",
    "Total retry attempts",
    ["service", "operation", "attempt"]
)

retry_failures_total = Counter(
    "backoffice_retry_failures_total",
    "Total retry failures after all attempts",
    ["service", "operation", "error_type"]
)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True


class ExponentialBackoffPolicy:
    """Exponential backoff retry policy built on tenacity."""

    def __init__(
        self,
        config: RetryConfig,
        service_name: str = "unknown",
        retryable_exceptions: tuple = (Exception,)
    ):
        self.config = config
        self.service_name = service_name
        self.retryable_exceptions = retryable_exceptions

    def get_tenacity_decorator(self, operation_name: str = "unknown"):
        """Get tenacity decorator with exponential backoff."""
        if self.config.jitter:
            wait_strategy = wait_random_exponential(
                multiplier=self.config.base_delay,
                max=self.config.max_delay
            )
        else:
            wait_strategy = wait_exponential(
                multiplier=self.config.base_delay,
                max=self.config.max_delay,
                exp_base=self.config.exponential_base
            )

        return retry(
            stop=stop_after_attempt(self.config.max_attempts),
            wait=wait_strategy,
            retry=retry_if_exception_type(self.retryable_exceptions),
            before_sleep=self._before_sleep_callback(operation_name),
            after=self._after_callback(operation_name),
            reraise=True,
        )

    def _before_sleep_callback(self, operation_name: str):
        def callback(retry_state):
            attempt = retry_state.attempt_number
            retry_attempts_total.labels(
                service=self.service_name,
                operation=operation_name,
                attempt=str(attempt)
            ).inc()

            with tracer.start_as_current_span("retry_attempt") as span:
                span.set_attribute("service", self.service_name)
                span.set_attribute("operation", operation_name)
                span.set_attribute("attempt", attempt)
                span.set_attribute("exception", str(retry_state.outcome.exception()))

        return callback

    def _after_callback(self, operation_name: str):
        def callback(retry_state):
            if retry_state.outcome is not None and retry_state.outcome.failed:
                exception = retry_state.outcome.exception()
                retry_failures_total.labels(
                    service=self.service_name,
                    operation=operation_name,
                    error_type=type(exception).__name__
                ).inc()

        return callback


# ==== PREDEFINED POLICIES ==== #


def create_email_retry_policy() -> ExponentialBackoffPolicy:
    """Retry transient mail relay and mail API failures."""
    config = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=15.0)

    retryable_exceptions = (
        smtplib.SMTPServerDisconnected,
        smtplib.SMTPConnectError,
        httpx.ConnectTimeout,
        httpx.ReadTimeout,
        httpx.ConnectError,
        httpx.RemoteProtocolError,
        ConnectionError,
        TimeoutError,
    )

    return ExponentialBackoffPolicy(
        config=config,
        service_name="email",
        retryable_exceptions=retryable_exceptions
    )


def create_redis_retry_policy() -> ExponentialBackoffPolicy:
    """Create retry policy for Redis operations."""
    config = RetryConfig(max_attempts=3, base_delay=0.1, max_delay=2.0)

    retryable_exceptions = (
        redis.ConnectionError,
        redis.TimeoutError,
        redis.BusyLoadingError,
        ConnectionError,
        TimeoutError,
    )

    return ExponentialBackoffPolicy(
        config=config,
        service_name="redis",
        retryable_exceptions=retryable_exceptions
    )


async def retry_async_operation(
    operation,
    policy: ExponentialBackoffPolicy,
    operation_name: str = "unknown",
    *args,
    **kwargs
):
    """Retry an async operation with the given policy.

    Raises:
        Exception: Last exception if all retries failed
    """
    decorated_operation = policy.get_tenacity_decorator(operation_name)(operation)
    return await decorated_operation(*args, **kwargs)
