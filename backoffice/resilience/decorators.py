"""Decorators applying retry and circuit breaker protection to async calls."""

import inspect
import functools
from typing import Callable, Optional, TypeVar

from .circuit_breaker import CircuitBreakerConfig, get_circuit_breaker
from .retry_policies import (
    ExponentialBackoffPolicy,
    create_email_retry_policy,
    create_redis_retry_policy,
    retry_async_operation,
)

T = TypeVar('T')


def with_resilience(
    service_name: str,
    retry_policy: ExponentialBackoffPolicy,
    circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
    operation_name: Optional[str] = None
):
    """Decorator adding retry inside circuit breaker protection.

    Args:
        service_name: Name of the protected dependency
        retry_policy: Retry policy to apply
        circuit_breaker_config: Optional circuit breaker configuration
        operation_name: Optional operation name for metrics

    Returns:
        Decorated async function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if not inspect.iscoroutinefunction(func):
            raise ValueError("with_resilience can only be used with async functions")

        op_name = operation_name or func.__name__
        breaker = get_circuit_breaker(service_name, circuit_breaker_config)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await breaker.call(
                retry_async_operation, func, retry_policy, op_name, *args, **kwargs
            )

        return wrapper

    return decorator


# Convenience decorators for common services

def email_resilient(operation_name: Optional[str] = None):
    """Decorator for outbound email delivery."""
    config = CircuitBreakerConfig(
        failure_threshold=5,
        recovery_timeout=60.0,
        success_threshold=1
    )
    return with_resilience("email", create_email_retry_policy(), config, operation_name)


def redis_resilient(operation_name: Optional[str] = None):
    """Decorator for Redis operations."""
    config = CircuitBreakerConfig(
        failure_threshold=3,
        recovery_timeout=5.0,
        success_threshold=2
    )
    return with_resilience("redis", create_redis_retry_policy(), config, operation_name)
