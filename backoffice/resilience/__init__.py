"""
Resilience patterns for calls leaving the process.

- Circuit Breaker: stops hammering a failing dependency
- Retry: exponential backoff for transient failures
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerError,
    CircuitState,
    CircuitBreakerConfig,
    get_circuit_breaker,
    reset_circuit_breaker,
    get_circuit_breaker_stats
)
from .decorators import email_resilient, redis_resilient, with_resilience

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerError",
    "CircuitState",
    "CircuitBreakerConfig",
    "get_circuit_breaker",
    "reset_circuit_breaker",
    "get_circuit_breaker_stats",
    "email_resilient",
    "redis_resilient",
    "with_resilience",
]
