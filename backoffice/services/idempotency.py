# ==== IDEMPOTENCY SERVICE ==== #

"""
Idempotency keys backed by Redis.

Clients may send an ``Idempotency-Key`` header with side-effecting requests
(emailing a document, converting a quote). The first request claims the key
with ``SET NX``; repeats inside the TTL are reported as duplicates.
"""

from typing import Optional

import redis.asyncio as redis

from backoffice.settings import settings
from backoffice.observability.tracing import get_tracer
from backoffice.observability.metrics import cache_hits_total, cache_misses_total
from backoffice.resilience.decorators import redis_resilient


# ==== MODULE INITIALIZATION ==== #

tracer = get_tracer(__name__)


# ==== IDEMPOTENCY SERVICE CLASS ==== #


class IdempotencyService:
    """Redis-backed claim/release of idempotency keys per tenant and operation."""

    def __init__(self, redis_url: str | None = None, ttl_seconds: int | None = None):
        """
        Args:
            redis_url (str | None): Redis connection URL (defaults to settings)
            ttl_seconds (int | None): Key lifetime (defaults to settings)
        """
        self.redis_url = redis_url or settings.REDIS_URL
        self.ttl_seconds = ttl_seconds or settings.IDEMPOTENCY_TTL_SECONDS
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            ssl_config = {}
            if self.redis_url.startswith('rediss://'):
                ssl_config = {'ssl_cert_reqs': None}

            self._redis = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                **ssl_config
            )
        return self._redis

    def _idempotency_key(self, tenant: str, operation: str, key: str) -> str:
        """Build the Redis key for a tenant-scoped operation key."""
        return f"idempo:{tenant}:{operation}:{key}"

    @redis_resilient("idempotency_claim")
    async def claim(self, tenant: str, operation: str, key: str) -> bool:
        """
        Claim an idempotency key.

        Args:
            tenant (str): Tenant identifier
            operation (str): Operation name, e.g. ``email:invoice:12``
            key (str): Client supplied key

        Returns:
            bool: True when this caller claimed the key, False for a repeat
        """
        with tracer.start_as_current_span("idempotency_claim") as span:
            span.set_attribute("tenant", tenant)
            span.set_attribute("operation", operation)

            redis_client = await self._get_redis()
            claimed = await redis_client.set(
                self._idempotency_key(tenant, operation, key),
                "1",
                nx=True,
                ex=self.ttl_seconds
            )
            claimed = bool(claimed)

            if claimed:
                cache_misses_total.labels(cache_type="idempotency", operation=operation.split(":")[0]).inc()
            else:
                cache_hits_total.labels(cache_type="idempotency", operation=operation.split(":")[0]).inc()

            span.set_attribute("claimed", claimed)
            return claimed

    @redis_resilient("idempotency_release")
    async def release(self, tenant: str, operation: str, key: str) -> None:
        """Release a claimed key so the client can retry after a failure."""
        redis_client = await self._get_redis()
        await redis_client.delete(self._idempotency_key(tenant, operation, key))

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


# ==== GLOBAL SERVICE INSTANCE ==== #

_idempotency_service: Optional[IdempotencyService] = None


def get_idempotency_service() -> IdempotencyService:
    """FastAPI dependency returning the process-wide idempotency service."""
    global _idempotency_service
    if _idempotency_service is None:
        _idempotency_service = IdempotencyService()
    return _idempotency_service
