# ==== MULTI-TENANCY MIDDLEWARE ==== #

"""
Multi-tenancy middleware for request isolation.

Every business request names its tenant in the ``X-Tenant-Id`` header. The
middleware validates the header and injects it into the ASGI scope so route
handlers can scope every query to that tenant.
"""

from fastapi import Request
from starlette.types import ASGIApp, Scope, Receive, Send


# ==== CONSTANTS ==== #

TENANT_ID_MAX_LENGTH = 64

DEFAULT_EXEMPT_PATHS = frozenset({
    "/healthz",
    "/readyz",
    "/info",
    "/metrics",
    "/docs",
    "/redoc",
    "/openapi.json",
})

DEFAULT_EXEMPT_PREFIXES = ("/admin",)


# ==== UTILITY FUNCTIONS ==== #


def get_tenant_id(request: Request) -> str:
    """
    Extract tenant ID from request scope.

    Args:
        request (Request): FastAPI request object with tenant context

    Returns:
        str: Tenant ID injected by the middleware
    """
    return request.scope.get("tenant_id", "default")


def is_valid_tenant_id(tenant_id: str) -> bool:
    """
    Validate tenant ID format.

    Allows alphanumeric characters, hyphens and underscores, up to 64 chars.

    Args:
        tenant_id (str): Tenant identifier to validate

    Returns:
        bool: True if valid format, False otherwise
    """
    if not tenant_id or len(tenant_id) > TENANT_ID_MAX_LENGTH:
        return False

    return all(c.isalnum() or c in "-_" for c in tenant_id)


# ==== TENANCY MIDDLEWARE CLASS ==== #


class TenancyMiddleware:
    """
    Middleware to extract and validate tenant information.

    Pure ASGI so that rejections happen before any routing or body parsing.
    """

    def __init__(
        self,
        app: ASGIApp,
        require_tenant: bool = True,
        exempt_paths: frozenset[str] = DEFAULT_EXEMPT_PATHS,
        exempt_prefixes: tuple[str, ...] = DEFAULT_EXEMPT_PREFIXES,
    ):
        """
        Initialize tenancy middleware with validation configuration.

        Args:
            app (ASGIApp): ASGI application instance
            require_tenant (bool): Whether a missing header is rejected
            exempt_paths: Exact paths that skip tenant validation
            exempt_prefixes: Path prefixes that skip tenant validation
        """
        self.app = app
        self.require_tenant = require_tenant
        self.exempt_paths = exempt_paths
        self.exempt_prefixes = exempt_prefixes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"]

        # ⚠️ Always allow OPTIONS requests (CORS preflight)
        if scope["method"] == "OPTIONS" or self._is_exempt(path):
            await self.app(scope, receive, send)
            return

        # --► TENANT ID EXTRACTION FROM HEADERS
        headers = dict(scope["headers"])
        raw_tenant = headers.get(b"x-tenant-id")

        if self.require_tenant and not raw_tenant:
            await self._send_error_response(
                send,
                400,
                '{"detail":"Missing X-Tenant-Id header","code":"TENANT_REQUIRED"}'
            )
            return

        tenant_id = raw_tenant.decode("latin-1").strip() if raw_tenant else None
        if tenant_id is not None and not is_valid_tenant_id(tenant_id):
            await self._send_error_response(
                send,
                400,
                '{"detail":"Invalid X-Tenant-Id format","code":"TENANT_INVALID"}'
            )
            return

        scope["tenant_id"] = tenant_id or "default"
        await self.app(scope, receive, send)

    def _is_exempt(self, path: str) -> bool:
        if path in self.exempt_paths:
            return True
        return any(path == p or path.startswith(p + "/") for p in self.exempt_prefixes)

    async def _send_error_response(self, send: Send, status: int, body: str) -> None:
        """
        Send HTTP error response directly through ASGI.

        Args:
            send (Send): ASGI send callable
            status (int): HTTP status code
            body (str): JSON response body
        """
        await send({
            "type": "http.response.start",
            "status": status,
            "headers": [
                [b"content-type", b"application/json"],
            ],
        })
        await send({
            "type": "http.response.body",
            "body": body.encode(),
        })
