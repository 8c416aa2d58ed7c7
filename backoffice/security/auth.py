# ==== AUTHENTICATION AND AUTHORIZATION ==== #

"""
JWT authentication and role checks for the back office API.

Tokens carry the user id (``sub``), a role (admin, manager, employee) and the
list of tenants the user may act for. Admins may act for every tenant.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request

from backoffice.middleware.tenancy import get_tenant_id
from backoffice.settings import settings


# ==== ROLES ==== #

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)


@dataclass
class CurrentUser:
    """Authenticated caller resolved from the bearer token."""

    user_id: str
    role: str
    tenants: List[str] = field(default_factory=list)
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def has_role(self, *roles: str) -> bool:
        return self.role in roles


# ==== TOKEN HANDLING ==== #


def create_access_token(
    user_id: str,
    role: str = ROLE_EMPLOYEE,
    tenants: Optional[List[str]] = None,
    name: Optional[str] = None,
    expires_in_hours: Optional[int] = None,
) -> str:
    """Create a signed access token.

    Args:
        user_id: User identifier
        role: One of admin, manager, employee
        tenants: Tenants the user may access (``["*"]`` for all)
        name: Display name printed on approvals
        expires_in_hours: Token lifetime, defaults to settings

    Returns:
        JWT token string
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    now = dt.datetime.now(dt.timezone.utc)
    hours = expires_in_hours or settings.ACCESS_TOKEN_TTL_HOURS
    payload: Dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "tenants": tenants or [],
        "iat": now,
        "exp": now + dt.timedelta(hours=hours),
    }
    if name:
        payload["name"] = name

    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_admin_token(user_id: str, expires_in_hours: int = 24) -> str:
    """Create an admin JWT token."""
    return create_access_token(user_id, ROLE_ADMIN, ["*"], expires_in_hours=expires_in_hours)


def decode_token(authorization: Optional[str]) -> Dict[str, Any]:
    """Decode and verify a ``Bearer`` authorization header.

    Raises:
        HTTPException: 401 for missing, malformed, expired or invalid tokens
    """
    if not authorization:
        raise HTTPException(status_code=401, detail="Authorization header required")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = authorization.split(" ", 1)[1]
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


def verify_tenant_access(token_payload: Dict[str, Any], tenant_id: str) -> bool:
    """Verify if user has access to specific tenant.

    Args:
        token_payload: Decoded JWT payload
        tenant_id: Tenant identifier to check access for

    Returns:
        True if access is allowed, False otherwise
    """
    if token_payload.get("role") == ROLE_ADMIN:
        return True

    allowed_tenants = token_payload.get("tenants", [])
    return tenant_id in allowed_tenants or "*" in allowed_tenants


# ==== FASTAPI DEPENDENCIES ==== #


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> CurrentUser:
    """Authenticate the caller and check access to the request tenant.

    Raises:
        HTTPException: 401 without a valid token, 403 for a foreign tenant
    """
    payload = decode_token(authorization)
    tenant = get_tenant_id(request)

    if not verify_tenant_access(payload, tenant):
        raise HTTPException(status_code=403, detail=f"No access to tenant '{tenant}'")

    user = CurrentUser(
        user_id=str(payload.get("sub", "")),
        role=payload.get("role", ROLE_EMPLOYEE),
        tenants=list(payload.get("tenants", [])),
        name=payload.get("name"),
    )
    request.state.user = user
    return user


def require_roles(*roles: str):
    """Dependency factory restricting an endpoint to the given roles."""

    def dependency(user: CurrentUser = Depends(require_user)) -> CurrentUser:
        if not user.has_role(*roles):
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of roles: {', '.join(roles)}"
            )
        return user

    return dependency


require_manager = require_roles(ROLE_ADMIN, ROLE_MANAGER)


def require_admin(authorization: Optional[str] = Header(None)) -> Dict[str, Any]:
    """Require an admin token for tenant administration endpoints.

    Returns:
        Dict[str, Any]: Decoded JWT payload
    """
    payload = decode_token(authorization)
    if payload.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Insufficient privileges")
    return payload
