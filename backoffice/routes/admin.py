# ==== ADMIN ROUTES ==== #

"""
Tenant administration, token issuing and operational jobs.

Every endpoint requires an admin token. Admin routes sit outside tenant
scoping, so the tenant is named in the path or query instead of a header.
"""

import datetime as dt
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.observability.logging import ContextualLogger
from backoffice.observability.tracing import get_tracer
from backoffice.resilience.circuit_breaker import get_circuit_breaker_stats, reset_circuit_breaker
from backoffice.schemas.admin import TenantCreate, TenantResponse, TenantUpdate, TokenRequest, TokenResponse
from backoffice.security.auth import create_access_token, require_admin
from backoffice.services.maintenance import run_nightly_maintenance
from backoffice.services.tenants import create_tenant, get_tenant, list_tenants, update_tenant
from backoffice.storage.db import get_db_session


router = APIRouter()
tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)


# ==== TENANTS ==== #


@router.post("/tenants", response_model=TenantResponse, status_code=201)
async def add_tenant(
    payload: TenantCreate,
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
) -> TenantResponse:
    tenant = await create_tenant(db, payload)
    logger.info("Tenant created", tenant=tenant.name, admin_user=admin_payload.get("sub"))
    return TenantResponse.model_validate(tenant)


@router.get("/tenants", response_model=List[TenantResponse])
async def get_tenants(
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
) -> List[TenantResponse]:
    return [TenantResponse.model_validate(tenant) for tenant in await list_tenants(db)]


@router.get("/tenants/{name}", response_model=TenantResponse)
async def get_tenant_detail(
    name: str,
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
) -> TenantResponse:
    return TenantResponse.model_validate(await get_tenant(db, name))


@router.patch("/tenants/{name}", response_model=TenantResponse)
async def edit_tenant(
    name: str,
    payload: TenantUpdate,
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
) -> TenantResponse:
    """Update a tenant; ``active=false`` blocks all of its API traffic."""
    tenant = await update_tenant(db, name, payload)
    logger.info("Tenant updated", tenant=tenant.name, admin_user=admin_payload.get("sub"))
    return TenantResponse.model_validate(tenant)


# ==== TOKENS ==== #


@router.post("/tokens", response_model=TokenResponse, status_code=201)
async def issue_token(
    payload: TokenRequest,
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
) -> TokenResponse:
    """Issue an access token for a user of one or more existing tenants."""
    for tenant in payload.tenants:
        if tenant != "*":
            await get_tenant(db, tenant)

    token = create_access_token(
        payload.user_id,
        role=payload.role,
        tenants=payload.tenants,
        name=payload.name,
        expires_in_hours=payload.expires_in_hours,
    )
    logger.info(
        "Access token issued",
        user_id=payload.user_id,
        role=payload.role,
        tenants=",".join(payload.tenants),
        admin_user=admin_payload.get("sub"),
    )
    return TokenResponse(access_token=token)


# ==== OPERATIONS ==== #


@router.post("/maintenance/run")
async def run_maintenance(
    db: AsyncSession = Depends(get_db_session),
    admin_payload: Dict[str, Any] = Depends(require_admin),
    tenant: Optional[str] = Query(None, description="Limit to one tenant"),
    on_date: Optional[dt.date] = Query(None, description="Reference date, defaults to today"),
) -> Dict[str, Any]:
    """Run the nightly overdue, expiry and low stock jobs on demand."""
    with tracer.start_as_current_span("admin_run_maintenance") as span:
        span.set_attribute("tenant", tenant or "*")
        span.set_attribute("admin_user", admin_payload.get("sub", "unknown"))
        return await run_nightly_maintenance(db, on_date, tenant)


@router.get("/circuit-breakers")
async def circuit_breakers(admin_payload: Dict[str, Any] = Depends(require_admin)) -> Dict[str, Any]:
    return get_circuit_breaker_stats()


@router.post("/circuit-breakers/{name}/reset")
async def reset_breaker(name: str, admin_payload: Dict[str, Any] = Depends(require_admin)) -> Dict[str, Any]:
    return {"name": name, "reset": reset_circuit_breaker(name)}
