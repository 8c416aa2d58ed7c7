"""Tenant administration and the active-tenant check used by every API request."""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import ConflictError, NotFoundError, PermissionDeniedError
from backoffice.observability.logging import log_business_event
from backoffice.schemas.admin import TenantCreate, TenantUpdate
from backoffice.storage.models import Tenant


async def get_tenant(db: AsyncSession, name: str) -> Tenant:
    result = await db.execute(select(Tenant).where(Tenant.name == name))
    tenant = result.scalar_one_or_none()
    if tenant is None:
        raise NotFoundError("Tenant", name, code="TENANT_NOT_FOUND")
    return tenant


async def ensure_active_tenant(db: AsyncSession, name: str) -> Tenant:
    """Resolve the request tenant.

    Raises:
        NotFoundError: Unknown tenant (``TENANT_NOT_FOUND``)
        PermissionDeniedError: Tenant is deactivated (``TENANT_INACTIVE``)
    """
    tenant = await get_tenant(db, name)
    if not tenant.active:
        raise PermissionDeniedError(f"Tenant '{name}' is inactive", code="TENANT_INACTIVE")
    return tenant


async def create_tenant(db: AsyncSession, payload: TenantCreate) -> Tenant:
    existing = await db.execute(select(Tenant.id).where(Tenant.name == payload.name))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Tenant '{payload.name}' already exists", code="TENANT_EXISTS")

    tenant = Tenant(
        name=payload.name,
        display_name=payload.display_name or payload.name,
        contact_email=payload.contact_email,
        plan=payload.plan,
        active=True,
    )
    db.add(tenant)
    await db.flush()
    log_business_event("tenant_created", tenant.name, plan=tenant.plan)
    return tenant


async def list_tenants(db: AsyncSession) -> List[Tenant]:
    result = await db.execute(select(Tenant).order_by(Tenant.name))
    return list(result.scalars().all())


async def update_tenant(db: AsyncSession, name: str, payload: TenantUpdate) -> Tenant:
    tenant = await get_tenant(db, name)
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(tenant, key, value)
    await db.flush()
    log_business_event("tenant_updated", tenant.name, active=tenant.active, plan=tenant.plan)
    return tenant
