"""Company settings lookup and upsert."""

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.settings import settings
from backoffice.storage.models import CompanySettings


async def get_company_settings(db: AsyncSession, tenant: str) -> Optional[CompanySettings]:
    result = await db.execute(select(CompanySettings).where(CompanySettings.tenant == tenant))
    return result.scalar_one_or_none()


def company_defaults(tenant: str) -> Dict[str, Any]:
    """Settings used when a tenant has not saved a company profile yet."""
    return {
        "company_name": tenant,
        "default_tax_rate": settings.DEFAULT_TAX_RATE,
        "currency": settings.DEFAULT_CURRENCY,
        "primary_color": "#1F3A5F",
    }


async def upsert_company_settings(
    db: AsyncSession, tenant: str, fields: Dict[str, Any]
) -> CompanySettings:
    """Create or update the tenant's company profile."""
    record = await get_company_settings(db, tenant)
    if record is None:
        record = CompanySettings(tenant=tenant)
        db.add(record)

    for key, value in fields.items():
        setattr(record, key, value)

    await db.flush()
    await db.refresh(record)
    return record


async def default_tax_rate(db: AsyncSession, tenant: str) -> float:
    record = await get_company_settings(db, tenant)
    if record is not None and record.default_tax_rate is not None:
        return record.default_tax_rate
    return settings.DEFAULT_TAX_RATE


async def default_terms(db: AsyncSession, tenant: str, doc_type: str) -> Optional[str]:
    record = await get_company_settings(db, tenant)
    if record is None:
        return None
    if doc_type == "quote":
        return record.default_quote_terms
    if doc_type == "invoice":
        return record.default_invoice_terms
    return None
