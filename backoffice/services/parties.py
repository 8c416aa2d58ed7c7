"""Customers, suppliers, catalog items and projects."""

import datetime as dt
from typing import Any, Dict, Iterable, Optional, Tuple, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import ConflictError
from backoffice.business.statuses import ProjectStatus
from backoffice.observability.logging import ContextualLogger
from backoffice.storage.db import Base
from backoffice.storage.models import (
    CatalogItem,
    Customer,
    Expense,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Project,
    PurchaseOrder,
    Quote,
    QuoteItem,
    Supplier,
    Timesheet,
)
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


logger = ContextualLogger(__name__)

# (model, foreign key column name) pairs that block deletion
CUSTOMER_REFERENCES = ((Quote, "customer_id"), (Invoice, "customer_id"), (Project, "customer_id"))
SUPPLIER_REFERENCES = (
    (PurchaseOrder, "supplier_id"),
    (Expense, "supplier_id"),
    (InventoryItem, "preferred_supplier_id"),
)
PROJECT_REFERENCES = (
    (Quote, "project_id"),
    (Invoice, "project_id"),
    (PurchaseOrder, "project_id"),
    (Timesheet, "project_id"),
    (Expense, "project_id"),
)


async def ensure_unreferenced(
    db: AsyncSession,
    tenant: str,
    entity: Base,
    references: Iterable[Tuple[Type[Base], str]],
) -> None:
    """Raise ConflictError when any tenant record still points at ``entity``."""
    for model, column in references:
        repo = TenantRepository(model, db, tenant)
        if await repo.exists(getattr(model, column) == entity.id):
            raise ConflictError(
                f"{type(entity).__name__} {entity.id} is referenced by {model.__tablename__}",
                code="RECORD_IN_USE",
                referenced_by=model.__tablename__,
            )


# ==== CUSTOMERS AND SUPPLIERS ==== #


async def delete_customer(db: AsyncSession, tenant: str, customer_id: int) -> None:
    repo = TenantRepository(Customer, db, tenant)
    customer = await repo.get_or_404(customer_id)
    await ensure_unreferenced(db, tenant, customer, CUSTOMER_REFERENCES)
    await repo.delete(customer)


async def delete_supplier(db: AsyncSession, tenant: str, supplier_id: int) -> None:
    repo = TenantRepository(Supplier, db, tenant)
    supplier = await repo.get_or_404(supplier_id)
    await ensure_unreferenced(db, tenant, supplier, SUPPLIER_REFERENCES)
    await repo.delete(supplier)


async def delete_catalog_item(db: AsyncSession, tenant: str, item_id: int) -> None:
    """Delete a catalog item, or refuse when document lines still reference it."""
    repo = TenantRepository(CatalogItem, db, tenant)
    item = await repo.get_or_404(item_id)

    # Line tables carry no tenant column; the ids are tenant-unique via the catalog row
    for line_model in (QuoteItem, InvoiceItem):
        rows = await db.execute(
            select(line_model.id).where(line_model.catalog_item_id == item.id).limit(1)
        )
        if rows.first() is not None:
            raise ConflictError(
                f"Catalog item {item.id} is used on {line_model.__tablename__}; deactivate it instead",
                code="RECORD_IN_USE",
                referenced_by=line_model.__tablename__,
            )
    await repo.delete(item)


# ==== PROJECTS ==== #


def _apply_project_status(project: Project, status: Optional[ProjectStatus]) -> None:
    if status is None:
        return
    status = ProjectStatus(status)
    project.status = status.value
    if status == ProjectStatus.COMPLETED and project.completed_date is None:
        project.completed_date = dt.date.today()
    elif status != ProjectStatus.COMPLETED:
        project.completed_date = None


async def create_project(db: AsyncSession, tenant: str, fields: Dict[str, Any]) -> Project:
    await ensure_in_tenant(db, Customer, tenant, fields.get("customer_id"))
    status = fields.pop("status", ProjectStatus.PENDING)
    project = Project(tenant=tenant, **fields)
    _apply_project_status(project, status)
    db.add(project)
    await db.flush()
    logger.info("Project created", tenant=tenant, project_id=project.id, status=project.status)
    return project


async def update_project(db: AsyncSession, tenant: str, project_id: int, fields: Dict[str, Any]) -> Project:
    repo = TenantRepository(Project, db, tenant)
    project = await repo.get_or_404(project_id)
    if "customer_id" in fields:
        await ensure_in_tenant(db, Customer, tenant, fields["customer_id"])
    status = fields.pop("status", None)
    for key, value in fields.items():
        setattr(project, key, value)
    _apply_project_status(project, status)
    await db.flush()
    return project


async def delete_project(db: AsyncSession, tenant: str, project_id: int) -> None:
    repo = TenantRepository(Project, db, tenant)
    project = await repo.get_or_404(project_id)
    await ensure_unreferenced(db, tenant, project, PROJECT_REFERENCES)
    await repo.delete(project)
