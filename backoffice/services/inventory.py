# ==== INVENTORY SERVICE ==== #

"""Stock items and signed stock movements."""

import datetime as dt
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError
from backoffice.business.statuses import InventoryTransactionType
from backoffice.observability.logging import ContextualLogger
from backoffice.observability.metrics import inventory_movements_total
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.inventory import InventoryItemCreate, InventoryItemUpdate, InventoryTransactionCreate
from backoffice.storage.models import (
    InventoryItem,
    InventoryTransaction,
    Project,
    PurchaseOrder,
    Supplier,
    utc_now,
)
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

# Direction applied to the (positive) requested quantity
_DIRECTION = {
    InventoryTransactionType.PURCHASE: 1,
    InventoryTransactionType.RETURN: 1,
    InventoryTransactionType.USAGE: -1,
    InventoryTransactionType.ADJUSTMENT: 1,
}


def signed_quantity(transaction_type: InventoryTransactionType, quantity: float) -> float:
    """Quantity with the sign implied by the movement type.

    Adjustments keep the sign given by the caller.
    """
    transaction_type = InventoryTransactionType(transaction_type)
    if transaction_type == InventoryTransactionType.ADJUSTMENT:
        return quantity
    return abs(quantity) * _DIRECTION[transaction_type]


async def _ensure_unique_sku(repo: TenantRepository, sku: str, exclude_id: Optional[int] = None) -> None:
    criteria = [InventoryItem.sku == sku]
    if exclude_id is not None:
        criteria.append(InventoryItem.id != exclude_id)
    if await repo.exists(*criteria):
        raise ConflictError(f"SKU '{sku}' already exists", code="DUPLICATE_SKU", sku=sku)


async def create_item(db: AsyncSession, tenant: str, payload: InventoryItemCreate) -> InventoryItem:
    repo = TenantRepository(InventoryItem, db, tenant)
    await _ensure_unique_sku(repo, payload.sku)
    await ensure_in_tenant(db, Supplier, tenant, payload.preferred_supplier_id)
    return await repo.create(**payload.model_dump())


async def update_item(
    db: AsyncSession, tenant: str, item_id: int, payload: InventoryItemUpdate
) -> InventoryItem:
    repo = TenantRepository(InventoryItem, db, tenant)
    item = await repo.get_or_404(item_id)
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("sku") and fields["sku"] != item.sku:
        await _ensure_unique_sku(repo, fields["sku"], exclude_id=item.id)
    if "preferred_supplier_id" in fields:
        await ensure_in_tenant(db, Supplier, tenant, fields["preferred_supplier_id"])
    return await repo.update(item, **fields)


async def delete_item(db: AsyncSession, tenant: str, item_id: int) -> None:
    repo = TenantRepository(InventoryItem, db, tenant)
    item = await repo.get_or_404(item_id)
    movements = TenantRepository(InventoryTransaction, db, tenant)
    if await movements.exists(InventoryTransaction.inventory_item_id == item.id):
        raise ConflictError(
            f"Inventory item {item.sku} has stock movements and cannot be deleted",
            code="ITEM_IN_USE",
        )
    await repo.delete(item)


async def apply_movement(
    db: AsyncSession,
    tenant: str,
    item: InventoryItem,
    transaction_type: InventoryTransactionType,
    quantity: float,
    *,
    project_id: Optional[int] = None,
    purchase_order_id: Optional[int] = None,
    unit_cost_cents: Optional[int] = None,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    transaction_date: Optional[dt.datetime] = None,
    user_id: Optional[str] = None,
) -> InventoryTransaction:
    """
    Apply a stock movement to an already-loaded (and locked) item.

    Raises:
        BusinessRuleError: The movement would make stock negative
    """
    transaction_type = InventoryTransactionType(transaction_type)
    delta = signed_quantity(transaction_type, quantity)
    new_stock = round(item.current_stock + delta, 4)
    if new_stock < 0:
        raise BusinessRuleError(
            f"Insufficient stock for {item.sku}: {item.current_stock} available, {abs(delta)} requested",
            code="INSUFFICIENT_STOCK",
            sku=item.sku,
            current_stock=item.current_stock,
        )

    item.current_stock = new_stock
    if transaction_type == InventoryTransactionType.PURCHASE and unit_cost_cents is not None:
        item.last_purchase_price_cents = unit_cost_cents

    movement = InventoryTransaction(
        tenant=tenant,
        inventory_item_id=item.id,
        transaction_type=transaction_type.value,
        quantity=delta,
        stock_after=new_stock,
        project_id=project_id,
        purchase_order_id=purchase_order_id,
        unit_cost_cents=unit_cost_cents,
        reference=reference,
        notes=notes,
        transaction_date=transaction_date or utc_now(),
        created_by=user_id,
    )
    db.add(movement)
    await db.flush()

    inventory_movements_total.labels(tenant=tenant, transaction_type=transaction_type.value).inc()
    logger.debug(
        "Stock movement applied",
        tenant=tenant,
        sku=item.sku,
        transaction_type=transaction_type.value,
        quantity=delta,
        stock_after=new_stock,
    )
    return movement


async def record_transaction(
    db: AsyncSession,
    tenant: str,
    payload: InventoryTransactionCreate,
    user_id: Optional[str] = None,
) -> InventoryTransaction:
    """Record a stock movement requested through the API."""
    with tracer.start_as_current_span("inventory_record_transaction") as span:
        span.set_attribute("tenant", tenant)
        span.set_attribute("inventory_item_id", payload.inventory_item_id)

        item = await TenantRepository(InventoryItem, db, tenant).get_or_404(
            payload.inventory_item_id, for_update=True
        )
        await ensure_in_tenant(db, Project, tenant, payload.project_id)
        await ensure_in_tenant(db, PurchaseOrder, tenant, payload.purchase_order_id)

        return await apply_movement(
            db,
            tenant,
            item,
            payload.transaction_type,
            payload.quantity,
            project_id=payload.project_id,
            purchase_order_id=payload.purchase_order_id,
            unit_cost_cents=payload.unit_cost_cents,
            reference=payload.reference,
            notes=payload.notes,
            transaction_date=payload.transaction_date,
            user_id=user_id,
        )


async def low_stock_items(db: AsyncSession, tenant: str) -> List[InventoryItem]:
    """Active items at or below their reorder point, lowest stock first."""
    query = (
        select(InventoryItem)
        .where(and_(
            InventoryItem.tenant == tenant,
            InventoryItem.active.is_(True),
            InventoryItem.current_stock <= InventoryItem.reorder_point,
        ))
        .order_by(InventoryItem.current_stock.asc(), InventoryItem.sku.asc())
    )
    result = await db.execute(query)
    return list(result.scalars().all())
