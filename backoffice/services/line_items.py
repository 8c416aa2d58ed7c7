# ==== LINE ITEM RESOLUTION ==== #

"""
Resolve requested document lines into priced rows.

Lines that reference a catalog item (or, for purchase orders, an inventory
item) inherit its description and price unless the request overrides them.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.pricing import DocumentTotals, compute_document_totals, compute_line_total
from backoffice.schemas.documents import LineItemIn, PurchaseOrderItemIn
from backoffice.storage.models import CatalogItem, InventoryItem
from backoffice.storage.repository import TenantRepository


@dataclass
class PricedLine:
    position: int
    description: str
    quantity: float
    unit_price_cents: int
    total_cents: int
    catalog_item_id: Optional[int] = None
    sku: Optional[str] = None
    unit: Optional[str] = None
    inventory_item_id: Optional[int] = None

    def as_sales_fields(self) -> dict:
        return {
            "position": self.position,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "catalog_item_id": self.catalog_item_id,
        }

    def as_purchase_fields(self) -> dict:
        return {
            "position": self.position,
            "description": self.description,
            "sku": self.sku,
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "inventory_item_id": self.inventory_item_id,
        }


async def price_sales_lines(
    db: AsyncSession, tenant: str, items: Iterable[LineItemIn]
) -> List[PricedLine]:
    """Price quote or invoice lines, resolving catalog references."""
    catalog = TenantRepository(CatalogItem, db, tenant)
    lines: List[PricedLine] = []

    for position, item in enumerate(items, start=1):
        description = item.description
        unit_price = item.unit_price_cents

        if item.catalog_item_id is not None:
            catalog_item = await catalog.get_or_404(item.catalog_item_id)
            description = description or catalog_item.description or catalog_item.name
            if unit_price is None:
                unit_price = catalog_item.unit_price_cents

        unit_price = unit_price or 0
        lines.append(PricedLine(
            position=position,
            description=description,
            quantity=item.quantity,
            unit_price_cents=unit_price,
            total_cents=compute_line_total(item.quantity, unit_price),
            catalog_item_id=item.catalog_item_id,
        ))

    return lines


async def price_purchase_lines(
    db: AsyncSession, tenant: str, items: Iterable[PurchaseOrderItemIn]
) -> List[PricedLine]:
    """Price purchase order lines, resolving inventory references."""
    inventory = TenantRepository(InventoryItem, db, tenant)
    lines: List[PricedLine] = []

    for position, item in enumerate(items, start=1):
        description = item.description
        unit_price = item.unit_price_cents
        sku = item.sku
        unit = item.unit

        if item.inventory_item_id is not None:
            stock_item = await inventory.get_or_404(item.inventory_item_id)
            description = description or stock_item.name
            sku = sku or stock_item.sku
            unit = unit or stock_item.unit_of_measure
            if unit_price is None:
                unit_price = stock_item.last_purchase_price_cents or stock_item.cost_cents

        unit_price = unit_price or 0
        lines.append(PricedLine(
            position=position,
            description=description,
            quantity=item.quantity,
            unit_price_cents=unit_price,
            total_cents=compute_line_total(item.quantity, unit_price),
            sku=sku,
            unit=unit,
            inventory_item_id=item.inventory_item_id,
        ))

    return lines


def apply_totals(document, totals: DocumentTotals) -> None:
    """Copy computed totals onto a quote, invoice or purchase order."""
    document.subtotal_cents = totals.subtotal_cents
    document.tax_cents = totals.tax_cents
    document.total_cents = totals.total_cents
    if hasattr(document, "shipping_cents"):
        document.shipping_cents = totals.shipping_cents


def recalculate(document) -> DocumentTotals:
    """Recompute a document's totals from its current lines."""
    totals = compute_document_totals(
        (line.total_cents for line in document.items),
        tax_rate=document.tax_rate or 0.0,
        discount_cents=getattr(document, "discount_cents", 0) or 0,
        shipping_cents=getattr(document, "shipping_cents", 0) or 0,
    )
    apply_totals(document, totals)
    return totals
