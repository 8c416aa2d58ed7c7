# ==== NIGHTLY MAINTENANCE ==== #

"""
Date-driven status changes run once a day.

- Issued or partially paid invoices past their due date become ``overdue``.
- Sent quotes past their expiry date become ``expired``.
- Items at or below their reorder point are reported.

Each job takes an optional tenant; without one it sweeps every tenant.
"""

import datetime as dt
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.statuses import InvoiceStatus, QuoteStatus
from backoffice.observability.logging import ContextualLogger
from backoffice.observability.metrics import status_transitions_total
from backoffice.observability.tracing import get_tracer
from backoffice.storage.models import InventoryItem, Invoice, Quote


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

OVERDUE_CANDIDATES = (InvoiceStatus.ISSUED.value, InvoiceStatus.PARTIALLY_PAID.value)


async def mark_overdue_invoices(
    db: AsyncSession, today: Optional[dt.date] = None, tenant: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Flag unpaid invoices whose due date has passed.

    Returns:
        One entry per invoice changed: tenant, id, number, due date
    """
    today = today or dt.date.today()
    with tracer.start_as_current_span("mark_overdue_invoices") as span:
        criteria = [Invoice.status.in_(OVERDUE_CANDIDATES), Invoice.due_date < today]
        if tenant:
            criteria.append(Invoice.tenant == tenant)

        result = await db.execute(select(Invoice).where(and_(*criteria)).with_for_update())
        changed = []
        for invoice in result.scalars().all():
            invoice.status = InvoiceStatus.OVERDUE.value
            changed.append({
                "tenant": invoice.tenant,
                "invoice_id": invoice.id,
                "invoice_number": invoice.invoice_number,
                "due_date": invoice.due_date.isoformat(),
                "balance_cents": invoice.total_cents - invoice.amount_paid_cents,
            })
        await db.flush()

        if changed:
            status_transitions_total.labels(doc_type="invoice", status="overdue").inc(len(changed))
        span.set_attribute("invoices_marked", len(changed))
        logger.info("Overdue invoices marked", tenant=tenant or "*", count=len(changed), today=today.isoformat())
        return changed


async def expire_quotes(
    db: AsyncSession, today: Optional[dt.date] = None, tenant: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Expire sent quotes whose validity has lapsed."""
    today = today or dt.date.today()
    with tracer.start_as_current_span("expire_quotes") as span:
        criteria = [
            Quote.status == QuoteStatus.SENT.value,
            Quote.expiry_date.is_not(None),
            Quote.expiry_date < today,
        ]
        if tenant:
            criteria.append(Quote.tenant == tenant)

        result = await db.execute(select(Quote).where(and_(*criteria)).with_for_update())
        changed = []
        for quote in result.scalars().all():
            quote.status = QuoteStatus.EXPIRED.value
            changed.append({
                "tenant": quote.tenant,
                "quote_id": quote.id,
                "quote_number": quote.quote_number,
                "expiry_date": quote.expiry_date.isoformat(),
            })
        await db.flush()

        if changed:
            status_transitions_total.labels(doc_type="quote", status="expired").inc(len(changed))
        span.set_attribute("quotes_expired", len(changed))
        logger.info("Quotes expired", tenant=tenant or "*", count=len(changed), today=today.isoformat())
        return changed


async def low_stock_report(db: AsyncSession, tenant: Optional[str] = None) -> List[Dict[str, Any]]:
    """List active items at or below their reorder point with a suggested order quantity."""
    criteria = [
        InventoryItem.active.is_(True),
        InventoryItem.current_stock <= InventoryItem.reorder_point,
    ]
    if tenant:
        criteria.append(InventoryItem.tenant == tenant)

    result = await db.execute(
        select(InventoryItem)
        .where(and_(*criteria))
        .order_by(InventoryItem.tenant, InventoryItem.sku)
    )
    rows = [
        {
            "tenant": item.tenant,
            "inventory_item_id": item.id,
            "sku": item.sku,
            "name": item.name,
            "current_stock": item.current_stock,
            "reorder_point": item.reorder_point,
            "suggested_order_quantity": max(
                item.reorder_quantity, item.reorder_point - item.current_stock
            ),
            "preferred_supplier_id": item.preferred_supplier_id,
        }
        for item in result.scalars().all()
    ]
    if rows:
        logger.warning("Low stock items found", tenant=tenant or "*", count=len(rows))
    return rows


async def run_nightly_maintenance(
    db: AsyncSession, today: Optional[dt.date] = None, tenant: Optional[str] = None
) -> Dict[str, Any]:
    """Run every nightly job in one session and return a summary."""
    today = today or dt.date.today()
    overdue = await mark_overdue_invoices(db, today, tenant)
    expired = await expire_quotes(db, today, tenant)
    low_stock = await low_stock_report(db, tenant)
    return {
        "date": today.isoformat(),
        "overdue_invoices": overdue,
        "expired_quotes": expired,
        "low_stock": low_stock,
    }
