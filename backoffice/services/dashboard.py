"""Headline numbers for the back office dashboard."""

import datetime as dt
from typing import Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.statuses import InvoiceStatus, ProjectStatus, QuoteStatus, TimesheetStatus
from backoffice.schemas.reports import DashboardSummary
from backoffice.storage.models import Customer, InventoryItem, Invoice, Project, Quote, Timesheet


OPEN_INVOICE_STATUSES = (
    InvoiceStatus.ISSUED.value,
    InvoiceStatus.PARTIALLY_PAID.value,
    InvoiceStatus.OVERDUE.value,
)
CLOSED_PROJECT_STATUSES = (ProjectStatus.COMPLETED.value, ProjectStatus.CANCELLED.value)
OPEN_QUOTE_STATUSES = (QuoteStatus.DRAFT.value, QuoteStatus.SENT.value, QuoteStatus.ACCEPTED.value)


async def _scalar(db: AsyncSession, query) -> int:
    return int((await db.execute(query)).scalar() or 0)


async def dashboard_summary(
    db: AsyncSession, tenant: str, today: Optional[dt.date] = None
) -> DashboardSummary:
    """Compute the dashboard counters for a tenant.

    Args:
        db: Active session
        tenant: Tenant identifier
        today: Reference date for "this month" and overdue checks

    Returns:
        DashboardSummary
    """
    today = today or dt.date.today()
    month_start = today.replace(day=1)

    customers = await _scalar(db, select(func.count(Customer.id)).where(Customer.tenant == tenant))
    active_projects = await _scalar(db, select(func.count(Project.id)).where(and_(
        Project.tenant == tenant, Project.status.not_in(CLOSED_PROJECT_STATUSES)
    )))

    open_quotes_row = (await db.execute(
        select(func.count(Quote.id), func.coalesce(func.sum(Quote.total_cents), 0))
        .where(and_(Quote.tenant == tenant, Quote.status.in_(OPEN_QUOTE_STATUSES)))
    )).one()

    outstanding = await _scalar(db, select(
        func.coalesce(func.sum(Invoice.total_cents - Invoice.amount_paid_cents), 0)
    ).where(and_(Invoice.tenant == tenant, Invoice.status.in_(OPEN_INVOICE_STATUSES))))

    # Overdue by date as well as by status, so the figure is right before the nightly job runs
    overdue_row = (await db.execute(
        select(
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.total_cents - Invoice.amount_paid_cents), 0),
        ).where(and_(
            Invoice.tenant == tenant,
            Invoice.status.in_(OPEN_INVOICE_STATUSES),
            Invoice.due_date < today,
        ))
    )).one()

    revenue_this_month = await _scalar(db, select(
        func.coalesce(func.sum(Invoice.total_cents), 0)
    ).where(and_(
        Invoice.tenant == tenant,
        Invoice.status.not_in((InvoiceStatus.DRAFT.value, InvoiceStatus.CANCELLED.value)),
        Invoice.issue_date >= month_start,
        Invoice.issue_date <= today,
    )))

    low_stock = await _scalar(db, select(func.count(InventoryItem.id)).where(and_(
        InventoryItem.tenant == tenant,
        InventoryItem.active.is_(True),
        InventoryItem.current_stock <= InventoryItem.reorder_point,
    )))

    pending_timesheets = await _scalar(db, select(func.count(Timesheet.id)).where(and_(
        Timesheet.tenant == tenant, Timesheet.status == TimesheetStatus.PENDING.value
    )))

    return DashboardSummary(
        customers=customers,
        active_projects=active_projects,
        open_quotes=int(open_quotes_row[0]),
        open_quotes_value_cents=int(open_quotes_row[1]),
        outstanding_receivables_cents=outstanding,
        overdue_invoices=int(overdue_row[0]),
        overdue_value_cents=int(overdue_row[1]),
        revenue_this_month_cents=revenue_this_month,
        low_stock_items=low_stock,
        pending_timesheets=pending_timesheets,
    )
