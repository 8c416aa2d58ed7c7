# ==== REPORTING SERVICE ==== #

"""
Business reports aggregated per tenant.

Grouping by customer, category or status happens in SQL. Period buckets
(day, week, month, quarter, year) are computed in Python so the same code
runs on PostgreSQL and SQLite.
"""

import csv
import datetime as dt
import io
from collections import OrderedDict, defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.pricing import round_half_up
from backoffice.business.statuses import InvoiceStatus, PurchaseOrderStatus, QuoteStatus, TimesheetStatus
from backoffice.observability.logging import ContextualLogger
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.reports import GroupBy, ReportFilters, ReportResponse, ReportType
from backoffice.storage.models import (
    CatalogItem,
    Customer,
    Employee,
    Expense,
    Invoice,
    InvoiceItem,
    Project,
    PurchaseOrder,
    Quote,
    Timesheet,
)


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

# Quotes that have left negotiation, used as the conversion-rate denominator
DECIDED_QUOTE_STATUSES = (
    QuoteStatus.ACCEPTED.value,
    QuoteStatus.CONVERTED.value,
    QuoteStatus.REJECTED.value,
    QuoteStatus.EXPIRED.value,
)

# CSV header per report, in row key order, so empty reports still export one
REPORT_COLUMNS: Dict[ReportType, List[str]] = {
    ReportType.REVENUE: [
        "period", "invoice_count", "total_cents", "paid_cents", "unpaid_cents", "paid_percentage",
    ],
    ReportType.SALES_BY_CUSTOMER: [
        "customer_id", "customer_name", "invoice_count", "total_cents", "paid_cents", "outstanding_cents",
    ],
    ReportType.SALES_BY_ITEM: ["catalog_item_id", "item", "line_count", "quantity", "revenue_cents"],
    ReportType.PROJECT_PROFITABILITY: [
        "project_id", "project_name", "status", "budget_cents", "revenue_cents", "expense_cents",
        "purchase_cents", "labour_hours", "labour_cents", "total_cost_cents", "profit_cents",
        "margin_percentage",
    ],
    ReportType.EXPENSES_BY_CATEGORY: ["category", "expense_count", "total_cents", "share_percentage"],
    ReportType.QUOTES_CONVERSION: ["status", "quote_count", "total_cents"],
}


def period_key(value: dt.date, group_by: GroupBy) -> str:
    """Bucket label for a date: ``2025-03-14``, ``2025-W11``, ``2025-03``, ``2025-Q1``, ``2025``."""
    group_by = GroupBy(group_by)
    if group_by == GroupBy.DAY:
        return value.isoformat()
    if group_by == GroupBy.WEEK:
        year, week, _ = value.isocalendar()
        return f"{year}-W{week:02d}"
    if group_by == GroupBy.MONTH:
        return f"{value.year}-{value.month:02d}"
    if group_by == GroupBy.QUARTER:
        return f"{value.year}-Q{(value.month - 1) // 3 + 1}"
    return str(value.year)


def percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def to_csv(report: ReportResponse) -> str:
    """Render report rows as CSV.

    The header comes from the report's declared columns, followed by any
    extra row keys. Without declared columns it is taken from the rows.
    """
    fieldnames: List[str] = list(report.columns)
    if not fieldnames and not report.rows:
        return ""

    buffer = io.StringIO()
    for row in report.rows:
        fieldnames.extend(key for key in row.keys() if key not in fieldnames)

    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    writer.writerows(report.rows)
    return buffer.getvalue()


class ReportingService:
    """Aggregated reports for one tenant."""

    def __init__(self, db: AsyncSession, tenant: str):
        self.db = db
        self.tenant = tenant

    async def generate(self, report_type: ReportType, filters: ReportFilters) -> ReportResponse:
        builders = {
            ReportType.REVENUE: self.revenue,
            ReportType.SALES_BY_CUSTOMER: self.sales_by_customer,
            ReportType.SALES_BY_ITEM: self.sales_by_item,
            ReportType.PROJECT_PROFITABILITY: self.project_profitability,
            ReportType.EXPENSES_BY_CATEGORY: self.expenses_by_category,
            ReportType.QUOTES_CONVERSION: self.quotes_conversion,
        }
        report_type = ReportType(report_type)

        with tracer.start_as_current_span("report_generate") as span:
            span.set_attribute("tenant", self.tenant)
            span.set_attribute("report_type", report_type.value)

            rows, summary = await builders[report_type](filters)
            span.set_attribute("rows", len(rows))
            logger.info("Report generated", tenant=self.tenant, report_type=report_type.value, rows=len(rows))

            return ReportResponse(
                report_type=report_type,
                generated_at=dt.datetime.now(dt.timezone.utc),
                filters=filters.model_dump(mode="json", exclude_none=True),
                columns=list(REPORT_COLUMNS[report_type]),
                rows=rows,
                summary=summary,
            )

    # --► FILTER HELPERS

    def _invoice_criteria(self, filters: ReportFilters) -> list:
        criteria = [Invoice.tenant == self.tenant, Invoice.status != InvoiceStatus.CANCELLED.value]
        if filters.start_date:
            criteria.append(Invoice.issue_date >= filters.start_date)
        if filters.end_date:
            criteria.append(Invoice.issue_date <= filters.end_date)
        if filters.customer_id is not None:
            criteria.append(Invoice.customer_id == filters.customer_id)
        if filters.project_id is not None:
            criteria.append(Invoice.project_id == filters.project_id)
        if filters.status:
            criteria.append(Invoice.status == filters.status)
        return criteria

    @staticmethod
    def _date_range(column, filters: ReportFilters) -> list:
        criteria = []
        if filters.start_date:
            criteria.append(column >= filters.start_date)
        if filters.end_date:
            criteria.append(column <= filters.end_date)
        return criteria

    # ==== REPORTS ==== #

    async def revenue(self, filters: ReportFilters):
        query = select(Invoice.issue_date, Invoice.total_cents, Invoice.amount_paid_cents).where(
            and_(*self._invoice_criteria(filters))
        )
        result = await self.db.execute(query)

        buckets: Dict[str, Dict[str, int]] = defaultdict(lambda: {"count": 0, "total": 0, "paid": 0})
        for issue_date, total_cents, paid_cents in result.all():
            bucket = buckets[period_key(issue_date, filters.group_by)]
            bucket["count"] += 1
            bucket["total"] += total_cents
            bucket["paid"] += paid_cents

        rows = [
            {
                "period": period,
                "invoice_count": bucket["count"],
                "total_cents": bucket["total"],
                "paid_cents": bucket["paid"],
                "unpaid_cents": bucket["total"] - bucket["paid"],
                "paid_percentage": percentage(bucket["paid"], bucket["total"]),
            }
            for period, bucket in sorted(buckets.items(), reverse=filters.sort_order == "desc")
        ]

        total = sum(row["total_cents"] for row in rows)
        paid = sum(row["paid_cents"] for row in rows)
        summary = {
            "invoice_count": sum(row["invoice_count"] for row in rows),
            "total_cents": total,
            "paid_cents": paid,
            "unpaid_cents": total - paid,
            "paid_percentage": percentage(paid, total),
            "group_by": GroupBy(filters.group_by).value,
        }
        return rows, summary

    async def sales_by_customer(self, filters: ReportFilters):
        query = (
            select(
                Customer.id,
                Customer.name,
                func.count(Invoice.id),
                func.coalesce(func.sum(Invoice.total_cents), 0),
                func.coalesce(func.sum(Invoice.amount_paid_cents), 0),
            )
            .join(Invoice, Invoice.customer_id == Customer.id)
            .where(and_(*self._invoice_criteria(filters)))
            .group_by(Customer.id, Customer.name)
        )
        result = await self.db.execute(query)

        rows = [
            {
                "customer_id": customer_id,
                "customer_name": name,
                "invoice_count": count,
                "total_cents": int(total),
                "paid_cents": int(paid),
                "outstanding_cents": int(total) - int(paid),
            }
            for customer_id, name, count, total, paid in result.all()
        ]
        rows.sort(key=lambda row: (-row["total_cents"], row["customer_name"]))

        summary = {
            "customers": len(rows),
            "total_cents": sum(row["total_cents"] for row in rows),
            "outstanding_cents": sum(row["outstanding_cents"] for row in rows),
        }
        return rows, summary

    async def sales_by_item(self, filters: ReportFilters):
        query = (
            select(
                InvoiceItem.catalog_item_id,
                CatalogItem.name,
                InvoiceItem.description,
                InvoiceItem.quantity,
                InvoiceItem.total_cents,
            )
            .join(Invoice, InvoiceItem.invoice_id == Invoice.id)
            .outerjoin(CatalogItem, InvoiceItem.catalog_item_id == CatalogItem.id)
            .where(and_(*self._invoice_criteria(filters)))
        )
        result = await self.db.execute(query)

        grouped: "OrderedDict[tuple, Dict[str, Any]]" = OrderedDict()
        for catalog_item_id, catalog_name, description, quantity, total_cents in result.all():
            if catalog_item_id is not None:
                key = ("catalog", catalog_item_id)
                label = catalog_name or description
            else:
                key = ("text", description.strip().lower())
                label = description.strip()

            row = grouped.setdefault(key, {
                "catalog_item_id": catalog_item_id,
                "item": label,
                "line_count": 0,
                "quantity": 0.0,
                "revenue_cents": 0,
            })
            row["line_count"] += 1
            row["quantity"] = round(row["quantity"] + quantity, 4)
            row["revenue_cents"] += total_cents

        rows = sorted(grouped.values(), key=lambda row: (-row["revenue_cents"], row["item"]))
        summary = {
            "items": len(rows),
            "revenue_cents": sum(row["revenue_cents"] for row in rows),
        }
        return rows, summary

    async def project_profitability(self, filters: ReportFilters):
        project_query = select(Project.id, Project.name, Project.status, Project.budget_cents).where(
            Project.tenant == self.tenant
        )
        if filters.project_id is not None:
            project_query = project_query.where(Project.id == filters.project_id)
        if filters.customer_id is not None:
            project_query = project_query.where(Project.customer_id == filters.customer_id)
        if filters.status:
            project_query = project_query.where(Project.status == filters.status)
        projects = (await self.db.execute(project_query.order_by(Project.id))).all()
        if not projects:
            return [], {"projects": 0}

        project_ids = [project.id for project in projects]

        revenue_criteria = [
            Invoice.tenant == self.tenant,
            Invoice.status != InvoiceStatus.CANCELLED.value,
            Invoice.project_id.in_(project_ids),
            *self._date_range(Invoice.issue_date, filters),
        ]
        revenue = dict((await self.db.execute(
            select(Invoice.project_id, func.sum(Invoice.total_cents))
            .where(and_(*revenue_criteria))
            .group_by(Invoice.project_id)
        )).all())

        expenses = dict((await self.db.execute(
            select(Expense.project_id, func.sum(Expense.amount_cents))
            .where(and_(
                Expense.tenant == self.tenant,
                Expense.project_id.in_(project_ids),
                *self._date_range(Expense.expense_date, filters),
            ))
            .group_by(Expense.project_id)
        )).all())

        purchases = dict((await self.db.execute(
            select(PurchaseOrder.project_id, func.sum(PurchaseOrder.total_cents))
            .where(and_(
                PurchaseOrder.tenant == self.tenant,
                PurchaseOrder.status != PurchaseOrderStatus.CANCELLED.value,
                PurchaseOrder.project_id.in_(project_ids),
                *self._date_range(PurchaseOrder.issue_date, filters),
            ))
            .group_by(PurchaseOrder.project_id)
        )).all())

        labour: Dict[int, int] = defaultdict(int)
        labour_hours: Dict[int, float] = defaultdict(float)
        timesheet_rows = await self.db.execute(
            select(Timesheet.project_id, Timesheet.hours, Employee.hourly_rate_cents)
            .join(Employee, Timesheet.employee_id == Employee.id)
            .where(and_(
                Timesheet.tenant == self.tenant,
                Timesheet.status == TimesheetStatus.APPROVED.value,
                Timesheet.project_id.in_(project_ids),
                *self._date_range(Timesheet.work_date, filters),
            ))
        )
        for project_id, hours, rate_cents in timesheet_rows.all():
            labour[project_id] += round_half_up(hours * rate_cents)
            labour_hours[project_id] += hours

        rows = []
        for project in projects:
            revenue_cents = int(revenue.get(project.id) or 0)
            expense_cents = int(expenses.get(project.id) or 0)
            purchase_cents = int(purchases.get(project.id) or 0)
            labour_cents = labour.get(project.id, 0)
            cost_cents = expense_cents + purchase_cents + labour_cents
            profit_cents = revenue_cents - cost_cents
            rows.append({
                "project_id": project.id,
                "project_name": project.name,
                "status": project.status,
                "budget_cents": project.budget_cents,
                "revenue_cents": revenue_cents,
                "expense_cents": expense_cents,
                "purchase_cents": purchase_cents,
                "labour_hours": round(labour_hours.get(project.id, 0.0), 2),
                "labour_cents": labour_cents,
                "total_cost_cents": cost_cents,
                "profit_cents": profit_cents,
                "margin_percentage": percentage(profit_cents, revenue_cents),
            })

        rows.sort(key=lambda row: row["profit_cents"], reverse=filters.sort_order == "desc")
        total_revenue = sum(row["revenue_cents"] for row in rows)
        total_profit = sum(row["profit_cents"] for row in rows)
        summary = {
            "projects": len(rows),
            "revenue_cents": total_revenue,
            "total_cost_cents": sum(row["total_cost_cents"] for row in rows),
            "profit_cents": total_profit,
            "margin_percentage": percentage(total_profit, total_revenue),
        }
        return rows, summary

    async def expenses_by_category(self, filters: ReportFilters):
        criteria = [Expense.tenant == self.tenant, *self._date_range(Expense.expense_date, filters)]
        if filters.project_id is not None:
            criteria.append(Expense.project_id == filters.project_id)

        result = await self.db.execute(
            select(Expense.category, func.count(Expense.id), func.sum(Expense.amount_cents))
            .where(and_(*criteria))
            .group_by(Expense.category)
        )
        grouped = [(category, count, int(total or 0)) for category, count, total in result.all()]
        grand_total = sum(total for _, _, total in grouped)

        rows = [
            {
                "category": category,
                "expense_count": count,
                "total_cents": total,
                "share_percentage": percentage(total, grand_total),
            }
            for category, count, total in sorted(grouped, key=lambda item: (-item[2], item[0]))
        ]
        summary = {"categories": len(rows), "total_cents": grand_total}
        return rows, summary

    async def quotes_conversion(self, filters: ReportFilters):
        criteria = [Quote.tenant == self.tenant, *self._date_range(Quote.issue_date, filters)]
        if filters.customer_id is not None:
            criteria.append(Quote.customer_id == filters.customer_id)
        if filters.project_id is not None:
            criteria.append(Quote.project_id == filters.project_id)

        result = await self.db.execute(
            select(Quote.status, func.count(Quote.id), func.sum(Quote.total_cents))
            .where(and_(*criteria))
            .group_by(Quote.status)
        )
        by_status = {status: (count, int(total or 0)) for status, count, total in result.all()}

        rows = [
            {
                "status": status.value,
                "quote_count": by_status.get(status.value, (0, 0))[0],
                "total_cents": by_status.get(status.value, (0, 0))[1],
            }
            for status in QuoteStatus
        ]

        total_quotes = sum(row["quote_count"] for row in rows)
        converted = by_status.get(QuoteStatus.CONVERTED.value, (0, 0))
        decided = sum(by_status.get(status, (0, 0))[0] for status in DECIDED_QUOTE_STATUSES)
        decided_value = sum(by_status.get(status, (0, 0))[1] for status in DECIDED_QUOTE_STATUSES)
        summary = {
            "quote_count": total_quotes,
            "decided_count": decided,
            "converted_count": converted[0],
            "converted_value_cents": converted[1],
            "conversion_rate": percentage(converted[0], decided),
            "value_conversion_rate": percentage(converted[1], decided_value),
        }
        return rows, summary


async def generate_report(
    db: AsyncSession,
    tenant: str,
    report_type: ReportType,
    filters: Optional[ReportFilters] = None,
) -> ReportResponse:
    return await ReportingService(db, tenant).generate(report_type, filters or ReportFilters())
