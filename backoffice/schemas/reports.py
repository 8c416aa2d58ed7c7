"""Pydantic schemas for reports and the dashboard summary."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ReportType(str, Enum):
    REVENUE = "revenue"
    SALES_BY_CUSTOMER = "sales_by_customer"
    SALES_BY_ITEM = "sales_by_item"
    PROJECT_PROFITABILITY = "project_profitability"
    EXPENSES_BY_CATEGORY = "expenses_by_category"
    QUOTES_CONVERSION = "quotes_conversion"


class GroupBy(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class ReportFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    customer_id: Optional[int] = None
    project_id: Optional[int] = None
    status: Optional[str] = None
    group_by: GroupBy = GroupBy.MONTH
    sort_order: str = Field("asc", pattern="^(asc|desc)$")


class ReportResponse(BaseModel):
    report_type: ReportType
    generated_at: datetime
    filters: Dict[str, Any]
    columns: List[str] = Field(default_factory=list)
    rows: List[Dict[str, Any]]
    summary: Dict[str, Any] = Field(default_factory=dict)


class DashboardSummary(BaseModel):
    customers: int
    active_projects: int
    open_quotes: int
    open_quotes_value_cents: int
    outstanding_receivables_cents: int
    overdue_invoices: int
    overdue_value_cents: int
    revenue_this_month_cents: int
    low_stock_items: int
    pending_timesheets: int
