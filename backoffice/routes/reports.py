"""Report endpoints with JSON and CSV output."""

from typing import Literal, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from backoffice.observability.tracing import get_tracer
from backoffice.routes.deps import RequestContext, get_context
from backoffice.schemas.reports import ReportFilters, ReportResponse, ReportType
from backoffice.services.reporting import ReportingService, to_csv


router = APIRouter()
tracer = get_tracer(__name__)


@router.get("/{report_type}", response_model=ReportResponse)
async def get_report(
    report_type: ReportType,
    filters: ReportFilters = Depends(),
    output_format: Literal["json", "csv"] = Query("json", alias="format"),
    ctx: RequestContext = Depends(get_context),
) -> Union[ReportResponse, PlainTextResponse]:
    """
    Generate a report for the current tenant.

    Args:
        report_type: One of revenue, sales_by_customer, sales_by_item,
            project_profitability, expenses_by_category, quotes_conversion
        filters: Date range, customer, project, status, grouping and sort order
        output_format: ``json`` (default) or ``csv``

    Returns:
        ReportResponse, or a CSV attachment of its rows
    """
    with tracer.start_as_current_span("route_report") as span:
        span.set_attribute("tenant", ctx.tenant)
        span.set_attribute("report_type", report_type.value)
        span.set_attribute("format", output_format)

        report = await ReportingService(ctx.db, ctx.tenant).generate(report_type, filters)
        if output_format == "csv":
            return PlainTextResponse(
                to_csv(report),
                media_type="text/csv",
                headers={"Content-Disposition": f'attachment; filename="{report_type.value}.csv"'},
            )
        return report
