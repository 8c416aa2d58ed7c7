"""Dashboard summary endpoint."""

from fastapi import APIRouter, Depends

from backoffice.routes.deps import RequestContext, get_context
from backoffice.schemas.reports import DashboardSummary
from backoffice.services.dashboard import dashboard_summary


router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def get_dashboard_summary(ctx: RequestContext = Depends(get_context)) -> DashboardSummary:
    return await dashboard_summary(ctx.db, ctx.tenant)
