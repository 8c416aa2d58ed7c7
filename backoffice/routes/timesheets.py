"""Timesheet entry and approval."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.business.statuses import TimesheetStatus
from backoffice.routes.deps import (
    Pagination,
    RequestContext,
    get_context,
    get_manager_context,
    get_pagination,
    to_page,
)
from backoffice.schemas.common import Page
from backoffice.schemas.people import TimesheetCreate, TimesheetDecision, TimesheetResponse, TimesheetUpdate
from backoffice.services import timesheets as timesheet_service
from backoffice.storage.models import Timesheet
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.post("", response_model=TimesheetResponse, status_code=201)
async def create_timesheet(
    payload: TimesheetCreate,
    ctx: RequestContext = Depends(get_context),
) -> TimesheetResponse:
    """Log hours; ``hours`` is derived from start, end and break."""
    timesheet = await timesheet_service.create_timesheet(ctx.db, ctx.tenant, payload)
    return TimesheetResponse.model_validate(timesheet)


@router.get("", response_model=Page[TimesheetResponse])
async def list_timesheets(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    employee_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
    status: Optional[TimesheetStatus] = Query(None),
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
) -> Page[TimesheetResponse]:
    filters = []
    if employee_id is not None:
        filters.append(Timesheet.employee_id == employee_id)
    if project_id is not None:
        filters.append(Timesheet.project_id == project_id)
    if status:
        filters.append(Timesheet.status == status.value)
    if start_date:
        filters.append(Timesheet.work_date >= start_date)
    if end_date:
        filters.append(Timesheet.work_date <= end_date)

    items, total = await TenantRepository(Timesheet, ctx.db, ctx.tenant).list(
        filters=filters,
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(Timesheet.work_date.desc(), Timesheet.id.desc()),
    )
    return to_page(items, total, pagination, TimesheetResponse)


@router.get("/{timesheet_id}", response_model=TimesheetResponse)
async def get_timesheet(timesheet_id: int, ctx: RequestContext = Depends(get_context)) -> TimesheetResponse:
    timesheet = await TenantRepository(Timesheet, ctx.db, ctx.tenant).get_or_404(timesheet_id)
    return TimesheetResponse.model_validate(timesheet)


@router.patch("/{timesheet_id}", response_model=TimesheetResponse)
async def update_timesheet(
    timesheet_id: int,
    payload: TimesheetUpdate,
    ctx: RequestContext = Depends(get_context),
) -> TimesheetResponse:
    timesheet = await timesheet_service.update_timesheet(ctx.db, ctx.tenant, timesheet_id, payload)
    return TimesheetResponse.model_validate(timesheet)


@router.post("/{timesheet_id}/decision", response_model=TimesheetResponse)
async def decide_timesheet(
    timesheet_id: int,
    payload: TimesheetDecision,
    ctx: RequestContext = Depends(get_manager_context),
) -> TimesheetResponse:
    """Approve or reject a pending timesheet. Managers and admins only."""
    timesheet = await timesheet_service.decide_timesheet(ctx.db, ctx.tenant, timesheet_id, payload, ctx.actor)
    return TimesheetResponse.model_validate(timesheet)


@router.delete("/{timesheet_id}", status_code=204)
async def delete_timesheet(timesheet_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await timesheet_service.delete_timesheet(ctx.db, ctx.tenant, timesheet_id)
    return Response(status_code=204)
