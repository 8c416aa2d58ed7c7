"""Employee records."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.people import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from backoffice.services.parties import ensure_unreferenced
from backoffice.storage.models import Employee, Timesheet
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.post("", response_model=EmployeeResponse, status_code=201)
async def create_employee(payload: EmployeeCreate, ctx: RequestContext = Depends(get_context)) -> EmployeeResponse:
    employee = await TenantRepository(Employee, ctx.db, ctx.tenant).create(**payload.model_dump())
    return EmployeeResponse.model_validate(employee)


@router.get("", response_model=Page[EmployeeResponse])
async def list_employees(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
) -> Page[EmployeeResponse]:
    filters = []
    if department:
        filters.append(Employee.department == department)
    if active is not None:
        filters.append(Employee.active.is_(active))

    items, total = await TenantRepository(Employee, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("full_name", "email", "position"),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(Employee.full_name.asc(),),
    )
    return to_page(items, total, pagination, EmployeeResponse)


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: int, ctx: RequestContext = Depends(get_context)) -> EmployeeResponse:
    employee = await TenantRepository(Employee, ctx.db, ctx.tenant).get_or_404(employee_id)
    return EmployeeResponse.model_validate(employee)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    ctx: RequestContext = Depends(get_context),
) -> EmployeeResponse:
    repo = TenantRepository(Employee, ctx.db, ctx.tenant)
    employee = await repo.get_or_404(employee_id)
    employee = await repo.update(employee, **payload.model_dump(exclude_unset=True))
    return EmployeeResponse.model_validate(employee)


@router.delete("/{employee_id}", status_code=204)
async def delete_employee(employee_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    """Delete an employee with no timesheets; otherwise deactivate instead."""
    repo = TenantRepository(Employee, ctx.db, ctx.tenant)
    employee = await repo.get_or_404(employee_id)
    await ensure_unreferenced(ctx.db, ctx.tenant, employee, ((Timesheet, "employee_id"),))
    await repo.delete(employee)
    return Response(status_code=204)
