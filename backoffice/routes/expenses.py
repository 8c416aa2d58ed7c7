"""Expense endpoints."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.routes.deps import (
    Pagination,
    RequestContext,
    get_context,
    get_manager_context,
    get_pagination,
    to_page,
)
from backoffice.schemas.common import Page
from backoffice.schemas.people import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from backoffice.services import expenses as expense_service
from backoffice.storage.models import Expense
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(payload: ExpenseCreate, ctx: RequestContext = Depends(get_context)) -> ExpenseResponse:
    expense = await expense_service.create_expense(ctx.db, ctx.tenant, payload, ctx.user_id)
    return ExpenseResponse.model_validate(expense)


@router.get("", response_model=Page[ExpenseResponse])
async def list_expenses(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None),
    approved: Optional[bool] = Query(None),
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
) -> Page[ExpenseResponse]:
    filters = []
    if category:
        filters.append(Expense.category == category)
    if project_id is not None:
        filters.append(Expense.project_id == project_id)
    if approved is not None:
        filters.append(Expense.approved.is_(approved))
    if start_date:
        filters.append(Expense.expense_date >= start_date)
    if end_date:
        filters.append(Expense.expense_date <= end_date)

    items, total = await TenantRepository(Expense, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("description",),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(Expense.expense_date.desc(), Expense.id.desc()),
    )
    return to_page(items, total, pagination, ExpenseResponse)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(expense_id: int, ctx: RequestContext = Depends(get_context)) -> ExpenseResponse:
    expense = await TenantRepository(Expense, ctx.db, ctx.tenant).get_or_404(expense_id)
    return ExpenseResponse.model_validate(expense)


@router.patch("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    ctx: RequestContext = Depends(get_context),
) -> ExpenseResponse:
    expense = await expense_service.update_expense(ctx.db, ctx.tenant, expense_id, payload)
    return ExpenseResponse.model_validate(expense)


@router.post("/{expense_id}/approve", response_model=ExpenseResponse)
async def approve_expense(expense_id: int, ctx: RequestContext = Depends(get_manager_context)) -> ExpenseResponse:
    expense = await expense_service.approve_expense(ctx.db, ctx.tenant, expense_id, ctx.actor)
    return ExpenseResponse.model_validate(expense)


@router.delete("/{expense_id}", status_code=204)
async def delete_expense(expense_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await expense_service.delete_expense(ctx.db, ctx.tenant, expense_id)
    return Response(status_code=204)
