"""Inventory items and stock movements."""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.business.statuses import InventoryTransactionType
from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    InventoryTransactionCreate,
    InventoryTransactionResponse,
)
from backoffice.services import inventory as inventory_service
from backoffice.storage.models import InventoryItem, InventoryTransaction
from backoffice.storage.repository import TenantRepository


router = APIRouter()


# ==== ITEMS ==== #


@router.post("/items", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    payload: InventoryItemCreate,
    ctx: RequestContext = Depends(get_context),
) -> InventoryItemResponse:
    item = await inventory_service.create_item(ctx.db, ctx.tenant, payload)
    return InventoryItemResponse.model_validate(item)


@router.get("/items", response_model=Page[InventoryItemResponse])
async def list_items(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search name or SKU"),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
) -> Page[InventoryItemResponse]:
    filters = []
    if category:
        filters.append(InventoryItem.category == category)
    if active is not None:
        filters.append(InventoryItem.active.is_(active))

    items, total = await TenantRepository(InventoryItem, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("name", "sku"),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(InventoryItem.sku.asc(),),
    )
    return to_page(items, total, pagination, InventoryItemResponse)


@router.get("/low-stock", response_model=List[InventoryItemResponse])
async def list_low_stock(ctx: RequestContext = Depends(get_context)) -> List[InventoryItemResponse]:
    """Active items at or below their reorder point."""
    items = await inventory_service.low_stock_items(ctx.db, ctx.tenant)
    return [InventoryItemResponse.model_validate(item) for item in items]


@router.get("/items/{item_id}", response_model=InventoryItemResponse)
async def get_item(item_id: int, ctx: RequestContext = Depends(get_context)) -> InventoryItemResponse:
    item = await TenantRepository(InventoryItem, ctx.db, ctx.tenant).get_or_404(item_id)
    return InventoryItemResponse.model_validate(item)


@router.patch("/items/{item_id}", response_model=InventoryItemResponse)
async def update_item(
    item_id: int,
    payload: InventoryItemUpdate,
    ctx: RequestContext = Depends(get_context),
) -> InventoryItemResponse:
    item = await inventory_service.update_item(ctx.db, ctx.tenant, item_id, payload)
    return InventoryItemResponse.model_validate(item)


@router.delete("/items/{item_id}", status_code=204)
async def delete_item(item_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await inventory_service.delete_item(ctx.db, ctx.tenant, item_id)
    return Response(status_code=204)


# ==== TRANSACTIONS ==== #


@router.post("/transactions", response_model=InventoryTransactionResponse, status_code=201)
async def create_transaction(
    payload: InventoryTransactionCreate,
    ctx: RequestContext = Depends(get_context),
) -> InventoryTransactionResponse:
    movement = await inventory_service.record_transaction(ctx.db, ctx.tenant, payload, ctx.user_id)
    return InventoryTransactionResponse.model_validate(movement)


@router.get("/transactions", response_model=Page[InventoryTransactionResponse])
async def list_transactions(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    inventory_item_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
    purchase_order_id: Optional[int] = Query(None),
    transaction_type: Optional[InventoryTransactionType] = Query(None),
    start_date: Optional[dt.date] = Query(None),
    end_date: Optional[dt.date] = Query(None),
) -> Page[InventoryTransactionResponse]:
    filters = []
    if inventory_item_id is not None:
        filters.append(InventoryTransaction.inventory_item_id == inventory_item_id)
    if project_id is not None:
        filters.append(InventoryTransaction.project_id == project_id)
    if purchase_order_id is not None:
        filters.append(InventoryTransaction.purchase_order_id == purchase_order_id)
    if transaction_type:
        filters.append(InventoryTransaction.transaction_type == transaction_type.value)
    if start_date:
        filters.append(InventoryTransaction.transaction_date >= dt.datetime.combine(start_date, dt.time.min))
    if end_date:
        filters.append(InventoryTransaction.transaction_date <= dt.datetime.combine(end_date, dt.time.max))

    items, total = await TenantRepository(InventoryTransaction, ctx.db, ctx.tenant).list(
        filters=filters,
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(InventoryTransaction.transaction_date.desc(), InventoryTransaction.id.desc()),
    )
    return to_page(items, total, pagination, InventoryTransactionResponse)
