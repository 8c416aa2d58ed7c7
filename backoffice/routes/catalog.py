"""Catalog of sellable products and services."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.parties import CatalogItemCreate, CatalogItemResponse, CatalogItemUpdate
from backoffice.services.parties import delete_catalog_item
from backoffice.storage.models import CatalogItem
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.post("", response_model=CatalogItemResponse, status_code=201)
async def create_catalog_item(
    payload: CatalogItemCreate,
    ctx: RequestContext = Depends(get_context),
) -> CatalogItemResponse:
    item = await TenantRepository(CatalogItem, ctx.db, ctx.tenant).create(**payload.model_dump())
    return CatalogItemResponse.model_validate(item)


@router.get("", response_model=Page[CatalogItemResponse])
async def list_catalog_items(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
) -> Page[CatalogItemResponse]:
    filters = []
    if category:
        filters.append(CatalogItem.category == category)
    if active is not None:
        filters.append(CatalogItem.active.is_(active))

    items, total = await TenantRepository(CatalogItem, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("name", "description"),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(CatalogItem.name.asc(),),
    )
    return to_page(items, total, pagination, CatalogItemResponse)


@router.get("/{item_id}", response_model=CatalogItemResponse)
async def get_catalog_item(item_id: int, ctx: RequestContext = Depends(get_context)) -> CatalogItemResponse:
    item = await TenantRepository(CatalogItem, ctx.db, ctx.tenant).get_or_404(item_id)
    return CatalogItemResponse.model_validate(item)


@router.patch("/{item_id}", response_model=CatalogItemResponse)
async def update_catalog_item(
    item_id: int,
    payload: CatalogItemUpdate,
    ctx: RequestContext = Depends(get_context),
) -> CatalogItemResponse:
    repo = TenantRepository(CatalogItem, ctx.db, ctx.tenant)
    item = await repo.get_or_404(item_id)
    item = await repo.update(item, **payload.model_dump(exclude_unset=True))
    return CatalogItemResponse.model_validate(item)


@router.delete("/{item_id}", status_code=204)
async def remove_catalog_item(item_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await delete_catalog_item(ctx.db, ctx.tenant, item_id)
    return Response(status_code=204)
