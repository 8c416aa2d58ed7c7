"""Supplier endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.parties import SupplierCreate, SupplierResponse, SupplierUpdate
from backoffice.services.parties import delete_supplier
from backoffice.storage.models import Supplier
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier(
    payload: SupplierCreate,
    ctx: RequestContext = Depends(get_context),
) -> SupplierResponse:
    supplier = await TenantRepository(Supplier, ctx.db, ctx.tenant).create(**payload.model_dump())
    return SupplierResponse.model_validate(supplier)


@router.get("", response_model=Page[SupplierResponse])
async def list_suppliers(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search name, contact or email"),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
) -> Page[SupplierResponse]:
    filters = []
    if category:
        filters.append(Supplier.category == category)
    if active is not None:
        filters.append(Supplier.active.is_(active))

    items, total = await TenantRepository(Supplier, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("name", "contact_name", "email"),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(Supplier.name.asc(),),
    )
    return to_page(items, total, pagination, SupplierResponse)


@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(supplier_id: int, ctx: RequestContext = Depends(get_context)) -> SupplierResponse:
    supplier = await TenantRepository(Supplier, ctx.db, ctx.tenant).get_or_404(supplier_id)
    return SupplierResponse.model_validate(supplier)


@router.patch("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    ctx: RequestContext = Depends(get_context),
) -> SupplierResponse:
    repo = TenantRepository(Supplier, ctx.db, ctx.tenant)
    supplier = await repo.get_or_404(supplier_id)
    supplier = await repo.update(supplier, **payload.model_dump(exclude_unset=True))
    return SupplierResponse.model_validate(supplier)


@router.delete("/{supplier_id}", status_code=204)
async def remove_supplier(supplier_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await delete_supplier(ctx.db, ctx.tenant, supplier_id)
    return Response(status_code=204)
