"""Customer endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from backoffice.observability.tracing import get_tracer
from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.parties import CustomerCreate, CustomerResponse, CustomerUpdate
from backoffice.services.parties import delete_customer
from backoffice.storage.models import Customer
from backoffice.storage.repository import TenantRepository


router = APIRouter()
tracer = get_tracer(__name__)


@router.post("", response_model=CustomerResponse, status_code=201)
async def create_customer(
    payload: CustomerCreate,
    ctx: RequestContext = Depends(get_context),
) -> CustomerResponse:
    with tracer.start_as_current_span("create_customer") as span:
        span.set_attribute("tenant", ctx.tenant)
        customer = await TenantRepository(Customer, ctx.db, ctx.tenant).create(
            **payload.model_dump(), created_by=ctx.user_id
        )
        return CustomerResponse.model_validate(customer)


@router.get("", response_model=Page[CustomerResponse])
async def list_customers(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search name, email or phone"),
) -> Page[CustomerResponse]:
    items, total = await TenantRepository(Customer, ctx.db, ctx.tenant).list(
        search=q,
        search_columns=("name", "email", "phone"),
        page=pagination.page,
        page_size=pagination.page_size,
        order_by=(Customer.name.asc(),),
    )
    return to_page(items, total, pagination, CustomerResponse)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: int, ctx: RequestContext = Depends(get_context)) -> CustomerResponse:
    customer = await TenantRepository(Customer, ctx.db, ctx.tenant).get_or_404(customer_id)
    return CustomerResponse.model_validate(customer)


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    ctx: RequestContext = Depends(get_context),
) -> CustomerResponse:
    repo = TenantRepository(Customer, ctx.db, ctx.tenant)
    customer = await repo.get_or_404(customer_id)
    customer = await repo.update(customer, **payload.model_dump(exclude_unset=True))
    return CustomerResponse.model_validate(customer)


@router.delete("/{customer_id}", status_code=204)
async def remove_customer(customer_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    """Delete a customer. Customers with quotes, invoices or projects are kept (409)."""
    await delete_customer(ctx.db, ctx.tenant, customer_id)
    return Response(status_code=204)
