"""Purchase order endpoints, including goods receipt into inventory."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from backoffice.business.statuses import PurchaseOrderStatus
from backoffice.observability.tracing import get_tracer
from backoffice.routes.deps import (
    Pagination,
    RequestContext,
    get_context,
    get_document_service,
    get_pagination,
    pdf_response,
    to_page,
)
from backoffice.schemas.common import Page
from backoffice.schemas.documents import (
    EmailDocumentRequest,
    EmailDocumentResponse,
    PurchaseOrderCreate,
    PurchaseOrderResponse,
    PurchaseOrderUpdate,
    ReceiveRequest,
)
from backoffice.services.documents import DOC_PURCHASE_ORDER, DocumentService
from backoffice.services.purchasing import PurchaseOrderService
from backoffice.storage.models import PurchaseOrder
from backoffice.storage.repository import TenantRepository


router = APIRouter()
tracer = get_tracer(__name__)


def _service(ctx: RequestContext) -> PurchaseOrderService:
    return PurchaseOrderService(ctx.db, ctx.tenant, ctx.user_id)


@router.post("", response_model=PurchaseOrderResponse, status_code=201)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    ctx: RequestContext = Depends(get_context),
) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await _service(ctx).create(payload))


@router.get("", response_model=Page[PurchaseOrderResponse])
async def list_purchase_orders(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search PO number or supplier reference"),
    status: Optional[PurchaseOrderStatus] = Query(None),
    supplier_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
) -> Page[PurchaseOrderResponse]:
    filters = []
    if status:
        filters.append(PurchaseOrder.status == status.value)
    if supplier_id is not None:
        filters.append(PurchaseOrder.supplier_id == supplier_id)
    if project_id is not None:
        filters.append(PurchaseOrder.project_id == project_id)

    items, total = await TenantRepository(PurchaseOrder, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("po_number", "supplier_reference"),
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return to_page(items, total, pagination, PurchaseOrderResponse)


@router.get("/{po_id}", response_model=PurchaseOrderResponse)
async def get_purchase_order(po_id: int, ctx: RequestContext = Depends(get_context)) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await _service(ctx).get(po_id))


@router.patch("/{po_id}", response_model=PurchaseOrderResponse)
async def update_purchase_order(
    po_id: int,
    payload: PurchaseOrderUpdate,
    ctx: RequestContext = Depends(get_context),
) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await _service(ctx).update(po_id, payload))


@router.delete("/{po_id}", status_code=204)
async def delete_purchase_order(po_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await _service(ctx).delete(po_id)
    return Response(status_code=204)


@router.post("/{po_id}/issue", response_model=PurchaseOrderResponse)
async def issue_purchase_order(po_id: int, ctx: RequestContext = Depends(get_context)) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await _service(ctx).issue(po_id))


@router.post("/{po_id}/cancel", response_model=PurchaseOrderResponse)
async def cancel_purchase_order(po_id: int, ctx: RequestContext = Depends(get_context)) -> PurchaseOrderResponse:
    return PurchaseOrderResponse.model_validate(await _service(ctx).cancel(po_id))


@router.post("/{po_id}/receive", response_model=PurchaseOrderResponse)
async def receive_purchase_order(
    po_id: int,
    payload: ReceiveRequest,
    ctx: RequestContext = Depends(get_context),
) -> PurchaseOrderResponse:
    """Receive goods against an issued order; linked inventory items are restocked."""
    with tracer.start_as_current_span("route_receive_purchase_order") as span:
        span.set_attribute("tenant", ctx.tenant)
        span.set_attribute("po_id", po_id)
        order = await _service(ctx).receive(po_id, payload)
        return PurchaseOrderResponse.model_validate(order)


@router.get("/{po_id}/pdf")
async def download_purchase_order_pdf(
    po_id: int,
    documents: DocumentService = Depends(get_document_service),
) -> Response:
    file_name, content = await documents.render_pdf(DOC_PURCHASE_ORDER, po_id)
    return pdf_response(file_name, content)


@router.post("/{po_id}/email", response_model=EmailDocumentResponse)
async def email_purchase_order(
    po_id: int,
    payload: Optional[EmailDocumentRequest] = None,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    documents: DocumentService = Depends(get_document_service),
) -> EmailDocumentResponse:
    return await documents.email(
        DOC_PURCHASE_ORDER, po_id, payload or EmailDocumentRequest(), idempotency_key
    )
