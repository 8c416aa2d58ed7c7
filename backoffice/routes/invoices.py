"""Invoice endpoints: drafting, issuing, cancelling, payments and delivery."""

import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from backoffice.business.statuses import InvoiceStatus, InvoiceType
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
    InvoiceCreate,
    InvoiceResponse,
    InvoiceUpdate,
    LineItemIn,
    PaymentCreate,
    PaymentResponse,
)
from backoffice.services.documents import DOC_INVOICE, DocumentService
from backoffice.services.invoicing import InvoiceService
from backoffice.storage.models import Invoice
from backoffice.storage.repository import TenantRepository


router = APIRouter()


def _service(ctx: RequestContext) -> InvoiceService:
    return InvoiceService(ctx.db, ctx.tenant, ctx.user_id)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(payload: InvoiceCreate, ctx: RequestContext = Depends(get_context)) -> InvoiceResponse:
    """Create a draft invoice directly, without a quote."""
    return InvoiceResponse.model_validate(await _service(ctx).create(payload))


@router.get("", response_model=Page[InvoiceResponse])
async def list_invoices(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search invoice number or reference"),
    status: Optional[InvoiceStatus] = Query(None),
    invoice_type: Optional[InvoiceType] = Query(None),
    customer_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
    due_before: Optional[dt.date] = Query(None),
) -> Page[InvoiceResponse]:
    filters = []
    if status:
        filters.append(Invoice.status == status.value)
    if invoice_type:
        filters.append(Invoice.invoice_type == invoice_type.value)
    if customer_id is not None:
        filters.append(Invoice.customer_id == customer_id)
    if project_id is not None:
        filters.append(Invoice.project_id == project_id)
    if due_before is not None:
        filters.append(Invoice.due_date < due_before)

    items, total = await TenantRepository(Invoice, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("invoice_number", "reference"),
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return to_page(items, total, pagination, InvoiceResponse)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: int, ctx: RequestContext = Depends(get_context)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _service(ctx).get(invoice_id))


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    ctx: RequestContext = Depends(get_context),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _service(ctx).update(invoice_id, payload))


@router.put("/{invoice_id}/items", response_model=InvoiceResponse)
async def replace_invoice_items(
    invoice_id: int,
    items: List[LineItemIn],
    ctx: RequestContext = Depends(get_context),
) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _service(ctx).replace_items(invoice_id, items))


@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(invoice_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await _service(ctx).delete(invoice_id)
    return Response(status_code=204)


@router.post("/{invoice_id}/issue", response_model=InvoiceResponse)
async def issue_invoice(invoice_id: int, ctx: RequestContext = Depends(get_context)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _service(ctx).issue(invoice_id))


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(invoice_id: int, ctx: RequestContext = Depends(get_context)) -> InvoiceResponse:
    return InvoiceResponse.model_validate(await _service(ctx).cancel(invoice_id))


# ==== PAYMENTS ==== #


@router.post("/{invoice_id}/payments", response_model=PaymentResponse, status_code=201)
async def record_payment(
    invoice_id: int,
    payload: PaymentCreate,
    ctx: RequestContext = Depends(get_context),
) -> PaymentResponse:
    """Record a payment; the invoice moves to ``partially_paid`` or ``paid``."""
    payment = await _service(ctx).record_payment(invoice_id, payload)
    return PaymentResponse.model_validate(payment)


@router.get("/{invoice_id}/payments", response_model=List[PaymentResponse])
async def list_payments(invoice_id: int, ctx: RequestContext = Depends(get_context)) -> List[PaymentResponse]:
    payments = await _service(ctx).list_payments(invoice_id)
    return [PaymentResponse.model_validate(payment) for payment in payments]


# ==== DOCUMENTS ==== #


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(
    invoice_id: int,
    documents: DocumentService = Depends(get_document_service),
) -> Response:
    file_name, content = await documents.render_pdf(DOC_INVOICE, invoice_id)
    return pdf_response(file_name, content)


@router.post("/{invoice_id}/email", response_model=EmailDocumentResponse)
async def email_invoice(
    invoice_id: int,
    payload: Optional[EmailDocumentRequest] = None,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    documents: DocumentService = Depends(get_document_service),
) -> EmailDocumentResponse:
    return await documents.email(
        DOC_INVOICE, invoice_id, payload or EmailDocumentRequest(), idempotency_key
    )
