# ==== QUOTE ROUTES ==== #

"""
Quote lifecycle endpoints.

A quote is drafted and edited, sent, then accepted or rejected by the
customer. An accepted quote is converted exactly once into an invoice with
``POST /quotes/{id}/convert-to-invoice``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Response

from backoffice.business.statuses import QuoteStatus
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
    ConversionRequest,
    EmailDocumentRequest,
    EmailDocumentResponse,
    InvoiceResponse,
    LineItemIn,
    QuoteCreate,
    QuoteDecision,
    QuoteResponse,
    QuoteUpdate,
)
from backoffice.services.conversion import convert_quote_to_invoice
from backoffice.services.documents import DOC_QUOTE, DocumentService
from backoffice.services.quotes import QuoteService
from backoffice.storage.models import Quote
from backoffice.storage.repository import TenantRepository


router = APIRouter()
tracer = get_tracer(__name__)


def _service(ctx: RequestContext) -> QuoteService:
    return QuoteService(ctx.db, ctx.tenant, ctx.user_id)


# --► CRUD


@router.post("", response_model=QuoteResponse, status_code=201)
async def create_quote(payload: QuoteCreate, ctx: RequestContext = Depends(get_context)) -> QuoteResponse:
    quote = await _service(ctx).create(payload)
    return QuoteResponse.model_validate(quote)


@router.get("", response_model=Page[QuoteResponse])
async def list_quotes(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    q: Optional[str] = Query(None, description="Search quote number or reference"),
    status: Optional[QuoteStatus] = Query(None),
    customer_id: Optional[int] = Query(None),
    project_id: Optional[int] = Query(None),
) -> Page[QuoteResponse]:
    filters = []
    if status:
        filters.append(Quote.status == status.value)
    if customer_id is not None:
        filters.append(Quote.customer_id == customer_id)
    if project_id is not None:
        filters.append(Quote.project_id == project_id)

    items, total = await TenantRepository(Quote, ctx.db, ctx.tenant).list(
        filters=filters,
        search=q,
        search_columns=("quote_number", "reference"),
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return to_page(items, total, pagination, QuoteResponse)


@router.get("/{quote_id}", response_model=QuoteResponse)
async def get_quote(quote_id: int, ctx: RequestContext = Depends(get_context)) -> QuoteResponse:
    return QuoteResponse.model_validate(await _service(ctx).get(quote_id))


@router.patch("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    payload: QuoteUpdate,
    ctx: RequestContext = Depends(get_context),
) -> QuoteResponse:
    quote = await _service(ctx).update(quote_id, payload)
    return QuoteResponse.model_validate(quote)


@router.delete("/{quote_id}", status_code=204)
async def delete_quote(quote_id: int, ctx: RequestContext = Depends(get_context)) -> Response:
    await _service(ctx).delete(quote_id)
    return Response(status_code=204)


# --► Line items


@router.put("/{quote_id}/items", response_model=QuoteResponse)
async def replace_quote_items(
    quote_id: int,
    items: List[LineItemIn],
    ctx: RequestContext = Depends(get_context),
) -> QuoteResponse:
    quote = await _service(ctx).replace_items(quote_id, items)
    return QuoteResponse.model_validate(quote)


@router.post("/{quote_id}/items", response_model=QuoteResponse, status_code=201)
async def add_quote_item(
    quote_id: int,
    item: LineItemIn,
    ctx: RequestContext = Depends(get_context),
) -> QuoteResponse:
    quote = await _service(ctx).add_item(quote_id, item)
    return QuoteResponse.model_validate(quote)


@router.delete("/{quote_id}/items/{item_id}", response_model=QuoteResponse)
async def remove_quote_item(
    quote_id: int,
    item_id: int,
    ctx: RequestContext = Depends(get_context),
) -> QuoteResponse:
    quote = await _service(ctx).remove_item(quote_id, item_id)
    return QuoteResponse.model_validate(quote)


# --► Status changes


@router.post("/{quote_id}/send", response_model=QuoteResponse)
async def send_quote(quote_id: int, ctx: RequestContext = Depends(get_context)) -> QuoteResponse:
    """Mark a quote as sent without emailing it."""
    return QuoteResponse.model_validate(await _service(ctx).mark_sent(quote_id))


@router.post("/{quote_id}/accept", response_model=QuoteResponse)
async def accept_quote(
    quote_id: int,
    payload: Optional[QuoteDecision] = None,
    ctx: RequestContext = Depends(get_context),
) -> QuoteResponse:
    accepted_by = payload.accepted_by if payload and payload.accepted_by else ctx.actor
    return QuoteResponse.model_validate(await _service(ctx).accept(quote_id, accepted_by))


@router.post("/{quote_id}/reject", response_model=QuoteResponse)
async def reject_quote(quote_id: int, ctx: RequestContext = Depends(get_context)) -> QuoteResponse:
    return QuoteResponse.model_validate(await _service(ctx).reject(quote_id))


@router.post("/{quote_id}/convert-to-invoice", response_model=InvoiceResponse, status_code=201)
async def convert_to_invoice(
    quote_id: int,
    payload: Optional[ConversionRequest] = None,
    ctx: RequestContext = Depends(get_context),
) -> InvoiceResponse:
    """
    Convert an accepted quote into an issued invoice.

    The quote becomes ``converted`` and links to the new invoice in the same
    transaction; converting twice returns 409 ``QUOTE_NOT_ACCEPTED``.
    """
    payload = payload or ConversionRequest()
    with tracer.start_as_current_span("route_convert_quote") as span:
        span.set_attribute("tenant", ctx.tenant)
        span.set_attribute("quote_id", quote_id)
        invoice = await convert_quote_to_invoice(
            ctx.db,
            ctx.tenant,
            quote_id,
            invoice_type=payload.invoice_type,
            due_days=payload.due_days,
            user_id=ctx.user_id,
        )
        return InvoiceResponse.model_validate(invoice)


# --► Documents


@router.get("/{quote_id}/pdf")
async def download_quote_pdf(
    quote_id: int,
    documents: DocumentService = Depends(get_document_service),
) -> Response:
    file_name, content = await documents.render_pdf(DOC_QUOTE, quote_id)
    return pdf_response(file_name, content)


@router.post("/{quote_id}/email", response_model=EmailDocumentResponse)
async def email_quote(
    quote_id: int,
    payload: Optional[EmailDocumentRequest] = None,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    documents: DocumentService = Depends(get_document_service),
) -> EmailDocumentResponse:
    return await documents.email(
        DOC_QUOTE, quote_id, payload or EmailDocumentRequest(), idempotency_key
    )
