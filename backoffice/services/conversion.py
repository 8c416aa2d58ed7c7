# ==== QUOTE TO INVOICE CONVERSION ==== #

"""
Atomic conversion of an accepted quote into an invoice.

The whole conversion runs inside the caller's transaction:

1. The quote row is locked (``SELECT ... FOR UPDATE``) within the tenant.
2. Only ``accepted`` quotes convert; anything else is a conflict.
3. The invoice number is allocated, the invoice and a copy of every quote line
   are inserted, the quote becomes ``converted`` and the project (if any) is
   linked to the new invoice.

Any exception propagates to the session scope, which rolls back every step,
including the number allocation.
"""

import datetime as dt
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import ConflictError
from backoffice.business.statuses import (
    InvoiceStatus,
    InvoiceType,
    QUOTE_TRANSITIONS,
    QuoteStatus,
    ensure_transition,
)
from backoffice.observability.logging import ContextualLogger, log_business_event
from backoffice.observability.metrics import quote_conversions_total
from backoffice.observability.tracing import get_tracer
from backoffice.services.numbering import DOC_TYPE_INVOICE, next_document_number
from backoffice.settings import settings
from backoffice.storage.models import Invoice, InvoiceItem, Project, Quote, utc_now
from backoffice.storage.repository import TenantRepository


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)


async def convert_quote_to_invoice(
    db: AsyncSession,
    tenant: str,
    quote_id: int,
    invoice_type: InvoiceType = InvoiceType.FINAL,
    due_days: Optional[int] = None,
    user_id: Optional[str] = None,
) -> Invoice:
    """
    Convert an accepted quote into an issued invoice.

    Args:
        db: Active session; the conversion commits or rolls back with it
        tenant: Tenant identifier
        quote_id: Quote to convert
        invoice_type: ``final`` or ``deposit``; decides which project link is set
        due_days: Days until the invoice is due, ``INVOICE_DUE_DAYS`` if omitted
        user_id: Acting user, stored as the invoice creator

    Returns:
        Invoice: The new invoice with its items

    Raises:
        NotFoundError: Quote is missing or owned by another tenant
        ConflictError: Quote is not in ``accepted`` status
    """
    with tracer.start_as_current_span("convert_quote_to_invoice") as span:
        span.set_attribute("tenant", tenant)
        span.set_attribute("quote_id", quote_id)

        quote = await TenantRepository(Quote, db, tenant).get_or_404(quote_id, for_update=True)

        if quote.status != QuoteStatus.ACCEPTED.value:
            quote_conversions_total.labels(tenant=tenant, outcome="rejected").inc()
            logger.warning(
                "Quote conversion refused",
                tenant=tenant,
                quote_id=quote.id,
                current_status=quote.status,
            )
            raise ConflictError(
                f"Only accepted quotes can be converted; quote {quote.quote_number} is '{quote.status}'",
                code="QUOTE_NOT_ACCEPTED",
                current_status=quote.status,
            )
        ensure_transition("quote", QUOTE_TRANSITIONS, quote.status, QuoteStatus.CONVERTED.value)

        today = dt.date.today()
        days = settings.INVOICE_DUE_DAYS if due_days is None else due_days
        invoice_type = InvoiceType(invoice_type)

        invoice = Invoice(
            tenant=tenant,
            invoice_number=await next_document_number(db, tenant, DOC_TYPE_INVOICE),
            reference=quote.reference,
            customer_id=quote.customer_id,
            project_id=quote.project_id,
            quote_id=quote.id,
            invoice_type=invoice_type.value,
            issue_date=today,
            due_date=today + dt.timedelta(days=days),
            status=InvoiceStatus.ISSUED.value,
            subtotal_cents=quote.subtotal_cents,
            discount_cents=quote.discount_cents,
            tax_rate=quote.tax_rate,
            tax_cents=quote.tax_cents,
            total_cents=quote.total_cents,
            amount_paid_cents=0,
            issued_at=utc_now(),
            notes=quote.notes,
            terms=quote.terms,
            created_by=user_id,
            items=[
                InvoiceItem(
                    position=item.position,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price_cents,
                    total_cents=item.total_cents,
                    catalog_item_id=item.catalog_item_id,
                )
                for item in quote.items
            ],
            payments=[],
        )
        db.add(invoice)
        await db.flush()

        quote.status = QuoteStatus.CONVERTED.value
        quote.converted_invoice_id = invoice.id

        if quote.project_id is not None:
            project = await TenantRepository(Project, db, tenant).get_or_404(quote.project_id)
            if invoice_type == InvoiceType.DEPOSIT:
                project.deposit_invoice_id = invoice.id
            else:
                project.final_invoice_id = invoice.id

        await db.flush()

        span.set_attribute("invoice_id", invoice.id)
        span.set_attribute("invoice_number", invoice.invoice_number)
        quote_conversions_total.labels(tenant=tenant, outcome="converted").inc()
        log_business_event(
            "quote_converted",
            tenant,
            quote_id=quote.id,
            quote_number=quote.quote_number,
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            invoice_type=invoice.invoice_type,
            total_cents=invoice.total_cents,
        )
        return invoice
