# ==== DOCUMENT DELIVERY ==== #

"""
PDF download and email delivery for quotes, invoices and purchase orders.

Emailing a document renders its PDF, sends it to the customer (or supplier),
keeps a copy in file storage and moves a draft document to its "sent" status:
quotes become ``sent``, invoices and purchase orders become ``issued``.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError
from backoffice.business.statuses import InvoiceStatus, PurchaseOrderStatus, QuoteStatus
from backoffice.observability.logging import ContextualLogger, log_business_event
from backoffice.observability.metrics import documents_emailed_total
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.documents import EmailDocumentRequest, EmailDocumentResponse
from backoffice.services.company import get_company_settings
from backoffice.services.email import EmailAttachment, EmailService, OutgoingEmail
from backoffice.services.file_storage import LocalFileStorage, store_file
from backoffice.services.idempotency import IdempotencyService
from backoffice.services.invoicing import InvoiceService
from backoffice.services.pdf_renderer import (
    DocumentRenderer,
    DocumentView,
    company_view,
    format_money,
    invoice_view,
    purchase_order_view,
    quote_view,
)
from backoffice.services.purchasing import PurchaseOrderService
from backoffice.services.quotes import QuoteService
from backoffice.storage.models import Customer, Invoice, PurchaseOrder, Quote, Supplier
from backoffice.storage.repository import TenantRepository


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

DOC_QUOTE = "quote"
DOC_INVOICE = "invoice"
DOC_PURCHASE_ORDER = "purchase_order"

_FILE_PREFIX = {DOC_QUOTE: "quote", DOC_INVOICE: "invoice", DOC_PURCHASE_ORDER: "purchase-order"}
_TERMINAL = {
    DOC_QUOTE: {QuoteStatus.CONVERTED.value, QuoteStatus.REJECTED.value, QuoteStatus.EXPIRED.value},
    DOC_INVOICE: {InvoiceStatus.CANCELLED.value},
    DOC_PURCHASE_ORDER: {PurchaseOrderStatus.CANCELLED.value},
}


@dataclass
class LoadedDocument:
    doc_type: str
    document: Any
    party: Any
    view: DocumentView

    @property
    def number(self) -> str:
        return self.view.number

    @property
    def file_name(self) -> str:
        return f"{_FILE_PREFIX[self.doc_type]}-{self.number}.pdf"


class DocumentService:
    """Render and deliver numbered documents for one tenant."""

    def __init__(
        self,
        db: AsyncSession,
        tenant: str,
        user_id: Optional[str] = None,
        renderer: Optional[DocumentRenderer] = None,
        email_service: Optional[EmailService] = None,
        storage: Optional[LocalFileStorage] = None,
        idempotency: Optional[IdempotencyService] = None,
    ):
        self.db = db
        self.tenant = tenant
        self.user_id = user_id
        self.renderer = renderer or DocumentRenderer()
        self.email_service = email_service or EmailService()
        self.storage = storage or LocalFileStorage()
        self.idempotency = idempotency

    async def load(self, doc_type: str, document_id: int) -> LoadedDocument:
        company = company_view(await get_company_settings(self.db, self.tenant), self.tenant)

        if doc_type == DOC_QUOTE:
            quote = await TenantRepository(Quote, self.db, self.tenant).get_or_404(document_id)
            customer = await TenantRepository(Customer, self.db, self.tenant).get_or_404(quote.customer_id)
            return LoadedDocument(doc_type, quote, customer, quote_view(quote, customer, company))

        if doc_type == DOC_INVOICE:
            invoice = await TenantRepository(Invoice, self.db, self.tenant).get_or_404(document_id)
            customer = await TenantRepository(Customer, self.db, self.tenant).get_or_404(invoice.customer_id)
            return LoadedDocument(doc_type, invoice, customer, invoice_view(invoice, customer, company))

        if doc_type == DOC_PURCHASE_ORDER:
            order = await TenantRepository(PurchaseOrder, self.db, self.tenant).get_or_404(document_id)
            supplier = await TenantRepository(Supplier, self.db, self.tenant).get_or_404(order.supplier_id)
            return LoadedDocument(doc_type, order, supplier, purchase_order_view(order, supplier, company))

        raise ValueError(f"Unknown document type: {doc_type}")

    async def render_pdf(self, doc_type: str, document_id: int) -> tuple[str, bytes]:
        """Return ``(file_name, pdf_bytes)`` for a document."""
        loaded = await self.load(doc_type, document_id)
        return loaded.file_name, self.renderer.render(loaded.view)

    # ==== EMAIL ==== #

    def _default_subject(self, loaded: LoadedDocument) -> str:
        title = loaded.view.title.title()
        return f"{title} {loaded.number} from {loaded.view.company.name}"

    def _default_body(self, loaded: LoadedDocument) -> str:
        currency = loaded.view.company.currency
        total = format_money(loaded.document.total_cents, currency)
        greeting = f"Dear {loaded.party.name},"
        if loaded.doc_type == DOC_QUOTE:
            line = f"Please find attached quote {loaded.number} for {total}."
        elif loaded.doc_type == DOC_INVOICE:
            line = (
                f"Please find attached invoice {loaded.number} for {total}, "
                f"due on {loaded.document.due_date.isoformat()}."
            )
        else:
            line = f"Please find attached purchase order {loaded.number}. Kindly confirm receipt."
        return f"{greeting}\n\n{line}\n\nKind regards,\n{loaded.view.company.name}\n"

    async def _advance_status(self, loaded: LoadedDocument) -> str:
        document = loaded.document
        if document.status != "draft":
            return document.status

        if loaded.doc_type == DOC_QUOTE:
            document = await QuoteService(self.db, self.tenant, self.user_id).mark_sent(document.id)
        elif loaded.doc_type == DOC_INVOICE:
            document = await InvoiceService(self.db, self.tenant, self.user_id).issue(document.id)
        else:
            document = await PurchaseOrderService(self.db, self.tenant, self.user_id).issue(document.id)
        return document.status

    async def email(
        self,
        doc_type: str,
        document_id: int,
        request: EmailDocumentRequest,
        idempotency_key: Optional[str] = None,
    ) -> EmailDocumentResponse:
        """
        Email a document as a PDF attachment.

        Args:
            doc_type: ``quote``, ``invoice`` or ``purchase_order``
            document_id: Document id within the tenant
            request: Optional recipient, cc, subject and body overrides
            idempotency_key: Client key; a repeat returns ``duplicate`` without sending

        Raises:
            ConflictError: Document is in a status that cannot be sent
            BusinessRuleError: No recipient given and the party has no email
        """
        with tracer.start_as_current_span("document_email") as span:
            span.set_attribute("tenant", self.tenant)
            span.set_attribute("doc_type", doc_type)
            span.set_attribute("document_id", document_id)

            loaded = await self.load(doc_type, document_id)
            if loaded.document.status in _TERMINAL[doc_type]:
                raise ConflictError(
                    f"{loaded.view.title.title()} {loaded.number} cannot be sent in status "
                    f"'{loaded.document.status}'",
                    code="DOCUMENT_NOT_SENDABLE",
                    current_status=loaded.document.status,
                )

            recipient = request.to or loaded.party.email
            if not recipient:
                raise BusinessRuleError(
                    f"No recipient given and {loaded.party.name} has no email address",
                    code="NO_RECIPIENT",
                )
            recipients: List[str] = [str(recipient)]

            operation = f"email:{doc_type}:{document_id}"
            if idempotency_key and self.idempotency is not None:
                claimed = await self.idempotency.claim(self.tenant, operation, idempotency_key)
                if not claimed:
                    logger.info(
                        "Duplicate document email ignored",
                        tenant=self.tenant,
                        doc_type=doc_type,
                        document_id=document_id,
                    )
                    return EmailDocumentResponse(
                        status="duplicate",
                        recipients=recipients,
                        document_status=loaded.document.status,
                    )

            pdf_bytes = self.renderer.render(loaded.view)
            message = OutgoingEmail(
                to=recipients,
                cc=[str(address) for address in request.cc],
                subject=request.subject or self._default_subject(loaded),
                body=request.body or self._default_body(loaded),
                attachments=[EmailAttachment(filename=loaded.file_name, content=pdf_bytes)],
            )

            try:
                result = await self.email_service.send(message)
            except Exception:
                documents_emailed_total.labels(
                    provider=self.email_service.provider, doc_type=doc_type, status="failed"
                ).inc()
                if idempotency_key and self.idempotency is not None:
                    await self.idempotency.release(self.tenant, operation, idempotency_key)
                raise

            documents_emailed_total.labels(
                provider=result.provider, doc_type=doc_type, status=result.status
            ).inc()

            stored = await store_file(
                self.db,
                self.storage,
                self.tenant,
                loaded.file_name,
                pdf_bytes,
                related_type=doc_type,
                related_id=document_id,
                uploaded_by=self.user_id,
            )
            document_status = await self._advance_status(loaded)

            log_business_event(
                "document_emailed",
                self.tenant,
                doc_type=doc_type,
                document_id=document_id,
                document_number=loaded.number,
                provider=result.provider,
                recipients=recipients,
                file_id=stored.id,
            )
            return EmailDocumentResponse(
                status=result.status,
                provider=result.provider,
                recipients=recipients + message.cc,
                message_id=result.message_id,
                file_id=stored.id,
                document_status=document_status,
            )
