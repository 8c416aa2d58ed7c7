# ==== INVOICE SERVICE ==== #

"""
Manual invoices, issuing, cancellation and payment recording.

Invoices created from quotes come from ``backoffice.services.conversion``;
everything after creation (payments, cancellation) goes through here.
"""

import datetime as dt
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError
from backoffice.business.statuses import (
    INVOICE_EDITABLE,
    INVOICE_PAYABLE,
    INVOICE_TRANSITIONS,
    InvoiceStatus,
    ensure_transition,
)
from backoffice.observability.logging import ContextualLogger, log_business_event
from backoffice.observability.metrics import payments_amount_cents, payments_recorded_total
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.documents import InvoiceCreate, InvoiceUpdate, LineItemIn, PaymentCreate
from backoffice.services.company import default_tax_rate, default_terms
from backoffice.services.line_items import price_sales_lines, recalculate
from backoffice.services.numbering import DOC_TYPE_INVOICE, next_document_number
from backoffice.settings import settings
from backoffice.storage.models import Customer, Invoice, InvoiceItem, Payment, Project, utc_now
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)


class InvoiceService:
    """Invoice operations for one tenant inside the caller's transaction."""

    def __init__(self, db: AsyncSession, tenant: str, user_id: Optional[str] = None):
        self.db = db
        self.tenant = tenant
        self.user_id = user_id
        self.repo = TenantRepository(Invoice, db, tenant)

    async def get(self, invoice_id: int, for_update: bool = False) -> Invoice:
        return await self.repo.get_or_404(invoice_id, for_update=for_update)

    async def create(self, payload: InvoiceCreate) -> Invoice:
        with tracer.start_as_current_span("invoice_create") as span:
            span.set_attribute("tenant", self.tenant)

            await ensure_in_tenant(self.db, Customer, self.tenant, payload.customer_id)
            await ensure_in_tenant(self.db, Project, self.tenant, payload.project_id)

            lines = await price_sales_lines(self.db, self.tenant, payload.items)
            issue_date = payload.issue_date or dt.date.today()
            due_date = payload.due_date or issue_date + dt.timedelta(days=settings.INVOICE_DUE_DAYS)
            if due_date < issue_date:
                raise BusinessRuleError("due_date must not be before issue_date", code="INVALID_DATES")

            tax_rate = payload.tax_rate
            if tax_rate is None:
                tax_rate = await default_tax_rate(self.db, self.tenant)
            terms = payload.terms
            if terms is None:
                terms = await default_terms(self.db, self.tenant, "invoice")

            invoice = Invoice(
                tenant=self.tenant,
                invoice_number=await next_document_number(self.db, self.tenant, DOC_TYPE_INVOICE),
                reference=payload.reference,
                customer_id=payload.customer_id,
                project_id=payload.project_id,
                invoice_type=payload.invoice_type.value,
                issue_date=issue_date,
                due_date=due_date,
                status=InvoiceStatus.DRAFT.value,
                tax_rate=tax_rate,
                discount_cents=payload.discount_cents,
                amount_paid_cents=0,
                notes=payload.notes,
                terms=terms,
                created_by=self.user_id,
                items=[InvoiceItem(**line.as_sales_fields()) for line in lines],
                payments=[],
            )
            recalculate(invoice)
            self.db.add(invoice)
            await self.db.flush()

            span.set_attribute("invoice_id", invoice.id)
            logger.info(
                "Invoice created",
                tenant=self.tenant,
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                total_cents=invoice.total_cents,
            )
            return invoice

    def _ensure_editable(self, invoice: Invoice) -> None:
        if invoice.status not in {s.value for s in INVOICE_EDITABLE}:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} cannot be edited in status '{invoice.status}'",
                code="INVOICE_NOT_EDITABLE",
                current_status=invoice.status,
            )

    async def update(self, invoice_id: int, payload: InvoiceUpdate) -> Invoice:
        invoice = await self.get(invoice_id, for_update=True)
        self._ensure_editable(invoice)

        fields = payload.model_dump(exclude_unset=True, exclude={"items"})
        if "project_id" in fields:
            await ensure_in_tenant(self.db, Project, self.tenant, fields["project_id"])
        for key, value in fields.items():
            setattr(invoice, key, value)

        if invoice.due_date < invoice.issue_date:
            raise BusinessRuleError("due_date must not be before issue_date", code="INVALID_DATES")

        if payload.items is not None:
            await self._replace_lines(invoice, payload.items)

        recalculate(invoice)
        await self.db.flush()
        return invoice

    async def _replace_lines(self, invoice: Invoice, items: List[LineItemIn]) -> None:
        lines = await price_sales_lines(self.db, self.tenant, items)
        invoice.items = [InvoiceItem(**line.as_sales_fields()) for line in lines]

    async def replace_items(self, invoice_id: int, items: List[LineItemIn]) -> Invoice:
        invoice = await self.get(invoice_id, for_update=True)
        self._ensure_editable(invoice)
        await self._replace_lines(invoice, items)
        recalculate(invoice)
        await self.db.flush()
        return invoice

    # ==== STATUS CHANGES ==== #

    async def issue(self, invoice_id: int) -> Invoice:
        invoice = await self.get(invoice_id, for_update=True)
        ensure_transition("invoice", INVOICE_TRANSITIONS, invoice.status, InvoiceStatus.ISSUED.value)
        invoice.status = InvoiceStatus.ISSUED.value
        invoice.issued_at = utc_now()
        await self.db.flush()
        log_business_event(
            "invoice_issued", self.tenant,
            invoice_id=invoice.id, invoice_number=invoice.invoice_number,
        )
        return invoice

    async def cancel(self, invoice_id: int) -> Invoice:
        invoice = await self.get(invoice_id, for_update=True)
        if invoice.payments:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} has payments and cannot be cancelled",
                code="INVOICE_HAS_PAYMENTS",
                current_status=invoice.status,
            )
        ensure_transition("invoice", INVOICE_TRANSITIONS, invoice.status, InvoiceStatus.CANCELLED.value)
        invoice.status = InvoiceStatus.CANCELLED.value
        await self.db.flush()
        log_business_event(
            "invoice_cancelled", self.tenant,
            invoice_id=invoice.id, invoice_number=invoice.invoice_number,
        )
        return invoice

    async def delete(self, invoice_id: int) -> None:
        invoice = await self.get(invoice_id, for_update=True)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise ConflictError(
                f"Only draft invoices can be deleted; invoice {invoice.invoice_number} is '{invoice.status}'",
                code="INVOICE_NOT_DELETABLE",
                current_status=invoice.status,
            )
        await self.repo.delete(invoice)

    # ==== PAYMENTS ==== #

    async def record_payment(self, invoice_id: int, payload: PaymentCreate) -> Payment:
        """
        Record a payment against an invoice.

        The invoice becomes ``paid`` once the cumulative amount reaches the
        total, otherwise ``partially_paid``.

        Raises:
            ConflictError: Invoice is draft, paid or cancelled
            BusinessRuleError: Payment would exceed the outstanding balance
        """
        with tracer.start_as_current_span("invoice_record_payment") as span:
            span.set_attribute("tenant", self.tenant)
            span.set_attribute("invoice_id", invoice_id)

            invoice = await self.get(invoice_id, for_update=True)
            if invoice.status not in {s.value for s in INVOICE_PAYABLE}:
                raise ConflictError(
                    f"Invoice {invoice.invoice_number} cannot take payments in status '{invoice.status}'",
                    code="INVOICE_NOT_PAYABLE",
                    current_status=invoice.status,
                )

            balance = invoice.total_cents - invoice.amount_paid_cents
            if payload.amount_cents > balance:
                raise BusinessRuleError(
                    f"Payment of {payload.amount_cents} exceeds outstanding balance of {balance}",
                    code="OVERPAYMENT",
                    balance_cents=balance,
                )

            payment = Payment(
                tenant=self.tenant,
                amount_cents=payload.amount_cents,
                payment_date=payload.payment_date or dt.date.today(),
                method=payload.method,
                reference=payload.reference,
                recorded_by=self.user_id,
            )
            invoice.payments.append(payment)
            invoice.amount_paid_cents += payload.amount_cents

            target = (
                InvoiceStatus.PAID
                if invoice.amount_paid_cents >= invoice.total_cents
                else InvoiceStatus.PARTIALLY_PAID
            )
            ensure_transition("invoice", INVOICE_TRANSITIONS, invoice.status, target.value)
            invoice.status = target.value
            if target == InvoiceStatus.PAID:
                invoice.paid_at = utc_now()

            await self.db.flush()

            payments_recorded_total.labels(tenant=self.tenant, method=payment.method).inc()
            payments_amount_cents.labels(tenant=self.tenant).observe(payment.amount_cents)
            log_business_event(
                "payment_recorded",
                self.tenant,
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                payment_id=payment.id,
                amount_cents=payment.amount_cents,
                invoice_status=invoice.status,
            )
            return payment

    async def list_payments(self, invoice_id: int) -> List[Payment]:
        invoice = await self.get(invoice_id)
        return list(invoice.payments)
