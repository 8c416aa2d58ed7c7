# ==== QUOTE SERVICE ==== #

"""
Quote lifecycle: creation, editing, sending, acceptance and rejection.

Conversion of accepted quotes into invoices lives in
``backoffice.services.conversion``.
"""

import datetime as dt
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError, NotFoundError
from backoffice.business.statuses import (
    QUOTE_DELETABLE,
    QUOTE_EDITABLE,
    QUOTE_TRANSITIONS,
    ProjectStatus,
    QuoteStatus,
    ensure_transition,
)
from backoffice.observability.logging import ContextualLogger, log_business_event
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.documents import LineItemIn, QuoteCreate, QuoteUpdate
from backoffice.services.company import default_tax_rate, default_terms
from backoffice.services.line_items import price_sales_lines, recalculate
from backoffice.services.numbering import DOC_TYPE_QUOTE, next_document_number
from backoffice.settings import settings
from backoffice.storage.models import Customer, Project, Quote, QuoteItem, utc_now
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)


class QuoteService:
    """Quote operations for one tenant inside the caller's transaction."""

    def __init__(self, db: AsyncSession, tenant: str, user_id: Optional[str] = None):
        self.db = db
        self.tenant = tenant
        self.user_id = user_id
        self.repo = TenantRepository(Quote, db, tenant)

    async def get(self, quote_id: int, for_update: bool = False) -> Quote:
        return await self.repo.get_or_404(quote_id, for_update=for_update)

    async def create(self, payload: QuoteCreate) -> Quote:
        with tracer.start_as_current_span("quote_create") as span:
            span.set_attribute("tenant", self.tenant)

            await ensure_in_tenant(self.db, Customer, self.tenant, payload.customer_id)
            project = await ensure_in_tenant(self.db, Project, self.tenant, payload.project_id)

            lines = await price_sales_lines(self.db, self.tenant, payload.items)
            issue_date = payload.issue_date or dt.date.today()
            expiry_date = payload.expiry_date or issue_date + dt.timedelta(days=settings.QUOTE_VALIDITY_DAYS)
            if expiry_date < issue_date:
                raise BusinessRuleError("expiry_date must not be before issue_date", code="INVALID_DATES")

            tax_rate = payload.tax_rate
            if tax_rate is None:
                tax_rate = await default_tax_rate(self.db, self.tenant)
            terms = payload.terms
            if terms is None:
                terms = await default_terms(self.db, self.tenant, "quote")

            quote = Quote(
                tenant=self.tenant,
                quote_number=await next_document_number(self.db, self.tenant, DOC_TYPE_QUOTE),
                reference=payload.reference,
                customer_id=payload.customer_id,
                project_id=payload.project_id,
                issue_date=issue_date,
                expiry_date=expiry_date,
                status=QuoteStatus.DRAFT.value,
                tax_rate=tax_rate,
                discount_cents=payload.discount_cents,
                notes=payload.notes,
                terms=terms,
                created_by=self.user_id,
                items=[QuoteItem(**line.as_sales_fields()) for line in lines],
            )
            recalculate(quote)
            self.db.add(quote)

            # A project that receives its first quote moves on from "pending"
            if project is not None and project.status == ProjectStatus.PENDING.value:
                project.status = ProjectStatus.QUOTED.value

            await self.db.flush()
            span.set_attribute("quote_id", quote.id)
            logger.info(
                "Quote created",
                tenant=self.tenant,
                quote_id=quote.id,
                quote_number=quote.quote_number,
                total_cents=quote.total_cents,
            )
            return quote

    def _ensure_editable(self, quote: Quote) -> None:
        if quote.status not in {s.value for s in QUOTE_EDITABLE}:
            raise ConflictError(
                f"Quote {quote.quote_number} cannot be edited in status '{quote.status}'",
                code="QUOTE_NOT_EDITABLE",
                current_status=quote.status,
            )

    async def update(self, quote_id: int, payload: QuoteUpdate) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        self._ensure_editable(quote)

        fields = payload.model_dump(exclude_unset=True, exclude={"items"})
        if "project_id" in fields:
            await ensure_in_tenant(self.db, Project, self.tenant, fields["project_id"])
        for key, value in fields.items():
            setattr(quote, key, value)

        if quote.expiry_date and quote.expiry_date < quote.issue_date:
            raise BusinessRuleError("expiry_date must not be before issue_date", code="INVALID_DATES")

        if payload.items is not None:
            await self._replace_lines(quote, payload.items)

        recalculate(quote)
        await self.db.flush()
        return quote

    async def _replace_lines(self, quote: Quote, items: List[LineItemIn]) -> None:
        lines = await price_sales_lines(self.db, self.tenant, items)
        quote.items = [QuoteItem(**line.as_sales_fields()) for line in lines]

    async def replace_items(self, quote_id: int, items: List[LineItemIn]) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        self._ensure_editable(quote)
        await self._replace_lines(quote, items)
        recalculate(quote)
        await self.db.flush()
        return quote

    async def add_item(self, quote_id: int, item: LineItemIn) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        self._ensure_editable(quote)

        (line,) = await price_sales_lines(self.db, self.tenant, [item])
        line.position = max((existing.position for existing in quote.items), default=0) + 1
        quote.items.append(QuoteItem(**line.as_sales_fields()))

        recalculate(quote)
        await self.db.flush()
        return quote

    async def remove_item(self, quote_id: int, item_id: int) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        self._ensure_editable(quote)

        remaining = [item for item in quote.items if item.id != item_id]
        if len(remaining) == len(quote.items):
            raise NotFoundError("QuoteItem", item_id)
        quote.items = remaining

        recalculate(quote)
        await self.db.flush()
        return quote

    # ==== STATUS CHANGES ==== #

    async def _transition(self, quote: Quote, target: QuoteStatus) -> Quote:
        previous = quote.status
        ensure_transition("quote", QUOTE_TRANSITIONS, quote.status, target.value)
        quote.status = target.value
        await self.db.flush()
        log_business_event(
            f"quote_{target.value}",
            self.tenant,
            quote_id=quote.id,
            quote_number=quote.quote_number,
            previous_status=previous,
        )
        return quote

    async def mark_sent(self, quote_id: int) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        quote.sent_at = utc_now()
        return await self._transition(quote, QuoteStatus.SENT)

    async def accept(self, quote_id: int, accepted_by: Optional[str] = None) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        quote.accepted_at = utc_now()
        quote.accepted_by = accepted_by or self.user_id
        return await self._transition(quote, QuoteStatus.ACCEPTED)

    async def reject(self, quote_id: int) -> Quote:
        quote = await self.get(quote_id, for_update=True)
        quote.rejected_at = utc_now()
        return await self._transition(quote, QuoteStatus.REJECTED)

    async def delete(self, quote_id: int) -> None:
        quote = await self.get(quote_id, for_update=True)
        if quote.status not in {s.value for s in QUOTE_DELETABLE}:
            raise ConflictError(
                f"Quote {quote.quote_number} cannot be deleted in status '{quote.status}'",
                code="QUOTE_NOT_DELETABLE",
                current_status=quote.status,
            )
        await self.repo.delete(quote)
