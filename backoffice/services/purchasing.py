# ==== PURCHASE ORDER SERVICE ==== #

"""Purchase orders: creation, issuing, cancellation and goods receipt."""

import datetime as dt
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError, NotFoundError
from backoffice.business.statuses import (
    PURCHASE_ORDER_EDITABLE,
    PURCHASE_ORDER_RECEIVABLE,
    PURCHASE_ORDER_TRANSITIONS,
    InventoryTransactionType,
    PurchaseOrderStatus,
    ensure_transition,
)
from backoffice.observability.logging import ContextualLogger, log_business_event
from backoffice.observability.tracing import get_tracer
from backoffice.schemas.documents import PurchaseOrderCreate, PurchaseOrderUpdate, ReceiveRequest
from backoffice.services.company import default_tax_rate
from backoffice.services.inventory import apply_movement
from backoffice.services.line_items import price_purchase_lines, recalculate
from backoffice.services.numbering import DOC_TYPE_PURCHASE_ORDER, next_document_number
from backoffice.storage.models import InventoryItem, Project, PurchaseOrder, PurchaseOrderItem, Supplier
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

# Float quantities are compared with a small tolerance
_EPSILON = 1e-9


class PurchaseOrderService:
    """Purchase order operations for one tenant inside the caller's transaction."""

    def __init__(self, db: AsyncSession, tenant: str, user_id: Optional[str] = None):
        self.db = db
        self.tenant = tenant
        self.user_id = user_id
        self.repo = TenantRepository(PurchaseOrder, db, tenant)

    async def get(self, po_id: int, for_update: bool = False) -> PurchaseOrder:
        return await self.repo.get_or_404(po_id, for_update=for_update)

    async def create(self, payload: PurchaseOrderCreate) -> PurchaseOrder:
        with tracer.start_as_current_span("purchase_order_create") as span:
            span.set_attribute("tenant", self.tenant)

            await ensure_in_tenant(self.db, Supplier, self.tenant, payload.supplier_id)
            await ensure_in_tenant(self.db, Project, self.tenant, payload.project_id)

            lines = await price_purchase_lines(self.db, self.tenant, payload.items)
            tax_rate = payload.tax_rate
            if tax_rate is None:
                tax_rate = await default_tax_rate(self.db, self.tenant)

            order = PurchaseOrder(
                tenant=self.tenant,
                po_number=await next_document_number(self.db, self.tenant, DOC_TYPE_PURCHASE_ORDER),
                supplier_id=payload.supplier_id,
                project_id=payload.project_id,
                issue_date=payload.issue_date or dt.date.today(),
                expected_delivery_date=payload.expected_delivery_date,
                delivery_address=payload.delivery_address,
                status=PurchaseOrderStatus.DRAFT.value,
                tax_rate=tax_rate,
                shipping_cents=payload.shipping_cents,
                supplier_reference=payload.supplier_reference,
                notes=payload.notes,
                terms=payload.terms,
                created_by=self.user_id,
                items=[PurchaseOrderItem(**line.as_purchase_fields(), received_quantity=0.0) for line in lines],
            )
            recalculate(order)
            self.db.add(order)
            await self.db.flush()

            span.set_attribute("purchase_order_id", order.id)
            logger.info(
                "Purchase order created",
                tenant=self.tenant,
                purchase_order_id=order.id,
                po_number=order.po_number,
                total_cents=order.total_cents,
            )
            return order

    def _ensure_editable(self, order: PurchaseOrder) -> None:
        if order.status not in {s.value for s in PURCHASE_ORDER_EDITABLE}:
            raise ConflictError(
                f"Purchase order {order.po_number} cannot be edited in status '{order.status}'",
                code="PURCHASE_ORDER_NOT_EDITABLE",
                current_status=order.status,
            )

    async def update(self, po_id: int, payload: PurchaseOrderUpdate) -> PurchaseOrder:
        order = await self.get(po_id, for_update=True)
        self._ensure_editable(order)

        fields = payload.model_dump(exclude_unset=True, exclude={"items"})
        if "project_id" in fields:
            await ensure_in_tenant(self.db, Project, self.tenant, fields["project_id"])
        for key, value in fields.items():
            setattr(order, key, value)

        if payload.items is not None:
            lines = await price_purchase_lines(self.db, self.tenant, payload.items)
            order.items = [
                PurchaseOrderItem(**line.as_purchase_fields(), received_quantity=0.0) for line in lines
            ]

        recalculate(order)
        await self.db.flush()
        return order

    async def _transition(self, order: PurchaseOrder, target: PurchaseOrderStatus) -> PurchaseOrder:
        ensure_transition("purchase_order", PURCHASE_ORDER_TRANSITIONS, order.status, target.value)
        order.status = target.value
        await self.db.flush()
        log_business_event(
            f"purchase_order_{target.value}", self.tenant,
            purchase_order_id=order.id, po_number=order.po_number,
        )
        return order

    async def issue(self, po_id: int) -> PurchaseOrder:
        order = await self.get(po_id, for_update=True)
        return await self._transition(order, PurchaseOrderStatus.ISSUED)

    async def cancel(self, po_id: int) -> PurchaseOrder:
        order = await self.get(po_id, for_update=True)
        return await self._transition(order, PurchaseOrderStatus.CANCELLED)

    async def delete(self, po_id: int) -> None:
        order = await self.get(po_id, for_update=True)
        if order.status not in (PurchaseOrderStatus.DRAFT.value, PurchaseOrderStatus.CANCELLED.value):
            raise ConflictError(
                f"Purchase order {order.po_number} cannot be deleted in status '{order.status}'",
                code="PURCHASE_ORDER_NOT_DELETABLE",
                current_status=order.status,
            )
        await self.repo.delete(order)

    # ==== GOODS RECEIPT ==== #

    async def receive(self, po_id: int, payload: ReceiveRequest) -> PurchaseOrder:
        """
        Receive goods against a purchase order.

        Every line linked to an inventory item produces a ``purchase`` stock
        movement at the line's unit price. The whole receipt is applied in the
        caller's transaction, so one invalid line rejects all of them.

        Raises:
            ConflictError: Order is not issued or partially received
            NotFoundError: A line id does not belong to the order
            BusinessRuleError: Received quantity would exceed the ordered quantity
        """
        with tracer.start_as_current_span("purchase_order_receive") as span:
            span.set_attribute("tenant", self.tenant)
            span.set_attribute("purchase_order_id", po_id)

            order = await self.get(po_id, for_update=True)
            if order.status not in {s.value for s in PURCHASE_ORDER_RECEIVABLE}:
                raise ConflictError(
                    f"Purchase order {order.po_number} cannot receive goods in status '{order.status}'",
                    code="PURCHASE_ORDER_NOT_RECEIVABLE",
                    current_status=order.status,
                )

            lines_by_id = {line.id: line for line in order.items}
            inventory = TenantRepository(InventoryItem, self.db, self.tenant)
            received_on = payload.received_date or dt.date.today()

            for receipt in payload.lines:
                line = lines_by_id.get(receipt.item_id)
                if line is None:
                    raise NotFoundError("PurchaseOrderItem", receipt.item_id, purchase_order_id=order.id)

                outstanding = line.quantity - line.received_quantity
                if receipt.quantity > outstanding + _EPSILON:
                    raise BusinessRuleError(
                        f"Cannot receive {receipt.quantity} of '{line.description}'; "
                        f"only {outstanding} outstanding",
                        code="OVER_RECEIPT",
                        item_id=line.id,
                        outstanding=outstanding,
                    )
                line.received_quantity = round(line.received_quantity + receipt.quantity, 4)

                if line.inventory_item_id is not None:
                    stock_item = await inventory.get_or_404(line.inventory_item_id, for_update=True)
                    await apply_movement(
                        self.db,
                        self.tenant,
                        stock_item,
                        InventoryTransactionType.PURCHASE,
                        receipt.quantity,
                        project_id=order.project_id,
                        purchase_order_id=order.id,
                        unit_cost_cents=line.unit_price_cents,
                        reference=payload.reference or order.po_number,
                        user_id=self.user_id,
                    )

            complete = all(line.received_quantity + _EPSILON >= line.quantity for line in order.items)
            target = PurchaseOrderStatus.RECEIVED if complete else PurchaseOrderStatus.PARTIALLY_RECEIVED
            ensure_transition("purchase_order", PURCHASE_ORDER_TRANSITIONS, order.status, target.value)
            order.status = target.value
            if complete:
                order.received_date = received_on

            await self.db.flush()
            log_business_event(
                "purchase_order_received",
                self.tenant,
                purchase_order_id=order.id,
                po_number=order.po_number,
                status=order.status,
                lines=len(payload.lines),
            )
            return order
