# ==== DOCUMENT STATUS MACHINES ==== #

"""
Status enumerations and allowed transitions for business documents.

Transitions not listed here are rejected with ``InvalidTransitionError``.
"""

from enum import Enum
from typing import Dict, FrozenSet

from backoffice.business.errors import InvalidTransitionError


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceType(str, Enum):
    FINAL = "final"
    DEPOSIT = "deposit"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class ProjectStatus(str, Enum):
    PENDING = "pending"
    QUOTED = "quoted"
    SURVEYED = "surveyed"
    FABRICATION = "fabrication"
    INSTALLATION = "installation"
    SNAGGING = "snagging"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TimesheetStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InventoryTransactionType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    RETURN = "return"
    ADJUSTMENT = "adjustment"


# ==== TRANSITION TABLES ==== #

QUOTE_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT, QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}),
    QuoteStatus.SENT: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED}),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.CONVERTED}),
    QuoteStatus.REJECTED: frozenset(),
    QuoteStatus.EXPIRED: frozenset(),
    QuoteStatus.CONVERTED: frozenset(),
}

INVOICE_TRANSITIONS: Dict[InvoiceStatus, FrozenSet[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.ISSUED, InvoiceStatus.CANCELLED}),
    InvoiceStatus.ISSUED: frozenset({
        InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID,
        InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.PARTIALLY_PAID: frozenset({
        InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID, InvoiceStatus.OVERDUE,
    }),
    InvoiceStatus.OVERDUE: frozenset({
        InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID, InvoiceStatus.CANCELLED,
    }),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}

PURCHASE_ORDER_TRANSITIONS: Dict[PurchaseOrderStatus, FrozenSet[PurchaseOrderStatus]] = {
    PurchaseOrderStatus.DRAFT: frozenset({PurchaseOrderStatus.ISSUED, PurchaseOrderStatus.CANCELLED}),
    PurchaseOrderStatus.ISSUED: frozenset({
        PurchaseOrderStatus.PARTIALLY_RECEIVED, PurchaseOrderStatus.RECEIVED,
        PurchaseOrderStatus.CANCELLED,
    }),
    PurchaseOrderStatus.PARTIALLY_RECEIVED: frozenset({
        PurchaseOrderStatus.PARTIALLY_RECEIVED, PurchaseOrderStatus.RECEIVED,
    }),
    PurchaseOrderStatus.RECEIVED: frozenset(),
    PurchaseOrderStatus.CANCELLED: frozenset(),
}

TIMESHEET_TRANSITIONS: Dict[TimesheetStatus, FrozenSet[TimesheetStatus]] = {
    TimesheetStatus.PENDING: frozenset({TimesheetStatus.APPROVED, TimesheetStatus.REJECTED}),
    TimesheetStatus.REJECTED: frozenset({TimesheetStatus.PENDING}),
    TimesheetStatus.APPROVED: frozenset(),
}

# Quotes and invoices may only be edited while still negotiable
QUOTE_EDITABLE = frozenset({QuoteStatus.DRAFT, QuoteStatus.SENT})
QUOTE_DELETABLE = frozenset({QuoteStatus.DRAFT, QuoteStatus.REJECTED, QuoteStatus.EXPIRED})
INVOICE_EDITABLE = frozenset({InvoiceStatus.DRAFT})
INVOICE_PAYABLE = frozenset({
    InvoiceStatus.ISSUED, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE,
})
PURCHASE_ORDER_EDITABLE = frozenset({PurchaseOrderStatus.DRAFT})
PURCHASE_ORDER_RECEIVABLE = frozenset({
    PurchaseOrderStatus.ISSUED, PurchaseOrderStatus.PARTIALLY_RECEIVED,
})


def ensure_transition(entity: str, table: Dict, current: str, target: str) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is allowed.

    Args:
        entity: Entity name used in the error message
        table: Transition table for the entity
        current: Current status value
        target: Requested status value
    """
    allowed = {
        status.value
        for source, targets in table.items() if source.value == current
        for status in targets
    }
    if target not in allowed:
        raise InvalidTransitionError(entity, current, target)
