# ==== DOCUMENT PRICING ==== #

"""
Line and document totals for quotes, invoices and purchase orders.

All money is integer cents. Quantities may be fractional (hours, metres), so
line totals are rounded half-up to the cent.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


def round_half_up(value: Decimal | float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_line_total(quantity: float, unit_price_cents: int) -> int:
    """Compute a line total in cents.

    Args:
        quantity: Line quantity (may be fractional)
        unit_price_cents: Unit price in cents

    Returns:
        Line total in cents
    """
    return round_half_up(Decimal(str(quantity)) * Decimal(unit_price_cents))


@dataclass(frozen=True)
class DocumentTotals:
    """Computed amounts for a priced document."""

    subtotal_cents: int
    discount_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int


def compute_document_totals(
    line_totals: Iterable[int],
    tax_rate: float = 0.0,
    discount_cents: int = 0,
    shipping_cents: int = 0,
) -> DocumentTotals:
    """Compute subtotal, tax and total for a document.

    Tax applies to the discounted subtotal, which never goes below zero. The
    discount itself is reported as given so it applies again when lines change.
    Shipping is added after tax.

    Args:
        line_totals: Line totals in cents
        tax_rate: Tax percentage, e.g. 20.0 for 20%
        discount_cents: Document-level discount in cents
        shipping_cents: Shipping charge in cents

    Returns:
        DocumentTotals with every amount in cents
    """
    subtotal = sum(line_totals)
    discount = max(discount_cents, 0)
    taxable = max(subtotal - discount, 0)
    tax = round_half_up(Decimal(taxable) * Decimal(str(tax_rate)) / Decimal(100))
    return DocumentTotals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        tax_cents=tax,
        shipping_cents=shipping_cents,
        total_cents=taxable + tax + shipping_cents,
    )
