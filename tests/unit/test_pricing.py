"""Unit tests for line and document totals."""

from types import SimpleNamespace

import pytest

from backoffice.business.pricing import compute_document_totals, compute_line_total, round_half_up
from backoffice.services.line_items import recalculate


@pytest.mark.unit
class TestLineTotals:
    """Line totals are quantity times unit price, rounded half-up to the cent."""

    def test_whole_quantity(self):
        assert compute_line_total(3, 1250) == 3750

    def test_fractional_quantity(self):
        assert compute_line_total(2.5, 4000) == 10000

    def test_half_cent_rounds_up(self):
        assert compute_line_total(1.5, 3) == 5
        assert compute_line_total(0.5, 1) == 1

    def test_below_half_rounds_down(self):
        assert compute_line_total(0.333, 100) == 33

    def test_round_half_up_away_from_zero(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -3


@pytest.mark.unit
class TestDocumentTotals:
    """Document totals: discount, then tax on the discounted subtotal, then shipping."""

    def test_subtotal_tax_total(self):
        totals = compute_document_totals([15000, 10000], tax_rate=20.0)

        assert totals.subtotal_cents == 25000
        assert totals.tax_cents == 5000
        assert totals.total_cents == 30000

    def test_tax_applies_after_discount(self):
        totals = compute_document_totals([10000], tax_rate=20.0, discount_cents=1000, shipping_cents=500)

        assert totals.discount_cents == 1000
        assert totals.tax_cents == 1800
        assert totals.shipping_cents == 500
        assert totals.total_cents == 9000 + 1800 + 500

    def test_discount_larger_than_subtotal_floors_taxable_at_zero(self):
        totals = compute_document_totals([1000], tax_rate=20.0, discount_cents=5000)

        assert totals.discount_cents == 5000
        assert totals.tax_cents == 0
        assert totals.total_cents == 0

    def test_negative_discount_ignored(self):
        totals = compute_document_totals([1000], discount_cents=-200)

        assert totals.discount_cents == 0
        assert totals.total_cents == 1000

    def test_tax_rounded_half_up(self):
        # 333 * 20% = 66.6
        assert compute_document_totals([333], tax_rate=20.0).tax_cents == 67
        # 25 * 10% = 2.5
        assert compute_document_totals([25], tax_rate=10.0).tax_cents == 3

    def test_empty_document(self):
        totals = compute_document_totals([], tax_rate=20.0, shipping_cents=0)

        assert totals.subtotal_cents == 0
        assert totals.total_cents == 0


@pytest.mark.unit
class TestRecalculate:

    def test_entered_discount_kept_on_document(self):
        quote = SimpleNamespace(
            items=[SimpleNamespace(total_cents=25000)],
            tax_rate=0.0,
            discount_cents=40000,
            subtotal_cents=0,
            tax_cents=0,
            total_cents=0,
        )

        recalculate(quote)
        assert quote.discount_cents == 40000
        assert quote.total_cents == 0

        quote.items.append(SimpleNamespace(total_cents=100000))
        recalculate(quote)
        assert quote.subtotal_cents == 125000
        assert quote.total_cents == 85000
