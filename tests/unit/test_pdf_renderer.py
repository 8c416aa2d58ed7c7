"""Unit tests for document views and PDF rendering."""

import datetime as dt
from types import SimpleNamespace

import pytest

from backoffice.services.pdf_renderer import (
    CompanyView,
    DocumentRenderer,
    company_view,
    format_money,
    format_quantity,
    invoice_view,
    purchase_order_view,
    quote_view,
)


def _customer(**overrides):
    fields = dict(
        name="Harbour View Dental",
        address="4 Quay Street",
        city="Bristol",
        state=None,
        zip_code="BS1 4DJ",
        country="UK",
        email="accounts@harbourview.example",
        phone=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _line(description, quantity, unit_price_cents, **extra):
    return SimpleNamespace(
        description=description,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        total_cents=round(quantity * unit_price_cents),
        **extra,
    )


def _sales_document(**overrides):
    fields = dict(
        quote_number="QUO-00001",
        invoice_number="INV-00001",
        invoice_type="final",
        issue_date=dt.date(2025, 3, 14),
        expiry_date=dt.date(2025, 4, 13),
        due_date=dt.date(2025, 4, 13),
        status="draft",
        reference="Reception refit",
        notes="Access via rear entrance & loading bay",
        terms="50% deposit <before> fabrication",
        subtotal_cents=25000,
        discount_cents=0,
        tax_rate=20.0,
        tax_cents=5000,
        total_cents=30000,
        amount_paid_cents=0,
        items=[
            _line("Survey and measure", 1, 15000),
            _line("Installation labour", 2.5, 4000),
        ],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.mark.unit
class TestFormatting:

    def test_money(self):
        assert format_money(123456) == "£1,234.56"
        assert format_money(500, "EUR") == "€5.00"
        assert format_money(100, "CHF") == "CHF 1.00"

    def test_negative_money_keeps_sign(self):
        assert format_money(-1500) == "-£15.00"

    def test_none_is_zero(self):
        assert format_money(None, "USD") == "$0.00"

    def test_quantity(self):
        assert format_quantity(2.0) == "2"
        assert format_quantity(2.5) == "2.5"


@pytest.mark.unit
class TestViews:
    """Views flatten ORM rows into what is printed."""

    def test_company_defaults_without_settings(self):
        company = company_view(None, "acme")

        assert company.name == "acme"
        assert company.address_lines == []

    def test_quote_view(self):
        view = quote_view(_sales_document(), _customer(), CompanyView(name="Acme Joinery"))

        assert view.title == "QUOTATION"
        assert view.number == "QUO-00001"
        assert ("Valid until", "2025-04-13") in view.dates
        assert view.party.lines[:2] == ["4 Quay Street", "Bristol BS1 4DJ"]
        assert view.totals[-1] == ("Total", 30000)
        assert not any(label == "Discount" for label, _ in view.totals)

    def test_invoice_view_shows_balance_after_payment(self):
        invoice = _sales_document(amount_paid_cents=10000, discount_cents=500, invoice_type="deposit")
        view = invoice_view(invoice, _customer(), CompanyView(name="Acme Joinery"))

        assert view.title == "DEPOSIT INVOICE"
        assert ("Discount", -500) in view.totals
        assert ("Amount paid", -10000) in view.totals
        assert view.totals[-1] == ("Balance due", 20000)
        assert view.show_bank_details is True

    def test_purchase_order_view(self):
        order = SimpleNamespace(
            po_number="PO-00007",
            issue_date=dt.date(2025, 3, 14),
            expected_delivery_date=None,
            delivery_address="Unit 3, Mill Lane",
            status="issued",
            supplier_reference=None,
            notes=None,
            terms=None,
            subtotal_cents=2400,
            tax_rate=0.0,
            tax_cents=0,
            shipping_cents=750,
            total_cents=3150,
            items=[_line("Hinges", 12, 200, unit="each", sku="HNG-01")],
        )
        supplier = SimpleNamespace(name="Fixings Direct", contact_name="Sam", address=None, email=None, phone=None)

        view = purchase_order_view(order, supplier, CompanyView(name="Acme Joinery"))

        assert view.party.label == "Supplier"
        assert ("Shipping", 750) in view.totals
        assert view.notes == "Deliver to: Unit 3, Mill Lane"
        assert view.lines[0].sku == "HNG-01"


@pytest.mark.unit
class TestRendering:

    @pytest.fixture
    def renderer(self):
        return DocumentRenderer()

    def test_render_quote(self, renderer):
        view = quote_view(_sales_document(), _customer(), CompanyView(name="Acme & Sons <Joinery>"))

        pdf = renderer.render(view)

        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_render_invoice_with_bank_details(self, renderer):
        company = CompanyView(
            name="Acme Joinery",
            address_lines=["1 High Street", "Bath BA1 1AA"],
            vat_number="GB123456789",
            registration_number="01234567",
            bank_details="Sort code 00-00-00\nAccount 12345678",
            footer_text="Thank you for your business",
            primary_color="#336699",
            currency="EUR",
        )
        view = invoice_view(_sales_document(amount_paid_cents=5000), _customer(), company)

        assert renderer.render(view).startswith(b"%PDF")

    def test_render_many_lines(self, renderer):
        items = [_line(f"Panel {n}", 1, 1000) for n in range(120)]
        view = quote_view(_sales_document(items=items), _customer(), CompanyView(name="Acme"))

        assert renderer.render(view).startswith(b"%PDF")
