# ==== DOCUMENT PDF RENDERING ==== #

"""
PDF rendering for quotes, invoices and purchase orders.

All three documents share one layout: company header, title block, party
block, items table, totals, terms/notes and footer. Each model is first turned
into a ``DocumentView`` so the renderer never touches the ORM.
"""

import time
from dataclasses import dataclass, field
from io import BytesIO
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backoffice.observability.logging import ContextualLogger
from backoffice.observability.metrics import pdf_render_seconds
from backoffice.observability.tracing import get_tracer
from backoffice.settings import settings


tracer = get_tracer(__name__)
logger = ContextualLogger(__name__)

CURRENCY_SYMBOLS = {"GBP": "£", "EUR": "€", "USD": "$"}
DEFAULT_PRIMARY_COLOR = "#1F3A5F"


def format_money(cents: Optional[int], currency: str = "GBP") -> str:
    """Format integer cents as ``£1,234.56``; negative amounts keep the sign."""
    cents = cents or 0
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"


def format_quantity(quantity: float) -> str:
    if float(quantity).is_integer():
        return str(int(quantity))
    return f"{quantity:g}"


# ==== VIEW MODEL ==== #


@dataclass
class CompanyView:
    name: str
    address_lines: List[str] = field(default_factory=list)
    contact_line: Optional[str] = None
    vat_number: Optional[str] = None
    registration_number: Optional[str] = None
    bank_details: Optional[str] = None
    footer_text: Optional[str] = None
    primary_color: str = DEFAULT_PRIMARY_COLOR
    currency: str = "GBP"


@dataclass
class PartyView:
    label: str
    name: str
    lines: List[str] = field(default_factory=list)


@dataclass
class LineView:
    description: str
    quantity: float
    unit_price_cents: int
    total_cents: int
    unit: Optional[str] = None
    sku: Optional[str] = None


@dataclass
class DocumentView:
    """Everything printed on a document, detached from the ORM."""

    doc_type: str
    title: str
    number: str
    dates: List[Tuple[str, str]]
    company: CompanyView
    party: PartyView
    lines: List[LineView]
    totals: List[Tuple[str, int]]
    status: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    show_bank_details: bool = False


def _clean(values: Sequence[Optional[str]]) -> List[str]:
    return [value for value in values if value]


def company_view(record, tenant: str) -> CompanyView:
    """Build the header block from saved company settings (or tenant defaults)."""
    if record is None:
        return CompanyView(name=tenant, currency=settings.DEFAULT_CURRENCY)

    city_line = " ".join(_clean([record.city, record.state, record.zip_code]))
    contact = " | ".join(_clean([record.phone, record.email, record.website]))
    return CompanyView(
        name=record.company_name or tenant,
        address_lines=_clean([record.address, city_line, record.country]),
        contact_line=contact or None,
        vat_number=record.vat_number,
        registration_number=record.registration_number,
        bank_details=record.bank_details,
        footer_text=record.footer_text,
        primary_color=record.primary_color or DEFAULT_PRIMARY_COLOR,
        currency=record.currency or settings.DEFAULT_CURRENCY,
    )


def _customer_party(label: str, customer) -> PartyView:
    city_line = " ".join(_clean([customer.city, customer.state, customer.zip_code]))
    return PartyView(
        label=label,
        name=customer.name,
        lines=_clean([customer.address, city_line, customer.country, customer.email, customer.phone]),
    )


def _sales_lines(items) -> List[LineView]:
    return [
        LineView(
            description=item.description,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            total_cents=item.total_cents,
        )
        for item in items
    ]


def _sales_totals(document) -> List[Tuple[str, int]]:
    totals = [("Subtotal", document.subtotal_cents)]
    if document.discount_cents:
        totals.append(("Discount", -min(document.discount_cents, document.subtotal_cents)))
    totals.append((f"Tax ({document.tax_rate:g}%)", document.tax_cents))
    totals.append(("Total", document.total_cents))
    return totals


def quote_view(quote, customer, company: CompanyView) -> DocumentView:
    dates = [("Date", quote.issue_date.isoformat())]
    if quote.expiry_date:
        dates.append(("Valid until", quote.expiry_date.isoformat()))
    return DocumentView(
        doc_type="quote",
        title="QUOTATION",
        number=quote.quote_number,
        dates=dates,
        company=company,
        party=_customer_party("Prepared for", customer),
        lines=_sales_lines(quote.items),
        totals=_sales_totals(quote),
        status=quote.status,
        reference=quote.reference,
        notes=quote.notes,
        terms=quote.terms,
    )


def invoice_view(invoice, customer, company: CompanyView) -> DocumentView:
    totals = _sales_totals(invoice)
    if invoice.amount_paid_cents:
        totals.append(("Amount paid", -invoice.amount_paid_cents))
        totals.append(("Balance due", invoice.total_cents - invoice.amount_paid_cents))
    title = "DEPOSIT INVOICE" if invoice.invoice_type == "deposit" else "INVOICE"
    return DocumentView(
        doc_type="invoice",
        title=title,
        number=invoice.invoice_number,
        dates=[("Date", invoice.issue_date.isoformat()), ("Due", invoice.due_date.isoformat())],
        company=company,
        party=_customer_party("Bill to", customer),
        lines=_sales_lines(invoice.items),
        totals=totals,
        status=invoice.status,
        reference=invoice.reference,
        notes=invoice.notes,
        terms=invoice.terms,
        show_bank_details=True,
    )


def purchase_order_view(order, supplier, company: CompanyView) -> DocumentView:
    dates = [("Date", order.issue_date.isoformat())]
    if order.expected_delivery_date:
        dates.append(("Delivery by", order.expected_delivery_date.isoformat()))

    totals = [("Subtotal", order.subtotal_cents), (f"Tax ({order.tax_rate:g}%)", order.tax_cents)]
    if order.shipping_cents:
        totals.append(("Shipping", order.shipping_cents))
    totals.append(("Total", order.total_cents))

    notes = order.notes
    if order.delivery_address:
        delivery = f"Deliver to: {order.delivery_address}"
        notes = f"{delivery}\n{notes}" if notes else delivery

    return DocumentView(
        doc_type="purchase_order",
        title="PURCHASE ORDER",
        number=order.po_number,
        dates=dates,
        company=company,
        party=PartyView(
            label="Supplier",
            name=supplier.name,
            lines=_clean([supplier.contact_name, supplier.address, supplier.email, supplier.phone]),
        ),
        lines=[
            LineView(
                description=item.description,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                total_cents=item.total_cents,
                unit=item.unit,
                sku=item.sku,
            )
            for item in order.items
        ],
        totals=totals,
        status=order.status,
        reference=order.supplier_reference,
        notes=notes,
        terms=order.terms,
    )


# ==== RENDERER ==== #


class DocumentRenderer:
    """Render a ``DocumentView`` to PDF bytes with reportlab platypus."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.styles = {
            "company": ParagraphStyle("company", parent=styles["Title"], alignment=0, fontSize=16, spaceAfter=2),
            "title": ParagraphStyle("title", parent=styles["Heading1"], alignment=TA_RIGHT, fontSize=18),
            "normal": ParagraphStyle("normal", parent=styles["Normal"], fontSize=9, leading=12),
            "small": ParagraphStyle("small", parent=styles["Normal"], fontSize=8, leading=10,
                                    textColor=colors.HexColor("#555555")),
            "right": ParagraphStyle("right", parent=styles["Normal"], fontSize=9, leading=12, alignment=TA_RIGHT),
            "heading": ParagraphStyle("heading", parent=styles["Heading4"], fontSize=10, spaceBefore=6),
        }

    def _paragraph(self, text: Optional[str], style: str = "normal") -> Paragraph:
        # Paragraph parses mini-markup, so user text is escaped and newlines kept
        markup = escape(text or "").replace("\n", "<br/>")
        return Paragraph(markup, self.styles[style])

    def _header(self, view: DocumentView) -> Table:
        company = view.company
        left = [Paragraph(f"<b>{escape(company.name)}</b>", self.styles["company"])]
        left += [self._paragraph(line, "small") for line in company.address_lines]
        if company.contact_line:
            left.append(self._paragraph(company.contact_line, "small"))
        if company.vat_number:
            left.append(self._paragraph(f"VAT: {company.vat_number}", "small"))

        right = [Paragraph(escape(view.title), self.styles["title"])]
        right.append(Paragraph(f"<b>{escape(view.number)}</b>", self.styles["right"]))
        for label, value in view.dates:
            right.append(self._paragraph(f"{label}: {value}", "right"))
        if view.reference:
            right.append(self._paragraph(f"Ref: {view.reference}", "right"))

        table = Table([[left, right]], colWidths=[100 * mm, 74 * mm])
        table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        return table

    def _party(self, view: DocumentView) -> List:
        party = view.party
        block = [Paragraph(f"<b>{escape(party.label)}</b>", self.styles["heading"])]
        block.append(Paragraph(f"<b>{escape(party.name)}</b>", self.styles["normal"]))
        block += [self._paragraph(line) for line in party.lines]
        return block

    def _items(self, view: DocumentView) -> Table:
        currency = view.company.currency
        with_sku = any(line.sku for line in view.lines)

        header = ["Description", "Qty", "Unit price", "Total"]
        widths = [94 * mm, 20 * mm, 30 * mm, 30 * mm]
        if with_sku:
            header.insert(0, "SKU")
            widths = [24 * mm, 70 * mm, 20 * mm, 30 * mm, 30 * mm]

        data = [header]
        for line in view.lines:
            quantity = format_quantity(line.quantity)
            if line.unit:
                quantity = f"{quantity} {line.unit}"
            row = [
                self._paragraph(line.description),
                quantity,
                format_money(line.unit_price_cents, currency),
                format_money(line.total_cents, currency),
            ]
            if with_sku:
                row.insert(0, line.sku or "")
            data.append(row)

        primary = colors.HexColor(view.company.primary_color)
        table = Table(data, repeatRows=1, colWidths=widths)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), primary),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ALIGN", (-3, 0), (-1, -1), "RIGHT"),
            ("BOTTOMPADDING", (0, 0), (-1, 0), 5),
            ("TOPPADDING", (0, 0), (-1, 0), 5),
            ("LINEBELOW", (0, 1), (-1, -1), 0.3, colors.HexColor("#b0b6be")),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
        ]))
        return table

    def _totals(self, view: DocumentView) -> Table:
        currency = view.company.currency
        data = [[label, format_money(amount, currency)] for label, amount in view.totals]
        table = Table(data, colWidths=[40 * mm, 30 * mm], hAlign="RIGHT")
        table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 0.8, colors.HexColor(view.company.primary_color)),
        ]))
        return table

    def _footer(self, view: DocumentView) -> List:
        elements: List = []
        if view.notes:
            elements.append(Paragraph("<b>Notes</b>", self.styles["heading"]))
            elements.append(self._paragraph(view.notes))
        if view.terms:
            elements.append(Paragraph("<b>Terms</b>", self.styles["heading"]))
            elements.append(self._paragraph(view.terms))
        if view.show_bank_details and view.company.bank_details:
            elements.append(Paragraph("<b>Payment details</b>", self.styles["heading"]))
            elements.append(self._paragraph(view.company.bank_details))

        footer = _clean([
            view.company.footer_text,
            f"Company no. {view.company.registration_number}" if view.company.registration_number else None,
        ])
        if footer:
            elements.append(Spacer(1, 10 * mm))
            elements += [self._paragraph(line, "small") for line in footer]
        return elements

    def render(self, view: DocumentView) -> bytes:
        """Render a document view to PDF bytes."""
        with tracer.start_as_current_span("pdf_render") as span:
            span.set_attribute("doc_type", view.doc_type)
            span.set_attribute("document_number", view.number)
            started = time.perf_counter()

            buffer = BytesIO()
            doc = SimpleDocTemplate(
                buffer, pagesize=A4,
                leftMargin=18 * mm, rightMargin=18 * mm, topMargin=16 * mm, bottomMargin=16 * mm,
                title=f"{view.title.title()} {view.number}",
                author=view.company.name,
            )

            elements: List = [self._header(view), Spacer(1, 8 * mm)]
            elements += self._party(view)
            elements.append(Spacer(1, 6 * mm))
            elements.append(self._items(view))
            elements.append(Spacer(1, 4 * mm))
            elements.append(self._totals(view))
            elements += self._footer(view)

            doc.build(elements)
            pdf_bytes = buffer.getvalue()

            elapsed = time.perf_counter() - started
            pdf_render_seconds.labels(doc_type=view.doc_type).observe(elapsed)
            logger.debug(
                "Rendered document PDF",
                doc_type=view.doc_type,
                document_number=view.number,
                size_bytes=len(pdf_bytes),
                duration_ms=int(elapsed * 1000),
            )
            return pdf_bytes
