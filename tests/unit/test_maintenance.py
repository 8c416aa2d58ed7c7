"""Unit tests for the nightly date-driven jobs."""

import datetime as dt

import pytest

from backoffice.schemas.documents import InvoiceCreate, LineItemIn, QuoteCreate
from backoffice.schemas.inventory import InventoryItemCreate
from backoffice.services.inventory import create_item
from backoffice.services.invoicing import InvoiceService
from backoffice.services.maintenance import (
    expire_quotes,
    low_stock_report,
    mark_overdue_invoices,
    run_nightly_maintenance,
)
from backoffice.services.quotes import QuoteService
from backoffice.storage.models import Customer
from backoffice.storage.repository import TenantRepository


TODAY = dt.date(2025, 3, 14)
LINES = [LineItemIn(description="Call-out", quantity=1, unit_price_cents=10000)]


async def _customer(db, tenant):
    return await TenantRepository(Customer, db, tenant).create(name="Harbour View Dental")


async def _issued_invoice(db, tenant, customer_id, due_date):
    service = InvoiceService(db, tenant)
    invoice = await service.create(InvoiceCreate(
        customer_id=customer_id,
        issue_date=due_date - dt.timedelta(days=30),
        due_date=due_date,
        tax_rate=0.0,
        items=LINES,
    ))
    return await service.issue(invoice.id)


async def _sent_quote(db, tenant, customer_id, expiry_date):
    service = QuoteService(db, tenant)
    quote = await service.create(QuoteCreate(
        customer_id=customer_id,
        issue_date=expiry_date - dt.timedelta(days=30),
        expiry_date=expiry_date,
        tax_rate=0.0,
        items=LINES,
    ))
    return await service.mark_sent(quote.id)


@pytest.mark.unit
class TestOverdueInvoices:

    async def test_past_due_invoice_marked(self, db_session, tenant_id):
        customer = await _customer(db_session, tenant_id)
        late = await _issued_invoice(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=1))
        on_time = await _issued_invoice(db_session, tenant_id, customer.id, TODAY)

        changed = await mark_overdue_invoices(db_session, TODAY, tenant_id)

        assert [entry["invoice_id"] for entry in changed] == [late.id]
        assert changed[0]["balance_cents"] == 10000
        assert late.status == "overdue"
        assert on_time.status == "issued"

    async def test_partially_paid_invoice_marked(self, db_session, tenant_id):
        from backoffice.schemas.documents import PaymentCreate

        customer = await _customer(db_session, tenant_id)
        invoice = await _issued_invoice(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=5))
        await InvoiceService(db_session, tenant_id).record_payment(invoice.id, PaymentCreate(amount_cents=4000))

        changed = await mark_overdue_invoices(db_session, TODAY, tenant_id)

        assert changed[0]["balance_cents"] == 6000
        assert invoice.status == "overdue"

    async def test_draft_invoice_ignored(self, db_session, tenant_id):
        customer = await _customer(db_session, tenant_id)
        await InvoiceService(db_session, tenant_id).create(InvoiceCreate(
            customer_id=customer.id,
            issue_date=TODAY - dt.timedelta(days=40),
            due_date=TODAY - dt.timedelta(days=10),
            items=LINES,
        ))

        assert await mark_overdue_invoices(db_session, TODAY, tenant_id) == []

    async def test_tenant_scope(self, db_session, tenant_id):
        customer = await _customer(db_session, tenant_id)
        await _issued_invoice(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=1))

        assert await mark_overdue_invoices(db_session, TODAY, "other-tenant") == []
        assert len(await mark_overdue_invoices(db_session, TODAY)) == 1


@pytest.mark.unit
class TestQuoteExpiry:

    async def test_sent_quote_past_expiry(self, db_session, tenant_id):
        customer = await _customer(db_session, tenant_id)
        stale = await _sent_quote(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=1))
        fresh = await _sent_quote(db_session, tenant_id, customer.id, TODAY + dt.timedelta(days=3))

        changed = await expire_quotes(db_session, TODAY, tenant_id)

        assert [entry["quote_id"] for entry in changed] == [stale.id]
        assert stale.status == "expired"
        assert fresh.status == "sent"

    async def test_draft_quote_never_expires(self, db_session, tenant_id):
        customer = await _customer(db_session, tenant_id)
        await QuoteService(db_session, tenant_id).create(QuoteCreate(
            customer_id=customer.id,
            issue_date=TODAY - dt.timedelta(days=60),
            expiry_date=TODAY - dt.timedelta(days=30),
            items=LINES,
        ))

        assert await expire_quotes(db_session, TODAY, tenant_id) == []


@pytest.mark.unit
class TestLowStock:

    async def test_suggested_order_quantity(self, db_session, tenant_id):
        await create_item(db_session, tenant_id, InventoryItemCreate(
            name="Oak board", sku="OAK-18", current_stock=2, reorder_point=5, reorder_quantity=20,
        ))
        await create_item(db_session, tenant_id, InventoryItemCreate(
            name="Glue", sku="GLU-01", current_stock=1, reorder_point=40, reorder_quantity=10,
        ))
        await create_item(db_session, tenant_id, InventoryItemCreate(
            name="Screws", sku="SCR-04", current_stock=500, reorder_point=100, reorder_quantity=1000,
        ))

        rows = await low_stock_report(db_session, tenant_id)

        by_sku = {row["sku"]: row for row in rows}
        assert set(by_sku) == {"OAK-18", "GLU-01"}
        assert by_sku["OAK-18"]["suggested_order_quantity"] == 20
        assert by_sku["GLU-01"]["suggested_order_quantity"] == 39

    async def test_inactive_items_skipped(self, db_session, tenant_id):
        await create_item(db_session, tenant_id, InventoryItemCreate(
            name="Old stock", sku="OLD-1", current_stock=0, reorder_point=5, active=False,
        ))

        assert await low_stock_report(db_session, tenant_id) == []


@pytest.mark.unit
async def test_run_nightly_maintenance_summary(db_session, tenant_id):
    customer = await _customer(db_session, tenant_id)
    await _issued_invoice(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=2))
    await _sent_quote(db_session, tenant_id, customer.id, TODAY - dt.timedelta(days=2))

    summary = await run_nightly_maintenance(db_session, TODAY, tenant_id)

    assert summary["date"] == "2025-03-14"
    assert len(summary["overdue_invoices"]) == 1
    assert len(summary["expired_quotes"]) == 1
    assert summary["low_stock"] == []
