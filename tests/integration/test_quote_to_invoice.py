"""Integration tests for the quote lifecycle and conversion to an invoice."""

import datetime as dt

import pytest
from sqlalchemy import func, select

import backoffice.services.conversion as conversion
import backoffice.storage.db as db_module
from backoffice.schemas.documents import LineItemIn, QuoteCreate
from backoffice.services.conversion import convert_quote_to_invoice
from backoffice.services.quotes import QuoteService
from backoffice.storage.models import Customer, Invoice, InvoiceItem, Quote
from backoffice.storage.repository import TenantRepository


pytestmark = pytest.mark.integration


class TestQuoteLifecycle:

    async def test_create_quote_prices_lines(self, client, auth_headers, factory, customer):
        response = await client.post("/api/quotes", headers=auth_headers, json=factory.quote(customer["id"]))

        assert response.status_code == 201
        quote = response.json()
        assert quote["quote_number"] == "QUO-00001"
        assert quote["status"] == "draft"
        assert [item["total_cents"] for item in quote["items"]] == [15000, 10000]
        assert quote["subtotal_cents"] == 25000
        assert quote["tax_cents"] == 5000
        assert quote["total_cents"] == 30000
        assert quote["expiry_date"] is not None

    async def test_quote_numbers_are_sequential(self, client, auth_headers, factory, customer):
        numbers = []
        for _ in range(3):
            response = await client.post(
                "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
            )
            numbers.append(response.json()["quote_number"])

        assert numbers == ["QUO-00001", "QUO-00002", "QUO-00003"]

    async def test_catalog_item_defaults(self, client, auth_headers, factory, customer):
        catalog = (await client.post(
            "/api/catalog", headers=auth_headers, json=factory.catalog_item(name="Door handle", unit_price_cents=2500)
        )).json()

        response = await client.post("/api/quotes", headers=auth_headers, json=factory.quote(
            customer["id"], items=[{"catalog_item_id": catalog["id"], "quantity": 4}], tax_rate=0.0,
        ))

        item = response.json()["items"][0]
        assert item["description"] == "Door handle"
        assert item["unit_price_cents"] == 2500
        assert item["total_cents"] == 10000

    async def test_edit_items_recomputes_totals(self, client, auth_headers, factory, customer):
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()

        response = await client.post(
            f"/api/quotes/{quote['id']}/items",
            headers=auth_headers,
            json={"description": "Skip hire", "quantity": 1, "unit_price_cents": 5000},
        )
        assert response.status_code == 201
        assert response.json()["subtotal_cents"] == 30000
        assert response.json()["total_cents"] == 36000

        first_item = response.json()["items"][0]["id"]
        response = await client.delete(f"/api/quotes/{quote['id']}/items/{first_item}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["subtotal_cents"] == 15000

    async def test_discount_reduces_taxable_amount(self, client, auth_headers, factory, customer):
        response = await client.post("/api/quotes", headers=auth_headers, json=factory.quote(
            customer["id"], discount_cents=5000,
        ))

        quote = response.json()
        assert quote["discount_cents"] == 5000
        assert quote["tax_cents"] == 4000
        assert quote["total_cents"] == 24000

    async def test_discount_survives_line_changes(self, client, auth_headers, factory, customer):
        quote = (await client.post("/api/quotes", headers=auth_headers, json=factory.quote(
            customer["id"], tax_rate=0.0, discount_cents=40000,
        ))).json()
        assert quote["subtotal_cents"] == 25000
        assert quote["discount_cents"] == 40000
        assert quote["total_cents"] == 0

        response = await client.post(
            f"/api/quotes/{quote['id']}/items",
            headers=auth_headers,
            json={"description": "Bifold doors", "quantity": 1, "unit_price_cents": 100000},
        )

        assert response.json()["discount_cents"] == 40000
        assert response.json()["total_cents"] == 85000

    async def test_null_for_required_field_is_rejected(self, client, auth_headers, factory, customer):
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()

        for field in ("tax_rate", "discount_cents", "issue_date"):
            response = await client.patch(
                f"/api/quotes/{quote['id']}", headers=auth_headers, json={field: None}
            )
            assert response.status_code == 422, field

        response = await client.patch(
            f"/api/quotes/{quote['id']}", headers=auth_headers, json={"expiry_date": None, "notes": None}
        )
        assert response.status_code == 200

    async def test_deleted_quote_number_is_not_reused(self, client, auth_headers, factory, customer):
        await client.post("/api/quotes", headers=auth_headers, json=factory.quote(customer["id"]))
        newest = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()
        assert newest["quote_number"] == "QUO-00002"

        response = await client.delete(f"/api/quotes/{newest['id']}", headers=auth_headers)
        assert response.status_code == 204

        following = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()
        assert following["quote_number"] == "QUO-00003"

    async def test_accept_records_actor(self, accepted_quote):
        assert accepted_quote["status"] == "accepted"
        assert accepted_quote["accepted_by"] == "Erin Employee"
        assert accepted_quote["accepted_at"] is not None

        accepted_at = dt.datetime.fromisoformat(accepted_quote["accepted_at"])
        utc = dt.datetime.now(dt.timezone.utc).replace(tzinfo=None)
        assert abs(utc - accepted_at) < dt.timedelta(minutes=5)

    async def test_accepted_quote_is_not_editable(self, client, auth_headers, accepted_quote):
        response = await client.patch(
            f"/api/quotes/{accepted_quote['id']}", headers=auth_headers, json={"notes": "late change"}
        )

        assert response.status_code == 409
        assert response.json()["code"] == "QUOTE_NOT_EDITABLE"

    async def test_rejected_quote_cannot_be_accepted(self, client, auth_headers, factory, customer):
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()
        await client.post(f"/api/quotes/{quote['id']}/reject", headers=auth_headers)

        response = await client.post(f"/api/quotes/{quote['id']}/accept", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    async def test_list_filters_by_status(self, client, auth_headers, factory, customer, accepted_quote):
        await client.post("/api/quotes", headers=auth_headers, json=factory.quote(customer["id"]))

        response = await client.get("/api/quotes", headers=auth_headers, params={"status": "accepted"})

        page = response.json()
        assert page["total"] == 1
        assert page["items"][0]["id"] == accepted_quote["id"]


class TestConversion:
    """Accepted quotes convert to an issued invoice in one transaction."""

    async def test_convert_accepted_quote(self, client, auth_headers, accepted_quote):
        response = await client.post(
            f"/api/quotes/{accepted_quote['id']}/convert-to-invoice", headers=auth_headers
        )

        assert response.status_code == 201
        invoice = response.json()
        assert invoice["invoice_number"] == "INV-00001"
        assert invoice["status"] == "issued"
        assert invoice["quote_id"] == accepted_quote["id"]
        assert invoice["invoice_type"] == "final"
        assert invoice["total_cents"] == accepted_quote["total_cents"]
        assert invoice["balance_cents"] == 30000
        assert [item["description"] for item in invoice["items"]] == [
            item["description"] for item in accepted_quote["items"]
        ]

        quote = (await client.get(f"/api/quotes/{accepted_quote['id']}", headers=auth_headers)).json()
        assert quote["status"] == "converted"
        assert quote["converted_invoice_id"] == invoice["id"]

    async def test_convert_twice_is_refused(self, client, auth_headers, accepted_quote):
        url = f"/api/quotes/{accepted_quote['id']}/convert-to-invoice"
        await client.post(url, headers=auth_headers)

        response = await client.post(url, headers=auth_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "QUOTE_NOT_ACCEPTED"
        assert body["context"]["current_status"] == "converted"

        invoices = (await client.get("/api/invoices", headers=auth_headers)).json()
        assert invoices["total"] == 1

    async def test_draft_quote_cannot_convert(self, client, auth_headers, factory, customer):
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()

        response = await client.post(f"/api/quotes/{quote['id']}/convert-to-invoice", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "QUOTE_NOT_ACCEPTED"

        # A refused conversion allocates no invoice number
        manual = await client.post(
            "/api/invoices", headers=auth_headers, json=factory.invoice(customer["id"])
        )
        assert manual.json()["invoice_number"] == "INV-00001"

    async def test_due_days_option(self, client, auth_headers, accepted_quote):
        response = await client.post(
            f"/api/quotes/{accepted_quote['id']}/convert-to-invoice",
            headers=auth_headers,
            json={"due_days": 14},
        )

        invoice = response.json()
        issue = dt.date.fromisoformat(invoice["issue_date"])
        assert dt.date.fromisoformat(invoice["due_date"]) - issue == dt.timedelta(days=14)

    async def test_deposit_invoice_links_project(self, client, auth_headers, factory, customer):
        project = (await client.post(
            "/api/projects", headers=auth_headers, json={"name": "Reception refit", "customer_id": customer["id"]}
        )).json()
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"], project_id=project["id"])
        )).json()
        await client.post(f"/api/quotes/{quote['id']}/accept", headers=auth_headers)

        response = await client.post(
            f"/api/quotes/{quote['id']}/convert-to-invoice",
            headers=auth_headers,
            json={"invoice_type": "deposit"},
        )

        invoice = response.json()
        assert invoice["invoice_type"] == "deposit"
        assert invoice["project_id"] == project["id"]

        project = (await client.get(f"/api/projects/{project['id']}", headers=auth_headers)).json()
        assert project["deposit_invoice_id"] == invoice["id"]
        assert project["final_invoice_id"] is None
        assert project["status"] == "quoted"

    async def test_unknown_quote(self, client, auth_headers):
        response = await client.post("/api/quotes/9999/convert-to-invoice", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_invoice_totals_match_quote(self, client, auth_headers, factory, customer):
        quote = (await client.post("/api/quotes", headers=auth_headers, json=factory.quote(
            customer["id"], discount_cents=1250, tax_rate=17.5,
        ))).json()
        await client.post(f"/api/quotes/{quote['id']}/accept", headers=auth_headers)

        invoice = (await client.post(
            f"/api/quotes/{quote['id']}/convert-to-invoice", headers=auth_headers
        )).json()

        for key in ("subtotal_cents", "discount_cents", "tax_rate", "tax_cents", "total_cents"):
            assert invoice[key] == quote[key], key
        assert [
            (item["description"], item["quantity"], item["unit_price_cents"], item["total_cents"])
            for item in invoice["items"]
        ] == [
            (item["description"], item["quantity"], item["unit_price_cents"], item["total_cents"])
            for item in quote["items"]
        ]


class TestConversionAtomicity:
    """A conversion that fails part way leaves nothing behind."""

    async def _accepted_quote(self, tenant_id) -> int:
        async with db_module.get_session() as db:
            customer = await TenantRepository(Customer, db, tenant_id).create(name="Harbour View Dental")
            quotes = QuoteService(db, tenant_id, "emp-1")
            quote = await quotes.create(QuoteCreate(
                customer_id=customer.id,
                tax_rate=20.0,
                items=[LineItemIn(description="Survey and measure", quantity=1, unit_price_cents=15000)],
            ))
            await quotes.accept(quote.id, "Erin Employee")
            return quote.id

    async def test_failure_after_insert_rolls_back_everything(self, database, tenant_id, monkeypatch):
        quote_id = await self._accepted_quote(tenant_id)

        def fail(*args, **kwargs):
            raise RuntimeError("event sink unavailable")

        monkeypatch.setattr(conversion, "log_business_event", fail)
        with pytest.raises(RuntimeError):
            async with db_module.get_session() as db:
                await convert_quote_to_invoice(db, tenant_id, quote_id)
        monkeypatch.undo()

        async with db_module.get_session() as db:
            assert await db.scalar(select(func.count()).select_from(Invoice)) == 0
            assert await db.scalar(select(func.count()).select_from(InvoiceItem)) == 0

            quote = await db.get(Quote, quote_id)
            assert quote.status == "accepted"
            assert quote.converted_invoice_id is None

            invoice = await convert_quote_to_invoice(db, tenant_id, quote_id)
            assert invoice.invoice_number == "INV-00001"
            assert invoice.total_cents == quote.total_cents
