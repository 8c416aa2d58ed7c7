"""Integration tests for reports, CSV export and the dashboard."""

import datetime as dt

import pytest
import pytest_asyncio


pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def sales(client, auth_headers, factory, customer, accepted_quote):
    """One converted quote with a part payment, one rejected quote and one open draft."""
    invoice = (await client.post(
        f"/api/quotes/{accepted_quote['id']}/convert-to-invoice", headers=auth_headers
    )).json()
    await client.post(
        f"/api/invoices/{invoice['id']}/payments", headers=auth_headers, json={"amount_cents": 10000}
    )

    rejected = (await client.post(
        "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
    )).json()
    await client.post(f"/api/quotes/{rejected['id']}/reject", headers=auth_headers)

    await client.post("/api/quotes", headers=auth_headers, json=factory.quote(customer["id"]))
    return invoice


class TestReports:

    async def test_revenue_by_month(self, client, auth_headers, sales):
        response = await client.get("/api/reports/revenue", headers=auth_headers)

        assert response.status_code == 200
        report = response.json()
        assert report["report_type"] == "revenue"
        assert report["filters"]["group_by"] == "month"
        assert report["rows"] == [{
            "period": dt.date.today().strftime("%Y-%m"),
            "invoice_count": 1,
            "total_cents": 30000,
            "paid_cents": 10000,
            "unpaid_cents": 20000,
            "paid_percentage": 33.33,
        }]
        assert report["summary"]["unpaid_cents"] == 20000

    async def test_cancelled_invoices_excluded(self, client, auth_headers, factory, customer):
        invoice = (await client.post(
            "/api/invoices", headers=auth_headers, json=factory.invoice(customer["id"])
        )).json()
        await client.post(f"/api/invoices/{invoice['id']}/cancel", headers=auth_headers)

        report = (await client.get("/api/reports/revenue", headers=auth_headers)).json()

        assert report["rows"] == []
        assert report["summary"]["total_cents"] == 0

    async def test_quotes_conversion(self, client, auth_headers, sales):
        report = (await client.get("/api/reports/quotes_conversion", headers=auth_headers)).json()

        counts = {row["status"]: row["quote_count"] for row in report["rows"]}
        assert counts["converted"] == 1
        assert counts["rejected"] == 1
        assert counts["draft"] == 1
        assert report["summary"]["decided_count"] == 2
        assert report["summary"]["conversion_rate"] == 50.0

    async def test_sales_by_customer(self, client, auth_headers, customer, sales):
        report = (await client.get("/api/reports/sales_by_customer", headers=auth_headers)).json()

        assert report["rows"] == [{
            "customer_id": customer["id"],
            "customer_name": customer["name"],
            "invoice_count": 1,
            "total_cents": 30000,
            "paid_cents": 10000,
            "outstanding_cents": 20000,
        }]

    async def test_expenses_by_category(self, client, auth_headers, factory):
        await client.post("/api/expenses", headers=auth_headers, json=factory.expense(amount_cents=3000))
        await client.post("/api/expenses", headers=auth_headers, json=factory.expense(
            description="Parking", category="travel", amount_cents=1000,
        ))

        report = (await client.get("/api/reports/expenses_by_category", headers=auth_headers)).json()

        assert [(row["category"], row["share_percentage"]) for row in report["rows"]] == [
            ("fuel", 75.0), ("travel", 25.0),
        ]

    async def test_csv_export(self, client, auth_headers, sales):
        response = await client.get("/api/reports/revenue", headers=auth_headers, params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="revenue.csv"' in response.headers["content-disposition"]
        lines = response.text.splitlines()
        assert lines[0] == "period,invoice_count,total_cents,paid_cents,unpaid_cents,paid_percentage"
        assert lines[1].endswith(",1,30000,10000,20000,33.33")

    @pytest.mark.parametrize("report_type,header", [
        ("revenue", "period,invoice_count,total_cents,paid_cents,unpaid_cents,paid_percentage"),
        ("sales_by_customer", "customer_id,customer_name,invoice_count,total_cents,paid_cents,outstanding_cents"),
        ("expenses_by_category", "category,expense_count,total_cents,share_percentage"),
    ])
    async def test_csv_export_without_data_has_header(self, client, auth_headers, report_type, header):
        response = await client.get(f"/api/reports/{report_type}", headers=auth_headers, params={"format": "csv"})

        assert response.status_code == 200
        assert response.text.splitlines() == [header]

    async def test_json_lists_columns(self, client, auth_headers):
        report = (await client.get("/api/reports/sales_by_item", headers=auth_headers)).json()

        assert report["rows"] == []
        assert report["columns"] == ["catalog_item_id", "item", "line_count", "quantity", "revenue_cents"]

    async def test_unknown_report(self, client, auth_headers):
        response = await client.get("/api/reports/forecast", headers=auth_headers)

        assert response.status_code == 422

    async def test_date_filter(self, client, auth_headers, sales):
        report = (await client.get(
            "/api/reports/revenue", headers=auth_headers, params={"end_date": "2000-01-01"}
        )).json()

        assert report["rows"] == []


class TestDashboard:

    async def test_summary(self, client, auth_headers, sales):
        response = await client.get("/api/dashboard/summary", headers=auth_headers)

        assert response.status_code == 200
        summary = response.json()
        assert summary["customers"] == 1
        assert summary["open_quotes"] == 1
        assert summary["open_quotes_value_cents"] == 30000
        assert summary["outstanding_receivables_cents"] == 20000
        assert summary["overdue_invoices"] == 0
        assert summary["revenue_this_month_cents"] == 30000
        assert summary["low_stock_items"] == 0
        assert summary["pending_timesheets"] == 0

    async def test_overdue_counted_before_nightly_job(self, client, auth_headers, factory, customer):
        invoice = (await client.post("/api/invoices", headers=auth_headers, json=factory.invoice(
            customer["id"], issue_date="2025-01-01", due_date="2025-01-31",
        ))).json()
        await client.post(f"/api/invoices/{invoice['id']}/issue", headers=auth_headers)

        summary = (await client.get("/api/dashboard/summary", headers=auth_headers)).json()

        assert summary["overdue_invoices"] == 1
        assert summary["overdue_value_cents"] == 10000

    async def test_empty_tenant(self, client, other_tenant_headers):
        summary = (await client.get("/api/dashboard/summary", headers=other_tenant_headers)).json()

        assert summary["customers"] == 0
        assert summary["revenue_this_month_cents"] == 0
