"""Contract tests for the public HTTP surface: probes, headers and error envelopes."""

import pytest

from backoffice.security.auth import create_access_token


pytestmark = pytest.mark.contract

ERROR_KEYS = {"error", "detail", "message", "correlation_id", "code"}


class TestProbes:

    async def test_healthz(self, client):
        response = await client.get("/healthz")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"]
        assert "timestamp" in body

    async def test_readyz(self, client):
        response = await client.get("/readyz")

        assert response.status_code == 200
        assert response.json()["database_status"] == "connected"

    async def test_info(self, client):
        body = (await client.get("/info")).json()

        assert body["environment"] == "test"
        assert body["email_provider"] == "console"
        assert body["database_status"] == "connected"

    async def test_metrics(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "backoffice_quote_conversions_total" in response.text
        assert "backoffice_http_request_latency_seconds" in response.text

    async def test_docs_hidden_outside_dev(self, client):
        response = await client.get("/docs")

        assert response.status_code == 404


class TestTenantHeader:

    async def test_missing_tenant(self, client):
        token = create_access_token("emp-1", "employee", ["test-tenant"])

        response = await client.get("/api/customers", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 400
        assert response.json()["code"] == "TENANT_REQUIRED"

    async def test_malformed_tenant(self, client):
        response = await client.get("/api/customers", headers={"X-Tenant-Id": "bad tenant!"})

        assert response.status_code == 400
        assert response.json()["code"] == "TENANT_INVALID"


class TestErrorEnvelope:

    async def test_domain_error_shape(self, client, auth_headers, correlation_id):
        response = await client.get(
            "/api/customers/424242", headers={**auth_headers, "X-Correlation-Id": correlation_id}
        )

        assert response.status_code == 404
        body = response.json()
        assert ERROR_KEYS <= set(body)
        assert body["code"] == "NOT_FOUND"
        assert body["error"] == "Not found"
        assert body["correlation_id"] == correlation_id
        assert response.headers["X-Correlation-Id"] == correlation_id

    async def test_conflict_carries_context(self, client, auth_headers, factory, customer):
        quote = (await client.post(
            "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
        )).json()

        response = await client.post(f"/api/quotes/{quote['id']}/convert-to-invoice", headers=auth_headers)

        body = response.json()
        assert ERROR_KEYS <= set(body)
        assert body["error"] == "Conflict"
        assert body["context"] == {"current_status": "draft"}

    async def test_unauthorized_shape(self, client, tenant_id):
        response = await client.get("/api/customers", headers={"X-Tenant-Id": tenant_id})

        assert response.status_code == 401
        body = response.json()
        assert ERROR_KEYS <= set(body)
        assert body["code"] == "UNAUTHORIZED"

    async def test_method_not_allowed(self, client, auth_headers):
        response = await client.put("/api/customers", headers=auth_headers, json={})

        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"

    async def test_correlation_id_generated(self, client):
        response = await client.get("/healthz")

        assert response.headers.get("X-Correlation-Id")


class TestResponseShapes:

    async def test_page_envelope(self, client, auth_headers, customer):
        body = (await client.get("/api/customers", headers=auth_headers)).json()

        assert set(body) == {"items", "total", "page", "page_size", "has_next"}
        assert body["page"] == 1
        assert body["has_next"] is False

    async def test_money_fields_are_integer_cents(self, client, auth_headers, accepted_quote):
        for key in ("subtotal_cents", "discount_cents", "tax_cents", "total_cents"):
            assert isinstance(accepted_quote[key], int)
        for item in accepted_quote["items"]:
            assert isinstance(item["unit_price_cents"], int)
            assert isinstance(item["total_cents"], int)
