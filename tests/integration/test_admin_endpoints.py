"""Integration tests for tenant administration and operations endpoints."""

import pytest


pytestmark = pytest.mark.integration


class TestTenants:

    async def test_create_and_list(self, client, admin_headers):
        response = await client.post("/admin/tenants", headers=admin_headers, json={
            "name": "northwind", "display_name": "Northwind Joinery", "contact_email": "ops@northwind.example",
        })

        assert response.status_code == 201
        tenant = response.json()
        assert tenant["name"] == "northwind"
        assert tenant["active"] is True
        assert tenant["plan"] == "standard"

        names = [t["name"] for t in (await client.get("/admin/tenants", headers=admin_headers)).json()]
        assert "northwind" in names
        assert "test-tenant" in names

    async def test_duplicate_name(self, client, admin_headers, tenant_id):
        response = await client.post("/admin/tenants", headers=admin_headers, json={"name": tenant_id})

        assert response.status_code == 409
        assert response.json()["code"] == "TENANT_EXISTS"

    async def test_invalid_name(self, client, admin_headers):
        response = await client.post("/admin/tenants", headers=admin_headers, json={"name": "bad name!"})

        assert response.status_code == 422

    async def test_update(self, client, admin_headers, tenant_id):
        response = await client.patch(
            f"/admin/tenants/{tenant_id}", headers=admin_headers, json={"plan": "premium"}
        )

        assert response.status_code == 200
        assert response.json()["plan"] == "premium"

        detail = (await client.get(f"/admin/tenants/{tenant_id}", headers=admin_headers)).json()
        assert detail["plan"] == "premium"

    async def test_unknown_tenant(self, client, admin_headers):
        response = await client.get("/admin/tenants/missing", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "TENANT_NOT_FOUND"

    async def test_requires_admin_role(self, client, manager_headers):
        response = await client.get("/admin/tenants", headers=manager_headers)

        assert response.status_code == 403

    async def test_requires_token(self, client):
        response = await client.get("/admin/tenants")

        assert response.status_code == 401


class TestTokens:

    async def test_issued_token_works(self, client, admin_headers, tenant_id):
        response = await client.post("/admin/tokens", headers=admin_headers, json={
            "user_id": "fitter-7", "role": "employee", "tenants": [tenant_id], "name": "Frankie Fitter",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"

        response = await client.get(
            "/api/customers",
            headers={"Authorization": f"Bearer {body['access_token']}", "X-Tenant-Id": tenant_id},
        )
        assert response.status_code == 200

    async def test_unknown_tenant_refused(self, client, admin_headers):
        response = await client.post("/admin/tokens", headers=admin_headers, json={
            "user_id": "fitter-7", "tenants": ["missing"],
        })

        assert response.status_code == 404

    async def test_invalid_role(self, client, admin_headers, tenant_id):
        response = await client.post("/admin/tokens", headers=admin_headers, json={
            "user_id": "fitter-7", "role": "owner", "tenants": [tenant_id],
        })

        assert response.status_code == 422


class TestOperations:

    async def test_run_maintenance(self, client, admin_headers, auth_headers, factory, customer, tenant_id):
        invoice = (await client.post("/api/invoices", headers=auth_headers, json=factory.invoice(
            customer["id"], issue_date="2025-01-01", due_date="2025-01-31",
        ))).json()
        await client.post(f"/api/invoices/{invoice['id']}/issue", headers=auth_headers)

        response = await client.post(
            "/admin/maintenance/run",
            headers=admin_headers,
            params={"tenant": tenant_id, "on_date": "2025-03-14"},
        )

        assert response.status_code == 200
        summary = response.json()
        assert summary["date"] == "2025-03-14"
        assert [entry["invoice_id"] for entry in summary["overdue_invoices"]] == [invoice["id"]]

        invoice = (await client.get(f"/api/invoices/{invoice['id']}", headers=auth_headers)).json()
        assert invoice["status"] == "overdue"

    async def test_circuit_breakers(self, client, admin_headers):
        response = await client.get("/admin/circuit-breakers", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["email"]["state"] == "closed"

        response = await client.post("/admin/circuit-breakers/email/reset", headers=admin_headers)
        assert response.json() == {"name": "email", "reset": True}

        response = await client.post("/admin/circuit-breakers/nope/reset", headers=admin_headers)
        assert response.json()["reset"] is False
