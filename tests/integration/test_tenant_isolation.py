"""Integration tests for tenant scoping and role checks."""

import pytest

from backoffice.security.auth import create_access_token


pytestmark = pytest.mark.integration


class TestTenantScoping:

    async def test_foreign_customer_is_invisible(self, client, other_tenant_headers, customer):
        response = await client.get(f"/api/customers/{customer['id']}", headers=other_tenant_headers)

        assert response.status_code == 404

    async def test_lists_are_scoped(self, client, auth_headers, other_tenant_headers, factory, customer):
        await client.post("/api/customers", headers=other_tenant_headers, json=factory.customer())

        mine = (await client.get("/api/customers", headers=auth_headers)).json()
        theirs = (await client.get("/api/customers", headers=other_tenant_headers)).json()

        assert mine["total"] == 1
        assert theirs["total"] == 1
        assert mine["items"][0]["id"] != theirs["items"][0]["id"]

    async def test_cannot_quote_foreign_customer(self, client, other_tenant_headers, factory, customer):
        response = await client.post(
            "/api/quotes", headers=other_tenant_headers, json=factory.quote(customer["id"])
        )

        assert response.status_code == 404

    async def test_cannot_convert_foreign_quote(self, client, other_tenant_headers, accepted_quote):
        response = await client.post(
            f"/api/quotes/{accepted_quote['id']}/convert-to-invoice", headers=other_tenant_headers
        )

        assert response.status_code == 404

    async def test_numbering_per_tenant(self, client, auth_headers, other_tenant_headers, factory, customer):
        await client.post("/api/quotes", headers=auth_headers, json=factory.quote(customer["id"]))
        other_customer = (await client.post(
            "/api/customers", headers=other_tenant_headers, json=factory.customer()
        )).json()

        response = await client.post(
            "/api/quotes", headers=other_tenant_headers, json=factory.quote(other_customer["id"])
        )

        assert response.json()["quote_number"] == "QUO-00001"


class TestAccessControl:

    async def test_missing_token(self, client, tenant_id):
        response = await client.get("/api/customers", headers={"X-Tenant-Id": tenant_id})

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    async def test_token_for_other_tenant(self, client, tenant_id):
        token = create_access_token("emp-9", "employee", ["other-tenant"])

        response = await client.get(
            "/api/customers",
            headers={"Authorization": f"Bearer {token}", "X-Tenant-Id": tenant_id},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_unknown_tenant(self, client):
        token = create_access_token("emp-9", "employee", ["nowhere"])

        response = await client.get(
            "/api/customers",
            headers={"Authorization": f"Bearer {token}", "X-Tenant-Id": "nowhere"},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "TENANT_NOT_FOUND"

    async def test_inactive_tenant(self, client, admin_headers, auth_headers, tenant_id):
        response = await client.patch(f"/admin/tenants/{tenant_id}", headers=admin_headers, json={"active": False})
        assert response.status_code == 200

        response = await client.get("/api/customers", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "TENANT_INACTIVE"

    async def test_admin_token_reaches_any_tenant(self, client, admin_headers, tenant_id):
        response = await client.get("/api/customers", headers={**admin_headers, "X-Tenant-Id": tenant_id})

        assert response.status_code == 200
