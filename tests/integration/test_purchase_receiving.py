"""Integration tests for purchase orders, goods receipt and stock levels."""

import pytest
import pytest_asyncio


pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def stock_item(client, auth_headers, factory):
    response = await client.post(
        "/api/inventory/items",
        headers=auth_headers,
        json=factory.inventory_item(name="Aluminium profile", sku="ALU-60", current_stock=2, cost_cents=1200),
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def draft_order(client, auth_headers, factory, supplier, stock_item):
    response = await client.post("/api/purchase-orders", headers=auth_headers, json=factory.purchase_order(
        supplier["id"],
        items=[
            {"inventory_item_id": stock_item["id"], "quantity": 10, "unit_price_cents": 1500},
            {"description": "Delivery pallet", "quantity": 1, "unit_price_cents": 3000},
        ],
    ))
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def issued_order(client, auth_headers, draft_order):
    response = await client.post(f"/api/purchase-orders/{draft_order['id']}/issue", headers=auth_headers)
    assert response.status_code == 200
    return response.json()


class TestPurchaseOrders:

    async def test_create_defaults_from_inventory(self, draft_order, stock_item):
        assert draft_order["po_number"] == "PO-00001"
        assert draft_order["status"] == "draft"

        linked = draft_order["items"][0]
        assert linked["description"] == "Aluminium profile"
        assert linked["sku"] == "ALU-60"
        assert linked["unit"] == "each"
        assert linked["total_cents"] == 15000
        assert linked["received_quantity"] == 0
        assert draft_order["total_cents"] == 18000

    async def test_price_defaults_to_cost(self, client, auth_headers, factory, supplier, stock_item):
        response = await client.post("/api/purchase-orders", headers=auth_headers, json=factory.purchase_order(
            supplier["id"], items=[{"inventory_item_id": stock_item["id"], "quantity": 2}],
        ))

        assert response.json()["items"][0]["unit_price_cents"] == 1200

    async def test_shipping_added_after_tax(self, client, auth_headers, factory, supplier):
        response = await client.post("/api/purchase-orders", headers=auth_headers, json=factory.purchase_order(
            supplier["id"],
            items=[{"description": "Hinges", "quantity": 4, "unit_price_cents": 2500}],
            tax_rate=20.0,
            shipping_cents=1500,
        ))

        order = response.json()
        assert order["subtotal_cents"] == 10000
        assert order["tax_cents"] == 2000
        assert order["total_cents"] == 13500

    async def test_null_for_required_field_is_rejected(self, client, auth_headers, draft_order):
        for field in ("tax_rate", "shipping_cents"):
            response = await client.patch(
                f"/api/purchase-orders/{draft_order['id']}", headers=auth_headers, json={field: None}
            )
            assert response.status_code == 422, field

        response = await client.patch(
            f"/api/purchase-orders/{draft_order['id']}", headers=auth_headers, json={"expected_delivery_date": None}
        )
        assert response.status_code == 200

    async def test_issued_order_is_not_editable(self, client, auth_headers, issued_order):
        response = await client.patch(
            f"/api/purchase-orders/{issued_order['id']}", headers=auth_headers, json={"notes": "rush"}
        )

        assert response.status_code == 409
        assert response.json()["code"] == "PURCHASE_ORDER_NOT_EDITABLE"

    async def test_issued_order_is_not_deletable(self, client, auth_headers, issued_order):
        response = await client.delete(f"/api/purchase-orders/{issued_order['id']}", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["code"] == "PURCHASE_ORDER_NOT_DELETABLE"

    async def test_unknown_supplier(self, client, auth_headers, factory):
        response = await client.post("/api/purchase-orders", headers=auth_headers, json=factory.purchase_order(
            4242, items=[{"description": "Hinges", "quantity": 1, "unit_price_cents": 100}],
        ))

        assert response.status_code == 404


class TestReceiving:

    async def test_partial_then_full_receipt(self, client, auth_headers, issued_order, stock_item):
        url = f"/api/purchase-orders/{issued_order['id']}/receive"
        linked, pallet = issued_order["items"]

        response = await client.post(url, headers=auth_headers, json={
            "lines": [{"item_id": linked["id"], "quantity": 4}],
        })
        assert response.status_code == 200
        order = response.json()
        assert order["status"] == "partially_received"
        assert order["received_date"] is None

        item = (await client.get(f"/api/inventory/items/{stock_item['id']}", headers=auth_headers)).json()
        assert item["current_stock"] == 6
        assert item["last_purchase_price_cents"] == 1500

        response = await client.post(url, headers=auth_headers, json={
            "lines": [{"item_id": linked["id"], "quantity": 6}, {"item_id": pallet["id"], "quantity": 1}],
            "received_date": "2025-03-20",
        })
        order = response.json()
        assert order["status"] == "received"
        assert order["received_date"] == "2025-03-20"

        item = (await client.get(f"/api/inventory/items/{stock_item['id']}", headers=auth_headers)).json()
        assert item["current_stock"] == 12

    async def test_receipt_records_movements(self, client, auth_headers, issued_order, stock_item):
        linked = issued_order["items"][0]
        await client.post(f"/api/purchase-orders/{issued_order['id']}/receive", headers=auth_headers, json={
            "lines": [{"item_id": linked["id"], "quantity": 10}],
            "reference": "DN-7781",
        })

        response = await client.get(
            "/api/inventory/transactions",
            headers=auth_headers,
            params={"purchase_order_id": issued_order["id"]},
        )

        movements = response.json()["items"]
        assert len(movements) == 1
        assert movements[0]["transaction_type"] == "purchase"
        assert movements[0]["quantity"] == 10
        assert movements[0]["stock_after"] == 12
        assert movements[0]["unit_cost_cents"] == 1500
        assert movements[0]["reference"] == "DN-7781"

    async def test_over_receipt_rejected(self, client, auth_headers, issued_order, stock_item):
        linked = issued_order["items"][0]

        response = await client.post(f"/api/purchase-orders/{issued_order['id']}/receive", headers=auth_headers, json={
            "lines": [{"item_id": linked["id"], "quantity": 11}],
        })

        assert response.status_code == 422
        assert response.json()["code"] == "OVER_RECEIPT"

        item = (await client.get(f"/api/inventory/items/{stock_item['id']}", headers=auth_headers)).json()
        assert item["current_stock"] == 2

    async def test_one_bad_line_rejects_receipt(self, client, auth_headers, issued_order, stock_item):
        linked, pallet = issued_order["items"]

        response = await client.post(f"/api/purchase-orders/{issued_order['id']}/receive", headers=auth_headers, json={
            "lines": [{"item_id": linked["id"], "quantity": 5}, {"item_id": pallet["id"], "quantity": 3}],
        })

        assert response.status_code == 422
        order = (await client.get(f"/api/purchase-orders/{issued_order['id']}", headers=auth_headers)).json()
        assert order["status"] == "issued"
        assert order["items"][0]["received_quantity"] == 0

        item = (await client.get(f"/api/inventory/items/{stock_item['id']}", headers=auth_headers)).json()
        assert item["current_stock"] == 2

    async def test_draft_order_not_receivable(self, client, auth_headers, draft_order):
        response = await client.post(f"/api/purchase-orders/{draft_order['id']}/receive", headers=auth_headers, json={
            "lines": [{"item_id": draft_order["items"][0]["id"], "quantity": 1}],
        })

        assert response.status_code == 409
        assert response.json()["code"] == "PURCHASE_ORDER_NOT_RECEIVABLE"

    async def test_unknown_line(self, client, auth_headers, issued_order):
        response = await client.post(f"/api/purchase-orders/{issued_order['id']}/receive", headers=auth_headers, json={
            "lines": [{"item_id": 987654, "quantity": 1}],
        })

        assert response.status_code == 404


class TestInventoryEndpoints:

    async def test_usage_and_low_stock(self, client, auth_headers, factory, stock_item):
        response = await client.post("/api/inventory/transactions", headers=auth_headers, json={
            "inventory_item_id": stock_item["id"], "transaction_type": "purchase", "quantity": 8,
        })
        assert response.status_code == 201
        assert response.json()["stock_after"] == 10

        low = (await client.get("/api/inventory/low-stock", headers=auth_headers)).json()
        assert low == []

        response = await client.post("/api/inventory/transactions", headers=auth_headers, json={
            "inventory_item_id": stock_item["id"], "transaction_type": "usage", "quantity": 6,
        })
        assert response.json()["stock_after"] == 4

        low = (await client.get("/api/inventory/low-stock", headers=auth_headers)).json()
        assert [item["sku"] for item in low] == ["ALU-60"]

    async def test_insufficient_stock(self, client, auth_headers, stock_item):
        response = await client.post("/api/inventory/transactions", headers=auth_headers, json={
            "inventory_item_id": stock_item["id"], "transaction_type": "usage", "quantity": 3,
        })

        assert response.status_code == 422
        assert response.json()["code"] == "INSUFFICIENT_STOCK"

    async def test_duplicate_sku(self, client, auth_headers, factory, stock_item):
        response = await client.post(
            "/api/inventory/items", headers=auth_headers, json=factory.inventory_item(sku="ALU-60")
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_SKU"
