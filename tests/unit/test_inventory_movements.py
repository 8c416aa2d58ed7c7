"""Unit tests for stock movements."""

import pytest

from backoffice.business.errors import BusinessRuleError, ConflictError
from backoffice.business.statuses import InventoryTransactionType
from backoffice.schemas.inventory import InventoryItemCreate, InventoryTransactionCreate
from backoffice.services.inventory import create_item, low_stock_items, record_transaction, signed_quantity


@pytest.mark.unit
class TestSignedQuantity:

    def test_purchase_and_return_add(self):
        assert signed_quantity(InventoryTransactionType.PURCHASE, 5) == 5
        assert signed_quantity(InventoryTransactionType.RETURN, 2) == 2

    def test_usage_subtracts(self):
        assert signed_quantity(InventoryTransactionType.USAGE, 3) == -3

    def test_adjustment_keeps_sign(self):
        assert signed_quantity(InventoryTransactionType.ADJUSTMENT, -4) == -4
        assert signed_quantity(InventoryTransactionType.ADJUSTMENT, 4) == 4


@pytest.mark.unit
class TestRecordTransaction:

    @pytest.fixture
    async def item(self, db_session, tenant_id):
        return await create_item(db_session, tenant_id, InventoryItemCreate(
            name="Oak board", sku="OAK-18", current_stock=10, reorder_point=5, reorder_quantity=20,
        ))

    async def test_usage_reduces_stock(self, db_session, tenant_id, item):
        movement = await record_transaction(db_session, tenant_id, InventoryTransactionCreate(
            inventory_item_id=item.id, transaction_type="usage", quantity=4,
        ), user_id="emp-1")

        assert movement.quantity == -4
        assert movement.stock_after == 6
        assert movement.created_by == "emp-1"
        assert item.current_stock == 6

    async def test_purchase_records_price(self, db_session, tenant_id, item):
        await record_transaction(db_session, tenant_id, InventoryTransactionCreate(
            inventory_item_id=item.id, transaction_type="purchase", quantity=2.5, unit_cost_cents=1350,
        ))

        assert item.current_stock == 12.5
        assert item.last_purchase_price_cents == 1350

    async def test_cannot_go_negative(self, db_session, tenant_id, item):
        with pytest.raises(BusinessRuleError) as exc_info:
            await record_transaction(db_session, tenant_id, InventoryTransactionCreate(
                inventory_item_id=item.id, transaction_type="usage", quantity=11,
            ))

        assert exc_info.value.code == "INSUFFICIENT_STOCK"
        assert item.current_stock == 10

    async def test_negative_adjustment(self, db_session, tenant_id, item):
        movement = await record_transaction(db_session, tenant_id, InventoryTransactionCreate(
            inventory_item_id=item.id, transaction_type="adjustment", quantity=-7, notes="Stock count",
        ))

        assert movement.stock_after == 3
        assert [low.sku for low in await low_stock_items(db_session, tenant_id)] == ["OAK-18"]

    async def test_duplicate_sku(self, db_session, tenant_id, item):
        with pytest.raises(ConflictError) as exc_info:
            await create_item(db_session, tenant_id, InventoryItemCreate(name="Copy", sku="OAK-18"))

        assert exc_info.value.code == "DUPLICATE_SKU"

    async def test_same_sku_in_other_tenant(self, db_session, item):
        other = await create_item(db_session, "other-tenant", InventoryItemCreate(name="Oak", sku="OAK-18"))

        assert other.id != item.id


@pytest.mark.unit
def test_only_adjustments_are_signed():
    with pytest.raises(ValueError):
        InventoryTransactionCreate(inventory_item_id=1, transaction_type="usage", quantity=-1)
    with pytest.raises(ValueError):
        InventoryTransactionCreate(inventory_item_id=1, transaction_type="adjustment", quantity=0)
