"""Pydantic schemas for inventory items and stock movements."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from backoffice.business.statuses import InventoryTransactionType
from backoffice.schemas.common import ORMModel, reject_null


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=64)
    unit_of_measure: str = Field("each", max_length=16)
    current_stock: float = Field(0.0, ge=0)
    reorder_point: float = Field(0.0, ge=0)
    reorder_quantity: float = Field(0.0, ge=0)
    location: Optional[str] = Field(None, max_length=128)
    cost_cents: int = Field(0, ge=0)
    preferred_supplier_id: Optional[int] = None
    active: bool = True


class InventoryItemUpdate(BaseModel):
    """Stock level is not editable here; post an adjustment transaction instead."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=64)
    unit_of_measure: Optional[str] = Field(None, max_length=16)
    reorder_point: Optional[float] = Field(None, ge=0)
    reorder_quantity: Optional[float] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=128)
    cost_cents: Optional[int] = Field(None, ge=0)
    preferred_supplier_id: Optional[int] = None
    active: Optional[bool] = None

    @field_validator("name", "sku", "unit_of_measure", "reorder_point", "reorder_quantity", "cost_cents", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class InventoryItemResponse(ORMModel):
    id: int
    name: str
    sku: str
    description: Optional[str] = None
    category: Optional[str] = None
    unit_of_measure: str
    current_stock: float
    reorder_point: float
    reorder_quantity: float
    location: Optional[str] = None
    cost_cents: int
    last_purchase_price_cents: Optional[int] = None
    preferred_supplier_id: Optional[int] = None
    active: bool
    created_at: datetime


class InventoryTransactionCreate(BaseModel):
    """Stock movement.

    ``quantity`` is a positive amount for purchase, usage and return; the
    direction comes from the type. Adjustments carry a signed quantity.
    """

    inventory_item_id: int
    transaction_type: InventoryTransactionType
    quantity: float
    project_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    unit_cost_cents: Optional[int] = Field(None, ge=0)
    reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    transaction_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_quantity_sign(self):
        if self.quantity == 0:
            raise ValueError("quantity must not be zero")
        if self.transaction_type != InventoryTransactionType.ADJUSTMENT and self.quantity < 0:
            raise ValueError("quantity must be positive; only adjustments are signed")
        return self


class InventoryTransactionResponse(ORMModel):
    id: int
    inventory_item_id: int
    transaction_type: str
    quantity: float
    stock_after: float
    project_id: Optional[int] = None
    purchase_order_id: Optional[int] = None
    unit_cost_cents: Optional[int] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    transaction_date: datetime
    created_by: Optional[str] = None
