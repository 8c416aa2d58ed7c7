"""Pydantic schemas for quotes, invoices, payments, purchase orders and delivery."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from backoffice.business.statuses import InvoiceType
from backoffice.schemas.common import ORMModel, reject_null


# ==== LINE ITEMS ==== #


class LineItemIn(BaseModel):
    """Document line. Description and price default from the catalog item."""

    description: Optional[str] = Field(None, max_length=2000)
    quantity: float = Field(1.0, gt=0)
    unit_price_cents: Optional[int] = Field(None, ge=0)
    catalog_item_id: Optional[int] = None

    @model_validator(mode="after")
    def _needs_description_or_catalog(self):
        if not self.description and self.catalog_item_id is None:
            raise ValueError("description is required when no catalog_item_id is given")
        return self


class LineItemOut(ORMModel):
    id: int
    position: int
    description: str
    quantity: float
    unit_price_cents: int
    total_cents: int
    catalog_item_id: Optional[int] = None


# ==== QUOTES ==== #


class QuoteCreate(BaseModel):
    customer_id: int
    project_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=255)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    discount_cents: int = Field(0, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: List[LineItemIn] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": 1,
                "project_id": 3,
                "reference": "Reception refit",
                "tax_rate": 20.0,
                "items": [
                    {"description": "Oak worktop, fitted", "quantity": 2, "unit_price_cents": 45000},
                    {"catalog_item_id": 7, "quantity": 6.5}
                ]
            }
        }


class QuoteUpdate(BaseModel):
    project_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=255)
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    discount_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[LineItemIn]] = None

    @field_validator("issue_date", "tax_rate", "discount_cents")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class QuoteDecision(BaseModel):
    accepted_by: Optional[str] = Field(None, max_length=255)


class QuoteResponse(ORMModel):
    id: int
    quote_number: str
    reference: Optional[str] = None
    customer_id: int
    project_id: Optional[int] = None
    issue_date: date
    expiry_date: Optional[date] = None
    status: str
    subtotal_cents: int
    discount_cents: int
    tax_rate: float
    tax_cents: int
    total_cents: int
    notes: Optional[str] = None
    terms: Optional[str] = None
    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    accepted_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    converted_invoice_id: Optional[int] = None
    created_at: datetime
    items: List[LineItemOut] = Field(default_factory=list)


class ConversionRequest(BaseModel):
    """Options for converting an accepted quote."""

    invoice_type: InvoiceType = InvoiceType.FINAL
    due_days: Optional[int] = Field(None, ge=0, le=365)


# ==== INVOICES ==== #


class InvoiceCreate(BaseModel):
    customer_id: int
    project_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=255)
    invoice_type: InvoiceType = InvoiceType.FINAL
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    discount_cents: int = Field(0, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: List[LineItemIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _due_after_issue(self):
        if self.issue_date and self.due_date and self.due_date < self.issue_date:
            raise ValueError("due_date must not be before issue_date")
        return self


class InvoiceUpdate(BaseModel):
    project_id: Optional[int] = None
    reference: Optional[str] = Field(None, max_length=255)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    discount_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[LineItemIn]] = None

    @field_validator("issue_date", "due_date", "tax_rate", "discount_cents")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class PaymentCreate(BaseModel):
    amount_cents: int = Field(..., gt=0)
    payment_date: Optional[date] = None
    method: str = Field("bank_transfer", max_length=32)
    reference: Optional[str] = Field(None, max_length=255)

    class Config:
        json_schema_extra = {
            "example": {
                "amount_cents": 54000,
                "payment_date": "2025-03-14",
                "method": "bank_transfer",
                "reference": "BACS 88213"
            }
        }


class PaymentResponse(ORMModel):
    id: int
    invoice_id: int
    amount_cents: int
    payment_date: date
    method: str
    reference: Optional[str] = None
    recorded_by: Optional[str] = None
    created_at: datetime


class InvoiceResponse(ORMModel):
    id: int
    invoice_number: str
    reference: Optional[str] = None
    customer_id: int
    project_id: Optional[int] = None
    quote_id: Optional[int] = None
    invoice_type: str
    issue_date: date
    due_date: date
    status: str
    subtotal_cents: int
    discount_cents: int
    tax_rate: float
    tax_cents: int
    total_cents: int
    amount_paid_cents: int
    balance_cents: int
    paid_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    created_at: datetime
    items: List[LineItemOut] = Field(default_factory=list)
    payments: List[PaymentResponse] = Field(default_factory=list)


# ==== PURCHASE ORDERS ==== #


class PurchaseOrderItemIn(BaseModel):
    description: Optional[str] = Field(None, max_length=2000)
    sku: Optional[str] = Field(None, max_length=64)
    quantity: float = Field(..., gt=0)
    unit: Optional[str] = Field(None, max_length=16)
    unit_price_cents: Optional[int] = Field(None, ge=0)
    inventory_item_id: Optional[int] = None

    @model_validator(mode="after")
    def _needs_description_or_inventory(self):
        if not self.description and self.inventory_item_id is None:
            raise ValueError("description is required when no inventory_item_id is given")
        return self


class PurchaseOrderItemOut(ORMModel):
    id: int
    position: int
    description: str
    sku: Optional[str] = None
    quantity: float
    unit: Optional[str] = None
    unit_price_cents: int
    total_cents: int
    received_quantity: float
    inventory_item_id: Optional[int] = None


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    project_id: Optional[int] = None
    issue_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    shipping_cents: int = Field(0, ge=0)
    supplier_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: List[PurchaseOrderItemIn] = Field(..., min_length=1)


class PurchaseOrderUpdate(BaseModel):
    project_id: Optional[int] = None
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    tax_rate: Optional[float] = Field(None, ge=0, le=100)
    shipping_cents: Optional[int] = Field(None, ge=0)
    supplier_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[PurchaseOrderItemIn]] = Field(None, min_length=1)

    @field_validator("tax_rate", "shipping_cents")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class ReceiveLine(BaseModel):
    item_id: int
    quantity: float = Field(..., gt=0)


class ReceiveRequest(BaseModel):
    lines: List[ReceiveLine] = Field(..., min_length=1)
    received_date: Optional[date] = None
    reference: Optional[str] = Field(None, max_length=255)


class PurchaseOrderResponse(ORMModel):
    id: int
    po_number: str
    supplier_id: int
    project_id: Optional[int] = None
    issue_date: date
    expected_delivery_date: Optional[date] = None
    delivery_address: Optional[str] = None
    status: str
    subtotal_cents: int
    tax_rate: float
    tax_cents: int
    shipping_cents: int
    total_cents: int
    supplier_reference: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    received_date: Optional[date] = None
    created_at: datetime
    items: List[PurchaseOrderItemOut] = Field(default_factory=list)


# ==== DOCUMENT DELIVERY ==== #


class EmailDocumentRequest(BaseModel):
    to: Optional[EmailStr] = None
    cc: List[EmailStr] = Field(default_factory=list)
    subject: Optional[str] = Field(None, max_length=255)
    body: Optional[str] = None


class EmailDocumentResponse(BaseModel):
    status: str
    provider: Optional[str] = None
    recipients: List[str] = Field(default_factory=list)
    message_id: Optional[str] = None
    file_id: Optional[int] = None
    document_status: Optional[str] = None


class StoredFileResponse(ORMModel):
    id: int
    file_name: str
    content_type: str
    size_bytes: int
    related_type: str
    related_id: int
    uploaded_by: Optional[str] = None
    created_at: datetime
