"""Pydantic schemas for customers, suppliers, catalog items and projects."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from backoffice.business.statuses import ProjectStatus
from backoffice.schemas.common import ORMModel, reject_null


# ==== CUSTOMERS ==== #


class CustomerBase(BaseModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=64)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=128)
    zip_code: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None


class CustomerCreate(CustomerBase):
    name: str = Field(..., min_length=1, max_length=255)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Harbour View Dental",
                "email": "accounts@harbourview.example",
                "phone": "+44 20 7946 0011",
                "address": "4 Quay Street",
                "city": "Bristol",
                "zip_code": "BS1 4DJ",
                "country": "UK"
            }
        }


class CustomerUpdate(CustomerBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class CustomerResponse(ORMModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime


# ==== SUPPLIERS ==== #


class SupplierBase(BaseModel):
    contact_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=64)
    address: Optional[str] = None
    category: Optional[str] = Field(None, max_length=64)
    payment_terms: Optional[str] = Field(None, max_length=128)
    notes: Optional[str] = None
    active: Optional[bool] = None


class SupplierCreate(SupplierBase):
    name: str = Field(..., min_length=1, max_length=255)
    active: bool = True


class SupplierUpdate(SupplierBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("name", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class SupplierResponse(ORMModel):
    id: int
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    active: bool
    created_at: datetime


# ==== CATALOG ==== #


class CatalogItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    unit_price_cents: int = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=64)
    active: bool = True


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    unit_price_cents: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=64)
    active: Optional[bool] = None

    @field_validator("name", "unit_price_cents", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class CatalogItemResponse(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    unit_price_cents: int
    category: Optional[str] = None
    active: bool
    created_at: datetime


# ==== PROJECTS ==== #


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    customer_id: Optional[int] = None
    status: ProjectStatus = ProjectStatus.PENDING
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    budget_cents: Optional[int] = Field(None, ge=0)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    customer_id: Optional[int] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    budget_cents: Optional[int] = Field(None, ge=0)

    @field_validator("name", "status")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class ProjectResponse(ORMModel):
    id: int
    name: str
    description: Optional[str] = None
    customer_id: Optional[int] = None
    status: str
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    completed_date: Optional[date] = None
    budget_cents: Optional[int] = None
    deposit_invoice_id: Optional[int] = None
    final_invoice_id: Optional[int] = None
    created_at: datetime
