"""Pydantic schemas for tenant administration and company settings."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from backoffice.middleware.tenancy import is_valid_tenant_id
from backoffice.schemas.common import ORMModel, reject_null


# ==== TENANTS ==== #


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    display_name: Optional[str] = Field(None, max_length=128)
    contact_email: Optional[EmailStr] = None
    plan: str = Field("standard", max_length=32)

    @field_validator("name")
    @classmethod
    def _valid_identifier(cls, value: str) -> str:
        if not is_valid_tenant_id(value):
            raise ValueError("name may only contain letters, digits, '-' and '_'")
        return value


class TenantUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=128)
    contact_email: Optional[EmailStr] = None
    plan: Optional[str] = Field(None, max_length=32)
    active: Optional[bool] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("plan", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class TenantResponse(ORMModel):
    id: int
    name: str
    display_name: Optional[str] = None
    contact_email: Optional[str] = None
    plan: str
    active: bool
    created_at: datetime


class TokenRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    role: str = Field("employee", pattern="^(admin|manager|employee)$")
    tenants: List[str] = Field(default_factory=list)
    name: Optional[str] = None
    expires_in_hours: Optional[int] = Field(None, ge=1, le=24 * 30)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ==== COMPANY SETTINGS ==== #


class CompanySettingsPayload(BaseModel):
    company_name: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=128)
    state: Optional[str] = Field(None, max_length=128)
    zip_code: Optional[str] = Field(None, max_length=32)
    country: Optional[str] = Field(None, max_length=64)
    phone: Optional[str] = Field(None, max_length=64)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)
    vat_number: Optional[str] = Field(None, max_length=64)
    registration_number: Optional[str] = Field(None, max_length=64)
    bank_details: Optional[str] = None
    default_quote_terms: Optional[str] = None
    default_invoice_terms: Optional[str] = None
    footer_text: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern=r"^#[0-9a-fA-F]{6}$")
    default_tax_rate: Optional[float] = Field(None, ge=0, le=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class CompanySettingsResponse(CompanySettingsPayload, ORMModel):
    email: Optional[str] = None
    updated_at: Optional[datetime] = None
