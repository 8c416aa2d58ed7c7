"""Pydantic schemas for employees, timesheets and expenses."""

from datetime import date, datetime, time
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from backoffice.schemas.common import ORMModel, reject_null


# ==== EMPLOYEES ==== #


class EmployeeCreate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=64)
    position: Optional[str] = Field(None, max_length=128)
    department: Optional[str] = Field(None, max_length=128)
    hire_date: Optional[date] = None
    hourly_rate_cents: int = Field(0, ge=0)
    active: bool = True


class EmployeeUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=64)
    position: Optional[str] = Field(None, max_length=128)
    department: Optional[str] = Field(None, max_length=128)
    hire_date: Optional[date] = None
    hourly_rate_cents: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None

    @field_validator("full_name", "hourly_rate_cents", "active")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class EmployeeResponse(ORMModel):
    id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    hire_date: Optional[date] = None
    hourly_rate_cents: int
    active: bool
    created_at: datetime


# ==== TIMESHEETS ==== #


class TimesheetCreate(BaseModel):
    employee_id: int
    project_id: Optional[int] = None
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int = Field(0, ge=0, le=24 * 60)
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "employee_id": 4,
                "project_id": 3,
                "work_date": "2025-03-10",
                "start_time": "08:00",
                "end_time": "16:30",
                "break_minutes": 30
            }
        }


class TimesheetUpdate(BaseModel):
    project_id: Optional[int] = None
    work_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_minutes: Optional[int] = Field(None, ge=0, le=24 * 60)
    notes: Optional[str] = None

    @field_validator("work_date", "start_time", "end_time", "break_minutes")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class TimesheetDecision(BaseModel):
    status: Literal["approved", "rejected"]
    notes: Optional[str] = None


class TimesheetResponse(ORMModel):
    id: int
    employee_id: int
    project_id: Optional[int] = None
    work_date: date
    start_time: datetime
    end_time: datetime
    break_minutes: int
    hours: float
    status: str
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime


# ==== EXPENSES ==== #


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=255)
    amount_cents: int = Field(..., gt=0)
    expense_date: date
    category: str = Field("general", max_length=64)
    project_id: Optional[int] = None
    supplier_id: Optional[int] = None
    payment_method: Optional[str] = Field(None, max_length=32)
    reimbursable: bool = False
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount_cents: Optional[int] = Field(None, gt=0)
    expense_date: Optional[date] = None
    category: Optional[str] = Field(None, max_length=64)
    project_id: Optional[int] = None
    supplier_id: Optional[int] = None
    payment_method: Optional[str] = Field(None, max_length=32)
    reimbursable: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("description", "amount_cents", "expense_date", "category", "reimbursable")
    @classmethod
    def _not_null(cls, value):
        return reject_null(value)


class ExpenseResponse(ORMModel):
    id: int
    description: str
    amount_cents: int
    expense_date: date
    category: str
    project_id: Optional[int] = None
    supplier_id: Optional[int] = None
    payment_method: Optional[str] = None
    reimbursable: bool
    approved: bool
    approved_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
