"""Shared Pydantic schemas: pagination envelope and ORM base."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


def reject_null(value):
    """Refuse an explicit null for a field whose column cannot be cleared."""
    if value is None:
        raise ValueError("must not be null")
    return value


class ORMModel(BaseModel):
    """Base for response schemas built from ORM rows."""

    model_config = ConfigDict(from_attributes=True)


class Page(BaseModel, Generic[T]):
    """Paginated list response."""

    items: List[T]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    has_next: bool


class ErrorResponse(BaseModel):
    """Error envelope returned by the global exception handlers."""

    error: str
    detail: str | None = None
    message: str
    correlation_id: str
    code: str

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Conflict",
                "detail": "Cannot change quote status from 'draft' to 'converted'",
                "message": "Cannot change quote status from 'draft' to 'converted'",
                "correlation_id": "9f1c6b7e-3c1d-4f0e-9a59-1b3f4f9d2e10",
                "code": "INVALID_STATUS_TRANSITION"
            }
        }
