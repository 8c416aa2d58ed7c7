# ==== SHARED ROUTE DEPENDENCIES ==== #

"""
Request context shared by every tenant-scoped router.

``get_context`` authenticates the caller, checks the tenant exists and is
active, and hands the handler one object carrying the session, tenant and user.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Type, TypeVar

from fastapi import Depends, Query, Request, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.middleware.tenancy import get_tenant_id
from backoffice.schemas.common import Page
from backoffice.security.auth import CurrentUser, require_manager, require_user
from backoffice.services.documents import DocumentService
from backoffice.services.email import EmailService, get_email_service
from backoffice.services.file_storage import LocalFileStorage, get_file_storage
from backoffice.services.idempotency import IdempotencyService, get_idempotency_service
from backoffice.services.tenants import ensure_active_tenant
from backoffice.settings import settings
from backoffice.storage.db import get_db_session


SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass
class RequestContext:
    db: AsyncSession
    tenant: str
    user: CurrentUser

    @property
    def user_id(self) -> str:
        return self.user.user_id

    @property
    def actor(self) -> str:
        """Name recorded on approvals and acceptances."""
        return self.user.name or self.user.user_id


def _context_dependency(user_dependency: Callable) -> Callable:
    async def dependency(
        request: Request,
        user: CurrentUser = Depends(user_dependency),
        db: AsyncSession = Depends(get_db_session),
    ) -> RequestContext:
        tenant = get_tenant_id(request)
        await ensure_active_tenant(db, tenant)
        return RequestContext(db=db, tenant=tenant, user=user)

    return dependency


get_context = _context_dependency(require_user)
get_manager_context = _context_dependency(require_manager)


@dataclass
class Pagination:
    page: int
    page_size: int


def get_pagination(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: Optional[int] = Query(None, ge=1, description="Page size"),
) -> Pagination:
    size = min(page_size or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    return Pagination(page=page, page_size=size)


def to_page(
    items: Sequence, total: int, pagination: Pagination, schema: Type[SchemaT]
) -> Page[SchemaT]:
    return Page[schema](
        items=[schema.model_validate(item) for item in items],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
        has_next=pagination.page * pagination.page_size < total,
    )


# ==== DOCUMENT DELIVERY ==== #


def get_document_service(
    ctx: RequestContext = Depends(get_context),
    email_service: EmailService = Depends(get_email_service),
    storage: LocalFileStorage = Depends(get_file_storage),
    idempotency: IdempotencyService = Depends(get_idempotency_service),
) -> DocumentService:
    return DocumentService(
        ctx.db,
        ctx.tenant,
        user_id=ctx.user_id,
        email_service=email_service,
        storage=storage,
        idempotency=idempotency,
    )


def pdf_response(file_name: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
