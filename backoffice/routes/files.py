"""Stored files: emailed document copies and user uploads."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from backoffice.routes.deps import Pagination, RequestContext, get_context, get_pagination, to_page
from backoffice.schemas.common import Page
from backoffice.schemas.documents import StoredFileResponse
from backoffice.services.file_storage import (
    LocalFileStorage,
    attach_uploads,
    delete_file,
    get_file_storage,
    list_files,
    read_file,
)
from backoffice.storage.models import StoredFile
from backoffice.storage.repository import TenantRepository


router = APIRouter()


@router.get("", response_model=Page[StoredFileResponse])
async def list_stored_files(
    ctx: RequestContext = Depends(get_context),
    pagination: Pagination = Depends(get_pagination),
    related_type: Optional[str] = Query(None, description="quote, invoice, purchase_order, customer, ..."),
    related_id: Optional[int] = Query(None),
) -> Page[StoredFileResponse]:
    items, total = await list_files(
        ctx.db, ctx.tenant, related_type, related_id, pagination.page, pagination.page_size
    )
    return to_page(items, total, pagination, StoredFileResponse)


async def _read_uploads(files: List[UploadFile]):
    return [
        (upload.filename or "file", await upload.read(), upload.content_type)
        for upload in files
    ]


@router.post("/upload", response_model=StoredFileResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    related_type: str = Form(..., description="customer, supplier, project, quote, invoice, ..."),
    related_id: int = Form(...),
    ctx: RequestContext = Depends(get_context),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> StoredFileResponse:
    """Attach one uploaded file to a record of the tenant."""
    stored = await attach_uploads(
        ctx.db, storage, ctx.tenant, related_type, related_id, await _read_uploads([file]), ctx.user_id
    )
    return StoredFileResponse.model_validate(stored[0])


@router.post("/upload-multiple", response_model=List[StoredFileResponse], status_code=201)
async def upload_files(
    files: List[UploadFile] = File(...),
    related_type: str = Form(...),
    related_id: int = Form(...),
    ctx: RequestContext = Depends(get_context),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> List[StoredFileResponse]:
    """Attach several files at once. Every file is checked before any is stored."""
    stored = await attach_uploads(
        ctx.db, storage, ctx.tenant, related_type, related_id, await _read_uploads(files), ctx.user_id
    )
    return [StoredFileResponse.model_validate(record) for record in stored]


@router.get("/{file_id}", response_model=StoredFileResponse)
async def get_stored_file(file_id: int, ctx: RequestContext = Depends(get_context)) -> StoredFileResponse:
    record = await TenantRepository(StoredFile, ctx.db, ctx.tenant).get_or_404(file_id)
    return StoredFileResponse.model_validate(record)


@router.get("/{file_id}/download")
async def download_stored_file(
    file_id: int,
    ctx: RequestContext = Depends(get_context),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> Response:
    record, content = await read_file(ctx.db, storage, ctx.tenant, file_id)
    return Response(
        content=content,
        media_type=record.content_type,
        headers={"Content-Disposition": f'attachment; filename="{record.file_name}"'},
    )


@router.delete("/{file_id}", status_code=204)
async def delete_stored_file(
    file_id: int,
    ctx: RequestContext = Depends(get_context),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> Response:
    await delete_file(ctx.db, storage, ctx.tenant, file_id)
    return Response(status_code=204)
