# ==== FILE STORAGE ==== #

"""
Document storage on the local filesystem.

Files are keyed ``{tenant}/{related_type}/{uuid}-{name}`` below
``FILE_STORAGE_PATH``. Metadata lives in the ``stored_files`` table so files
can be listed per business record.
"""

import asyncio
import re
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, NotFoundError
from backoffice.observability.logging import ContextualLogger
from backoffice.settings import settings
from backoffice.storage.models import (
    Customer,
    Employee,
    Expense,
    Invoice,
    Project,
    PurchaseOrder,
    Quote,
    StoredFile,
    Supplier,
)
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


logger = ContextualLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

# Records an uploaded file may be attached to
ATTACHABLE = {
    "customer": Customer,
    "supplier": Supplier,
    "project": Project,
    "quote": Quote,
    "invoice": Invoice,
    "purchase_order": PurchaseOrder,
    "employee": Employee,
    "expense": Expense,
}


def safe_file_name(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name).strip("._")
    return cleaned or "file"


class LocalFileStorage:
    """Read and write blobs under a root directory."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(root or settings.FILE_STORAGE_PATH).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        # Keys come from the database, but never allow escaping the root
        if self.root not in path.parents:
            raise ValueError(f"Storage key escapes storage root: {key}")
        return path

    def build_key(self, tenant: str, related_type: str, file_name: str) -> str:
        return f"{tenant}/{related_type}/{uuid.uuid4().hex}-{safe_file_name(file_name)}"

    def _write(self, key: str, content: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, key: str, content: bytes) -> None:
        await asyncio.to_thread(self._write, key, content)

    async def read(self, key: str) -> bytes:
        return await asyncio.to_thread(self._path(key).read_bytes)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, True)

    def url_for(self, file_id: int) -> str:
        return f"{settings.FILE_STORAGE_BASE_URL.rstrip('/')}/{file_id}/download"


def get_file_storage() -> LocalFileStorage:
    return LocalFileStorage()


# ==== STORED FILE RECORDS ==== #


async def store_file(
    db: AsyncSession,
    storage: LocalFileStorage,
    tenant: str,
    file_name: str,
    content: bytes,
    related_type: str,
    related_id: int,
    content_type: str = "application/pdf",
    uploaded_by: Optional[str] = None,
) -> StoredFile:
    """Write the blob and its ``stored_files`` row.

    The blob is written first; if the row insert later rolls back, the orphan
    file is harmless and unreachable through the API.
    """
    key = storage.build_key(tenant, related_type, file_name)
    await storage.save(key, content)

    record = await TenantRepository(StoredFile, db, tenant).create(
        file_name=safe_file_name(file_name),
        content_type=content_type,
        size_bytes=len(content),
        storage_key=key,
        related_type=related_type,
        related_id=related_id,
        uploaded_by=uploaded_by,
    )
    logger.info(
        "Stored file",
        tenant=tenant,
        file_id=record.id,
        related_type=related_type,
        related_id=related_id,
        size_bytes=record.size_bytes,
    )
    return record


async def attach_uploads(
    db: AsyncSession,
    storage: LocalFileStorage,
    tenant: str,
    related_type: str,
    related_id: int,
    uploads: List[Tuple[str, bytes, str]],
    uploaded_by: Optional[str] = None,
) -> List[StoredFile]:
    """Store user uploads against a business record of the tenant.

    Args:
        uploads: ``(file_name, content, content_type)`` per file

    Raises:
        BusinessRuleError: Unknown record type, too many files, empty or oversized file
        NotFoundError: Related record missing or owned by another tenant
    """
    model = ATTACHABLE.get(related_type)
    if model is None:
        raise BusinessRuleError(
            f"Files cannot be attached to '{related_type}'",
            code="INVALID_RELATED_TYPE",
            allowed=sorted(ATTACHABLE),
        )
    if not uploads:
        raise BusinessRuleError("No file provided", code="NO_FILE")
    if len(uploads) > settings.MAX_UPLOAD_FILES:
        raise BusinessRuleError(
            f"At most {settings.MAX_UPLOAD_FILES} files per upload",
            code="TOO_MANY_FILES",
            max_files=settings.MAX_UPLOAD_FILES,
        )
    for file_name, content, _ in uploads:
        if not content:
            raise BusinessRuleError(f"File '{file_name}' is empty", code="EMPTY_FILE")
        if len(content) > settings.MAX_UPLOAD_BYTES:
            raise BusinessRuleError(
                f"File '{file_name}' exceeds {settings.MAX_UPLOAD_BYTES} bytes",
                code="FILE_TOO_LARGE",
                max_bytes=settings.MAX_UPLOAD_BYTES,
            )

    await ensure_in_tenant(db, model, tenant, related_id)

    return [
        await store_file(
            db,
            storage,
            tenant,
            file_name,
            content,
            related_type=related_type,
            related_id=related_id,
            content_type=content_type or "application/octet-stream",
            uploaded_by=uploaded_by,
        )
        for file_name, content, content_type in uploads
    ]


async def list_files(
    db: AsyncSession,
    tenant: str,
    related_type: Optional[str] = None,
    related_id: Optional[int] = None,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[StoredFile], int]:
    filters = []
    if related_type:
        filters.append(StoredFile.related_type == related_type)
    if related_id is not None:
        filters.append(StoredFile.related_id == related_id)
    return await TenantRepository(StoredFile, db, tenant).list(
        filters=[and_(*filters)] if filters else (),
        page=page,
        page_size=page_size,
    )


async def read_file(
    db: AsyncSession, storage: LocalFileStorage, tenant: str, file_id: int
) -> Tuple[StoredFile, bytes]:
    record = await TenantRepository(StoredFile, db, tenant).get_or_404(file_id)
    try:
        content = await storage.read(record.storage_key)
    except FileNotFoundError:
        logger.error("Stored file missing from storage", tenant=tenant, file_id=file_id, key=record.storage_key)
        raise NotFoundError("StoredFile", file_id, reason="content missing") from None
    return record, content


async def delete_file(db: AsyncSession, storage: LocalFileStorage, tenant: str, file_id: int) -> None:
    repo = TenantRepository(StoredFile, db, tenant)
    record = await repo.get_or_404(file_id)
    await repo.delete(record)
    await storage.delete(record.storage_key)
