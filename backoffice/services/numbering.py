# ==== DOCUMENT NUMBERING ==== #

"""
Sequential, tenant-scoped document numbers.

Numbers look like ``QUO-00001``, ``INV-00042`` or ``PO-00003``. Each tenant
has one counter row per document type. The row is locked for the rest of the
caller's transaction, so concurrent requests are serialized and a rolled-back
transaction leaves the counter untouched.
"""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.observability.metrics import documents_created_total
from backoffice.observability.tracing import get_tracer
from backoffice.settings import settings
from backoffice.storage.models import DocumentSequence


tracer = get_tracer(__name__)

DOC_TYPE_QUOTE = "quote"
DOC_TYPE_INVOICE = "invoice"
DOC_TYPE_PURCHASE_ORDER = "purchase_order"


def document_prefix(doc_type: str) -> str:
    """Return the configured prefix for a document type.

    Raises:
        ValueError: For unknown document types
    """
    prefixes = {
        DOC_TYPE_QUOTE: settings.QUOTE_PREFIX,
        DOC_TYPE_INVOICE: settings.INVOICE_PREFIX,
        DOC_TYPE_PURCHASE_ORDER: settings.PO_PREFIX,
    }
    try:
        return prefixes[doc_type]
    except KeyError:
        raise ValueError(f"Unknown document type: {doc_type}") from None


def format_document_number(prefix: str, value: int, padding: int | None = None) -> str:
    """Format ``prefix`` and ``value`` as ``PREFIX-00001``."""
    width = settings.DOCUMENT_NUMBER_PADDING if padding is None else padding
    return f"{prefix}-{value:0{width}d}"


def _insert_ignoring_conflict(db: AsyncSession):
    if db.bind.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    else:
        from sqlalchemy.dialects.sqlite import insert
    return insert(DocumentSequence)


async def _lock_sequence(db: AsyncSession, tenant: str, doc_type: str) -> DocumentSequence:
    query = (
        select(DocumentSequence)
        .where(and_(DocumentSequence.tenant == tenant, DocumentSequence.doc_type == doc_type))
        .with_for_update()
    )
    sequence = (await db.execute(query)).scalar_one_or_none()
    if sequence is not None:
        return sequence

    # First document of this type for the tenant. Concurrent creators race on
    # the unique constraint; the loser's insert is a no-op.
    statement = (
        _insert_ignoring_conflict(db)
        .values(tenant=tenant, doc_type=doc_type, last_value=0)
        .on_conflict_do_nothing(index_elements=["tenant", "doc_type"])
    )
    await db.execute(statement)
    return (await db.execute(query)).scalar_one()


async def next_document_number(db: AsyncSession, tenant: str, doc_type: str) -> str:
    """
    Allocate the next document number for a tenant.

    Must be called inside the transaction that inserts the document.

    Args:
        db: Active session (its transaction holds the counter lock)
        tenant: Tenant identifier
        doc_type: One of ``quote``, ``invoice``, ``purchase_order``

    Returns:
        str: Formatted document number
    """
    prefix = document_prefix(doc_type)

    with tracer.start_as_current_span("next_document_number") as span:
        span.set_attribute("tenant", tenant)
        span.set_attribute("doc_type", doc_type)

        sequence = await _lock_sequence(db, tenant, doc_type)
        sequence.last_value += 1
        await db.flush()

        number = format_document_number(prefix, sequence.last_value)
        span.set_attribute("document_number", number)
        documents_created_total.labels(tenant=tenant, doc_type=doc_type).inc()
        return number
