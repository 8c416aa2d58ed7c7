"""Expense recording and approval."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import ConflictError
from backoffice.observability.logging import log_business_event
from backoffice.schemas.people import ExpenseCreate, ExpenseUpdate
from backoffice.storage.models import Expense, Project, Supplier
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


def _ensure_unapproved(expense: Expense) -> None:
    if expense.approved:
        raise ConflictError(
            f"Expense {expense.id} is approved and can no longer change",
            code="EXPENSE_LOCKED",
        )


async def create_expense(
    db: AsyncSession, tenant: str, payload: ExpenseCreate, user_id: Optional[str] = None
) -> Expense:
    await ensure_in_tenant(db, Project, tenant, payload.project_id)
    await ensure_in_tenant(db, Supplier, tenant, payload.supplier_id)
    expense = await TenantRepository(Expense, db, tenant).create(**payload.model_dump(), approved=False)
    log_business_event(
        "expense_recorded",
        tenant,
        expense_id=expense.id,
        amount_cents=expense.amount_cents,
        category=expense.category,
        recorded_by=user_id,
    )
    return expense


async def update_expense(db: AsyncSession, tenant: str, expense_id: int, payload: ExpenseUpdate) -> Expense:
    repo = TenantRepository(Expense, db, tenant)
    expense = await repo.get_or_404(expense_id, for_update=True)
    _ensure_unapproved(expense)

    fields = payload.model_dump(exclude_unset=True)
    if "project_id" in fields:
        await ensure_in_tenant(db, Project, tenant, fields["project_id"])
    if "supplier_id" in fields:
        await ensure_in_tenant(db, Supplier, tenant, fields["supplier_id"])
    return await repo.update(expense, **fields)


async def approve_expense(db: AsyncSession, tenant: str, expense_id: int, approver: str) -> Expense:
    """Approve an expense. Approved expenses are locked against edits and deletion."""
    repo = TenantRepository(Expense, db, tenant)
    expense = await repo.get_or_404(expense_id, for_update=True)
    _ensure_unapproved(expense)
    expense = await repo.update(expense, approved=True, approved_by=approver)
    log_business_event(
        "expense_approved",
        tenant,
        expense_id=expense.id,
        amount_cents=expense.amount_cents,
        approver=approver,
    )
    return expense


async def delete_expense(db: AsyncSession, tenant: str, expense_id: int) -> None:
    repo = TenantRepository(Expense, db, tenant)
    expense = await repo.get_or_404(expense_id, for_update=True)
    _ensure_unapproved(expense)
    await repo.delete(expense)
