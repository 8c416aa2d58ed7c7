"""Timesheet hours calculation and approval workflow."""

import datetime as dt
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.business.errors import BusinessRuleError, ConflictError
from backoffice.business.statuses import TIMESHEET_TRANSITIONS, TimesheetStatus, ensure_transition
from backoffice.observability.logging import log_business_event
from backoffice.schemas.people import TimesheetCreate, TimesheetDecision, TimesheetUpdate
from backoffice.storage.models import Employee, Project, Timesheet, utc_now
from backoffice.storage.repository import TenantRepository, ensure_in_tenant


def compute_hours(start: dt.datetime, end: dt.datetime, break_minutes: int = 0) -> float:
    """Worked hours between ``start`` and ``end`` minus the break, 2 dp.

    Raises:
        BusinessRuleError: End is not after start, or the break consumes the shift
    """
    if end <= start:
        raise BusinessRuleError("end_time must be after start_time", code="INVALID_TIME_RANGE")

    seconds = (end - start).total_seconds() - break_minutes * 60
    hours = round(seconds / 3600, 2)
    if hours <= 0:
        raise BusinessRuleError("Worked hours must be greater than zero", code="INVALID_TIME_RANGE")
    return hours


def _combine(work_date: dt.date, value) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.combine(work_date, value)


def _ensure_mutable(timesheet: Timesheet) -> None:
    if timesheet.status == TimesheetStatus.APPROVED.value:
        raise ConflictError(
            f"Timesheet {timesheet.id} is approved and can no longer change",
            code="TIMESHEET_LOCKED",
            current_status=timesheet.status,
        )


async def create_timesheet(db: AsyncSession, tenant: str, payload: TimesheetCreate) -> Timesheet:
    await ensure_in_tenant(db, Employee, tenant, payload.employee_id)
    await ensure_in_tenant(db, Project, tenant, payload.project_id)

    start = _combine(payload.work_date, payload.start_time)
    end = _combine(payload.work_date, payload.end_time)

    return await TenantRepository(Timesheet, db, tenant).create(
        employee_id=payload.employee_id,
        project_id=payload.project_id,
        work_date=payload.work_date,
        start_time=start,
        end_time=end,
        break_minutes=payload.break_minutes,
        hours=compute_hours(start, end, payload.break_minutes),
        status=TimesheetStatus.PENDING.value,
        notes=payload.notes,
    )


async def update_timesheet(
    db: AsyncSession, tenant: str, timesheet_id: int, payload: TimesheetUpdate
) -> Timesheet:
    repo = TenantRepository(Timesheet, db, tenant)
    timesheet = await repo.get_or_404(timesheet_id, for_update=True)
    _ensure_mutable(timesheet)

    fields = payload.model_dump(exclude_unset=True)
    if "project_id" in fields:
        await ensure_in_tenant(db, Project, tenant, fields["project_id"])

    work_date = fields.get("work_date") or timesheet.work_date
    start = _combine(work_date, fields.get("start_time") or timesheet.start_time.time())
    end = _combine(work_date, fields.get("end_time") or timesheet.end_time.time())
    break_minutes = fields.get("break_minutes", timesheet.break_minutes)

    fields.update(
        work_date=work_date,
        start_time=start,
        end_time=end,
        break_minutes=break_minutes,
        hours=compute_hours(start, end, break_minutes),
    )
    # An edited rejected timesheet goes back for approval
    if timesheet.status == TimesheetStatus.REJECTED.value:
        fields["status"] = TimesheetStatus.PENDING.value
        fields["approved_by"] = None
        fields["approved_at"] = None

    return await repo.update(timesheet, **fields)


async def decide_timesheet(
    db: AsyncSession,
    tenant: str,
    timesheet_id: int,
    decision: TimesheetDecision,
    approver: Optional[str],
) -> Timesheet:
    """Approve or reject a pending timesheet, recording the approver."""
    repo = TenantRepository(Timesheet, db, tenant)
    timesheet = await repo.get_or_404(timesheet_id, for_update=True)
    ensure_transition("timesheet", TIMESHEET_TRANSITIONS, timesheet.status, decision.status)

    timesheet.status = decision.status
    timesheet.approved_by = approver
    timesheet.approved_at = utc_now()
    if decision.notes:
        timesheet.notes = decision.notes
    await db.flush()

    log_business_event(
        f"timesheet_{decision.status}",
        tenant,
        timesheet_id=timesheet.id,
        employee_id=timesheet.employee_id,
        hours=timesheet.hours,
        approver=approver,
    )
    return timesheet


async def delete_timesheet(db: AsyncSession, tenant: str, timesheet_id: int) -> None:
    repo = TenantRepository(Timesheet, db, tenant)
    timesheet = await repo.get_or_404(timesheet_id, for_update=True)
    _ensure_mutable(timesheet)
    await repo.delete(timesheet)
