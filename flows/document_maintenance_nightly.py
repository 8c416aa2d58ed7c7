# ==== PREFECT NIGHTLY DOCUMENT MAINTENANCE FLOW ==== #

"""
Prefect flow for the nightly date-driven document jobs.

For every active tenant it marks unpaid invoices past their due date as
overdue, expires sent quotes past their validity and reports stock at or
below its reorder point. Each tenant runs in its own transaction, so one
failing tenant does not roll back the others.
"""

import argparse
import asyncio
import datetime as dt
from typing import Any, Dict, List, Optional

from prefect import flow, get_run_logger, task
from sqlalchemy import select

from backoffice.services.maintenance import expire_quotes, low_stock_report, mark_overdue_invoices
from backoffice.settings import settings
from backoffice.storage.db import get_session
from backoffice.storage.models import Tenant


# ==== TASK DEFINITIONS ==== #


@task
async def fetch_active_tenants(tenant: Optional[str] = None) -> List[str]:
    """Names of the tenants to process, optionally limited to one."""
    async with get_session() as db:
        query = select(Tenant.name).where(Tenant.active.is_(True)).order_by(Tenant.name)
        if tenant:
            query = query.where(Tenant.name == tenant)
        result = await db.execute(query)
        return list(result.scalars().all())


@task(retries=2, retry_delay_seconds=30)
async def mark_overdue_for_tenant(tenant: str, today: dt.date) -> List[Dict[str, Any]]:
    logger = get_run_logger()
    async with get_session() as db:
        changed = await mark_overdue_invoices(db, today, tenant)
    logger.info(f"{tenant}: {len(changed)} invoices marked overdue")
    return changed


@task(retries=2, retry_delay_seconds=30)
async def expire_quotes_for_tenant(tenant: str, today: dt.date) -> List[Dict[str, Any]]:
    logger = get_run_logger()
    async with get_session() as db:
        changed = await expire_quotes(db, today, tenant)
    logger.info(f"{tenant}: {len(changed)} quotes expired")
    return changed


@task
async def low_stock_for_tenant(tenant: str) -> List[Dict[str, Any]]:
    logger = get_run_logger()
    async with get_session() as db:
        rows = await low_stock_report(db, tenant)
    if rows:
        logger.warning(f"{tenant}: {len(rows)} items at or below reorder point")
    return rows


# ==== MAIN FLOW ==== #


@flow(name="document-maintenance-nightly", log_prints=True)
async def document_maintenance_nightly(
    run_date: Optional[dt.date] = None,
    tenant: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the nightly jobs for every active tenant.

    Args:
        run_date: Reference date, defaults to today
        tenant: Limit the run to one tenant

    Returns:
        Dict[str, Any]: Per-tenant counts plus the rows changed
    """
    logger = get_run_logger()
    today = run_date or dt.date.today()
    tenants = await fetch_active_tenants(tenant)
    logger.info(f"📅 Nightly maintenance for {today.isoformat()} across {len(tenants)} tenants")

    per_tenant: Dict[str, Dict[str, Any]] = {}
    for name in tenants:
        overdue = await mark_overdue_for_tenant(name, today)
        expired = await expire_quotes_for_tenant(name, today)
        low_stock = await low_stock_for_tenant(name)
        per_tenant[name] = {
            "overdue_invoices": overdue,
            "expired_quotes": expired,
            "low_stock": low_stock,
        }

    summary = {
        "date": today.isoformat(),
        "tenants": len(tenants),
        "overdue_invoices": sum(len(r["overdue_invoices"]) for r in per_tenant.values()),
        "expired_quotes": sum(len(r["expired_quotes"]) for r in per_tenant.values()),
        "low_stock_items": sum(len(r["low_stock"]) for r in per_tenant.values()),
        "details": per_tenant,
    }
    logger.info(
        f"✅ Done: {summary['overdue_invoices']} overdue, "
        f"{summary['expired_quotes']} expired, {summary['low_stock_items']} low stock"
    )
    return summary


# ==== COMMAND LINE INTERFACE ==== #


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Nightly document maintenance flow")
    parser.add_argument("--run", action="store_true", help="Run the flow once locally")
    parser.add_argument("--serve", action="store_true", help="Serve the flow on its cron schedule")
    parser.add_argument("--tenant", default=None, help="Limit to one tenant")
    parser.add_argument("--date", default=None, help="Reference date (YYYY-MM-DD)")
    args = parser.parse_args()

    if args.serve:
        document_maintenance_nightly.serve(
            name=settings.PREFECT_DEPLOYMENT_NAME,
            tags=["documents", "maintenance"],
            cron=settings.PREFECT_SCHEDULE_CRON,
        )
    elif args.run:
        run_date = dt.date.fromisoformat(args.date) if args.date else None
        result = asyncio.run(document_maintenance_nightly(run_date=run_date, tenant=args.tenant))
        print(f"Flow completed: {result['overdue_invoices']} overdue, {result['expired_quotes']} expired")
    else:
        parser.print_help()
