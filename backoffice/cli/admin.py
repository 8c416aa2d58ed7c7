"""Operator commands: tenants, tokens, demo data, maintenance and reports."""

import asyncio
import datetime as dt
import json
from typing import Optional

import click
from tabulate import tabulate

from backoffice.business.errors import DomainError
from backoffice.observability.logging import init_logging
from backoffice.schemas.admin import TenantCreate
from backoffice.schemas.reports import GroupBy, ReportFilters, ReportType
from backoffice.security.auth import ROLES, create_access_token
from backoffice.services.maintenance import run_nightly_maintenance
from backoffice.services.reporting import generate_report, to_csv
from backoffice.services.tenants import create_tenant, list_tenants
from backoffice.settings import settings
from backoffice.storage.db import close_database, create_all, get_session
from backoffice.storage.seed import seed_demo_data


def _run(coro):
    """Run a coroutine and dispose of the engine afterwards."""
    async def runner():
        try:
            return await coro
        finally:
            await close_database()

    try:
        return asyncio.run(runner())
    except DomainError as exc:
        raise click.ClickException(f"{exc.code}: {exc.message}") from exc


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: Optional[str]):
    """Back office administration commands."""
    init_logging(log_level or settings.LOG_LEVEL)


@cli.command("init-db")
def init_db():
    """Create all tables (development databases only; use Alembic elsewhere)."""
    _run(create_all())
    click.echo("✅ Tables created")


@cli.command("create-tenant")
@click.argument("name")
@click.option("--display-name", help="Human readable tenant name")
@click.option("--email", "contact_email", help="Contact email")
@click.option("--plan", default="standard", show_default=True)
def create_tenant_cmd(name: str, display_name: Optional[str], contact_email: Optional[str], plan: str):
    """Create a tenant."""
    async def run():
        async with get_session() as db:
            return await create_tenant(db, TenantCreate(
                name=name, display_name=display_name, contact_email=contact_email, plan=plan
            ))

    tenant = _run(run())
    click.echo(f"✅ Created tenant '{tenant.name}' (plan: {tenant.plan})")


@cli.command("list-tenants")
def list_tenants_cmd():
    """List tenants."""
    async def run():
        async with get_session() as db:
            return await list_tenants(db)

    rows = [
        [t.name, t.display_name, t.plan, "✅" if t.active else "❌", f"{t.created_at:%Y-%m-%d}"]
        for t in _run(run())
    ]
    click.echo(tabulate(rows, headers=["Name", "Display name", "Plan", "Active", "Created"], tablefmt="grid"))


@cli.command("issue-token")
@click.argument("user_id")
@click.option("--role", type=click.Choice(sorted(ROLES)), default="employee", show_default=True)
@click.option("--tenant", "tenants", multiple=True, help="Tenant the user may access (repeatable, '*' for all)")
@click.option("--name", help="Display name recorded on approvals")
@click.option("--hours", type=int, default=None, help="Token lifetime in hours")
def issue_token(user_id: str, role: str, tenants, name: Optional[str], hours: Optional[int]):
    """Print a signed access token."""
    click.echo(create_access_token(user_id, role=role, tenants=list(tenants), name=name, expires_in_hours=hours))


@cli.command("seed-demo")
@click.argument("tenant")
@click.option("--customers", default=8, show_default=True)
@click.option("--suppliers", default=3, show_default=True)
@click.option("--employees", default=4, show_default=True)
@click.option("--seed", type=int, default=None, help="Random seed for reproducible data")
def seed_demo(tenant: str, customers: int, suppliers: int, employees: int, seed: Optional[int]):
    """Fill a tenant with realistic demo data."""
    async def run():
        async with get_session() as db:
            return await seed_demo_data(db, tenant, customers, suppliers, employees, seed)

    summary = _run(run())
    click.echo(tabulate(sorted(summary.items()), headers=["Record", "Count"], tablefmt="grid"))


@cli.command("run-maintenance")
@click.option("--tenant", default=None, help="Limit to one tenant")
@click.option("--date", "on_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
def run_maintenance(tenant: Optional[str], on_date: Optional[dt.datetime]):
    """Mark overdue invoices, expire quotes and report low stock."""
    async def run():
        async with get_session() as db:
            return await run_nightly_maintenance(db, on_date.date() if on_date else None, tenant)

    result = _run(run())
    click.echo(f"📅 {result['date']}")
    click.echo(f"🧾 Overdue invoices: {len(result['overdue_invoices'])}")
    if result["overdue_invoices"]:
        click.echo(tabulate(result["overdue_invoices"], headers="keys", tablefmt="grid"))
    click.echo(f"📝 Expired quotes: {len(result['expired_quotes'])}")
    if result["expired_quotes"]:
        click.echo(tabulate(result["expired_quotes"], headers="keys", tablefmt="grid"))
    click.echo(f"📦 Low stock items: {len(result['low_stock'])}")
    if result["low_stock"]:
        click.echo(tabulate(result["low_stock"], headers="keys", tablefmt="grid"))


@cli.command("report")
@click.argument("tenant")
@click.argument("report_type", type=click.Choice([r.value for r in ReportType]))
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--group-by", type=click.Choice([g.value for g in GroupBy]), default="month", show_default=True)
@click.option("--format", "output_format", type=click.Choice(["table", "csv", "json"]), default="table")
def report(tenant: str, report_type: str, start, end, group_by: str, output_format: str):
    """Print a report for a tenant."""
    filters = ReportFilters(
        start_date=start.date() if start else None,
        end_date=end.date() if end else None,
        group_by=GroupBy(group_by),
    )

    async def run():
        async with get_session() as db:
            return await generate_report(db, tenant, ReportType(report_type), filters)

    result = _run(run())
    if output_format == "csv":
        click.echo(to_csv(result), nl=False)
    elif output_format == "json":
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        click.echo(tabulate(result.rows, headers="keys", tablefmt="grid") if result.rows else "No rows")
        if result.summary:
            click.echo(tabulate(sorted(result.summary.items()), headers=["Summary", "Value"], tablefmt="simple"))


if __name__ == "__main__":
    cli()
