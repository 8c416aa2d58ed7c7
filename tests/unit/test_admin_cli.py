"""Operator CLI commands against a throwaway SQLite file."""

import json

import pytest
from click.testing import CliRunner

import backoffice.cli.admin as admin_cli
import backoffice.storage.db as db_module
from backoffice.security.auth import decode_token
from backoffice.settings import settings


pytestmark = pytest.mark.unit


@pytest.fixture
def runner(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.setattr(db_module, "engine", None)
    monkeypatch.setattr(db_module, "SessionLocal", None)
    monkeypatch.setattr(admin_cli, "init_logging", lambda level: None)

    runner = CliRunner()
    result = runner.invoke(admin_cli.cli, ["init-db"])
    assert result.exit_code == 0, result.output
    return runner


def test_create_and_list_tenants(runner):
    result = runner.invoke(admin_cli.cli, ["create-tenant", "acme", "--display-name", "Acme Joinery"])
    assert result.exit_code == 0, result.output
    assert "acme" in result.output

    result = runner.invoke(admin_cli.cli, ["list-tenants"])
    assert result.exit_code == 0
    assert "Acme Joinery" in result.output


def test_duplicate_tenant_is_reported(runner):
    runner.invoke(admin_cli.cli, ["create-tenant", "acme"])

    result = runner.invoke(admin_cli.cli, ["create-tenant", "acme"])

    assert result.exit_code == 1
    assert "TENANT_EXISTS" in result.output


def test_issue_token(runner):
    result = runner.invoke(admin_cli.cli, [
        "issue-token", "mgr-7", "--role", "manager", "--tenant", "acme", "--name", "Sam",
    ])

    assert result.exit_code == 0
    claims = decode_token(f"Bearer {result.output.strip()}")
    assert claims["sub"] == "mgr-7"
    assert claims["role"] == "manager"
    assert claims["tenants"] == ["acme"]


def test_seed_then_report(runner):
    result = runner.invoke(admin_cli.cli, [
        "seed-demo", "demo", "--customers", "3", "--suppliers", "1", "--employees", "1", "--seed", "7",
    ])
    assert result.exit_code == 0, result.output
    assert "customers" in result.output

    result = runner.invoke(admin_cli.cli, ["report", "demo", "quotes_conversion", "--format", "json"])
    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["report_type"] == "quotes_conversion"
    assert sum(row["quote_count"] for row in report["rows"]) == 3


def test_run_maintenance_on_empty_database(runner):
    result = runner.invoke(admin_cli.cli, ["run-maintenance", "--date", "2025-06-30"])

    assert result.exit_code == 0, result.output
    assert "2025-06-30" in result.output
    assert "Overdue invoices: 0" in result.output
