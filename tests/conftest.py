# ==== SHARED TEST FIXTURES AND CONFIGURATION ==== #

"""
Shared test fixtures for the back office test suites.

Every test gets a fresh in-memory SQLite database with two tenants, an
application wired to a temporary file store and an in-memory idempotency
service, and signed tokens for each role.
"""

import os
import tempfile
import uuid
from datetime import UTC, datetime
from typing import Dict, Set, Tuple

import pytest
import pytest_asyncio
from freezegun import freeze_time
from httpx import ASGITransport, AsyncClient


# ==== FORCE ENVIRONMENT SETUP BEFORE ANY IMPORTS ==== #

# Set environment variables BEFORE importing any application modules
os.environ.update({
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "REDIS_URL": "redis://localhost:6379/15",
    "JWT_SECRET": "test-secret-key-for-testing-only",
    "EMAIL_PROVIDER": "console",
    "EMAIL_FROM": "office@example.com",
    "FILE_STORAGE_PATH": tempfile.mkdtemp(prefix="backoffice-files-"),
    "LOG_LEVEL": "WARNING",
})

# Now import application modules after environment is set
import backoffice.storage.db as db_module
from backoffice.main import create_app
from backoffice.resilience import get_circuit_breaker_stats, reset_circuit_breaker
from backoffice.security.auth import create_access_token, create_admin_token
from backoffice.services.file_storage import LocalFileStorage, get_file_storage
from backoffice.services.idempotency import get_idempotency_service
from backoffice.storage.models import Tenant
from factories.data_factories import PayloadFactory


TENANT = "test-tenant"
OTHER_TENANT = "other-tenant"


# ==== FAKES FOR EXTERNAL SERVICES ==== #


class InMemoryIdempotencyService:
    """Stands in for the Redis-backed service; same claim/release contract."""

    def __init__(self):
        self.claimed: Set[Tuple[str, str, str]] = set()

    async def claim(self, tenant: str, operation: str, key: str) -> bool:
        entry = (tenant, operation, key)
        if entry in self.claimed:
            return False
        self.claimed.add(entry)
        return True

    async def release(self, tenant: str, operation: str, key: str) -> None:
        self.claimed.discard((tenant, operation, key))

    async def close(self) -> None:
        self.claimed.clear()


# ==== DATABASE FIXTURES ==== #


@pytest_asyncio.fixture
async def database():
    """
    Fresh in-memory database per test with both tenants created.

    Resets the module-level engine so each test gets its own SQLite memory
    database through a new StaticPool connection.
    """
    db_module.engine = None
    db_module.SessionLocal = None
    db_module.init_database()
    await db_module.create_all()

    async with db_module.get_session() as session:
        session.add_all([
            Tenant(name=TENANT, display_name="Test Tenant", plan="standard", active=True),
            Tenant(name=OTHER_TENANT, display_name="Other Tenant", plan="standard", active=True),
        ])

    yield

    await db_module.close_database()


@pytest_asyncio.fixture
async def db_session(database):
    """
    Provide a database session for service-level tests.

    Committed when the test body finishes without raising.
    """
    async with db_module.get_session() as session:
        yield session


# ==== APPLICATION FIXTURES ==== #


@pytest.fixture
def file_storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(str(tmp_path / "files"))


@pytest.fixture
def idempotency() -> InMemoryIdempotencyService:
    return InMemoryIdempotencyService()


@pytest_asyncio.fixture
async def app(database, file_storage, idempotency):
    """
    Create the FastAPI application against the test database.

    File storage and idempotency keys are swapped for per-test instances.
    """
    application = create_app()
    application.dependency_overrides[get_file_storage] = lambda: file_storage
    application.dependency_overrides[get_idempotency_service] = lambda: idempotency
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    """HTTP client bound to the application through ASGI transport."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ==== TENANT AND HEADER FIXTURES ==== #


@pytest.fixture
def tenant_id() -> str:
    return TENANT


def _headers(token: str, tenant: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}", "X-Tenant-Id": tenant}


@pytest.fixture
def auth_headers(tenant_id) -> Dict[str, str]:
    """Employee of the test tenant."""
    token = create_access_token("emp-1", "employee", [tenant_id], name="Erin Employee")
    return _headers(token, tenant_id)


@pytest.fixture
def manager_headers(tenant_id) -> Dict[str, str]:
    token = create_access_token("mgr-1", "manager", [tenant_id], name="Morgan Manager")
    return _headers(token, tenant_id)


@pytest.fixture
def other_tenant_headers() -> Dict[str, str]:
    token = create_access_token("emp-2", "employee", [OTHER_TENANT], name="Olly Other")
    return _headers(token, OTHER_TENANT)


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_admin_token('admin-1')}"}


# ==== DATA FIXTURES ==== #


@pytest.fixture
def factory() -> PayloadFactory:
    return PayloadFactory()


@pytest_asyncio.fixture
async def customer(client, auth_headers, factory) -> dict:
    response = await client.post("/api/customers", headers=auth_headers, json=factory.customer())
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def supplier(client, auth_headers, factory) -> dict:
    response = await client.post("/api/suppliers", headers=auth_headers, json=factory.supplier())
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def accepted_quote(client, auth_headers, factory, customer) -> dict:
    """A quote for 250.00 + 20% tax that the customer has accepted."""
    response = await client.post(
        "/api/quotes", headers=auth_headers, json=factory.quote(customer["id"])
    )
    assert response.status_code == 201
    quote = response.json()

    response = await client.post(f"/api/quotes/{quote['id']}/send", headers=auth_headers)
    assert response.status_code == 200
    response = await client.post(f"/api/quotes/{quote['id']}/accept", headers=auth_headers)
    assert response.status_code == 200
    return response.json()


# ==== TIME AND CORRELATION FIXTURES ==== #


@pytest.fixture
def base_time() -> datetime:
    return datetime(2025, 3, 14, 10, 0, 0, tzinfo=UTC)


@pytest.fixture
def frozen_time(base_time):
    with freeze_time(base_time) as frozen:
        yield frozen


@pytest.fixture
def correlation_id() -> str:
    return str(uuid.uuid4())


# ==== CLEANUP FIXTURES ==== #


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Close every circuit breaker so failures never leak between tests."""
    yield
    for name in get_circuit_breaker_stats():
        reset_circuit_breaker(name)
