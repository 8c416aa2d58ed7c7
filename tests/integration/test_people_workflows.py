"""Integration tests for employees, timesheet approval and expenses."""

import pytest
import pytest_asyncio


pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def employee(client, auth_headers, factory):
    response = await client.post("/api/employees", headers=auth_headers, json=factory.employee())
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def timesheet(client, auth_headers, factory, employee):
    response = await client.post("/api/timesheets", headers=auth_headers, json=factory.timesheet(employee["id"]))
    assert response.status_code == 201
    return response.json()


class TestTimesheets:

    async def test_hours_computed(self, timesheet):
        assert timesheet["hours"] == 8.0
        assert timesheet["status"] == "pending"
        assert timesheet["start_time"].endswith("08:00:00")

    async def test_end_before_start(self, client, auth_headers, factory, employee):
        response = await client.post("/api/timesheets", headers=auth_headers, json=factory.timesheet(
            employee["id"], start_time="17:00", end_time="09:00",
        ))

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_TIME_RANGE"

    async def test_edit_recomputes_hours(self, client, auth_headers, timesheet):
        response = await client.patch(
            f"/api/timesheets/{timesheet['id']}", headers=auth_headers, json={"end_time": "12:30"}
        )

        assert response.status_code == 200
        assert response.json()["hours"] == 4.0

    async def test_null_for_required_field_is_rejected(self, client, auth_headers, timesheet):
        for field in ("break_minutes", "start_time", "end_time", "work_date"):
            response = await client.patch(
                f"/api/timesheets/{timesheet['id']}", headers=auth_headers, json={field: None}
            )
            assert response.status_code == 422, field

    async def test_employee_cannot_decide(self, client, auth_headers, timesheet):
        response = await client.post(
            f"/api/timesheets/{timesheet['id']}/decision", headers=auth_headers, json={"status": "approved"}
        )

        assert response.status_code == 403

    async def test_manager_approves(self, client, manager_headers, timesheet):
        response = await client.post(
            f"/api/timesheets/{timesheet['id']}/decision", headers=manager_headers, json={"status": "approved"}
        )

        assert response.status_code == 200
        approved = response.json()
        assert approved["status"] == "approved"
        assert approved["approved_by"] == "Morgan Manager"
        assert approved["approved_at"] is not None

    async def test_approved_timesheet_is_locked(self, client, auth_headers, manager_headers, timesheet):
        url = f"/api/timesheets/{timesheet['id']}"
        await client.post(f"{url}/decision", headers=manager_headers, json={"status": "approved"})

        response = await client.patch(url, headers=auth_headers, json={"break_minutes": 0})
        assert response.status_code == 409
        assert response.json()["code"] == "TIMESHEET_LOCKED"

        response = await client.delete(url, headers=auth_headers)
        assert response.status_code == 409

        response = await client.post(f"{url}/decision", headers=manager_headers, json={"status": "rejected"})
        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    async def test_rejected_timesheet_returns_to_pending_on_edit(
        self, client, auth_headers, manager_headers, timesheet
    ):
        url = f"/api/timesheets/{timesheet['id']}"
        await client.post(f"{url}/decision", headers=manager_headers, json={"status": "rejected", "notes": "Check times"})

        response = await client.patch(url, headers=auth_headers, json={"start_time": "09:00"})

        edited = response.json()
        assert edited["status"] == "pending"
        assert edited["approved_by"] is None
        assert edited["hours"] == 7.0

    async def test_filter_by_employee(self, client, auth_headers, factory, employee, timesheet):
        other = (await client.post("/api/employees", headers=auth_headers, json=factory.employee())).json()
        await client.post("/api/timesheets", headers=auth_headers, json=factory.timesheet(other["id"]))

        response = await client.get("/api/timesheets", headers=auth_headers, params={"employee_id": employee["id"]})

        assert [row["id"] for row in response.json()["items"]] == [timesheet["id"]]


class TestEmployees:

    async def test_employee_with_timesheets_cannot_be_deleted(self, client, auth_headers, employee, timesheet):
        response = await client.delete(f"/api/employees/{employee['id']}", headers=auth_headers)

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "RECORD_IN_USE"
        assert body["context"]["referenced_by"] == "timesheets"

    async def test_delete_unused_employee(self, client, auth_headers, employee):
        response = await client.delete(f"/api/employees/{employee['id']}", headers=auth_headers)

        assert response.status_code == 204

    async def test_deactivate(self, client, auth_headers, employee):
        response = await client.patch(
            f"/api/employees/{employee['id']}", headers=auth_headers, json={"active": False}
        )

        assert response.json()["active"] is False


class TestExpenses:

    async def test_record_and_approve(self, client, auth_headers, manager_headers, factory):
        expense = (await client.post("/api/expenses", headers=auth_headers, json=factory.expense())).json()
        assert expense["approved"] is False

        response = await client.post(f"/api/expenses/{expense['id']}/approve", headers=auth_headers)
        assert response.status_code == 403

        response = await client.post(f"/api/expenses/{expense['id']}/approve", headers=manager_headers)
        assert response.status_code == 200
        assert response.json()["approved"] is True
        assert response.json()["approved_by"] == "Morgan Manager"

    async def test_approved_expense_is_locked(self, client, auth_headers, manager_headers, factory):
        expense = (await client.post("/api/expenses", headers=auth_headers, json=factory.expense())).json()
        await client.post(f"/api/expenses/{expense['id']}/approve", headers=manager_headers)

        response = await client.patch(
            f"/api/expenses/{expense['id']}", headers=auth_headers, json={"amount_cents": 9900}
        )
        assert response.status_code == 409
        assert response.json()["code"] == "EXPENSE_LOCKED"

        response = await client.delete(f"/api/expenses/{expense['id']}", headers=auth_headers)
        assert response.status_code == 409

    async def test_expense_against_foreign_supplier(self, client, other_tenant_headers, factory, supplier):
        response = await client.post(
            "/api/expenses", headers=other_tenant_headers, json=factory.expense(supplier_id=supplier["id"])
        )

        assert response.status_code == 404
