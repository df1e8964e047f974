import pytest
from fastapi.testclient import TestClient

from auth import create_access_token
from main import app
from services.onboarding_store import get_onboarding_store
from services.sheets_exporter import get_sheets_exporter
from services.user_directory import get_user_directory

from conftest import FakeResponse


@pytest.fixture
def client(store, exporter, directory):
    app.dependency_overrides[get_onboarding_store] = lambda: store
    app.dependency_overrides[get_sheets_exporter] = lambda: exporter
    app.dependency_overrides[get_user_directory] = lambda: directory
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers(identity):
    return {"Authorization": f"Bearer {create_access_token({'sub': identity})}"}


ADMIN = headers("admin@example.com")
ALICE = headers("alice@example.com")
BOB = headers("bob@example.com")
SALES = headers("sam@example.com")


def submission(**overrides):
    body = {"clientName": "Acme", "accountNumber": "ACC-1", "date": "2025-01-10"}
    body.update(overrides)
    return body


def create(client, who=ALICE, **overrides):
    response = client.post("/api/onboardings/", json=submission(**overrides), headers=who)
    assert response.status_code == 201, response.text
    return response.json()["onboarding"]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy"}


class TestAuthRoutes:
    def test_login_and_me(self, client):
        response = client.post("/api/auth/login", json={"email": "Alice@example.com", "password": "alice-pass"})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "team"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.json()["employee_name"] == "Alice"
        assert "password" not in me.json()

    def test_bad_login(self, client):
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "x"})
        assert response.status_code == 401

    def test_bad_token(self, client):
        response = client.get("/api/onboardings/", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401

    def test_token_for_removed_user(self, client):
        response = client.get("/api/onboardings/", headers=headers("gone@example.com"))
        assert response.status_code == 401

    def test_logout(self, client):
        assert client.post("/api/auth/logout").status_code == 200


class TestOnboardingRoutes:
    def test_team_member_logs_as_themselves(self, client):
        record = create(client, employeeId=2, employeeName="Bob")
        assert record["employeeId"] == 1
        assert record["employeeName"] == "Alice"
        assert record["sessionNumber"] == 1
        assert record["attendance"] == "pending"

    def test_create_numbers_and_exports(self, client, sheets_session):
        create(client, date="2025-01-10")
        response = client.post("/api/onboardings/", json=submission(date="2025-01-01"), headers=ALICE)

        body = response.json()
        assert body["onboarding"]["sessionNumber"] == 1
        assert body["renumbered"] == 1
        assert body["delivery"]["status"] == "delivered"
        assert sheets_session.posts[-1]["action"] == "append"

    def test_create_reports_export_warning(self, client, sheets_session):
        sheets_session.responses.append(FakeResponse(body=None, text="<html/>"))
        response = client.post("/api/onboardings/", json=submission(), headers=ALICE)
        assert response.status_code == 201
        assert response.json()["delivery"]["status"] == "uncertain"
        assert response.json()["warning"]

    def test_create_validation_error(self, client):
        response = client.post("/api/onboardings/", json=submission(accountNumber=" "), headers=ALICE)
        assert response.status_code == 400
        assert response.json()["detail"]["fields"] == ["account_number"]

    def test_sales_cannot_create(self, client):
        response = client.post("/api/onboardings/", json=submission(), headers=SALES)
        assert response.status_code == 403

    def test_team_sees_only_own_records(self, client):
        create(client, ALICE)
        create(client, BOB)

        mine = client.get("/api/onboardings/", headers=ALICE).json()
        everyone = client.get("/api/onboardings/", headers=ADMIN).json()

        assert [r["employeeName"] for r in mine["onboardings"]] == ["Alice"]
        assert everyone["total"] == 2

    def test_filters(self, client):
        create(client, date="2025-01-05")
        create(client, date="2025-02-05")
        create(client, BOB, date="2025-02-10")

        def ids(**params):
            body = client.get("/api/onboardings/", params=params, headers=ADMIN).json()
            return sorted(r["date"] for r in body["onboardings"])

        assert ids(month="2025-02") == ["2025-02-05", "2025-02-10"]
        assert ids(employee_id="2") == ["2025-02-10"]
        assert ids(start_date="2025-01-06", end_date="2025-02-06") == ["2025-02-05"]
        assert ids(attendance="completed") == []

    def test_get_one(self, client):
        record = create(client)
        assert client.get(f"/api/onboardings/{record['id']}", headers=ALICE).status_code == 200
        assert client.get(f"/api/onboardings/{record['id']}", headers=BOB).status_code == 403
        assert client.get("/api/onboardings/999", headers=ADMIN).status_code == 404

    def test_bulk_create_is_admin_only(self, client):
        payload = {"onboardings": [submission(employeeId=1, date="2025-01-02"),
                                   submission(employeeId=1, date="2025-01-01")]}
        assert client.post("/api/onboardings/bulk", json=payload, headers=ALICE).status_code == 403

        response = client.post("/api/onboardings/bulk", json=payload, headers=ADMIN)
        assert response.status_code == 201
        assert response.json()["count"] == 2
        assert response.json()["renumbered"] == 1

    def test_bulk_create_needs_rows(self, client):
        response = client.post("/api/onboardings/bulk", json={"onboardings": []}, headers=ADMIN)
        assert response.status_code == 400

    def test_delete_renumbers(self, client):
        first = create(client, date="2025-01-01")
        second = create(client, date="2025-01-02")
        third = create(client, date="2025-01-03")

        assert client.delete(f"/api/onboardings/{second['id']}", headers=ALICE).status_code == 403
        response = client.delete(f"/api/onboardings/{second['id']}", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["renumbered"] == 1

        remaining = client.get("/api/onboardings/", headers=ADMIN).json()["onboardings"]
        assert {r["id"]: r["sessionNumber"] for r in remaining} == {first["id"]: 1, third["id"]: 2}
        assert client.delete(f"/api/onboardings/{second['id']}", headers=ADMIN).status_code == 404


class TestAttendanceRoutes:
    def test_approval_workflow(self, client):
        record = create(client)
        rid = record["id"]

        requested = client.post(f"/api/onboardings/{rid}/request_completion", headers=ALICE)
        assert requested.json()["attendance"] == "pending_approval"

        # Sales sees the pending approval as plain pending
        seen_by_sales = client.get(f"/api/onboardings/{rid}", headers=SALES).json()
        assert seen_by_sales["attendance"] == "pending"

        assert client.post(f"/api/onboardings/{rid}/approve", headers=ALICE).status_code == 403
        approved = client.post(f"/api/onboardings/{rid}/approve", headers=ADMIN).json()
        assert approved["attendance"] == "completed"
        assert approved["sessionNumber"] == record["sessionNumber"]
        assert approved["accountNumber"] == record["accountNumber"]

    def test_invalid_transition_is_conflict(self, client):
        rid = create(client)["id"]
        response = client.post(f"/api/onboardings/{rid}/approve", headers=ADMIN)
        assert response.status_code == 409

    def test_unknown_action(self, client):
        rid = create(client)["id"]
        assert client.post(f"/api/onboardings/{rid}/teleport", headers=ADMIN).status_code == 404

    def test_team_cannot_touch_others_records(self, client):
        rid = create(client, BOB)["id"]
        assert client.post(f"/api/onboardings/{rid}/cancel", headers=ALICE).status_code == 403

    def test_no_show_then_undo(self, client):
        rid = create(client)["id"]

        marked = client.post(f"/api/onboardings/{rid}/mark_no_show",
                             json={"reached_out": True, "notes": "voicemail"}, headers=ALICE).json()
        assert marked["attendance"] == "no-show"
        assert marked["noShowReachedOut"] is True
        assert marked["noShowNotes"] == "voicemail"

        undone = client.post(f"/api/onboardings/{rid}/undo", headers=ALICE).json()
        assert undone["attendance"] == "pending"
        assert undone["noShowReachedOut"] is False

    def test_reached_out(self, client):
        rid = create(client)["id"]
        assert client.post(f"/api/onboardings/{rid}/no-show/reached-out", json={}, headers=ALICE).status_code == 404

        client.post(f"/api/onboardings/{rid}/mark_no_show", headers=ALICE)
        followed = client.post(f"/api/onboardings/{rid}/no-show/reached-out",
                               json={"notes": "rebooked"}, headers=ALICE).json()
        assert followed["noShowReachedOut"] is True
        assert followed["noShowNotes"] == "rebooked"


class TestSyncRoutes:
    def test_full_sync(self, client, sheets_session):
        create(client, date="2025-01-10")
        create(client, date="2025-01-01")
        sheets_session.responses.append(FakeResponse(body={"success": True, "syncedCount": 2}))

        response = client.post("/api/sync/sheets", headers=ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["records_synced"] == 2
        assert body["delivery"]["status"] == "delivered"

    def test_sync_is_admin_only(self, client):
        assert client.post("/api/sync/sheets", headers=ALICE).status_code == 403
        assert client.post("/api/sync/renumber", headers=ALICE).status_code == 403
        assert client.post("/api/sync/import", headers=ALICE).status_code == 403

    def test_status_and_renumber(self, client, store, make_row):
        store.bulk_insert([make_row(date="2025-01-02"), make_row(date="2025-01-01")])

        status = client.get("/api/sync/status", headers=ALICE).json()
        assert status["in_sync"] is False
        assert len(status["drift"]) == 1

        dry = client.post("/api/sync/renumber", params={"dry_run": True}, headers=ADMIN).json()
        assert dry["written"] == 0

        done = client.post("/api/sync/renumber", headers=ADMIN).json()
        assert done["written"] == 1
        assert client.get("/api/sync/status", headers=ALICE).json()["in_sync"] is True

    def test_connection_test(self, client, sheets_session):
        sheets_session.responses.append(FakeResponse(body={"success": False, "error": "no access"}))
        body = client.post("/api/sync/test", headers=ADMIN).json()
        assert body["status"] == "failed"
        assert body["message"] == "no access"

    def test_import(self, client, sheets_session):
        values = {"values": [["2025-01-05", "Alice", "Acme", "ACC-1", "7", "completed"],
                             ["2025-01-01", "Bob", "Beta", "ACC-1", "7", "pending"],
                             ["2025-01-02", "Stranger", "Gamma", "ACC-9", "1", "pending"]]}
        sheets_session.responses.extend([FakeResponse(body=values), FakeResponse(body=values)])

        preview = client.post("/api/sync/import", params={"dry_run": True}, headers=ADMIN).json()
        assert preview["count"] == 3
        assert preview["unmatched_employees"] == ["Stranger"]

        imported = client.post("/api/sync/import", headers=ADMIN).json()
        assert imported["count"] == 3
        assert imported["renumbered"] == 2

        rows = client.get("/api/onboardings/", params={"employee_id": "1"}, headers=ADMIN).json()["onboardings"]
        assert [r["sessionNumber"] for r in rows] == [2]

    def test_import_not_configured(self, client, exporter):
        exporter.config["api_key"] = None
        assert client.post("/api/sync/import", headers=ADMIN).status_code == 400


class TestDashboardRoutes:
    def test_stats(self, client):
        create(client, date="2025-01-05")
        create(client, BOB, date="2025-01-06")

        stats = client.get("/api/dashboard/stats", params={"month": "2025-01"}, headers=ADMIN).json()
        assert stats["total"] == 2
        assert stats["months"] == ["2025-01"]
        assert {e["employee_name"] for e in stats["by_employee"]} == {"Alice", "Bob"}

        own = client.get("/api/dashboard/stats", params={"month": "2025-01"}, headers=ALICE).json()
        assert own["total"] == 1

    def test_sales_view(self, client):
        rid = create(client)["id"]
        client.post(f"/api/onboardings/{rid}/request_completion", headers=ALICE)

        body = client.get("/api/dashboard/sales", headers=SALES).json()
        assert body["total"] == 1
        assert body["onboardings"][0]["attendance"] == "pending"

    def test_no_show_follow_ups(self, client):
        rid = create(client)["id"]
        create(client)
        client.post(f"/api/onboardings/{rid}/mark_no_show", headers=ALICE)

        body = client.get("/api/dashboard/no-show-follow-ups", headers=ADMIN).json()
        assert [r["id"] for r in body["onboardings"]] == [rid]
        assert client.get("/api/dashboard/no-show-follow-ups", headers=SALES).status_code == 403


def test_employees(client):
    body = client.get("/api/employees/", headers=SALES).json()
    assert [e["name"] for e in body["employees"]] == ["Alice", "Bob"]
