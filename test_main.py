# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Bus Roster Service HTTP API.
Run: pytest -v
"""

import csv
import io
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from main import app
from roster.core.config import settings
from roster.core.dependencies import (
    get_controller_service,
    get_history_repo,
    get_participant_repo,
    get_roster_store,
    get_session_repo,
    get_settings_repo,
    get_sync_repo,
    get_sync_service,
    get_user_repo,
)
from roster.models.domain import Participant

client = TestClient(app)

ASSIGNED_AT = datetime(2026, 4, 30, 8, 0, tzinfo=timezone.utc)
SHEET_URL = "https://docs.google.com/spreadsheets/d/sheet123/edit"


def _participant(pid, first, last, ticket, bus_id=None):
    p = Participant(id=pid, first_name=first, last_name=last, ticket_id=ticket)
    if bus_id is not None:
        p = p.assigned_to(bus_id, ASSIGNED_AT, "Sara")
    return p


def _snapshot():
    return [
        _participant("p1", "Ahmed", "Khalil", "T1234", bus_id=3),
        _participant("p2", "Sara", "Benali", "T2001", bus_id=1),
        _participant("p3", "Youssef", "Amrani", "T2002"),
        _participant("p4", "Fatima", "Zahra", "T2003", bus_id=3),
        _participant("p5", "Omar", "Idrissi", "T2004"),
    ]


def _login(email, password):
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"X-API-Key": resp.json()["api_key"]}


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Reset in-memory state before each test, then re-seed users and a roster."""
    for repo in (
        get_participant_repo(),
        get_history_repo(),
        get_sync_repo(),
        get_user_repo(),
        get_session_repo(),
    ):
        repo.clear()
    get_settings_repo().reset()
    get_sync_service().set_transport(None)
    get_controller_service().seed_defaults()
    get_roster_store().ingest_snapshot(_snapshot(), source_name="fixtures")
    yield


@pytest.fixture
def admin():
    return _login("admin@example.com", "admin123")


@pytest.fixture
def controller():
    """Controller bound to bus 3."""
    return _login("controller@example.com", "controller123")


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok(self):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert data["buses_count"] == 4

    def test_ready_after_ingestion(self):
        resp = client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["participants"] == 5

    def test_metrics_endpoint(self, admin):
        client.get("/api/v1/buses", headers=admin)
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "roster_requests_total" in resp.text

    def test_request_id_is_echoed(self):
        resp = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert resp.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self):
        assert client.get("/health").headers.get("X-Request-ID")


# ============================================
# Auth
# ============================================
class TestAuth:
    def test_login_success(self):
        resp = client.post(
            "/api/v1/auth/login", json={"email": "admin@example.com", "password": "admin123"}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["api_key"]
        assert data["user"]["role"] == "admin"
        assert data["message"] == "Login successful"

    def test_login_wrong_password(self):
        resp = client.post(
            "/api/v1/auth/login", json={"email": "admin@example.com", "password": "wrong"}
        )
        assert resp.status_code == 401

    def test_login_missing_fields(self):
        resp = client.post("/api/v1/auth/login", json={"email": "admin@example.com"})
        assert resp.status_code == 400

    def test_magic_link(self):
        resp = client.post("/api/v1/auth/magic-link", json={"email": "controller@example.com"})
        assert resp.status_code == 200
        assert resp.json()["user"]["bus_id"] == 3

    def test_magic_link_unknown_email(self):
        resp = client.post("/api/v1/auth/magic-link", json={"email": "who@example.com"})
        assert resp.status_code == 401

    def test_me(self, controller):
        resp = client.get("/api/v1/auth/me", headers=controller)
        assert resp.status_code == 200
        data = resp.json()
        assert data["identity"]["role"] == "controller"
        assert data["identity"]["bus_id"] == 3
        assert data["user"]["email"] == "controller@example.com"

    def test_missing_key(self):
        assert client.get("/api/v1/buses").status_code == 401

    def test_invalid_key(self):
        assert client.get("/api/v1/buses", headers={"X-API-Key": "bogus"}).status_code == 401

    def test_logout_invalidates_key(self, admin):
        assert client.post("/api/v1/auth/logout", headers=admin).status_code == 200
        assert client.get("/api/v1/auth/me", headers=admin).status_code == 401


# ============================================
# Buses
# ============================================
class TestBuses:
    def test_list_buses_with_occupancy(self, controller):
        resp = client.get("/api/v1/buses", headers=controller)
        assert resp.status_code == 200
        used = {b["id"]: b["used"] for b in resp.json()}
        assert used == {1: 1, 2: 0, 3: 2, 4: 0}

    def test_capacity(self, admin):
        resp = client.get("/api/v1/buses/capacity", headers=admin)
        assert resp.status_code == 200
        assert all(b["capacity"] == 50 for b in resp.json())

    def test_get_bus(self, admin):
        resp = client.get("/api/v1/buses/2", headers=admin)
        assert resp.status_code == 200
        assert resp.json()["name"] == "Bus 2"

    def test_get_unknown_bus(self, admin):
        assert client.get("/api/v1/buses/99", headers=admin).status_code == 404

    def test_bus_participants(self, controller):
        resp = client.get("/api/v1/buses/3/participants", headers=controller)
        assert resp.status_code == 200
        assert {p["id"] for p in resp.json()} == {"p1", "p4"}

    def test_bus_participants_unknown_bus(self, admin):
        assert client.get("/api/v1/buses/99/participants", headers=admin).status_code == 404

    def test_export_csv(self, controller):
        resp = client.get("/api/v1/buses/3/export", headers=controller)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "bus-3-roster.csv" in resp.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(resp.text)))
        assert [r["last_name"] for r in rows] == ["Khalil", "Zahra"]
        assert rows[0]["bus"] == "Bus 3"

    def test_export_unknown_bus(self, admin):
        assert client.get("/api/v1/buses/99/export", headers=admin).status_code == 404


# ============================================
# Participants
# ============================================
class TestParticipants:
    def test_search_by_full_name(self, controller):
        resp = client.get("/api/v1/participants/search", params={"q": "AHMED khalil"}, headers=controller)
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == ["p1"]

    def test_search_by_ticket(self, controller):
        resp = client.get("/api/v1/participants/search", params={"q": "t1234"}, headers=controller)
        assert [p["ticket_id"] for p in resp.json()] == ["T1234"]

    def test_blank_search_is_empty(self, controller):
        resp = client.get("/api/v1/participants/search", params={"q": "  "}, headers=controller)
        assert resp.status_code == 200
        assert resp.json() == []

    def test_get_participant(self, controller):
        resp = client.get("/api/v1/participants/p2", headers=controller)
        assert resp.status_code == 200
        data = resp.json()
        assert data["bus_id"] == 1
        assert data["assigned_by"] == "Sara"

    def test_get_unknown_participant(self, controller):
        assert client.get("/api/v1/participants/nope", headers=controller).status_code == 404


class TestAssignment:
    def test_controller_assigns_to_own_bus(self, controller):
        resp = client.post(
            "/api/v1/participants/p3/assign", json={"bus_id": 3}, headers=controller
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["changed"] is True
        assert data["participant"]["bus_id"] == 3
        assert data["participant"]["assigned_by"] == "Ahmed"
        assert data["participant"]["assigned_at"] is not None

    def test_controller_cannot_assign_to_other_bus(self, controller):
        resp = client.post(
            "/api/v1/participants/p3/assign", json={"bus_id": 1}, headers=controller
        )
        assert resp.status_code == 403

    def test_admin_moves_between_buses(self, admin):
        resp = client.post("/api/v1/participants/p2/assign", json={"bus_id": 4}, headers=admin)
        assert resp.status_code == 200
        assert resp.json()["previous_bus_id"] == 1
        bus1 = client.get("/api/v1/buses/1/participants", headers=admin).json()
        assert bus1 == []

    def test_assign_same_bus_is_unchanged(self, admin):
        resp = client.post("/api/v1/participants/p1/assign", json={"bus_id": 3}, headers=admin)
        assert resp.json()["changed"] is False
        assert resp.json()["participant"]["assigned_by"] == "Sara"

    def test_assign_unknown_participant(self, admin):
        resp = client.post("/api/v1/participants/zz/assign", json={"bus_id": 1}, headers=admin)
        assert resp.status_code == 404

    def test_assign_unknown_bus(self, admin):
        resp = client.post("/api/v1/participants/p3/assign", json={"bus_id": 77}, headers=admin)
        assert resp.status_code == 404

    def test_assign_invalid_body(self, admin):
        resp = client.post("/api/v1/participants/p3/assign", json={"bus_id": 0}, headers=admin)
        assert resp.status_code == 422

    def test_assign_requires_auth(self):
        resp = client.post("/api/v1/participants/p3/assign", json={"bus_id": 1})
        assert resp.status_code == 401

    def test_remove(self, controller):
        resp = client.post("/api/v1/participants/p1/remove", json={"bus_id": 3}, headers=controller)
        assert resp.status_code == 200
        data = resp.json()
        assert data["changed"] is True
        assert data["participant"]["bus_id"] is None
        assert data["participant"]["assigned_at"] is None
        assert data["participant"]["assigned_by"] is None

    def test_remove_twice_is_harmless(self, controller):
        client.post("/api/v1/participants/p1/remove", json={"bus_id": 3}, headers=controller)
        resp = client.post("/api/v1/participants/p1/remove", json={"bus_id": 3}, headers=controller)
        assert resp.status_code == 200
        assert resp.json()["changed"] is False

    def test_remove_from_other_bus_forbidden(self, controller):
        resp = client.post("/api/v1/participants/p2/remove", json={"bus_id": 1}, headers=controller)
        assert resp.status_code == 403

    def test_status_visible_to_controllers(self, controller):
        resp = client.get("/api/v1/roster/status", headers=controller)
        assert resp.status_code == 200
        assert resp.json()["status"] == "ready"
        assert resp.json()["source"] == "fixtures"


# ============================================
# Admin: listing & stats
# ============================================
class TestAdminListing:
    def test_controller_is_forbidden(self, controller):
        assert client.get("/api/v1/participants", headers=controller).status_code == 403
        assert client.get("/api/v1/roster/stats", headers=controller).status_code == 403

    def test_list_all(self, admin):
        resp = client.get("/api/v1/participants", headers=admin)
        assert resp.status_code == 200
        assert len(resp.json()) == 5

    def test_list_unassigned(self, admin):
        resp = client.get("/api/v1/participants", params={"view": "unassigned"}, headers=admin)
        assert {p["id"] for p in resp.json()} == {"p3", "p5"}

    def test_list_by_bus_and_query(self, admin):
        resp = client.get("/api/v1/participants", params={"bus_id": 3, "q": "fatima"}, headers=admin)
        assert [p["id"] for p in resp.json()] == ["p4"]

    def test_invalid_view(self, admin):
        resp = client.get("/api/v1/participants", params={"view": "bogus"}, headers=admin)
        assert resp.status_code == 400

    def test_stats(self, admin):
        data = client.get("/api/v1/roster/stats", headers=admin).json()
        assert data["total_participants"] == 5
        assert data["assigned"] == 3
        assert data["unassigned"] == 2
        assert len(data["buses"]) == 4


# ============================================
# Admin: controllers
# ============================================
class TestControllerManagement:
    def test_list(self, admin):
        resp = client.get("/api/v1/controllers", headers=admin)
        assert resp.status_code == 200
        assert all(c["role"] == "controller" for c in resp.json())
        assert all("password_hash" not in c for c in resp.json())

    def test_create_and_login(self, admin):
        resp = client.post(
            "/api/v1/controllers",
            json={"name": "Nadia", "email": "nadia@example.com", "password": "pw123", "bus_id": 2},
            headers=admin,
        )
        assert resp.status_code == 201
        headers = _login("nadia@example.com", "pw123")
        me = client.get("/api/v1/auth/me", headers=headers).json()
        assert me["identity"]["bus_id"] == 2

    def test_create_missing_fields(self, admin):
        resp = client.post("/api/v1/controllers", json={"name": "Nadia"}, headers=admin)
        assert resp.status_code == 400

    def test_create_duplicate_email(self, admin):
        resp = client.post(
            "/api/v1/controllers",
            json={"name": "X", "email": "controller@example.com", "password": "pw", "bus_id": 1},
            headers=admin,
        )
        assert resp.status_code == 400

    def test_get_and_update(self, admin):
        resp = client.patch("/api/v1/controllers/3", json={"bus_id": 2}, headers=admin)
        assert resp.status_code == 200
        assert client.get("/api/v1/controllers/3", headers=admin).json()["bus_id"] == 2

    def test_update_unknown_bus(self, admin):
        resp = client.patch("/api/v1/controllers/3", json={"bus_id": 40}, headers=admin)
        assert resp.status_code == 400

    def test_unknown_controller(self, admin):
        assert client.get("/api/v1/controllers/none", headers=admin).status_code == 404
        assert client.delete("/api/v1/controllers/none", headers=admin).status_code == 404

    def test_delete_logs_controller_out(self, admin, controller):
        resp = client.delete("/api/v1/controllers/2", headers=admin)
        assert resp.status_code == 200
        assert client.get("/api/v1/auth/me", headers=controller).status_code == 401

    def test_controller_cannot_manage_controllers(self, controller):
        assert client.get("/api/v1/controllers", headers=controller).status_code == 403


# ============================================
# Admin: settings, sync, history
# ============================================
class TestSettings:
    def test_get(self, admin):
        resp = client.get("/api/v1/settings", headers=admin)
        assert resp.status_code == 200
        assert resp.json()["sync_interval_minutes"] == 30

    def test_update(self, admin):
        resp = client.patch(
            "/api/v1/settings",
            json={"sheet_url": SHEET_URL, "auto_sync": True, "sync_interval_minutes": 15},
            headers=admin,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["sheet_id"] == "sheet123"
        assert data["auto_sync"] is True
        assert data["sync_interval_minutes"] == 15

    def test_invalid_url(self, admin):
        resp = client.patch("/api/v1/settings", json={"sheet_url": "not a url"}, headers=admin)
        assert resp.status_code == 400

    def test_controller_forbidden(self, controller):
        assert client.get("/api/v1/settings", headers=controller).status_code == 403


class TestSync:
    def test_sync_from_fixtures(self, admin):
        resp = client.post("/api/v1/sync", headers=admin)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "success"
        assert data["source"] == "fixtures"
        assert data["triggered_by"] == "Admin User"
        assert get_participant_repo().count() == settings.FIXTURE_COUNT

    def test_sync_from_sheet(self, admin):
        client.patch("/api/v1/settings", json={"sheet_url": SHEET_URL}, headers=admin)
        body = "ticket,first,last,bus\nT9,Lina,Haddad,2\nT10,Hind,Saidi,\n"
        get_sync_service().set_transport(
            httpx.MockTransport(lambda request: httpx.Response(200, text=body))
        )
        resp = client.post("/api/v1/sync", headers=admin)
        assert resp.status_code == 200
        assert resp.json()["changes"]["added"] == 2
        assert resp.json()["changes"]["removed"] == 5
        assert client.get("/api/v1/participants/p1001", headers=admin).json()["bus_id"] == 2

    def test_failed_sync_keeps_roster(self, admin):
        client.patch("/api/v1/settings", json={"sheet_url": SHEET_URL}, headers=admin)
        get_sync_service().set_transport(
            httpx.MockTransport(lambda request: httpx.Response(500))
        )
        resp = client.post("/api/v1/sync", headers=admin)
        assert resp.status_code == 502
        assert get_participant_repo().count() == 5
        status = client.get("/api/v1/roster/status", headers=admin).json()
        assert status["status"] == "errored"

    def test_sync_history(self, admin):
        client.post("/api/v1/sync", headers=admin)
        resp = client.get("/api/v1/sync/history", headers=admin)
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"]["total_syncs"] == 1
        assert len(data["runs"]) == 1

    def test_controller_cannot_sync(self, controller):
        assert client.post("/api/v1/sync", headers=controller).status_code == 403


class TestHistory:
    def test_assignment_is_audited(self, admin):
        client.post("/api/v1/participants/p5/assign", json={"bus_id": 2}, headers=admin)
        resp = client.get(
            "/api/v1/history", params={"event_type": "participant_assigned"}, headers=admin
        )
        assert resp.status_code == 200
        events = resp.json()["events"]
        assert events[-1]["bus_id"] == 2
        assert events[-1]["details"]["actor"] == "Admin User"

    def test_filter_by_bus(self, admin):
        client.post("/api/v1/participants/p5/assign", json={"bus_id": 2}, headers=admin)
        client.post("/api/v1/participants/p3/assign", json={"bus_id": 4}, headers=admin)
        events = client.get("/api/v1/history", params={"bus_id": 4}, headers=admin).json()["events"]
        assert [e["details"]["participant_id"] for e in events] == ["p3"]
