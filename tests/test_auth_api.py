from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import select

import leavedesk.db as app_db
from leavedesk.main import app
from leavedesk.models import SessionRecord, User
from leavedesk.settings import get_settings

BOOTSTRAP_TOKEN = "test-bootstrap-token"


def bootstrap_admin(client: TestClient, email: str = "admin@technetworkinc.com", password: str = "admin-password-123"):
    return client.post(
        "/auth/bootstrap",
        headers={"X-Bootstrap-Token": BOOTSTRAP_TOKEN},
        json={"email": email, "password": password},
    )


def login(client: TestClient, email: str, password: str):
    return client.post("/auth/login", json={"email": email, "password": password})


def register(client: TestClient, email: str = "alice@technetworkinc.com", password: str = "alice-password-123", **extra):
    payload = {
        "name": "Alice Example",
        "email": email,
        "phone": "555-0100",
        "password": password,
        "confirm_password": password,
    }
    payload.update(extra)
    return client.post("/auth/register", json=payload)


def test_bootstrap_requires_token_and_only_runs_once():
    client = TestClient(app)

    missing = client.post("/auth/bootstrap", json={"email": "owner@technetworkinc.com", "password": "strong-password-123"})
    assert missing.status_code == 403
    assert missing.json()["error"]["code"] == "FORBIDDEN"

    first = bootstrap_admin(client, "owner@technetworkinc.com", "strong-password-123")
    assert first.status_code == 201
    assert first.json()["role"] == "admin"

    db = app_db.SessionLocal()
    user = db.scalar(select(User).where(User.email == "owner@technetworkinc.com"))
    assert user is not None
    assert user.password_hash != "strong-password-123"
    assert user.password_hash.startswith("$2")
    db.close()

    second = bootstrap_admin(client, "second@technetworkinc.com", "another-password-123")
    assert second.status_code == 409


def test_bootstrap_status_enabled_only_before_first_user():
    client = TestClient(app)

    before = client.get("/auth/bootstrap/status")
    assert before.status_code == 200
    assert before.json() == {"enabled": True}

    assert bootstrap_admin(client).status_code == 201

    after = client.get("/auth/bootstrap/status")
    assert after.json() == {"enabled": False}


def test_bootstrap_status_disabled_when_token_missing(monkeypatch):
    monkeypatch.setenv("BOOTSTRAP_TOKEN", "")
    get_settings.cache_clear()
    client = TestClient(app)

    status = client.get("/auth/bootstrap/status")
    assert status.status_code == 200
    assert status.json() == {"enabled": False}

    attempt = bootstrap_admin(client)
    assert attempt.status_code == 503


def test_login_logout_and_me_flow():
    client = TestClient(app)
    bootstrap_admin(client)
    client.post("/auth/logout")

    login_res = login(client, "admin@technetworkinc.com", "admin-password-123")
    assert login_res.status_code == 200
    cookie = login_res.headers.get("set-cookie", "")
    assert "session_id=" in cookie
    assert "HttpOnly" in cookie
    assert "SameSite=lax" in cookie
    assert "Secure" not in cookie

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "admin@technetworkinc.com"
    assert me.json()["employee"] is None

    logout = client.post("/auth/logout")
    assert logout.status_code == 200
    unauthenticated = client.get("/auth/me")
    assert unauthenticated.status_code == 401
    assert unauthenticated.json()["error"]["message"] == "Authentication required"


def test_login_failures_share_one_message():
    client = TestClient(app)
    bootstrap_admin(client)
    client.post("/auth/logout")

    wrong_password = login(client, "admin@technetworkinc.com", "not-the-password")
    unknown_user = login(client, "nobody@technetworkinc.com", "admin-password-123")
    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json()["error"]["message"] == "Invalid email or password"
    assert unknown_user.json()["error"]["message"] == "Invalid email or password"


def test_cookie_is_secure_when_forwarded_proto_is_https():
    client = TestClient(app)
    bootstrap_admin(client)
    client.post("/auth/logout")

    login_res = client.post(
        "/auth/login",
        headers={"x-forwarded-proto": "https"},
        json={"email": "admin@technetworkinc.com", "password": "admin-password-123"},
    )
    assert login_res.status_code == 200
    cookie = login_res.headers.get("set-cookie", "")
    assert "Secure" in cookie
    assert "HttpOnly" in cookie


def test_api_responses_disable_cache_and_echo_request_id():
    client = TestClient(app)
    bootstrap_admin(client)

    me = client.get("/auth/me", headers={"X-Request-Id": "req-123"})
    assert me.status_code == 200
    assert "no-store" in me.headers.get("cache-control", "")
    assert "no-cache" in me.headers.get("pragma", "")
    assert me.headers.get("x-request-id") == "req-123"

    missing = client.get("/api/requests/999", headers={"X-Request-Id": "req-456"})
    assert missing.status_code == 404
    assert missing.json() == {
        "error": {"code": "REQUEST_NOT_FOUND", "message": "Request not found", "request_id": "req-456"}
    }


def test_session_persists_across_clients_and_expired_sessions_are_rejected():
    client = TestClient(app)
    bootstrap_admin(client)

    session_id = client.cookies.get("session_id")
    assert session_id

    second_client = TestClient(app)
    second_client.cookies.set("session_id", session_id)
    assert second_client.get("/auth/me").status_code == 200

    db = app_db.SessionLocal()
    row = db.get(SessionRecord, session_id)
    assert row is not None
    row.expires_at = row.created_at - timedelta(seconds=1)
    db.add(row)
    db.commit()
    db.close()

    assert second_client.get("/auth/me").status_code == 401


def test_register_requires_corporate_email_and_matching_passwords():
    client = TestClient(app)

    outsider = register(client, email="alice@gmail.com")
    assert outsider.status_code == 400
    assert "@technetworkinc.com" in outsider.json()["error"]["message"]

    mismatch = register(client, confirm_password="something-else-123")
    assert mismatch.status_code == 400
    assert mismatch.json()["error"]["message"] == "Passwords do not match"

    weak = register(client, password="short", confirm_password="short")
    assert weak.status_code == 400


def test_register_creates_employee_login_and_session():
    client = TestClient(app)

    created = register(client, email="Alice@TechNetworkInc.com")
    assert created.status_code == 201
    body = created.json()
    assert body["user"]["role"] == "employee"
    assert body["user"]["email"] == "alice@technetworkinc.com"
    assert body["employee"]["name"] == "Alice Example"
    assert body["employee"]["annual_leave_remaining"] == 15
    assert body["employee"]["sick_leave_remaining"] == 10

    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["employee"]["id"] == body["employee"]["id"]

    duplicate = register(TestClient(app))
    assert duplicate.status_code == 409


def test_change_password_keeps_current_session_and_drops_others():
    client = TestClient(app)
    register(client)
    other = TestClient(app)
    assert login(other, "alice@technetworkinc.com", "alice-password-123").status_code == 200

    wrong = client.post(
        "/auth/change-password",
        json={"current_password": "wrong-password-1", "new_password": "alice-password-456"},
    )
    assert wrong.status_code == 401

    changed = client.post(
        "/auth/change-password",
        json={"current_password": "alice-password-123", "new_password": "alice-password-456"},
    )
    assert changed.status_code == 200
    assert client.get("/auth/me").status_code == 200
    assert other.get("/auth/me").status_code == 401

    client.post("/auth/logout")
    assert login(client, "alice@technetworkinc.com", "alice-password-123").status_code == 401
    assert login(client, "alice@technetworkinc.com", "alice-password-456").status_code == 200


def test_employee_cannot_use_admin_routes():
    client = TestClient(app)
    register(client)

    denied = client.get("/api/admin/users")
    assert denied.status_code == 403
    assert denied.json()["error"]["message"] == "Admin access required"


def test_last_active_admin_cannot_be_demoted_or_disabled():
    client = TestClient(app)
    admin = bootstrap_admin(client).json()

    demote = client.patch(f"/api/admin/users/{admin['id']}", json={"role": "employee"})
    assert demote.status_code == 400
    assert demote.json()["error"]["message"] == "At least one active admin must remain"

    second = client.post(
        "/api/admin/users",
        json={"email": "second@technetworkinc.com", "temporary_password": "second-password-123"},
    )
    assert second.status_code == 201
    assert second.json()["role"] == "admin"

    disable = client.patch(f"/api/admin/users/{admin['id']}", json={"is_active": False})
    assert disable.status_code == 200
    assert disable.json()["is_active"] is False


def test_admin_can_create_employee_login():
    client = TestClient(app)
    bootstrap_admin(client)
    employee = client.post(
        "/api/employees",
        json={"name": "Bob Builder", "email": "bob@technetworkinc.com", "phone": "555-0101"},
    ).json()

    unlinked = client.post(
        "/api/admin/users",
        json={"email": "bob@technetworkinc.com", "temporary_password": "bob-password-123", "role": "employee"},
    )
    assert unlinked.status_code == 400

    linked = client.post(
        "/api/admin/users",
        json={
            "email": "bob@technetworkinc.com",
            "temporary_password": "bob-password-123",
            "role": "employee",
            "employee_id": employee["id"],
        },
    )
    assert linked.status_code == 201
    assert linked.json()["employee_id"] == employee["id"]

    bob = TestClient(app)
    me = login(bob, "bob@technetworkinc.com", "bob-password-123")
    assert me.status_code == 200
    assert me.json()["employee"]["name"] == "Bob Builder"


def test_employee_login_must_match_corporate_employee_email():
    client = TestClient(app)
    bootstrap_admin(client)
    employee = client.post("/api/employees", json={"name": "Cara Clerk", "email": "cara@technetworkinc.com"}).json()

    personal = client.post(
        "/api/admin/users",
        json={
            "email": "cara.personal@gmail.com",
            "temporary_password": "cara-password-123",
            "role": "employee",
            "employee_id": employee["id"],
        },
    )
    assert personal.status_code == 400
    assert personal.json()["error"]["message"] == "Please use your corporate email address (@technetworkinc.com)"

    other = client.post(
        "/api/admin/users",
        json={
            "email": "cara.other@technetworkinc.com",
            "temporary_password": "cara-password-123",
            "role": "employee",
            "employee_id": employee["id"],
        },
    )
    assert other.status_code == 400
    assert other.json()["error"]["message"] == "Employee logins must use the employee's email address"

    assert len(client.get("/api/admin/users").json()) == 1
