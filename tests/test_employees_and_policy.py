from __future__ import annotations

from fastapi.testclient import TestClient

from leavedesk.main import app
from leavedesk.workflow import default_policy_content

BOOTSTRAP_TOKEN = "test-bootstrap-token"


def bootstrap_admin(client: TestClient, email: str = "admin@technetworkinc.com", password: str = "admin-password-123"):
    return client.post(
        "/auth/bootstrap",
        headers={"X-Bootstrap-Token": BOOTSTRAP_TOKEN},
        json={"email": email, "password": password},
    )


def login(client: TestClient, email: str, password: str):
    return client.post("/auth/login", json={"email": email, "password": password})


def admin_with_team() -> tuple[TestClient, dict, dict]:
    admin = TestClient(app)
    assert bootstrap_admin(admin).status_code == 201
    alice = admin.post(
        "/api/employees",
        json={"name": "Alice Example", "email": "alice@technetworkinc.com", "password": "alice-password-123"},
    ).json()
    bob = admin.post("/api/employees", json={"name": "Bob Builder", "email": "bob@technetworkinc.com"}).json()
    return admin, alice, bob


def test_employee_email_must_be_corporate_and_unique():
    admin, _, _ = admin_with_team()

    outsider = admin.post("/api/employees", json={"name": "Eve", "email": "eve@example.com"})
    assert outsider.status_code == 400

    duplicate = admin.post("/api/employees", json={"name": "Alice Again", "email": "alice@technetworkinc.com"})
    assert duplicate.status_code == 409

    listed = admin.get("/api/employees").json()
    assert {row["email"] for row in listed} == {"alice@technetworkinc.com", "bob@technetworkinc.com"}


def test_patch_employee_email_follows_to_login():
    admin, alice, bob = admin_with_team()

    taken = admin.patch(f"/api/employees/{alice['id']}", json={"email": "bob@technetworkinc.com"})
    assert taken.status_code == 409

    moved = admin.patch(
        f"/api/employees/{alice['id']}",
        json={"email": "alice.example@technetworkinc.com", "phone": "555-0199"},
    )
    assert moved.status_code == 200
    assert moved.json()["email"] == "alice.example@technetworkinc.com"
    assert moved.json()["phone"] == "555-0199"

    client = TestClient(app)
    assert login(client, "alice@technetworkinc.com", "alice-password-123").status_code == 401
    assert login(client, "alice.example@technetworkinc.com", "alice-password-123").status_code == 200


def test_balance_update_sets_all_four_fields():
    admin, alice, _ = admin_with_team()

    updated = admin.put(
        f"/api/employees/{alice['id']}/balance",
        json={
            "annual_leave_remaining": 9,
            "sick_leave_remaining": 4,
            "annual_leave_total": 18,
            "sick_leave_total": 6,
        },
    )
    assert updated.status_code == 200
    body = updated.json()
    assert (body["annual_leave_remaining"], body["sick_leave_remaining"]) == (9, 4)
    assert (body["annual_leave_total"], body["sick_leave_total"]) == (18, 6)

    negative = admin.put(
        f"/api/employees/{alice['id']}/balance",
        json={"annual_leave_remaining": -1, "sick_leave_remaining": 4, "annual_leave_total": 18, "sick_leave_total": 6},
    )
    assert negative.status_code == 422


def test_employee_can_only_read_own_profile():
    _, alice, bob = admin_with_team()
    client = TestClient(app)
    login(client, "alice@technetworkinc.com", "alice-password-123")

    assert client.get(f"/api/employees/{alice['id']}").status_code == 200
    assert client.get(f"/api/employees/{bob['id']}").status_code == 403
    assert client.delete(f"/api/employees/{bob['id']}").status_code == 403


def test_deleting_employee_keeps_request_history_and_ends_login():
    admin, alice, bob = admin_with_team()
    alice_client = TestClient(app)
    login(alice_client, "alice@technetworkinc.com", "alice-password-123")
    submitted = alice_client.post(
        "/api/requests",
        json={
            "type": "Personal Leave",
            "start_date": "2026-03-10",
            "end_date": "2026-03-10",
            "reason": "Appointment",
            "partner_id": bob["id"],
        },
    )
    assert submitted.status_code == 201
    fetched = admin.get("/api/requests").json()

    assert admin.delete(f"/api/employees/{bob['id']}").json() == {"ok": True}
    assert [row["id"] for row in admin.get("/api/employees").json()] == [alice["id"]]
    assert admin.get(f"/api/employees/{bob['id']}").status_code == 404

    after_partner_delete = admin.get("/api/requests").json()[0]
    assert after_partner_delete["coverage_partner_id"] is None
    assert after_partner_delete["coverage_by"] == "Bob Builder"
    assert fetched[0]["coverage_partner_id"] == bob["id"]

    assert admin.delete(f"/api/employees/{alice['id']}").status_code == 200
    assert alice_client.get("/auth/me").status_code == 401
    assert login(TestClient(app), "alice@technetworkinc.com", "alice-password-123").status_code == 401

    orphaned = admin.get("/api/requests").json()[0]
    assert orphaned["employee_id"] is None
    assert orphaned["employee_name"] == "Alice Example"
    assert orphaned["employee_email"] == "alice@technetworkinc.com"


def test_policy_publish_overwrites_balances_when_entitlements_change():
    admin, alice, bob = admin_with_team()
    assert admin.get("/api/policy").json() is None
    assert len(admin.get("/api/leave-types").json()) == 11

    admin.put(
        f"/api/employees/{alice['id']}/balance",
        json={"annual_leave_remaining": 3, "sick_leave_remaining": 2, "annual_leave_total": 15, "sick_leave_total": 10},
    )

    first = admin.put("/api/policy", json=default_policy_content(20, 8))
    assert first.status_code == 200
    assert first.json()["balances_updated"] == 2
    assert first.json()["policy"]["version"] == 1
    assert first.json()["policy"]["published"] is True

    for employee in admin.get("/api/employees").json():
        assert employee["annual_leave_total"] == 20
        assert employee["annual_leave_remaining"] == 20
        assert employee["sick_leave_total"] == 8
        assert employee["sick_leave_remaining"] == 8

    content = default_policy_content(20, 8)
    content["leaveTypes"] = [entry for entry in content["leaveTypes"] if entry["value"] != "Unpaid Leave"]
    second = admin.put("/api/policy", json=content)
    assert second.json()["balances_updated"] == 0
    assert second.json()["policy"]["version"] == 2

    history = admin.get("/api/policy/history").json()
    assert [row["version"] for row in history] == [2, 1]
    assert [row["published"] for row in history] == [True, False]
    assert admin.get("/api/policy").json()["version"] == 2
    assert "Unpaid Leave" not in {row["value"] for row in admin.get("/api/leave-types").json()}

    carol = admin.post("/api/employees", json={"name": "Carol Clerk", "email": "carol@technetworkinc.com"}).json()
    assert carol["annual_leave_total"] == 20
    assert carol["sick_leave_remaining"] == 8


def test_policy_rejects_duplicate_leave_types():
    admin, _, _ = admin_with_team()
    content = default_policy_content(15, 10)
    content["leaveTypes"].append(dict(content["leaveTypes"][0]))

    rejected = admin.put("/api/policy", json=content)
    assert rejected.status_code == 422
    assert rejected.json()["error"]["code"] == "VALIDATION_ERROR"
    assert admin.get("/api/policy/history").json() == []


def test_health():
    client = TestClient(app)
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True, "env": "local"}
