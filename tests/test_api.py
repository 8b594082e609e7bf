from types import SimpleNamespace

import pytest

from app.alarms.runner import PassResult
from app.models.user import UserRole


def _headers(users_by_role, role: UserRole) -> dict:
    return {"X-User-Id": str(users_by_role[role])}


MATERIAL = {
    "invoice_number": "NF-100",
    "order_number": "OS-1",
    "equipment_details": "Servo motor",
    "material_type": "Motores AC",
    "status": "PENDENTE",
    "created_by": "planner@example.com",
}


class StubScheduler:
    def __init__(self, busy=False):
        self.started_with = None
        self.stopped = False
        self.runner = SimpleNamespace(run_pass=lambda: None if busy else PassResult(processed=2, triggered=1))

    def start(self, interval_minutes=None):
        self.started_with = interval_minutes
        return True

    def stop(self):
        self.stopped = True
        return True

    def status(self):
        return {"running": self.started_with is not None and not self.stopped}


def test_status_endpoint(client) -> None:
    assert client.get("/api/v1/status").json() == {"status": "online"}


def test_material_lifecycle(client, users_by_role) -> None:
    planner = _headers(users_by_role, UserRole.PLANNER)

    created = client.post("/api/v1/materials", json=MATERIAL, headers=planner)
    assert created.status_code == 201
    body = created.json()
    assert body["material_type"] == "MOTOR_AC"
    assert body["status"] == "PENDING"
    material_id = body["id"]

    updated = client.put(
        f"/api/v1/materials/{material_id}",
        json={"status": "SENT", "updated_by": "planner@example.com"},
        headers=planner,
    )
    assert updated.status_code == 200
    assert [(h["field"], h["old_value"], h["new_value"]) for h in updated.json()["history"]] == [
        ("status", "PENDING", "SENT")
    ]

    deleted = client.request(
        "DELETE",
        f"/api/v1/materials/{material_id}",
        json={"reason": "duplicate", "deleted_by": "planner@example.com"},
        headers=planner,
    )
    assert deleted.json() == {"success": True}
    assert client.get("/api/v1/materials").json() == []
    assert [m["id"] for m in client.get("/api/v1/materials/deleted").json()] == [material_id]

    frozen = client.put(
        f"/api/v1/materials/{material_id}",
        json={"carrier": "X", "updated_by": "planner@example.com"},
        headers=planner,
    )
    assert frozen.status_code == 409


def test_material_notes_can_be_cleared(client, users_by_role) -> None:
    planner = _headers(users_by_role, UserRole.PLANNER)
    material_id = client.post(
        "/api/v1/materials", json={**MATERIAL, "notes": "fragile", "carrier": "DHL"}, headers=planner
    ).json()["id"]

    updated = client.put(
        f"/api/v1/materials/{material_id}",
        json={"notes": None, "carrier": None, "updated_by": "planner@example.com"},
        headers=planner,
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["notes"] is None
    # 해제 불가 필드의 null은 무시
    assert body["carrier"] == "DHL"
    assert [(h["field"], h["old_value"], h["new_value"]) for h in body["history"]] == [
        ("notes", "fragile", "")
    ]


def test_delete_requires_reason(client, users_by_role) -> None:
    planner = _headers(users_by_role, UserRole.PLANNER)
    material_id = client.post("/api/v1/materials", json=MATERIAL, headers=planner).json()["id"]
    response = client.request(
        "DELETE",
        f"/api/v1/materials/{material_id}",
        json={"reason": "   ", "deleted_by": "planner@example.com"},
        headers=planner,
    )
    assert response.status_code == 422


@pytest.mark.parametrize(
    ("method", "path", "role"),
    [
        ("post", "/api/v1/materials", UserRole.USER),
        ("get", "/api/v1/users", UserRole.PLANNER),
        ("put", "/api/v1/config/smtp", UserRole.ADMIN),
        ("post", "/api/v1/alarms", UserRole.USER),
    ],
)
def test_permissions_are_enforced(client, users_by_role, method, path, role) -> None:
    response = client.request(method.upper(), path, json={}, headers=_headers(users_by_role, role))
    assert response.status_code == 403


def test_missing_user_header_is_forbidden(client) -> None:
    assert client.post("/api/v1/materials", json=MATERIAL).status_code == 403


def test_user_management(client, users_by_role) -> None:
    admin = _headers(users_by_role, UserRole.ADMIN)
    payload = {"name": "Ana", "email": "Ana@Example.com", "matricula": "900", "role": "PLANEJADOR"}

    created = client.post("/api/v1/users", json=payload, headers=admin)
    assert created.status_code == 201
    assert created.json()["email"] == "ana@example.com"
    assert created.json()["role"] == "PLANNER"
    assert "password_hash" not in created.json()

    duplicate = client.post("/api/v1/users", json={**payload, "matricula": "901"}, headers=admin)
    assert duplicate.status_code == 409


def test_alarm_rule_crud(client, users_by_role) -> None:
    planner = _headers(users_by_role, UserRole.PLANNER)
    rule = {
        "name": "Stale shipments",
        "type": "TEMPO_ETAPA",
        "condition": "status == PENDING",
        "value": 7,
        "recipients": "a@example.com, b@example.com",
        "created_by": "planner@example.com",
    }

    created = client.post("/api/v1/alarms", json=rule, headers=planner)
    assert created.status_code == 201
    body = created.json()
    assert body["type"] == "TIME_IN_STAGE"
    assert body["recipients"] == ["a@example.com", "b@example.com"]

    toggled = client.post(f"/api/v1/alarms/{body['id']}/toggle", headers=planner)
    assert toggled.json()["active"] is False

    updated = client.put(f"/api/v1/alarms/{body['id']}", json={"recipients": ["c@example.com"]}, headers=planner)
    assert updated.json()["recipients"] == ["c@example.com"]

    assert client.delete(f"/api/v1/alarms/{body['id']}", headers=planner).json() == {"success": True}
    assert client.get(f"/api/v1/alarms/{body['id']}").status_code == 404


def test_alarm_rule_rejects_malformed_condition(client, users_by_role) -> None:
    response = client.post(
        "/api/v1/alarms",
        json={
            "name": "broken",
            "type": "MATERIAL_COUNT",
            "condition": "status == ",
            "recipients": ["a@example.com"],
            "created_by": "planner@example.com",
        },
        headers=_headers(users_by_role, UserRole.PLANNER),
    )
    assert response.status_code == 400


def test_validate_condition(client) -> None:
    assert client.post("/api/v1/alarms/validate-condition", json={"condition": "id > 3"}).json() == {"valid": True}
    assert client.post("/api/v1/alarms/validate-condition", json={"condition": "id >"}).status_code == 400


def test_scheduler_endpoints(api_app, client, users_by_role) -> None:
    planner = _headers(users_by_role, UserRole.PLANNER)
    api_app.state.alarm_scheduler = StubScheduler()

    started = client.post("/api/v1/alarms/scheduler/start", json={"interval_minutes": 15}, headers=planner)
    assert started.json()["success"] is True
    assert api_app.state.alarm_scheduler.started_with == 15
    assert client.get("/api/v1/alarms/scheduler").json() == {"running": True}

    run = client.post("/api/v1/alarms/run", headers=planner)
    assert run.json()["processed"] == 2

    stopped = client.post("/api/v1/alarms/scheduler/stop", headers=planner)
    assert stopped.json() == {"success": True, "running": False}


def test_manual_run_while_busy_conflicts(api_app, client, users_by_role) -> None:
    api_app.state.alarm_scheduler = StubScheduler(busy=True)
    response = client.post("/api/v1/alarms/run", headers=_headers(users_by_role, UserRole.ADMIN))
    assert response.status_code == 409


def test_scheduler_unavailable_without_app_state(client) -> None:
    assert client.get("/api/v1/alarms/scheduler").status_code == 503


def test_smtp_config(client, users_by_role) -> None:
    developer = _headers(users_by_role, UserRole.DEVELOPER)
    response = client.put(
        "/api/v1/config/smtp",
        json={"server": "mail.example.com", "port": 587, "from_email": "noreply@example.com"},
        headers=developer,
    )
    assert response.status_code == 200
    assert client.get("/api/v1/config/smtp").json()["server"] == "mail.example.com"


def test_health_reports_counts(client, users_by_role) -> None:
    client.post("/api/v1/materials", json=MATERIAL, headers=_headers(users_by_role, UserRole.ADMIN))
    body = client.get("/api/v1/health").json()
    assert body["status"] == "ok"
    assert body["database"]["materials"] == 1
    assert body["scheduler"] == {"running": False}
