from types import SimpleNamespace

import pytest
from flask import Flask

from src.hr_policy.hr_policy.assistant import controller as assistant_controller
from src.hr_policy.hr_policy.attendance import controller as attendance_controller
from src.hr_policy.hr_policy.assistant.catalog import build_tools
from src.hr_policy.hr_policy.common.http import register_error_handlers
from src.hr_policy.hr_policy.leaves import controller as leaves_controller
from src.hr_policy.hr_policy.policy import controller as policy_controller


@pytest.fixture
def client(world):
    world.add_employee(1, leave_balance=3, manager_id=5)
    services = SimpleNamespace(
        employee_service=world.employee_service,
        attendance_service=world.attendance_service,
        verification_service=world.verification_service,
        leave_service=world.leave_service,
        payroll_service=world.payroll_service,
        marketplace_service=world.marketplace_service,
        policy_service=world.policy_service,
    )
    container = SimpleNamespace(tool_registry=build_tools(services), **vars(services))

    app = Flask(__name__)
    app.secret_key = "test"
    app.config["TESTING"] = True
    register_error_handlers(app)
    leaves_controller.register(app, container)
    assistant_controller.register(app, container)
    attendance_controller.register(app, container)
    policy_controller.register(app, container)
    return app.test_client()


def _login(client, user_id=1, role="employee", permissions=()):
    with client.session_transaction() as session:
        session["user_id"] = user_id
        session["company_id"] = 1
        session["role"] = role
        session["permissions"] = list(permissions)


def test_login_is_required(client):
    response = client.get("/api/leaves/mine")
    assert response.status_code == 401
    assert response.get_json()["error"]["code"] == "authentication_required"


def test_leave_request_and_approval_over_http(client, world):
    _login(client)
    created = client.post("/api/leaves", json={"leave_type": "vacation", "start_date": "2025-04-06", "end_date": "2025-04-07"})
    assert created.status_code == 201
    request_id = created.get_json()["request_id"]

    assert client.post(f"/api/leaves/{request_id}/approve").status_code == 403

    _login(client, user_id=5, role="manager", permissions=["manage_leaves"])
    approved = client.post(f"/api/leaves/{request_id}/approve")
    assert approved.status_code == 200
    assert approved.get_json()["status"] == "approved"
    assert world.employee(1).leave_balance == 1


def test_domain_errors_map_to_status_codes(client):
    _login(client)
    too_long = client.post("/api/leaves", json={"leave_type": "vacation", "start_date": "2025-04-01", "end_date": "2025-04-10"})
    assert too_long.status_code == 409
    assert too_long.get_json()["error"]["code"] == "insufficient_balance"

    bad_date = client.post("/api/leaves", json={"leave_type": "vacation", "start_date": "04/01/2025", "end_date": "2025-04-10"})
    assert bad_date.status_code == 400

    assert client.post("/api/leaves/99/approve").status_code == 403


def test_assistant_endpoints(client):
    _login(client)
    names = {t["function"]["name"] for t in client.get("/api/assistant/tools").get_json()}
    assert "get_my_leave_balance" in names

    result = client.post("/api/assistant/tools/get_my_leave_balance", json={})
    assert result.status_code == 200
    assert result.get_json()["result"]["leave_balance"] == 3

    denied = client.post("/api/assistant/tools/add_bonus", json={"arguments": {"employee_id": 1, "amount": 10}})
    assert denied.status_code == 403
    assert client.post("/api/assistant/tools/nope", json={}).status_code == 404


def test_check_in_ignores_verification_flags_in_the_body(client, world):
    world.set_policy(attendance_verification_level=3, level3_verification_mode="ip_only", allowed_wifi_ips=("10.0.0.0/8",))
    _login(client)

    forged = client.post("/api/attendance/check-in", json={"ip_address": "10.0.0.5", "ip_verified": True})

    assert forged.status_code == 202
    body = forged.get_json()
    assert body["status"] == "pending"
    assert body["failed_requirements"] == ["wifi_ip"]
    [pending] = world.pending.rows.values()
    assert pending.evidence.ip_address == "127.0.0.1"


def test_check_in_from_allowed_network_is_applied(client, world):
    world.set_policy(attendance_verification_level=3, level3_verification_mode="ip_only", allowed_wifi_ips=("127.0.0.1",))
    _login(client)

    response = client.post("/api/attendance/check-in", json={})

    assert response.status_code == 201
    assert response.get_json()["passed"] is True
    assert len(world.attendance.rows) == 1


def test_bad_coordinates_are_rejected(client):
    _login(client)
    assert client.post("/api/attendance/check-in", json={"latitude": "north"}).status_code == 400


def test_policy_edit_is_admin_only_and_validated(client, world):
    _login(client, user_id=5, role="manager", permissions=["manage_leaves"])
    assert client.patch("/api/policy", json={"annual_leave_days": 10}).status_code == 403

    _login(client, user_id=9, role="admin")
    bad = client.patch("/api/policy", json={"overtime_multiplier": "0.5"})
    assert bad.status_code == 400

    updated = client.patch(
        "/api/policy",
        json={"overtime_multiplier": "2", "locations": [{"name": "HQ", "latitude": 10.5, "longitude": 106.7, "radius_meters": 150}]},
    )
    assert updated.status_code == 200
    assert updated.get_json()["locations"][0]["radius_meters"] == 150
    assert world.policies.get_for_company(1).overtime_multiplier == 2
    assert client.get("/api/policy").get_json()["overtime_multiplier"] == "2"
