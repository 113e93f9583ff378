from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Flask, jsonify

from ..audit.model import snapshot
from ..common.datetime_utils import parse_clock
from ..common.http import current_caller, json_body, require_admin, require_field, require_manager
from ..container import Container
from ..core.enums import ApproverType, SalaryType
from ..core.exceptions import ValidationError
from ..policy.verification_mode import members
from .model import NewEmployee

_DECIMAL_FIELDS = ("base_salary", "hourly_rate")
_TIME_FIELDS = ("work_start_time", "work_end_time")


def _coerce(data: dict) -> dict:
    """JSON payload values to the Employee field types."""

    out = dict(data)
    try:
        for name in _DECIMAL_FIELDS:
            if out.get(name) is not None:
                out[name] = Decimal(str(out[name]))
        for name in _TIME_FIELDS:
            if out.get(name):
                out[name] = parse_clock(str(out[name]))
        if out.get("salary_type"):
            out["salary_type"] = SalaryType(out["salary_type"])
        if out.get("approver_type"):
            out["approver_type"] = ApproverType(out["approver_type"])
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid employee data: {exc}") from exc
    for name in ("weekend_days", "allowed_wifi_ips"):
        if out.get(name) is not None:
            out[name] = tuple(out[name])
    return out


def register(app: Flask, container: Container) -> None:
    @app.route("/api/employees", methods=["GET"], endpoint="api_employees_list")
    def list_employees():
        caller = require_manager(current_caller(), "view_employees")
        return jsonify([snapshot(e) for e in container.employee_service.list(company_id=caller.company_id)])

    @app.route("/api/employees", methods=["POST"], endpoint="api_employees_create")
    def create_employee():
        caller = require_admin(current_caller())
        data = _coerce(json_body())
        require_field(data, "full_name")
        allowed = set(NewEmployee.__dataclass_fields__)
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(unknown)}")
        employee = container.employee_service.create(
            company_id=caller.company_id, data=NewEmployee(**data), created_by=caller.user_id
        )
        return jsonify(snapshot(employee)), 201

    @app.route("/api/employees/<int:employee_id>", methods=["PATCH"], endpoint="api_employees_update")
    def update_employee(employee_id: int):
        caller = require_admin(current_caller())
        employee = container.employee_service.update(
            employee_id=employee_id,
            company_id=caller.company_id,
            changes=_coerce(json_body()),
            updated_by=caller.user_id,
        )
        return jsonify(snapshot(employee))

    @app.route("/api/employees/<int:employee_id>", methods=["DELETE"], endpoint="api_employees_delete")
    def delete_employee(employee_id: int):
        caller = require_admin(current_caller())
        deleted_id = container.employee_service.delete(
            employee_id=employee_id, company_id=caller.company_id, deleted_by=caller.user_id
        )
        return jsonify({"deleted_id": deleted_id})

    @app.route("/api/employees/reset-late-balances", methods=["POST"], endpoint="api_employees_reset_late")
    def reset_late_balances():
        caller = require_admin(current_caller())
        count = container.employee_service.reset_monthly_late_balances(company_id=caller.company_id)
        return jsonify({"employees": count})

    @app.route("/api/employees/me/verification", methods=["GET"], endpoint="api_employees_my_verification")
    def my_verification():
        caller = current_caller()
        effective = container.employee_service.effective_policy(employee_id=caller.user_id, company_id=caller.company_id)
        return jsonify(
            {
                "level": effective.verification_level,
                "requirements": [r.name.lower() for r in members(effective.requirements)],
                "approver_type": effective.approver_type.value,
                "approver_id": effective.approver_id,
            }
        )
