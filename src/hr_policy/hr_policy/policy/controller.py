from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Flask, jsonify

from ..audit.model import snapshot
from ..common.http import current_caller, json_body, require_admin
from ..container import Container
from ..core.enums import ApproverType
from ..core.exceptions import ValidationError

_DECIMAL_FIELDS = (
    "late_under_15_deduction",
    "late_15_to_30_deduction",
    "late_over_30_deduction",
    "absence_without_permission_deduction",
    "early_departure_deduction",
    "overtime_multiplier",
)


def _coerce(data: dict) -> dict:
    out = dict(data)
    try:
        for name in _DECIMAL_FIELDS:
            if out.get(name) is not None:
                out[name] = Decimal(str(out[name]))
        if out.get("attendance_approver_type"):
            out["attendance_approver_type"] = ApproverType(out["attendance_approver_type"])
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid policy data: {exc}") from exc
    for name in ("weekend_days", "allowed_wifi_ips"):
        if out.get(name) is not None:
            out[name] = tuple(out[name])
    if "locations" in out and not isinstance(out["locations"], (list, type(None))):
        raise ValidationError("locations must be a list")
    return out


def register(app: Flask, container: Container) -> None:
    @app.route("/api/policy", methods=["GET"], endpoint="api_policy_get")
    def get_policy():
        caller = require_admin(current_caller())
        return jsonify(snapshot(container.policy_service.get(caller.company_id)))

    @app.route("/api/policy", methods=["PATCH"], endpoint="api_policy_update")
    def update_policy():
        caller = require_admin(current_caller())
        policy = container.policy_service.update(
            company_id=caller.company_id,
            changes=_coerce(json_body()),
            updated_by=caller.user_id,
        )
        return jsonify(snapshot(policy))
