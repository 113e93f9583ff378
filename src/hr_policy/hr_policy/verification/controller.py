from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify

from ..audit.model import snapshot
from ..common.datetime_utils import now_local
from ..common.http import current_caller, json_body, parse_int, require_admin, require_manager
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/verification/pending", methods=["GET"], endpoint="api_verification_pending")
    def list_pending():
        caller = require_manager(current_caller(), "approve_attendance")
        rows = container.verification_service.list_pending(company_id=caller.company_id)
        return jsonify([snapshot(r) for r in rows])

    @app.route("/api/verification/<int:pending_id>/decision", methods=["POST"], endpoint="api_verification_decide")
    def decide(pending_id: int):
        caller = current_caller()
        data = json_body()
        if "approve" not in data:
            raise ValidationError("approve is required")
        decided = container.verification_service.decide(
            pending_id=pending_id,
            company_id=caller.company_id,
            reviewer_id=caller.user_id,
            reviewer_role=caller.role,
            approve=bool(data["approve"]),
            reason=data.get("reason"),
        )
        return jsonify(snapshot(decided))

    @app.route("/api/verification/expire", methods=["POST"], endpoint="api_verification_expire")
    def expire():
        caller = require_admin(current_caller())
        hours = parse_int(json_body().get("older_than_hours", 24), "older_than_hours")
        count = container.verification_service.expire(
            company_id=caller.company_id, older_than=now_local() - timedelta(hours=hours)
        )
        return jsonify({"expired": count})
