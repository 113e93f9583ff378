from __future__ import annotations

from flask import Flask, jsonify, request

from ..audit.model import snapshot
from ..common.http import current_caller, json_body, parse_date_value, require_field, require_manager
from ..container import Container
from ..core.enums import LeaveStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/leaves", methods=["POST"], endpoint="api_leave_create")
    def create_leave():
        caller = current_caller()
        data = json_body()
        created = container.leave_service.create_request(
            employee_id=caller.user_id,
            company_id=caller.company_id,
            leave_type=require_field(data, "leave_type"),
            start_date=parse_date_value(data.get("start_date"), "start_date"),
            end_date=parse_date_value(data.get("end_date"), "end_date"),
            reason=data.get("reason"),
        )
        return jsonify(snapshot(created)), 201

    @app.route("/api/leaves/mine", methods=["GET"], endpoint="api_leave_mine")
    def my_leaves():
        caller = current_caller()
        rows = container.leave_service.list_for_employee(employee_id=caller.user_id, company_id=caller.company_id)
        return jsonify([snapshot(r) for r in rows])

    @app.route("/api/leaves", methods=["GET"], endpoint="api_leave_list")
    def list_leaves():
        caller = require_manager(current_caller(), "manage_leaves")
        status = request.args.get("status")
        try:
            wanted = LeaveStatus(status) if status else None
        except ValueError as exc:
            raise ValidationError(f"Unknown leave status: {status}") from exc
        rows = container.leave_service.list_requests(company_id=caller.company_id, status=wanted)
        return jsonify([snapshot(r) for r in rows])

    @app.route("/api/leaves/<int:request_id>/approve", methods=["POST"], endpoint="api_leave_approve")
    def approve_leave(request_id: int):
        caller = require_manager(current_caller(), "manage_leaves")
        updated = container.leave_service.approve(request_id=request_id, company_id=caller.company_id, reviewer_id=caller.user_id)
        return jsonify(snapshot(updated))

    @app.route("/api/leaves/<int:request_id>/reject", methods=["POST"], endpoint="api_leave_reject")
    def reject_leave(request_id: int):
        caller = require_manager(current_caller(), "manage_leaves")
        updated = container.leave_service.reject(request_id=request_id, company_id=caller.company_id, reviewer_id=caller.user_id)
        return jsonify(snapshot(updated))

    @app.route("/api/leaves/<int:request_id>", methods=["DELETE"], endpoint="api_leave_delete")
    def delete_leave(request_id: int):
        caller = require_manager(current_caller(), "manage_leaves")
        deleted_id = container.leave_service.delete(request_id=request_id, company_id=caller.company_id, deleted_by=caller.user_id)
        return jsonify({"deleted_id": deleted_id})
