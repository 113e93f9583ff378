from __future__ import annotations

from flask import Flask, jsonify, request

from ..audit.model import snapshot
from ..common.datetime_utils import month_start, now_local
from ..container import Container
from ..common.http import (
    current_caller,
    json_body,
    parse_date_value,
    parse_datetime_value,
    parse_float,
    parse_int,
    require_admin,
    require_field,
    require_manager,
)
from ..core.enums import AttendanceRequestType
from ..policy.verification_mode import members
from ..verification.model import Evidence


def _evidence(data: dict) -> Evidence:
    # Verification outcomes are computed server-side; only raw device data is read here.
    return Evidence(
        ip_address=request.remote_addr,
        latitude=parse_float(data.get("latitude"), "latitude"),
        longitude=parse_float(data.get("longitude"), "longitude"),
        selfie_url=data.get("selfie_url"),
        vpn_detected=bool(data.get("vpn_detected", False)),
        location_spoofing_suspected=bool(data.get("location_spoofing_suspected", False)),
    )


def register(app: Flask, container: Container) -> None:
    def _submit(request_type: AttendanceRequestType):
        caller = current_caller()
        data = json_body()
        record, outcome = container.verification_service.submit(
            employee_id=caller.user_id,
            company_id=caller.company_id,
            request_type=request_type,
            evidence=_evidence(data),
            notes=data.get("notes"),
        )
        return jsonify(
            {
                "pending_id": record.pending_id,
                "status": record.status.value,
                "passed": outcome.passed,
                "failed_requirements": [r.name.lower() for r in members(outcome.failed)],
            }
        ), 201 if outcome.passed else 202

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    def check_in():
        return _submit(AttendanceRequestType.CHECK_IN)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_check_out")
    def check_out():
        return _submit(AttendanceRequestType.CHECK_OUT)

    @app.route("/api/attendance/break/start", methods=["POST"], endpoint="api_break_start")
    def break_start():
        caller = current_caller()
        container.attendance_service.start_break(caller.user_id, caller.company_id)
        return jsonify({"status": "on_break"})

    @app.route("/api/attendance/break/end", methods=["POST"], endpoint="api_break_end")
    def break_end():
        caller = current_caller()
        container.attendance_service.end_break(caller.user_id, caller.company_id)
        return jsonify({"status": "checked_in"})

    @app.route("/api/attendance/<int:attendance_id>/check-in", methods=["PUT"], endpoint="api_edit_check_in")
    def edit_check_in(attendance_id: int):
        caller = require_manager(current_caller(), "edit_attendance")
        data = json_body()
        new_time = parse_datetime_value(require_field(data, "check_in_time"), "check_in_time")
        decision = container.attendance_service.recalculate_check_in(
            attendance_id=attendance_id,
            company_id=caller.company_id,
            new_check_in=new_time,
            editor_id=caller.user_id,
            editor_name=data.get("editor_name"),
        )
        return jsonify(snapshot(decision))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    def today():
        caller = require_manager(current_caller(), "view_attendance")
        return jsonify(container.attendance_service.today_for_company(company_id=caller.company_id))

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="api_attendance_summary")
    def summary():
        caller = current_caller()
        today_ = now_local().date()
        start = parse_date_value(request.args.get("start"), "start", month_start(today_))
        end = parse_date_value(request.args.get("end"), "end", today_)
        result = container.attendance_service.summary(
            employee_id=caller.user_id, company_id=caller.company_id, start=start, end=end
        )
        return jsonify(snapshot(result))

    @app.route("/api/attendance/absences", methods=["POST"], endpoint="api_mark_absent")
    def mark_absent():
        caller = require_admin(current_caller())
        data = json_body()
        result = container.attendance_service.mark_absent(
            parse_int(require_field(data, "employee_id"), "employee_id"),
            caller.company_id,
            work_date=parse_date_value(data.get("date"), "date"),
        )
        if result is None:
            return jsonify({"absent": False})
        return jsonify({"absent": True, "classification": snapshot(result)}), 201
