from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import Flask, jsonify, request

from ..audit.model import snapshot
from ..common.datetime_utils import month_start, now_local
from ..common.http import current_caller, json_body, parse_date_value, parse_int, require_admin, require_field
from ..container import Container
from ..core.exceptions import ValidationError
from .model import NewSalaryAdjustment


def _money(value, name: str) -> Decimal:
    try:
        return Decimal(str(value or 0))
    except InvalidOperation as exc:
        raise ValidationError(f"{name} must be a number") from exc


def register(app: Flask, container: Container) -> None:
    @app.route("/api/payroll/adjustments", methods=["POST"], endpoint="api_payroll_add")
    def add_adjustment():
        caller = require_admin(current_caller())
        data = json_body()
        adjustment_id = container.payroll_service.add_adjustment(
            NewSalaryAdjustment(
                employee_id=parse_int(require_field(data, "employee_id"), "employee_id"),
                company_id=caller.company_id,
                month=parse_date_value(data.get("month"), "month", month_start(now_local().date())),
                bonus=_money(data.get("bonus"), "bonus"),
                deduction=_money(data.get("deduction"), "deduction"),
                description=data.get("description"),
                added_by=caller.user_id,
                added_by_name=data.get("added_by_name"),
            )
        )
        return jsonify({"adjustment_id": adjustment_id}), 201

    @app.route("/api/payroll/adjustments", methods=["GET"], endpoint="api_payroll_list")
    def list_adjustments():
        caller = require_admin(current_caller())
        month = parse_date_value(request.args.get("month"), "month", month_start(now_local().date()))
        employee_id = request.args.get("employee_id")
        rows = container.payroll_service.list_adjustments(
            company_id=caller.company_id,
            month=month,
            employee_id=parse_int(employee_id, "employee_id") if employee_id else None,
        )
        return jsonify([snapshot(r) for r in rows])

    @app.route("/api/payroll/adjustments/<int:adjustment_id>", methods=["DELETE"], endpoint="api_payroll_delete")
    def delete_adjustment(adjustment_id: int):
        caller = require_admin(current_caller())
        deleted_id = container.payroll_service.delete_adjustment(
            adjustment_id=adjustment_id, company_id=caller.company_id, deleted_by=caller.user_id
        )
        return jsonify({"deleted_id": deleted_id})

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="api_payroll_summary")
    def summary():
        caller = current_caller()
        month = parse_date_value(request.args.get("month"), "month", month_start(now_local().date()))
        result = container.payroll_service.employee_month_summary(
            employee_id=caller.user_id, company_id=caller.company_id, month=month
        )
        return jsonify(snapshot(result))

    @app.route("/api/payroll/report", methods=["GET"], endpoint="api_payroll_report")
    def report():
        caller = require_admin(current_caller())
        month = parse_date_value(request.args.get("month"), "month", month_start(now_local().date()))
        rows = container.payroll_service.company_month_report(company_id=caller.company_id, month=month)
        return jsonify([snapshot(r) for r in rows])
