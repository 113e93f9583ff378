from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Optional

from ..audit.model import snapshot
from ..common.datetime_utils import month_end, month_start, now_local, parse_iso_date
from ..core.enums import LeaveStatus, OrderStatus
from ..core.exceptions import ValidationError
from ..payroll.model import NewSalaryAdjustment
from .tools import ADMIN, ANY, Caller, ManagerWithPermission, ToolRegistry, ToolSpec

if TYPE_CHECKING:
    from ..container import Container

VIEW_EMPLOYEES = ManagerWithPermission("view_employees")
VIEW_ATTENDANCE = ManagerWithPermission("view_attendance")
APPROVE_ATTENDANCE = ManagerWithPermission("approve_attendance")
MANAGE_LEAVES = ManagerWithPermission("manage_leaves")
MANAGE_MARKETPLACE = ManagerWithPermission("manage_marketplace")


def _date(value: Optional[str], default: date) -> date:
    if not value:
        return default
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}, expected YYYY-MM-DD") from exc


def _amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {value!r}") from exc
    if amount <= 0:
        raise ValidationError("Amount must be > 0")
    return amount


def _schema(properties: Optional[dict] = None, required: tuple[str, ...] = ()) -> dict:
    schema = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = list(required)
    return schema


_INT = {"type": "integer"}
_STR = {"type": "string"}
_DATE = {"type": "string", "description": "YYYY-MM-DD"}


def build_tools(container: "Container") -> ToolRegistry:
    registry = ToolRegistry()
    employees = container.employee_service
    attendance = container.attendance_service
    verification = container.verification_service
    leaves = container.leave_service
    payroll = container.payroll_service
    marketplace = container.marketplace_service

    def list_employees(caller: Caller):
        return [
            {"employee_id": e.employee_id, "full_name": e.full_name, "email": e.email, "is_freelancer": e.is_freelancer}
            for e in employees.list(company_id=caller.company_id)
        ]

    def get_employee_details(caller: Caller, employee_id: int):
        return snapshot(employees.get(employee_id=employee_id, company_id=caller.company_id))

    def get_today_attendance(caller: Caller):
        return attendance.today_for_company(company_id=caller.company_id)

    def get_my_attendance_summary(caller: Caller, start_date: Optional[str] = None, end_date: Optional[str] = None):
        today = now_local().date()
        start = _date(start_date, month_start(today))
        end = _date(end_date, min(month_end(start), today))
        return snapshot(attendance.summary(employee_id=caller.user_id, company_id=caller.company_id, start=start, end=end))

    def get_my_leave_balance(caller: Caller):
        employee = employees.get(employee_id=caller.user_id, company_id=caller.company_id)
        return {
            "leave_balance": employee.leave_balance,
            "emergency_leave_balance": employee.emergency_leave_balance,
            "monthly_late_balance_minutes": employee.monthly_late_balance_minutes,
        }

    def list_pending_attendance(caller: Caller):
        return [snapshot(p) for p in verification.list_pending(company_id=caller.company_id)]

    def decide_pending_attendance(caller: Caller, pending_id: int, approve: bool, reason: Optional[str] = None):
        decided = verification.decide(
            pending_id=pending_id,
            company_id=caller.company_id,
            reviewer_id=caller.user_id,
            reviewer_role=caller.role,
            approve=bool(approve),
            reason=reason,
        )
        return {"pending_id": decided.pending_id, "status": decided.status.value}

    def list_leave_requests(caller: Caller, status: Optional[str] = None):
        try:
            wanted = LeaveStatus(status) if status else None
        except ValueError as exc:
            raise ValidationError(f"Unknown leave status: {status}") from exc
        return [snapshot(r) for r in leaves.list_requests(company_id=caller.company_id, status=wanted)]

    def approve_leave_request(caller: Caller, request_id: int):
        updated = leaves.approve(request_id=request_id, company_id=caller.company_id, reviewer_id=caller.user_id)
        return {"request_id": updated.request_id, "status": updated.status.value}

    def reject_leave_request(caller: Caller, request_id: int):
        updated = leaves.reject(request_id=request_id, company_id=caller.company_id, reviewer_id=caller.user_id)
        return {"request_id": updated.request_id, "status": updated.status.value}

    def _adjust(caller: Caller, *, employee_id: int, amount, description: Optional[str], bonus: bool, month: Optional[str]):
        value = _amount(amount)
        adjustment_id = payroll.add_adjustment(
            NewSalaryAdjustment(
                employee_id=employee_id,
                company_id=caller.company_id,
                month=_date(month, month_start(now_local().date())),
                bonus=value if bonus else Decimal("0"),
                deduction=Decimal("0") if bonus else value,
                description=description,
                added_by=caller.user_id,
            )
        )
        return {"adjustment_id": adjustment_id}

    def add_bonus(caller: Caller, employee_id: int, amount, description: Optional[str] = None, month: Optional[str] = None):
        return _adjust(caller, employee_id=employee_id, amount=amount, description=description, bonus=True, month=month)

    def add_deduction(caller: Caller, employee_id: int, amount, description: Optional[str] = None, month: Optional[str] = None):
        return _adjust(caller, employee_id=employee_id, amount=amount, description=description, bonus=False, month=month)

    def get_payroll_summary(caller: Caller, month: Optional[str] = None, employee_id: Optional[int] = None):
        key = _date(month, month_start(now_local().date()))
        if employee_id is not None:
            return snapshot(payroll.employee_month_summary(employee_id=employee_id, company_id=caller.company_id, month=key))
        return [snapshot(s) for s in payroll.company_month_report(company_id=caller.company_id, month=key)]

    def list_marketplace_orders(caller: Caller, status: Optional[str] = None):
        try:
            wanted = OrderStatus(status) if status else None
        except ValueError as exc:
            raise ValidationError(f"Unknown order status: {status}") from exc
        return [snapshot(o) for o in marketplace.list_orders(company_id=caller.company_id, status=wanted)]

    def reject_marketplace_order(caller: Caller, order_id: int, reason: str):
        balance = marketplace.reject(order_id=order_id, company_id=caller.company_id, reason=reason, reviewer_id=caller.user_id)
        return {"order_id": order_id, "status": OrderStatus.REJECTED.value, "wallet_balance": balance}

    for spec in (
        ToolSpec("list_employees", "List active employees of the company.", VIEW_EMPLOYEES, list_employees),
        ToolSpec(
            "get_employee_details",
            "Full record of one employee, including balances.",
            VIEW_EMPLOYEES,
            get_employee_details,
            _schema({"employee_id": _INT}, ("employee_id",)),
        ),
        ToolSpec("get_today_attendance", "Attendance logs recorded today.", VIEW_ATTENDANCE, get_today_attendance),
        ToolSpec(
            "get_my_attendance_summary",
            "Days present, worked and late minutes for the caller over a date range (default: this month).",
            ANY,
            get_my_attendance_summary,
            _schema({"start_date": _DATE, "end_date": _DATE}),
        ),
        ToolSpec("get_my_leave_balance", "Remaining annual, emergency and late-allowance balances.", ANY, get_my_leave_balance),
        ToolSpec("list_pending_attendance", "Check-ins/outs waiting for approval.", APPROVE_ATTENDANCE, list_pending_attendance),
        ToolSpec(
            "decide_pending_attendance",
            "Approve or reject a pending check-in/out.",
            APPROVE_ATTENDANCE,
            decide_pending_attendance,
            _schema({"pending_id": _INT, "approve": {"type": "boolean"}, "reason": _STR}, ("pending_id", "approve")),
        ),
        ToolSpec(
            "list_leave_requests",
            "Leave requests, optionally filtered by status.",
            MANAGE_LEAVES,
            list_leave_requests,
            _schema({"status": {"type": "string", "enum": [s.value for s in LeaveStatus]}}),
        ),
        ToolSpec(
            "approve_leave_request",
            "Approve a leave request and debit the employee's balance.",
            MANAGE_LEAVES,
            approve_leave_request,
            _schema({"request_id": _INT}, ("request_id",)),
        ),
        ToolSpec(
            "reject_leave_request",
            "Reject a leave request; an approved one gives its days back.",
            MANAGE_LEAVES,
            reject_leave_request,
            _schema({"request_id": _INT}, ("request_id",)),
        ),
        ToolSpec(
            "add_bonus",
            "Add a bonus for an employee.",
            ADMIN,
            add_bonus,
            _schema({"employee_id": _INT, "amount": {"type": "number"}, "description": _STR, "month": _DATE}, ("employee_id", "amount")),
        ),
        ToolSpec(
            "add_deduction",
            "Add a salary deduction for an employee.",
            ADMIN,
            add_deduction,
            _schema({"employee_id": _INT, "amount": {"type": "number"}, "description": _STR, "month": _DATE}, ("employee_id", "amount")),
        ),
        ToolSpec(
            "get_payroll_summary",
            "Net salary summary for one employee or the whole company.",
            ADMIN,
            get_payroll_summary,
            _schema({"month": _DATE, "employee_id": _INT}),
        ),
        ToolSpec(
            "list_marketplace_orders",
            "Marketplace orders, optionally filtered by status.",
            MANAGE_MARKETPLACE,
            list_marketplace_orders,
            _schema({"status": {"type": "string", "enum": [s.value for s in OrderStatus]}}),
        ),
        ToolSpec(
            "reject_marketplace_order",
            "Reject an order and refund its points.",
            MANAGE_MARKETPLACE,
            reject_marketplace_order,
            _schema({"order_id": _INT, "reason": _STR}, ("order_id", "reason")),
        ),
    ):
        registry.register(spec)
    return registry
