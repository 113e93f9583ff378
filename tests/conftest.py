from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from src.hr_policy.hr_policy.attendance.model import AttendanceLog
from src.hr_policy.hr_policy.attendance.service import AttendanceService
from src.hr_policy.hr_policy.audit.model import AuditEntry, DeletedRecord, snapshot
from src.hr_policy.hr_policy.audit.registry import EntityRegistry
from src.hr_policy.hr_policy.audit.service import SoftDeleteService
from src.hr_policy.hr_policy.audit.trail import AuditTrail
from src.hr_policy.hr_policy.core.enums import AttendanceStatus, EntityKind, LeaveStatus, OrderStatus, PendingStatus
from src.hr_policy.hr_policy.employees.model import Employee
from src.hr_policy.hr_policy.employees.service import EmployeeService
from src.hr_policy.hr_policy.holidays.client import PublicHoliday
from src.hr_policy.hr_policy.leaves.model import LeaveRequest
from src.hr_policy.hr_policy.leaves.service import LeaveService
from src.hr_policy.hr_policy.marketplace.model import MarketplaceItem, MarketplaceOrder
from src.hr_policy.hr_policy.marketplace.service import MarketplaceService
from src.hr_policy.hr_policy.payroll.model import SalaryAdjustment
from src.hr_policy.hr_policy.payroll.service import PayrollService
from src.hr_policy.hr_policy.policy.model import CompanyPolicy
from src.hr_policy.hr_policy.policy.service import PolicyService
from src.hr_policy.hr_policy.verification.model import PendingAttendance
from src.hr_policy.hr_policy.verification.service import VerificationService

COMPANY_ID = 1


class InMemoryEmployees:
    def __init__(self):
        self.rows: dict[int, Employee] = {}
        self.fail_next_writes = 0

    def get_by_id(self, employee_id: int, *, company_id: int) -> Optional[Employee]:
        employee = self.rows.get(int(employee_id))
        return employee if employee and employee.company_id == company_id else None

    def list_for_company(self, company_id: int, *, active_only: bool = True):
        return [e for e in self.rows.values() if e.company_id == company_id and (e.is_active or not active_only)]

    def insert(self, employee: Employee) -> int:
        employee_id = max(self.rows, default=0) + 1
        self.rows[employee_id] = replace(employee, employee_id=employee_id)
        return employee_id

    def update(self, employee: Employee) -> bool:
        if employee.employee_id not in self.rows:
            return False
        self.rows[employee.employee_id] = employee
        return True

    def compare_and_set_balance(self, *, employee_id: int, company_id: int, field: str, expected: int, new_value: int) -> bool:
        if self.fail_next_writes:
            self.fail_next_writes -= 1
            return False
        employee = self.get_by_id(employee_id, company_id=company_id)
        if not employee or getattr(employee, field) != expected:
            return False
        self.rows[employee.employee_id] = replace(employee, **{field: new_value})
        return True

    def reset_late_balances(self, company_id: int, *, minutes: int) -> int:
        count = 0
        for employee in self.list_for_company(company_id):
            self.rows[employee.employee_id] = replace(employee, monthly_late_balance_minutes=minutes)
            count += 1
        return count


class InMemoryPolicies:
    def __init__(self):
        self.rows: dict[int, CompanyPolicy] = {}

    def get_for_company(self, company_id: int) -> Optional[CompanyPolicy]:
        return self.rows.get(company_id)

    def save(self, policy: CompanyPolicy) -> bool:
        self.rows[policy.company_id] = policy
        return True


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[int, AttendanceLog] = {}

    def get_by_id(self, attendance_id: int, *, company_id: int) -> Optional[AttendanceLog]:
        log = self.rows.get(int(attendance_id))
        return log if log and log.company_id == company_id else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceLog]:
        for log in self.rows.values():
            if log.employee_id == employee_id and log.work_date == work_date:
                return log
        return None

    def list_for_employee_between(self, *, employee_id: int, company_id: int, start: date, end: date):
        return sorted(
            (l for l in self.rows.values() if l.employee_id == employee_id and l.company_id == company_id and start <= l.work_date <= end),
            key=lambda l: l.work_date,
        )

    def list_for_company_date(self, *, company_id: int, work_date: date):
        return [l for l in self.rows.values() if l.company_id == company_id and l.work_date == work_date]

    def create_checkin(self, *, employee_id: int, company_id: int, work_date: date, check_in_time: datetime, notes=None) -> int:
        attendance_id = max(self.rows, default=0) + 1
        self.rows[attendance_id] = AttendanceLog(
            attendance_id=attendance_id,
            employee_id=employee_id,
            company_id=company_id,
            work_date=work_date,
            check_in_time=check_in_time,
            check_out_time=None,
            status=AttendanceStatus.CHECKED_IN,
            notes=notes,
        )
        return attendance_id

    def create_absence(self, *, employee_id: int, company_id: int, work_date: date, notes=None) -> Optional[int]:
        if self.get_for_employee_and_date(employee_id, work_date):
            return None
        attendance_id = max(self.rows, default=0) + 1
        self.rows[attendance_id] = AttendanceLog(
            attendance_id=attendance_id,
            employee_id=employee_id,
            company_id=company_id,
            work_date=work_date,
            check_in_time=None,
            check_out_time=None,
            status=AttendanceStatus.ABSENT,
            notes=notes,
        )
        return attendance_id

    def update(self, *, attendance_id: int, check_in_time, check_out_time, status, break_started_at=None, notes=None) -> bool:
        log = self.rows.get(attendance_id)
        if not log:
            return False
        self.rows[attendance_id] = replace(
            log,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            status=status,
            break_started_at=break_started_at,
            notes=notes,
        )
        return True

    def add_day(self, *, employee_id: int, check_in: datetime, check_out: Optional[datetime], company_id: int = COMPANY_ID) -> int:
        attendance_id = self.create_checkin(
            employee_id=employee_id, company_id=company_id, work_date=check_in.date(), check_in_time=check_in
        )
        if check_out:
            self.update(
                attendance_id=attendance_id,
                check_in_time=check_in,
                check_out_time=check_out,
                status=AttendanceStatus.CHECKED_OUT,
            )
        return attendance_id


class InMemoryAdjustments:
    def __init__(self):
        self.rows: dict[int, SalaryAdjustment] = {}

    def create(self, adjustment) -> int:
        adjustment_id = max(self.rows, default=0) + 1
        self.rows[adjustment_id] = SalaryAdjustment(adjustment_id=adjustment_id, **vars(adjustment))
        return adjustment_id

    def get_by_id(self, adjustment_id: int, *, company_id: int) -> Optional[SalaryAdjustment]:
        row = self.rows.get(int(adjustment_id))
        return row if row and row.company_id == company_id else None

    def list_for_month(self, *, company_id: int, month: date, employee_id: Optional[int] = None):
        return [
            a
            for a in self.rows.values()
            if a.company_id == company_id and a.month == month and (employee_id is None or a.employee_id == employee_id)
        ]

    def find_auto_for_attendance(self, *, attendance_log_id: int, company_id: int):
        return [
            a
            for a in self.rows.values()
            if a.attendance_log_id == attendance_log_id and a.company_id == company_id and a.is_auto_generated
        ]


class InMemoryLeaves:
    def __init__(self):
        self.rows: dict[int, LeaveRequest] = {}

    def create(self, request) -> int:
        request_id = max(self.rows, default=0) + 1
        self.rows[request_id] = LeaveRequest(request_id=request_id, **vars(request))
        return request_id

    def get_by_id(self, request_id: int, *, company_id: int) -> Optional[LeaveRequest]:
        row = self.rows.get(int(request_id))
        return row if row and row.company_id == company_id else None

    def list_for_company(self, company_id: int, *, status=None, limit: int = 200):
        return [r for r in self.rows.values() if r.company_id == company_id and (status is None or r.status == status)][:limit]

    def list_for_employee(self, employee_id: int, *, company_id: int):
        return [r for r in self.rows.values() if r.employee_id == employee_id and r.company_id == company_id]

    def set_status(self, *, request_id: int, company_id: int, expected, status, reviewed_by, reviewed_at) -> bool:
        row = self.rows.get(int(request_id))
        if not row or row.company_id != company_id or row.status != expected:
            return False
        self.rows[row.request_id] = replace(row, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at)
        return True

    def has_approved_on(self, *, employee_id: int, company_id: int, day: date) -> bool:
        return any(
            r.employee_id == employee_id
            and r.company_id == company_id
            and r.status == LeaveStatus.APPROVED
            and r.start_date <= day <= r.end_date
            for r in self.rows.values()
        )


class InMemoryPending:
    def __init__(self):
        self.rows: dict[int, PendingAttendance] = {}
        self.created_at = datetime(2025, 3, 3, 8, 0)

    def create(self, *, employee_id, company_id, request_type, requested_time, status, evidence, approver_type, approver_id, notes=None) -> int:
        pending_id = max(self.rows, default=0) + 1
        self.rows[pending_id] = PendingAttendance(
            pending_id=pending_id,
            employee_id=employee_id,
            company_id=company_id,
            request_type=request_type,
            requested_time=requested_time,
            status=status,
            evidence=evidence,
            approver_type=approver_type,
            approver_id=approver_id,
            notes=notes,
            created_at=self.created_at,
        )
        return pending_id

    def get_by_id(self, pending_id: int, *, company_id: int) -> Optional[PendingAttendance]:
        row = self.rows.get(int(pending_id))
        return row if row and row.company_id == company_id else None

    def list_pending(self, company_id: int, *, created_before: Optional[datetime] = None):
        return [
            r
            for r in self.rows.values()
            if r.company_id == company_id
            and r.status == PendingStatus.PENDING
            and (created_before is None or r.created_at < created_before)
        ]

    def decide(self, *, pending_id, company_id, status, reviewed_by, reviewed_at, rejection_reason=None) -> bool:
        row = self.get_by_id(pending_id, company_id=company_id)
        if not row or row.status != PendingStatus.PENDING:
            return False
        self.rows[row.pending_id] = replace(
            row, status=status, reviewed_by=reviewed_by, reviewed_at=reviewed_at, rejection_reason=rejection_reason
        )
        return True


class InMemoryMarket:
    def __init__(self):
        self.items: dict[int, MarketplaceItem] = {}
        self.orders: dict[int, MarketplaceOrder] = {}

    def get_item(self, item_id: int, *, company_id: int) -> Optional[MarketplaceItem]:
        item = self.items.get(int(item_id))
        return item if item and item.company_id == company_id else None

    def reserve_stock(self, item_id: int, *, company_id: int) -> bool:
        item = self.items[item_id]
        if item.stock_quantity is None:
            return True
        if item.stock_quantity <= 0:
            return False
        self.items[item_id] = replace(item, stock_quantity=item.stock_quantity - 1)
        return True

    def release_stock(self, item_id: int, *, company_id: int) -> None:
        item = self.items[item_id]
        if item.stock_quantity is not None:
            self.items[item_id] = replace(item, stock_quantity=item.stock_quantity + 1)

    def create_order(self, *, company_id, employee_id, item_id, points_spent, status) -> int:
        order_id = max(self.orders, default=0) + 1
        self.orders[order_id] = MarketplaceOrder(
            order_id=order_id,
            company_id=company_id,
            employee_id=employee_id,
            item_id=item_id,
            points_spent=points_spent,
            status=status,
        )
        return order_id

    def get_order(self, order_id: int, *, company_id: int) -> Optional[MarketplaceOrder]:
        order = self.orders.get(int(order_id))
        return order if order and order.company_id == company_id else None

    def list_orders(self, company_id: int, *, status: Optional[OrderStatus] = None, limit: int = 200):
        return [o for o in self.orders.values() if o.company_id == company_id and (status is None or o.status == status)]

    def set_order_status(self, *, order_id, company_id, expected, status, reviewed_by=None, reviewed_by_name=None, rejection_reason=None) -> bool:
        order = self.get_order(order_id, company_id=company_id)
        if not order or order.status != expected:
            return False
        self.orders[order_id] = replace(
            order,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_by_name=reviewed_by_name,
            rejection_reason=rejection_reason,
        )
        return True


class InMemoryWallets:
    def __init__(self):
        self.points: dict[tuple[int, int], int] = {}
        self.history = []
        self.fail_next_writes = 0

    def get_points(self, employee_id: int, *, company_id: int) -> Optional[int]:
        return self.points.get((employee_id, company_id))

    def compare_and_set_points(self, *, employee_id: int, company_id: int, expected: int, new_value: int) -> bool:
        if self.fail_next_writes:
            self.fail_next_writes -= 1
            return False
        if self.points.get((employee_id, company_id)) != expected:
            return False
        self.points[(employee_id, company_id)] = new_value
        return True

    def add_history(self, event) -> int:
        self.history.append(event)
        return len(self.history)


class InMemoryAudit:
    def __init__(self):
        self.entries: list[AuditEntry] = []
        self.fail = False

    def append(self, entry: AuditEntry) -> int:
        if self.fail:
            raise RuntimeError("audit store unavailable")
        self.entries.append(entry)
        return len(self.entries)

    def list_for_company(self, company_id: int, *, limit: int = 200):
        return [e for e in self.entries if e.company_id == company_id][:limit]


class InMemoryDeleted:
    def __init__(self):
        self.rows: dict[int, DeletedRecord] = {}

    def insert(self, *, company_id, table_name, record_id, record_data, deleted_by) -> int:
        deleted_id = len(self.rows) + 1
        self.rows[deleted_id] = DeletedRecord(
            deleted_id=deleted_id,
            company_id=company_id,
            table_name=EntityKind(table_name),
            record_id=record_id,
            record_data=record_data,
            deleted_by=deleted_by,
        )
        return deleted_id

    def get(self, deleted_id: int, *, company_id: int) -> Optional[DeletedRecord]:
        row = self.rows.get(deleted_id)
        return row if row and row.company_id == company_id else None

    def mark_restored(self, deleted_id: int) -> bool:
        self.rows[deleted_id] = replace(self.rows[deleted_id], is_restored=True)
        return True

    def list_unrestored(self, company_id: int, *, limit: int = 200):
        return [r for r in self.rows.values() if r.company_id == company_id and not r.is_restored][:limit]


class InMemoryTableStore:
    """Row store over a fake repository's ``rows``; removed objects wait in ``graveyard``."""

    def __init__(self, rows: dict, id_attr: str):
        self._rows = rows
        self._id_attr = id_attr
        self.graveyard: dict = {}

    def get(self, record_id: str, *, company_id: int) -> Optional[dict]:
        row = self._rows.get(int(record_id))
        return snapshot(row) if row and row.company_id == company_id else None

    def insert(self, record_data: dict) -> None:
        record_id = int(record_data[self._id_attr])
        self._rows[record_id] = self.graveyard.pop(record_id)

    def delete(self, record_id: str, *, company_id: int) -> bool:
        row = self._rows.pop(int(record_id), None)
        if row is None:
            return False
        self.graveyard[int(record_id)] = row
        return True


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, notification) -> None:
        self.sent.append(notification)


class ScriptedSelfies:
    """Returns ``verdict`` for every selfie; None leaves it to the approver."""

    def __init__(self):
        self.verdict = None
        self.seen = []

    def verify(self, *, employee, selfie_url):
        self.seen.append((employee.employee_id, selfie_url))
        return self.verdict


class StaticHolidays:
    def __init__(self, days=()):
        self.days = list(days)

    def holidays_for(self, country_code, year):
        return [PublicHoliday(date=d, local_name="Holiday", name="Holiday", country_code=country_code or "") for d in self.days if d.year == year]


class World:
    """Every service wired to in-memory repositories."""

    def __init__(self):
        self.employees = InMemoryEmployees()
        self.policies = InMemoryPolicies()
        self.attendance = InMemoryAttendance()
        self.adjustments = InMemoryAdjustments()
        self.leaves = InMemoryLeaves()
        self.pending = InMemoryPending()
        self.market = InMemoryMarket()
        self.wallets = InMemoryWallets()
        self.audit = InMemoryAudit()
        self.deleted = InMemoryDeleted()
        self.notifier = RecordingNotifier()
        self.holidays = StaticHolidays()
        self.selfies = ScriptedSelfies()

        self.stores = {
            EntityKind.EMPLOYEES: InMemoryTableStore(self.employees.rows, "employee_id"),
            EntityKind.ATTENDANCE_LOGS: InMemoryTableStore(self.attendance.rows, "attendance_id"),
            EntityKind.LEAVE_REQUESTS: InMemoryTableStore(self.leaves.rows, "request_id"),
            EntityKind.SALARY_ADJUSTMENTS: InMemoryTableStore(self.adjustments.rows, "adjustment_id"),
        }
        self.audit_trail = AuditTrail(self.audit)
        self.registry = EntityRegistry(self.stores)
        self.soft_delete = SoftDeleteService(self.registry, self.deleted, self.audit_trail)

        self.policy_service = PolicyService(self.policies, self.audit_trail)
        self.employee_service = EmployeeService(self.employees, self.policies, self.audit_trail, self.soft_delete)
        self.payroll_service = PayrollService(self.adjustments, self.employees, self.attendance, self.audit_trail, self.soft_delete)
        self.leave_service = LeaveService(self.leaves, self.employees, self.audit_trail, self.soft_delete, self.notifier)
        self.attendance_service = AttendanceService(
            self.attendance,
            self.employees,
            self.policies,
            self.payroll_service,
            self.adjustments,
            self.audit_trail,
            self.soft_delete,
            holidays=self.holidays,
            leaves=self.leave_service,
        )
        self.verification_service = VerificationService(
            self.pending, self.employees, self.policies, self.attendance_service, self.notifier, self.selfies
        )
        self.marketplace_service = MarketplaceService(self.market, self.wallets)

        self.policies.save(CompanyPolicy(company_id=COMPANY_ID))

    def set_policy(self, **fields) -> CompanyPolicy:
        policy = CompanyPolicy(company_id=COMPANY_ID, **fields)
        self.policies.save(policy)
        return policy

    def add_employee(self, employee_id: int, **fields) -> Employee:
        fields.setdefault("full_name", f"Employee {employee_id}")
        employee = Employee(employee_id=employee_id, company_id=fields.pop("company_id", COMPANY_ID), **fields)
        self.employees.rows[employee_id] = employee
        return employee

    def employee(self, employee_id: int) -> Employee:
        return self.employees.rows[employee_id]


@pytest.fixture
def world() -> World:
    return World()
