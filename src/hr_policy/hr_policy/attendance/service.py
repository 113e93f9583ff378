from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol

from ..audit.model import snapshot
from ..audit.service import SoftDeleteService
from ..audit.trail import AuditTrail
from ..common.concurrency import compare_and_swap
from ..common.datetime_utils import minutes_between, month_start, now_local
from ..core.enums import AttendanceStatus, AuditAction, EntityKind
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository, PolicyRepository
from ..holidays.client import HolidayCalendar
from ..payroll.model import NewSalaryAdjustment
from ..payroll.rates import deduction_amount, overtime_bonus
from ..payroll.repository import SalaryAdjustmentRepository
from ..payroll.service import PayrollService
from ..policy.model import CompanyPolicy
from .classifier import AttendanceClassifier, schedule_for, worked_minutes
from .model import AttendanceLog, CheckInDecision, CheckOutDecision, DayClassification
from .repository import AttendanceRepository
from .workdays import expected_work_days, is_absent

logger = logging.getLogger(__name__)

LATE_BALANCE_FIELD = "monthly_late_balance_minutes"
SYSTEM_NAME = "System"
LATE_DEDUCTION_NOTE = "Late deduction"
ABSENCE_DEDUCTION_NOTE = "Absence deduction"


class ApprovedLeaveLookup(Protocol):
    def has_approved_leave_on(self, *, employee_id: int, company_id: int, day: date) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class AttendanceSummary:
    employee_id: int
    start: date
    end: date
    days_present: int
    expected_work_days: int
    worked_minutes: int
    late_minutes: int


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        policies: PolicyRepository,
        payroll: PayrollService,
        adjustments: SalaryAdjustmentRepository,
        audit: AuditTrail,
        soft_delete: SoftDeleteService,
        *,
        classifier: Optional[AttendanceClassifier] = None,
        holidays: Optional[HolidayCalendar] = None,
        leaves: Optional[ApprovedLeaveLookup] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._policies = policies
        self._payroll = payroll
        self._adjustments = adjustments
        self._audit = audit
        self._soft_delete = soft_delete
        self._classifier = classifier or AttendanceClassifier()
        self._holidays = holidays
        self._leaves = leaves

    # ---- lookups ----
    def _load(self, employee_id: int, company_id: int) -> tuple[Employee, CompanyPolicy]:
        employee = self._employees.get_by_id(int(employee_id), company_id=int(company_id))
        if not employee:
            raise NotFoundError("Employee not found")
        if not employee.is_active:
            raise ValidationError("Employee is inactive")
        policy = self._policies.get_for_company(employee.company_id)
        if not policy:
            raise NotFoundError("Company policy not found")
        return employee, policy

    def _current_late_balance(self, employee: Employee) -> int:
        fresh = self._employees.get_by_id(employee.employee_id, company_id=employee.company_id)
        if not fresh:
            raise NotFoundError("Employee not found")
        return int(fresh.monthly_late_balance_minutes)

    def _set_late_balance(self, employee: Employee, compute) -> tuple[int, int]:
        return compare_and_swap(
            read=lambda: self._current_late_balance(employee),
            compute=compute,
            write=lambda expected, new: self._employees.compare_and_set_balance(
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                field=LATE_BALANCE_FIELD,
                expected=expected,
                new_value=new,
            ),
            what="Late allowance balance",
        )

    def _audit_balance(self, employee: Employee, old: int, new: int, reason: str, user_id: Optional[int] = None) -> None:
        if old == new:
            return
        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.EMPLOYEES.value,
            record_id=employee.employee_id,
            action=AuditAction.UPDATE,
            old_data={LATE_BALANCE_FIELD: old},
            new_data={LATE_BALANCE_FIELD: new},
            description=reason,
            user_id=user_id,
        )

    def _add_auto_deduction(self, *, employee: Employee, day: date, days: Decimal, reason: str, attendance_log_id: Optional[int]) -> Optional[int]:
        if not days or employee.is_freelancer:
            return None
        return self._payroll.add_adjustment(
            NewSalaryAdjustment(
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                month=month_start(day),
                deduction=deduction_amount(employee, days),
                adjustment_days=Decimal(days),
                description=reason,
                added_by_name=SYSTEM_NAME,
                attendance_log_id=attendance_log_id,
                is_auto_generated=True,
            )
        )

    def _add_overtime_bonus(self, *, employee: Employee, policy: CompanyPolicy, record: AttendanceLog, minutes: int) -> Optional[int]:
        amount = overtime_bonus(employee, minutes, policy.overtime_multiplier)
        if not amount:
            return None
        return self._payroll.add_adjustment(
            NewSalaryAdjustment(
                employee_id=employee.employee_id,
                company_id=employee.company_id,
                month=month_start(record.work_date),
                bonus=amount,
                description=f"Overtime - {record.work_date.isoformat()} - {minutes} min x{policy.overtime_multiplier}",
                added_by_name=SYSTEM_NAME,
                attendance_log_id=record.attendance_id,
                is_auto_generated=True,
            )
        )

    @staticmethod
    def _replaced_on_edit(adjustment) -> bool:
        description = adjustment.description or ""
        return description.startswith((LATE_DEDUCTION_NOTE, ABSENCE_DEDUCTION_NOTE))

    def _get_log(self, employee_id: int, work_date: date) -> AttendanceLog:
        record = self._attendance.get_for_employee_and_date(int(employee_id), work_date)
        if not record:
            raise ValidationError("No check-in recorded for this date")
        return record

    # ---- use cases ----
    def check_in(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> CheckInDecision:
        now = now or now_local()
        today = now.date()
        employee, policy = self._load(employee_id, company_id)

        existing = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if existing and existing.status == AttendanceStatus.ABSENT:
            raise ConflictError("Day already marked absent; a manager must record the check-in")
        if existing:
            raise ConflictError("Already checked in today")

        schedule = schedule_for(employee, policy)
        decided: dict[str, CheckInDecision] = {}

        def compute(balance: int) -> int:
            decided["value"] = self._classifier.classify_check_in(
                check_in=now,
                schedule=schedule,
                policy=policy,
                late_balance_minutes=balance,
                is_freelancer=employee.is_freelancer,
            )
            return decided["value"].remaining_allowance_minutes

        old_balance, new_balance = self._set_late_balance(employee, compute)
        decision = decided["value"]

        attendance_id = self._attendance.create_checkin(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            work_date=today,
            check_in_time=now,
            notes=decision.note,
        )
        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.ATTENDANCE_LOGS.value,
            record_id=attendance_id,
            action=AuditAction.INSERT,
            new_data={"employee_id": employee.employee_id, "date": today.isoformat(), "check_in_time": now.isoformat()},
        )
        self._audit_balance(employee, old_balance, new_balance, f"Late allowance used at check-in ({decision.late_minutes} min late)")
        self._add_auto_deduction(
            employee=employee,
            day=today,
            days=decision.deduction_days,
            reason=f"{LATE_DEDUCTION_NOTE} - {decision.note}",
            attendance_log_id=attendance_id,
        )

        logger.info(
            "check_in",
            extra={
                "employee_id": employee.employee_id,
                "attendance_id": attendance_id,
                "late_minutes": decision.late_minutes,
                "tier": decision.tier.value,
            },
        )
        return decision

    def check_out(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> CheckOutDecision:
        now = now or now_local()
        employee, policy = self._load(employee_id, company_id)
        record = self._get_log(employee.employee_id, now.date())
        if record.check_out_time is not None or record.status == AttendanceStatus.CHECKED_OUT:
            raise ConflictError("Already checked out")
        if record.check_in_time is None:
            raise ValidationError("No check-in recorded for this date")

        schedule = schedule_for(employee, policy)
        decided: dict[str, CheckOutDecision] = {}

        def compute(balance: int) -> int:
            decided["value"] = self._classifier.classify_check_out(
                check_in=record.check_in_time,
                check_out=now,
                work_date=record.work_date,
                schedule=schedule,
                policy=policy,
                late_balance_minutes=balance,
                is_freelancer=employee.is_freelancer,
            )
            return decided["value"].remaining_allowance_minutes

        old_balance, new_balance = self._set_late_balance(employee, compute)
        decision = decided["value"]

        notes = record.notes
        if decision.early_departure_minutes:
            notes = f"{notes}; {decision.note}" if notes else decision.note

        self._attendance.update(
            attendance_id=record.attendance_id,
            check_in_time=record.check_in_time,
            check_out_time=now,
            status=AttendanceStatus.CHECKED_OUT,
            break_started_at=None,
            notes=notes,
        )
        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.ATTENDANCE_LOGS.value,
            record_id=record.attendance_id,
            action=AuditAction.UPDATE,
            old_data={"status": record.status.value, "check_out_time": None},
            new_data={"status": AttendanceStatus.CHECKED_OUT.value, "check_out_time": now.isoformat()},
        )
        self._audit_balance(employee, old_balance, new_balance, f"Early departure charged to late allowance ({decision.early_departure_minutes} min)")
        self._add_auto_deduction(
            employee=employee,
            day=record.work_date,
            days=decision.deduction_days,
            reason=f"Early departure deduction - {decision.note}",
            attendance_log_id=record.attendance_id,
        )
        if decision.overtime_minutes:
            self._add_overtime_bonus(employee=employee, policy=policy, record=record, minutes=decision.overtime_minutes)
        return decision

    def start_break(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> None:
        now = now or now_local()
        self._load(employee_id, company_id)
        record = self._get_log(employee_id, now.date())
        if record.status != AttendanceStatus.CHECKED_IN:
            raise ConflictError(f"Cannot start a break while {record.status.value}")
        self._change_status(record, AttendanceStatus.ON_BREAK, break_started_at=now)

    def end_break(self, employee_id: int, company_id: int, *, now: Optional[datetime] = None) -> None:
        now = now or now_local()
        self._load(employee_id, company_id)
        record = self._get_log(employee_id, now.date())
        if record.status != AttendanceStatus.ON_BREAK:
            raise ConflictError("No break in progress")
        self._change_status(record, AttendanceStatus.CHECKED_IN, break_started_at=None)

    def _change_status(self, record: AttendanceLog, status: AttendanceStatus, *, break_started_at: Optional[datetime]) -> None:
        self._attendance.update(
            attendance_id=record.attendance_id,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            status=status,
            break_started_at=break_started_at,
            notes=record.notes,
        )
        self._audit.record(
            company_id=record.company_id,
            table_name=EntityKind.ATTENDANCE_LOGS.value,
            record_id=record.attendance_id,
            action=AuditAction.UPDATE,
            old_data={"status": record.status.value},
            new_data={"status": status.value},
        )

    def recalculate_check_in(
        self,
        *,
        attendance_id: int,
        company_id: int,
        new_check_in: datetime,
        editor_id: Optional[int] = None,
        editor_name: Optional[str] = None,
    ) -> CheckInDecision:
        """Manager edit of a check-in time.

        The allowance the old time consumed is given back (never above the
        monthly allowance), its auto-generated deductions are removed, and the
        new time is classified from scratch.
        """

        record = self._attendance.get_by_id(int(attendance_id), company_id=int(company_id))
        if not record:
            raise NotFoundError("Attendance log not found")
        if record.check_out_time and new_check_in > record.check_out_time:
            raise ValidationError("Check-in cannot be later than check-out")
        if new_check_in.date() != record.work_date:
            raise ValidationError("Check-in must stay on the same work date")

        employee, policy = self._load(record.employee_id, record.company_id)
        schedule = schedule_for(employee, policy)

        old_late = 0
        if record.check_in_time:
            scheduled_start = datetime.combine(record.work_date, schedule.start)
            old_late = max(0, minutes_between(scheduled_start, record.check_in_time))

        for adj in self._adjustments.find_auto_for_attendance(attendance_log_id=record.attendance_id, company_id=record.company_id):
            if not self._replaced_on_edit(adj):
                continue
            self._soft_delete.delete(
                kind=EntityKind.SALARY_ADJUSTMENTS,
                record_id=adj.adjustment_id,
                company_id=record.company_id,
                deleted_by=editor_id,
                description="Auto deduction replaced after check-in edit",
            )

        decided: dict[str, CheckInDecision] = {}
        allowance = policy.monthly_late_allowance_minutes

        def compute(balance: int) -> int:
            restored = min(balance + old_late, max(allowance, balance)) if old_late else balance
            decided["value"] = self._classifier.classify_check_in(
                check_in=new_check_in,
                schedule=schedule,
                policy=policy,
                late_balance_minutes=restored,
                is_freelancer=employee.is_freelancer,
            )
            return decided["value"].remaining_allowance_minutes

        old_balance, new_balance = self._set_late_balance(employee, compute)
        decision = decided["value"]

        status = AttendanceStatus.CHECKED_IN if record.status == AttendanceStatus.ABSENT else record.status
        editor = editor_name or "manager"
        notes = f"Edited by {editor} - late {decision.late_minutes} min" if decision.late_minutes else f"Edited by {editor} - on time"
        self._attendance.update(
            attendance_id=record.attendance_id,
            check_in_time=new_check_in,
            check_out_time=record.check_out_time,
            status=status,
            break_started_at=record.break_started_at,
            notes=notes,
        )
        self._audit.record(
            company_id=record.company_id,
            table_name=EntityKind.ATTENDANCE_LOGS.value,
            record_id=record.attendance_id,
            action=AuditAction.UPDATE,
            old_data={"check_in_time": record.check_in_time.isoformat() if record.check_in_time else None},
            new_data={"check_in_time": new_check_in.isoformat()},
            user_id=editor_id,
        )
        self._audit_balance(employee, old_balance, new_balance, "Late allowance recalculated after check-in edit", editor_id)
        self._add_auto_deduction(
            employee=employee,
            day=record.work_date,
            days=decision.deduction_days,
            reason=f"{LATE_DEDUCTION_NOTE} - {decision.note} - edited by {editor}",
            attendance_log_id=record.attendance_id,
        )
        logger.info(
            "check_in_recalculated",
            extra={"attendance_id": record.attendance_id, "old_late": old_late, "new_late": decision.late_minutes},
        )
        return decision

    def mark_absent(self, employee_id: int, company_id: int, *, work_date: date, now: Optional[datetime] = None) -> Optional[DayClassification]:
        """Apply the absence deduction when the day qualifies; None when it does not.

        The day is recorded as an ABSENT attendance row, so a second run for the
        same date finds it and does nothing.
        """

        now = now or now_local()
        employee, policy = self._load(employee_id, company_id)
        if employee.is_freelancer:
            return None

        existing = self._attendance.get_for_employee_and_date(employee.employee_id, work_date)
        if existing and existing.status == AttendanceStatus.ABSENT:
            return None

        schedule = schedule_for(employee, policy)
        holidays = self._holiday_dates(policy, work_date.year)
        absent = is_absent(
            now=now,
            work_date=work_date,
            scheduled_start=datetime.combine(work_date, schedule.start),
            has_check_in=existing is not None and existing.check_in_time is not None,
            auto_absent_after_hours=policy.auto_absent_after_hours,
            weekend_days=schedule.weekend_days,
            holidays=holidays,
        )
        if not absent:
            return None
        if self._leaves and self._leaves.has_approved_leave_on(employee_id=employee.employee_id, company_id=employee.company_id, day=work_date):
            return None

        attendance_id = self._attendance.create_absence(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            work_date=work_date,
            notes="Absent without permission",
        )
        if attendance_id is None:
            # Another run or a late check-in wrote the day first.
            return None
        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.ATTENDANCE_LOGS.value,
            record_id=attendance_id,
            action=AuditAction.INSERT,
            new_data={"employee_id": employee.employee_id, "date": work_date.isoformat(), "status": AttendanceStatus.ABSENT.value},
        )

        classification = self._classifier.classify_absence(policy=policy, late_balance_minutes=employee.monthly_late_balance_minutes)
        self._add_auto_deduction(
            employee=employee,
            day=work_date,
            days=classification.deduction_days,
            reason=f"{ABSENCE_DEDUCTION_NOTE} - {work_date.isoformat()}",
            attendance_log_id=attendance_id,
        )
        logger.info("marked_absent", extra={"employee_id": employee.employee_id, "attendance_id": attendance_id, "date": work_date.isoformat()})
        return classification

    def _holiday_dates(self, policy: CompanyPolicy, year: int) -> frozenset[date]:
        if not self._holidays:
            return frozenset()
        return frozenset(h.date for h in self._holidays.holidays_for(policy.country_code, year))

    def summary(self, *, employee_id: int, company_id: int, start: date, end: date) -> AttendanceSummary:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        employee, policy = self._load(employee_id, company_id)
        schedule = schedule_for(employee, policy)
        logs = self._attendance.list_for_employee_between(
            employee_id=employee.employee_id, company_id=employee.company_id, start=start, end=end
        )

        holidays: set[date] = set()
        for year in range(start.year, end.year + 1):
            holidays |= self._holiday_dates(policy, year)

        late = 0
        worked = 0
        present = 0
        for log in logs:
            if not log.check_in_time:
                continue
            present += 1
            worked += worked_minutes(log.check_in_time, log.check_out_time, schedule.break_minutes)
            if not employee.is_freelancer:
                late += max(0, minutes_between(datetime.combine(log.work_date, schedule.start), log.check_in_time))

        return AttendanceSummary(
            employee_id=employee.employee_id,
            start=start,
            end=end,
            days_present=present,
            expected_work_days=expected_work_days(start, end, schedule.weekend_days, holidays),
            worked_minutes=worked,
            late_minutes=late,
        )

    def today_for_company(self, *, company_id: int, today: Optional[date] = None) -> list[dict]:
        today = today or now_local().date()
        return [snapshot(log) for log in self._attendance.list_for_company_date(company_id=int(company_id), work_date=today)]
