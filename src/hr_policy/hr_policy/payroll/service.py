from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..audit.model import snapshot
from ..audit.service import SoftDeleteService
from ..audit.trail import AuditTrail
from ..common.datetime_utils import month_end, month_start
from ..core.enums import AuditAction, EntityKind
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator.base import PayrollCalculator, money
from .calculator.freelancer_calculator import FreelancerPayrollCalculator
from .calculator.salaried_calculator import SalariedPayrollCalculator
from .model import NewSalaryAdjustment, PayrollSummary, SalaryAdjustment
from .repository import SalaryAdjustmentRepository

logger = logging.getLogger(__name__)


class PayrollService:
    def __init__(
        self,
        adjustments: SalaryAdjustmentRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        audit: AuditTrail,
        soft_delete: SoftDeleteService,
        *,
        salaried: Optional[PayrollCalculator] = None,
        freelancer: Optional[PayrollCalculator] = None,
    ):
        self._adjustments = adjustments
        self._employees = employees
        self._attendance = attendance
        self._audit = audit
        self._soft_delete = soft_delete
        self._salaried = salaried or SalariedPayrollCalculator()
        self._freelancer = freelancer or FreelancerPayrollCalculator()

    def _employee(self, employee_id: int, company_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id), company_id=int(company_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def add_adjustment(self, adjustment: NewSalaryAdjustment) -> int:
        """Record a bonus and/or deduction row (month is normalised to its first day)."""

        bonus = Decimal(adjustment.bonus or 0)
        deduction = Decimal(adjustment.deduction or 0)
        if bonus < 0 or deduction < 0:
            raise ValidationError("Bonus and deduction must be >= 0")
        if bonus == 0 and deduction == 0:
            raise ValidationError("Enter a bonus or a deduction")
        self._employee(adjustment.employee_id, adjustment.company_id)

        row = replace(adjustment, month=month_start(adjustment.month), bonus=money(bonus), deduction=money(deduction))
        adjustment_id = self._adjustments.create(row)

        self._audit.record(
            company_id=row.company_id,
            table_name=EntityKind.SALARY_ADJUSTMENTS.value,
            record_id=adjustment_id,
            action=AuditAction.INSERT,
            new_data=snapshot(row),
            description=row.description,
            user_id=row.added_by,
        )
        logger.info(
            "salary_adjustment_added",
            extra={"employee_id": row.employee_id, "adjustment_id": adjustment_id, "auto": row.is_auto_generated},
        )
        return adjustment_id

    def delete_adjustment(self, *, adjustment_id: int, company_id: int, deleted_by: Optional[int] = None) -> int:
        return self._soft_delete.delete(
            kind=EntityKind.SALARY_ADJUSTMENTS,
            record_id=adjustment_id,
            company_id=company_id,
            deleted_by=deleted_by,
        )

    def list_adjustments(self, *, company_id: int, month: date, employee_id: Optional[int] = None) -> Sequence[SalaryAdjustment]:
        return self._adjustments.list_for_month(company_id=int(company_id), month=month_start(month), employee_id=employee_id)

    def summarize(self, *, employee: Employee, adjustments: Sequence[SalaryAdjustment], logs, month: date) -> PayrollSummary:
        """Pure aggregation; re-running over the same rows gives the same totals."""

        calculator = self._freelancer if employee.is_freelancer else self._salaried
        return calculator.summarize(employee=employee, adjustments=adjustments, logs=logs, month=month_start(month))

    def employee_month_summary(self, *, employee_id: int, company_id: int, month: date) -> PayrollSummary:
        employee = self._employee(employee_id, company_id)
        key = month_start(month)
        adjustments = self._adjustments.list_for_month(company_id=employee.company_id, month=key, employee_id=employee.employee_id)
        logs = []
        if employee.is_freelancer:
            logs = self._attendance.list_for_employee_between(
                employee_id=employee.employee_id, company_id=employee.company_id, start=key, end=month_end(key)
            )
        return self.summarize(employee=employee, adjustments=adjustments, logs=logs, month=key)

    def company_month_report(self, *, company_id: int, month: date) -> list[PayrollSummary]:
        key = month_start(month)
        by_employee: dict[int, list[SalaryAdjustment]] = {}
        for adj in self._adjustments.list_for_month(company_id=int(company_id), month=key):
            by_employee.setdefault(adj.employee_id, []).append(adj)

        summaries = []
        for employee in self._employees.list_for_company(int(company_id)):
            logs = []
            if employee.is_freelancer:
                logs = self._attendance.list_for_employee_between(
                    employee_id=employee.employee_id, company_id=employee.company_id, start=key, end=month_end(key)
                )
            summaries.append(
                self.summarize(employee=employee, adjustments=by_employee.get(employee.employee_id, []), logs=logs, month=key)
            )

        summaries.sort(key=lambda s: s.net_salary, reverse=True)
        return summaries
