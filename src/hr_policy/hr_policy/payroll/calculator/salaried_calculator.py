from __future__ import annotations

from typing import Sequence

from ...attendance.model import AttendanceLog
from ...employees.model import Employee
from ..model import PayrollSummary, SalaryAdjustment
from .base import PayrollCalculator, money


class SalariedPayrollCalculator(PayrollCalculator):
    """Salaried rule: base + all bonuses - all deductions."""

    def summarize(self, *, employee: Employee, adjustments: Sequence[SalaryAdjustment], logs: Sequence[AttendanceLog], month) -> PayrollSummary:
        total_bonus, manual_bonus, total_deduction = self.totals(adjustments)
        base = employee.base_salary
        return PayrollSummary(
            employee_id=employee.employee_id,
            month=month,
            is_freelancer=False,
            earned_or_base_salary=money(base),
            total_bonus=money(total_bonus),
            manual_bonus=money(manual_bonus),
            total_deduction=money(total_deduction),
            net_salary=money(base + total_bonus - total_deduction),
        )
