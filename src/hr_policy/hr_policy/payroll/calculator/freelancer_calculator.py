from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from ...attendance.classifier import worked_minutes
from ...attendance.model import AttendanceLog
from ...employees.model import Employee
from ..model import PayrollSummary, SalaryAdjustment
from .base import PayrollCalculator, money


class FreelancerPayrollCalculator(PayrollCalculator):
    """Hourly rule: worked hours x rate + manual bonuses - deductions.

    Auto-generated bonus rows are reported in total_bonus but not paid again.
    """

    def summarize(self, *, employee: Employee, adjustments: Sequence[SalaryAdjustment], logs: Sequence[AttendanceLog], month) -> PayrollSummary:
        minutes = sum(
            worked_minutes(log.check_in_time, log.check_out_time, employee.break_duration_minutes) for log in logs
        )
        earned = Decimal(minutes) / Decimal(60) * Decimal(employee.hourly_rate or 0)
        total_bonus, manual_bonus, total_deduction = self.totals(adjustments)
        return PayrollSummary(
            employee_id=employee.employee_id,
            month=month,
            is_freelancer=True,
            earned_or_base_salary=money(earned),
            total_bonus=money(total_bonus),
            manual_bonus=money(manual_bonus),
            total_deduction=money(total_deduction),
            net_salary=money(earned + manual_bonus - total_deduction),
            worked_minutes=minutes,
        )
