from __future__ import annotations

from decimal import Decimal

from ..core import constants
from ..core.enums import SalaryType
from ..employees.model import Employee
from .calculator.base import money


def daily_rate(employee: Employee) -> Decimal:
    """Salary value of one day: monthly base / 30, or the daily base as-is."""

    base = Decimal(employee.base_salary or 0)
    if employee.salary_type == SalaryType.DAILY:
        return base
    return base / constants.PAYROLL_MONTH_DAYS


def deduction_amount(employee: Employee, days) -> Decimal:
    if employee.is_freelancer or not days:
        return Decimal("0.00")
    return money(daily_rate(employee) * Decimal(days))


def overtime_bonus(employee: Employee, minutes: int, multiplier) -> Decimal:
    """Overtime pay: an eighth of the daily rate per hour, times the policy multiplier."""

    if employee.is_freelancer or minutes <= 0:
        return Decimal("0.00")
    hourly = daily_rate(employee) / constants.WORKDAY_HOURS
    return money(hourly * Decimal(minutes) / 60 * Decimal(multiplier))
