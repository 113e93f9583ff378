from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class SalaryAdjustment:
    """Bonus/deduction for one employee and one month.

    Never edited after creation; corrections are made with new rows.
    """

    adjustment_id: int
    employee_id: int
    company_id: int
    month: date
    bonus: Decimal = Decimal("0")
    deduction: Decimal = Decimal("0")
    adjustment_days: Optional[Decimal] = None
    description: Optional[str] = None
    added_by: Optional[int] = None
    added_by_name: Optional[str] = None
    attendance_log_id: Optional[int] = None
    is_auto_generated: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewSalaryAdjustment:
    employee_id: int
    company_id: int
    month: date
    bonus: Decimal = Decimal("0")
    deduction: Decimal = Decimal("0")
    adjustment_days: Optional[Decimal] = None
    description: Optional[str] = None
    added_by: Optional[int] = None
    added_by_name: Optional[str] = None
    attendance_log_id: Optional[int] = None
    is_auto_generated: bool = False


@dataclass(frozen=True)
class PayrollSummary:
    employee_id: int
    month: date
    is_freelancer: bool
    earned_or_base_salary: Decimal
    total_bonus: Decimal
    manual_bonus: Decimal
    total_deduction: Decimal
    net_salary: Decimal
    worked_minutes: int = 0
