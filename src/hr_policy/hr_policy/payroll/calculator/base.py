from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ...attendance.model import AttendanceLog
from ...employees.model import Employee
from ..model import PayrollSummary, SalaryAdjustment

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def summarize(
        self,
        *,
        employee: Employee,
        adjustments: Sequence[SalaryAdjustment],
        logs: Sequence[AttendanceLog],
        month,
    ) -> PayrollSummary:
        raise NotImplementedError

    @staticmethod
    def totals(adjustments: Sequence[SalaryAdjustment]) -> tuple[Decimal, Decimal, Decimal]:
        """(total bonus, manual bonus, total deduction) over the month's rows."""

        total_bonus = sum((Decimal(a.bonus or 0) for a in adjustments), Decimal("0"))
        manual_bonus = sum((Decimal(a.bonus or 0) for a in adjustments if not a.is_auto_generated), Decimal("0"))
        total_deduction = sum((Decimal(a.deduction or 0) for a in adjustments), Decimal("0"))
        return total_bonus, manual_bonus, total_deduction
