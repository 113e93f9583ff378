from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional

from ..core import constants
from ..core.enums import ApproverType, SalaryType
from ..policy.model import EmployeePolicyOverride


@dataclass(frozen=True)
class Employee:
    """Domain entity: employee with mutable running balances.

    Note: balances change only through the services' compare-and-swap updates.
    """

    employee_id: int
    company_id: int
    full_name: str
    email: Optional[str] = None
    salary_type: SalaryType = SalaryType.MONTHLY
    base_salary: Decimal = Decimal("0")
    is_freelancer: bool = False
    hourly_rate: Optional[Decimal] = None
    work_start_time: time = constants.DEFAULT_WORK_START
    work_end_time: time = constants.DEFAULT_WORK_END
    break_duration_minutes: int = constants.DEFAULT_BREAK_MINUTES
    weekend_days: Optional[tuple[str, ...]] = None
    manager_id: Optional[int] = None
    monthly_late_balance_minutes: int = constants.DEFAULT_MONTHLY_LATE_ALLOWANCE_MINUTES
    leave_balance: int = constants.DEFAULT_ANNUAL_LEAVE_DAYS
    emergency_leave_balance: int = constants.DEFAULT_EMERGENCY_LEAVE_DAYS
    verification_level: Optional[int] = None
    approver_type: Optional[ApproverType] = None
    approver_id: Optional[int] = None
    level3_verification_mode: Optional[str] = None
    allowed_wifi_ips: tuple[str, ...] = ()
    is_active: bool = True

    def policy_override(self) -> EmployeePolicyOverride:
        return EmployeePolicyOverride(
            verification_level=self.verification_level,
            approver_type=self.approver_type,
            approver_id=self.approver_id,
            level3_verification_mode=self.level3_verification_mode,
            allowed_wifi_ips=self.allowed_wifi_ips,
        )


@dataclass(frozen=True)
class NewEmployee:
    """Input for creating an employee; balances are filled from company policy."""

    full_name: str
    email: Optional[str] = None
    salary_type: SalaryType = SalaryType.MONTHLY
    base_salary: Decimal = Decimal("0")
    is_freelancer: bool = False
    hourly_rate: Optional[Decimal] = None
    work_start_time: time = constants.DEFAULT_WORK_START
    work_end_time: time = constants.DEFAULT_WORK_END
    break_duration_minutes: int = constants.DEFAULT_BREAK_MINUTES
    weekend_days: Optional[tuple[str, ...]] = None
    manager_id: Optional[int] = None
