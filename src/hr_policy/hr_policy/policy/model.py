from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core import constants
from ..core.enums import ApproverType


@dataclass(frozen=True)
class CompanyLocation:
    """A site where attendance may be recorded: a centre point and a radius."""

    name: str
    latitude: float
    longitude: float
    radius_meters: int = constants.DEFAULT_LOCATION_RADIUS_METERS
    location_id: Optional[int] = None


@dataclass(frozen=True)
class CompanyPolicy:
    """Per-company tunables. Pure data: every rule reads it, none mutates it."""

    company_id: int
    daily_late_allowance_minutes: Optional[int] = None
    monthly_late_allowance_minutes: int = constants.DEFAULT_MONTHLY_LATE_ALLOWANCE_MINUTES
    # Fractional days deducted per late tier.
    late_under_15_deduction: Decimal = Decimal("0")
    late_15_to_30_deduction: Decimal = Decimal("0")
    late_over_30_deduction: Decimal = Decimal("0")
    absence_without_permission_deduction: Decimal = Decimal("1")
    max_excused_absence_days: int = 0
    overtime_multiplier: Decimal = Decimal(constants.DEFAULT_OVERTIME_MULTIPLIER)
    early_departure_threshold_minutes: int = constants.DEFAULT_EARLY_DEPARTURE_THRESHOLD_MINUTES
    early_departure_deduction: Decimal = Decimal(str(constants.DEFAULT_EARLY_DEPARTURE_DEDUCTION_DAYS))
    early_departure_grace_minutes: int = constants.DEFAULT_EARLY_DEPARTURE_GRACE_MINUTES
    auto_absent_after_hours: int = constants.DEFAULT_AUTO_ABSENT_AFTER_HOURS
    annual_leave_days: int = constants.DEFAULT_ANNUAL_LEAVE_DAYS
    emergency_leave_days: int = constants.DEFAULT_EMERGENCY_LEAVE_DAYS
    attendance_verification_level: int = 1
    attendance_approver_type: ApproverType = ApproverType.DIRECT_MANAGER
    attendance_approver_id: Optional[int] = None
    level3_verification_mode: Optional[str] = None
    allowed_wifi_ips: tuple[str, ...] = ()
    locations: tuple[CompanyLocation, ...] = ()
    weekend_days: tuple[str, ...] = constants.DEFAULT_WEEKEND_DAYS
    country_code: Optional[str] = None


@dataclass(frozen=True)
class EmployeePolicyOverride:
    """Nullable per-employee verification settings (None = inherit company)."""

    verification_level: Optional[int] = None
    approver_type: Optional[ApproverType] = None
    approver_id: Optional[int] = None
    level3_verification_mode: Optional[str] = None
    allowed_wifi_ips: tuple[str, ...] = field(default_factory=tuple)
