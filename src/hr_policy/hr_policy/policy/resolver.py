from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core import constants
from ..core.enums import ApproverType
from ..core.exceptions import ValidationError
from .model import CompanyPolicy, EmployeePolicyOverride
from .verification_mode import VerificationRequirement, parse_mode

VALID_LEVELS = (1, 2, 3)


@dataclass(frozen=True)
class EffectivePolicy:
    """Company policy with the employee's verification overrides applied."""

    company: CompanyPolicy
    verification_level: int
    approver_type: ApproverType
    approver_id: Optional[int]
    requirements: VerificationRequirement
    allowed_wifi_ips: tuple[str, ...]


def validate_policy(policy: CompanyPolicy) -> CompanyPolicy:
    minute_fields = (
        "monthly_late_allowance_minutes",
        "early_departure_threshold_minutes",
        "early_departure_grace_minutes",
        "auto_absent_after_hours",
        "max_excused_absence_days",
        "annual_leave_days",
        "emergency_leave_days",
    )
    for name in minute_fields:
        if getattr(policy, name) < 0:
            raise ValidationError(f"{name} must be >= 0")
    if policy.daily_late_allowance_minutes is not None and policy.daily_late_allowance_minutes < 0:
        raise ValidationError("daily_late_allowance_minutes must be >= 0")

    for name in (
        "late_under_15_deduction",
        "late_15_to_30_deduction",
        "late_over_30_deduction",
        "absence_without_permission_deduction",
        "early_departure_deduction",
    ):
        if getattr(policy, name) < 0:
            raise ValidationError(f"{name} must be >= 0")

    if policy.overtime_multiplier < 1:
        raise ValidationError("overtime_multiplier must be >= 1")
    if policy.emergency_leave_days > policy.annual_leave_days:
        raise ValidationError("emergency_leave_days cannot exceed annual_leave_days")

    if policy.attendance_verification_level not in VALID_LEVELS:
        raise ValidationError("attendance_verification_level must be 1, 2 or 3")
    if policy.attendance_verification_level == 3:
        if not policy.level3_verification_mode:
            raise ValidationError("Level 3 verification needs a verification mode")
        parse_mode(policy.level3_verification_mode)

    if len(policy.locations) > constants.MAX_COMPANY_LOCATIONS:
        raise ValidationError(f"At most {constants.MAX_COMPANY_LOCATIONS} locations are allowed")
    for location in policy.locations:
        if not (location.name or "").strip():
            raise ValidationError("Location name is required")
        if not -90 <= location.latitude <= 90 or not -180 <= location.longitude <= 180:
            raise ValidationError(f"Location {location.name} has invalid coordinates")
        if location.radius_meters <= 0:
            raise ValidationError(f"Location {location.name} needs a positive radius")
    return policy


def resolve(override: Optional[EmployeePolicyOverride], company: CompanyPolicy) -> EffectivePolicy:
    """Two-level lookup: a non-null employee setting wins over the company default."""

    override = override or EmployeePolicyOverride()

    level = override.verification_level if override.verification_level is not None else company.attendance_verification_level
    if level not in VALID_LEVELS:
        raise ValidationError("Verification level must be 1, 2 or 3")

    requirements = VerificationRequirement.NONE
    if level == 3:
        mode = override.level3_verification_mode or company.level3_verification_mode
        if not mode:
            raise ValidationError("Level 3 verification needs a verification mode")
        requirements = parse_mode(mode)

    return EffectivePolicy(
        company=company,
        verification_level=level,
        approver_type=override.approver_type or company.attendance_approver_type,
        approver_id=override.approver_id if override.approver_id is not None else company.attendance_approver_id,
        requirements=requirements,
        allowed_wifi_ips=tuple(override.allowed_wifi_ips) or tuple(company.allowed_wifi_ips),
    )
