from __future__ import annotations

from ...core import constants
from ...core.enums import ClassificationTier
from ...policy.model import CompanyPolicy
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in; tiered on the minutes left after the monthly allowance."""

    def decide_checkin(self, *, excess_late_minutes: int, policy: CompanyPolicy) -> StatusDecision:
        if excess_late_minutes > constants.LATE_TIER3_ABOVE_MINUTES:
            return StatusDecision(
                tier=ClassificationTier.LATE_TIER3,
                deduction_days=policy.late_over_30_deduction,
                note=f"Late more than 30 minutes ({excess_late_minutes} min beyond allowance)",
            )
        if excess_late_minutes >= constants.LATE_TIER2_FROM_MINUTES:
            return StatusDecision(
                tier=ClassificationTier.LATE_TIER2,
                deduction_days=policy.late_15_to_30_deduction,
                note=f"Late 15 to 30 minutes ({excess_late_minutes} min beyond allowance)",
            )
        return StatusDecision(
            tier=ClassificationTier.LATE_TIER1,
            deduction_days=policy.late_under_15_deduction,
            note=f"Late under 15 minutes ({excess_late_minutes} min beyond allowance)",
        )

    def decide_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, current: StatusDecision) -> StatusDecision:
        return current
