from __future__ import annotations

from ...core.enums import ClassificationTier
from ...policy.model import CompanyPolicy
from .base import AttendanceStrategy, StatusDecision


class EarlyDepartureStrategy(AttendanceStrategy):
    """Early departure on checkout.

    The tier only changes when the check-in was on time; a late tier is kept
    and the deduction is added on top.
    """

    def __init__(self, *, deductible: bool):
        self._deductible = deductible

    def decide_checkin(self, *, excess_late_minutes: int, policy: CompanyPolicy) -> StatusDecision:
        return StatusDecision(tier=ClassificationTier.ON_TIME)

    def decide_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, current: StatusDecision) -> StatusDecision:
        tier = ClassificationTier.EARLY_DEPARTURE if current.tier == ClassificationTier.ON_TIME else current.tier
        extra = policy.early_departure_deduction if self._deductible else 0
        note = f"Left {shortfall_minutes} minutes early"
        return StatusDecision(
            tier=tier,
            deduction_days=current.deduction_days + extra,
            note=f"{current.note}; {note}" if current.note else note,
        )
