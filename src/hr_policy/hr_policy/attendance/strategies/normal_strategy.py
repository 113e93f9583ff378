from __future__ import annotations

from ...core.enums import ClassificationTier
from ...policy.model import CompanyPolicy
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in (or lateness covered by the allowance), normal check-out."""

    def decide_checkin(self, *, excess_late_minutes: int, policy: CompanyPolicy) -> StatusDecision:
        return StatusDecision(tier=ClassificationTier.ON_TIME)

    def decide_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, current: StatusDecision) -> StatusDecision:
        return current
