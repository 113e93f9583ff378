from __future__ import annotations

from ...core.enums import ClassificationTier
from ...policy.model import CompanyPolicy
from .base import AttendanceStrategy, StatusDecision


class AbsentStrategy(AttendanceStrategy):
    """No check-in past the auto-absent threshold on an expected work day."""

    def decide_checkin(self, *, excess_late_minutes: int, policy: CompanyPolicy) -> StatusDecision:
        return StatusDecision(
            tier=ClassificationTier.ABSENT,
            deduction_days=policy.absence_without_permission_deduction,
            note="Absent without permission",
        )

    def decide_checkout(self, *, shortfall_minutes: int, policy: CompanyPolicy, current: StatusDecision) -> StatusDecision:
        return current
