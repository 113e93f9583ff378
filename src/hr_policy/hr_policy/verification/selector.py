from __future__ import annotations

import ipaddress
import logging
from typing import Iterable, Optional

from ..core.enums import PendingStatus
from ..policy.resolver import EffectivePolicy
from ..policy.verification_mode import VerificationRequirement, members
from .model import Evidence, VerificationOutcome, VerificationPlan

logger = logging.getLogger(__name__)


def ip_allowed(ip: Optional[str], allowed: Iterable[str]) -> bool:
    """Exact address or CIDR range match; malformed entries never match."""

    if not ip:
        return False
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return False

    for entry in allowed:
        entry = (entry or "").strip()
        if not entry:
            continue
        try:
            if "/" in entry:
                if address in ipaddress.ip_network(entry, strict=False):
                    return True
            elif address == ipaddress.ip_address(entry):
                return True
        except ValueError:
            logger.warning("invalid_allowed_ip", extra={"entry": entry})
    return False


def select_requirements(policy: EffectivePolicy) -> VerificationPlan:
    return VerificationPlan(
        level=policy.verification_level,
        requirements=policy.requirements if policy.verification_level == 3 else VerificationRequirement.NONE,
        approver_type=policy.approver_type,
        approver_id=policy.approver_id,
        allowed_wifi_ips=tuple(policy.allowed_wifi_ips),
        locations=tuple(policy.company.locations),
    )


def _requirement_met(requirement: VerificationRequirement, evidence: Evidence) -> bool:
    if requirement == VerificationRequirement.LOCATION:
        return bool(evidence.location_verified) and not evidence.location_spoofing_suspected
    if requirement == VerificationRequirement.SELFIE:
        return bool(evidence.selfie_verified)
    if requirement == VerificationRequirement.WIFI_IP:
        return bool(evidence.ip_verified) and not evidence.vpn_detected
    return False


def evaluate(plan: VerificationPlan, evidence: Evidence) -> VerificationOutcome:
    """Level 1 auto-accepts, level 2 always waits for the approver.

    Level 3 passes only when every required check passes; checks outside the
    mode are ignored.
    """

    if plan.level == 1:
        return VerificationOutcome(passed=True, failed=VerificationRequirement.NONE, status=PendingStatus.APPROVED)
    if plan.level == 2:
        return VerificationOutcome(passed=False, failed=VerificationRequirement.NONE, status=PendingStatus.PENDING)

    failed = VerificationRequirement.NONE
    for requirement in members(plan.requirements):
        if not _requirement_met(requirement, evidence):
            failed |= requirement

    passed = failed == VerificationRequirement.NONE and plan.requirements != VerificationRequirement.NONE
    return VerificationOutcome(
        passed=passed,
        failed=failed,
        status=PendingStatus.APPROVED if passed else PendingStatus.PENDING,
    )
