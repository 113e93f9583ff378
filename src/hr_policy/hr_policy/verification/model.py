from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import ApproverType, AttendanceRequestType, PendingStatus
from ..policy.model import CompanyLocation
from ..policy.verification_mode import VerificationRequirement


@dataclass(frozen=True)
class Evidence:
    """A check-in/out attempt: what the device reported plus the server's checks.

    The ``*_verified`` flags are only ever set by the server; ``None`` means
    the check was not performed.
    """

    ip_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    selfie_url: Optional[str] = None
    location_verified: Optional[bool] = None
    selfie_verified: Optional[bool] = None
    ip_verified: Optional[bool] = None
    vpn_detected: bool = False
    location_spoofing_suspected: bool = False
    location_name: Optional[str] = None
    distance_m: Optional[float] = None


@dataclass(frozen=True)
class PendingAttendance:
    pending_id: int
    employee_id: int
    company_id: int
    request_type: AttendanceRequestType
    requested_time: datetime
    status: PendingStatus
    evidence: Evidence = field(default_factory=Evidence)
    approver_type: Optional[ApproverType] = None
    approver_id: Optional[int] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class VerificationPlan:
    level: int
    requirements: VerificationRequirement
    approver_type: ApproverType
    approver_id: Optional[int]
    allowed_wifi_ips: tuple[str, ...] = ()
    locations: tuple[CompanyLocation, ...] = ()


@dataclass(frozen=True)
class VerificationOutcome:
    passed: bool
    failed: VerificationRequirement
    status: PendingStatus
