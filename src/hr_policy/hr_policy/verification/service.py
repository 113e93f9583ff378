from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence, Union

from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.enums import ApproverType, AttendanceRequestType, LocationStatus, PendingStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository, PolicyRepository
from ..notifications.dispatcher import LoggingNotifier, Notification, Notifier, notify_safely
from ..policy.resolver import resolve
from ..policy.verification_mode import members
from .location import evaluate_location
from .model import Evidence, PendingAttendance, VerificationOutcome, VerificationPlan
from .repository import PendingAttendanceRepository
from .selector import evaluate, ip_allowed, select_requirements
from .selfie import ManualSelfieReview, SelfieVerifier

logger = logging.getLogger(__name__)


class VerificationService:
    """Gate in front of check-in/check-out.

    Events that pass are applied to attendance straight away; the rest wait in
    the pending queue for the resolved approver.
    """

    def __init__(
        self,
        pending: PendingAttendanceRepository,
        employees: EmployeeRepository,
        policies: PolicyRepository,
        attendance: Optional[AttendanceService] = None,
        notifier: Optional[Notifier] = None,
        selfies: Optional[SelfieVerifier] = None,
    ):
        self._pending = pending
        self._employees = employees
        self._policies = policies
        self._attendance = attendance
        self._notifier = notifier or LoggingNotifier()
        self._selfies = selfies or ManualSelfieReview()

    def _employee(self, employee_id: int, company_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id), company_id=int(company_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _get(self, pending_id: int, company_id: int) -> PendingAttendance:
        record = self._pending.get_by_id(int(pending_id), company_id=int(company_id))
        if not record:
            raise NotFoundError("Pending attendance not found")
        return record

    def verify_evidence(self, employee: Employee, plan: VerificationPlan, evidence: Evidence) -> Evidence:
        """Run the server-side checks and overwrite any ``*_verified`` flag the caller sent."""

        location_status, flags = evaluate_location(plan.locations, evidence.latitude, evidence.longitude)
        location_verified = None
        if location_status != LocationStatus.NO_LOCATION:
            location_verified = location_status == LocationStatus.VERIFIED

        selfie_verified = None
        if evidence.selfie_url:
            selfie_verified = self._selfies.verify(employee=employee, selfie_url=evidence.selfie_url)

        checked = replace(
            evidence,
            ip_verified=ip_allowed(evidence.ip_address, plan.allowed_wifi_ips) if evidence.ip_address else None,
            location_verified=location_verified,
            selfie_verified=selfie_verified,
            location_name=flags.get("location"),
            distance_m=flags.get("distance_m"),
        )
        logger.info(
            "attendance_evidence_checked",
            extra={"employee_id": employee.employee_id, "location_status": location_status.value, **flags},
        )
        return checked

    def submit(
        self,
        *,
        employee_id: int,
        company_id: int,
        request_type: Union[str, AttendanceRequestType],
        evidence: Optional[Evidence] = None,
        requested_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> tuple[PendingAttendance, VerificationOutcome]:
        try:
            request_type = AttendanceRequestType(request_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown request type: {request_type}") from exc
        evidence = evidence or Evidence()
        requested_time = requested_time or now_local()

        employee = self._employee(employee_id, company_id)
        policy = self._policies.get_for_company(employee.company_id)
        if not policy:
            raise NotFoundError("Company policy not found")

        plan = select_requirements(resolve(employee.policy_override(), policy))
        evidence = self.verify_evidence(employee, plan, evidence)
        outcome = evaluate(plan, evidence)
        approver_id = employee.manager_id if plan.approver_type == ApproverType.DIRECT_MANAGER else plan.approver_id

        pending_id = self._pending.create(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            request_type=request_type,
            requested_time=requested_time,
            status=outcome.status,
            evidence=evidence,
            approver_type=plan.approver_type,
            approver_id=approver_id,
            notes=notes,
        )
        record = PendingAttendance(
            pending_id=pending_id,
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            request_type=request_type,
            requested_time=requested_time,
            status=outcome.status,
            evidence=evidence,
            approver_type=plan.approver_type,
            approver_id=approver_id,
            notes=notes,
        )
        logger.info(
            "attendance_verification",
            extra={
                "pending_id": pending_id,
                "employee_id": employee.employee_id,
                "level": plan.level,
                "status": outcome.status.value,
                "failed": [r.name.lower() for r in members(outcome.failed)],
            },
        )

        if outcome.status == PendingStatus.APPROVED:
            self._apply(record)
        else:
            notify_safely(
                self._notifier,
                Notification(
                    kind="attendance_pending",
                    company_id=employee.company_id,
                    recipient_employee_id=approver_id,
                    message=f"{employee.full_name} has a {request_type.value.replace('_', ' ')} awaiting approval",
                    data={"pending_id": pending_id},
                ),
            )
        return record, outcome

    def list_pending(self, *, company_id: int) -> Sequence[PendingAttendance]:
        return self._pending.list_pending(int(company_id))

    def decide(
        self,
        *,
        pending_id: int,
        company_id: int,
        reviewer_id: int,
        reviewer_role: Role,
        approve: bool,
        reason: Optional[str] = None,
    ) -> PendingAttendance:
        """First decision wins; any later decision raises ConflictError."""

        record = self._get(pending_id, company_id)
        if record.status != PendingStatus.PENDING:
            raise ConflictError(f"Attendance request was already {record.status.value}")
        if Role(reviewer_role) != Role.ADMIN and record.approver_id != reviewer_id:
            raise AuthorizationError("Only the assigned approver or an admin can decide this request")

        status = PendingStatus.APPROVED if approve else PendingStatus.REJECTED
        reviewed_at = now_local()
        if not self._pending.decide(
            pending_id=record.pending_id,
            company_id=record.company_id,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
            rejection_reason=None if approve else reason,
        ):
            raise ConflictError("Attendance request was already decided")

        decided = replace(
            record,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
            rejection_reason=None if approve else reason,
        )
        if approve:
            self._apply(decided)
        notify_safely(
            self._notifier,
            Notification(
                kind="attendance_decision",
                company_id=record.company_id,
                recipient_employee_id=record.employee_id,
                message=f"Your {record.request_type.value.replace('_', ' ')} request was {status.value}",
                data={"pending_id": record.pending_id, "reason": reason},
            ),
        )
        return decided

    def expire(self, *, company_id: int, older_than: datetime) -> int:
        """Auto-reject requests still pending from before ``older_than``."""

        expired = 0
        for record in self._pending.list_pending(int(company_id), created_before=older_than):
            if self._pending.decide(
                pending_id=record.pending_id,
                company_id=record.company_id,
                status=PendingStatus.AUTO_REJECTED,
                reviewed_by=None,
                reviewed_at=now_local(),
                rejection_reason="Not reviewed in time",
            ):
                expired += 1
        if expired:
            logger.info("pending_attendance_expired", extra={"company_id": company_id, "count": expired})
        return expired

    def _apply(self, record: PendingAttendance) -> None:
        if not self._attendance:
            return
        if record.request_type == AttendanceRequestType.CHECK_IN:
            self._attendance.check_in(record.employee_id, record.company_id, now=record.requested_time)
        else:
            self._attendance.check_out(record.employee_id, record.company_id, now=record.requested_time)
