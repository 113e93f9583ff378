from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..audit.model import DeletedRecord, snapshot
from ..audit.service import SoftDeleteService
from ..audit.trail import AuditTrail
from ..common.concurrency import compare_and_swap
from ..common.datetime_utils import now_local
from ..core.enums import AuditAction, EntityKind, LeaveStatus, LeaveType
from ..core.exceptions import ConflictError, InsufficientBalanceError, NotFoundError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..notifications.dispatcher import LoggingNotifier, Notification, Notifier, notify_safely
from .ledger import apply_delta, balance_field, inclusive_days, parse_leave_type, transition_delta
from .model import LeaveRequest, NewLeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveService:
    """Use cases for leave requests; every status move goes through the ledger rules."""

    def __init__(
        self,
        requests: LeaveRequestRepository,
        employees: EmployeeRepository,
        audit: AuditTrail,
        soft_delete: SoftDeleteService,
        notifier: Optional[Notifier] = None,
    ):
        self._requests = requests
        self._employees = employees
        self._audit = audit
        self._soft_delete = soft_delete
        self._notifier = notifier or LoggingNotifier()
        soft_delete.on_restore(EntityKind.LEAVE_REQUESTS, self._after_restore)

    def _employee(self, employee_id: int, company_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id), company_id=int(company_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _request(self, request_id: int, company_id: int) -> LeaveRequest:
        request = self._requests.get_by_id(int(request_id), company_id=int(company_id))
        if not request:
            raise NotFoundError("Leave request not found")
        return request

    def list_requests(self, *, company_id: int, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequest]:
        return self._requests.list_for_company(int(company_id), status=status)

    def list_for_employee(self, *, employee_id: int, company_id: int) -> Sequence[LeaveRequest]:
        return self._requests.list_for_employee(int(employee_id), company_id=int(company_id))

    def has_approved_leave_on(self, *, employee_id: int, company_id: int, day: date) -> bool:
        return self._requests.has_approved_on(employee_id=int(employee_id), company_id=int(company_id), day=day)

    def create_request(
        self,
        *,
        employee_id: int,
        company_id: int,
        leave_type: Union[str, LeaveType],
        start_date: date,
        end_date: date,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        leave_type = parse_leave_type(leave_type)
        days = inclusive_days(start_date, end_date)
        employee = self._employee(employee_id, company_id)

        field = balance_field(leave_type)
        available = int(getattr(employee, field))
        if days > available:
            raise InsufficientBalanceError(f"Requested {days} days but only {available} remain")

        new = NewLeaveRequest(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=(reason or "").strip() or None,
        )
        request_id = self._requests.create(new)
        request = LeaveRequest(request_id=request_id, **vars(new))

        self._audit.record(
            company_id=employee.company_id,
            table_name=EntityKind.LEAVE_REQUESTS.value,
            record_id=request_id,
            action=AuditAction.INSERT,
            new_data=snapshot(request),
            user_id=employee.employee_id,
        )
        if leave_type == LeaveType.EMERGENCY:
            notify_safely(
                self._notifier,
                Notification(
                    kind="emergency_leave",
                    company_id=employee.company_id,
                    recipient_employee_id=employee.manager_id,
                    message=f"{employee.full_name} requested {days} day(s) of emergency leave from {start_date.isoformat()}",
                    data={"request_id": request_id, "employee_id": employee.employee_id},
                ),
            )
        logger.info("leave_requested", extra={"request_id": request_id, "employee_id": employee.employee_id, "days": days})
        return request

    def approve(self, *, request_id: int, company_id: int, reviewer_id: Optional[int] = None) -> LeaveRequest:
        return self._move(request_id=request_id, company_id=company_id, status=LeaveStatus.APPROVED, reviewer_id=reviewer_id)

    def reject(self, *, request_id: int, company_id: int, reviewer_id: Optional[int] = None) -> LeaveRequest:
        return self._move(request_id=request_id, company_id=company_id, status=LeaveStatus.REJECTED, reviewer_id=reviewer_id)

    def _move(self, *, request_id: int, company_id: int, status: LeaveStatus, reviewer_id: Optional[int]) -> LeaveRequest:
        """Claim the new status with a conditional update, then move the balance.

        If the balance cannot be written the status is put back, so a request
        is never left approved without its debit.
        """
        request = self._request(request_id, company_id)
        if request.status == status:
            return request

        reviewed_at = now_local()
        if not self._requests.set_status(
            request_id=request.request_id,
            company_id=request.company_id,
            expected=request.status,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
        ):
            raise ConflictError("Leave request was changed concurrently, please retry")

        try:
            self._apply_balance(request, transition_delta(request.status, status, request.days), reviewer_id)
        except Exception:
            self._requests.set_status(
                request_id=request.request_id,
                company_id=request.company_id,
                expected=status,
                status=request.status,
                reviewed_by=request.reviewed_by,
                reviewed_at=request.reviewed_at,
            )
            logger.warning("leave_status_rolled_back", extra={"request_id": request.request_id, "status": request.status.value})
            raise

        updated = replace(request, status=status, reviewed_by=reviewer_id, reviewed_at=reviewed_at)
        self._audit.record(
            company_id=request.company_id,
            table_name=EntityKind.LEAVE_REQUESTS.value,
            record_id=request.request_id,
            action=AuditAction.UPDATE,
            old_data={"status": request.status.value},
            new_data={"status": status.value},
            user_id=reviewer_id,
        )

        notify_safely(
            self._notifier,
            Notification(
                kind="leave_status",
                company_id=request.company_id,
                recipient_employee_id=request.employee_id,
                message=f"Your {request.leave_type.value} leave ({request.start_date.isoformat()} - {request.end_date.isoformat()}) was {status.value}",
                data={"request_id": request.request_id, "status": status.value},
            ),
        )
        return updated

    def delete(self, *, request_id: int, company_id: int, deleted_by: Optional[int] = None) -> int:
        """Soft delete; an approved request gives its days back."""

        request = self._request(request_id, company_id)
        delta = transition_delta(request.status, None, request.days)
        self._apply_balance(request, delta, deleted_by)
        try:
            return self._soft_delete.delete(
                kind=EntityKind.LEAVE_REQUESTS,
                record_id=request.request_id,
                company_id=request.company_id,
                deleted_by=deleted_by,
            )
        except Exception:
            self._apply_balance(request, -delta, deleted_by)
            raise

    def _after_restore(self, record: DeletedRecord, restored_by: Optional[int]) -> None:
        # A restored approved request takes its days again.
        request = self._request(int(record.record_id), record.company_id)
        self._apply_balance(request, transition_delta(None, request.status, request.days), restored_by)

    def _apply_balance(self, request: LeaveRequest, delta: int, user_id: Optional[int]) -> None:
        if not delta:
            return
        field = balance_field(request.leave_type)

        def read() -> int:
            return int(getattr(self._employee(request.employee_id, request.company_id), field))

        old, new = compare_and_swap(
            read=read,
            compute=lambda balance: apply_delta(balance, delta),
            write=lambda expected, value: self._employees.compare_and_set_balance(
                employee_id=request.employee_id,
                company_id=request.company_id,
                field=field,
                expected=expected,
                new_value=value,
            ),
            what="Leave balance",
        )
        self._audit.record(
            company_id=request.company_id,
            table_name=EntityKind.EMPLOYEES.value,
            record_id=request.employee_id,
            action=AuditAction.UPDATE,
            old_data={field: old},
            new_data={field: new},
            description=f"Leave request {request.request_id}: {delta:+d} day(s)",
            user_id=user_id,
        )
        logger.info("leave_balance_changed", extra={"employee_id": request.employee_id, "field": field, "old": old, "new": new})
