from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .assistant.catalog import build_tools
from .assistant.tools import ToolRegistry
from .attendance.classifier import AttendanceClassifier
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository, MySQLDeletedRecordRepository, MySQLTableStore
from .audit.registry import EntityRegistry
from .audit.service import SoftDeleteService
from .audit.trail import AuditTrail
from .core.enums import EntityKind
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository, MySQLPolicyRepository
from .employees.service import EmployeeService
from .holidays.client import DEFAULT_HOLIDAY_API_URL, NagerHolidayCalendar
from .leaves.mysql_leave_repository import MySQLLeaveRequestRepository
from .leaves.service import LeaveService
from .marketplace.mysql_marketplace_repository import MySQLMarketplaceRepository, MySQLWalletRepository
from .marketplace.service import MarketplaceService
from .notifications.dispatcher import LoggingNotifier, Notifier
from .payroll.mysql_adjustment_repository import MySQLSalaryAdjustmentRepository
from .payroll.service import PayrollService
from .policy.service import PolicyService
from .verification.mysql_pending_repository import MySQLPendingAttendanceRepository
from .verification.service import VerificationService

# Primary key column of every table that supports soft delete.
SOFT_DELETE_TABLES = {
    EntityKind.EMPLOYEES: "employee_id",
    EntityKind.ATTENDANCE_LOGS: "attendance_id",
    EntityKind.LEAVE_REQUESTS: "request_id",
    EntityKind.SALARY_ADJUSTMENTS: "adjustment_id",
    EntityKind.SALARY_RECORDS: "salary_record_id",
}


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    policies_repo: MySQLPolicyRepository
    attendance_repo: MySQLAttendanceRepository
    adjustments_repo: MySQLSalaryAdjustmentRepository
    leave_repo: MySQLLeaveRequestRepository
    pending_repo: MySQLPendingAttendanceRepository
    marketplace_repo: MySQLMarketplaceRepository
    wallet_repo: MySQLWalletRepository
    audit_repo: MySQLAuditRepository
    deleted_repo: MySQLDeletedRecordRepository

    audit_trail: AuditTrail
    entity_registry: EntityRegistry
    soft_delete_service: SoftDeleteService
    employee_service: EmployeeService
    policy_service: PolicyService
    payroll_service: PayrollService
    leave_service: LeaveService
    attendance_service: AttendanceService
    verification_service: VerificationService
    marketplace_service: MarketplaceService
    tool_registry: ToolRegistry


def build_container(
    *,
    db_config: dict,
    holiday_api_url: str = DEFAULT_HOLIDAY_API_URL,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))
    notifier = notifier or LoggingNotifier()

    employees_repo = MySQLEmployeeRepository(conn)
    policies_repo = MySQLPolicyRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    adjustments_repo = MySQLSalaryAdjustmentRepository(conn)
    leave_repo = MySQLLeaveRequestRepository(conn)
    pending_repo = MySQLPendingAttendanceRepository(conn)
    marketplace_repo = MySQLMarketplaceRepository(conn)
    wallet_repo = MySQLWalletRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    deleted_repo = MySQLDeletedRecordRepository(conn)

    audit_trail = AuditTrail(audit_repo)
    entity_registry = EntityRegistry(
        {kind: MySQLTableStore(conn, table=kind.value, id_column=id_column) for kind, id_column in SOFT_DELETE_TABLES.items()}
    )
    soft_delete_service = SoftDeleteService(entity_registry, deleted_repo, audit_trail)

    policy_service = PolicyService(policies_repo, audit_trail)
    employee_service = EmployeeService(employees_repo, policies_repo, audit_trail, soft_delete_service)
    payroll_service = PayrollService(adjustments_repo, employees_repo, attendance_repo, audit_trail, soft_delete_service)
    leave_service = LeaveService(leave_repo, employees_repo, audit_trail, soft_delete_service, notifier)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        policies_repo,
        payroll_service,
        adjustments_repo,
        audit_trail,
        soft_delete_service,
        classifier=AttendanceClassifier(AttendanceStrategyFactory()),
        holidays=NagerHolidayCalendar(holiday_api_url),
        leaves=leave_service,
    )
    verification_service = VerificationService(pending_repo, employees_repo, policies_repo, attendance_service, notifier)
    marketplace_service = MarketplaceService(marketplace_repo, wallet_repo)

    container = Container(
        conn=conn,
        employees_repo=employees_repo,
        policies_repo=policies_repo,
        attendance_repo=attendance_repo,
        adjustments_repo=adjustments_repo,
        leave_repo=leave_repo,
        pending_repo=pending_repo,
        marketplace_repo=marketplace_repo,
        wallet_repo=wallet_repo,
        audit_repo=audit_repo,
        deleted_repo=deleted_repo,
        audit_trail=audit_trail,
        entity_registry=entity_registry,
        soft_delete_service=soft_delete_service,
        policy_service=policy_service,
        employee_service=employee_service,
        payroll_service=payroll_service,
        leave_service=leave_service,
        attendance_service=attendance_service,
        verification_service=verification_service,
        marketplace_service=marketplace_service,
        tool_registry=ToolRegistry(),
    )
    return replace(container, tool_registry=build_tools(container))
