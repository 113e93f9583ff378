from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role used for permission checks."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class SalaryType(str, Enum):
    MONTHLY = "monthly"
    DAILY = "daily"


class AttendanceStatus(str, Enum):
    """Stored status of an attendance log row."""

    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    ON_BREAK = "on_break"
    ABSENT = "absent"


class ClassificationTier(str, Enum):
    """Derived classification of a work day (never stored)."""

    ON_TIME = "on_time"
    LATE_TIER1 = "late_tier1"
    LATE_TIER2 = "late_tier2"
    LATE_TIER3 = "late_tier3"
    EARLY_DEPARTURE = "early_departure"
    ABSENT = "absent"


class LeaveType(str, Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    EMERGENCY = "emergency"
    REGULAR = "regular"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PendingStatus(str, Enum):
    """Verification queue status; approved/rejected/auto_rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    AUTO_REJECTED = "auto_rejected"


class OrderStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONSUMED = "consumed"


class ApproverType(str, Enum):
    DIRECT_MANAGER = "direct_manager"
    SPECIFIC_PERSON = "specific_person"


class AuditAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"


class EntityKind(str, Enum):
    """Tables that support soft delete and restore."""

    EMPLOYEES = "employees"
    ATTENDANCE_LOGS = "attendance_logs"
    LEAVE_REQUESTS = "leave_requests"
    SALARY_ADJUSTMENTS = "salary_adjustments"
    SALARY_RECORDS = "salary_records"


class AttendanceRequestType(str, Enum):
    """What a pending verification event will record once approved."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class LocationStatus(str, Enum):
    """Outcome of matching reported coordinates against company locations."""

    NO_LOCATION = "no_location"
    NOT_CONFIGURED = "not_configured"
    VERIFIED = "verified"
    OUTSIDE_RADIUS = "outside_radius"
