from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ApproverType, SalaryType
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_decimal,
    db_cursor,
    fetchall,
    fetchone,
    normalize_mysql_time,
    retry_once,
    split_csv,
)
from ..policy.model import CompanyLocation, CompanyPolicy
from ..policy.resolver import validate_policy
from .model import Employee
from .repository import EmployeeRepository, PolicyRepository

BALANCE_FIELDS = frozenset({"monthly_late_balance_minutes", "leave_balance", "emergency_leave_balance"})

_EMPLOYEE_COLUMNS = (
    "employee_id, company_id, full_name, email, salary_type, base_salary, is_freelancer, hourly_rate, "
    "work_start_time, work_end_time, break_duration_minutes, weekend_days, manager_id, "
    "monthly_late_balance_minutes, leave_balance, emergency_leave_balance, verification_level, "
    "approver_type, approver_id, level3_verification_mode, allowed_wifi_ips, is_active"
)


def _csv(values) -> Optional[str]:
    return ",".join(values) if values else None


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> Employee:
        hourly = r.get("hourly_rate")
        return Employee(
            employee_id=int(r["employee_id"]),
            company_id=int(r["company_id"]),
            full_name=r["full_name"],
            email=r.get("email"),
            salary_type=SalaryType(r.get("salary_type") or SalaryType.MONTHLY.value),
            base_salary=as_decimal(r.get("base_salary")),
            is_freelancer=bool(r.get("is_freelancer")),
            hourly_rate=as_decimal(hourly) if hourly is not None else None,
            work_start_time=normalize_mysql_time(r["work_start_time"]),
            work_end_time=normalize_mysql_time(r["work_end_time"]),
            break_duration_minutes=int(r.get("break_duration_minutes") or 0),
            weekend_days=split_csv(r.get("weekend_days")) or None,
            manager_id=r.get("manager_id"),
            monthly_late_balance_minutes=int(r.get("monthly_late_balance_minutes") or 0),
            leave_balance=int(r.get("leave_balance") or 0),
            emergency_leave_balance=int(r.get("emergency_leave_balance") or 0),
            verification_level=r.get("verification_level"),
            approver_type=ApproverType(r["approver_type"]) if r.get("approver_type") else None,
            approver_id=r.get("approver_id"),
            level3_verification_mode=r.get("level3_verification_mode"),
            allowed_wifi_ips=split_csv(r.get("allowed_wifi_ips")),
            is_active=bool(r.get("is_active", True)),
        )

    @retry_once
    def get_by_id(self, employee_id: int, *, company_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_EMPLOYEE_COLUMNS} FROM employees WHERE employee_id=%s AND company_id=%s",
                (int(employee_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def list_for_company(self, company_id: int, *, active_only: bool = True) -> Sequence[Employee]:
        sql = f"SELECT {_EMPLOYEE_COLUMNS} FROM employees WHERE company_id=%s"
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY full_name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (int(company_id),))
            return [self._to_model(r) for r in fetchall(cur)]

    def _values(self, e: Employee) -> tuple:
        return (
            e.full_name,
            e.email,
            e.salary_type.value,
            e.base_salary,
            1 if e.is_freelancer else 0,
            e.hourly_rate,
            e.work_start_time,
            e.work_end_time,
            int(e.break_duration_minutes),
            _csv(e.weekend_days),
            e.manager_id,
            int(e.monthly_late_balance_minutes),
            int(e.leave_balance),
            int(e.emergency_leave_balance),
            e.verification_level,
            e.approver_type.value if e.approver_type else None,
            e.approver_id,
            e.level3_verification_mode,
            _csv(e.allowed_wifi_ips),
            1 if e.is_active else 0,
        )

    def insert(self, employee: Employee) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(
                    company_id, full_name, email, salary_type, base_salary, is_freelancer, hourly_rate,
                    work_start_time, work_end_time, break_duration_minutes, weekend_days, manager_id,
                    monthly_late_balance_minutes, leave_balance, emergency_leave_balance, verification_level,
                    approver_type, approver_id, level3_verification_mode, allowed_wifi_ips, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(employee.company_id),) + self._values(employee),
            )
            return int(cur.lastrowid)

    def update(self, employee: Employee) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET full_name=%s, email=%s, salary_type=%s, base_salary=%s, is_freelancer=%s, hourly_rate=%s,
                    work_start_time=%s, work_end_time=%s, break_duration_minutes=%s, weekend_days=%s,
                    manager_id=%s, monthly_late_balance_minutes=%s, leave_balance=%s,
                    emergency_leave_balance=%s, verification_level=%s, approver_type=%s, approver_id=%s,
                    level3_verification_mode=%s, allowed_wifi_ips=%s, is_active=%s
                WHERE employee_id=%s AND company_id=%s
                """,
                self._values(employee) + (int(employee.employee_id), int(employee.company_id)),
            )
            return cur.rowcount > 0

    def compare_and_set_balance(
        self,
        *,
        employee_id: int,
        company_id: int,
        field: str,
        expected: int,
        new_value: int,
    ) -> bool:
        if field not in BALANCE_FIELDS:
            raise ValidationError(f"Unknown balance field: {field}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE employees SET {field}=%s WHERE employee_id=%s AND company_id=%s AND {field}=%s",
                (int(new_value), int(employee_id), int(company_id), int(expected)),
            )
            return cur.rowcount == 1

    def reset_late_balances(self, company_id: int, *, minutes: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET monthly_late_balance_minutes=%s WHERE company_id=%s AND is_active=1",
                (int(minutes), int(company_id)),
            )
            return int(cur.rowcount)


_POLICY_COLUMNS = (
    "company_id, daily_late_allowance_minutes, monthly_late_allowance_minutes, late_under_15_deduction, "
    "late_15_to_30_deduction, late_over_30_deduction, absence_without_permission_deduction, "
    "max_excused_absence_days, overtime_multiplier, early_departure_threshold_minutes, "
    "early_departure_deduction, early_departure_grace_minutes, auto_absent_after_hours, annual_leave_days, "
    "emergency_leave_days, attendance_verification_level, attendance_approver_type, attendance_approver_id, "
    "level3_verification_mode, allowed_wifi_ips, weekend_days, country_code"
)


class MySQLPolicyRepository(PolicyRepository):
    """Company policy columns live on the companies table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @retry_once
    def get_for_company(self, company_id: int) -> Optional[CompanyPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_POLICY_COLUMNS} FROM companies WHERE company_id=%s", (int(company_id),))
            r = fetchone(cur)
            if not r:
                return None
            cur.execute(
                """
                SELECT location_id, name, latitude, longitude, radius_meters
                FROM company_locations
                WHERE company_id=%s AND is_active=1
                ORDER BY location_id
                """,
                (int(company_id),),
            )
            locations = tuple(
                CompanyLocation(
                    name=loc["name"],
                    latitude=float(loc["latitude"]),
                    longitude=float(loc["longitude"]),
                    radius_meters=int(loc["radius_meters"]),
                    location_id=int(loc["location_id"]),
                )
                for loc in fetchall(cur)
            )
            daily = r.get("daily_late_allowance_minutes")
            policy = CompanyPolicy(
                company_id=int(r["company_id"]),
                daily_late_allowance_minutes=int(daily) if daily is not None else None,
                monthly_late_allowance_minutes=int(r["monthly_late_allowance_minutes"]),
                late_under_15_deduction=as_decimal(r.get("late_under_15_deduction")),
                late_15_to_30_deduction=as_decimal(r.get("late_15_to_30_deduction")),
                late_over_30_deduction=as_decimal(r.get("late_over_30_deduction")),
                absence_without_permission_deduction=as_decimal(r.get("absence_without_permission_deduction"), "1"),
                max_excused_absence_days=int(r.get("max_excused_absence_days") or 0),
                overtime_multiplier=as_decimal(r.get("overtime_multiplier"), "2"),
                early_departure_threshold_minutes=int(r["early_departure_threshold_minutes"]),
                early_departure_deduction=as_decimal(r.get("early_departure_deduction")),
                early_departure_grace_minutes=int(r["early_departure_grace_minutes"]),
                auto_absent_after_hours=int(r["auto_absent_after_hours"]),
                annual_leave_days=int(r["annual_leave_days"]),
                emergency_leave_days=int(r["emergency_leave_days"]),
                attendance_verification_level=int(r.get("attendance_verification_level") or 1),
                attendance_approver_type=ApproverType(r.get("attendance_approver_type") or ApproverType.DIRECT_MANAGER.value),
                attendance_approver_id=r.get("attendance_approver_id"),
                level3_verification_mode=r.get("level3_verification_mode"),
                allowed_wifi_ips=split_csv(r.get("allowed_wifi_ips")),
                weekend_days=split_csv(r.get("weekend_days")) or CompanyPolicy.weekend_days,
                country_code=r.get("country_code"),
                locations=locations,
            )
        return validate_policy(policy)

    def save(self, policy: CompanyPolicy) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE companies
                SET daily_late_allowance_minutes=%s, monthly_late_allowance_minutes=%s,
                    late_under_15_deduction=%s, late_15_to_30_deduction=%s, late_over_30_deduction=%s,
                    absence_without_permission_deduction=%s, max_excused_absence_days=%s,
                    overtime_multiplier=%s, early_departure_threshold_minutes=%s,
                    early_departure_deduction=%s, early_departure_grace_minutes=%s,
                    auto_absent_after_hours=%s, annual_leave_days=%s, emergency_leave_days=%s,
                    attendance_verification_level=%s, attendance_approver_type=%s,
                    attendance_approver_id=%s, level3_verification_mode=%s, allowed_wifi_ips=%s,
                    weekend_days=%s, country_code=%s
                WHERE company_id=%s
                """,
                (
                    policy.daily_late_allowance_minutes,
                    policy.monthly_late_allowance_minutes,
                    policy.late_under_15_deduction,
                    policy.late_15_to_30_deduction,
                    policy.late_over_30_deduction,
                    policy.absence_without_permission_deduction,
                    policy.max_excused_absence_days,
                    policy.overtime_multiplier,
                    policy.early_departure_threshold_minutes,
                    policy.early_departure_deduction,
                    policy.early_departure_grace_minutes,
                    policy.auto_absent_after_hours,
                    policy.annual_leave_days,
                    policy.emergency_leave_days,
                    policy.attendance_verification_level,
                    policy.attendance_approver_type.value,
                    policy.attendance_approver_id,
                    policy.level3_verification_mode,
                    _csv(policy.allowed_wifi_ips),
                    _csv(policy.weekend_days),
                    policy.country_code,
                    int(policy.company_id),
                ),
            )
            updated = cur.rowcount > 0
            # Sites are replaced as a set in the same transaction.
            cur.execute("DELETE FROM company_locations WHERE company_id=%s", (int(policy.company_id),))
            for location in policy.locations:
                cur.execute(
                    """
                    INSERT INTO company_locations(company_id, name, latitude, longitude, radius_meters)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(policy.company_id), location.name, location.latitude, location.longitude, int(location.radius_meters)),
                )
            return updated
