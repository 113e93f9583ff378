from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ApproverType, AttendanceRequestType, PendingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, retry_once
from .model import Evidence, PendingAttendance
from .repository import PendingAttendanceRepository

_COLUMNS = (
    "pending_id, employee_id, company_id, request_type, requested_time, status, ip_address, latitude, longitude, "
    "selfie_url, location_verified, selfie_verified, ip_verified, vpn_detected, location_spoofing_suspected, "
    "location_name, distance_m, "
    "approver_type, approver_id, notes, rejection_reason, reviewed_by, reviewed_at, created_at"
)


def _flag(value) -> Optional[bool]:
    return None if value is None else bool(value)


class MySQLPendingAttendanceRepository(PendingAttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> PendingAttendance:
        return PendingAttendance(
            pending_id=int(r["pending_id"]),
            employee_id=int(r["employee_id"]),
            company_id=int(r["company_id"]),
            request_type=AttendanceRequestType(r["request_type"]),
            requested_time=r["requested_time"],
            status=PendingStatus(r["status"]),
            evidence=Evidence(
                ip_address=r.get("ip_address"),
                latitude=float(r["latitude"]) if r.get("latitude") is not None else None,
                longitude=float(r["longitude"]) if r.get("longitude") is not None else None,
                selfie_url=r.get("selfie_url"),
                location_verified=_flag(r.get("location_verified")),
                selfie_verified=_flag(r.get("selfie_verified")),
                ip_verified=_flag(r.get("ip_verified")),
                vpn_detected=bool(r.get("vpn_detected")),
                location_spoofing_suspected=bool(r.get("location_spoofing_suspected")),
                location_name=r.get("location_name"),
                distance_m=float(r["distance_m"]) if r.get("distance_m") is not None else None,
            ),
            approver_type=ApproverType(r["approver_type"]) if r.get("approver_type") else None,
            approver_id=r.get("approver_id"),
            notes=r.get("notes"),
            rejection_reason=r.get("rejection_reason"),
            reviewed_by=r.get("reviewed_by"),
            reviewed_at=r.get("reviewed_at"),
            created_at=r.get("created_at"),
        )

    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        request_type: AttendanceRequestType,
        requested_time: datetime,
        status: PendingStatus,
        evidence: Evidence,
        approver_type: Optional[ApproverType],
        approver_id: Optional[int],
        notes: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO pending_attendance(
                    employee_id, company_id, request_type, requested_time, status, ip_address, latitude, longitude,
                    selfie_url, location_verified, selfie_verified, ip_verified, vpn_detected,
                    location_spoofing_suspected, location_name, distance_m, approver_type, approver_id, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(company_id),
                    request_type.value,
                    requested_time,
                    status.value,
                    evidence.ip_address,
                    evidence.latitude,
                    evidence.longitude,
                    evidence.selfie_url,
                    evidence.location_verified,
                    evidence.selfie_verified,
                    evidence.ip_verified,
                    1 if evidence.vpn_detected else 0,
                    1 if evidence.location_spoofing_suspected else 0,
                    evidence.location_name,
                    evidence.distance_m,
                    approver_type.value if approver_type else None,
                    approver_id,
                    notes,
                ),
            )
            return int(cur.lastrowid)

    @retry_once
    def get_by_id(self, pending_id: int, *, company_id: int) -> Optional[PendingAttendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM pending_attendance WHERE pending_id=%s AND company_id=%s",
                (int(pending_id), int(company_id)),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    @retry_once
    def list_pending(self, company_id: int, *, created_before: Optional[datetime] = None) -> Sequence[PendingAttendance]:
        sql = f"SELECT {_COLUMNS} FROM pending_attendance WHERE company_id=%s AND status=%s"
        params: list = [int(company_id), PendingStatus.PENDING.value]
        if created_before is not None:
            sql += " AND created_at < %s"
            params.append(created_before)
        sql += " ORDER BY created_at"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_model(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        pending_id: int,
        company_id: int,
        status: PendingStatus,
        reviewed_by: Optional[int],
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE pending_attendance
                SET status=%s, reviewed_by=%s, reviewed_at=%s, rejection_reason=%s
                WHERE pending_id=%s AND company_id=%s AND status=%s
                """,
                (
                    status.value,
                    reviewed_by,
                    reviewed_at,
                    rejection_reason,
                    int(pending_id),
                    int(company_id),
                    PendingStatus.PENDING.value,
                ),
            )
            return cur.rowcount == 1
