from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, LeavePayStatus
from ..core.exceptions import DuplicateAttendanceDayError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, compute_total_hours
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, status, clock_in, clock_out,
    late_minutes, early_minutes, is_late, is_early, leave_id, leave_pay_status,
    remarks, created_by, updated_by, corrected_by_admin, is_deleted
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        late_minutes=int(r.get("late_minutes") or 0),
        early_minutes=int(r.get("early_minutes") or 0),
        is_late=bool(r.get("is_late")),
        is_early=bool(r.get("is_early")),
        leave_id=r.get("leave_id"),
        leave_pay_status=LeavePayStatus(r["leave_pay_status"]) if r.get("leave_pay_status") else None,
        remarks=r.get("remarks"),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
        corrected_by_admin=bool(r.get("corrected_by_admin")),
        is_deleted=bool(r.get("is_deleted")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date=%s AND is_deleted=0
                """,
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_for_employee_in_range(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s AND is_deleted=0
                ORDER BY work_date
                """,
                (int(employee_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_day(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        actor_id: Optional[int],
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
        late_minutes: int = 0,
        early_minutes: int = 0,
        remarks: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date, status, clock_in, clock_out, total_hours,
                        late_minutes, early_minutes, is_late, is_early, remarks, created_by, updated_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        status.value,
                        clock_in,
                        clock_out,
                        compute_total_hours(clock_in, clock_out),
                        int(late_minutes),
                        int(early_minutes),
                        int(late_minutes) > 0,
                        int(early_minutes) > 0,
                        remarks,
                        actor_id,
                        actor_id,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateAttendanceDayError(
                    f"Attendance for employee {employee_id} on {work_date.isoformat()} already exists"
                ) from e
            raise

    def upsert_day(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        actor_id: Optional[int],
        remarks: Optional[str] = None,
        leave_id: Optional[int] = None,
        leave_pay_status: Optional[LeavePayStatus] = None,
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
        corrected_by_admin: bool = False,
    ) -> None:
        # One statement so concurrent writers cannot both insert the same day.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, work_date, status, clock_in, clock_out, total_hours, remarks,
                    leave_id, leave_pay_status, corrected_by_admin, created_by, updated_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    remarks=VALUES(remarks),
                    leave_id=VALUES(leave_id),
                    leave_pay_status=VALUES(leave_pay_status),
                    clock_in=COALESCE(VALUES(clock_in), clock_in),
                    clock_out=COALESCE(VALUES(clock_out), clock_out),
                    total_hours=IF(VALUES(clock_in) IS NULL, total_hours, VALUES(total_hours)),
                    corrected_by_admin=(corrected_by_admin OR VALUES(corrected_by_admin)),
                    updated_by=VALUES(updated_by),
                    is_deleted=0,
                    updated_at=NOW()
                """,
                (
                    int(employee_id),
                    work_date,
                    status.value,
                    clock_in,
                    clock_out,
                    compute_total_hours(clock_in, clock_out),
                    remarks,
                    leave_id,
                    leave_pay_status.value if leave_pay_status else None,
                    bool(corrected_by_admin),
                    actor_id,
                    actor_id,
                ),
            )

    def delete_days(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        status: AttendanceStatus,
        leave_id: Optional[int] = None,
    ) -> int:
        sql = """
            DELETE FROM attendance_records
            WHERE employee_id=%s AND work_date BETWEEN %s AND %s AND status=%s
        """
        params: list = [int(employee_id), start_date, end_date, status.value]
        if leave_id is not None:
            sql += " AND leave_id=%s"
            params.append(int(leave_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return int(cur.rowcount)

    def count_by_status(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
    ) -> Dict[AttendanceStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT status, COUNT(*) AS cnt
                FROM attendance_records
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s AND is_deleted=0
                GROUP BY status
                """,
                (int(employee_id), start_date, end_date),
            )
            return {AttendanceStatus(r["status"]): int(r["cnt"]) for r in fetchall(cur)}
