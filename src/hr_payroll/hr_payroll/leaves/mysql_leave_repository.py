from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..core.enums import LeavePayStatus, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmployeeSnapshot, LeaveChanges, LeaveFilter, LeaveRequest, NewLeaveRequest
from .repository import LeaveRepository

_COLUMNS = """
    leave_id, employee_id, employee_name, employee_code, department, position, email, phone,
    leave_type, pay_status, start_date, end_date, total_days, reason, status,
    approved_by, approved_by_name, approved_at, rejected_by, rejected_by_name, rejected_at,
    rejection_reason, created_by, updated_by, created_at, updated_at
"""


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        snapshot=EmployeeSnapshot(
            employee_name=r["employee_name"],
            employee_code=r["employee_code"],
            department=r.get("department"),
            position=r.get("position"),
            email=r.get("email"),
            phone=r.get("phone"),
        ),
        leave_type=LeaveType(r["leave_type"]),
        pay_status=LeavePayStatus(r["pay_status"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        total_days=int(r["total_days"]),
        reason=r.get("reason") or "",
        status=LeaveStatus(r["status"]),
        created_at=r["created_at"],
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
        updated_at=r.get("updated_at"),
        approved_by=r.get("approved_by"),
        approved_by_name=r.get("approved_by_name"),
        approved_at=r.get("approved_at"),
        rejected_by=r.get("rejected_by"),
        rejected_by_name=r.get("rejected_by_name"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
    )


def _where(filters: LeaveFilter) -> Tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []

    if filters.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(filters.employee_id))
    if filters.employee_code:
        clauses.append("employee_code=%s")
        params.append(filters.employee_code)
    if filters.status is not None:
        clauses.append("status=%s")
        params.append(filters.status.value)
    if filters.leave_type is not None:
        clauses.append("leave_type=%s")
        params.append(filters.leave_type.value)
    if filters.department:
        clauses.append("department=%s")
        params.append(filters.department)
    if filters.start_date is not None:
        clauses.append("start_date>=%s")
        params.append(filters.start_date)
    if filters.end_date is not None:
        clauses.append("start_date<=%s")
        params.append(filters.end_date)
    if filters.search:
        like = f"%{filters.search}%"
        clauses.append(
            "(employee_name LIKE %s OR employee_code LIKE %s OR department LIKE %s"
            " OR reason LIKE %s OR leave_type LIKE %s)"
        )
        params.extend([like] * 5)

    return " AND ".join(clauses), params


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, leave: NewLeaveRequest) -> int:
        s = leave.snapshot
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, employee_name, employee_code, department, position, email, phone,
                    leave_type, pay_status, start_date, end_date, total_days, reason, status,
                    created_by, updated_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(leave.employee_id),
                    s.employee_name,
                    s.employee_code,
                    s.department,
                    s.position,
                    s.email,
                    s.phone,
                    leave.leave_type.value,
                    leave.pay_status.value,
                    leave.start_date,
                    leave.end_date,
                    int(leave.total_days),
                    leave.reason,
                    LeaveStatus.PENDING.value,
                    int(leave.created_by),
                    int(leave.created_by),
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[LeaveStatus],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        if not statuses:
            return []
        placeholders = ",".join(["%s"] * len(statuses))
        params: list[object] = [int(employee_id), end_date, start_date, *[s.value for s in statuses]]
        exclude = ""
        if exclude_id is not None:
            exclude = "AND leave_id<>%s"
            params.append(int(exclude_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE employee_id=%s AND start_date<=%s AND end_date>=%s
                  AND status IN ({placeholders}) {exclude}
                ORDER BY start_date
                """,
                tuple(params),
            )
            return [_to_leave(r) for r in fetchall(cur)]

    def mark_approved(
        self,
        *,
        leave_id: int,
        pay_status: LeavePayStatus,
        approver_id: int,
        approver_name: Optional[str],
        approved_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, pay_status=%s, approved_by=%s, approved_by_name=%s, approved_at=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE leave_id=%s AND status=%s
                """,
                (
                    LeaveStatus.APPROVED.value,
                    pay_status.value,
                    int(approver_id),
                    approver_name,
                    approved_at,
                    int(approver_id),
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def mark_rejected(
        self,
        *,
        leave_id: int,
        rejecter_id: int,
        rejecter_name: Optional[str],
        reason: str,
        rejected_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, rejected_by=%s, rejected_by_name=%s, rejected_at=%s, rejection_reason=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE leave_id=%s AND status=%s
                """,
                (
                    LeaveStatus.REJECTED.value,
                    int(rejecter_id),
                    rejecter_name,
                    rejected_at,
                    reason,
                    int(rejecter_id),
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def update_details(self, *, leave_id: int, changes: LeaveChanges, actor_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET leave_type=%s, pay_status=%s, start_date=%s, end_date=%s, total_days=%s, reason=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE leave_id=%s AND status=%s
                """,
                (
                    changes.leave_type.value,
                    changes.pay_status.value,
                    changes.start_date,
                    changes.end_date,
                    int(changes.total_days),
                    changes.reason,
                    int(actor_id),
                    int(leave_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete(self, leave_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            return cur.rowcount > 0

    def search(self, *, filters: LeaveFilter, page: int, limit: int) -> Tuple[Sequence[LeaveRequest], int]:
        where, params = _where(filters)
        offset = (max(int(page), 1) - 1) * int(limit)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM leave_requests WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("cnt", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM leave_requests
                WHERE {where}
                ORDER BY created_at DESC, leave_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset]),
            )
            return [_to_leave(r) for r in fetchall(cur)], total

    def list_matching(self, *, filters: LeaveFilter) -> Sequence[LeaveRequest]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM leave_requests WHERE {where} ORDER BY start_date DESC, leave_id DESC",
                tuple(params),
            )
            return [_to_leave(r) for r in fetchall(cur)]
