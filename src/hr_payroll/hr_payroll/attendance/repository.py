from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, LeavePayStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee_in_range(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert a new day. Raises DuplicateAttendanceDayError if the day exists."""

        raise NotImplementedError

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
        """Create the day's row, or overwrite status/remarks/updated_by (last writer wins)."""

        raise NotImplementedError

    def delete_days(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        status: AttendanceStatus,
        leave_id: Optional[int] = None,
    ) -> int:
        """Delete rows in range with `status`; with `leave_id`, only rows materialized by that leave."""

        raise NotImplementedError

    def count_by_status(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
    ) -> Dict[AttendanceStatus, int]:
        raise NotImplementedError
