from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from ..core.enums import AttendanceStatus, LeavePayStatus


def compute_total_hours(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> float:
    """(out - in) in hours, 4 decimals; 0 unless both ends are known."""
    if not clock_in or not clock_out:
        return 0.0
    hours = (clock_out - clock_in).total_seconds() / 3600
    return max(round(hours, 4), 0.0)


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one ledger row per (employee, calendar day)."""

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    late_minutes: int = 0
    early_minutes: int = 0
    is_late: bool = False
    is_early: bool = False
    leave_id: Optional[int] = None
    leave_pay_status: Optional[LeavePayStatus] = None
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    corrected_by_admin: bool = False
    is_deleted: bool = False

    @property
    def total_hours(self) -> float:
        return compute_total_hours(self.clock_in, self.clock_out)


@dataclass(frozen=True)
class AttendanceSummary:
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    half_days: int = 0
    leave_days: int = 0
    holidays: int = 0
    weekly_offs: int = 0

    @classmethod
    def from_counts(cls, counts: Mapping[AttendanceStatus, int]) -> "AttendanceSummary":
        def c(*statuses: AttendanceStatus) -> int:
            return sum(int(counts.get(s, 0)) for s in statuses)

        return cls(
            present_days=c(AttendanceStatus.PRESENT),
            absent_days=c(AttendanceStatus.ABSENT),
            late_days=c(AttendanceStatus.LATE),
            half_days=c(AttendanceStatus.HALF_DAY),
            leave_days=c(AttendanceStatus.LEAVE, AttendanceStatus.UNPAID_LEAVE, AttendanceStatus.HALF_PAID_LEAVE),
            holidays=c(AttendanceStatus.GOVT_HOLIDAY, AttendanceStatus.OFF_DAY),
            weekly_offs=c(AttendanceStatus.WEEKLY_OFF),
        )
