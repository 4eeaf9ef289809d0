from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, EmployeeNotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository


@dataclass(frozen=True)
class NewAttendanceDay:
    employee_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    late_minutes: int = 0
    early_minutes: int = 0
    remarks: Optional[str] = None


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "employee_id": r.employee_id,
        "work_date": r.work_date.isoformat(),
        "status": r.status.value,
        "clock_in": r.clock_in.isoformat() if r.clock_in else None,
        "clock_out": r.clock_out.isoformat() if r.clock_out else None,
        "total_hours": r.total_hours,
        "late_minutes": r.late_minutes,
        "early_minutes": r.early_minutes,
        "is_late": r.is_late,
        "is_early": r.is_early,
        "leave_id": r.leave_id,
        "leave_pay_status": r.leave_pay_status.value if r.leave_pay_status else None,
        "remarks": r.remarks or "",
        "corrected_by_admin": r.corrected_by_admin,
    }


class AttendanceService:
    """Ledger writes from the recording side plus per-period reads."""

    def __init__(self, attendance: AttendanceRepository, employees: EmployeeRepository):
        self._attendance = attendance
        self._employees = employees

    def record_day(self, *, actor_id: int, day: NewAttendanceDay) -> int:
        if day.clock_in and day.clock_out and day.clock_out < day.clock_in:
            raise ValidationError("Clock-out cannot be before clock-in")
        if not self._employees.get_by_id(day.employee_id):
            raise EmployeeNotFoundError(day.employee_id)

        return self._attendance.create_day(
            employee_id=day.employee_id,
            work_date=day.work_date,
            status=day.status,
            actor_id=actor_id,
            clock_in=day.clock_in,
            clock_out=day.clock_out,
            late_minutes=day.late_minutes,
            early_minutes=day.early_minutes,
            remarks=day.remarks,
        )

    def correct_day(self, *, admin_id: int, day: NewAttendanceDay) -> AttendanceRecord:
        if day.clock_in and day.clock_out and day.clock_out < day.clock_in:
            raise ValidationError("Clock-out cannot be before clock-in")
        if not self._employees.get_by_id(day.employee_id):
            raise EmployeeNotFoundError(day.employee_id)

        self._attendance.upsert_day(
            employee_id=day.employee_id,
            work_date=day.work_date,
            status=day.status,
            actor_id=admin_id,
            remarks=day.remarks,
            clock_in=day.clock_in,
            clock_out=day.clock_out,
            corrected_by_admin=True,
        )
        record = self._attendance.get_for_employee_and_date(day.employee_id, day.work_date)
        if not record:
            raise ValidationError("Attendance correction failed")
        return record

    def employee_history(
        self,
        *,
        viewer_id: int,
        viewer_is_admin: bool,
        employee_id: int,
        start_date: date,
        end_date: date,
    ) -> dict:
        if not viewer_is_admin and int(viewer_id) != int(employee_id):
            raise AuthorizationError("You can only view your own attendance")
        if end_date < start_date:
            raise ValidationError("endDate must be on or after startDate")

        records = self._attendance.list_for_employee_in_range(
            employee_id=employee_id, start_date=start_date, end_date=end_date
        )
        summary = AttendanceSummary.from_counts(
            self._attendance.count_by_status(employee_id=employee_id, start_date=start_date, end_date=end_date)
        )
        return {
            "records": [record_to_dict(r) for r in records],
            "summary": asdict(summary),
            "total_hours": round(sum(r.total_hours for r in records), 4),
        }
