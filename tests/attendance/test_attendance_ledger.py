from datetime import date, datetime

import pytest

from src.hr_payroll.hr_payroll.attendance.model import AttendanceSummary, compute_total_hours
from src.hr_payroll.hr_payroll.attendance.service import AttendanceService, NewAttendanceDay
from src.hr_payroll.hr_payroll.core.enums import AttendanceStatus, Role
from src.hr_payroll.hr_payroll.core.exceptions import (
    AuthorizationError,
    DuplicateAttendanceDayError,
    EmployeeNotFoundError,
    ValidationError,
)
from tests.fakes import FakeAttendanceRepo, FakeEmployeesRepo, make_employee

ADMIN_ID = 1
DAY = date(2026, 2, 2)


def _service():
    attendance = FakeAttendanceRepo()
    employees = FakeEmployeesRepo([make_employee(ADMIN_ID, role=Role.ADMIN), make_employee(7), make_employee(8)])
    return attendance, AttendanceService(attendance, employees)


def test_total_hours():
    assert compute_total_hours(datetime(2026, 2, 2, 9, 0), datetime(2026, 2, 2, 17, 30)) == 8.5
    assert compute_total_hours(datetime(2026, 2, 2, 9, 0), None) == 0
    assert compute_total_hours(None, None) == 0


def test_record_day_writes_one_row():
    attendance, service = _service()

    attendance_id = service.record_day(
        actor_id=ADMIN_ID,
        day=NewAttendanceDay(
            employee_id=7,
            work_date=DAY,
            status=AttendanceStatus.LATE,
            clock_in=datetime(2026, 2, 2, 9, 20),
            clock_out=datetime(2026, 2, 2, 17, 0),
            late_minutes=20,
        ),
    )

    record = attendance.get_for_employee_and_date(7, DAY)
    assert record.attendance_id == attendance_id
    assert record.is_late is True
    assert record.total_hours == pytest.approx(7.6667, abs=1e-4)


def test_second_row_for_same_day_is_a_conflict():
    attendance, service = _service()
    day = NewAttendanceDay(employee_id=7, work_date=DAY, status=AttendanceStatus.PRESENT)
    service.record_day(actor_id=ADMIN_ID, day=day)

    with pytest.raises(DuplicateAttendanceDayError):
        service.record_day(actor_id=ADMIN_ID, day=day)

    assert len(attendance.rows()) == 1


def test_record_day_validation():
    _, service = _service()

    with pytest.raises(ValidationError):
        service.record_day(
            actor_id=ADMIN_ID,
            day=NewAttendanceDay(
                employee_id=7,
                work_date=DAY,
                status=AttendanceStatus.PRESENT,
                clock_in=datetime(2026, 2, 2, 17, 0),
                clock_out=datetime(2026, 2, 2, 9, 0),
            ),
        )
    with pytest.raises(EmployeeNotFoundError):
        service.record_day(
            actor_id=ADMIN_ID, day=NewAttendanceDay(employee_id=99, work_date=DAY, status=AttendanceStatus.PRESENT)
        )


def test_correct_day_overwrites_and_flags_row():
    attendance, service = _service()
    attendance.add(7, DAY, AttendanceStatus.ABSENT, clock_in=datetime(2026, 2, 2, 9, 0))

    record = service.correct_day(
        admin_id=ADMIN_ID,
        day=NewAttendanceDay(employee_id=7, work_date=DAY, status=AttendanceStatus.PRESENT, remarks="Forgot to clock in"),
    )

    assert record.status == AttendanceStatus.PRESENT
    assert record.corrected_by_admin is True
    assert record.remarks == "Forgot to clock in"
    assert record.clock_in == datetime(2026, 2, 2, 9, 0)
    assert record.updated_by == ADMIN_ID


def test_correct_day_creates_missing_row():
    attendance, service = _service()

    record = service.correct_day(
        admin_id=ADMIN_ID, day=NewAttendanceDay(employee_id=8, work_date=DAY, status=AttendanceStatus.GOVT_HOLIDAY)
    )

    assert record.status == AttendanceStatus.GOVT_HOLIDAY
    assert len(attendance.rows()) == 1


def test_history_is_own_unless_admin():
    attendance, service = _service()
    attendance.add(
        7, DAY, AttendanceStatus.PRESENT, clock_in=datetime(2026, 2, 2, 9, 0), clock_out=datetime(2026, 2, 2, 17, 0)
    )
    attendance.add(7, date(2026, 2, 3), AttendanceStatus.HALF_DAY)
    attendance.add(7, date(2026, 2, 4), AttendanceStatus.LEAVE)
    attendance.add(7, date(2026, 3, 1), AttendanceStatus.PRESENT)

    history = service.employee_history(
        viewer_id=7, viewer_is_admin=False, employee_id=7, start_date=date(2026, 2, 1), end_date=date(2026, 2, 28)
    )

    assert [r["work_date"] for r in history["records"]] == ["2026-02-02", "2026-02-03", "2026-02-04"]
    assert history["summary"]["present_days"] == 1
    assert history["summary"]["half_days"] == 1
    assert history["summary"]["leave_days"] == 1
    assert history["total_hours"] == 8

    with pytest.raises(AuthorizationError):
        service.employee_history(
            viewer_id=8, viewer_is_admin=False, employee_id=7, start_date=date(2026, 2, 1), end_date=date(2026, 2, 28)
        )
    assert service.employee_history(
        viewer_id=ADMIN_ID, viewer_is_admin=True, employee_id=7, start_date=DAY, end_date=DAY
    )["records"]
    with pytest.raises(ValidationError):
        service.employee_history(
            viewer_id=7, viewer_is_admin=False, employee_id=7, start_date=date(2026, 2, 28), end_date=DAY
        )


def test_summary_groups_statuses():
    summary = AttendanceSummary.from_counts(
        {
            AttendanceStatus.PRESENT: 18,
            AttendanceStatus.LATE: 2,
            AttendanceStatus.UNPAID_LEAVE: 1,
            AttendanceStatus.LEAVE: 2,
            AttendanceStatus.OFF_DAY: 1,
            AttendanceStatus.GOVT_HOLIDAY: 1,
            AttendanceStatus.WEEKLY_OFF: 4,
        }
    )

    assert summary.present_days == 18
    assert summary.late_days == 2
    assert summary.leave_days == 3
    assert summary.holidays == 2
    assert summary.weekly_offs == 4
