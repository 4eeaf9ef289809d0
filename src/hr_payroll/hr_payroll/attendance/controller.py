from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from flask import Flask, g, request

from ..common.auth import admin_required, login_required
from ..common.datetime_utils import month_bounds, today_local
from ..common.http import domain_error, json_body, server_error, success
from ..common.validators import optional_date, require_date, require_enum
from ..core.enums import AttendanceStatus
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .service import NewAttendanceDay, record_to_dict


def _optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO datetime")


def _minutes(value: Any, field_name: str) -> int:
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")


def parse_attendance_day(payload: dict) -> NewAttendanceDay:
    try:
        employee_id = int(payload.get("employeeId"))
    except (TypeError, ValueError):
        raise ValidationError("employeeId is required")
    return NewAttendanceDay(
        employee_id=employee_id,
        work_date=require_date(payload.get("date"), "date"),
        status=require_enum(AttendanceStatus, payload.get("status"), "status"),
        clock_in=_optional_datetime(payload.get("clockIn"), "clockIn"),
        clock_out=_optional_datetime(payload.get("clockOut"), "clockOut"),
        late_minutes=_minutes(payload.get("lateMinutes"), "lateMinutes"),
        early_minutes=_minutes(payload.get("earlyMinutes"), "earlyMinutes"),
        remarks=(payload.get("remarks") or "").strip() or None,
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/attendance", methods=["POST"], endpoint="record_attendance")
    @admin_required
    def record_attendance():
        try:
            attendance_id = service.record_day(actor_id=g.current_user.employee_id, day=parse_attendance_day(json_body()))
            return success("Attendance recorded", {"attendance_id": attendance_id}, 201)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to record attendance")

    @app.route("/attendance/correct", methods=["PUT"], endpoint="correct_attendance")
    @admin_required
    def correct_attendance():
        try:
            record = service.correct_day(admin_id=g.current_user.employee_id, day=parse_attendance_day(json_body()))
            return success("Attendance corrected", record_to_dict(record))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to correct attendance")

    @app.route("/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="employee_attendance")
    @login_required
    def employee_attendance(employee_id: int):
        user = g.current_user
        try:
            today = today_local()
            default_start, default_end = month_bounds(today.month, today.year)
            data = service.employee_history(
                viewer_id=user.employee_id,
                viewer_is_admin=user.is_admin,
                employee_id=employee_id,
                start_date=optional_date(request.args.get("startDate"), "startDate") or default_start,
                end_date=optional_date(request.args.get("endDate"), "endDate") or default_end,
            )
            return success("Attendance history", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load attendance")
