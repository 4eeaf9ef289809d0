from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeavePayStatus, LeaveStatus, LeaveType


@dataclass(frozen=True)
class EmployeeSnapshot:
    """Employee fields copied into the request at creation time. Never re-synced."""

    employee_name: str
    employee_code: str
    department: Optional[str] = None
    position: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class NewLeaveRequest:
    employee_id: int
    snapshot: EmployeeSnapshot
    leave_type: LeaveType
    pay_status: LeavePayStatus
    start_date: date
    end_date: date
    total_days: int
    reason: str
    created_by: int


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a leave request and its approval trail."""

    leave_id: int
    employee_id: int
    snapshot: EmployeeSnapshot
    leave_type: LeaveType
    pay_status: LeavePayStatus
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    created_at: datetime
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_by_name: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_by_name: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


@dataclass(frozen=True)
class LeaveChanges:
    leave_type: LeaveType
    pay_status: LeavePayStatus
    start_date: date
    end_date: date
    total_days: int
    reason: str


@dataclass(frozen=True)
class LeaveFilter:
    employee_id: Optional[int] = None
    employee_code: Optional[str] = None
    status: Optional[LeaveStatus] = None
    leave_type: Optional[LeaveType] = None
    department: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def leave_to_dict(leave: LeaveRequest) -> dict:
    s = leave.snapshot
    return {
        "leave_id": leave.leave_id,
        "employee_id": leave.employee_id,
        "employee_name": s.employee_name,
        "employee_code": s.employee_code,
        "department": s.department,
        "position": s.position,
        "email": s.email,
        "phone": s.phone,
        "leave_type": leave.leave_type.value,
        "pay_status": leave.pay_status.value,
        "start_date": leave.start_date.isoformat(),
        "end_date": leave.end_date.isoformat(),
        "total_days": leave.total_days,
        "reason": leave.reason,
        "status": leave.status.value,
        "approved_by": leave.approved_by,
        "approved_by_name": leave.approved_by_name,
        "approved_at": _iso(leave.approved_at),
        "rejected_by": leave.rejected_by,
        "rejected_by_name": leave.rejected_by_name,
        "rejected_at": _iso(leave.rejected_at),
        "rejection_reason": leave.rejection_reason,
        "created_by": leave.created_by,
        "updated_by": leave.updated_by,
        "created_at": _iso(leave.created_at),
        "updated_at": _iso(leave.updated_at),
    }
