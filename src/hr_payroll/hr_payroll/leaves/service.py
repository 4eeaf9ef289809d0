from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from contextlib import nullcontext
from datetime import date, timedelta
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import inclusive_days, iter_days, now_local, today_local
from ..common.validators import optional_enum, require_date
from ..core.constants import (
    LEAVE_ENTITLEMENT_DESCRIPTIONS,
    LEAVE_ENTITLEMENTS,
    UPCOMING_LEAVE_LIMIT,
    UPCOMING_LEAVE_WINDOW_DAYS,
)
from ..core.enums import AttendanceStatus, LeavePayStatus, LeaveStatus, LeaveType, Role
from ..core.exceptions import (
    AlreadyProcessedError,
    AuthorizationError,
    DomainError,
    EmployeeNotFoundError,
    NotFoundError,
    OverlappingLeaveError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..payroll.service import PayrollService
from .model import EmployeeSnapshot, LeaveChanges, LeaveFilter, LeaveRequest, NewLeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

_BLOCKING = (LeaveStatus.PENDING, LeaveStatus.APPROVED)

DEFAULT_REJECTION_REASON = "No reason provided"


def parse_leave_ids(raw: Any) -> list[int]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Please provide leave IDs")
    try:
        return [int(i) for i in raw]
    except (TypeError, ValueError):
        raise ValidationError("leaveIds must be numeric")


def bulk_summary(results: Sequence[dict]) -> dict:
    successful = sum(1 for r in results if r["success"])
    return {"total": len(results), "successful": successful, "failed": len(results) - successful}


def _year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


class LeaveService:
    """Leave workflow: request, approve (materializes attendance), reject, edit, delete."""

    def __init__(
        self,
        leaves: LeaveRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        payroll: PayrollService,
        *,
        transaction: Callable[[], ContextManager] = nullcontext,
    ):
        self._leaves = leaves
        self._employees = employees
        self._attendance = attendance
        self._payroll = payroll
        self._transaction = transaction

    # ---- helpers ----

    def _get(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    def _ensure_no_overlap(self, employee_id: int, start: date, end: date, *, exclude_id: Optional[int] = None) -> None:
        if self._leaves.find_overlapping(
            employee_id=employee_id, start_date=start, end_date=end, statuses=_BLOCKING, exclude_id=exclude_id
        ):
            raise OverlappingLeaveError("A leave request already exists for the selected dates")

    def _actor_name(self, actor_id: int) -> Optional[str]:
        actor = self._employees.get_by_id(int(actor_id))
        return actor.full_name if actor else None

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admin can perform this action")

    # ---- request ----

    def request_leave(self, *, current_role: Role, actor_id: int, payload: dict) -> LeaveRequest:
        if not payload.get("startDate") or not payload.get("endDate"):
            raise ValidationError("Start date and end date are required")
        start = require_date(payload.get("startDate"), "startDate")
        end = require_date(payload.get("endDate"), "endDate")
        if start < today_local():
            raise ValidationError("Cannot request leave for past dates")
        if end < start:
            raise ValidationError("End date cannot be before start date")

        leave_type = optional_enum(LeaveType, payload.get("leaveType"), "leaveType") or LeaveType.SICK
        pay_status = optional_enum(LeavePayStatus, payload.get("payStatus"), "payStatus") or LeavePayStatus.PAID

        employee_id = int(actor_id)
        if current_role == Role.ADMIN and payload.get("employeeId"):
            employee_id = int(payload["employeeId"])
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise EmployeeNotFoundError(employee_id)

        self._ensure_no_overlap(employee.employee_id, start, end)
        new = NewLeaveRequest(
            employee_id=employee.employee_id,
            snapshot=self._snapshot(employee),
            leave_type=leave_type,
            pay_status=pay_status,
            start_date=start,
            end_date=end,
            total_days=inclusive_days(start, end),
            reason=(payload.get("reason") or "").strip(),
            created_by=int(actor_id),
        )
        with self._transaction():
            # Row lock serializes requests of one employee.
            self._employees.lock_for_update(employee.employee_id)
            self._ensure_no_overlap(employee.employee_id, start, end)
            leave_id = self._leaves.create(leave=new)

        logger.info("Leave %s requested by employee %s (%s..%s)", leave_id, employee.employee_id, start, end)
        return self._get(leave_id)

    @staticmethod
    def _snapshot(employee: Employee) -> EmployeeSnapshot:
        return EmployeeSnapshot(
            employee_name=employee.full_name,
            employee_code=employee.employee_code,
            department=employee.department,
            position=employee.designation,
            email=employee.email,
            phone=employee.phone,
        )

    # ---- approve / reject ----

    def approve_leave(
        self,
        *,
        current_role: Role,
        approver_id: int,
        leave_id: int,
        pay_status: Any = None,
    ) -> tuple[LeaveRequest, dict]:
        """Approve, write a Leave attendance row per day and adjust an enclosing payroll.

        All writes happen in one transaction.
        """

        self._require_admin(current_role)
        override = optional_enum(LeavePayStatus, pay_status, "payStatus")
        with self._transaction():
            adjustment = self._approve(approver_id=approver_id, leave_id=leave_id, pay_status=override)
        return self._get(leave_id), adjustment

    def _approve(self, *, approver_id: int, leave_id: int, pay_status: Optional[LeavePayStatus]) -> dict:
        leave = self._get(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise AlreadyProcessedError("Leave request", leave.status.value)

        pay = pay_status or leave.pay_status
        ok = self._leaves.mark_approved(
            leave_id=leave.leave_id,
            pay_status=pay,
            approver_id=int(approver_id),
            approver_name=self._actor_name(approver_id),
            approved_at=now_local(),
        )
        if not ok:
            raise AlreadyProcessedError("Leave request", self._get(leave.leave_id).status.value)

        remarks = f"Approved {leave.leave_type.value} Leave ({pay.value})"
        for day in iter_days(leave.start_date, leave.end_date):
            self._attendance.upsert_day(
                employee_id=leave.employee_id,
                work_date=day,
                status=AttendanceStatus.LEAVE,
                actor_id=int(approver_id),
                remarks=remarks,
                leave_id=leave.leave_id,
                leave_pay_status=pay,
            )

        adjustment = self._payroll.apply_leave_adjustment(leave=leave, pay_status=pay, actor_id=int(approver_id))
        logger.info("Leave %s approved by %s (%s)", leave.leave_id, approver_id, pay.value)
        return adjustment

    def reject_leave(
        self,
        *,
        current_role: Role,
        rejecter_id: int,
        leave_id: int,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        self._require_admin(current_role)
        with self._transaction():
            self._reject(rejecter_id=rejecter_id, leave_id=leave_id, reason=reason)
        return self._get(leave_id)

    def _reject(self, *, rejecter_id: int, leave_id: int, reason: Optional[str]) -> None:
        leave = self._get(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise AlreadyProcessedError("Leave request", leave.status.value)

        ok = self._leaves.mark_rejected(
            leave_id=leave.leave_id,
            rejecter_id=int(rejecter_id),
            rejecter_name=self._actor_name(rejecter_id),
            reason=(reason or "").strip() or DEFAULT_REJECTION_REASON,
            rejected_at=now_local(),
        )
        if not ok:
            raise AlreadyProcessedError("Leave request", self._get(leave.leave_id).status.value)

        self._attendance.delete_days(
            employee_id=leave.employee_id,
            start_date=leave.start_date,
            end_date=leave.end_date,
            status=AttendanceStatus.LEAVE,
            leave_id=leave.leave_id,
        )
        logger.info("Leave %s rejected by %s", leave.leave_id, rejecter_id)

    # ---- edit / delete ----

    def update_leave(self, *, current_role: Role, actor_id: int, leave_id: int, payload: dict) -> LeaveRequest:
        leave = self._get(leave_id)
        is_admin = current_role == Role.ADMIN
        if not is_admin and leave.employee_id != int(actor_id):
            raise AuthorizationError("You can only update your own leave requests")
        if leave.status != LeaveStatus.PENDING:
            raise AlreadyProcessedError("Leave request", leave.status.value)

        start = require_date(payload["startDate"], "startDate") if payload.get("startDate") else leave.start_date
        end = require_date(payload["endDate"], "endDate") if payload.get("endDate") else leave.end_date
        if start > end:
            raise ValidationError("Start date cannot be after end date")

        changes = LeaveChanges(
            leave_type=optional_enum(LeaveType, payload.get("leaveType"), "leaveType") or leave.leave_type,
            pay_status=optional_enum(LeavePayStatus, payload.get("payStatus"), "payStatus") or leave.pay_status,
            start_date=start,
            end_date=end,
            total_days=inclusive_days(start, end),
            reason=(payload["reason"] or "").strip() if "reason" in payload else leave.reason,
        )
        with self._transaction():
            self._employees.lock_for_update(leave.employee_id)
            self._ensure_no_overlap(leave.employee_id, start, end, exclude_id=leave.leave_id)
            ok = self._leaves.update_details(leave_id=leave.leave_id, changes=changes, actor_id=int(actor_id))
            if not ok:
                raise AlreadyProcessedError("Leave request", self._get(leave.leave_id).status.value)

        return self._get(leave.leave_id)

    def delete_leave(self, *, current_role: Role, actor_id: int, leave_id: int) -> None:
        leave = self._get(leave_id)
        if current_role != Role.ADMIN:
            if leave.employee_id != int(actor_id):
                raise AuthorizationError("Permission denied")
            if leave.status != LeaveStatus.PENDING:
                raise ValidationError("Only pending leaves can be deleted")

        with self._transaction():
            if leave.status == LeaveStatus.APPROVED:
                removed = self._attendance.delete_days(
                    employee_id=leave.employee_id,
                    start_date=leave.start_date,
                    end_date=leave.end_date,
                    status=AttendanceStatus.LEAVE,
                )
                logger.info("Removed %s leave attendance rows for leave %s", removed, leave.leave_id)
            self._leaves.delete(leave.leave_id)

    # ---- bulk ----

    def bulk_approve(self, *, current_role: Role, approver_id: int, leave_ids: Any, pay_status: Any = None) -> dict:
        """One transaction for the whole call.

        Business-rule failures are per-item results; a storage error rolls back every item.
        """

        self._require_admin(current_role)
        ids = parse_leave_ids(leave_ids)
        override = optional_enum(LeavePayStatus, pay_status, "payStatus")

        results: list[dict] = []
        with self._transaction():
            for leave_id in ids:
                try:
                    adjustment = self._approve(approver_id=approver_id, leave_id=leave_id, pay_status=override)
                except DomainError as e:
                    results.append({"leave_id": leave_id, "success": False, "message": str(e)})
                    continue
                results.append(
                    {
                        "leave_id": leave_id,
                        "success": True,
                        "message": "Approved successfully",
                        "payroll_adjustment": adjustment,
                    }
                )
        return {"results": results, "summary": bulk_summary(results)}

    def bulk_reject(self, *, current_role: Role, rejecter_id: int, leave_ids: Any, reason: Optional[str] = None) -> dict:
        self._require_admin(current_role)
        ids = parse_leave_ids(leave_ids)

        results: list[dict] = []
        for leave_id in ids:
            try:
                with self._transaction():
                    self._reject(rejecter_id=rejecter_id, leave_id=leave_id, reason=reason)
            except DomainError as e:
                results.append({"leave_id": leave_id, "success": False, "message": str(e)})
                continue
            results.append({"leave_id": leave_id, "success": True, "message": "Rejected successfully"})
        return {"results": results, "summary": bulk_summary(results)}

    def bulk_delete(self, *, current_role: Role, actor_id: int, leave_ids: Any) -> dict:
        ids = parse_leave_ids(leave_ids)

        results: list[dict] = []
        for leave_id in ids:
            try:
                self.delete_leave(current_role=current_role, actor_id=actor_id, leave_id=leave_id)
            except DomainError as e:
                results.append({"leave_id": leave_id, "success": False, "message": str(e)})
                continue
            results.append({"leave_id": leave_id, "success": True, "message": "Deleted successfully"})
        return {"results": results, "summary": bulk_summary(results)}

    # ---- reads ----

    def get_leave(self, *, current_role: Role, actor_id: int, leave_id: int) -> LeaveRequest:
        leave = self._get(leave_id)
        if current_role != Role.ADMIN and leave.employee_id != int(actor_id):
            raise AuthorizationError("You can only view your own leave requests")
        return leave

    def list_my_leaves(
        self, *, actor_id: int, filters: LeaveFilter, page: int, limit: int
    ) -> tuple[Sequence[LeaveRequest], int]:
        filters = LeaveFilter(
            employee_id=int(actor_id),
            status=filters.status,
            leave_type=filters.leave_type,
            start_date=filters.start_date,
            end_date=filters.end_date,
            search=filters.search,
        )
        return self._leaves.search(filters=filters, page=page, limit=limit)

    def list_leaves(
        self, *, current_role: Role, filters: LeaveFilter, page: int, limit: int
    ) -> tuple[Sequence[LeaveRequest], int]:
        self._require_admin(current_role)
        return self._leaves.search(filters=filters, page=page, limit=limit)

    def _scoped(self, current_role: Role, actor_id: int, year: Optional[int]) -> list[LeaveRequest]:
        start = end = None
        if year:
            start, end = _year_bounds(int(year))
        employee_id = None if current_role == Role.ADMIN else int(actor_id)
        return list(
            self._leaves.list_matching(filters=LeaveFilter(employee_id=employee_id, start_date=start, end_date=end))
        )

    def stats(self, *, current_role: Role, actor_id: int, year: Optional[int] = None) -> dict:
        leaves = self._scoped(current_role, actor_id, year)

        by_status = defaultdict(int)
        types: dict[str, dict] = {}
        for leave in leaves:
            by_status[leave.status] += 1
            t = types.setdefault(leave.leave_type.value, {"leave_type": leave.leave_type.value, "count": 0, "total_days": 0})
            t["count"] += 1
            t["total_days"] += leave.total_days

        chart_year = int(year) if year else today_local().year
        monthly = {m: {"count": 0, "total_days": 0} for m in range(1, 13)}
        for leave in leaves:
            if leave.start_date.year == chart_year:
                monthly[leave.start_date.month]["count"] += 1
                monthly[leave.start_date.month]["total_days"] += leave.total_days

        department_stats: list[dict] = []
        if current_role == Role.ADMIN:
            depts: dict[str, dict] = {}
            for leave in leaves:
                name = leave.snapshot.department or "Unassigned"
                d = depts.setdefault(
                    name, {"department": name, "total_leaves": 0, "pending": 0, "approved": 0, "rejected": 0}
                )
                d["total_leaves"] += 1
                d[leave.status.value.lower()] += 1
            department_stats = sorted(depts.values(), key=lambda d: d["total_leaves"], reverse=True)

        return {
            "total": len(leaves),
            "pending": by_status[LeaveStatus.PENDING],
            "approved": by_status[LeaveStatus.APPROVED],
            "rejected": by_status[LeaveStatus.REJECTED],
            "leave_types": sorted(types.values(), key=lambda t: t["count"], reverse=True),
            "monthly_data": [
                {"month": m, "month_name": calendar.month_abbr[m], **monthly[m]} for m in range(1, 13)
            ],
            "department_stats": department_stats,
        }

    def type_summary(self, *, current_role: Role, actor_id: int, year: Optional[int] = None) -> list[dict]:
        leaves = self._scoped(current_role, actor_id, year or today_local().year)

        grouped: dict[str, dict] = {}
        for leave in leaves:
            item = grouped.setdefault(
                leave.leave_type.value,
                {"type": leave.leave_type.value, "statuses": {}, "total_count": 0, "total_days": 0},
            )
            s = item["statuses"].setdefault(
                leave.status.value, {"status": leave.status.value, "count": 0, "total_days": 0}
            )
            s["count"] += 1
            s["total_days"] += leave.total_days
            item["total_count"] += 1
            item["total_days"] += leave.total_days

        out = []
        for item in sorted(grouped.values(), key=lambda i: i["total_count"], reverse=True):
            out.append({**item, "statuses": list(item["statuses"].values())})
        return out

    def balance(self, *, current_role: Role, actor_id: int, employee_id: Optional[int] = None) -> dict:
        """Remaining entitlement per leave type for the current year."""

        target_id = int(actor_id)
        if current_role == Role.ADMIN and employee_id:
            target_id = int(employee_id)
        employee = self._employees.get_by_id(target_id)
        if not employee:
            raise EmployeeNotFoundError(target_id)

        today = today_local()
        year_start, year_end = _year_bounds(today.year)
        approved = list(
            self._leaves.list_matching(
                filters=LeaveFilter(
                    employee_id=target_id, status=LeaveStatus.APPROVED, start_date=year_start, end_date=year_end
                )
            )
        )

        balance = {
            leave_type: {
                "allowed": allowed,
                "used": 0,
                "remaining": allowed,
                "description": LEAVE_ENTITLEMENT_DESCRIPTIONS.get(leave_type, ""),
            }
            for leave_type, allowed in LEAVE_ENTITLEMENTS.items()
        }
        for leave in approved:
            entry = balance.get(leave.leave_type.value)
            if entry:
                entry["used"] += leave.total_days
                entry["remaining"] = entry["allowed"] - entry["used"]

        total_allowed = sum(b["allowed"] for b in balance.values())
        total_used = sum(b["used"] for b in balance.values())
        horizon = today + timedelta(days=UPCOMING_LEAVE_WINDOW_DAYS)
        upcoming = sorted(
            (l for l in approved if today <= l.start_date <= horizon),
            key=lambda l: l.start_date,
        )[:UPCOMING_LEAVE_LIMIT]

        return {
            "employee": {
                "employee_id": employee.employee_id,
                "employee_code": employee.employee_code,
                "full_name": employee.full_name,
                "department": employee.department,
                "designation": employee.designation,
            },
            "year": today.year,
            "balance": balance,
            "summary": {
                "total_allowed": total_allowed,
                "total_used": total_used,
                "total_remaining": sum(b["remaining"] for b in balance.values()),
                "utilization_rate": round(total_used / total_allowed * 100, 1) if total_allowed else 0.0,
            },
            "upcoming_leaves": [
                {
                    "leave_id": l.leave_id,
                    "leave_type": l.leave_type.value,
                    "start_date": l.start_date.isoformat(),
                    "end_date": l.end_date.isoformat(),
                    "total_days": l.total_days,
                    "reason": l.reason,
                }
                for l in upcoming
            ],
            "approved_leaves_count": len(approved),
            "total_approved_days": sum(l.total_days for l in approved),
        }

    def departments(self, *, current_role: Role) -> list[str]:
        self._require_admin(current_role)
        return sorted(self._employees.list_departments())

    def export(self, *, current_role: Role, filters: LeaveFilter) -> list[dict]:
        """Flattened rows for spreadsheet generation."""

        self._require_admin(current_role)
        rows = []
        for leave in self._leaves.list_matching(filters=filters):
            decided_by = leave.approved_by_name or leave.rejected_by_name or ""
            decided_at = leave.approved_at or leave.rejected_at
            rows.append(
                {
                    "Employee ID": leave.snapshot.employee_code,
                    "Employee Name": leave.snapshot.employee_name,
                    "Department": leave.snapshot.department or "",
                    "Leave Type": leave.leave_type.value,
                    "Start Date": leave.start_date.isoformat(),
                    "End Date": leave.end_date.isoformat(),
                    "Total Days": leave.total_days,
                    "Status": leave.status.value,
                    "Pay Status": leave.pay_status.value,
                    "Reason": leave.reason,
                    "Requested On": leave.created_at.isoformat() if leave.created_at else "",
                    "Approved/Rejected By": decided_by,
                    "Approved/Rejected At": decided_at.isoformat() if decided_at else "",
                    "Rejection Reason": leave.rejection_reason or "",
                }
            )
        return rows
