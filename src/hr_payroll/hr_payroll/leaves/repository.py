from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import LeavePayStatus, LeaveStatus
from .model import LeaveChanges, LeaveFilter, LeaveRequest, NewLeaveRequest


class LeaveRepository(Protocol):
    def create(self, *, leave: NewLeaveRequest) -> int:
        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: Sequence[LeaveStatus],
        exclude_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Requests with start <= end_date AND end >= start_date."""

        raise NotImplementedError

    def mark_approved(
        self,
        *,
        leave_id: int,
        pay_status: LeavePayStatus,
        approver_id: int,
        approver_name: Optional[str],
        approved_at: datetime,
    ) -> bool:
        """Pending -> Approved. False when the request is no longer Pending."""

        raise NotImplementedError

    def mark_rejected(
        self,
        *,
        leave_id: int,
        rejecter_id: int,
        rejecter_name: Optional[str],
        reason: str,
        rejected_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def update_details(self, *, leave_id: int, changes: LeaveChanges, actor_id: int) -> bool:
        raise NotImplementedError

    def delete(self, leave_id: int) -> bool:
        raise NotImplementedError

    def search(self, *, filters: LeaveFilter, page: int, limit: int) -> Tuple[Sequence[LeaveRequest], int]:
        """One page (newest first) plus the total match count."""

        raise NotImplementedError

    def list_matching(self, *, filters: LeaveFilter) -> Sequence[LeaveRequest]:
        raise NotImplementedError
