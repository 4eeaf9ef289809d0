from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence, Tuple

from ..core.enums import PayrollStatus
from .model import (
    Deductions,
    Earnings,
    NewPayroll,
    PayrollBreakdown,
    PayrollFilter,
    PayrollRecord,
    PayrollSummary,
    StatusChange,
)


class PayrollRepository(Protocol):
    def create(self, *, payroll: NewPayroll) -> int:
        """Insert with status Pending. Raises DuplicatePeriodError on a unique-key clash."""

        raise NotImplementedError

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def find_overlapping(self, *, employee_id: int, period_start: date, period_end: date) -> Sequence[PayrollRecord]:
        """Records with start <= period_end AND end >= period_start."""

        raise NotImplementedError

    def find_exact_period(self, *, employee_id: int, period_start: date, period_end: date) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def find_enclosing(self, *, employee_id: int, start_date: date, end_date: date) -> Optional[PayrollRecord]:
        """A record with period_start <= start_date AND period_end >= end_date."""

        raise NotImplementedError

    def save_amounts(
        self,
        *,
        payroll_id: int,
        earnings: Earnings,
        deductions: Deductions,
        summary: PayrollSummary,
        actor_id: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def save_breakdown(self, *, payroll_id: int, breakdown: PayrollBreakdown, actor_id: Optional[int]) -> bool:
        raise NotImplementedError

    def apply_status_change(
        self,
        *,
        payroll_id: int,
        change: StatusChange,
        expected_status: Optional[PayrollStatus] = None,
    ) -> bool:
        """Single UPDATE. With `expected_status`, only applies while the row still has it."""

        raise NotImplementedError

    def delete(self, payroll_id: int) -> bool:
        raise NotImplementedError

    def search(self, *, filters: PayrollFilter, page: int, limit: int) -> Tuple[Sequence[PayrollRecord], int]:
        raise NotImplementedError

    def list_matching(self, *, filters: PayrollFilter) -> Sequence[PayrollRecord]:
        raise NotImplementedError
