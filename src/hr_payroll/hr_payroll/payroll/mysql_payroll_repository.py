from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Optional, Sequence, Tuple

from mysql.connector.errors import IntegrityError

from ..core.enums import PayrollStatus
from ..core.exceptions import DuplicatePeriodError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import (
    Deductions,
    Earnings,
    NewPayroll,
    PayrollBreakdown,
    PayrollFilter,
    PayrollRecord,
    PayrollSummary,
    StatusChange,
    deductions_from_dict,
    deductions_to_dict,
    earnings_from_dict,
    earnings_to_dict,
    manual_inputs_from_dict,
)
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, employee_id, employee_name, employee_code, department, designation,
    period_start, period_end, month, year, status,
    gross_earnings, total_deductions, net_payable, net_payable_in_words, payable_days,
    salary_basis, attendance_summary, earnings, deductions, meal_deduction, onsite_benefits,
    calculation, manual_inputs, employee_approved, employee_approved_at, acceptance,
    auto_generated, notes, created_by, created_at, updated_by, updated_at,
    approved_by, approved_at, rejected_by, rejected_at, rejection_reason, payment_date, is_deleted
"""


def _to_payroll(r: dict) -> PayrollRecord:
    breakdown = PayrollBreakdown(
        salary_basis=load_json(r.get("salary_basis"), {}),
        attendance=load_json(r.get("attendance_summary"), {}),
        earnings=earnings_from_dict(load_json(r.get("earnings"), {})),
        deductions=deductions_from_dict(load_json(r.get("deductions"), {})),
        summary=PayrollSummary(
            gross_earnings=float(r.get("gross_earnings") or 0),
            total_deductions=float(r.get("total_deductions") or 0),
            net_payable=float(r.get("net_payable") or 0),
            net_payable_in_words=r.get("net_payable_in_words") or "",
            payable_days=float(r.get("payable_days") or 0),
        ),
        meal=load_json(r.get("meal_deduction"), {}),
        onsite=load_json(r.get("onsite_benefits"), {}),
        calculation=load_json(r.get("calculation"), {}),
        manual_inputs=manual_inputs_from_dict(load_json(r.get("manual_inputs"), {})),
    )
    return PayrollRecord(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        employee_name=r["employee_name"],
        employee_code=r["employee_code"],
        department=r.get("department"),
        designation=r.get("designation"),
        period_start=r["period_start"],
        period_end=r["period_end"],
        month=int(r["month"]),
        year=int(r["year"]),
        status=PayrollStatus(r["status"]),
        breakdown=breakdown,
        created_at=r["created_at"],
        employee_approved=bool(r.get("employee_approved")),
        employee_approved_at=r.get("employee_approved_at"),
        acceptance=load_json(r.get("acceptance")),
        auto_generated=bool(r.get("auto_generated")),
        notes=r.get("notes"),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
        updated_at=r.get("updated_at"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        rejected_by=r.get("rejected_by"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
        payment_date=r.get("payment_date"),
        is_deleted=bool(r.get("is_deleted")),
    )


def _breakdown_params(b: PayrollBreakdown) -> tuple:
    s = b.summary
    return (
        s.gross_earnings,
        s.total_deductions,
        s.net_payable,
        s.net_payable_in_words,
        s.payable_days,
        dump_json(b.salary_basis),
        dump_json(b.attendance),
        dump_json(earnings_to_dict(b.earnings)),
        dump_json(deductions_to_dict(b.deductions)),
        dump_json(b.meal),
        dump_json(b.onsite),
        dump_json(b.calculation),
        dump_json(asdict(b.manual_inputs)),
    )


def _where(filters: PayrollFilter) -> Tuple[str, list]:
    clauses = ["is_deleted=0"]
    params: list[object] = []

    if filters.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(int(filters.employee_id))
    if filters.month is not None:
        clauses.append("month=%s")
        params.append(int(filters.month))
    if filters.year is not None:
        clauses.append("year=%s")
        params.append(int(filters.year))
    if filters.status is not None:
        clauses.append("status=%s")
        params.append(filters.status.value)
    if filters.department:
        clauses.append("department=%s")
        params.append(filters.department)
    if filters.search:
        like = f"%{filters.search}%"
        clauses.append("(employee_name LIKE %s OR employee_code LIKE %s OR department LIKE %s)")
        params.extend([like] * 3)

    return " AND ".join(clauses), params


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, payroll: NewPayroll) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO payroll_records(
                        gross_earnings, total_deductions, net_payable, net_payable_in_words, payable_days,
                        salary_basis, attendance_summary, earnings, deductions, meal_deduction,
                        onsite_benefits, calculation, manual_inputs,
                        employee_id, employee_name, employee_code, department, designation,
                        period_start, period_end, month, year, status, auto_generated, notes,
                        created_by, updated_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _breakdown_params(payroll.breakdown)
                    + (
                        int(payroll.employee_id),
                        payroll.employee_name,
                        payroll.employee_code,
                        payroll.department,
                        payroll.designation,
                        payroll.period_start,
                        payroll.period_end,
                        int(payroll.month),
                        int(payroll.year),
                        PayrollStatus.PENDING.value,
                        bool(payroll.auto_generated),
                        payroll.notes,
                        payroll.created_by,
                        payroll.created_by,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicatePeriodError(
                    f"Payroll already exists for employee {payroll.employee_id} "
                    f"starting {payroll.period_start.isoformat()}"
                ) from e
            raise

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payroll_records WHERE payroll_id=%s AND is_deleted=0",
                (int(payroll_id),),
            )
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def find_overlapping(self, *, employee_id: int, period_start: date, period_end: date) -> Sequence[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll_records
                WHERE employee_id=%s AND period_start<=%s AND period_end>=%s AND is_deleted=0
                ORDER BY period_start
                """,
                (int(employee_id), period_end, period_start),
            )
            return [_to_payroll(r) for r in fetchall(cur)]

    def find_exact_period(self, *, employee_id: int, period_start: date, period_end: date) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll_records
                WHERE employee_id=%s AND period_start=%s AND period_end=%s AND is_deleted=0
                """,
                (int(employee_id), period_start, period_end),
            )
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def find_enclosing(self, *, employee_id: int, start_date: date, end_date: date) -> Optional[PayrollRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll_records
                WHERE employee_id=%s AND period_start<=%s AND period_end>=%s AND is_deleted=0
                ORDER BY period_start DESC
                LIMIT 1
                FOR UPDATE
                """,
                (int(employee_id), start_date, end_date),
            )
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def save_amounts(
        self,
        *,
        payroll_id: int,
        earnings: Earnings,
        deductions: Deductions,
        summary: PayrollSummary,
        actor_id: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET earnings=%s, deductions=%s, gross_earnings=%s, total_deductions=%s,
                    net_payable=%s, net_payable_in_words=%s, payable_days=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE payroll_id=%s
                """,
                (
                    dump_json(earnings_to_dict(earnings)),
                    dump_json(deductions_to_dict(deductions)),
                    summary.gross_earnings,
                    summary.total_deductions,
                    summary.net_payable,
                    summary.net_payable_in_words,
                    summary.payable_days,
                    actor_id,
                    int(payroll_id),
                ),
            )
            return cur.rowcount > 0

    def save_breakdown(self, *, payroll_id: int, breakdown: PayrollBreakdown, actor_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payroll_records
                SET gross_earnings=%s, total_deductions=%s, net_payable=%s, net_payable_in_words=%s,
                    payable_days=%s, salary_basis=%s, attendance_summary=%s, earnings=%s, deductions=%s,
                    meal_deduction=%s, onsite_benefits=%s, calculation=%s, manual_inputs=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE payroll_id=%s
                """,
                _breakdown_params(breakdown) + (actor_id, int(payroll_id)),
            )
            return cur.rowcount > 0

    def apply_status_change(
        self,
        *,
        payroll_id: int,
        change: StatusChange,
        expected_status: Optional[PayrollStatus] = None,
    ) -> bool:
        sets = ["updated_by=%s", "updated_at=NOW()"]
        params: list[object] = [change.actor_id]

        columns = {
            "status": change.status.value if change.status else None,
            "employee_approved": change.employee_approved,
            "employee_approved_at": change.employee_approved_at,
            "approved_by": change.approved_by,
            "approved_at": change.approved_at,
            "rejected_by": change.rejected_by,
            "rejected_at": change.rejected_at,
            "rejection_reason": change.rejection_reason,
            "payment_date": change.payment_date,
            "acceptance": dump_json(change.acceptance),
        }
        for column, value in columns.items():
            if value is not None:
                sets.append(f"{column}=%s")
                params.append(value)

        where = "payroll_id=%s AND is_deleted=0"
        params.append(int(payroll_id))
        if expected_status is not None:
            where += " AND status=%s"
            params.append(expected_status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE payroll_records SET {', '.join(sets)} WHERE {where}", tuple(params))
            return cur.rowcount > 0

    def delete(self, payroll_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payroll_records WHERE payroll_id=%s", (int(payroll_id),))
            return cur.rowcount > 0

    def search(self, *, filters: PayrollFilter, page: int, limit: int) -> Tuple[Sequence[PayrollRecord], int]:
        where, params = _where(filters)
        offset = (max(int(page), 1) - 1) * int(limit)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS cnt FROM payroll_records WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("cnt", 0))
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM payroll_records
                WHERE {where}
                ORDER BY year DESC, month DESC, employee_name
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset]),
            )
            return [_to_payroll(r) for r in fetchall(cur)], total

    def list_matching(self, *, filters: PayrollFilter) -> Sequence[PayrollRecord]:
        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payroll_records WHERE {where} ORDER BY year DESC, month DESC, employee_name",
                tuple(params),
            )
            return [_to_payroll(r) for r in fetchall(cur)]
