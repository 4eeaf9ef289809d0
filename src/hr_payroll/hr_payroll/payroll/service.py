from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import nullcontext
from dataclasses import replace
from datetime import date
from typing import Any, Callable, ContextManager, Optional

from ..common.datetime_utils import clip_range, inclusive_days, month_bounds, now_local, previous_month, today_local
from ..common.money import round_money
from ..common.validators import non_negative_amount, optional_bool, optional_enum, require_date, require_enum
from ..core.constants import LEAVE_ADJUSTMENT_DAYS_DIVISOR
from ..core.enums import LeavePayStatus, LeaveStatus, PayrollAction, PayrollStatus, Role
from ..core.exceptions import (
    AlreadyProcessedError,
    AuthorizationError,
    DomainError,
    DuplicatePeriodError,
    EmployeeNotFoundError,
    NotFoundError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leaves.model import LeaveRequest
from ..leaves.repository import LeaveRepository
from ..meals.repository import MealRepository
from .benefits import meal_deduction, onsite_benefits
from .calculator.base import PayrollCalculator, SalaryBreakdown
from .model import (
    Deductions,
    Earnings,
    ManualAmount,
    ManualInputs,
    NewPayroll,
    PayrollBreakdown,
    PayrollFilter,
    PayrollRecord,
    StatusChange,
    breakdown_to_dict,
    summarize,
)
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

DATA_SOURCES = ["attendance_records", "leave_requests", "salary_rules", "meals"]

# Keys accepted in request bodies, mapped to ManualInputs fields.
_MANUAL_KEYS = {
    "overtime": "overtime",
    "bonus": "bonus",
    "allowance": "allowance",
    "tax": "tax",
    "providentFund": "provident_fund",
    "advanceSalary": "advance_salary",
    "loan": "loan",
    "otherDeductions": "other",
    "dailyMealRate": "daily_meal_rate",
}

# Payrolls a leave approval must not modify.
_FINALIZED = (PayrollStatus.PAID, PayrollStatus.APPROVED, PayrollStatus.REJECTED)


def parse_manual_inputs(payload: dict, *, base: Optional[ManualInputs] = None) -> ManualInputs:
    """Admin-entered amounts. With `base`, keys absent from the payload are kept."""
    source = payload.get("manualInputs") if isinstance(payload.get("manualInputs"), dict) else payload
    changes = {}
    for key, field_name in _MANUAL_KEYS.items():
        if key in source:
            changes[field_name] = non_negative_amount(source.get(key), key)
    return replace(base or ManualInputs(), **changes)


def leave_deduction_amount(basic_pay: float, days: int, pay_status: LeavePayStatus) -> float:
    """basic/30 per day; HalfPaid leave costs half of that. Paid leave costs nothing."""
    if pay_status == LeavePayStatus.PAID:
        return 0.0
    amount = basic_pay / LEAVE_ADJUSTMENT_DAYS_DIVISOR * days
    if pay_status == LeavePayStatus.HALF_PAID:
        amount *= 0.5
    return amount


def _period_from_payload(payload: dict) -> tuple[date, date]:
    start = require_date(payload.get("periodStart"), "periodStart")
    end = require_date(payload.get("periodEnd"), "periodEnd")
    if end < start:
        raise ValidationError("periodEnd must be on or after periodStart")
    return start, end


class PayrollService:
    """Payroll record manager: calculates, persists and moves records through their lifecycle."""

    def __init__(
        self,
        payrolls: PayrollRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        meals: MealRepository,
        calculator: PayrollCalculator,
        *,
        transaction: Callable[[], ContextManager] = nullcontext,
    ):
        self._payrolls = payrolls
        self._employees = employees
        self._leaves = leaves
        self._meals = meals
        self._calculator = calculator
        self._transaction = transaction

    # ---- calculation ----

    def _build_breakdown(
        self,
        employee: Employee,
        calc: SalaryBreakdown,
        manual: ManualInputs,
        *,
        actor_id: Optional[int],
        leave_adjustments: float = 0.0,
    ) -> PayrollBreakdown:
        meal = meal_deduction(
            self._meals,
            employee_id=employee.employee_id,
            period_start=calc.period_start,
            period_end=calc.period_end,
            daily_meal_rate=manual.daily_meal_rate,
        )
        onsite = onsite_benefits(employee, present_days=calc.present_days, half_days=calc.half_days)

        leave_deduction = 0.0
        if not calc.per_day_salary_calculation:
            leave_deduction = self._approved_unpaid_leave_deduction(
                employee.employee_id, calc.period_start, calc.period_end, basic_pay=calc.basic_pay
            )
            # Every approved Unpaid/HalfPaid leave is counted above, including the
            # ones an approval already charged through leave_adjustments.
            leave_adjustments = 0.0

        earnings = Earnings(
            basic_pay=round_money(calc.basic_pay),
            overtime=ManualAmount.of(manual.overtime),
            bonus=ManualAmount.of(manual.bonus),
            allowance=ManualAmount.of(manual.allowance),
            rule_additions=round_money(calc.total_addition),
            onsite_tea_allowance=onsite.tea_allowance,
        )
        deductions = Deductions(
            late=round_money(calc.late_deduction),
            absent=round_money(calc.absent_deduction),
            leave=round_money(leave_deduction),
            half_day=round_money(calc.half_day_deduction),
            rule_deductions=round_money(calc.total_deduction),
            tax=round_money(manual.tax),
            provident_fund=round_money(manual.provident_fund),
            advance_salary=round_money(manual.advance_salary),
            loan=round_money(manual.loan),
            other=round_money(manual.other),
            meal=round_money(meal.amount),
            onsite_service_charge=onsite.service_charge,
            leave_adjustments=round_money(leave_adjustments),
        )
        summary = summarize(earnings, deductions, payable_days=calc.present_days + calc.half_days * 0.5)
        if summary.net_payable < 0:
            logger.warning(
                "Net payable is negative (%s) for employee %s, period %s..%s",
                summary.net_payable,
                employee.employee_id,
                calc.period_start,
                calc.period_end,
            )

        rates = calc.to_dict()
        return PayrollBreakdown(
            salary_basis={
                "annual_salary": round_money(employee.annual_salary),
                "monthly_salary": rates["rates"]["monthly"],
                "daily_rate": rates["rates"]["daily"],
                "hourly_rate": rates["rates"]["hourly"],
                "working_days_per_month": calc.total_working_days,
                "per_day_salary_calculation": calc.per_day_salary_calculation,
            },
            attendance={
                "total_working_days": calc.total_working_days,
                "present_days": calc.present_days,
                "absent_days": calc.absent_days,
                "late_days": calc.late_days,
                "leave_days": calc.leave_days,
                "half_days": calc.half_days,
                "holidays": calc.holidays,
                "weekly_offs": calc.weekly_offs,
                "attendance_percentage": rates["attendance_percentage"],
            },
            earnings=earnings,
            deductions=deductions,
            summary=summary,
            meal=meal.to_dict(),
            onsite=onsite.to_dict(),
            calculation={
                "method": calc.calculation_method,
                "calculated_by": actor_id,
                "calculated_at": calc.calculated_date.isoformat(),
                "data_sources": list(DATA_SOURCES),
                "rules_applied": calc.rules_applied,
                "components": rates["components"],
                "late_days_deducted": calc.late_deduction_days,
                "total_addition": rates["total_addition"],
                "total_deduction": rates["total_deduction"],
            },
            manual_inputs=manual,
        )

    def _approved_unpaid_leave_deduction(self, employee_id: int, start: date, end: date, *, basic_pay: float) -> float:
        total = 0.0
        for leave in self._leaves.find_overlapping(
            employee_id=employee_id, start_date=start, end_date=end, statuses=[LeaveStatus.APPROVED]
        ):
            clipped = clip_range(leave.start_date, leave.end_date, start, end)
            if clipped:
                total += leave_deduction_amount(basic_pay, inclusive_days(*clipped), leave.pay_status)
        return total

    def _calculate(
        self,
        employee: Employee,
        period_start: date,
        period_end: date,
        manual: ManualInputs,
        *,
        actor_id: Optional[int],
        leave_adjustments: float = 0.0,
    ) -> tuple[SalaryBreakdown, PayrollBreakdown]:
        calc = self._calculator.calculate(
            employee_id=employee.employee_id, period_start=period_start, period_end=period_end
        )
        breakdown = self._build_breakdown(
            employee, calc, manual, actor_id=actor_id, leave_adjustments=leave_adjustments
        )
        return calc, breakdown

    def _get_employee(self, employee_id: Any) -> Employee:
        try:
            employee_id = int(employee_id)
        except (TypeError, ValueError):
            raise ValidationError("employeeId is required")
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise EmployeeNotFoundError(employee_id)
        return employee

    def preview(self, *, current_role: Role, actor_id: int, payload: dict) -> dict:
        """Run the calculation without persisting anything."""
        self._require_admin(current_role)
        employee = self._get_employee(payload.get("employeeId"))
        start, end = _period_from_payload(payload)
        calc, breakdown = self._calculate(employee, start, end, parse_manual_inputs(payload), actor_id=actor_id)
        return {"calculation": calc.to_dict(), "payroll": breakdown_to_dict(breakdown)}

    # ---- creation ----

    def create_payroll(self, *, current_role: Role, actor_id: int, payload: dict) -> PayrollRecord:
        self._require_admin(current_role)
        if not payload.get("employeeId") or not payload.get("periodStart") or not payload.get("periodEnd"):
            raise ValidationError("employeeId, periodStart and periodEnd are required")

        employee = self._get_employee(payload.get("employeeId"))
        start, end = _period_from_payload(payload)
        manual = parse_manual_inputs(payload)
        notes = (payload.get("notes") or "").strip() or None

        payroll_id = self._create(employee, start, end, manual, actor_id=actor_id, notes=notes)
        logger.info("Payroll %s created for employee %s (%s..%s)", payroll_id, employee.employee_id, start, end)
        return self._payrolls.get_by_id(payroll_id)

    def _ensure_no_overlap(self, employee_id: int, start: date, end: date) -> None:
        existing = self._payrolls.find_overlapping(employee_id=employee_id, period_start=start, period_end=end)
        if existing:
            p = existing[0]
            raise DuplicatePeriodError(
                f"Payroll already exists for this employee for period "
                f"{p.period_start.isoformat()} to {p.period_end.isoformat()}"
            )

    def _create(
        self,
        employee: Employee,
        start: date,
        end: date,
        manual: ManualInputs,
        *,
        actor_id: Optional[int],
        notes: Optional[str] = None,
    ) -> int:
        self._ensure_no_overlap(employee.employee_id, start, end)
        _, breakdown = self._calculate(employee, start, end, manual, actor_id=actor_id)

        with self._transaction():
            self._employees.lock_for_update(employee.employee_id)
            self._ensure_no_overlap(employee.employee_id, start, end)
            return self._payrolls.create(
                payroll=NewPayroll(
                    employee_id=employee.employee_id,
                    employee_name=employee.full_name,
                    employee_code=employee.employee_code,
                    department=employee.department,
                    designation=employee.designation,
                    period_start=start,
                    period_end=end,
                    month=start.month,
                    year=start.year,
                    breakdown=breakdown,
                    created_by=actor_id,
                    auto_generated=True,
                    notes=notes,
                )
            )

    def generate_monthly_batch(self, *, today: Optional[date] = None, actor_id: Optional[int] = None) -> dict:
        """Payroll for the previous calendar month for every active non-admin employee.

        Employees that already have a record for the exact period are skipped;
        failures are collected per employee and never abort the batch.
        """

        month, year = previous_month(today or today_local())
        start, end = month_bounds(month, year)
        employees = list(self._employees.list_active_non_admin())

        results: list[dict] = []
        errors: list[dict] = []
        skipped = 0
        total_net = 0.0

        for employee in employees:
            if self._payrolls.find_exact_period(employee_id=employee.employee_id, period_start=start, period_end=end):
                skipped += 1
                continue
            try:
                payroll_id = self._create(employee, start, end, ManualInputs(), actor_id=actor_id)
            except DuplicatePeriodError as e:
                skipped += 1
                logger.info("Skipped employee %s: %s", employee.employee_id, e)
                continue
            except DomainError as e:
                logger.warning("Payroll failed for employee %s: %s", employee.employee_id, e)
                errors.append(
                    {"employee_id": employee.employee_id, "employee_code": employee.employee_code, "error": str(e)}
                )
                continue
            except Exception as e:
                logger.exception("Unexpected payroll failure for employee %s", employee.employee_id)
                errors.append(
                    {"employee_id": employee.employee_id, "employee_code": employee.employee_code, "error": str(e)}
                )
                continue

            record = self._payrolls.get_by_id(payroll_id)
            net = record.net_payable if record else 0.0
            total_net += net
            results.append(
                {
                    "payroll_id": payroll_id,
                    "employee_id": employee.employee_id,
                    "employee_code": employee.employee_code,
                    "employee_name": employee.full_name,
                    "net_payable": net,
                }
            )

        logger.info(
            "Monthly payroll %02d/%s: %s created, %s skipped, %s failed",
            month,
            year,
            len(results),
            skipped,
            len(errors),
        )
        return {
            "period": {"month": month, "year": year, "start": start.isoformat(), "end": end.isoformat()},
            "total_employees": len(employees),
            "created": len(results),
            "skipped": skipped,
            "failed": len(errors),
            "total_net_payable": round_money(total_net),
            "results": results,
            "errors": errors,
        }

    # ---- lifecycle ----

    def update_status(self, *, current_role: Role, actor_id: int, payroll_id: int, payload: dict) -> PayrollRecord:
        self._require_admin(current_role)
        payroll = self._get(payroll_id)

        status = optional_enum(PayrollStatus, payload.get("status"), "status")
        employee_approved = optional_bool(payload.get("employeeApproved"), "employeeApproved")
        if status is None and employee_approved is None:
            raise ValidationError("status or employeeApproved is required")
        if status is not None and status != payroll.status and payroll.status in (
            PayrollStatus.PAID,
            PayrollStatus.REJECTED,
        ):
            raise AlreadyProcessedError("Payroll", payroll.status.value)

        now = now_local()
        change = StatusChange(actor_id=actor_id, status=status)
        if status == PayrollStatus.APPROVED:
            change = replace(change, approved_by=actor_id, approved_at=now)
        elif status == PayrollStatus.REJECTED:
            change = replace(
                change,
                rejected_by=actor_id,
                rejected_at=now,
                rejection_reason=(payload.get("rejectionReason") or "").strip() or None,
            )
        elif status == PayrollStatus.PAID:
            change = replace(change, payment_date=now)

        if employee_approved is not None:
            change = replace(change, employee_approved=employee_approved)
            if employee_approved and not payroll.employee_approved:
                change = replace(change, employee_approved_at=now)

        self._payrolls.apply_status_change(payroll_id=payroll.payroll_id, change=change)
        logger.info("Payroll %s status updated by %s", payroll.payroll_id, actor_id)
        return self._get(payroll.payroll_id)

    def employee_action(
        self,
        *,
        actor_id: int,
        payroll_id: int,
        action: Any,
        reason: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> PayrollRecord:
        """Employee accepts (-> Paid) or rejects (-> Rejected) a Pending payroll.

        Status and approval flag are written by one conditional UPDATE.
        """

        action = require_enum(PayrollAction, action, "action")
        payroll = self._get(payroll_id)
        if int(payroll.employee_id) != int(actor_id):
            raise AuthorizationError("You can only act on your own payroll")
        if payroll.status != PayrollStatus.PENDING:
            raise AlreadyProcessedError("Payroll", payroll.status.value)

        now = now_local()
        acceptance = {
            "accepted": action == PayrollAction.ACCEPT,
            "actor": actor_id,
            "at": now.isoformat(),
            "ip": ip,
            "user_agent": user_agent,
        }
        if action == PayrollAction.ACCEPT:
            change = StatusChange(
                actor_id=actor_id,
                status=PayrollStatus.PAID,
                employee_approved=True,
                employee_approved_at=now,
                payment_date=now,
                acceptance=acceptance,
            )
        else:
            change = StatusChange(
                actor_id=actor_id,
                status=PayrollStatus.REJECTED,
                employee_approved=False,
                rejected_by=actor_id,
                rejected_at=now,
                rejection_reason=(reason or "").strip() or "No reason provided",
                acceptance=acceptance,
            )

        ok = self._payrolls.apply_status_change(
            payroll_id=payroll.payroll_id, change=change, expected_status=PayrollStatus.PENDING
        )
        if not ok:
            current = self._get(payroll.payroll_id)
            raise AlreadyProcessedError("Payroll", current.status.value)

        logger.info("Payroll %s %s by employee %s", payroll.payroll_id, change.status.value, actor_id)
        return self._get(payroll.payroll_id)

    def delete(self, *, current_role: Role, payroll_id: int) -> None:
        self._require_admin(current_role)
        payroll = self._get(payroll_id)
        self._payrolls.delete(payroll.payroll_id)
        logger.info("Payroll %s deleted", payroll.payroll_id)

    def update_manual_inputs(
        self, *, current_role: Role, actor_id: int, payroll_id: int, payload: dict
    ) -> PayrollRecord:
        self._require_admin(current_role)
        payroll = self._get(payroll_id)
        if payroll.status == PayrollStatus.PAID:
            raise ValidationError("Paid payroll cannot be changed")

        b = payroll.breakdown
        manual = parse_manual_inputs(payload, base=b.manual_inputs)
        earnings = replace(
            b.earnings,
            overtime=ManualAmount.of(manual.overtime),
            bonus=ManualAmount.of(manual.bonus),
            allowance=ManualAmount.of(manual.allowance),
        )
        deductions = replace(
            b.deductions,
            tax=round_money(manual.tax),
            provident_fund=round_money(manual.provident_fund),
            advance_salary=round_money(manual.advance_salary),
            loan=round_money(manual.loan),
            other=round_money(manual.other),
        )
        summary = summarize(earnings, deductions, payable_days=b.summary.payable_days)
        breakdown = replace(b, earnings=earnings, deductions=deductions, summary=summary, manual_inputs=manual)
        self._payrolls.save_breakdown(payroll_id=payroll.payroll_id, breakdown=breakdown, actor_id=actor_id)
        return self._get(payroll.payroll_id)

    def recalculate(self, *, current_role: Role, actor_id: int, payroll_id: int) -> PayrollRecord:
        """Re-run the calculation, keeping manual inputs.

        Leave adjustments are carried only in per-day mode; in monthly mode the
        calculation deducts approved leaves itself.
        """
        self._require_admin(current_role)
        payroll = self._get(payroll_id)
        if payroll.status == PayrollStatus.PAID:
            raise ValidationError("Paid payroll cannot be recalculated")

        employee = self._get_employee(payroll.employee_id)
        _, breakdown = self._calculate(
            employee,
            payroll.period_start,
            payroll.period_end,
            payroll.breakdown.manual_inputs,
            actor_id=actor_id,
            leave_adjustments=payroll.breakdown.deductions.leave_adjustments,
        )
        self._payrolls.save_breakdown(payroll_id=payroll.payroll_id, breakdown=breakdown, actor_id=actor_id)
        logger.info("Payroll %s recalculated by %s", payroll.payroll_id, actor_id)
        return self._get(payroll.payroll_id)

    def apply_leave_adjustment(self, *, leave: LeaveRequest, pay_status: LeavePayStatus, actor_id: int) -> dict:
        """Add an approved Unpaid/HalfPaid leave to the payroll enclosing it.

        Finalized payrolls (Paid, Approved, Rejected) are left untouched.
        """

        if pay_status == LeavePayStatus.PAID:
            return {"applied": False, "reason": "Paid leave"}

        payroll = self._payrolls.find_enclosing(
            employee_id=leave.employee_id, start_date=leave.start_date, end_date=leave.end_date
        )
        if not payroll:
            return {"applied": False, "reason": "No payroll covers the leave period"}
        if payroll.status in _FINALIZED:
            logger.warning(
                "Leave %s approved but payroll %s is %s; adjustment skipped",
                leave.leave_id,
                payroll.payroll_id,
                payroll.status.value,
            )
            return {
                "applied": False,
                "payroll_id": payroll.payroll_id,
                "reason": f"Payroll is {payroll.status.value}",
            }

        amount = round_money(leave_deduction_amount(payroll.basic_pay, leave.total_days, pay_status))
        b = payroll.breakdown
        deductions = replace(b.deductions, leave_adjustments=round_money(b.deductions.leave_adjustments + amount))
        summary = summarize(b.earnings, deductions, payable_days=b.summary.payable_days)
        self._payrolls.save_amounts(
            payroll_id=payroll.payroll_id,
            earnings=b.earnings,
            deductions=deductions,
            summary=summary,
            actor_id=actor_id,
        )
        logger.info("Leave %s deducted %s from payroll %s", leave.leave_id, amount, payroll.payroll_id)
        return {"applied": True, "payroll_id": payroll.payroll_id, "amount": amount, "net_payable": summary.net_payable}

    # ---- reads ----

    def _get(self, payroll_id: int) -> PayrollRecord:
        payroll = self._payrolls.get_by_id(int(payroll_id))
        if not payroll:
            raise NotFoundError("Payroll not found")
        return payroll

    def get(self, *, current_role: Role, actor_id: int, payroll_id: int) -> PayrollRecord:
        payroll = self._get(payroll_id)
        if current_role != Role.ADMIN and int(payroll.employee_id) != int(actor_id):
            raise AuthorizationError("You can only view your own payroll")
        return payroll

    def list_payrolls(self, *, current_role: Role, filters: PayrollFilter, page: int, limit: int) -> tuple[list, int, dict]:
        """One page plus money totals over every matching record."""
        self._require_admin(current_role)
        rows, total = self._payrolls.search(filters=filters, page=page, limit=limit)
        return list(rows), total, self._money_summary(self._payrolls.list_matching(filters=filters))

    def list_for_employee(
        self, *, current_role: Role, actor_id: int, employee_id: int, year: Optional[int] = None
    ) -> dict:
        if current_role != Role.ADMIN and int(employee_id) != int(actor_id):
            raise AuthorizationError("You can only view your own payroll")

        records = list(self._payrolls.list_matching(filters=PayrollFilter(employee_id=int(employee_id), year=year)))
        by_status: dict[str, int] = defaultdict(int)
        for p in records:
            by_status[p.status.value] += 1

        return {
            "records": records,
            "summary": {
                **self._money_summary(records),
                "by_status": dict(by_status),
                "by_month": [
                    {
                        "month": p.month,
                        "year": p.year,
                        "net_payable": p.net_payable,
                        "status": p.status.value,
                    }
                    for p in records
                ],
            },
        }

    @staticmethod
    def _money_summary(records) -> dict:
        records = list(records)
        return {
            "total_records": len(records),
            "total_gross_earnings": round_money(sum(p.breakdown.summary.gross_earnings for p in records)),
            "total_deductions": round_money(sum(p.breakdown.summary.total_deductions for p in records)),
            "total_net_payable": round_money(sum(p.net_payable for p in records)),
        }

    def stats(self, *, current_role: Role, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        self._require_admin(current_role)
        records = list(self._payrolls.list_matching(filters=PayrollFilter(month=month, year=year)))

        by_status = {s.value: 0 for s in PayrollStatus}
        departments: dict[str, dict] = {}
        for p in records:
            by_status[p.status.value] += 1
            dept = departments.setdefault(
                p.department or "Unassigned", {"department": p.department or "Unassigned", "count": 0, "total_net": 0.0}
            )
            dept["count"] += 1
            dept["total_net"] = round_money(dept["total_net"] + p.net_payable)

        return {
            "month": month,
            "year": year,
            **self._money_summary(records),
            "by_status": by_status,
            "employee_approved": sum(1 for p in records if p.employee_approved),
            "departments": sorted(departments.values(), key=lambda d: d["total_net"], reverse=True),
        }

    def export(self, *, current_role: Role, filters: PayrollFilter) -> list[dict]:
        """Flat rows for spreadsheet generation."""
        self._require_admin(current_role)
        rows = []
        for p in self._payrolls.list_matching(filters=filters):
            e, d, s = p.breakdown.earnings, p.breakdown.deductions, p.breakdown.summary
            rows.append(
                {
                    "Employee ID": p.employee_code,
                    "Employee Name": p.employee_name,
                    "Department": p.department or "",
                    "Designation": p.designation or "",
                    "Period": f"{p.period_start.isoformat()} to {p.period_end.isoformat()}",
                    "Month": p.month,
                    "Year": p.year,
                    "Basic Pay": e.basic_pay,
                    "Overtime": e.overtime.amount,
                    "Bonus": e.bonus.amount,
                    "Allowance": e.allowance.amount,
                    "Onsite Tea Allowance": e.onsite_tea_allowance,
                    "Gross Earnings": s.gross_earnings,
                    "Late Deduction": d.late,
                    "Absent Deduction": d.absent,
                    "Leave Deduction": round_money(d.leave + d.leave_adjustments),
                    "Meal Deduction": d.meal,
                    "Total Deductions": s.total_deductions,
                    "Net Payable": s.net_payable,
                    "In Words": s.net_payable_in_words,
                    "Status": p.status.value,
                    "Employee Approved": "Yes" if p.employee_approved else "No",
                    "Payment Date": p.payment_date.isoformat() if p.payment_date else "",
                }
            )
        return rows

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admin can manage payroll")
