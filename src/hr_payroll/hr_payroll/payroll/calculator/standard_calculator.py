from __future__ import annotations

import math
from datetime import date
from typing import Optional, Sequence

from ...attendance.model import AttendanceSummary
from ...attendance.repository import AttendanceRepository
from ...common.datetime_utils import clip_range, inclusive_days, now_local
from ...core.constants import DEFAULT_LATE_THRESHOLD, HOURS_PER_WORKING_DAY
from ...core.enums import ComponentType, LeaveStatus
from ...core.exceptions import EmployeeNotFoundError, ValidationError
from ...employees.repository import EmployeeRepository
from ...leaves.repository import LeaveRepository
from ...salary_rules.model import PayComponent, SalaryRule
from ...salary_rules.service import SalaryRuleService
from .base import ComponentAmount, PayrollCalculator, SalaryBreakdown
from .formula import evaluate_formula

PER_DAY_METHOD = "per_day_attendance"
MONTHLY_METHOD = "fixed_monthly"


def component_amount(component: PayComponent, *, basic: float) -> float:
    if component.type == ComponentType.PERCENTAGE:
        return basic * component.value / 100
    if component.type == ComponentType.FIXED:
        return component.value
    return evaluate_formula(component.expression or "", basic=basic)


def late_policy_deduction(late_days: int, policies: Sequence[SalaryRule], *, daily_rate: float) -> tuple[float, float]:
    """(amount, salary days deducted) for every late policy: floor(late / t) * d days."""
    days = 0.0
    for rule in policies:
        threshold = rule.conditions.threshold or DEFAULT_LATE_THRESHOLD
        days += math.floor(late_days / threshold) * rule.deduction_amount
    return days * daily_rate, days


class StandardSalaryCalculator(PayrollCalculator):
    """Rule-set driven calculation over the attendance ledger and approved leaves.

    Reads only; nothing is persisted here.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        leaves: LeaveRepository,
        rules: SalaryRuleService,
    ):
        self._employees = employees
        self._attendance = attendance
        self._leaves = leaves
        self._rules = rules

    def calculate(self, *, employee_id: int, period_start: date, period_end: date) -> SalaryBreakdown:
        if period_end < period_start:
            raise ValidationError("periodEnd must be on or after periodStart")

        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise EmployeeNotFoundError(employee_id)

        calculated_at = now_local()
        rule_set = self._rules.current_rule_set(as_of=calculated_at)
        working_days = rule_set.working_days_per_month

        summary = AttendanceSummary.from_counts(
            self._attendance.count_by_status(
                employee_id=employee.employee_id, start_date=period_start, end_date=period_end
            )
        )

        monthly_basic = employee.monthly_salary
        daily_rate = monthly_basic / working_days
        hourly_rate = daily_rate / HOURS_PER_WORKING_DAY

        if rule_set.per_day_salary_calculation:
            basic_pay = daily_rate * summary.present_days
        else:
            basic_pay = monthly_basic

        attendance_percentage = summary.present_days / working_days * 100
        leave_days = self._approved_leave_days(employee.employee_id, period_start, period_end)

        components = tuple(
            ComponentAmount(name=c.name, type=c.type.value, amount=component_amount(c, basic=basic_pay))
            for c in rule_set.components
        )
        total_addition = sum(component_amount(c, basic=basic_pay) for c in rule_set.additions)
        total_deduction = sum(component_amount(c, basic=basic_pay) for c in rule_set.deductions)

        late_deduction = late_days_deducted = absent_deduction = half_day_deduction = 0.0
        if not rule_set.per_day_salary_calculation:
            # Per-day mode already leaves every non-Present day unpaid.
            late_deduction, late_days_deducted = late_policy_deduction(
                summary.late_days, self._rules.late_policies(as_of=calculated_at), daily_rate=daily_rate
            )
            absent_deduction = summary.absent_days * daily_rate
            half_day_deduction = summary.half_days * 0.5 * daily_rate

        return SalaryBreakdown(
            employee=employee,
            period_start=period_start,
            period_end=period_end,
            monthly_basic=monthly_basic,
            daily_rate=daily_rate,
            hourly_rate=hourly_rate,
            basic_pay=basic_pay,
            total_working_days=working_days,
            present_days=summary.present_days,
            absent_days=summary.absent_days,
            late_days=summary.late_days,
            half_days=summary.half_days,
            holidays=summary.holidays,
            weekly_offs=summary.weekly_offs,
            attendance_percentage=attendance_percentage,
            leave_days=leave_days,
            total_addition=total_addition,
            total_deduction=total_deduction,
            net_payable=basic_pay + total_addition - total_deduction,
            components=components,
            late_deduction=late_deduction,
            late_deduction_days=late_days_deducted,
            absent_deduction=absent_deduction,
            half_day_deduction=half_day_deduction,
            per_day_salary_calculation=rule_set.per_day_salary_calculation,
            rule_id=rule_set.rule_id,
            rule_name=rule_set.title,
            calculation_method=PER_DAY_METHOD if rule_set.per_day_salary_calculation else MONTHLY_METHOD,
            calculated_date=calculated_at,
        )

    def _approved_leave_days(self, employee_id: int, period_start: date, period_end: date) -> int:
        leaves = self._leaves.find_overlapping(
            employee_id=employee_id,
            start_date=period_start,
            end_date=period_end,
            statuses=[LeaveStatus.APPROVED],
        )
        total = 0
        for leave in leaves:
            clipped: Optional[tuple[date, date]] = clip_range(leave.start_date, leave.end_date, period_start, period_end)
            if clipped:
                total += inclusive_days(*clipped)
        return total
