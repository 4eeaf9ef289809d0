from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...common.money import round_money
from ...employees.model import Employee


@dataclass(frozen=True)
class ComponentAmount:
    name: str
    type: str
    amount: float


@dataclass(frozen=True)
class SalaryBreakdown:
    """Result of one calculation. Amounts are unrounded; `to_dict` rounds."""

    employee: Employee
    period_start: date
    period_end: date
    monthly_basic: float
    daily_rate: float
    hourly_rate: float
    basic_pay: float
    total_working_days: int
    present_days: int
    absent_days: int
    late_days: int
    half_days: int
    holidays: int
    weekly_offs: int
    attendance_percentage: float
    leave_days: int
    total_addition: float
    total_deduction: float
    net_payable: float
    components: tuple[ComponentAmount, ...]
    late_deduction: float
    late_deduction_days: float
    absent_deduction: float
    half_day_deduction: float
    per_day_salary_calculation: bool
    rule_id: Optional[int]
    rule_name: Optional[str]
    calculation_method: str
    calculated_date: datetime

    @property
    def rules_applied(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "calculation_method": self.calculation_method,
        }

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee.employee_id,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "basic_pay": round_money(self.basic_pay),
            "present_days": self.present_days,
            "total_working_days": self.total_working_days,
            "attendance_percentage": round_money(self.attendance_percentage),
            "leave_days": self.leave_days,
            "total_addition": round_money(self.total_addition),
            "total_deduction": round_money(self.total_deduction),
            "net_payable": round_money(self.net_payable),
            "components": [
                {"name": c.name, "type": c.type, "amount": round_money(c.amount)} for c in self.components
            ],
            "rules_applied": self.rules_applied,
            "calculated_date": self.calculated_date.isoformat(),
            "absent_days": self.absent_days,
            "late_days": self.late_days,
            "half_days": self.half_days,
            "holidays": self.holidays,
            "weekly_offs": self.weekly_offs,
            "rates": {
                "monthly": round_money(self.monthly_basic),
                "daily": round_money(self.daily_rate),
                "hourly": round_money(self.hourly_rate),
            },
            "attendance_deductions": {
                "late": round_money(self.late_deduction),
                "late_days_deducted": self.late_deduction_days,
                "absent": round_money(self.absent_deduction),
                "half_day": round_money(self.half_day_deduction),
            },
            "per_day_salary_calculation": self.per_day_salary_calculation,
        }


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(self, *, employee_id: int, period_start: date, period_end: date) -> SalaryBreakdown:
        raise NotImplementedError
