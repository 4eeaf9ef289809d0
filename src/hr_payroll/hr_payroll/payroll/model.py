from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..common.money import amount_in_words, round_money
from ..core.enums import AmountSource, PayrollStatus


@dataclass(frozen=True)
class ManualAmount:
    amount: float = 0.0
    source: AmountSource = AmountSource.NONE

    @classmethod
    def of(cls, amount: float) -> "ManualAmount":
        amount = round_money(amount or 0)
        return cls(amount=amount, source=AmountSource.MANUAL if amount > 0 else AmountSource.NONE)


@dataclass(frozen=True)
class ManualInputs:
    """Admin-entered figures; kept on the record so recalculation can reuse them."""

    overtime: float = 0.0
    bonus: float = 0.0
    allowance: float = 0.0
    tax: float = 0.0
    provident_fund: float = 0.0
    advance_salary: float = 0.0
    loan: float = 0.0
    other: float = 0.0
    daily_meal_rate: float = 0.0


@dataclass(frozen=True)
class Earnings:
    basic_pay: float = 0.0
    overtime: ManualAmount = field(default_factory=ManualAmount)
    bonus: ManualAmount = field(default_factory=ManualAmount)
    allowance: ManualAmount = field(default_factory=ManualAmount)
    rule_additions: float = 0.0
    onsite_tea_allowance: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.basic_pay
            + self.overtime.amount
            + self.bonus.amount
            + self.allowance.amount
            + self.rule_additions
            + self.onsite_tea_allowance
        )


@dataclass(frozen=True)
class Deductions:
    late: float = 0.0
    absent: float = 0.0
    leave: float = 0.0
    half_day: float = 0.0
    rule_deductions: float = 0.0
    tax: float = 0.0
    provident_fund: float = 0.0
    advance_salary: float = 0.0
    loan: float = 0.0
    other: float = 0.0
    meal: float = 0.0
    onsite_service_charge: float = 0.0
    leave_adjustments: float = 0.0

    @property
    def total(self) -> float:
        return sum(asdict(self).values())


@dataclass(frozen=True)
class PayrollSummary:
    gross_earnings: float
    total_deductions: float
    net_payable: float
    net_payable_in_words: str
    payable_days: float


def summarize(earnings: Earnings, deductions: Deductions, *, payable_days: float) -> PayrollSummary:
    """net_payable = gross_earnings - total_deductions. No floor is applied."""

    gross = round_money(earnings.total)
    total_deductions = round_money(deductions.total)
    net = round_money(gross - total_deductions)
    return PayrollSummary(
        gross_earnings=gross,
        total_deductions=total_deductions,
        net_payable=net,
        net_payable_in_words=amount_in_words(net),
        payable_days=payable_days,
    )


@dataclass(frozen=True)
class PayrollBreakdown:
    """Everything the calculation produces for one employee and period."""

    salary_basis: dict
    attendance: dict
    earnings: Earnings
    deductions: Deductions
    summary: PayrollSummary
    meal: dict
    onsite: dict
    calculation: dict
    manual_inputs: ManualInputs = field(default_factory=ManualInputs)


@dataclass(frozen=True)
class NewPayroll:
    employee_id: int
    employee_name: str
    employee_code: str
    department: Optional[str]
    designation: Optional[str]
    period_start: date
    period_end: date
    month: int
    year: int
    breakdown: PayrollBreakdown
    created_by: Optional[int]
    auto_generated: bool = True
    notes: Optional[str] = None


@dataclass(frozen=True)
class PayrollRecord:
    """Domain entity: a persisted payroll. Employee fields are snapshots."""

    payroll_id: int
    employee_id: int
    employee_name: str
    employee_code: str
    department: Optional[str]
    designation: Optional[str]
    period_start: date
    period_end: date
    month: int
    year: int
    status: PayrollStatus
    breakdown: PayrollBreakdown
    created_at: datetime
    employee_approved: bool = False
    employee_approved_at: Optional[datetime] = None
    acceptance: Optional[dict] = None
    auto_generated: bool = True
    notes: Optional[str] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    payment_date: Optional[datetime] = None
    is_deleted: bool = False

    @property
    def basic_pay(self) -> float:
        return self.breakdown.earnings.basic_pay

    @property
    def net_payable(self) -> float:
        return self.breakdown.summary.net_payable


@dataclass(frozen=True)
class StatusChange:
    """Columns written by one status UPDATE. None means 'leave unchanged'."""

    actor_id: Optional[int]
    status: Optional[PayrollStatus] = None
    employee_approved: Optional[bool] = None
    employee_approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    payment_date: Optional[datetime] = None
    acceptance: Optional[dict] = None


@dataclass(frozen=True)
class PayrollFilter:
    employee_id: Optional[int] = None
    month: Optional[int] = None
    year: Optional[int] = None
    status: Optional[PayrollStatus] = None
    department: Optional[str] = None
    search: Optional[str] = None


# ---- serialization (JSON columns and API bodies) ----


def earnings_to_dict(e: Earnings) -> dict:
    return {
        "basic_pay": e.basic_pay,
        "overtime": {"amount": e.overtime.amount, "source": e.overtime.source.value},
        "bonus": {"amount": e.bonus.amount, "source": e.bonus.source.value},
        "allowance": {"amount": e.allowance.amount, "source": e.allowance.source.value},
        "rule_additions": e.rule_additions,
        "onsite_tea_allowance": e.onsite_tea_allowance,
        "total": round_money(e.total),
    }


def _manual(data: Any) -> ManualAmount:
    data = data or {}
    return ManualAmount(
        amount=float(data.get("amount") or 0),
        source=AmountSource(data.get("source") or AmountSource.NONE.value),
    )


def earnings_from_dict(data: Optional[dict]) -> Earnings:
    data = data or {}
    return Earnings(
        basic_pay=float(data.get("basic_pay") or 0),
        overtime=_manual(data.get("overtime")),
        bonus=_manual(data.get("bonus")),
        allowance=_manual(data.get("allowance")),
        rule_additions=float(data.get("rule_additions") or 0),
        onsite_tea_allowance=float(data.get("onsite_tea_allowance") or 0),
    )


def deductions_to_dict(d: Deductions) -> dict:
    out = asdict(d)
    out["total"] = round_money(d.total)
    return out


def deductions_from_dict(data: Optional[dict]) -> Deductions:
    data = data or {}
    names = Deductions.__dataclass_fields__.keys()
    return Deductions(**{k: float(data.get(k) or 0) for k in names})


def manual_inputs_from_dict(data: Optional[dict]) -> ManualInputs:
    data = data or {}
    names = ManualInputs.__dataclass_fields__.keys()
    return ManualInputs(**{k: float(data.get(k) or 0) for k in names})


def summary_to_dict(s: PayrollSummary) -> dict:
    return asdict(s)


def summary_from_dict(data: Optional[dict]) -> PayrollSummary:
    data = data or {}
    return PayrollSummary(
        gross_earnings=float(data.get("gross_earnings") or 0),
        total_deductions=float(data.get("total_deductions") or 0),
        net_payable=float(data.get("net_payable") or 0),
        net_payable_in_words=data.get("net_payable_in_words") or "",
        payable_days=float(data.get("payable_days") or 0),
    )


def breakdown_to_dict(b: PayrollBreakdown) -> dict:
    return {
        "salary_basis": b.salary_basis,
        "attendance": b.attendance,
        "earnings": earnings_to_dict(b.earnings),
        "deductions": deductions_to_dict(b.deductions),
        "summary": summary_to_dict(b.summary),
        "meal_deduction": b.meal,
        "onsite_benefits": b.onsite,
        "calculation": b.calculation,
        "manual_inputs": asdict(b.manual_inputs),
    }


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def payroll_to_dict(p: PayrollRecord) -> dict:
    out = {
        "payroll_id": p.payroll_id,
        "employee_id": p.employee_id,
        "employee_name": p.employee_name,
        "employee_code": p.employee_code,
        "department": p.department,
        "designation": p.designation,
        "period_start": p.period_start.isoformat(),
        "period_end": p.period_end.isoformat(),
        "month": p.month,
        "year": p.year,
        "status": p.status.value,
        "employee_approved": p.employee_approved,
        "employee_approved_at": _iso(p.employee_approved_at),
        "employee_acceptance": p.acceptance or {"accepted": False},
        "auto_generated": p.auto_generated,
        "notes": p.notes,
        "created_by": p.created_by,
        "created_at": _iso(p.created_at),
        "updated_by": p.updated_by,
        "updated_at": _iso(p.updated_at),
        "approved_by": p.approved_by,
        "approved_at": _iso(p.approved_at),
        "rejected_by": p.rejected_by,
        "rejected_at": _iso(p.rejected_at),
        "rejection_reason": p.rejection_reason,
        "payment_date": _iso(p.payment_date),
    }
    out.update(breakdown_to_dict(p.breakdown))
    return out
