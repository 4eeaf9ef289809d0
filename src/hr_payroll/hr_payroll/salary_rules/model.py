from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.constants import DEFAULT_WORKING_DAYS_PER_MONTH
from ..core.enums import ComponentType, DeductionType, RuleType


@dataclass(frozen=True)
class RuleConditions:
    threshold: float = 1
    deduction_type: DeductionType = DeductionType.DAILY_SALARY
    applicable_to: Tuple[str, ...] = ("all_employees",)
    effective_from: Optional[datetime] = None


@dataclass(frozen=True)
class PayComponent:
    """One rule-set entry: a percentage of basic pay, a fixed amount or a formula."""

    name: str
    type: ComponentType
    value: float = 0.0
    expression: Optional[str] = None


@dataclass(frozen=True)
class NewSalaryRule:
    """Writable content of a salary rule (everything except identity and audit stamps)."""

    rule_code: str
    title: str
    description: str
    rule_type: RuleType
    calculation: str
    deduction_amount: float = 1
    conditions: RuleConditions = field(default_factory=RuleConditions)
    is_active: bool = True
    is_system_default: bool = False
    components: Tuple[PayComponent, ...] = ()
    additions: Tuple[PayComponent, ...] = ()
    deductions: Tuple[PayComponent, ...] = ()
    working_days_per_month: int = DEFAULT_WORKING_DAYS_PER_MONTH
    per_day_salary_calculation: bool = True


@dataclass(frozen=True)
class SalaryRule:
    """Domain entity: a salary rule. A rule also carries a rule set payload
    (components, additions, deductions, working-day basis)."""

    rule_id: int
    rule_code: str
    title: str
    description: str
    rule_type: RuleType
    calculation: str
    deduction_amount: float
    conditions: RuleConditions
    is_active: bool
    is_system_default: bool
    created_at: datetime
    components: Tuple[PayComponent, ...] = ()
    additions: Tuple[PayComponent, ...] = ()
    deductions: Tuple[PayComponent, ...] = ()
    working_days_per_month: int = DEFAULT_WORKING_DAYS_PER_MONTH
    per_day_salary_calculation: bool = True
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_from(self) -> datetime:
        return self.conditions.effective_from or self.created_at

    def as_new(self) -> NewSalaryRule:
        return NewSalaryRule(
            rule_code=self.rule_code,
            title=self.title,
            description=self.description,
            rule_type=self.rule_type,
            calculation=self.calculation,
            deduction_amount=self.deduction_amount,
            conditions=self.conditions,
            is_active=self.is_active,
            is_system_default=self.is_system_default,
            components=self.components,
            additions=self.additions,
            deductions=self.deductions,
            working_days_per_month=self.working_days_per_month,
            per_day_salary_calculation=self.per_day_salary_calculation,
        )


def conditions_to_dict(c: RuleConditions) -> dict:
    return {
        "threshold": c.threshold,
        "deduction_type": c.deduction_type.value,
        "applicable_to": list(c.applicable_to),
        "effective_from": c.effective_from.isoformat() if c.effective_from else None,
    }


def conditions_from_dict(data: Optional[dict]) -> RuleConditions:
    data = data or {}
    effective_from = data.get("effective_from")
    if isinstance(effective_from, str) and effective_from:
        effective_from = datetime.fromisoformat(effective_from)
    return RuleConditions(
        threshold=float(data.get("threshold", 1)),
        deduction_type=DeductionType(data.get("deduction_type") or DeductionType.DAILY_SALARY.value),
        applicable_to=tuple(data.get("applicable_to") or ("all_employees",)),
        effective_from=effective_from or None,
    )


def component_to_dict(c: PayComponent) -> dict:
    out = {"name": c.name, "type": c.type.value, "value": c.value}
    if c.expression is not None:
        out["expression"] = c.expression
    return out


def component_from_dict(data: dict) -> PayComponent:
    return PayComponent(
        name=str(data.get("name") or ""),
        type=ComponentType(data.get("type")),
        value=float(data.get("value") or 0),
        expression=data.get("expression"),
    )


def rule_to_dict(r: SalaryRule) -> dict:
    return {
        "rule_id": r.rule_id,
        "rule_code": r.rule_code,
        "title": r.title,
        "description": r.description,
        "rule_type": r.rule_type.value,
        "calculation": r.calculation,
        "deduction_amount": r.deduction_amount,
        "conditions": conditions_to_dict(r.conditions),
        "is_active": r.is_active,
        "is_system_default": r.is_system_default,
        "components": [component_to_dict(c) for c in r.components],
        "additions": [component_to_dict(c) for c in r.additions],
        "deductions": [component_to_dict(c) for c in r.deductions],
        "working_days_per_month": r.working_days_per_month,
        "per_day_salary_calculation": r.per_day_salary_calculation,
        "created_by": r.created_by,
        "updated_by": r.updated_by,
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }
