from __future__ import annotations

from ..core.enums import DeductionType, RuleType
from .model import NewSalaryRule, RuleConditions

LATE_DEDUCTION_CODE = "LATE_DEDUCTION"
ADSET_DEDUCTION_CODE = "ADSET_DEDUCTION"

DEFAULT_RULES = (
    NewSalaryRule(
        rule_code=LATE_DEDUCTION_CODE,
        title="Late Attendance Policy",
        description="3 days late = 1 day salary deduction",
        rule_type=RuleType.LATE_DEDUCTION,
        calculation="3 days late = 1 day salary deduction",
        deduction_amount=1,
        conditions=RuleConditions(threshold=3, deduction_type=DeductionType.DAILY_SALARY),
        is_system_default=True,
    ),
    NewSalaryRule(
        rule_code=ADSET_DEDUCTION_CODE,
        title="Adset Adjustment Policy",
        description="1 day adset = 1 day salary deduction",
        rule_type=RuleType.ADJUSTMENT_DEDUCTION,
        calculation="1 day adset = 1 day salary deduction",
        deduction_amount=1,
        conditions=RuleConditions(threshold=1, deduction_type=DeductionType.DAILY_SALARY),
        is_system_default=True,
    ),
)
