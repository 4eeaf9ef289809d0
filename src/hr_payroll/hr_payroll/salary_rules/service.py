from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_bool, require_enum, require_non_empty
from ..core.enums import ComponentType, DeductionType, Role, RuleType
from ..core.exceptions import (
    AuthorizationError,
    ConfigurationMissingError,
    DuplicateRuleCodeError,
    NotFoundError,
    ValidationError,
)
from .defaults import DEFAULT_RULES
from .model import NewSalaryRule, PayComponent, RuleConditions, SalaryRule
from .repository import SalaryRuleRepository

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_rule_code() -> str:
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(9))
    return f"RULE_{int(time.time() * 1000)}_{suffix}"


def _parse_components(raw: Any, field_name: str, *, allow_formula: bool) -> tuple:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ValidationError(f"{field_name} must be a list")

    out = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError(f"{field_name} entries must be objects")
        kind = require_enum(ComponentType, item.get("type"), f"{field_name}.type")
        if kind == ComponentType.FORMULA and not allow_formula:
            raise ValidationError(f"{field_name} entries must be percentage or fixed")
        if kind == ComponentType.FORMULA and not str(item.get("expression") or "").strip():
            raise ValidationError(f"{field_name}: formula entries need an expression")
        try:
            value = float(item.get("value") or 0)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name}.value must be a number")
        out.append(
            PayComponent(
                name=require_non_empty(item.get("name") or "", f"{field_name}.name"),
                type=kind,
                value=value,
                expression=(str(item["expression"]).strip() if item.get("expression") else None),
            )
        )
    return tuple(out)


def _parse_conditions(raw: Any, base: RuleConditions) -> RuleConditions:
    if raw is None:
        return base
    if not isinstance(raw, dict):
        raise ValidationError("conditions must be an object")

    effective_from = base.effective_from
    if raw.get("effectiveFrom"):
        try:
            effective_from = datetime.fromisoformat(str(raw["effectiveFrom"]))
        except ValueError:
            raise ValidationError("conditions.effectiveFrom must be an ISO date")

    applicable_to = raw.get("applicableTo", list(base.applicable_to))
    if not isinstance(applicable_to, list):
        raise ValidationError("conditions.applicableTo must be a list")

    try:
        threshold = float(raw.get("threshold", base.threshold))
    except (TypeError, ValueError):
        raise ValidationError("conditions.threshold must be a number")

    return RuleConditions(
        threshold=threshold,
        deduction_type=require_enum(
            DeductionType, raw.get("deductionType", base.deduction_type.value), "conditions.deductionType"
        ),
        applicable_to=tuple(str(a) for a in applicable_to),
        effective_from=effective_from,
    )


def parse_rule_payload(payload: dict, *, base: Optional[NewSalaryRule] = None) -> NewSalaryRule:
    """Build rule content from a request body. With `base`, only given keys change."""

    if base is None:
        for key in ("title", "description", "ruleType"):
            if not payload.get(key):
                raise ValidationError("Title, description and rule type are required")
        try:
            deduction_amount = float(payload.get("deductionAmount") or 1)
        except (TypeError, ValueError):
            raise ValidationError("deductionAmount must be a number")
        base = NewSalaryRule(
            rule_code=str(payload.get("ruleCode") or generate_rule_code()),
            title="",
            description="",
            rule_type=RuleType.LATE_DEDUCTION,
            calculation=f"{deduction_amount:g} day's salary deduction",
            deduction_amount=deduction_amount,
            conditions=RuleConditions(effective_from=now_local()),
        )

    changes: dict = {}
    if "title" in payload:
        changes["title"] = require_non_empty(payload.get("title") or "", "Title")
    if "description" in payload:
        changes["description"] = require_non_empty(payload.get("description") or "", "Description")
    if "ruleType" in payload:
        changes["rule_type"] = require_enum(RuleType, payload.get("ruleType"), "ruleType")
    if payload.get("calculation"):
        changes["calculation"] = str(payload["calculation"]).strip()
    if payload.get("deductionAmount") is not None:
        try:
            changes["deduction_amount"] = float(payload["deductionAmount"])
        except (TypeError, ValueError):
            raise ValidationError("deductionAmount must be a number")
    if "conditions" in payload:
        changes["conditions"] = _parse_conditions(payload.get("conditions"), base.conditions)
    if payload.get("isActive") is not None:
        changes["is_active"] = optional_bool(payload["isActive"], "isActive")
    if "components" in payload:
        changes["components"] = _parse_components(payload["components"], "components", allow_formula=True)
    if "additions" in payload:
        changes["additions"] = _parse_components(payload["additions"], "additions", allow_formula=False)
    if "deductions" in payload:
        changes["deductions"] = _parse_components(payload["deductions"], "deductions", allow_formula=False)
    if payload.get("workingDaysPerMonth") is not None:
        try:
            days = int(payload["workingDaysPerMonth"])
        except (TypeError, ValueError):
            raise ValidationError("workingDaysPerMonth must be a whole number")
        if days <= 0:
            raise ValidationError("workingDaysPerMonth must be positive")
        changes["working_days_per_month"] = days
    if payload.get("perDaySalaryCalculation") is not None:
        changes["per_day_salary_calculation"] = optional_bool(
            payload["perDaySalaryCalculation"], "perDaySalaryCalculation"
        )

    return replace(base, **changes)


class SalaryRuleService:
    def __init__(self, rules: SalaryRuleRepository):
        self._rules = rules

    def bootstrap_defaults(self, *, actor_id: Optional[int] = None) -> int:
        created = 0
        for rule in DEFAULT_RULES:
            if self._rules.get_by_code(rule.rule_code):
                continue
            try:
                self._rules.create(
                    rule=replace(rule, conditions=replace(rule.conditions, effective_from=now_local())),
                    actor_id=actor_id,
                )
                created += 1
            except DuplicateRuleCodeError:
                # Another request bootstrapped the same default first.
                continue
        if created:
            logger.info("Created %s default salary rules", created)
        return created

    def list_rules(self, *, current_role: Role, actor_id: int) -> Sequence[SalaryRule]:
        self._require_admin(current_role)
        self.bootstrap_defaults(actor_id=actor_id)
        return self._rules.list_all()

    def get_rule(self, *, current_role: Role, rule_id: int) -> SalaryRule:
        self._require_admin(current_role)
        rule = self._rules.get_by_id(int(rule_id))
        if not rule:
            raise NotFoundError("Rule not found")
        return rule

    def create_rule(self, *, current_role: Role, actor_id: int, payload: dict) -> SalaryRule:
        self._require_admin(current_role)
        rule = parse_rule_payload(payload)
        rule = replace(rule, is_system_default=False)
        rule_id = self._rules.create(rule=rule, actor_id=actor_id)
        logger.info("Salary rule %s created by %s", rule.rule_code, actor_id)
        return self._rules.get_by_id(rule_id)

    def update_rule(self, *, current_role: Role, actor_id: int, rule_id: int, payload: dict) -> SalaryRule:
        existing = self.get_rule(current_role=current_role, rule_id=rule_id)
        rule = parse_rule_payload(payload, base=existing.as_new())
        self._rules.update(rule_id=existing.rule_id, rule=rule, actor_id=actor_id)
        return self._rules.get_by_id(existing.rule_id)

    def delete_rule(self, *, current_role: Role, rule_id: int) -> None:
        existing = self.get_rule(current_role=current_role, rule_id=rule_id)
        if existing.is_system_default:
            raise ValidationError("Cannot delete system default rules")
        self._rules.delete(existing.rule_id)

    def active_rules_summary(self) -> list[dict]:
        """Read-only view for every authenticated role."""
        rules = [r for r in self._rules.list_all() if r.is_active]
        return [
            {
                "title": r.title,
                "description": r.description,
                "rule_type": r.rule_type.value,
                "calculation": r.calculation,
                "conditions": {
                    "threshold": r.conditions.threshold,
                    "deduction_type": r.conditions.deduction_type.value,
                    "applicable_to": list(r.conditions.applicable_to),
                },
                "is_active": r.is_active,
            }
            for r in rules
        ]

    def current_rule_set(self, *, as_of: Optional[datetime] = None) -> SalaryRule:
        """The rule set in effect: most recent effective date first.

        A configured (non system-default) rule wins over the bootstrapped defaults.
        """

        active = self._rules.list_active(as_of=as_of or now_local())
        if not active:
            raise ConfigurationMissingError("No active salary rule set is configured")
        configured = [r for r in active if not r.is_system_default]
        return (configured or list(active))[0]

    def late_policies(self, *, as_of: Optional[datetime] = None) -> list[SalaryRule]:
        return [r for r in self._rules.list_active(as_of=as_of or now_local()) if r.rule_type == RuleType.LATE_DEDUCTION]

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admin can manage salary rules")

