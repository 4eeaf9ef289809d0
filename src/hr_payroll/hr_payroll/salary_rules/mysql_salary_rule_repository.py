from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import RuleType
from ..core.exceptions import DuplicateRuleCodeError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, is_duplicate_key, load_json
from .model import (
    NewSalaryRule,
    SalaryRule,
    component_from_dict,
    component_to_dict,
    conditions_from_dict,
    conditions_to_dict,
)
from .repository import SalaryRuleRepository

_COLUMNS = """
    rule_id, rule_code, title, description, rule_type, calculation, deduction_amount,
    conditions, is_active, is_system_default, components, additions, deductions,
    working_days_per_month, per_day_salary_calculation, created_by, updated_by,
    created_at, updated_at
"""


def _to_rule(r: dict) -> SalaryRule:
    return SalaryRule(
        rule_id=int(r["rule_id"]),
        rule_code=r["rule_code"],
        title=r["title"],
        description=r.get("description") or "",
        rule_type=RuleType(r["rule_type"]),
        calculation=r.get("calculation") or "",
        deduction_amount=float(r.get("deduction_amount") or 0),
        conditions=conditions_from_dict(load_json(r.get("conditions"), {})),
        is_active=bool(r.get("is_active")),
        is_system_default=bool(r.get("is_system_default")),
        created_at=r["created_at"],
        components=tuple(component_from_dict(c) for c in load_json(r.get("components"), [])),
        additions=tuple(component_from_dict(c) for c in load_json(r.get("additions"), [])),
        deductions=tuple(component_from_dict(c) for c in load_json(r.get("deductions"), [])),
        working_days_per_month=int(r.get("working_days_per_month") or 26),
        per_day_salary_calculation=bool(r.get("per_day_salary_calculation", True)),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
        updated_at=r.get("updated_at"),
    )


def _params(rule: NewSalaryRule) -> tuple:
    return (
        rule.title,
        rule.description,
        rule.rule_type.value,
        rule.calculation,
        float(rule.deduction_amount),
        dump_json(conditions_to_dict(rule.conditions)),
        rule.conditions.effective_from,
        bool(rule.is_active),
        dump_json([component_to_dict(c) for c in rule.components]),
        dump_json([component_to_dict(c) for c in rule.additions]),
        dump_json([component_to_dict(c) for c in rule.deductions]),
        int(rule.working_days_per_month),
        bool(rule.per_day_salary_calculation),
    )


class MySQLSalaryRuleRepository(SalaryRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[SalaryRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salary_rules ORDER BY created_at DESC, rule_id DESC")
            return [_to_rule(r) for r in fetchall(cur)]

    def list_active(self, *, as_of: datetime) -> Sequence[SalaryRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM salary_rules
                WHERE is_active=1 AND COALESCE(effective_from, created_at) <= %s
                ORDER BY COALESCE(effective_from, created_at) DESC, created_at DESC, rule_id DESC
                """,
                (as_of,),
            )
            return [_to_rule(r) for r in fetchall(cur)]

    def get_by_id(self, rule_id: int) -> Optional[SalaryRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salary_rules WHERE rule_id=%s", (int(rule_id),))
            r = fetchone(cur)
            return _to_rule(r) if r else None

    def get_by_code(self, rule_code: str) -> Optional[SalaryRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM salary_rules WHERE rule_code=%s", (rule_code,))
            r = fetchone(cur)
            return _to_rule(r) if r else None

    def create(self, *, rule: NewSalaryRule, actor_id: Optional[int]) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO salary_rules(
                        title, description, rule_type, calculation, deduction_amount, conditions,
                        effective_from, is_active, components, additions, deductions,
                        working_days_per_month, per_day_salary_calculation,
                        rule_code, is_system_default, created_by, updated_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    _params(rule) + (rule.rule_code, bool(rule.is_system_default), actor_id, actor_id),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateRuleCodeError(f"Rule code {rule.rule_code} already exists") from e
            raise

    def update(self, *, rule_id: int, rule: NewSalaryRule, actor_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE salary_rules
                SET title=%s, description=%s, rule_type=%s, calculation=%s, deduction_amount=%s,
                    conditions=%s, effective_from=%s, is_active=%s, components=%s, additions=%s,
                    deductions=%s, working_days_per_month=%s, per_day_salary_calculation=%s,
                    updated_by=%s, updated_at=NOW()
                WHERE rule_id=%s
                """,
                _params(rule) + (actor_id, int(rule_id)),
            )
            return cur.rowcount > 0

    def delete(self, rule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM salary_rules WHERE rule_id=%s", (int(rule_id),))
            return cur.rowcount > 0
