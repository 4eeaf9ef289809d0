from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError
from .datetime_utils import as_date

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_date(value: Any, field_name: str) -> date:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    try:
        return as_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date")


def optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return require_date(value, field_name)


def require_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def optional_enum(enum_cls: Type[E], value: Any, field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    return require_enum(enum_cls, value, field_name)


def non_negative_amount(value: Any, field_name: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def require_month_year(month: Any, year: Any) -> tuple[int, int]:
    try:
        m, y = int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("month and year are required")
    if not 1 <= m <= 12:
        raise ValidationError("month must be between 1 and 12")
    return m, y


def optional_bool(value: Any, field_name: str) -> Optional[bool]:
    """JSON booleans, plus "true"/"false" strings from query strings and form posts."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{field_name} must be true or false")
