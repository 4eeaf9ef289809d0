from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date

from ..common.money import round_money, round_whole
from ..core.constants import ONSITE_SERVICE_CHARGE, ONSITE_TEA_RATE
from ..core.enums import MealDeductionType, WorkLocationType
from ..employees.model import Employee
from ..meals.repository import MealRepository


@dataclass(frozen=True)
class MealDeduction:
    type: MealDeductionType
    amount: float = 0.0
    total_food_cost: float = 0.0
    active_subscribers: int = 0
    meal_days: int = 0
    daily_rate: float = 0.0
    note: str = ""

    def to_dict(self) -> dict:
        out = asdict(self)
        out["type"] = self.type.value
        return out


@dataclass(frozen=True)
class OnsiteBenefits:
    eligible: bool
    tea_allowance: float = 0.0
    service_charge: float = 0.0
    eligible_days: int = 0
    tea_rate: float = 0.0
    include_half_days: bool = True

    def to_dict(self) -> dict:
        return asdict(self)


def meal_deduction(
    meals: MealRepository,
    *,
    employee_id: int,
    period_start: date,
    period_end: date,
    daily_meal_rate: float = 0.0,
) -> MealDeduction:
    """Monthly subscription first, then single meals at the given rate."""

    month, year = period_start.month, period_start.year
    if meals.has_monthly_subscription(employee_id=employee_id, month=month, year=year):
        total_cost = meals.monthly_food_cost(month=month, year=year)
        subscribers = meals.count_active_subscribers(month=month, year=year)
        per_head = round_whole(total_cost / subscribers) if subscribers else 0
        return MealDeduction(
            type=MealDeductionType.MONTHLY_SUBSCRIPTION,
            amount=float(per_head),
            total_food_cost=total_cost,
            active_subscribers=subscribers,
            note=f"Food cost {total_cost:g} / {subscribers} active subscribers",
        )

    if daily_meal_rate > 0:
        days = meals.count_daily_meals(employee_id=employee_id, start_date=period_start, end_date=period_end)
        if days:
            return MealDeduction(
                type=MealDeductionType.DAILY_MEAL,
                amount=round_money(days * daily_meal_rate),
                meal_days=days,
                daily_rate=daily_meal_rate,
                note=f"{days} meals x {daily_meal_rate:g}",
            )

    return MealDeduction(type=MealDeductionType.NONE, note="No meal subscription or daily meals")


def onsite_benefits(employee: Employee, *, present_days: int, half_days: int) -> OnsiteBenefits:
    if employee.is_admin or employee.work_location_type != WorkLocationType.ONSITE:
        return OnsiteBenefits(eligible=False)

    include_half = employee.onsite_include_half_days
    eligible_days = present_days + (math.ceil(half_days / 2) if include_half else 0)
    tea_rate = ONSITE_TEA_RATE if employee.onsite_tea_rate is None else employee.onsite_tea_rate
    service_charge = ONSITE_SERVICE_CHARGE if employee.onsite_service_charge is None else employee.onsite_service_charge
    return OnsiteBenefits(
        eligible=True,
        tea_allowance=round_money(eligible_days * tea_rate),
        service_charge=round_money(service_charge),
        eligible_days=eligible_days,
        tea_rate=tea_rate,
        include_half_days=include_half,
    )
