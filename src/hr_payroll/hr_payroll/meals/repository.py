from __future__ import annotations

from datetime import date
from typing import Protocol


class MealRepository(Protocol):
    """Read-only view over the meal and food-cost tables (owned elsewhere)."""

    def has_monthly_subscription(self, *, employee_id: int, month: int, year: int) -> bool:
        """True when the employee's subscription is approved for that month."""

        raise NotImplementedError

    def count_active_subscribers(self, *, month: int, year: int) -> int:
        raise NotImplementedError

    def monthly_food_cost(self, *, month: int, year: int) -> float:
        raise NotImplementedError

    def count_daily_meals(self, *, employee_id: int, start_date: date, end_date: date) -> int:
        """Approved or served single meals in [start_date, end_date]."""

        raise NotImplementedError
