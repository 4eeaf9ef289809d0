from __future__ import annotations

from datetime import date

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import MealRepository


def _month_key(month: int, year: int) -> str:
    return f"{int(year):04d}-{int(month):02d}"


class MySQLMealRepository(MealRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_monthly_subscription(self, *, employee_id: int, month: int, year: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS ok
                FROM meal_subscriptions s
                JOIN meal_subscription_approvals a ON a.subscription_id = s.subscription_id
                WHERE s.employee_id=%s AND s.is_deleted=0 AND a.month=%s AND a.status='approved'
                LIMIT 1
                """,
                (int(employee_id), _month_key(month, year)),
            )
            return fetchone(cur) is not None

    def count_active_subscribers(self, *, month: int, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT s.subscription_id) AS cnt
                FROM meal_subscriptions s
                JOIN meal_subscription_approvals a ON a.subscription_id = s.subscription_id
                WHERE s.status='active' AND s.is_paused=0 AND s.is_deleted=0
                  AND a.month=%s AND a.status='approved'
                """,
                (_month_key(month, year),),
            )
            return int((fetchone(cur) or {}).get("cnt", 0))

    def monthly_food_cost(self, *, month: int, year: int) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(cost), 0) AS total
                FROM food_costs
                WHERE MONTH(cost_date)=%s AND YEAR(cost_date)=%s AND is_deleted=0
                """,
                (int(month), int(year)),
            )
            return float((fetchone(cur) or {}).get("total", 0))

    def count_daily_meals(self, *, employee_id: int, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt
                FROM daily_meals
                WHERE employee_id=%s AND meal_date BETWEEN %s AND %s
                  AND status IN ('approved', 'served') AND is_deleted=0
                """,
                (int(employee_id), start_date, end_date),
            )
            return int((fetchone(cur) or {}).get("cnt", 0))
