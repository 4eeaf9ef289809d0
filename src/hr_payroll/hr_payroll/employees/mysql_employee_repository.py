from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role, WorkLocationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, employee_code, full_name, role, annual_salary, department, designation,
    email, phone, is_active, work_location_type, onsite_service_charge, onsite_tea_rate,
    onsite_include_half_days
"""


def _to_employee(row: dict) -> Employee:
    return Employee(
        employee_id=int(row["employee_id"]),
        employee_code=row["employee_code"],
        full_name=row["full_name"],
        role=Role(row["role"]),
        annual_salary=float(row.get("annual_salary") or 0),
        department=row.get("department"),
        designation=row.get("designation"),
        email=row.get("email"),
        phone=row.get("phone"),
        is_active=bool(row.get("is_active", True)),
        work_location_type=WorkLocationType(row.get("work_location_type") or WorkLocationType.REMOTE.value),
        onsite_service_charge=(
            float(row["onsite_service_charge"]) if row.get("onsite_service_charge") is not None else None
        ),
        onsite_tea_rate=float(row["onsite_tea_rate"]) if row.get("onsite_tea_rate") is not None else None,
        onsite_include_half_days=bool(row.get("onsite_include_half_days", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_active_non_admin(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE is_active=1 AND role<>%s
                ORDER BY employee_id
                """,
                (Role.ADMIN.value,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def lock_for_update(self, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_id FROM employees WHERE employee_id=%s FOR UPDATE", (int(employee_id),))
            return fetchone(cur) is not None

    def list_departments(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT department
                FROM employees
                WHERE department IS NOT NULL AND department<>''
                ORDER BY department
                """
            )
            return [r["department"] for r in fetchall(cur)]
