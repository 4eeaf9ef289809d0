from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import Callable, ContextManager, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.repository import LeaveRepository
from .leaves.service import LeaveService
from .meals.mysql_meal_repository import MySQLMealRepository
from .meals.repository import MealRepository
from .payroll.calculator.base import PayrollCalculator
from .payroll.calculator.standard_calculator import StandardSalaryCalculator
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .salary_rules.mysql_salary_rule_repository import MySQLSalaryRuleRepository
from .salary_rules.repository import SalaryRuleRepository
from .salary_rules.service import SalaryRuleService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository
    leaves_repo: LeaveRepository
    salary_rules_repo: SalaryRuleRepository
    payrolls_repo: PayrollRepository
    meals_repo: MealRepository

    salary_rule_service: SalaryRuleService
    attendance_service: AttendanceService
    calculator: PayrollCalculator
    payroll_service: PayrollService
    leave_service: LeaveService


def assemble(
    *,
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    leaves_repo: LeaveRepository,
    salary_rules_repo: SalaryRuleRepository,
    payrolls_repo: PayrollRepository,
    meals_repo: MealRepository,
    conn: Optional[DatabaseConnection] = None,
    transaction: Callable[[], ContextManager] = nullcontext,
) -> Container:
    """Wire services over the given repositories."""
    salary_rule_service = SalaryRuleService(salary_rules_repo)
    attendance_service = AttendanceService(attendance_repo, employees_repo)
    calculator = StandardSalaryCalculator(employees_repo, attendance_repo, leaves_repo, salary_rule_service)
    payroll_service = PayrollService(
        payrolls_repo,
        employees_repo,
        leaves_repo,
        meals_repo,
        calculator,
        transaction=transaction,
    )
    leave_service = LeaveService(
        leaves_repo,
        employees_repo,
        attendance_repo,
        payroll_service,
        transaction=transaction,
    )

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        salary_rules_repo=salary_rules_repo,
        payrolls_repo=payrolls_repo,
        meals_repo=meals_repo,
        salary_rule_service=salary_rule_service,
        attendance_service=attendance_service,
        calculator=calculator,
        payroll_service=payroll_service,
        leave_service=leave_service,
    )


def build_container(*, db_config: dict) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leaves_repo=MySQLLeaveRepository(conn),
        salary_rules_repo=MySQLSalaryRuleRepository(conn),
        payrolls_repo=MySQLPayrollRepository(conn),
        meals_repo=MySQLMealRepository(conn),
        conn=conn,
        transaction=conn.transaction,
    )
