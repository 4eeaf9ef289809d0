from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role, WorkLocationType


@dataclass(frozen=True)
class Employee:
    """Read model of the employee directory (owned by an external service).

    Payroll and leave code only read it; fields copied into leave and payroll
    rows are snapshots and are never re-synced.
    """

    employee_id: int
    employee_code: str
    full_name: str
    role: Role
    annual_salary: float
    department: Optional[str] = None
    designation: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    work_location_type: WorkLocationType = WorkLocationType.REMOTE
    onsite_service_charge: Optional[float] = None
    onsite_tea_rate: Optional[float] = None
    onsite_include_half_days: bool = True

    @property
    def monthly_salary(self) -> float:
        return self.annual_salary / 12

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
