from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization checks."""

    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


class WorkLocationType(str, Enum):
    ONSITE = "onsite"
    REMOTE = "remote"


class AttendanceStatus(str, Enum):
    """Per-day status stored in the attendance ledger."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LEAVE = "Leave"
    GOVT_HOLIDAY = "Govt Holiday"
    WEEKLY_OFF = "Weekly Off"
    OFF_DAY = "Off Day"
    LATE = "Late"
    CLOCKED_IN = "Clocked In"
    HALF_DAY = "Half Day"
    EARLY = "Early"
    UNPAID_LEAVE = "Unpaid Leave"
    HALF_PAID_LEAVE = "Half Paid Leave"


class LeaveType(str, Enum):
    SICK = "Sick"
    ANNUAL = "Annual"
    CASUAL = "Casual"
    EMERGENCY = "Emergency"
    MATERNITY = "Maternity"
    PATERNITY = "Paternity"
    OTHER = "Other"


class LeavePayStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"
    HALF_PAID = "HalfPaid"


class LeaveStatus(str, Enum):
    """Leave request workflow state. Approved and Rejected are terminal."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class RuleType(str, Enum):
    LATE_DEDUCTION = "late_deduction"
    ADJUSTMENT_DEDUCTION = "adjustment_deduction"
    BONUS = "bonus"
    ALLOWANCE = "allowance"


class DeductionType(str, Enum):
    DAILY_SALARY = "daily_salary"
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class ComponentType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FORMULA = "formula"


class PayrollStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    APPROVED = "Approved"
    PAID = "Paid"
    REJECTED = "Rejected"
    PROCESSING = "Processing"


class PayrollAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class AmountSource(str, Enum):
    MANUAL = "manual"
    NONE = "none"


class MealDeductionType(str, Enum):
    MONTHLY_SUBSCRIPTION = "monthly_subscription"
    DAILY_MEAL = "daily_meal"
    NONE = "none"
