from __future__ import annotations

import copy
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from src.hr_payroll.hr_payroll.attendance.model import AttendanceRecord
from src.hr_payroll.hr_payroll.container import Container, assemble
from src.hr_payroll.hr_payroll.core.enums import (
    AttendanceStatus,
    LeaveStatus,
    PayrollStatus,
    Role,
    WorkLocationType,
)
from src.hr_payroll.hr_payroll.core.exceptions import (
    DuplicateAttendanceDayError,
    DuplicatePeriodError,
    DuplicateRuleCodeError,
)
from src.hr_payroll.hr_payroll.employees.model import Employee
from src.hr_payroll.hr_payroll.leaves.model import LeaveFilter, LeaveRequest, NewLeaveRequest
from src.hr_payroll.hr_payroll.payroll.model import NewPayroll, PayrollFilter, PayrollRecord
from src.hr_payroll.hr_payroll.salary_rules.model import NewSalaryRule, RuleConditions, SalaryRule
from src.hr_payroll.hr_payroll.core.enums import RuleType

CREATED_AT = datetime(2024, 1, 1, 9, 0, 0)


def make_employee(employee_id: int, *, role: Role = Role.EMPLOYEE, annual_salary: float = 120000, **kwargs) -> Employee:
    defaults = dict(
        employee_code=f"EMP-{employee_id:04d}",
        full_name=f"Employee {employee_id}",
        department="Engineering",
        designation="Engineer",
        email=f"e{employee_id}@example.com",
        phone="01700000000",
        work_location_type=WorkLocationType.REMOTE,
    )
    defaults.update(kwargs)
    return Employee(employee_id=employee_id, role=role, annual_salary=annual_salary, **defaults)


def make_rule_set(
    *,
    rule_code: str = "MONTHLY_SET",
    working_days: int = 26,
    per_day: bool = True,
    components=(),
    additions=(),
    deductions=(),
    effective_from: datetime = datetime(2024, 1, 1),
    is_active: bool = True,
) -> NewSalaryRule:
    return NewSalaryRule(
        rule_code=rule_code,
        title=f"Rule set {rule_code}",
        description="Rule set used in tests",
        rule_type=RuleType.ALLOWANCE,
        calculation="basic",
        deduction_amount=0,
        conditions=RuleConditions(effective_from=effective_from),
        is_active=is_active,
        components=tuple(components),
        additions=tuple(additions),
        deductions=tuple(deductions),
        working_days_per_month=working_days,
        per_day_salary_calculation=per_day,
    )


class FakeEmployeesRepo:
    def __init__(self, employees=()):
        self._by_id = {e.employee_id: e for e in employees}
        self.locked: list[int] = []

    def add(self, employee: Employee) -> Employee:
        self._by_id[employee.employee_id] = employee
        return employee

    def get_by_id(self, employee_id):
        return self._by_id.get(int(employee_id))

    def list_active_non_admin(self):
        return [e for e in sorted(self._by_id.values(), key=lambda e: e.employee_id) if e.is_active and not e.is_admin]

    def lock_for_update(self, employee_id):
        self.locked.append(int(employee_id))
        return int(employee_id) in self._by_id

    def list_departments(self):
        return sorted({e.department for e in self._by_id.values() if e.department})


class FakeAttendanceRepo:
    def __init__(self):
        self._rows: dict[tuple[int, date], AttendanceRecord] = {}
        self._next_id = 1

    def add(self, employee_id: int, work_date: date, status: AttendanceStatus, **kwargs) -> AttendanceRecord:
        record = AttendanceRecord(
            attendance_id=self._next_id, employee_id=employee_id, work_date=work_date, status=status, **kwargs
        )
        self._next_id += 1
        self._rows[(employee_id, work_date)] = record
        return record

    def add_many(self, employee_id: int, days, status: AttendanceStatus) -> None:
        for day in days:
            self.add(employee_id, day, status)

    def rows(self):
        return sorted(self._rows.values(), key=lambda r: (r.employee_id, r.work_date))

    def get_for_employee_and_date(self, employee_id, work_date):
        return self._rows.get((int(employee_id), work_date))

    def list_for_employee_in_range(self, *, employee_id, start_date, end_date):
        return [
            r
            for r in self.rows()
            if r.employee_id == int(employee_id) and start_date <= r.work_date <= end_date and not r.is_deleted
        ]

    def create_day(
        self,
        *,
        employee_id,
        work_date,
        status,
        actor_id,
        clock_in=None,
        clock_out=None,
        late_minutes=0,
        early_minutes=0,
        remarks=None,
    ):
        if (int(employee_id), work_date) in self._rows:
            raise DuplicateAttendanceDayError(f"Attendance for employee {employee_id} on {work_date} already exists")
        record = self.add(
            int(employee_id),
            work_date,
            status,
            clock_in=clock_in,
            clock_out=clock_out,
            late_minutes=late_minutes,
            early_minutes=early_minutes,
            is_late=late_minutes > 0,
            is_early=early_minutes > 0,
            remarks=remarks,
            created_by=actor_id,
            updated_by=actor_id,
        )
        return record.attendance_id

    def upsert_day(
        self,
        *,
        employee_id,
        work_date,
        status,
        actor_id,
        remarks=None,
        leave_id=None,
        leave_pay_status=None,
        clock_in=None,
        clock_out=None,
        corrected_by_admin=False,
    ):
        key = (int(employee_id), work_date)
        existing = self._rows.get(key)
        if existing is None:
            self.add(
                int(employee_id),
                work_date,
                status,
                remarks=remarks,
                leave_id=leave_id,
                leave_pay_status=leave_pay_status,
                clock_in=clock_in,
                clock_out=clock_out,
                corrected_by_admin=corrected_by_admin,
                created_by=actor_id,
                updated_by=actor_id,
            )
            return
        self._rows[key] = replace(
            existing,
            status=status,
            remarks=remarks,
            leave_id=leave_id,
            leave_pay_status=leave_pay_status,
            clock_in=clock_in or existing.clock_in,
            clock_out=clock_out or existing.clock_out,
            corrected_by_admin=existing.corrected_by_admin or corrected_by_admin,
            is_deleted=False,
            updated_by=actor_id,
        )

    def delete_days(self, *, employee_id, start_date, end_date, status, leave_id=None):
        keys = [
            k
            for k, r in self._rows.items()
            if r.employee_id == int(employee_id)
            and start_date <= r.work_date <= end_date
            and r.status == status
            and (leave_id is None or r.leave_id == int(leave_id))
        ]
        for k in keys:
            del self._rows[k]
        return len(keys)

    def count_by_status(self, *, employee_id, start_date, end_date):
        return dict(Counter(r.status for r in self.list_for_employee_in_range(
            employee_id=employee_id, start_date=start_date, end_date=end_date
        )))


def _leave_matches(leave: LeaveRequest, f: LeaveFilter) -> bool:
    s = leave.snapshot
    if f.employee_id is not None and leave.employee_id != int(f.employee_id):
        return False
    if f.employee_code and s.employee_code != f.employee_code:
        return False
    if f.status is not None and leave.status != f.status:
        return False
    if f.leave_type is not None and leave.leave_type != f.leave_type:
        return False
    if f.department and s.department != f.department:
        return False
    if f.start_date is not None and leave.start_date < f.start_date:
        return False
    if f.end_date is not None and leave.start_date > f.end_date:
        return False
    if f.search:
        needle = f.search.lower()
        haystack = [s.employee_name, s.employee_code, s.department or "", leave.reason, leave.leave_type.value]
        if not any(needle in h.lower() for h in haystack):
            return False
    return True


class FakeLeavesRepo:
    def __init__(self):
        self._by_id: dict[int, LeaveRequest] = {}
        self._next_id = 1

    def create(self, *, leave: NewLeaveRequest):
        leave_id = self._next_id
        self._next_id += 1
        self._by_id[leave_id] = LeaveRequest(
            leave_id=leave_id,
            employee_id=leave.employee_id,
            snapshot=leave.snapshot,
            leave_type=leave.leave_type,
            pay_status=leave.pay_status,
            start_date=leave.start_date,
            end_date=leave.end_date,
            total_days=leave.total_days,
            reason=leave.reason,
            status=LeaveStatus.PENDING,
            created_at=datetime(2024, 1, 1, 9, 0, leave_id % 60),
            created_by=leave.created_by,
            updated_by=leave.created_by,
        )
        return leave_id

    def get_by_id(self, leave_id):
        return self._by_id.get(int(leave_id))

    def find_overlapping(self, *, employee_id, start_date, end_date, statuses, exclude_id=None):
        return sorted(
            (
                l
                for l in self._by_id.values()
                if l.employee_id == int(employee_id)
                and l.start_date <= end_date
                and l.end_date >= start_date
                and l.status in statuses
                and (exclude_id is None or l.leave_id != int(exclude_id))
            ),
            key=lambda l: l.start_date,
        )

    def mark_approved(self, *, leave_id, pay_status, approver_id, approver_name, approved_at):
        leave = self._by_id.get(int(leave_id))
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self._by_id[leave.leave_id] = replace(
            leave,
            status=LeaveStatus.APPROVED,
            pay_status=pay_status,
            approved_by=approver_id,
            approved_by_name=approver_name,
            approved_at=approved_at,
            updated_by=approver_id,
        )
        return True

    def mark_rejected(self, *, leave_id, rejecter_id, rejecter_name, reason, rejected_at):
        leave = self._by_id.get(int(leave_id))
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self._by_id[leave.leave_id] = replace(
            leave,
            status=LeaveStatus.REJECTED,
            rejected_by=rejecter_id,
            rejected_by_name=rejecter_name,
            rejected_at=rejected_at,
            rejection_reason=reason,
            updated_by=rejecter_id,
        )
        return True

    def update_details(self, *, leave_id, changes, actor_id):
        leave = self._by_id.get(int(leave_id))
        if not leave or leave.status != LeaveStatus.PENDING:
            return False
        self._by_id[leave.leave_id] = replace(
            leave,
            leave_type=changes.leave_type,
            pay_status=changes.pay_status,
            start_date=changes.start_date,
            end_date=changes.end_date,
            total_days=changes.total_days,
            reason=changes.reason,
            updated_by=actor_id,
        )
        return True

    def delete(self, leave_id):
        return self._by_id.pop(int(leave_id), None) is not None

    def search(self, *, filters, page, limit):
        rows = sorted(
            (l for l in self._by_id.values() if _leave_matches(l, filters)),
            key=lambda l: (l.created_at, l.leave_id),
            reverse=True,
        )
        offset = (max(int(page), 1) - 1) * int(limit)
        return rows[offset:offset + int(limit)], len(rows)

    def list_matching(self, *, filters):
        return sorted(
            (l for l in self._by_id.values() if _leave_matches(l, filters)),
            key=lambda l: (l.start_date, l.leave_id),
            reverse=True,
        )


class FakeSalaryRulesRepo:
    def __init__(self):
        self._by_id: dict[int, SalaryRule] = {}
        self._next_id = 1

    def list_all(self):
        return sorted(self._by_id.values(), key=lambda r: (r.created_at, r.rule_id), reverse=True)

    def list_active(self, *, as_of):
        return sorted(
            (r for r in self._by_id.values() if r.is_active and r.effective_from <= as_of),
            key=lambda r: (r.effective_from, r.created_at, r.rule_id),
            reverse=True,
        )

    def get_by_id(self, rule_id):
        return self._by_id.get(int(rule_id))

    def get_by_code(self, rule_code):
        return next((r for r in self._by_id.values() if r.rule_code == rule_code), None)

    def create(self, *, rule: NewSalaryRule, actor_id=None, created_at: datetime = CREATED_AT):
        if self.get_by_code(rule.rule_code):
            raise DuplicateRuleCodeError(f"Rule code {rule.rule_code} already exists")
        rule_id = self._next_id
        self._next_id += 1
        self._by_id[rule_id] = SalaryRule(
            rule_id=rule_id,
            rule_code=rule.rule_code,
            title=rule.title,
            description=rule.description,
            rule_type=rule.rule_type,
            calculation=rule.calculation,
            deduction_amount=rule.deduction_amount,
            conditions=rule.conditions,
            is_active=rule.is_active,
            is_system_default=rule.is_system_default,
            created_at=created_at,
            components=rule.components,
            additions=rule.additions,
            deductions=rule.deductions,
            working_days_per_month=rule.working_days_per_month,
            per_day_salary_calculation=rule.per_day_salary_calculation,
            created_by=actor_id,
            updated_by=actor_id,
        )
        return rule_id

    def update(self, *, rule_id, rule: NewSalaryRule, actor_id=None):
        existing = self._by_id.get(int(rule_id))
        if not existing:
            return False
        self._by_id[existing.rule_id] = replace(
            existing,
            title=rule.title,
            description=rule.description,
            rule_type=rule.rule_type,
            calculation=rule.calculation,
            deduction_amount=rule.deduction_amount,
            conditions=rule.conditions,
            is_active=rule.is_active,
            components=rule.components,
            additions=rule.additions,
            deductions=rule.deductions,
            working_days_per_month=rule.working_days_per_month,
            per_day_salary_calculation=rule.per_day_salary_calculation,
            updated_by=actor_id,
        )
        return True

    def delete(self, rule_id):
        return self._by_id.pop(int(rule_id), None) is not None


def _payroll_matches(p: PayrollRecord, f: PayrollFilter) -> bool:
    if p.is_deleted:
        return False
    if f.employee_id is not None and p.employee_id != int(f.employee_id):
        return False
    if f.month is not None and p.month != int(f.month):
        return False
    if f.year is not None and p.year != int(f.year):
        return False
    if f.status is not None and p.status != f.status:
        return False
    if f.department and p.department != f.department:
        return False
    if f.search:
        needle = f.search.lower()
        if not any(needle in (v or "").lower() for v in (p.employee_name, p.employee_code, p.department)):
            return False
    return True


class FakePayrollsRepo:
    def __init__(self):
        self._by_id: dict[int, PayrollRecord] = {}
        self._next_id = 1

    def all(self):
        return sorted(self._by_id.values(), key=lambda p: p.payroll_id)

    def create(self, *, payroll: NewPayroll):
        for p in self._by_id.values():
            if p.employee_id == payroll.employee_id and p.period_start == payroll.period_start:
                raise DuplicatePeriodError(
                    f"Payroll already exists for employee {payroll.employee_id} "
                    f"starting {payroll.period_start.isoformat()}"
                )
        payroll_id = self._next_id
        self._next_id += 1
        self._by_id[payroll_id] = PayrollRecord(
            payroll_id=payroll_id,
            employee_id=payroll.employee_id,
            employee_name=payroll.employee_name,
            employee_code=payroll.employee_code,
            department=payroll.department,
            designation=payroll.designation,
            period_start=payroll.period_start,
            period_end=payroll.period_end,
            month=payroll.month,
            year=payroll.year,
            status=PayrollStatus.PENDING,
            breakdown=payroll.breakdown,
            created_at=CREATED_AT,
            auto_generated=payroll.auto_generated,
            notes=payroll.notes,
            created_by=payroll.created_by,
            updated_by=payroll.created_by,
        )
        return payroll_id

    def get_by_id(self, payroll_id):
        p = self._by_id.get(int(payroll_id))
        return p if p and not p.is_deleted else None

    def find_overlapping(self, *, employee_id, period_start, period_end):
        return sorted(
            (
                p
                for p in self._by_id.values()
                if p.employee_id == int(employee_id)
                and p.period_start <= period_end
                and p.period_end >= period_start
                and not p.is_deleted
            ),
            key=lambda p: p.period_start,
        )

    def find_exact_period(self, *, employee_id, period_start, period_end):
        return next(
            (
                p
                for p in self._by_id.values()
                if p.employee_id == int(employee_id)
                and p.period_start == period_start
                and p.period_end == period_end
                and not p.is_deleted
            ),
            None,
        )

    def find_enclosing(self, *, employee_id, start_date, end_date):
        matches = sorted(
            (
                p
                for p in self._by_id.values()
                if p.employee_id == int(employee_id)
                and p.period_start <= start_date
                and p.period_end >= end_date
                and not p.is_deleted
            ),
            key=lambda p: p.period_start,
            reverse=True,
        )
        return matches[0] if matches else None

    def save_amounts(self, *, payroll_id, earnings, deductions, summary, actor_id):
        p = self._by_id.get(int(payroll_id))
        if not p:
            return False
        breakdown = replace(p.breakdown, earnings=earnings, deductions=deductions, summary=summary)
        self._by_id[p.payroll_id] = replace(p, breakdown=breakdown, updated_by=actor_id)
        return True

    def save_breakdown(self, *, payroll_id, breakdown, actor_id):
        p = self._by_id.get(int(payroll_id))
        if not p:
            return False
        self._by_id[p.payroll_id] = replace(p, breakdown=breakdown, updated_by=actor_id)
        return True

    def apply_status_change(self, *, payroll_id, change, expected_status=None):
        p = self._by_id.get(int(payroll_id))
        if not p or p.is_deleted:
            return False
        if expected_status is not None and p.status != expected_status:
            return False
        fields = {
            "status": change.status,
            "employee_approved": change.employee_approved,
            "employee_approved_at": change.employee_approved_at,
            "approved_by": change.approved_by,
            "approved_at": change.approved_at,
            "rejected_by": change.rejected_by,
            "rejected_at": change.rejected_at,
            "rejection_reason": change.rejection_reason,
            "payment_date": change.payment_date,
            "acceptance": change.acceptance,
        }
        updates = {k: v for k, v in fields.items() if v is not None}
        self._by_id[p.payroll_id] = replace(p, updated_by=change.actor_id, **updates)
        return True

    def delete(self, payroll_id):
        return self._by_id.pop(int(payroll_id), None) is not None

    def _ordered(self, filters):
        return sorted(
            (p for p in self._by_id.values() if _payroll_matches(p, filters)),
            key=lambda p: (-p.year, -p.month, p.employee_name),
        )

    def search(self, *, filters, page, limit):
        rows = self._ordered(filters)
        offset = (max(int(page), 1) - 1) * int(limit)
        return rows[offset:offset + int(limit)], len(rows)

    def list_matching(self, *, filters):
        return self._ordered(filters)


class FakeMealsRepo:
    def __init__(self, *, subscribers=(), food_cost: float = 0.0, active_subscribers: int = 0, daily_meals=None):
        self.subscribers = set(subscribers)
        self.food_cost = food_cost
        self.active_subscribers = active_subscribers
        self.daily_meals = dict(daily_meals or {})

    def has_monthly_subscription(self, *, employee_id, month, year):
        return int(employee_id) in self.subscribers

    def count_active_subscribers(self, *, month, year):
        return self.active_subscribers

    def monthly_food_cost(self, *, month, year):
        return self.food_cost

    def count_daily_meals(self, *, employee_id, start_date, end_date):
        return self.daily_meals.get(int(employee_id), 0)


class SnapshotTransaction:
    """Re-entrant stand-in for DatabaseConnection.transaction over in-memory repos.

    The outermost block restores every repo's state when it exits with an exception.
    Blocks run one at a time across threads, like conflicting row locks in MySQL.
    """

    def __init__(self, *repos):
        self._repos = repos
        self._lock = threading.RLock()
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def __call__(self):
        with self._lock:
            with self._block():
                yield

    @contextmanager
    def _block(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        saved = [copy.deepcopy(r.__dict__) for r in self._repos]
        self._depth = 1
        try:
            yield
        except Exception:
            for repo, state in zip(self._repos, saved):
                repo.__dict__.clear()
                repo.__dict__.update(state)
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth = 0


def hold_after_first_call(repo, method_name: str, *, parties: int = 2) -> None:
    """Each thread's first `method_name` call waits until `parties` threads have made theirs.

    Later calls from the same thread run straight through.
    """
    barrier = threading.Barrier(parties, timeout=5)
    seen = threading.local()
    original = getattr(repo, method_name)

    def wrapper(*args, **kwargs):
        result = original(*args, **kwargs)
        if not getattr(seen, "done", False):
            seen.done = True
            barrier.wait()
        return result

    setattr(repo, method_name, wrapper)


def run_in_threads(*targets) -> list:
    """Run each callable in its own thread; returns results or raised exceptions in start order."""
    outcomes: list = [None] * len(targets)

    def run(index, target):
        try:
            outcomes[index] = target()
        except Exception as e:
            outcomes[index] = e

    threads = [threading.Thread(target=run, args=(i, t)) for i, t in enumerate(targets)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return outcomes


def build_fake_container(
    *,
    employees=(),
    meals: Optional[FakeMealsRepo] = None,
) -> Container:
    employees_repo = FakeEmployeesRepo(employees)
    attendance_repo = FakeAttendanceRepo()
    leaves_repo = FakeLeavesRepo()
    salary_rules_repo = FakeSalaryRulesRepo()
    payrolls_repo = FakePayrollsRepo()
    meals_repo = meals or FakeMealsRepo()
    transaction = SnapshotTransaction(attendance_repo, leaves_repo, payrolls_repo)

    return assemble(
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        leaves_repo=leaves_repo,
        salary_rules_repo=salary_rules_repo,
        payrolls_repo=payrolls_repo,
        meals_repo=meals_repo,
        transaction=transaction,
    )
