from datetime import date, timedelta

import pytest

from src.hr_payroll.hr_payroll.core.enums import (
    AmountSource,
    AttendanceStatus,
    LeavePayStatus,
    LeaveStatus,
    LeaveType,
    MealDeductionType,
    PayrollStatus,
    Role,
    WorkLocationType,
)
from src.hr_payroll.hr_payroll.core.exceptions import (
    AlreadyProcessedError,
    AuthorizationError,
    DuplicatePeriodError,
    NotFoundError,
    ValidationError,
)
from src.hr_payroll.hr_payroll.jobs.payroll_jobs import run_monthly_payroll
from src.hr_payroll.hr_payroll.leaves.model import EmployeeSnapshot, NewLeaveRequest
from src.hr_payroll.hr_payroll.payroll.model import PayrollFilter
from src.hr_payroll.hr_payroll.payroll.service import leave_deduction_amount
from tests.fakes import (
    FakeMealsRepo,
    build_fake_container,
    hold_after_first_call,
    make_employee,
    make_rule_set,
    run_in_threads,
)

ADMIN_ID = 1
JANUARY = {"employeeId": 7, "periodStart": "2026-01-01", "periodEnd": "2026-01-31"}


def _container(*, per_day=False, employees=None, meals=None, with_rules=True):
    employees = employees or [
        make_employee(ADMIN_ID, role=Role.ADMIN, annual_salary=240000),
        make_employee(7, annual_salary=108000),
        make_employee(8, annual_salary=108000),
    ]
    c = build_fake_container(employees=employees, meals=meals)
    if with_rules:
        c.salary_rules_repo.create(rule=make_rule_set(per_day=per_day))
    return c


def _create(c, payload=None):
    return c.payroll_service.create_payroll(current_role=Role.ADMIN, actor_id=ADMIN_ID, payload=payload or JANUARY)


def _leave(c, *, employee_id=7, start=date(2026, 1, 5), end=date(2026, 1, 7), pay=LeavePayStatus.UNPAID):
    return c.leaves_repo.create(
        leave=NewLeaveRequest(
            employee_id=employee_id,
            snapshot=EmployeeSnapshot(employee_name=f"Employee {employee_id}", employee_code=f"EMP-{employee_id:04d}"),
            leave_type=LeaveType.CASUAL,
            pay_status=pay,
            start_date=start,
            end_date=end,
            total_days=(end - start).days + 1,
            reason="Personal",
            created_by=employee_id,
        )
    )


def _approve(c, leave_id, pay_status=None):
    return c.leave_service.approve_leave(
        current_role=Role.ADMIN, approver_id=ADMIN_ID, leave_id=leave_id, pay_status=pay_status
    )


def test_create_payroll_persists_pending_record_with_snapshot():
    c = _container()

    payroll = _create(c)

    assert payroll.status == PayrollStatus.PENDING
    assert payroll.employee_name == "Employee 7"
    assert payroll.employee_code == "EMP-0007"
    assert (payroll.month, payroll.year) == (1, 2026)
    assert payroll.basic_pay == 9000
    assert payroll.net_payable == 9000
    assert payroll.breakdown.summary.net_payable_in_words == "Nine Thousand Taka Only"
    assert payroll.created_by == ADMIN_ID
    assert c.employees_repo.locked == [7]


def test_same_or_overlapping_period_is_rejected_and_creates_nothing():
    c = _container()
    _create(c)

    with pytest.raises(DuplicatePeriodError):
        _create(c)
    with pytest.raises(DuplicatePeriodError):
        _create(c, {"employeeId": 7, "periodStart": "2026-01-20", "periodEnd": "2026-02-19"})

    assert len(c.payrolls_repo.all()) == 1


def test_other_employee_same_period_is_allowed():
    c = _container()
    _create(c)
    _create(c, {**JANUARY, "employeeId": 8})

    assert len(c.payrolls_repo.all()) == 2


def test_concurrent_creates_for_one_period_persist_one_record():
    c = _container()
    # Both calls pass the unlocked overlap check before either one writes.
    hold_after_first_call(c.payrolls_repo, "find_overlapping")

    outcomes = run_in_threads(lambda: _create(c), lambda: _create(c, {**JANUARY, "periodStart": "2026-01-15"}))

    assert len([o for o in outcomes if isinstance(o, DuplicatePeriodError)]) == 1
    assert len([o for o in outcomes if not isinstance(o, Exception)]) == 1
    assert len(c.payrolls_repo.all()) == 1
    assert c.employees_repo.locked == [7, 7]


def test_create_payroll_requires_admin_and_valid_period():
    c = _container()

    with pytest.raises(AuthorizationError):
        c.payroll_service.create_payroll(current_role=Role.EMPLOYEE, actor_id=7, payload=JANUARY)
    with pytest.raises(ValidationError):
        _create(c, {"employeeId": 7, "periodStart": "2026-01-31", "periodEnd": "2026-01-01"})
    with pytest.raises(ValidationError):
        _create(c, {"employeeId": 7, "periodStart": "2026-01-01"})

    assert c.payrolls_repo.all() == []


def test_preview_persists_nothing():
    c = _container(per_day=True, employees=[make_employee(ADMIN_ID, role=Role.ADMIN), make_employee(7)])
    c.attendance_repo.add_many(7, [date(2026, 1, d) for d in range(1, 21)], AttendanceStatus.PRESENT)

    data = c.payroll_service.preview(current_role=Role.ADMIN, actor_id=ADMIN_ID, payload=JANUARY)

    assert data["calculation"]["basic_pay"] == 7692.31
    assert data["payroll"]["summary"]["net_payable"] == 7692.31
    assert c.payrolls_repo.all() == []


def test_payable_days_counts_half_days_as_half():
    c = _container()
    c.attendance_repo.add_many(7, [date(2026, 1, d) for d in range(1, 11)], AttendanceStatus.PRESENT)
    c.attendance_repo.add_many(7, [date(2026, 1, 11), date(2026, 1, 12)], AttendanceStatus.HALF_DAY)

    payroll = _create(c)

    assert payroll.breakdown.summary.payable_days == 11
    # 2 half days at 9000/26 per day
    assert payroll.breakdown.deductions.half_day == round(9000 / 26, 2)


def test_monthly_subscription_meal_cost_is_split_between_subscribers():
    c = _container(meals=FakeMealsRepo(subscribers={7}, food_cost=30000, active_subscribers=10))

    payroll = _create(c)

    assert payroll.breakdown.deductions.meal == 3000
    assert payroll.breakdown.meal["type"] == MealDeductionType.MONTHLY_SUBSCRIPTION.value
    assert payroll.net_payable == 6000


def test_daily_meals_use_the_given_rate():
    c = _container(meals=FakeMealsRepo(daily_meals={7: 12}))

    payroll = _create(c, {**JANUARY, "dailyMealRate": 50})

    assert payroll.breakdown.deductions.meal == 600
    assert payroll.breakdown.meal["meal_days"] == 12


def test_onsite_employee_gets_tea_allowance_and_service_charge():
    onsite = make_employee(9, annual_salary=108000, work_location_type=WorkLocationType.ONSITE)
    c = _container(employees=[make_employee(ADMIN_ID, role=Role.ADMIN), onsite])
    c.attendance_repo.add_many(9, [date(2026, 1, d) for d in range(1, 21)], AttendanceStatus.PRESENT)

    payroll = _create(c, {**JANUARY, "employeeId": 9})

    assert payroll.breakdown.earnings.onsite_tea_allowance == 200
    assert payroll.breakdown.deductions.onsite_service_charge == 500
    assert payroll.net_payable == 9000 + 200 - 500


def test_manual_inputs_are_applied_with_provenance():
    c = _container()
    payroll = _create(c, {**JANUARY, "bonus": 1000, "tax": 500})

    assert payroll.breakdown.earnings.bonus.amount == 1000
    assert payroll.breakdown.earnings.bonus.source == AmountSource.MANUAL
    assert payroll.breakdown.earnings.overtime.source == AmountSource.NONE
    assert payroll.net_payable == 9500


def test_negative_manual_amount_is_rejected():
    c = _container()

    with pytest.raises(ValidationError):
        _create(c, {**JANUARY, "tax": -1})


def test_update_manual_inputs_keeps_unlisted_amounts():
    c = _container()
    payroll = _create(c, {**JANUARY, "bonus": 1000})

    updated = c.payroll_service.update_manual_inputs(
        current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"loan": 2000}
    )

    assert updated.breakdown.earnings.bonus.amount == 1000
    assert updated.breakdown.deductions.loan == 2000
    assert updated.net_payable == 9000 + 1000 - 2000


def _recalculate(c, payroll_id):
    return c.payroll_service.recalculate(current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll_id)


def test_recalculate_charges_an_approved_unpaid_leave_once():
    c = _container()
    payroll = _create(c, {**JANUARY, "overtime": 300})
    _approve(c, _leave(c))
    assert c.payrolls_repo.get_by_id(payroll.payroll_id).net_payable == 9000 + 300 - 900

    recalculated = _recalculate(c, payroll.payroll_id)

    d = recalculated.breakdown.deductions
    assert recalculated.breakdown.earnings.overtime.amount == 300
    assert d.leave == 900
    assert d.leave_adjustments == 0
    assert recalculated.net_payable == 9000 + 300 - 900
    assert _recalculate(c, payroll.payroll_id).net_payable == recalculated.net_payable


def test_recalculate_picks_up_new_attendance():
    c = _container()
    payroll = _create(c, {**JANUARY, "overtime": 300})
    _approve(c, _leave(c))
    c.attendance_repo.add(7, date(2026, 1, 20), AttendanceStatus.ABSENT)

    recalculated = _recalculate(c, payroll.payroll_id)

    assert recalculated.breakdown.deductions.absent == round(9000 / 26, 2)
    assert recalculated.net_payable == pytest.approx(9000 + 300 - 900 - round(9000 / 26, 2))


def test_recalculate_keeps_leave_adjustments_in_per_day_mode():
    c = _container(per_day=True)
    c.attendance_repo.add_many(7, [date(2026, 1, d) for d in range(8, 28)], AttendanceStatus.PRESENT)
    payroll = _create(c)
    _approve(c, _leave(c))
    adjusted = c.payrolls_repo.get_by_id(payroll.payroll_id)

    recalculated = _recalculate(c, payroll.payroll_id)

    # 3 Unpaid days at 6923.08 / 30
    assert adjusted.breakdown.deductions.leave_adjustments == 692.31
    assert recalculated.breakdown.deductions.leave_adjustments == 692.31
    assert recalculated.breakdown.deductions.leave == 0
    assert recalculated.net_payable == adjusted.net_payable == 6230.77


def test_leave_approval_deducts_unpaid_days_from_enclosing_payroll():
    c = _container()
    payroll = _create(c)

    _, adjustment = _approve(c, _leave(c, pay=LeavePayStatus.UNPAID))

    updated = c.payrolls_repo.get_by_id(payroll.payroll_id)
    assert adjustment == {"applied": True, "payroll_id": payroll.payroll_id, "amount": 900, "net_payable": 8100}
    assert updated.breakdown.deductions.leave_adjustments == 900
    assert updated.net_payable == 8100
    assert updated.breakdown.summary.total_deductions == 900


def test_half_paid_leave_deducts_half():
    c = _container()
    payroll = _create(c)

    _approve(c, _leave(c, pay=LeavePayStatus.HALF_PAID))

    assert c.payrolls_repo.get_by_id(payroll.payroll_id).net_payable == 8550


def test_paid_leave_and_uncovered_leave_leave_payroll_alone():
    c = _container()
    payroll = _create(c)

    _, paid = _approve(c, _leave(c, pay=LeavePayStatus.PAID))
    _, outside = _approve(c, _leave(c, start=date(2026, 2, 2), end=date(2026, 2, 3)))

    assert paid["applied"] is False
    assert outside["applied"] is False
    assert c.payrolls_repo.get_by_id(payroll.payroll_id).net_payable == 9000


def test_leave_approval_skips_finalized_payroll():
    c = _container()
    payroll = _create(c)
    c.payroll_service.employee_action(actor_id=7, payroll_id=payroll.payroll_id, action="accept")

    leave, adjustment = _approve(c, _leave(c))

    assert leave.status == LeaveStatus.APPROVED
    assert adjustment["applied"] is False
    assert adjustment["payroll_id"] == payroll.payroll_id
    assert c.payrolls_repo.get_by_id(payroll.payroll_id).net_payable == 9000


def test_leave_deduction_amount():
    assert leave_deduction_amount(9000, 3, LeavePayStatus.UNPAID) == 900
    assert leave_deduction_amount(9000, 3, LeavePayStatus.HALF_PAID) == 450
    assert leave_deduction_amount(9000, 3, LeavePayStatus.PAID) == 0


def test_employee_accept_sets_paid_and_approval_together():
    c = _container()
    payroll = _create(c)

    accepted = c.payroll_service.employee_action(
        actor_id=7, payroll_id=payroll.payroll_id, action="accept", ip="10.0.0.5", user_agent="pytest"
    )

    assert accepted.status == PayrollStatus.PAID
    assert accepted.employee_approved is True
    assert accepted.payment_date is not None
    assert accepted.employee_approved_at is not None
    assert accepted.acceptance["accepted"] is True
    assert accepted.acceptance["ip"] == "10.0.0.5"


def test_employee_reject_stores_reason():
    c = _container()
    payroll = _create(c)

    rejected = c.payroll_service.employee_action(actor_id=7, payroll_id=payroll.payroll_id, action="reject")

    assert rejected.status == PayrollStatus.REJECTED
    assert rejected.employee_approved is False
    assert rejected.rejection_reason == "No reason provided"


def test_employee_action_is_only_for_owner_and_pending():
    c = _container()
    payroll = _create(c)

    with pytest.raises(AuthorizationError):
        c.payroll_service.employee_action(actor_id=8, payroll_id=payroll.payroll_id, action="accept")
    with pytest.raises(ValidationError):
        c.payroll_service.employee_action(actor_id=7, payroll_id=payroll.payroll_id, action="maybe")

    c.payroll_service.employee_action(actor_id=7, payroll_id=payroll.payroll_id, action="accept")
    with pytest.raises(AlreadyProcessedError):
        c.payroll_service.employee_action(actor_id=7, payroll_id=payroll.payroll_id, action="reject")


def test_admin_status_update_and_terminal_guard():
    c = _container()
    payroll = _create(c)

    approved = c.payroll_service.update_status(
        current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"status": "Approved"}
    )
    assert approved.status == PayrollStatus.APPROVED
    assert approved.approved_by == ADMIN_ID

    paid = c.payroll_service.update_status(
        current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"status": "Paid"}
    )
    assert paid.payment_date is not None

    with pytest.raises(AlreadyProcessedError):
        c.payroll_service.update_status(
            current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"status": "Pending"}
        )
    with pytest.raises(ValidationError):
        c.payroll_service.update_manual_inputs(
            current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"bonus": 1}
        )


@pytest.mark.parametrize("flag, expected", [(True, True), ("true", True), (False, False), ("false", False)])
def test_admin_employee_approved_flag_is_parsed_as_boolean(flag, expected):
    c = _container()
    payroll = _create(c)

    updated = c.payroll_service.update_status(
        current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"employeeApproved": flag}
    )

    assert updated.employee_approved is expected
    assert (updated.employee_approved_at is not None) is expected


@pytest.mark.parametrize("flag", ["yes", 1, "0"])
def test_admin_employee_approved_flag_rejects_non_booleans(flag):
    c = _container()
    payroll = _create(c)

    with pytest.raises(ValidationError):
        c.payroll_service.update_status(
            current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id, payload={"employeeApproved": flag}
        )

    assert c.payrolls_repo.get_by_id(payroll.payroll_id).employee_approved is False


def test_delete_and_read_authorization():
    c = _container()
    payroll = _create(c)

    with pytest.raises(AuthorizationError):
        c.payroll_service.get(current_role=Role.EMPLOYEE, actor_id=8, payroll_id=payroll.payroll_id)
    assert c.payroll_service.get(current_role=Role.EMPLOYEE, actor_id=7, payroll_id=payroll.payroll_id)

    c.payroll_service.delete(current_role=Role.ADMIN, payroll_id=payroll.payroll_id)
    with pytest.raises(NotFoundError):
        c.payroll_service.get(current_role=Role.ADMIN, actor_id=ADMIN_ID, payroll_id=payroll.payroll_id)


def test_monthly_batch_covers_previous_month_and_skips_existing():
    c = _container()
    _create(c)

    result = c.payroll_service.generate_monthly_batch(today=date(2026, 2, 5))

    assert result["period"] == {"month": 1, "year": 2026, "start": "2026-01-01", "end": "2026-01-31"}
    assert result["total_employees"] == 2
    assert result["created"] == 1
    assert result["skipped"] == 1
    assert result["failed"] == 0
    assert [r["employee_id"] for r in result["results"]] == [8]
    assert result["total_net_payable"] == 9000


def test_monthly_batch_collects_errors_without_aborting():
    c = _container(with_rules=False)

    result = c.payroll_service.generate_monthly_batch(today=date(2026, 1, 5))

    assert result["period"]["month"] == 12
    assert result["period"]["year"] == 2025
    assert result["created"] == 0
    assert result["failed"] == 2
    assert {e["employee_id"] for e in result["errors"]} == {7, 8}
    assert c.payrolls_repo.all() == []


def test_monthly_batch_treats_overlapping_record_as_skipped():
    c = _container()
    _create(c, {"employeeId": 7, "periodStart": "2026-01-15", "periodEnd": "2026-02-14"})

    result = c.payroll_service.generate_monthly_batch(today=date(2026, 2, 5))

    assert result["created"] == 1
    assert result["skipped"] == 1


def test_scheduled_job_runs_the_batch():
    c = _container()

    result = run_monthly_payroll(c.payroll_service, today=date(2026, 3, 5))

    assert result["created"] == 2
    periods = {(p.month, p.year) for p in c.payrolls_repo.all()}
    assert periods == {(2, 2026)}


def test_list_stats_and_export():
    c = _container()
    first = _create(c)
    _create(c, {**JANUARY, "employeeId": 8, "bonus": 500})
    c.payroll_service.employee_action(actor_id=7, payroll_id=first.payroll_id, action="accept")

    rows, total, summary = c.payroll_service.list_payrolls(
        current_role=Role.ADMIN, filters=PayrollFilter(month=1, year=2026), page=1, limit=1
    )
    assert total == 2
    assert len(rows) == 1
    assert summary["total_net_payable"] == 18500

    stats = c.payroll_service.stats(current_role=Role.ADMIN, month=1, year=2026)
    assert stats["by_status"]["Paid"] == 1
    assert stats["by_status"]["Pending"] == 1
    assert stats["employee_approved"] == 1

    export = c.payroll_service.export(current_role=Role.ADMIN, filters=PayrollFilter(month=1, year=2026))
    assert {r["Employee ID"] for r in export} == {"EMP-0007", "EMP-0008"}
    assert all(r["Period"] == "2026-01-01 to 2026-01-31" for r in export)

    mine = c.payroll_service.list_for_employee(current_role=Role.EMPLOYEE, actor_id=7, employee_id=7)
    assert [p.payroll_id for p in mine["records"]] == [first.payroll_id]
    assert mine["summary"]["by_status"] == {"Paid": 1}
    with pytest.raises(AuthorizationError):
        c.payroll_service.list_for_employee(current_role=Role.EMPLOYEE, actor_id=7, employee_id=8)


def test_unpaid_leave_approved_before_creation_is_deducted_in_monthly_mode():
    c = _container()
    leave_id = _leave(c, start=date(2026, 1, 30), end=date(2026, 2, 2))
    _approve(c, leave_id)

    payroll = _create(c)

    # Only the 2 in-period days count.
    assert payroll.breakdown.deductions.leave == 600
    assert payroll.breakdown.attendance["leave_days"] == 2
    assert payroll.net_payable == 8400


def test_thirty_day_april_period_keeps_its_end_date():
    c = _container()
    start = date(2026, 4, 1)
    end = start + timedelta(days=29)

    payroll = _create(c, {"employeeId": 7, "periodStart": start.isoformat(), "periodEnd": end.isoformat()})

    assert payroll.period_end == date(2026, 4, 30)
