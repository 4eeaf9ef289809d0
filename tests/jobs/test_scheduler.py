from src.hr_payroll.hr_payroll.jobs import scheduler as payroll_scheduler


def test_start_scheduler_registers_monthly_job_and_exit_shutdown(monkeypatch):
    registered = []
    monkeypatch.setattr(payroll_scheduler.atexit, "register", registered.append)

    try:
        payroll_scheduler.start_scheduler(object(), timezone="UTC")

        job = payroll_scheduler.scheduler.get_job(payroll_scheduler.MONTHLY_PAYROLL_JOB_ID)
        assert job is not None
        assert str(job.trigger.fields[2]) == "5"
        assert registered == [payroll_scheduler.shutdown_scheduler]

        # Already running: no second job and no second exit hook.
        payroll_scheduler.start_scheduler(object(), timezone="UTC")
        assert len(payroll_scheduler.scheduler.get_jobs()) == 1
        assert len(registered) == 1
    finally:
        payroll_scheduler.shutdown_scheduler()

    assert not payroll_scheduler.scheduler.running
