"""
Background scheduler for recurring payroll work.

The monthly batch runs on the 5th at 01:00 in the configured timezone and
creates payrolls for the previous calendar month.
"""

import atexit
import logging

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from ..core.constants import PAYROLL_BATCH_DAY_OF_MONTH, PAYROLL_BATCH_HOUR
from ..payroll.service import PayrollService
from .payroll_jobs import run_monthly_payroll

logger = logging.getLogger(__name__)

MONTHLY_PAYROLL_JOB_ID = "monthly_payroll"

jobstores = {
    "default": MemoryJobStore()
}

executors = {
    "default": ThreadPoolExecutor(2),
}

job_defaults = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 3600,
}

scheduler = BackgroundScheduler(
    jobstores=jobstores,
    executors=executors,
    job_defaults=job_defaults,
)


def _run_monthly_payroll(payroll_service: PayrollService):
    try:
        run_monthly_payroll(payroll_service)
    except Exception as e:
        logger.error(f"Job '{MONTHLY_PAYROLL_JOB_ID}' failed: {e}")


def start_scheduler(payroll_service: PayrollService, timezone: str = "Asia/Dhaka"):
    """Start the scheduler with the monthly payroll job."""
    if scheduler.running:
        return

    scheduler.configure(timezone=timezone)
    scheduler.add_job(
        _run_monthly_payroll,
        CronTrigger(day=PAYROLL_BATCH_DAY_OF_MONTH, hour=PAYROLL_BATCH_HOUR, minute=0, timezone=timezone),
        args=[payroll_service],
        id=MONTHLY_PAYROLL_JOB_ID,
        name="Monthly Payroll Generation",
        replace_existing=True,
    )
    scheduler.start()
    atexit.register(shutdown_scheduler)
    logger.info("Background job scheduler started")

    for job in scheduler.get_jobs():
        logger.info(f"Scheduled job: {job.name} - Next run: {job.next_run_time}")


def shutdown_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background job scheduler stopped")

