from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..payroll.service import PayrollService

logger = logging.getLogger(__name__)


def run_monthly_payroll(payroll_service: PayrollService, today: Optional[date] = None) -> dict:
    """Create last month's payroll for every active employee."""
    logger.info("Starting monthly payroll job...")
    result = payroll_service.generate_monthly_batch(today=today)
    period = result["period"]
    logger.info(
        "Monthly payroll job for %02d/%s done: %s/%s created, %s skipped, %s failed",
        period["month"],
        period["year"],
        result["created"],
        result["total_employees"],
        result["skipped"],
        result["failed"],
    )
    for error in result["errors"]:
        logger.warning("Payroll job error for %s: %s", error["employee_code"], error["error"])
    return result
