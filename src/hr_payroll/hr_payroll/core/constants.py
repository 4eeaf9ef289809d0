"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_WORKING_DAYS_PER_MONTH = 26
HOURS_PER_WORKING_DAY = 8

# Daily rate divisor applied when an approved unpaid leave adjusts a payroll.
LEAVE_ADJUSTMENT_DAYS_DIVISOR = 30

DEFAULT_LATE_THRESHOLD = 3

ONSITE_SERVICE_CHARGE = 500
ONSITE_TEA_RATE = 10

CURRENCY_LABEL = "Taka"

DEFAULT_PAGE_SIZE = 100
UPCOMING_LEAVE_WINDOW_DAYS = 30
UPCOMING_LEAVE_LIMIT = 5

PAYROLL_BATCH_DAY_OF_MONTH = 5
PAYROLL_BATCH_HOUR = 1

# Annual entitlement in days per leave type.
LEAVE_ENTITLEMENTS = {
    "Sick": 15,
    "Annual": 20,
    "Casual": 10,
    "Maternity": 180,
    "Paternity": 15,
    "Emergency": 5,
}

LEAVE_ENTITLEMENT_DESCRIPTIONS = {
    "Sick": "For illness or medical appointments",
    "Annual": "Paid time off for vacation or personal matters",
    "Casual": "For unplanned personal errands",
    "Maternity": "For childbirth and recovery",
    "Paternity": "For fathers after childbirth",
    "Emergency": "For urgent family matters",
}
