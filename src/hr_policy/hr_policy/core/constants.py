"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_MONTHLY_LATE_ALLOWANCE_MINUTES = 60
DEFAULT_ANNUAL_LEAVE_DAYS = 21
DEFAULT_EMERGENCY_LEAVE_DAYS = 7

DEFAULT_WORK_START = time(9, 0)
DEFAULT_WORK_END = time(17, 0)
DEFAULT_BREAK_MINUTES = 60
DEFAULT_WEEKEND_DAYS = ("friday", "saturday")

DEFAULT_EARLY_DEPARTURE_GRACE_MINUTES = 5
DEFAULT_EARLY_DEPARTURE_THRESHOLD_MINUTES = 30
DEFAULT_EARLY_DEPARTURE_DEDUCTION_DAYS = 0.5
DEFAULT_AUTO_ABSENT_AFTER_HOURS = 2
DEFAULT_OVERTIME_MULTIPLIER = 2

# Late tiers are measured on minutes beyond the monthly allowance.
LATE_TIER2_FROM_MINUTES = 15
LATE_TIER3_ABOVE_MINUTES = 30

# Monthly salaries are converted to a daily rate over a fixed 30-day month.
PAYROLL_MONTH_DAYS = 30
# Overtime is paid per hour of an 8-hour day.
WORKDAY_HOURS = 8

DEFAULT_LOCATION_RADIUS_METERS = 100
MAX_COMPANY_LOCATIONS = 5

DEFAULT_LIST_LIMIT = 200
