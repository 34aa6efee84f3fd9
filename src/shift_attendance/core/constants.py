"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

# Fixed UTC+5 region; no daylight-saving handling.
UTC_OFFSET_HOURS = 5

# Night shift runs 21:00 -> 06:00; anything before 06:00 belongs to the previous work-date.
WORK_DATE_ROLLOVER_HOUR = 6

# Status classification at check-in: later than 22:15 is "late".
STATUS_GRACE_CUTOFF = time(22, 15)

# Overtime-debt accrual for late arrival (day-shift rule, kept independent).
DEBT_EXPECTED_START = time(9, 15)
DEBT_GRACE_MINUTES = 15

REQUIRED_WORKING_MINUTES = 9 * 60
SESSION_ALERT_MINUTES = 24 * 60
TICK_UPDATE_THRESHOLD_MINUTES = 0.5

BREAK_PROGRESS_SECONDS = 30
BREAK_REFRESH_SECONDS = 30
TICK_SECONDS = 1
RESTORE_TOLERANCE_MINUTES = 10

DEFAULT_BREAK_RULES = (
    ("smoke", "Smoke", 2),
    ("dinner", "Dinner", 40),
    ("washroom", "Washroom", 10),
    ("prayer", "Prayer", 10),
)

DEFAULT_API_TIMEOUT_SECONDS = 10
