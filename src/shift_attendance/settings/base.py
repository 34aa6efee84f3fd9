import os
from datetime import datetime, time


def _clock(name: str, default: str) -> time:
    return datetime.strptime(os.getenv(name, default), "%H:%M").time()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key"

    # HR backend
    API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:5000")
    API_VERSION = os.environ.get("API_VERSION", "v1")
    API_TIMEOUT_SECONDS = float(os.environ.get("API_TIMEOUT_SECONDS", "10"))

    # Who this engine acts for
    EMPLOYEE_ID = os.environ.get("EMPLOYEE_ID", "")
    EMPLOYEE_EMAIL = os.environ.get("EMPLOYEE_EMAIL", "")
    EMPLOYEE_NAME = os.environ.get("EMPLOYEE_NAME", "")
    API_TOKEN = os.environ.get("API_TOKEN", "")

    # Lateness: status cutoff (night shift) and debt accrual (day-shift start) are independent.
    STATUS_GRACE_CUTOFF = _clock("STATUS_GRACE_CUTOFF", "22:15")
    DEBT_EXPECTED_START = _clock("DEBT_EXPECTED_START", "09:15")
    DEBT_GRACE_MINUTES = int(os.environ.get("DEBT_GRACE_MINUTES", "15"))
    REQUIRED_WORKING_MINUTES = int(os.environ.get("REQUIRED_WORKING_MINUTES", str(9 * 60)))

    TICK_SECONDS = int(os.environ.get("TICK_SECONDS", "1"))
    BREAK_REFRESH_SECONDS = int(os.environ.get("BREAK_REFRESH_SECONDS", "30"))
    SCHEDULER_TIMEZONE = os.environ.get("SCHEDULER_TIMEZONE", "Asia/Karachi")
