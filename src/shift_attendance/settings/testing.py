from .base import Config

SECRET_KEY = "test-secret"

API_CONFIG = {
    "base_url": "http://backend.test",
    "version": "v1",
    "timeout": 5,
}

EMPLOYEE_ID = "EMP-TEST"
EMPLOYEE_EMAIL = "test@example.com"
EMPLOYEE_NAME = "Test Employee"
API_TOKEN = "test-token"

STATUS_GRACE_CUTOFF = Config.STATUS_GRACE_CUTOFF
DEBT_EXPECTED_START = Config.DEBT_EXPECTED_START
DEBT_GRACE_MINUTES = Config.DEBT_GRACE_MINUTES
REQUIRED_WORKING_MINUTES = Config.REQUIRED_WORKING_MINUTES

TICK_SECONDS = 1
BREAK_REFRESH_SECONDS = 30
SCHEDULER_TIMEZONE = "Asia/Karachi"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_START_TICKER = False
