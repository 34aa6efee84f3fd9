import os

from .base import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

API_CONFIG = {
    "base_url": Config.API_BASE_URL,
    "version": Config.API_VERSION,
    "timeout": Config.API_TIMEOUT_SECONDS,
}

EMPLOYEE_ID = Config.EMPLOYEE_ID
EMPLOYEE_EMAIL = Config.EMPLOYEE_EMAIL
EMPLOYEE_NAME = Config.EMPLOYEE_NAME
API_TOKEN = Config.API_TOKEN

STATUS_GRACE_CUTOFF = Config.STATUS_GRACE_CUTOFF
DEBT_EXPECTED_START = Config.DEBT_EXPECTED_START
DEBT_GRACE_MINUTES = Config.DEBT_GRACE_MINUTES
REQUIRED_WORKING_MINUTES = Config.REQUIRED_WORKING_MINUTES

TICK_SECONDS = Config.TICK_SECONDS
BREAK_REFRESH_SECONDS = Config.BREAK_REFRESH_SECONDS
SCHEDULER_TIMEZONE = Config.SCHEDULER_TIMEZONE

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# If enabled, the background ticker starts with the app.
AUTO_START_TICKER = bool(int(os.getenv("AUTO_START_TICKER", "1")))
