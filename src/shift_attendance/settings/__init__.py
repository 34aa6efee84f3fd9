import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; defaults to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "shift_attendance.settings.production"

    if env in {"test", "testing"}:
        return "shift_attendance.settings.testing"

    return "shift_attendance.settings.development"
