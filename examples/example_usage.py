"""Example: drive the engine through the service layer (no Flask).

Controllers are a thin layer; the attendance rules live in the services.
"""

import importlib

from shift_attendance.container import build_container, start_engine
from shift_attendance.settings import get_settings_module
from shift_attendance.users.service import build_session_context


def main():
    settings = importlib.import_module(get_settings_module())
    context = build_session_context(settings)
    container = build_container(api_config=settings.API_CONFIG, context=context, settings=settings)
    start_engine(container)

    print(container.session_tracker.state)
    print(container.aggregator.compute_working_hours_summary())


if __name__ == "__main__":
    main()
