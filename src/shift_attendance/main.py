from __future__ import annotations

import atexit
import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from .settings import get_settings_module

from .container import build_container, start_engine
from .attendance.controller import register as register_attendance
from .breaks.controller import register as register_breaks
from .scheduling.runner import BackgroundTicker
from .stats.controller import register as register_stats
from .users.service import build_session_context

logger = logging.getLogger(__name__)


def create_app(*, start_ticker: bool | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    api_config = getattr(settings, "API_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(logging, str(getattr(settings, "LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("settings=%s api=%s/api/%s", settings_module, api_config.get("base_url"), api_config.get("version", "v1"))

    context = build_session_context(settings)
    container = build_container(api_config=api_config, context=context, settings=settings)
    app.extensions["shift_attendance"] = container

    register_attendance(app, container)
    register_breaks(app, container)
    register_stats(app, container)

    if start_ticker is None:
        start_ticker = bool(getattr(settings, "AUTO_START_TICKER", False))
    if start_ticker:
        if context.authenticated:
            start_engine(container)
        else:
            logger.warning("No API token or employee id configured; skipping session restore")
        ticker = BackgroundTicker(
            container.scheduler,
            seconds=int(getattr(settings, "TICK_SECONDS", 1)),
            lock=container.lock,
            timezone=str(getattr(settings, "SCHEDULER_TIMEZONE", "Asia/Karachi")),
        )
        ticker.start()
        atexit.register(ticker.shutdown)
        app.extensions["shift_attendance_ticker"] = ticker

    return app
