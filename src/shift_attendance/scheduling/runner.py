from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..common.datetime_utils import now_local
from ..core.constants import TICK_SECONDS
from .scheduler import TickScheduler

logger = logging.getLogger(__name__)


class BackgroundTicker:
    """Pumps the TickScheduler from an APScheduler interval job.

    The lock is shared with the web controllers so a tick never interleaves
    with a request mutating the same engine state.
    """

    def __init__(
        self,
        scheduler: TickScheduler,
        *,
        seconds: int = TICK_SECONDS,
        lock: Optional[threading.RLock] = None,
        clock: Callable[[], datetime] = now_local,
        timezone: str = "Asia/Karachi",
    ):
        self._scheduler = scheduler
        self._seconds = int(seconds)
        self._lock = lock or threading.RLock()
        self._clock = clock
        self._background = BackgroundScheduler(timezone=timezone)

    @property
    def running(self) -> bool:
        return self._background.running

    def pump(self) -> None:
        with self._lock:
            self._scheduler.advance(self._clock())

    def start(self) -> None:
        self._background.add_job(
            self.pump,
            "interval",
            seconds=self._seconds,
            id="attendance_tick",
            name="Advance attendance timers",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._background.start()
        logger.info("Attendance ticker started (every %ss)", self._seconds)

    def shutdown(self) -> None:
        if self._background.running:
            self._background.shutdown(wait=False)
        with self._lock:
            self._scheduler.shutdown()
        logger.info("Attendance ticker stopped")
