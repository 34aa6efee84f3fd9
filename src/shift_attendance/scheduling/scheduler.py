"""One clock-driven scheduler for every attendance timer.

Break warnings, limit notices, progress syncs, the 1-second tick and the
30-second today's-breaks refresh all live here, so a single ``advance(now)``
drives them and ``shutdown()`` is the one place that clears them. The
scheduler never reads the wall clock itself; the background pump (or a test)
passes ``now`` in.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..core.constants import BREAK_REFRESH_SECONDS

logger = logging.getLogger(__name__)

Callback = Callable[[datetime], None]


@dataclass
class Timer:
    timer_id: int
    name: str
    due: datetime
    callback: Callback = field(repr=False)
    interval: Optional[timedelta] = None
    cancelled: bool = False

    @property
    def recurring(self) -> bool:
        return self.interval is not None


class TickScheduler:
    def __init__(self, *, refresh_every: timedelta = timedelta(seconds=BREAK_REFRESH_SECONDS)):
        self._timers: List[Timer] = []
        self._ids = itertools.count(1)
        self._tick_subscribers: List[Callback] = []
        self._refresh_subscribers: List[Callback] = []
        self._refresh_every = refresh_every
        self._next_refresh: Optional[datetime] = None
        self._last_now: Optional[datetime] = None

    # -- timers ------------------------------------------------------------

    def call_at(self, due: datetime, callback: Callback, *, name: str) -> Timer:
        timer = Timer(timer_id=next(self._ids), name=name, due=due, callback=callback)
        self._timers.append(timer)
        return timer

    def call_every(self, start: datetime, interval: timedelta, callback: Callback, *, name: str) -> Timer:
        if interval <= timedelta(0):
            raise ValueError("interval must be positive")
        timer = Timer(timer_id=next(self._ids), name=name, due=start + interval, callback=callback, interval=interval)
        self._timers.append(timer)
        return timer

    def cancel(self, timer: Optional[Timer]) -> None:
        if timer is None:
            return
        timer.cancelled = True
        self._timers = [t for t in self._timers if t is not timer]

    def pending(self, prefix: str = "") -> List[Timer]:
        return [t for t in self._timers if not t.cancelled and t.name.startswith(prefix)]

    # -- channels ----------------------------------------------------------

    def on_tick(self, callback: Callback) -> None:
        self._tick_subscribers.append(callback)

    def on_refresh(self, callback: Callback) -> None:
        self._refresh_subscribers.append(callback)

    # -- driving -----------------------------------------------------------

    def advance(self, now: datetime) -> int:
        """Fire everything due at ``now``, then the tick and refresh channels.

        Returns the number of timer callbacks fired.
        """
        self._last_now = now
        fired = 0
        for timer in sorted(self._timers, key=lambda t: t.due):
            if timer.cancelled or timer.due > now:
                continue
            if timer.recurring:
                # Missed periods collapse into one call.
                while timer.due <= now:
                    timer.due += timer.interval
            else:
                self._timers = [t for t in self._timers if t is not timer]
            self._run(timer.name, timer.callback, now)
            fired += 1

        for callback in list(self._tick_subscribers):
            self._run("tick", callback, now)

        if self._refresh_subscribers:
            if self._next_refresh is None:
                self._next_refresh = now + self._refresh_every
            elif now >= self._next_refresh:
                self._next_refresh = now + self._refresh_every
                for callback in list(self._refresh_subscribers):
                    self._run("refresh", callback, now)
        return fired

    def _run(self, name: str, callback: Callback, now: datetime) -> None:
        # Timer callbacks are background work; one failure must not stop the others.
        try:
            callback(now)
        except Exception:
            logger.exception("Scheduled callback %s failed", name)

    def shutdown(self) -> None:
        for timer in self._timers:
            timer.cancelled = True
        self._timers = []
        self._tick_subscribers.clear()
        self._refresh_subscribers.clear()
        self._next_refresh = None
