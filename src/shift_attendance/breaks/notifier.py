from __future__ import annotations

import logging
from typing import Protocol

from .model import BreakEntry

logger = logging.getLogger(__name__)


class BreakNotifier(Protocol):
    """Where break reminders go (desktop notification, sound, alert...)."""

    def break_warning(self, entry: BreakEntry) -> None:
        raise NotImplementedError

    def break_limit_reached(self, entry: BreakEntry) -> None:
        raise NotImplementedError


class LoggingNotifier(BreakNotifier):
    def break_warning(self, entry: BreakEntry) -> None:
        logger.warning("%s break: 1 minute remaining of %s", entry.name, entry.limit_minutes)

    def break_limit_reached(self, entry: BreakEntry) -> None:
        logger.warning(
            "%s break has exceeded the %s minute limit and is continuing",
            entry.name,
            entry.limit_minutes,
        )
