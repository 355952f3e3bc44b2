from __future__ import annotations

import logging
from typing import List

from .models import AlarmStatus, describe_schedule, format_remaining

try:
    import winsound
except ImportError:  # pragma: no cover - non-Windows fallback
    winsound = None  # type: ignore

logger = logging.getLogger(__name__)


class Notifier:
    def reminder_tick(self, remaining_seconds: int, is_running: bool, interval_minutes: int) -> None:
        pass

    def reminder_fired(self, wait_seconds: int, sound_enabled: bool) -> None:
        pass

    def alarm_fired(self, title: str, wait_seconds: int, alarm_id: str, sound_enabled: bool) -> None:
        pass

    def alarms_changed(self, alarms: List[AlarmStatus]) -> None:
        pass


def beep() -> None:
    if winsound:
        try:
            winsound.Beep(880, 250)
            return
        except RuntimeError:
            logger.debug("winsound.Beep failed, falling back to log")
    logger.info("Beep")


class ConsoleNotifier(Notifier):
    """Log-only presentation used by the console runtime."""

    def __init__(self, tick_log_every: int = 60):
        self.tick_log_every = max(1, tick_log_every)

    def reminder_tick(self, remaining_seconds: int, is_running: bool, interval_minutes: int) -> None:
        if not is_running:
            logger.info("Reminder paused at %s", format_remaining(remaining_seconds))
        elif remaining_seconds % self.tick_log_every == 0:
            logger.info("Next stretch in %s", format_remaining(remaining_seconds))

    def reminder_fired(self, wait_seconds: int, sound_enabled: bool) -> None:
        logger.info("Time to stretch! (%ss)", wait_seconds)
        if sound_enabled:
            beep()

    def alarm_fired(self, title: str, wait_seconds: int, alarm_id: str, sound_enabled: bool) -> None:
        logger.info("Alarm '%s' (%s), wait %ss", title, alarm_id, wait_seconds)
        if sound_enabled:
            beep()

    def alarms_changed(self, alarms: List[AlarmStatus]) -> None:
        for status in alarms:
            alarm = status.alarm
            state = "on" if alarm.enabled else "off"
            line = f"{alarm.title} [{state}] {describe_schedule(alarm)}"
            if status.remaining_seconds is not None:
                line += f" - {format_remaining(status.remaining_seconds)} left"
            logger.debug("Alarm %s: %s", alarm.id, line)
