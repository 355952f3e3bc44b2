from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from .models import Alarm, AlarmKind
from .storage import AlarmRepository

logger = logging.getLogger(__name__)


class TimeAlarmScanner:
    def __init__(
        self,
        loop,
        repository: AlarmRepository,
        on_due: Callable[[Alarm, date], None],
        now_fn: Callable[[], datetime],
        sample_interval: float = 1.0,
    ):
        self.loop = loop
        self.repository = repository
        self.on_due = on_due
        self.now_fn = now_fn
        self.sample_interval = sample_interval
        self._last_minute: Optional[datetime] = None
        self._active = False
        self._handle = None

    @property
    def running(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._last_minute = None
        self._sample_tick()

    def stop(self) -> None:
        self._active = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def sample(self, now: Optional[datetime] = None) -> Optional[Alarm]:
        now = now or self.now_fn()
        minute = now.replace(second=0, microsecond=0)
        previous = self._last_minute
        if previous is not None and minute == previous:
            return None
        self._last_minute = minute
        if previous is not None:
            gap = (minute - previous).total_seconds() / 60
            if gap > 1:
                # Minutes missed while suspended are not caught up.
                logger.warning("Clock jumped %.0f minutes since last check; skipped alarms will not fire", gap)
            elif gap < 0:
                logger.warning("Clock moved backwards from %s to %s", previous.strftime("%H:%M"), minute.strftime("%H:%M"))
        return self.evaluate(now)

    def evaluate(self, now: datetime) -> Optional[Alarm]:
        today = now.date()
        weekday = now.weekday()
        for alarm in self.repository.list_alarms():
            if not alarm.enabled or alarm.kind is not AlarmKind.TIME_OF_DAY:
                continue
            if alarm.time_of_day is None:
                logger.warning("Skipping time alarm %s without a time", alarm.id)
                continue
            if (alarm.time_of_day.hour, alarm.time_of_day.minute) != (now.hour, now.minute):
                continue
            if alarm.repeat_days and weekday not in alarm.repeat_days:
                continue
            if alarm.last_triggered == today:
                continue
            self.on_due(alarm, today)
            return alarm
        return None

    def _sample_tick(self) -> None:
        self._handle = None
        try:
            self.sample()
        except Exception:
            logger.error("Time alarm check failed", exc_info=True)
        if self._active:
            self._handle = self.loop.call_later(self.sample_interval, self._sample_tick)
