from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .models import Alarm, AlarmKind
from .storage import AlarmRepository

logger = logging.getLogger(__name__)


@dataclass
class Deadline:
    alarm_id: str
    fire_at: float
    handle: Any


class IntervalAlarmScheduler:
    def __init__(self, loop, repository: AlarmRepository, on_fire: Callable[[Alarm], None]):
        self.loop = loop
        self.repository = repository
        self.on_fire = on_fire
        self._deadlines: Dict[str, Deadline] = {}

    def schedule(self, alarm: Alarm) -> Optional[Deadline]:
        self.cancel(alarm.id)
        if not alarm.enabled or alarm.kind is not AlarmKind.INTERVAL:
            return None
        if not alarm.interval_minutes or alarm.interval_minutes <= 0:
            logger.warning("Skipping interval alarm %s without a valid interval", alarm.id)
            return None
        delay = alarm.interval_minutes * 60
        handle = self.loop.call_later(delay, self._fire, alarm.id)
        deadline = Deadline(alarm_id=alarm.id, fire_at=self.loop.time() + delay, handle=handle)
        self._deadlines[alarm.id] = deadline
        logger.debug("Interval alarm %s due in %ss", alarm.id, delay)
        return deadline

    def cancel(self, alarm_id: str) -> bool:
        deadline = self._deadlines.pop(alarm_id, None)
        if deadline is None:
            return False
        deadline.handle.cancel()
        logger.debug("Cancelled deadline for interval alarm %s", alarm_id)
        return True

    def cancel_all(self) -> None:
        for alarm_id in list(self._deadlines):
            self.cancel(alarm_id)

    def has_deadline(self, alarm_id: str) -> bool:
        return alarm_id in self._deadlines

    def remaining_time(self, alarm_id: str) -> Optional[float]:
        deadline = self._deadlines.get(alarm_id)
        if deadline is None:
            return None
        return max(0.0, deadline.fire_at - self.loop.time())

    def remaining_times(self) -> Dict[str, float]:
        now = self.loop.time()
        return {alarm_id: max(0.0, d.fire_at - now) for alarm_id, d in self._deadlines.items()}

    def _fire(self, alarm_id: str) -> None:
        self._deadlines.pop(alarm_id, None)
        alarm = self.repository.get_alarm(alarm_id)
        if alarm is None or not alarm.enabled or alarm.kind is not AlarmKind.INTERVAL:
            logger.debug("Dropping stale deadline for alarm %s", alarm_id)
            return
        try:
            self.on_fire(alarm)
        except Exception:
            logger.error("Interval alarm %s callback failed", alarm_id, exc_info=True)
        latest = self.repository.get_alarm(alarm_id)
        if latest is not None:
            self.schedule(latest)
