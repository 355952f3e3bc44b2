from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from .interval import IntervalAlarmScheduler
from .models import Alarm, AlarmKind, AlarmStatus, new_alarm_id
from .notifier import Notifier
from .scanner import TimeAlarmScanner
from .storage import AlarmRepository

logger = logging.getLogger(__name__)


class AlarmCoordinator:
    def __init__(
        self,
        loop,
        repository: AlarmRepository,
        notifier: Notifier,
        now_fn: Callable[[], datetime],
        sample_interval: float = 1.0,
    ):
        self.repository = repository
        self.notifier = notifier
        self.scanner = TimeAlarmScanner(loop, repository, self._on_time_alarm_due, now_fn, sample_interval)
        self.intervals = IntervalAlarmScheduler(loop, repository, self._on_interval_alarm_due)
        self._started = False

    def init(self) -> None:
        if self._started:
            return
        self._started = True
        for alarm in self.repository.list_alarms():
            if alarm.enabled and alarm.kind is AlarmKind.INTERVAL:
                self.intervals.schedule(alarm)
        self.scanner.start()
        logger.info("Alarm coordinator started with %s alarms", len(self.repository.list_alarms()))

    def shutdown(self) -> None:
        self.scanner.stop()
        self.intervals.cancel_all()
        self._started = False

    def create(self, alarm: Alarm) -> Alarm:
        stored = alarm.validate()
        if not stored.id:
            stored.id = new_alarm_id()
        return self._store_edit(stored)

    def update(self, alarm: Alarm) -> Optional[Alarm]:
        stored = alarm.validate()
        if not stored.id or self.repository.get_alarm(stored.id) is None:
            return None
        return self._store_edit(stored)

    def save(self, alarm: Alarm) -> Alarm:
        if alarm.id and self.repository.get_alarm(alarm.id) is not None:
            return self.update(alarm)
        return self.create(alarm)

    def delete(self, alarm_id: str) -> bool:
        self.intervals.cancel(alarm_id)
        removed = self.repository.delete_alarm(alarm_id)
        if removed:
            logger.info("Deleted alarm %s", alarm_id)
            self._publish()
        return removed

    def toggle_enabled(self, alarm_id: str) -> Optional[Alarm]:
        alarm = self.repository.get_alarm(alarm_id)
        if alarm is None:
            return None
        alarm.enabled = not alarm.enabled
        self.repository.upsert_alarm(alarm)
        if not alarm.enabled:
            self.intervals.cancel(alarm_id)
        elif alarm.kind is AlarmKind.INTERVAL and not self.intervals.has_deadline(alarm_id):
            self.intervals.schedule(alarm)
        logger.info("Alarm %s %s", alarm_id, "enabled" if alarm.enabled else "disabled")
        self._publish()
        return alarm

    def list_with_remaining(self) -> List[AlarmStatus]:
        remaining = self.intervals.remaining_times()
        return [AlarmStatus(alarm=a, remaining_seconds=remaining.get(a.id)) for a in self.repository.list_alarms()]

    def remaining_times(self) -> Dict[str, float]:
        return self.intervals.remaining_times()

    def _store_edit(self, alarm: Alarm) -> Alarm:
        alarm.last_triggered = None
        self.repository.upsert_alarm(alarm)
        # Reschedules interval alarms, drops the deadline of anything else.
        self.intervals.schedule(alarm)
        logger.info("Saved alarm %s (%s)", alarm.id, alarm.kind.value)
        self._publish()
        return alarm

    def _on_time_alarm_due(self, alarm: Alarm, today: date) -> None:
        alarm.last_triggered = today
        if alarm.is_one_shot:
            alarm.enabled = False
        self.repository.upsert_alarm(alarm)
        self._fire(alarm)
        self._publish()

    def _on_interval_alarm_due(self, alarm: Alarm) -> None:
        self._fire(alarm)

    def _fire(self, alarm: Alarm) -> None:
        logger.info("Alarm fired: %s (%s)", alarm.title, alarm.id)
        try:
            self.notifier.alarm_fired(alarm.title, alarm.wait_seconds, alarm.id, alarm.sound_enabled)
        except Exception:
            logger.error("alarm_fired callback failed", exc_info=True)

    def _publish(self) -> None:
        try:
            self.notifier.alarms_changed(self.list_with_remaining())
        except Exception:
            logger.error("alarms_changed callback failed", exc_info=True)
