from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from .coordinator import AlarmCoordinator
from .models import Alarm, AlarmStatus, Settings
from .notifier import Notifier
from .reminder_timer import ReminderTimer, ReminderTimerState
from .storage import AlarmRepository

logger = logging.getLogger(__name__)


class ReminderService:
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
        self.timer = ReminderTimer(loop, repository.get_settings, notifier)
        self.alarms = AlarmCoordinator(loop, repository, notifier, now_fn, sample_interval)

    def start(self) -> None:
        self.alarms.init()
        self.timer.start(reset_time=True)

    def shutdown(self) -> None:
        self.timer.shutdown()
        self.alarms.shutdown()

    # settings

    def get_settings(self) -> Settings:
        return self.repository.get_settings()

    def save_settings(self, settings: Union[Settings, dict]) -> Settings:
        if isinstance(settings, dict):
            merged = self.repository.get_settings().to_dict()
            merged.update(settings)
            settings = Settings(
                interval_minutes=merged["intervalMinutes"],
                wait_seconds=merged["waitSeconds"],
                sound_enabled=bool(merged["soundEnabled"]),
                auto_start=bool(merged["autoStart"]),
                ui_size=merged["uiSize"],
            )
        settings.validate()
        interval_changed = self.repository.get_settings().interval_minutes != settings.interval_minutes
        self.repository.save_settings(settings)
        logger.info("Settings saved: %s", settings.to_dict())
        if interval_changed and self.timer.is_running:
            self.timer.restart()
        return settings

    def get_window_position(self) -> Optional[Dict[str, int]]:
        return self.repository.get_window_position()

    def reset_window_position(self) -> None:
        self.repository.set_window_position(None)

    # reminder timer

    def toggle_reminder_timer(self) -> ReminderTimerState:
        self.timer.toggle()
        return self.timer.snapshot()

    def complete_reminder_stretch(self) -> ReminderTimerState:
        self.timer.acknowledge_completion()
        return self.timer.snapshot()

    def get_reminder_timer_state(self) -> ReminderTimerState:
        return self.timer.snapshot()

    # alarms

    def list_alarms(self) -> List[AlarmStatus]:
        return self.alarms.list_with_remaining()

    def alarm_remaining_times(self) -> Dict[str, float]:
        return self.alarms.remaining_times()

    def save_alarm(self, alarm: Union[Alarm, dict]) -> Alarm:
        if isinstance(alarm, dict):
            alarm = Alarm.from_dict(alarm)
        return self.alarms.save(alarm)

    def delete_alarm(self, alarm_id: str) -> bool:
        return self.alarms.delete(alarm_id)

    def toggle_alarm(self, alarm_id: str) -> Optional[Alarm]:
        return self.alarms.toggle_enabled(alarm_id)
