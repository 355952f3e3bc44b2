from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .models import Settings
from .notifier import Notifier

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerPhase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FIRING = "firing"


@dataclass
class ReminderTimerState:
    remaining_seconds: int
    is_running: bool
    is_paused: bool
    interval_minutes: int
    phase: TimerPhase

    def to_dict(self) -> dict:
        return {
            "remainingSeconds": self.remaining_seconds,
            "isRunning": self.is_running,
            "isPaused": self.is_paused,
            "intervalMinutes": self.interval_minutes,
        }


class ReminderTimer:
    def __init__(self, loop, settings_provider: Callable[[], Settings], notifier: Notifier):
        self.loop = loop
        self.settings_provider = settings_provider
        self.notifier = notifier
        self.remaining_seconds = 0
        self.interval_minutes = settings_provider().interval_minutes
        self.phase = TimerPhase.IDLE
        self._handle = None

    @property
    def is_running(self) -> bool:
        return self.phase is TimerPhase.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.phase is TimerPhase.PAUSED

    def snapshot(self) -> ReminderTimerState:
        return ReminderTimerState(
            remaining_seconds=self.remaining_seconds,
            is_running=self.is_running,
            is_paused=self.is_paused,
            interval_minutes=self.interval_minutes,
            phase=self.phase,
        )

    def start(self, reset_time: bool = True) -> None:
        if self.is_running:
            return
        if reset_time or self.remaining_seconds <= 0:
            self.interval_minutes = self.settings_provider().interval_minutes
            self.remaining_seconds = self.interval_minutes * 60
        self.phase = TimerPhase.RUNNING
        logger.info("Reminder timer running (%ss left)", self.remaining_seconds)
        self._emit_tick()
        self._handle = self.loop.call_later(TICK_SECONDS, self._tick)

    def stop(self) -> None:
        if not self.is_running:
            return
        self._cancel_tick()
        self.phase = TimerPhase.PAUSED
        logger.info("Reminder timer paused at %ss", self.remaining_seconds)
        self._emit_tick()

    def toggle(self) -> None:
        if self.is_running:
            self.stop()
        else:
            self.start(reset_time=not self.is_paused)

    def restart(self) -> None:
        self.stop()
        self.start(reset_time=True)

    def acknowledge_completion(self) -> None:
        if self.is_running:
            return
        self.start(reset_time=True)

    def shutdown(self) -> None:
        self._cancel_tick()
        if self.is_running:
            self.phase = TimerPhase.PAUSED

    def _tick(self) -> None:
        self._handle = None
        if not self.is_running:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds <= 0:
            self._fire()
            return
        self._emit_tick()
        self._handle = self.loop.call_later(TICK_SECONDS, self._tick)

    def _fire(self) -> None:
        self.remaining_seconds = 0
        self.phase = TimerPhase.FIRING
        settings = self.settings_provider()
        logger.info("Stretch reminder fired (wait %ss)", settings.wait_seconds)
        try:
            self.notifier.reminder_fired(settings.wait_seconds, settings.sound_enabled)
        except Exception:
            logger.error("reminder_fired callback failed", exc_info=True)

    def _emit_tick(self) -> None:
        try:
            self.notifier.reminder_tick(self.remaining_seconds, self.is_running, self.interval_minutes)
        except Exception:
            logger.error("reminder_tick callback failed", exc_info=True)

    def _cancel_tick(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
