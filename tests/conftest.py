from datetime import datetime

import pytest

from reminders.notifier import Notifier
from reminders.storage import AlarmRepository


class ManualHandle:
    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self):
        return self._cancelled


class ManualLoop:
    """Stand-in for an asyncio loop whose clock only moves on advance()."""

    def __init__(self, start: float = 1000.0):
        self._now = start
        self._seq = 0
        self._handles = []

    def time(self):
        return self._now

    def call_later(self, delay, callback, *args):
        self._seq += 1
        handle = ManualHandle(self._now + delay, self._seq, callback, args)
        self._handles.append(handle)
        return handle

    def advance(self, seconds):
        target = self._now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled() and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._handles.remove(handle)
            self._now = max(self._now, handle.when)
            handle.callback(*handle.args)
        self._now = target
        self._handles = [h for h in self._handles if not h.cancelled()]

    def pending(self):
        return [h for h in self._handles if not h.cancelled()]


class RecordingNotifier(Notifier):
    def __init__(self):
        self.ticks = []
        self.reminder_fires = []
        self.alarm_fires = []
        self.changes = []

    def reminder_tick(self, remaining_seconds, is_running, interval_minutes):
        self.ticks.append((remaining_seconds, is_running, interval_minutes))

    def reminder_fired(self, wait_seconds, sound_enabled):
        self.reminder_fires.append((wait_seconds, sound_enabled))

    def alarm_fired(self, title, wait_seconds, alarm_id, sound_enabled):
        self.alarm_fires.append(alarm_id)

    def alarms_changed(self, alarms):
        self.changes.append([s.alarm.id for s in alarms])


class WallClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def loop():
    return ManualLoop()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def repository():
    return AlarmRepository()


@pytest.fixture
def clock():
    # Monday
    return WallClock(datetime(2025, 1, 6, 8, 59, 30))
