from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, time
from enum import Enum
from typing import Any, Iterable, List, Optional

MAX_TITLE_LENGTH = 20
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    pass


class AlarmKind(str, Enum):
    TIME_OF_DAY = "time_of_day"
    INTERVAL = "interval"


@dataclass
class Settings:
    interval_minutes: int = 30
    wait_seconds: int = 5
    sound_enabled: bool = True
    auto_start: bool = False
    ui_size: int = 2

    def validate(self) -> None:
        _check_range("Reminder interval", self.interval_minutes, 1, 120, "minutes")
        _check_range("Wait time", self.wait_seconds, 1, 300, "seconds")
        if self.ui_size not in (1, 2, 3):
            raise ValidationError("UI size must be 1, 2 or 3")

    def to_dict(self) -> dict:
        return {
            "intervalMinutes": self.interval_minutes,
            "waitSeconds": self.wait_seconds,
            "soundEnabled": self.sound_enabled,
            "autoStart": self.auto_start,
            "uiSize": self.ui_size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        """Read stored settings, replacing any unusable value with its default."""
        defaults = cls()
        return cls(
            interval_minutes=_stored_int(data, "intervalMinutes", defaults.interval_minutes, range(1, 121)),
            wait_seconds=_stored_int(data, "waitSeconds", defaults.wait_seconds, range(1, 301)),
            sound_enabled=_stored_bool(data, "soundEnabled", defaults.sound_enabled),
            auto_start=_stored_bool(data, "autoStart", defaults.auto_start),
            ui_size=_stored_int(data, "uiSize", defaults.ui_size, (1, 2, 3)),
        )


@dataclass
class Alarm:
    title: str
    kind: AlarmKind
    id: Optional[str] = None
    enabled: bool = True
    time_of_day: Optional[time] = None
    repeat_days: List[int] = field(default_factory=list)
    interval_minutes: Optional[int] = None
    wait_seconds: int = 5
    sound_enabled: bool = True
    last_triggered: Optional[date] = None

    @property
    def is_one_shot(self) -> bool:
        return self.kind is AlarmKind.TIME_OF_DAY and not self.repeat_days

    def validate(self) -> "Alarm":
        """Check user input and return a normalized copy with only the active branch populated."""
        title = (self.title or "").strip()
        if not title:
            raise ValidationError("Alarm title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Alarm title must be at most {MAX_TITLE_LENGTH} characters")
        _check_range("Alarm wait time", self.wait_seconds, 1, 300, "seconds")

        if self.kind is AlarmKind.TIME_OF_DAY:
            if self.time_of_day is None:
                raise ValidationError("Alarm time is required")
            raw_days = list(self.repeat_days or [])
            if any(isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6 for d in raw_days):
                raise ValidationError("Repeat days must be weekday numbers 0-6")
            return replace(
                self,
                title=title,
                time_of_day=parse_time_of_day(self.time_of_day),
                repeat_days=sorted(set(raw_days)),
                interval_minutes=None,
            )
        if self.kind is AlarmKind.INTERVAL:
            _check_range("Alarm interval", self.interval_minutes, 1, 1440, "minutes")
            return replace(self, title=title, time_of_day=None, repeat_days=[])
        raise ValidationError(f"Unknown alarm kind: {self.kind!r}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "kind": self.kind.value,
            "enabled": self.enabled,
            "timeOfDay": self.time_of_day.strftime("%H:%M") if self.time_of_day else None,
            "repeatDays": list(self.repeat_days),
            "intervalMinutes": self.interval_minutes,
            "waitSeconds": self.wait_seconds,
            "soundEnabled": self.sound_enabled,
            "lastTriggered": self.last_triggered.isoformat() if self.last_triggered else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Alarm":
        """Build an alarm from stored or UI data.

        Missing branch fields are tolerated so that a malformed record can be
        loaded and later skipped by the schedulers; a missing kind is not.
        """
        try:
            kind = AlarmKind(data.get("kind"))
        except ValueError:
            raise ValidationError(f"Unknown alarm kind: {data.get('kind')!r}") from None
        raw_time = data.get("timeOfDay")
        raw_triggered = data.get("lastTriggered")
        interval = data.get("intervalMinutes")
        raw_days = data.get("repeatDays") or []
        if not isinstance(raw_days, (list, tuple)):
            raise ValidationError("Repeat days must be a list of weekday numbers")
        try:
            repeat_days = [int(d) for d in raw_days]
            interval = int(interval) if interval is not None else None
            wait_seconds = int(data.get("waitSeconds", 5))
        except (TypeError, ValueError):
            raise ValidationError("Repeat days, interval and wait time must be whole numbers") from None
        return cls(
            id=data.get("id") or None,
            title=str(data.get("title") or ""),
            kind=kind,
            enabled=_parse_bool(data.get("enabled", True), "Enabled"),
            time_of_day=parse_time_of_day(raw_time) if raw_time else None,
            repeat_days=repeat_days,
            interval_minutes=interval,
            wait_seconds=wait_seconds,
            sound_enabled=_parse_bool(data.get("soundEnabled", True), "Sound enabled"),
            last_triggered=date.fromisoformat(raw_triggered) if raw_triggered else None,
        )


@dataclass
class AlarmStatus:
    alarm: Alarm
    remaining_seconds: Optional[float] = None

    def to_dict(self) -> dict:
        payload = self.alarm.to_dict()
        payload["remainingSeconds"] = self.remaining_seconds
        return payload


def new_alarm_id() -> str:
    return f"al_{uuid.uuid4().hex[:8]}"


def parse_time_of_day(value: Any) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    text = str(value).strip()
    parts = text.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValidationError(f"Invalid time {text!r}, expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"Invalid time {text!r}")
    return time(hour, minute)


def describe_repeat_days(days: Optional[Iterable[int]]) -> str:
    selected = sorted(set(days or []))
    if not selected:
        return "once"
    if len(selected) == 7:
        return "daily"
    if selected == [0, 1, 2, 3, 4]:
        return "weekdays"
    if selected == [5, 6]:
        return "weekends"
    return ", ".join(DAY_NAMES[d] for d in selected)


def describe_schedule(alarm: Alarm) -> str:
    if alarm.kind is AlarmKind.INTERVAL:
        return f"every {alarm.interval_minutes} min"
    when = alarm.time_of_day.strftime("%H:%M") if alarm.time_of_day else "--:--"
    return f"{when} ({describe_repeat_days(alarm.repeat_days)})"


def format_remaining(seconds: float) -> str:
    total = max(0, math.ceil(seconds))
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes} min {secs} s"
    return f"{secs} s"


def _check_range(name: str, value: Any, low: int, high: int, unit: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not (low <= value <= high):
        raise ValidationError(f"{name} must be between {low} and {high} {unit}")


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes"):
            return True
        if text in ("false", "0", "no"):
            return False
    raise ValidationError(f"{name} must be true or false, got {value!r}")


def _stored_int(data: dict, key: str, default: int, allowed) -> int:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value not in allowed:
        logger.warning("Stored %s=%r is invalid, using default %s", key, value, default)
        return default
    return value


def _stored_bool(data: dict, key: str, default: bool) -> bool:
    value = data.get(key)
    if value is None:
        return default
    try:
        return _parse_bool(value, key)
    except ValidationError:
        logger.warning("Stored %s=%r is invalid, using default %s", key, value, default)
        return default
