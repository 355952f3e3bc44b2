from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Alarm, Settings, ValidationError

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "intervalMinutes": 30,
    "waitSeconds": 5,
    "soundEnabled": True,
    "autoStart": False,
    "uiSize": 2,
    "windowPosition": None,
    "alarms": [],
}


class AlarmRepository:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.degraded = False
        self._data: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self._alarms: List[Alarm] = []
        self._load()

    # scalar keys

    def get(self, key: str) -> Any:
        if key == "alarms":
            return [a.to_dict() for a in self._alarms]
        value = self._data.get(key)
        if value is None:
            value = DEFAULTS.get(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        if key == "alarms":
            raise KeyError("alarms are managed through upsert_alarm/delete_alarm")
        self._data[key] = copy.deepcopy(value)
        self._save()

    def get_settings(self) -> Settings:
        return Settings.from_dict(self._data)

    def save_settings(self, settings: Settings) -> None:
        self._data.update(settings.to_dict())
        self._save()

    def get_window_position(self) -> Optional[Dict[str, int]]:
        return self.get("windowPosition")

    def set_window_position(self, position: Optional[Dict[str, int]]) -> None:
        self.set("windowPosition", position)

    # alarms

    def list_alarms(self) -> List[Alarm]:
        return [_copy_alarm(a) for a in self._alarms]

    def get_alarm(self, alarm_id: str) -> Optional[Alarm]:
        for alarm in self._alarms:
            if alarm.id == alarm_id:
                return _copy_alarm(alarm)
        return None

    def upsert_alarm(self, alarm: Alarm) -> None:
        if not alarm.id:
            raise ValueError("Alarm id is required for storage")
        stored = _copy_alarm(alarm)
        for index, existing in enumerate(self._alarms):
            if existing.id == alarm.id:
                self._alarms[index] = stored
                break
        else:
            self._alarms.append(stored)
        self._save()

    def delete_alarm(self, alarm_id: str) -> bool:
        remaining = [a for a in self._alarms if a.id != alarm_id]
        if len(remaining) == len(self._alarms):
            return False
        self._alarms = remaining
        self._save()
        return True

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
            if not isinstance(payload, dict):
                raise ValueError("store root must be an object")
        except Exception as exc:
            logger.error("Failed to load store from %s, using defaults: %s", self.path, exc)
            self.degraded = True
            return
        for key in DEFAULTS:
            if key != "alarms" and key in payload:
                self._data[key] = payload[key]
        for item in payload.get("alarms") or []:
            try:
                alarm = Alarm.from_dict(item)
            except (ValidationError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping stored alarm due to parse error: %s", exc)
                continue
            if not alarm.id:
                logger.warning("Skipping stored alarm without id: %s", item)
                continue
            self._alarms.append(alarm)
        logger.info("Loaded %s alarms from %s", len(self._alarms), self.path)

    def _save(self) -> None:
        if self.path is None:
            return
        payload = dict(self._data)
        payload["alarms"] = [a.to_dict() for a in self._alarms]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, str(self.path))
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as exc:
            if not self.degraded:
                logger.error("Failed to save store to %s, continuing in memory: %s", self.path, exc)
            self.degraded = True
            return
        self.degraded = False


def _copy_alarm(alarm: Alarm) -> Alarm:
    return replace(alarm, repeat_days=list(alarm.repeat_days))
