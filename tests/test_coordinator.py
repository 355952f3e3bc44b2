from datetime import date, datetime, time, timedelta

import pytest

from reminders.coordinator import AlarmCoordinator
from reminders.models import Alarm, AlarmKind, ValidationError


def _coordinator(loop, repository, notifier, clock):
    return AlarmCoordinator(loop, repository, notifier, clock)


def _one_shot(alarm_id="a1", hh=9, mm=0, **kwargs):
    return Alarm(id=alarm_id, title="Wake", kind=AlarmKind.TIME_OF_DAY, time_of_day=time(hh, mm), **kwargs)


def _interval(alarm_id="a2", minutes=30, **kwargs):
    return Alarm(id=alarm_id, title="Water", kind=AlarmKind.INTERVAL, interval_minutes=minutes, **kwargs)


def test_one_shot_fires_once_and_disables(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_one_shot())
    day = datetime(2025, 1, 6, 9, 0)

    coordinator.scanner.evaluate(day)
    stored = repository.get_alarm("a1")
    assert notifier.alarm_fires == ["a1"]
    assert stored.enabled is False
    assert stored.last_triggered == date(2025, 1, 6)

    coordinator.scanner.evaluate(day)
    assert notifier.alarm_fires == ["a1"]


def test_edit_rearms_one_shot_same_day(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_one_shot())
    coordinator.scanner.evaluate(datetime(2025, 1, 6, 9, 0))

    coordinator.update(_one_shot(hh=9, mm=30, enabled=True))
    stored = repository.get_alarm("a1")
    assert stored.last_triggered is None
    assert stored.enabled is True

    coordinator.scanner.evaluate(datetime(2025, 1, 6, 9, 30))
    assert notifier.alarm_fires == ["a1", "a1"]


def test_edit_keeps_enabled_as_given(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_one_shot())
    coordinator.update(_one_shot(enabled=False))
    assert repository.get_alarm("a1").enabled is False


def test_create_assigns_id_and_clears_last_triggered(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    alarm = coordinator.create(
        Alarm(title="Tea", kind=AlarmKind.TIME_OF_DAY, time_of_day=time(16, 0), last_triggered=date(2025, 1, 1))
    )
    assert alarm.id.startswith("al_")
    assert repository.get_alarm(alarm.id).last_triggered is None
    assert notifier.changes[-1] == [alarm.id]


def test_invalid_alarm_leaves_state_untouched(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())
    with pytest.raises(ValidationError):
        coordinator.save(_interval(minutes=0))
    assert repository.get_alarm("a2").interval_minutes == 30
    assert coordinator.intervals.remaining_time("a2") == 1800


def test_interval_scenario(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())

    loop.advance(900)
    assert coordinator.remaining_times() == {"a2": 900}

    loop.advance(900)
    assert notifier.alarm_fires == ["a2"]
    assert coordinator.remaining_times() == {"a2": 1800}

    loop.advance(1800)
    assert notifier.alarm_fires == ["a2", "a2"]


def test_update_interval_reschedules(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())
    loop.advance(600)
    coordinator.update(_interval(minutes=15))
    assert coordinator.remaining_times() == {"a2": 900}
    assert len(loop.pending()) == 1


def test_switching_kind_drops_deadline(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())
    coordinator.update(_one_shot("a2"))
    assert coordinator.remaining_times() == {}


def test_toggle_interval(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())

    assert coordinator.toggle_enabled("a2").enabled is False
    assert coordinator.intervals.remaining_time("a2") is None
    loop.advance(3600)
    assert notifier.alarm_fires == []

    assert coordinator.toggle_enabled("a2").enabled is True
    assert coordinator.intervals.remaining_time("a2") == 1800


def test_toggle_time_alarm_has_no_deadline(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_one_shot(enabled=False))
    coordinator.toggle_enabled("a1")
    assert repository.get_alarm("a1").enabled is True
    assert coordinator.remaining_times() == {}


def test_delete_cancels_deadline(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval())
    assert coordinator.delete("a2") is True
    assert coordinator.remaining_times() == {}
    assert [s.alarm.id for s in coordinator.list_with_remaining()] == []
    loop.advance(3600)
    assert notifier.alarm_fires == []


def test_missing_ids_are_noops(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    assert coordinator.update(_interval("ghost")) is None
    assert coordinator.delete("ghost") is False
    assert coordinator.toggle_enabled("ghost") is None
    assert repository.list_alarms() == []
    assert notifier.changes == []


def test_save_upserts(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.save(_interval("given"))
    coordinator.save(_interval("given", minutes=5))
    assert [a.interval_minutes for a in repository.list_alarms()] == [5]


def test_list_with_remaining(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_one_shot())
    coordinator.create(_interval())
    coordinator.create(_interval("a3", enabled=False))
    loop.advance(60)
    listed = {s.alarm.id: s.remaining_seconds for s in coordinator.list_with_remaining()}
    assert listed == {"a1": None, "a2": 1740, "a3": None}


def test_init_schedules_stored_alarms_and_shutdown_cancels(loop, repository, notifier, clock):
    repository.upsert_alarm(_interval())
    repository.upsert_alarm(_interval("off", enabled=False))
    repository.upsert_alarm(_one_shot(hh=9, mm=0))
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.init()
    assert coordinator.remaining_times() == {"a2": 1800}

    for _ in range(45):
        clock.now += timedelta(seconds=1)
        loop.advance(1)
    assert notifier.alarm_fires == ["a1"]

    coordinator.shutdown()
    assert coordinator.remaining_times() == {}
    assert loop.pending() == []


def test_disable_races_pending_fire(loop, repository, notifier, clock):
    coordinator = _coordinator(loop, repository, notifier, clock)
    coordinator.create(_interval(minutes=1))
    loop.advance(59)
    coordinator.toggle_enabled("a2")
    loop.advance(5)
    assert notifier.alarm_fires == []
    assert loop.pending() == []
