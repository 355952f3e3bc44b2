import sys
from pathlib import Path

from reminders.models import describe_schedule
from reminders.storage import AlarmRepository


def main():
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("data/stretchbot.json")
    repository = AlarmRepository(path)
    settings = repository.get_settings()
    print(f"Reminder: every {settings.interval_minutes} min, wait {settings.wait_seconds}s")
    alarms = repository.list_alarms()
    if not alarms:
        print("No alarms")
        return
    print("Alarms:")
    for alarm in alarms:
        state = "on " if alarm.enabled else "off"
        last = alarm.last_triggered.isoformat() if alarm.last_triggered else "-"
        print(f"[{state}] {alarm.id} {alarm.title!r} {describe_schedule(alarm)} last={last}")


if __name__ == "__main__":
    main()
