import asyncio
import logging
import signal
from typing import Optional

from config import Config, load_config, setup_logging
from reminders.notifier import ConsoleNotifier
from reminders.service import ReminderService
from reminders.storage import AlarmRepository
from time_utils import format_tz_offset, now_in_tz, resolve_timezone

logger = logging.getLogger("stretchbot")


def graceful_exit(signum, frame) -> None:  # pragma: no cover - signal handler
    logger.info("Shutting down (signal %s)", signum)
    raise KeyboardInterrupt()


class RuntimeNotifier(ConsoleNotifier):
    """Console presentation that acknowledges the stretch after the wait window."""

    def __init__(self, loop, auto_complete: bool):
        super().__init__()
        self.loop = loop
        self.auto_complete = auto_complete
        self.service: Optional[ReminderService] = None
        self._complete_handle = None

    def reminder_fired(self, wait_seconds: int, sound_enabled: bool) -> None:
        super().reminder_fired(wait_seconds, sound_enabled)
        if self.auto_complete and self.service is not None:
            if self._complete_handle is not None:
                self._complete_handle.cancel()
            self._complete_handle = self.loop.call_later(wait_seconds, self._complete)

    def _complete(self) -> None:
        self._complete_handle = None
        logger.info("Stretch done, next cycle started")
        self.service.complete_reminder_stretch()


async def run(config: Config) -> None:
    loop = asyncio.get_running_loop()
    tz = resolve_timezone(config.timezone_name)
    logger.info("Using timezone %s (UTC%s)", getattr(tz, "key", tz), format_tz_offset(tz))

    repository = AlarmRepository(config.store_path)
    if repository.degraded:
        logger.warning("Store unavailable, running with default settings in memory")
    notifier = RuntimeNotifier(loop, config.auto_complete_stretch)
    service = ReminderService(
        loop,
        repository,
        notifier,
        now_fn=lambda: now_in_tz(tz),
        sample_interval=config.sample_interval_ms / 1000.0,
    )
    notifier.service = service

    settings = service.get_settings()
    logger.info(
        "Reminder every %s min, %s alarms configured",
        settings.interval_minutes,
        len(service.list_alarms()),
    )
    service.start()
    try:
        await asyncio.Event().wait()
    finally:
        service.shutdown()


def main() -> None:
    config = load_config()
    setup_logging(config.log_level)
    signal.signal(signal.SIGINT, graceful_exit)
    logger.info("Starting StretchBot (store=%s)", config.store_path)
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
