"""Stretch reminder and alarm scheduling engine."""

from .coordinator import AlarmCoordinator
from .models import Alarm, AlarmKind, AlarmStatus, Settings, ValidationError
from .reminder_timer import ReminderTimer, ReminderTimerState, TimerPhase
from .service import ReminderService
from .storage import AlarmRepository
