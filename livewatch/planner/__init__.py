"""Preference-scoped planning and arming of standalone service reminders."""

from .plan import PlannedReminder, plan
from .reminders import JOB_PREFIX, ReminderScheduler

__all__ = ["JOB_PREFIX", "PlannedReminder", "ReminderScheduler", "plan"]
