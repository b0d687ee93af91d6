"""livewatch - weekly live-broadcast detection and service reminders."""

__version__ = "1.0.0"
