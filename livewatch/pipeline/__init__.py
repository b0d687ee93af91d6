"""Poll-cycle orchestration."""

from .models import CycleOutcome, LiveCheckResult, LiveCheckState
from .runner import LiveCheckRunner

__all__ = ["CycleOutcome", "LiveCheckResult", "LiveCheckState", "LiveCheckRunner"]
