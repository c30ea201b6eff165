"""Domain models for quiz batches."""

from dataclasses import dataclass
from datetime import datetime, time


@dataclass(frozen=True)
class BatchDefinition:
    """A scheduled quiz batch: a daily window opening at ``window_start``."""

    batch_id: str
    window_start: time
    window_duration_minutes: int


@dataclass(frozen=True)
class BatchWindow:
    """A concrete occurrence of a batch window, bounds inclusive."""

    batch_id: str
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        """Return True if the moment falls inside the window."""
        return self.start <= moment <= self.end
