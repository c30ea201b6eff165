"""Clock abstraction pinned to the quiz timezone."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Source of the current time."""

    @property
    def timezone(self) -> ZoneInfo:
        """Return the timezone all quiz times are expressed in."""

    def now(self) -> datetime:
        """Return the current time as an aware datetime."""


@dataclass(frozen=True)
class SystemClock:
    """Wall clock reporting time in a fixed timezone."""

    timezone: ZoneInfo

    @classmethod
    def for_timezone(cls, timezone_name: str) -> "SystemClock":
        """Create a clock for an IANA timezone name."""
        return cls(timezone=ZoneInfo(timezone_name))

    def now(self) -> datetime:
        """Return the current time in the configured timezone."""
        return datetime.now(tz=self.timezone)


def localize(moment: datetime, timezone: ZoneInfo) -> datetime:
    """Express a moment in the given timezone.

    Naive datetimes are taken to already be in that timezone, never in the
    host's local time.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone)
    return moment.astimezone(timezone)
