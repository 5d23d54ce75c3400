"""Time sources used by the credit rules and the user store."""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in the machine's local time zone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class FixedClock:
    """Clock that only moves when told to.

    Used by tests and scripted sessions to simulate a day rollover
    without waiting for midnight.
    """

    def __init__(self, current: datetime | None = None):
        if current is None:
            current = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward and return the new time."""
        self.current = self.current + delta
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current
