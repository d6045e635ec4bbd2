from __future__ import annotations

from datetime import date, datetime
from typing import Protocol


# PUBLIC_INTERFACE
class Clock(Protocol):
    """Time source used by services for timestamps and 'today' defaults."""

    def now(self) -> datetime:
        """Current timestamp."""

    def today(self) -> date:
        """Current calendar date."""


class SystemClock:
    """Clock backed by the local system time."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()


_system_clock = SystemClock()


# PUBLIC_INTERFACE
def get_clock() -> Clock:
    """FastAPI dependency returning the process-wide system clock."""
    return _system_clock
