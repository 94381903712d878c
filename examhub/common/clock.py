"""
Clock abstraction.

Services read "now" through a ``Clock`` so publication windows and
timestamps can be pinned in tests. All times are naive UTC.
"""

import abc
import datetime


class Clock(abc.ABC):
    """Source of the current time."""

    @abc.abstractmethod
    def now(self) -> datetime.datetime:
        """Return the current naive UTC time."""
        pass


class SystemClock(Clock):
    """Clock backed by the system time."""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, current: datetime.datetime):
        self.current = current

    def now(self) -> datetime.datetime:
        return self.current

    def advance(self, **delta) -> datetime.datetime:
        """Move the clock forward by ``datetime.timedelta(**delta)``."""
        self.current = self.current + datetime.timedelta(**delta)
        return self.current
