"""
Clock -- injectable time source.

Responsibility:
    Services stamp submitted/approved/rejected/reopened times and the
    selector ages the approval queue through a ``Clock``; nothing in the
    kernel calls ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place that reads real time.

Invariants enforced:
    The Period Calculator never consults a clock.  Code that needs "this
    week" asks ``clock.today()`` and passes the date to
    ``periods.week_number_for``.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Fixed clock for tests.

    Guarantees:
        ``now()`` is stable until ``advance()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)
