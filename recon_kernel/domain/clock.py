"""
Injectable clocks.

Services never call ``date.today()``: the run date written to
``reconciled_on`` and ``in_progress_on`` comes from the Clock they were
given.  Engines take the run date as a plain argument and never see a
clock at all.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):
    """Source of the current instant.  ``now()`` is timezone-aware."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        """The run date: the calendar date of ``now()``."""
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock frozen at a given instant until moved explicitly.

    Batch runs are simulated with ``advance_days``: each call is the next
    nightly run.
    """

    DEFAULT_START = datetime(2023, 1, 2, 12, 0, tzinfo=UTC)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def advance_days(self, days: int = 1) -> None:
        self._current += timedelta(days=days)
