"""
Business days -- weekend-aware date arithmetic and minute comparisons.

Responsibility:
    Temporal helpers used by the POS heuristic rounds and the exception
    sweep.  A business day is any Monday-Friday; statutory holidays are not
    modelled.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O, no clock access.

Conventions:
    - ``difference_in_business_days(left, right)`` walks from ``right``
      towards ``left`` one calendar day at a time and counts every weekday
      it steps off; the sign follows ``left - right``.  Time of day is
      ignored.
    - ``difference_in_minutes(left, right)`` truncates toward zero, so
      5 minutes 59 seconds is 5 minutes.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

_SATURDAY = 5


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def is_weekend(value: date | datetime) -> bool:
    """True for Saturday and Sunday."""
    return _as_date(value).weekday() >= _SATURDAY


def add_business_days(start: date, amount: int) -> date:
    """
    Move ``amount`` business days away from ``start``.

    Weekend days are skipped and not counted.  A negative amount moves
    backwards.  ``amount == 0`` returns ``start`` unchanged, even when it
    falls on a weekend.

    Examples:
        Fri 2023-01-06 + 1 -> Mon 2023-01-09
        Sat 2023-01-07 + 2 -> Tue 2023-01-10
    """
    step = 1 if amount >= 0 else -1
    remaining = abs(amount)
    current = _as_date(start)
    while remaining:
        current += timedelta(days=step)
        if not is_weekend(current):
            remaining -= 1
    return current


def subtract_business_days(start: date, amount: int) -> date:
    """Move ``amount`` business days before ``start``."""
    return add_business_days(start, -amount)


def previous_business_day(value: date) -> date:
    """The closest business day strictly before ``value``."""
    return subtract_business_days(value, 1)


def difference_in_business_days(
    left: date | datetime,
    right: date | datetime,
) -> int:
    """
    Signed number of business days between two dates.

    Counts the weekdays in ``[right, left)`` when ``left`` is later and in
    ``(left, right]`` (negated) when it is earlier.
    """
    left_day = _as_date(left)
    current = _as_date(right)
    sign = 1 if left_day >= current else -1
    result = 0
    while current != left_day:
        if not is_weekend(current):
            result += sign
        current += timedelta(days=sign)
    return result


def difference_in_minutes(left: datetime, right: datetime) -> int:
    """Whole minutes between two instants, truncated toward zero."""
    seconds = (left - right).total_seconds()
    return int(seconds / 60)


def same_calendar_day(left: date | datetime, right: date | datetime) -> bool:
    return _as_date(left) == _as_date(right)
