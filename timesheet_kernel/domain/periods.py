"""
Periods -- the Period Calculator.

Responsibility:
    Maps (period type, year, month, optional week number) to calendar
    boundaries and the ordered list of days tagged weekend/working.  Also
    produces auto-filled daily hours for a period.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Never reads the
    clock; any "today"-relative lookup takes the date as an argument.

Invariants enforced:
    - Day count is 7 (weekly), 14 (bi-weekly) or the calendar-month length
      (monthly).
    - Weekly and bi-weekly periods anchor to the first Monday on or after
      the 1st of the month; week numbers index successive blocks from it.
    - A day is a weekend day iff it is Saturday or Sunday.

Failure modes:
    - InvalidPeriodError for unknown period types, missing/non-positive
      week numbers, months outside 1..12, years outside
      MIN_YEAR..MAX_YEAR, or ranges that overflow the calendar.
    - InvalidHoursError from ``auto_fill`` when hours_per_day is outside
      0..24, and from ``DailyHours`` when hours are not a finite number
      with at most two decimal places.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from timesheet_kernel.exceptions import InvalidHoursError, InvalidPeriodError

MIN_YEAR = 1900
MAX_YEAR = 2999

MAX_HOURS_PER_DAY = Decimal("24")
DEFAULT_HOURS_PER_DAY = Decimal("8")
HOURS_DECIMAL_PLACES = 2


class PeriodType(str, Enum):
    """Length of the reporting period."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def block_days(self) -> int | None:
        """Fixed length in days, or None for calendar months."""
        return _BLOCK_DAYS.get(self)


_BLOCK_DAYS: dict[PeriodType, int] = {
    PeriodType.WEEKLY: 7,
    PeriodType.BIWEEKLY: 14,
}


@dataclass(frozen=True, slots=True)
class CalendarDay:
    """A single day inside a period."""

    day: date
    is_weekend: bool

    @property
    def is_working_day(self) -> bool:
        return not self.is_weekend


@dataclass(frozen=True)
class Period:
    """
    Immutable period value object.

    Contract:
        Produced only by ``compute_period``.  ``end_date`` is inclusive.
        ``week_number`` is None for monthly periods.

    Guarantees:
        - ``days`` is ordered and covers exactly start_date..end_date.
        - ``period_key`` is a stable string identity for the slot, used as
          the persistence key together with the employee id.
    """

    period_type: PeriodType
    year: int
    month: int
    week_number: int | None
    start_date: date
    end_date: date
    days: tuple[CalendarDay, ...]

    @property
    def day_count(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def working_days(self) -> tuple[date, ...]:
        return tuple(d.day for d in self.days if not d.is_weekend)

    @property
    def weekend_days(self) -> tuple[date, ...]:
        return tuple(d.day for d in self.days if d.is_weekend)

    @property
    def period_key(self) -> str:
        return period_key(self.period_type, self.year, self.month, self.week_number)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_type": self.period_type.value,
            "year": self.year,
            "month": self.month,
            "week_number": self.week_number,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "working_days": [d.isoformat() for d in self.working_days],
            "weekend_days": [d.isoformat() for d in self.weekend_days],
        }


def _coerce_hours(value: Any, work_date: date | None) -> Decimal:
    """Decimal hours, finite and at most two decimal places."""
    if isinstance(value, Decimal):
        hours = value
    else:
        try:
            hours = Decimal(str(value))
        except InvalidOperation:
            raise InvalidHoursError(work_date, value, MAX_HOURS_PER_DAY) from None
    if not hours.is_finite():
        raise InvalidHoursError(
            work_date, hours, MAX_HOURS_PER_DAY,
            reason="Hours must be a finite number.",
        )
    if hours.normalize().as_tuple().exponent < -HOURS_DECIMAL_PLACES:
        raise InvalidHoursError(
            work_date, hours, MAX_HOURS_PER_DAY,
            reason=f"Hours allow at most {HOURS_DECIMAL_PLACES} decimal places.",
        )
    return hours


@dataclass(frozen=True, slots=True)
class DailyHours:
    """
    Hours worked on one date.

    ``hours`` is normalized to Decimal on construction (never float) and
    must be a finite amount with at most two decimal places, the precision
    the hours columns store.  ``is_holiday`` is always False: no holiday
    calendar is integrated.
    """

    work_date: date
    hours: Decimal
    is_holiday: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "hours", _coerce_hours(self.hours, self.work_date))

    @property
    def is_weekend(self) -> bool:
        return is_weekend(self.work_date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.work_date.isoformat(),
            "hours": str(self.hours),
            "is_weekend": self.is_weekend,
            "is_holiday": self.is_holiday,
        }


def is_weekend(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


def period_key(
    period_type: PeriodType, year: int, month: int, week_number: int | None
) -> str:
    base = f"{period_type.value}:{year:04d}-{month:02d}"
    if week_number is None:
        return base
    return f"{base}:w{week_number}"


def first_monday(year: int, month: int) -> date:
    """First Monday on or after the 1st of (year, month)."""
    first = date(year, month, 1)
    return first + timedelta(days=(7 - first.weekday()) % 7)


def _resolve_type(period_type: PeriodType | str) -> PeriodType:
    if isinstance(period_type, PeriodType):
        return period_type
    try:
        return PeriodType(str(period_type).strip().lower())
    except ValueError:
        raise InvalidPeriodError(
            f"unknown period type {period_type!r}", period_type=period_type
        ) from None


def _check_year_month(year: int, month: int) -> None:
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriodError(
            f"year must be between {MIN_YEAR} and {MAX_YEAR}", year=year
        )
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidPeriodError("month must be between 1 and 12", month=month)


def _iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def compute_period(
    period_type: PeriodType | str,
    year: int,
    month: int,
    week_number: int | None = None,
) -> Period:
    """
    Compute the boundaries and days of a period.

    Args:
        period_type: WEEKLY, BIWEEKLY or MONTHLY (enum or its value).
        year: Calendar year.
        month: Calendar month, 1..12.
        week_number: 1-based block index from the month anchor; required
            for weekly and bi-weekly, ignored for monthly.

    Returns:
        Frozen Period.

    Raises:
        InvalidPeriodError: If any parameter is out of range.
    """
    ptype = _resolve_type(period_type)
    _check_year_month(year, month)

    if ptype is PeriodType.MONTHLY:
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])
        week_number = None
    else:
        if week_number is None or not isinstance(week_number, int) or week_number < 1:
            raise InvalidPeriodError(
                f"week number is required for {ptype.value} timesheets",
                period_type=ptype.value,
                week_number=week_number,
            )
        block = ptype.block_days
        try:
            start = first_monday(year, month) + timedelta(days=(week_number - 1) * block)
            end = start + timedelta(days=block - 1)
        except OverflowError:
            raise InvalidPeriodError(
                "week number is beyond the calendar range",
                week_number=week_number,
            ) from None

    days = tuple(CalendarDay(d, is_weekend(d)) for d in _iter_days(start, end))
    return Period(
        period_type=ptype,
        year=year,
        month=month,
        week_number=week_number,
        start_date=start,
        end_date=end,
        days=days,
    )


def week_number_for(
    period_type: PeriodType | str, year: int, month: int, on_date: date
) -> int | None:
    """
    Block number of (year, month) that contains ``on_date``.

    Dates before the month anchor map to block 1.  Returns None for
    monthly periods.  Callers that want "this week" pass ``clock.today()``.
    """
    ptype = _resolve_type(period_type)
    _check_year_month(year, month)
    if ptype is PeriodType.MONTHLY:
        return None
    anchor = first_monday(year, month)
    if on_date < anchor:
        return 1
    return (on_date - anchor).days // ptype.block_days + 1


def periods_in_month(
    period_type: PeriodType | str, year: int, month: int
) -> tuple[Period, ...]:
    """All periods whose start date falls inside (year, month)."""
    ptype = _resolve_type(period_type)
    if ptype is PeriodType.MONTHLY:
        return (compute_period(ptype, year, month),)

    periods: list[Period] = []
    week_number = 1
    while True:
        period = compute_period(ptype, year, month, week_number)
        if (period.start_date.year, period.start_date.month) != (year, month):
            break
        periods.append(period)
        week_number += 1
    return tuple(periods)


def auto_fill(
    period: Period,
    hours_per_day: Decimal | int | str = DEFAULT_HOURS_PER_DAY,
    weekdays_only: bool = True,
) -> tuple[DailyHours, ...]:
    """
    One entry per day of the period.

    Weekend days get 0 hours when ``weekdays_only`` is set, otherwise every
    day gets ``hours_per_day``.
    """
    hours = _coerce_hours(hours_per_day, None)
    if hours < 0 or hours > MAX_HOURS_PER_DAY:
        raise InvalidHoursError(None, hours, MAX_HOURS_PER_DAY)

    return tuple(
        DailyHours(
            work_date=d.day,
            hours=Decimal("0") if weekdays_only and d.is_weekend else hours,
        )
        for d in period.days
    )


def build_entries(
    hours_by_date: Mapping[date, Decimal | int | str],
) -> tuple[DailyHours, ...]:
    """Convert a date -> hours mapping into DailyHours ordered by date."""
    return tuple(
        DailyHours(work_date=day, hours=hours)
        for day, hours in sorted(hours_by_date.items())
    )
