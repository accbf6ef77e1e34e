"""Working-day resolution for a payroll period."""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Protocol


class HolidayLookup(Protocol):
    """Source of holiday dates (public holiday collaborator)."""

    async def holidays_between(self, start: date, end: date) -> set[date]: ...


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def count_working_days(
    start: date,
    end: date,
    rest_weekdays: Iterable[int],
    holidays: Iterable[date] = (),
) -> int:
    """Count dates in [start, end] that are neither a rest weekday nor a holiday."""
    rest = frozenset(rest_weekdays)
    excluded = set(holidays)

    working_days = 0
    current = start
    while current <= end:
        if current.weekday() not in rest and current not in excluded:
            working_days += 1
        current += timedelta(days=1)
    return working_days


class WorkingCalendarResolver:
    """Resolves the number of working days in a month.

    Rest weekdays use date.weekday() numbering (Monday = 0).
    """

    def __init__(self, holiday_lookup: HolidayLookup, rest_weekdays: Iterable[int]):
        self.holiday_lookup = holiday_lookup
        self.rest_weekdays = frozenset(rest_weekdays)

    async def working_days(self, month: int, year: int) -> int:
        start, end = month_bounds(month, year)
        holidays = await self.holiday_lookup.holidays_between(start, end)
        return count_working_days(start, end, self.rest_weekdays, holidays)
