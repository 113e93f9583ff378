from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable

from ..common.datetime_utils import iter_dates, weekday_name


def is_work_day(day: date, weekend_days: Iterable[str], holidays: Iterable[date] = ()) -> bool:
    weekend = {d.lower() for d in weekend_days}
    return weekday_name(day) not in weekend and day not in set(holidays)


def expected_work_days(start: date, end: date, weekend_days: Iterable[str], holidays: Iterable[date] = ()) -> int:
    """Inclusive count of days in [start, end] that are neither weekend nor holiday."""

    weekend = tuple(weekend_days)
    holiday_set = frozenset(holidays)
    return sum(1 for d in iter_dates(start, end) if is_work_day(d, weekend, holiday_set))


def is_absent(
    *,
    now: datetime,
    work_date: date,
    scheduled_start: datetime,
    has_check_in: bool,
    auto_absent_after_hours: int,
    weekend_days: Iterable[str],
    holidays: Iterable[date] = (),
) -> bool:
    """True once an expected work day passes the auto-absent threshold with no check-in.

    The reminder/notification job decides when to ask; this only answers.
    """

    if has_check_in:
        return False
    if not is_work_day(work_date, weekend_days, holidays):
        return False
    return now >= scheduled_start + timedelta(hours=auto_absent_after_hours)
