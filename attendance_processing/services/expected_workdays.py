from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any

from attendance_processing.services.weekday_patterns import to_utc_date, weekday_code
from attendance_processing.services.working_periods import WorkingPeriod


@dataclass(frozen=True)
class ExpectedWorkdays:
    days_of_week: tuple[int, ...] = ()
    count: int = 0


def count_days_of_week_between(days_of_week: Iterable[int], date_from: Any, date_to: Any) -> ExpectedWorkdays:
    """Count the days in ``[date_from, date_to]`` whose weekday code is in ``days_of_week``.

    Whole weeks contribute ``len(days_of_week)`` each; the remaining partial
    week is walked backwards from ``date_to``. The returned ``days_of_week``
    are the codes that actually occur in the range. A missing, malformed or
    reversed range counts as nothing expected.
    """
    allowed = sorted(set(days_of_week))
    if not allowed:
        return ExpectedWorkdays()

    start = to_utc_date(date_from)
    end = to_utc_date(date_to)
    if start is None or end is None:
        return ExpectedWorkdays()

    days_between = (end - start).days + 1
    if days_between < 0:
        return ExpectedWorkdays()

    full_weeks, rest_days = divmod(days_between, 7)
    # a whole week contains every allowed weekday
    occurring: set[int] = set(allowed) if full_weeks else set()
    count = 0
    for offset in range(rest_days):
        code = weekday_code(end - timedelta(days=offset))
        if code in allowed:
            count += 1
            occurring.add(code)

    count += full_weeks * len(allowed)
    return ExpectedWorkdays(days_of_week=tuple(sorted(occurring)), count=count)


def expected_workdays_for_period(
    period: WorkingPeriod,
    *,
    weekend_codes: Iterable[int] = (),
) -> ExpectedWorkdays:
    # weekend codes leave the reported set but still count
    expected = count_days_of_week_between(period.days_of_week, period.date_from, period.date_to)
    excluded = set(weekend_codes)
    return ExpectedWorkdays(
        days_of_week=tuple(code for code in expected.days_of_week if code not in excluded),
        count=expected.count,
    )


def day_key(day_date: Any) -> int:
    """Epoch milliseconds of the UTC midnight starting ``day_date``."""
    midnight = datetime.combine(day_date, time.min, tzinfo=timezone.utc)
    return int(midnight.timestamp()) * 1000


def expand_work_states(date_from: Any, date_to: Any, expected: ExpectedWorkdays) -> dict[int, bool]:
    start = to_utc_date(date_from)
    end = to_utc_date(date_to)
    if start is None or end is None:
        return {}

    work_days = set(expected.days_of_week)
    states: dict[int, bool] = {}
    current = start
    while current <= end:
        states[day_key(current)] = weekday_code(current) in work_days
        current += timedelta(days=1)
    return states
