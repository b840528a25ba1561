from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import Any

from attendance_processing.services.weekday_patterns import resolve_weekday_codes, to_utc_date


@dataclass(frozen=True)
class ScheduleChangeRecord:
    employee_id: int
    effective_at: datetime
    weekly_pattern: Mapping[int, bool] = field(default_factory=dict)

    @property
    def effective_date(self) -> date:
        effective_date = to_utc_date(self.effective_at)
        if effective_date is None:
            raise ValueError(f"Invalid effective_at: {self.effective_at!r}")
        return effective_date


@dataclass(frozen=True)
class WorkingPeriod:
    date_from: date
    date_to: date
    days_of_week: frozenset[int] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        return {
            "date_from": self.date_from.isoformat(),
            "date_to": self.date_to.isoformat(),
            "days_of_week": sorted(self.days_of_week),
        }


def latest_record_per_day(records: Iterable[ScheduleChangeRecord]) -> list[ScheduleChangeRecord]:
    """Newest-first records with only the last edit of each UTC day kept."""
    ordered = sorted(records, key=lambda item: item.effective_at, reverse=True)
    seen_days: set[date] = set()
    result: list[ScheduleChangeRecord] = []
    for record in ordered:
        if record.effective_date in seen_days:
            continue
        seen_days.add(record.effective_date)
        result.append(record)
    return result


def build_working_periods(
    records: Iterable[ScheduleChangeRecord],
    *,
    start_date: Any,
    leaving_date: Any = None,
    today: date | None = None,
) -> list[WorkingPeriod]:
    """Turn a newest-first schedule history into chronological working periods.

    Every record covers the days from its effective date up to the day before
    the next (newer) record, the newest one running until ``today``. The
    oldest period is moved to start on ``start_date``, then everything is
    clipped to the employment span ``[start_date, leaving_date]``. Only the
    last record of each UTC day counts.
    """
    start = to_utc_date(start_date)
    if start is None:
        return []

    upper_bound = today or datetime.now(timezone.utc).date()
    newest_first: list[WorkingPeriod] = []
    for record in latest_record_per_day(records):
        newest_first.append(
            WorkingPeriod(
                date_from=record.effective_date,
                date_to=upper_bound,
                days_of_week=resolve_weekday_codes(record.weekly_pattern),
            )
        )
        upper_bound = record.effective_date - timedelta(days=1)

    if not newest_first:
        return []

    newest_first[-1] = replace(newest_first[-1], date_from=start)
    periods = [period for period in reversed(newest_first) if period.date_from <= period.date_to]

    return clip_periods_to_range(periods, start, to_utc_date(leaving_date))


def clip_periods_to_range(
    periods: Iterable[WorkingPeriod],
    date_from: Any = None,
    date_to: Any = None,
) -> list[WorkingPeriod]:
    lower = to_utc_date(date_from)
    upper = to_utc_date(date_to)

    clipped: list[WorkingPeriod] = []
    for period in periods:
        if lower is not None and lower > period.date_to:
            continue
        if upper is not None and upper < period.date_from:
            continue

        new_period = period
        if lower is not None and lower > period.date_from:
            new_period = replace(new_period, date_from=lower)
        if upper is not None and upper < period.date_to:
            new_period = replace(new_period, date_to=upper)
        clipped.append(new_period)
    return clipped
