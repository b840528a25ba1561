from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from attendance_processing.models import Employee
from attendance_processing.services.expected_workdays import (
    ExpectedWorkdays,
    count_days_of_week_between,
    expand_work_states,
    expected_workdays_for_period,
)
from attendance_processing.services.period_cache import WorkdaysPeriodsCache
from attendance_processing.services.stores import (
    AttendanceRecordStore,
    EmployeeStore,
    ScheduleHistoryStore,
)
from attendance_processing.services.working_periods import (
    WorkingPeriod,
    build_working_periods,
    clip_periods_to_range,
)
from attendance_processing.settings import get_weekend_weekday_codes

logger = logging.getLogger("attendance_processing.processing")


class AttendanceProcessingService:
    """Answers per-employee attendance questions over arbitrary date ranges.

    Periods are derived once per employee from the schedule history and kept
    in ``cache`` until invalidated.
    """

    def __init__(
        self,
        *,
        schedule_store: ScheduleHistoryStore,
        attendance_store: AttendanceRecordStore,
        employee_store: EmployeeStore | None = None,
        cache: WorkdaysPeriodsCache | None = None,
        weekend_codes: Iterable[int] | None = None,
        today: date | None = None,
    ) -> None:
        self.schedule_store = schedule_store
        self.attendance_store = attendance_store
        self.employee_store = employee_store
        self.cache = cache if cache is not None else WorkdaysPeriodsCache()
        self.weekend_codes = frozenset(
            weekend_codes if weekend_codes is not None else get_weekend_weekday_codes()
        )
        self._today = today

    async def is_user_processed(self, employee: Employee, date_from: Any, date_to: Any) -> bool:
        periods = await self.get_periods_in_range(employee, date_from, date_to)

        while periods:
            period = periods.pop()
            if not await self.is_employee_processed_in_period(employee, period):
                return False
        return True

    async def should_employee_work_between(self, employee: Employee, date_from: Any, date_to: Any) -> bool:
        periods = await self.get_periods_in_range(employee, date_from, date_to)
        return any(self.get_employee_expected_workdays_for_period(period).count for period in periods)

    async def generate_employee_work_states(
        self,
        employee: Employee,
        date_from: Any,
        date_to: Any,
    ) -> dict[int, bool]:
        """Day-keyed work map of the range. Every scheduled weekday is a work day,
        weekend codes included, unlike the set checked by the attendance store."""
        states: dict[int, bool] = {}
        for period in await self.get_periods_in_range(employee, date_from, date_to):
            expected = count_days_of_week_between(period.days_of_week, period.date_from, period.date_to)
            states.update(expand_work_states(period.date_from, period.date_to, expected))
        return states

    def get_employee_expected_workdays_for_period(self, period: WorkingPeriod) -> ExpectedWorkdays:
        return expected_workdays_for_period(period, weekend_codes=self.weekend_codes)

    async def is_employee_processed_in_period(self, employee: Employee, period: WorkingPeriod) -> bool:
        expected = self.get_employee_expected_workdays_for_period(period)
        if not expected.count:
            return True

        # a plain count comparison: a duplicate record can hide a missing day
        recorded = await self.attendance_store.count_attendance_records(
            employee.id,
            period.date_from,
            period.date_to,
            expected.days_of_week,
        )
        processed = expected.count <= recorded
        if not processed:
            logger.debug(
                "employee_period_unprocessed",
                extra={
                    "employee_id": employee.id,
                    "period": period.to_dict(),
                    "expected_count": expected.count,
                    "recorded_count": recorded,
                },
            )
        return processed

    async def get_periods_in_range(self, employee: Employee, date_from: Any, date_to: Any) -> list[WorkingPeriod]:
        periods = await self.get_employee_workdays_periods(employee)
        return clip_periods_to_range(periods, date_from, date_to)

    async def get_employee_workdays_periods(self, employee: Employee) -> list[WorkingPeriod]:
        async def _compute() -> list[WorkingPeriod]:
            return await self._build_employee_periods(employee)

        return await self.cache.get_or_compute(employee.id, _compute)

    async def _build_employee_periods(self, employee: Employee) -> list[WorkingPeriod]:
        if employee.start_date is None:
            logger.warning("employee_missing_start_date", extra={"employee_id": employee.id})
            return []

        records = await self.schedule_store.fetch_schedule_history(employee.id)
        periods = build_working_periods(
            records,
            start_date=employee.start_date,
            leaving_date=employee.leaving_date,
            today=self._today,
        )
        logger.info(
            "working_periods_built",
            extra={
                "employee_id": employee.id,
                "schedule_records": len(records),
                "periods": len(periods),
            },
        )
        return periods

    async def list_unprocessed_employees(
        self,
        date_from: Any,
        date_to: Any,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Employee]:
        if self.employee_store is None:
            raise RuntimeError("Employee store is not configured")

        unprocessed: list[Employee] = []
        for employee in await self.employee_store.list_working_employees():
            if not await self.is_user_processed(employee, date_from, date_to):
                unprocessed.append(employee)

        start = max(0, offset)
        if limit is None:
            return unprocessed[start:]
        return unprocessed[start : start + max(0, limit)]

    async def count_unprocessed_employees(self, date_from: Any, date_to: Any) -> int:
        return len(await self.list_unprocessed_employees(date_from, date_to))

    def invalidate_employee(self, employee_id: int) -> bool:
        return self.cache.invalidate(employee_id)

    def clear_cache(self) -> None:
        self.cache.clear()
