from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from attendance_processing.services.working_periods import WorkingPeriod

logger = logging.getLogger("attendance_processing.period_cache")


class WorkdaysPeriodsCache:
    """Per-employee working periods, computed at most once at a time per employee.

    Concurrent ``get_or_compute`` calls for the same employee wait on one lock,
    so only the first caller runs ``compute``. A failed computation stores
    nothing and the next caller retries. ``invalidate`` must be called when an
    employee's schedule history changes. A computation that was running when
    the employee was invalidated is returned to its caller but not stored.
    """

    def __init__(self) -> None:
        self._periods: dict[int, tuple[WorkingPeriod, ...]] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._generations: dict[int, int] = {}
        self._epoch = 0

    def __contains__(self, employee_id: int) -> bool:
        return employee_id in self._periods

    def __len__(self) -> int:
        return len(self._periods)

    def get(self, employee_id: int) -> list[WorkingPeriod] | None:
        cached = self._periods.get(employee_id)
        if cached is None:
            return None
        return list(cached)

    async def get_or_compute(
        self,
        employee_id: int,
        compute: Callable[[], Awaitable[list[WorkingPeriod]]],
    ) -> list[WorkingPeriod]:
        cached = self.get(employee_id)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(employee_id, asyncio.Lock())
        async with lock:
            cached = self.get(employee_id)
            if cached is not None:
                return cached
            generation = self._generation(employee_id)
            periods = await compute()
            if generation == self._generation(employee_id):
                self._periods[employee_id] = tuple(periods)
            else:
                logger.info("period_cache_stale_result_dropped", extra={"employee_id": employee_id})
            return list(periods)

    def _generation(self, employee_id: int) -> tuple[int, int]:
        return self._epoch, self._generations.get(employee_id, 0)

    def invalidate(self, employee_id: int) -> bool:
        removed = self._periods.pop(employee_id, None) is not None
        self._generations[employee_id] = self._generations.get(employee_id, 0) + 1
        lock = self._locks.get(employee_id)
        if lock is not None and not lock.locked():
            del self._locks[employee_id]
        logger.info(
            "period_cache_invalidated",
            extra={"employee_id": employee_id, "had_entry": removed},
        )
        return removed

    def clear(self) -> None:
        count = len(self._periods)
        self._periods.clear()
        self._epoch += 1
        self._generations.clear()
        self._locks = {key: lock for key, lock in self._locks.items() if lock.locked()}
        logger.info("period_cache_cleared", extra={"entries": count})
