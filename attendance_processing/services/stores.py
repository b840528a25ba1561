from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone
from typing import Protocol

from sqlalchemy import ColumnElement, exists, extract, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from attendance_processing.db import SessionLocal
from attendance_processing.errors import UpstreamFetchError
from attendance_processing.models import ACTIVITY_HOUR_COLUMNS, Attendance, Employee, Workdays
from attendance_processing.services.weekday_patterns import make_workdays_map
from attendance_processing.services.working_periods import ScheduleChangeRecord, latest_record_per_day
from attendance_processing.settings import get_active_employee_status_ids


class ScheduleHistoryStore(Protocol):
    async def fetch_schedule_history(self, employee_id: int) -> list[ScheduleChangeRecord]:
        """Schedule changes newest first, only the last one of each calendar day."""
        ...


class AttendanceRecordStore(Protocol):
    async def count_attendance_records(
        self,
        employee_id: int,
        date_from: date,
        date_to: date,
        weekday_codes: Iterable[int],
    ) -> int:
        ...


class EmployeeStore(Protocol):
    async def list_working_employees(self) -> list[Employee]:
        ...


def _normalize_ts(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def fetch_schedule_history(employee_id: int, db: Session | None = None) -> list[ScheduleChangeRecord]:
    if db is None:
        with SessionLocal() as managed_db:
            return fetch_schedule_history(employee_id, db=managed_db)

    rows = db.scalars(
        select(Workdays)
        .where(Workdays.employee_id == employee_id)
        .order_by(Workdays.created_at.desc(), Workdays.id.desc())
    ).all()
    return latest_record_per_day(
        ScheduleChangeRecord(
            employee_id=row.employee_id,
            effective_at=_normalize_ts(row.created_at),
            weekly_pattern=make_workdays_map(row),
        )
        for row in rows
    )


def has_recorded_activity() -> ColumnElement[bool]:
    return or_(
        Attendance.checked_in.is_(True),
        *(getattr(Attendance, column) > 0 for column in ACTIVITY_HOUR_COLUMNS),
    )


def count_attendance_records(
    employee_id: int,
    date_from: date,
    date_to: date,
    weekday_codes: Iterable[int],
    db: Session | None = None,
) -> int:
    codes = sorted(set(weekday_codes))
    if not codes:
        return 0
    if db is None:
        with SessionLocal() as managed_db:
            return count_attendance_records(employee_id, date_from, date_to, codes, db=managed_db)

    # extract(dow) is 0 for Sunday; weekday codes start at 1 for Sunday
    day_of_week = extract("dow", Attendance.day_date) + 1
    count = db.scalar(
        select(func.count(Attendance.id)).where(
            Attendance.employee_id == employee_id,
            Attendance.day_date >= date_from,
            Attendance.day_date <= date_to,
            day_of_week.in_(codes),
            has_recorded_activity(),
        )
    )
    return int(count or 0)


def list_working_employees(
    db: Session | None = None,
    *,
    today: date | None = None,
) -> list[Employee]:
    if db is None:
        with SessionLocal() as managed_db:
            return list_working_employees(managed_db, today=today)

    reference_day = today or datetime.now(timezone.utc).date()
    has_schedule = exists().where(Workdays.employee_id == Employee.id)
    return list(
        db.scalars(
            select(Employee)
            .where(
                Employee.start_date.is_not(None),
                Employee.start_date <= reference_day,
                Employee.status_id.in_(get_active_employee_status_ids()),
                has_schedule,
            )
            .order_by(Employee.id.asc())
        ).all()
    )


class SqlScheduleHistoryStore:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _fetch(self, employee_id: int) -> list[ScheduleChangeRecord]:
        with self._session_factory() as db:
            return fetch_schedule_history(employee_id, db=db)

    async def fetch_schedule_history(self, employee_id: int) -> list[ScheduleChangeRecord]:
        try:
            return await asyncio.to_thread(self._fetch, employee_id)
        except SQLAlchemyError as exc:
            raise UpstreamFetchError("schedule_history", employee_id, str(exc)) from exc


class SqlAttendanceRecordStore:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _count(self, employee_id: int, date_from: date, date_to: date, weekday_codes: list[int]) -> int:
        with self._session_factory() as db:
            return count_attendance_records(employee_id, date_from, date_to, weekday_codes, db=db)

    async def count_attendance_records(
        self,
        employee_id: int,
        date_from: date,
        date_to: date,
        weekday_codes: Iterable[int],
    ) -> int:
        try:
            return await asyncio.to_thread(self._count, employee_id, date_from, date_to, list(weekday_codes))
        except SQLAlchemyError as exc:
            raise UpstreamFetchError("attendance_records", employee_id, str(exc)) from exc


class SqlEmployeeStore:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def _list(self) -> list[Employee]:
        with self._session_factory() as db:
            return list_working_employees(db)

    async def list_working_employees(self) -> list[Employee]:
        try:
            return await asyncio.to_thread(self._list)
        except SQLAlchemyError as exc:
            raise UpstreamFetchError("employees", None, str(exc)) from exc
