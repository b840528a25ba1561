from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from attendance_processing.models import WEEKDAY_COLUMNS


# 1 = Sunday ... 7 = Saturday, the numbering of SQL DAYOFWEEK().
WEEKDAY_CODES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)
_CODE_BY_NAME: dict[str, int] = {name: index + 1 for index, name in enumerate(WEEKDAY_COLUMNS)}


def weekday_code(day_date: date) -> int:
    return day_date.isoweekday() % 7 + 1


def to_utc_date(value: Any) -> date | None:
    """Reduce a date-like value to its UTC calendar day.

    Accepts ``date``, ``datetime`` (naive values are read as UTC) and ISO-8601
    strings. Anything else, including unparseable strings, yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = f"{raw[:-1]}+00:00"
        try:
            return to_utc_date(datetime.fromisoformat(raw))
        except ValueError:
            pass
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None
    return None


def _slot_to_code(slot: Any) -> int | None:
    if isinstance(slot, int) and not isinstance(slot, bool) and slot in WEEKDAY_CODES:
        return slot
    return None


def make_workdays_map(record: Any) -> dict[int, bool]:
    """Weekly pattern of a schedule record as ``{weekday_code: active}``.

    ``record`` is either a mapping keyed by weekday code (1 = Sunday), or an object
    exposing one boolean attribute per weekday (``sunday`` ... ``saturday``).
    """
    if isinstance(record, Mapping):
        pattern: dict[int, bool] = {}
        for slot, active in record.items():
            code = _slot_to_code(slot)
            if code is not None:
                pattern[code] = bool(active)
        return pattern
    return {
        _CODE_BY_NAME[name]: bool(getattr(record, name, False))
        for name in WEEKDAY_COLUMNS
    }


def resolve_weekday_codes(record: Any) -> frozenset[int]:
    return frozenset(code for code, active in make_workdays_map(record).items() if active)
