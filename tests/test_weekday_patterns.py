from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
import unittest

from attendance_processing.models import Workdays
from attendance_processing.services.weekday_patterns import (
    make_workdays_map,
    resolve_weekday_codes,
    to_utc_date,
    weekday_code,
)


class WeekdayPatternsTests(unittest.TestCase):
    def test_weekday_code_starts_on_sunday(self) -> None:
        self.assertEqual(weekday_code(date(2026, 3, 1)), 1)  # Sunday
        self.assertEqual(weekday_code(date(2026, 3, 2)), 2)  # Monday
        self.assertEqual(weekday_code(date(2026, 3, 6)), 6)  # Friday
        self.assertEqual(weekday_code(date(2026, 3, 7)), 7)  # Saturday

    def test_resolve_weekday_codes_from_workdays_row(self) -> None:
        row = Workdays(
            employee_id=1,
            sunday=False,
            monday=True,
            tuesday=True,
            wednesday=False,
            thursday=True,
            friday=False,
            saturday=True,
        )

        self.assertEqual(resolve_weekday_codes(row), frozenset({2, 3, 5, 7}))
        self.assertEqual(make_workdays_map(row)[4], False)

    def test_resolve_weekday_codes_from_mapping_ignores_unknown_slots(self) -> None:
        pattern = {2: True, 3: 1, 6: True, 5: False, 4: None, 9: True, 0: True, True: True, "friday": True, "4": True}

        self.assertEqual(resolve_weekday_codes(pattern), frozenset({2, 3, 6}))

    def test_resolve_weekday_codes_empty_pattern(self) -> None:
        self.assertEqual(resolve_weekday_codes({}), frozenset())

    def test_to_utc_date_normalizes_inputs(self) -> None:
        istanbul = timezone(timedelta(hours=3))

        self.assertEqual(to_utc_date(date(2026, 3, 2)), date(2026, 3, 2))
        self.assertEqual(to_utc_date(datetime(2026, 3, 2, 1, 0, tzinfo=istanbul)), date(2026, 3, 1))
        self.assertEqual(to_utc_date(datetime(2026, 3, 2, 23, 59)), date(2026, 3, 2))
        self.assertEqual(to_utc_date("2026-03-02"), date(2026, 3, 2))
        self.assertEqual(to_utc_date("2026-03-02T22:30:00Z"), date(2026, 3, 2))
        self.assertEqual(to_utc_date("2026-03-03T01:30:00+03:00"), date(2026, 3, 2))

    def test_to_utc_date_invalid_values_are_none(self) -> None:
        self.assertIsNone(to_utc_date(None))
        self.assertIsNone(to_utc_date(""))
        self.assertIsNone(to_utc_date("not-a-date"))
        self.assertIsNone(to_utc_date("2026-02-30"))
        self.assertIsNone(to_utc_date(12345))


if __name__ == "__main__":
    unittest.main()
