from __future__ import annotations

from collections.abc import Generator
from datetime import date, datetime, timezone
import unittest

from fastapi.testclient import TestClient

from attendance_processing.db import get_db
from attendance_processing.errors import UpstreamFetchError
from attendance_processing.main import app
from attendance_processing.models import Employee
from attendance_processing.routers.processing import get_processing_service
from attendance_processing.services.attendance_processing import AttendanceProcessingService
from attendance_processing.services.expected_workdays import day_key
from attendance_processing.services.working_periods import ScheduleChangeRecord

MON_TO_FRI = {2: True, 3: True, 4: True, 5: True, 6: True}


class _FakeDB:
    def __init__(self, employees: list[Employee]):
        self._employees = {employee.id: employee for employee in employees}

    def get(self, _model, pk):  # type: ignore[no-untyped-def]
        return self._employees.get(pk)


class _FakeScheduleStore:
    def __init__(self, *, fail: bool = False):
        self._fail = fail

    async def fetch_schedule_history(self, employee_id: int) -> list[ScheduleChangeRecord]:
        if self._fail:
            raise UpstreamFetchError("schedule_history", employee_id, "timeout")
        return [
            ScheduleChangeRecord(
                employee_id=employee_id,
                effective_at=datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc),
                weekly_pattern=MON_TO_FRI,
            )
        ]


class _FakeAttendanceStore:
    def __init__(self, recorded: int):
        self._recorded = recorded

    async def count_attendance_records(self, employee_id, date_from, date_to, weekday_codes):  # type: ignore[no-untyped-def]
        return self._recorded


class _FakeEmployeeStore:
    def __init__(self, employees: list[Employee]):
        self._employees = employees

    async def list_working_employees(self) -> list[Employee]:
        return list(self._employees)


def _override_get_db(fake_db: _FakeDB):
    def _override() -> Generator[_FakeDB, None, None]:
        yield fake_db

    return _override


class ProcessingEndpointsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.employees = [
            Employee(id=1, full_name="Ayse Yilmaz", status_id=1, start_date=date(2026, 3, 2)),
            Employee(id=2, full_name="Mehmet Kaya", status_id=1, start_date=date(2026, 3, 10)),
        ]
        app.dependency_overrides[get_db] = _override_get_db(_FakeDB(self.employees))

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _use_service(self, *, recorded: int = 0, fail: bool = False) -> AttendanceProcessingService:
        service = AttendanceProcessingService(
            schedule_store=_FakeScheduleStore(fail=fail),
            attendance_store=_FakeAttendanceStore(recorded),
            employee_store=_FakeEmployeeStore(self.employees),
            weekend_codes=(6, 7),
            today=date(2026, 3, 31),
        )
        app.dependency_overrides[get_processing_service] = lambda: service
        return service

    def test_processed_endpoint(self) -> None:
        self._use_service(recorded=8)
        client = TestClient(app)

        response = client.get(
            "/api/attendance-processing/employees/1/processed",
            params={"from": "2026-03-02", "to": "2026-03-11"},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["processed"])
        self.assertEqual(body["date_from"], "2026-03-02")
        self.assertEqual(body["date_to"], "2026-03-11")
        self.assertIn("X-Request-Id", response.headers)

    def test_should_work_endpoint(self) -> None:
        self._use_service()
        client = TestClient(app)

        weekend = client.get(
            "/api/attendance-processing/employees/1/should-work",
            params={"from": "2026-03-07", "to": "2026-03-08"},
        )
        week = client.get(
            "/api/attendance-processing/employees/1/should-work",
            params={"from": "2026-03-07", "to": "2026-03-09"},
        )

        self.assertFalse(weekend.json()["should_work"])
        self.assertTrue(week.json()["should_work"])

    def test_work_states_endpoint(self) -> None:
        self._use_service()
        client = TestClient(app)

        response = client.get(
            "/api/attendance-processing/employees/1/work-states",
            params={"from": "2026-03-06", "to": "2026-03-09"},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["work_day_count"], 2)
        self.assertEqual(len(body["work_states"]), 4)
        self.assertTrue(body["work_states"][str(day_key(date(2026, 3, 9)))])
        self.assertFalse(body["work_states"][str(day_key(date(2026, 3, 7)))])

    def test_unknown_employee_returns_not_found(self) -> None:
        self._use_service()
        client = TestClient(app)

        response = client.get(
            "/api/attendance-processing/employees/99/processed",
            params={"from": "2026-03-02", "to": "2026-03-11"},
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "EMPLOYEE_NOT_FOUND")

    def test_invalid_range_is_rejected(self) -> None:
        self._use_service()
        client = TestClient(app)

        reversed_range = client.get(
            "/api/attendance-processing/employees/1/processed",
            params={"from": "2026-03-11", "to": "2026-03-02"},
        )
        malformed = client.get(
            "/api/attendance-processing/employees/1/processed",
            params={"from": "yesterday", "to": "2026-03-02"},
        )
        missing = client.get("/api/attendance-processing/employees/1/processed", params={"from": "2026-03-02"})

        self.assertEqual(reversed_range.status_code, 422)
        self.assertEqual(reversed_range.json()["error"]["code"], "INVALID_RANGE")
        self.assertEqual(malformed.json()["error"]["code"], "INVALID_RANGE")
        self.assertEqual(missing.json()["error"]["code"], "VALIDATION_ERROR")

    def test_upstream_failure_maps_to_service_unavailable(self) -> None:
        self._use_service(fail=True)
        client = TestClient(app)

        response = client.get(
            "/api/attendance-processing/employees/1/processed",
            params={"from": "2026-03-02", "to": "2026-03-11"},
        )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"]["code"], "UPSTREAM_UNAVAILABLE")

    def test_unprocessed_and_metrics_endpoints(self) -> None:
        self._use_service(recorded=0)
        client = TestClient(app)

        unprocessed = client.get(
            "/api/attendance-processing/unprocessed",
            params={"from": "2026-03-02", "to": "2026-03-06"},
        )
        metrics = client.get(
            "/api/attendance-processing/metrics",
            params={"from": "2026-03-02", "to": "2026-03-06"},
        )

        self.assertEqual(unprocessed.status_code, 200)
        self.assertEqual([item["id"] for item in unprocessed.json()["items"]], [1])
        self.assertEqual(metrics.json()["unprocessed_count"], 1)

    def test_cache_invalidate_endpoint(self) -> None:
        service = self._use_service()
        client = TestClient(app)

        client.get(
            "/api/attendance-processing/employees/1/should-work",
            params={"from": "2026-03-02", "to": "2026-03-06"},
        )
        self.assertIn(1, service.cache)

        response = client.post("/api/attendance-processing/employees/1/cache/invalidate")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["invalidated"])
        self.assertNotIn(1, service.cache)


if __name__ == "__main__":
    unittest.main()
