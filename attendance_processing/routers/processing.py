from datetime import date
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from attendance_processing.db import get_db
from attendance_processing.errors import ApiError, InvalidRangeError
from attendance_processing.models import Employee
from attendance_processing.schemas import (
    CacheInvalidateResponse,
    EmployeeSummaryRead,
    ProcessedStatusResponse,
    ProcessingMetricsResponse,
    ShouldWorkResponse,
    UnprocessedEmployeesResponse,
    WorkStatesResponse,
)
from attendance_processing.services.attendance_processing import AttendanceProcessingService
from attendance_processing.services.stores import (
    SqlAttendanceRecordStore,
    SqlEmployeeStore,
    SqlScheduleHistoryStore,
)
from attendance_processing.services.weekday_patterns import to_utc_date

router = APIRouter(prefix="/api/attendance-processing", tags=["attendance-processing"])


@lru_cache
def get_processing_service() -> AttendanceProcessingService:
    return AttendanceProcessingService(
        schedule_store=SqlScheduleHistoryStore(),
        attendance_store=SqlAttendanceRecordStore(),
        employee_store=SqlEmployeeStore(),
    )


def get_employee(employee_id: int, db: Session = Depends(get_db)) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise ApiError(status_code=404, code="EMPLOYEE_NOT_FOUND", message="Employee not found.")
    return employee


def parse_date_range(
    date_from: str = Query(alias="from"),
    date_to: str = Query(alias="to"),
) -> tuple[date, date]:
    parsed_from = to_utc_date(date_from)
    parsed_to = to_utc_date(date_to)
    if parsed_from is None or parsed_to is None:
        raise InvalidRangeError("from and to must be ISO-8601 dates.")
    if parsed_from > parsed_to:
        raise InvalidRangeError("from must be less than or equal to to.")
    return parsed_from, parsed_to


def _set_request_employee(request: Request, employee: Employee) -> None:
    request.state.employee_id = employee.id


@router.get("/employees/{employee_id}/processed", response_model=ProcessedStatusResponse)
async def get_employee_processed(
    request: Request,
    employee: Employee = Depends(get_employee),
    date_range: tuple[date, date] = Depends(parse_date_range),
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> ProcessedStatusResponse:
    _set_request_employee(request, employee)
    date_from, date_to = date_range
    processed = await service.is_user_processed(employee, date_from, date_to)
    return ProcessedStatusResponse(
        employee_id=employee.id,
        date_from=date_from,
        date_to=date_to,
        processed=processed,
    )


@router.get("/employees/{employee_id}/should-work", response_model=ShouldWorkResponse)
async def get_employee_should_work(
    request: Request,
    employee: Employee = Depends(get_employee),
    date_range: tuple[date, date] = Depends(parse_date_range),
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> ShouldWorkResponse:
    _set_request_employee(request, employee)
    date_from, date_to = date_range
    should_work = await service.should_employee_work_between(employee, date_from, date_to)
    return ShouldWorkResponse(
        employee_id=employee.id,
        date_from=date_from,
        date_to=date_to,
        should_work=should_work,
    )


@router.get("/employees/{employee_id}/work-states", response_model=WorkStatesResponse)
async def get_employee_work_states(
    request: Request,
    employee: Employee = Depends(get_employee),
    date_range: tuple[date, date] = Depends(parse_date_range),
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> WorkStatesResponse:
    _set_request_employee(request, employee)
    date_from, date_to = date_range
    work_states = await service.generate_employee_work_states(employee, date_from, date_to)
    return WorkStatesResponse(
        employee_id=employee.id,
        date_from=date_from,
        date_to=date_to,
        work_states=work_states,
        work_day_count=sum(1 for is_work_day in work_states.values() if is_work_day),
    )


@router.get("/unprocessed", response_model=UnprocessedEmployeesResponse)
async def get_unprocessed_employees(
    date_range: tuple[date, date] = Depends(parse_date_range),
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> UnprocessedEmployeesResponse:
    date_from, date_to = date_range
    employees = await service.list_unprocessed_employees(date_from, date_to, limit=limit, offset=offset)
    return UnprocessedEmployeesResponse(
        date_from=date_from,
        date_to=date_to,
        offset=offset,
        limit=limit,
        items=[EmployeeSummaryRead.model_validate(item) for item in employees],
    )


@router.get("/metrics", response_model=ProcessingMetricsResponse)
async def get_processing_metrics(
    date_range: tuple[date, date] = Depends(parse_date_range),
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> ProcessingMetricsResponse:
    date_from, date_to = date_range
    unprocessed_count = await service.count_unprocessed_employees(date_from, date_to)
    return ProcessingMetricsResponse(
        date_from=date_from,
        date_to=date_to,
        unprocessed_count=unprocessed_count,
    )


@router.post("/employees/{employee_id}/cache/invalidate", response_model=CacheInvalidateResponse)
def invalidate_employee_cache(
    employee_id: int,
    service: AttendanceProcessingService = Depends(get_processing_service),
) -> CacheInvalidateResponse:
    invalidated = service.invalidate_employee(employee_id)
    return CacheInvalidateResponse(employee_id=employee_id, invalidated=invalidated)
