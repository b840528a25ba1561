from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class EmployeeSummaryRead(BaseModel):
    id: int
    full_name: str
    start_date: date | None = None
    leaving_date: date | None = None

    model_config = ConfigDict(from_attributes=True)


class ProcessedStatusResponse(BaseModel):
    employee_id: int
    date_from: date
    date_to: date
    processed: bool


class ShouldWorkResponse(BaseModel):
    employee_id: int
    date_from: date
    date_to: date
    should_work: bool


class WorkStatesResponse(BaseModel):
    employee_id: int
    date_from: date
    date_to: date
    work_states: dict[int, bool] = Field(default_factory=dict)
    work_day_count: int = 0


class UnprocessedEmployeesResponse(BaseModel):
    date_from: date
    date_to: date
    offset: int
    limit: int | None = None
    items: list[EmployeeSummaryRead] = Field(default_factory=list)


class ProcessingMetricsResponse(BaseModel):
    date_from: date
    date_to: date
    unprocessed_count: int


class CacheInvalidateResponse(BaseModel):
    employee_id: int
    invalidated: bool
