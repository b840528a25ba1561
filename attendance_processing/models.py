from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_processing.db import Base


WEEKDAY_COLUMNS: tuple[str, ...] = (
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
)

ACTIVITY_HOUR_COLUMNS: tuple[str, ...] = (
    "regular_hours",
    "overtime_hours",
    "sick_hours",
    "holiday_hours",
    "unpaid_hours",
    "other_hours",
    "regular_hours_override",
    "overtime_hours_override",
    "sick_hours_override",
    "holiday_hours_override",
    "unpaid_hours_override",
)


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    leaving_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    workdays: Mapped[list[Workdays]] = relationship(back_populates="employee")
    attendances: Mapped[list[Attendance]] = relationship(back_populates="employee")


class Workdays(Base):
    """One schedule change: the weekly pattern effective from ``created_at``."""

    __tablename__ = "workdays"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sunday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    monday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    tuesday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    wednesday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    thursday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    friday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    saturday: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )

    employee: Mapped[Employee] = relationship(back_populates="workdays")


class Attendance(Base):
    __tablename__ = "attendances"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    regular_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    overtime_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    sick_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    holiday_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    unpaid_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    other_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0, server_default=text("0"))
    regular_hours_override: Mapped[float | None] = mapped_column(Float, nullable=True)
    overtime_hours_override: Mapped[float | None] = mapped_column(Float, nullable=True)
    sick_hours_override: Mapped[float | None] = mapped_column(Float, nullable=True)
    holiday_hours_override: Mapped[float | None] = mapped_column(Float, nullable=True)
    unpaid_hours_override: Mapped[float | None] = mapped_column(Float, nullable=True)

    employee: Mapped[Employee] = relationship(back_populates="attendances")
