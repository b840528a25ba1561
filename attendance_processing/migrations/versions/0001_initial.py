"""Initial attendance processing schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

WEEKDAY_COLUMNS = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
HOUR_COLUMNS = (
    "regular_hours",
    "overtime_hours",
    "sick_hours",
    "holiday_hours",
    "unpaid_hours",
    "other_hours",
)
HOUR_OVERRIDE_COLUMNS = (
    "regular_hours_override",
    "overtime_hours_override",
    "sick_hours_override",
    "holiday_hours_override",
    "unpaid_hours_override",
)


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("status_id", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("leaving_date", sa.Date(), nullable=True),
    )

    op.create_table(
        "workdays",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        *(
            sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.text("false"))
            for name in WEEKDAY_COLUMNS
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_workdays_employee_id", "workdays", ["employee_id"], unique=False)
    op.create_index("ix_workdays_created_at", "workdays", ["created_at"], unique=False)

    op.create_table(
        "attendances",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *(
            sa.Column(name, sa.Float(), nullable=False, server_default=sa.text("0"))
            for name in HOUR_COLUMNS
        ),
        *(sa.Column(name, sa.Float(), nullable=True) for name in HOUR_OVERRIDE_COLUMNS),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_attendances_employee_id", "attendances", ["employee_id"], unique=False)
    op.create_index("ix_attendances_day_date", "attendances", ["day_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_attendances_day_date", table_name="attendances")
    op.drop_index("ix_attendances_employee_id", table_name="attendances")
    op.drop_table("attendances")
    op.drop_index("ix_workdays_created_at", table_name="workdays")
    op.drop_index("ix_workdays_employee_id", table_name="workdays")
    op.drop_table("workdays")
    op.drop_table("employees")
