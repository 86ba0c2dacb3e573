"""add businesses, employees, schedules

Revision ID: 3b1f0c2a7d10
Revises:
Create Date: 2026-03-02 10:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b1f0c2a7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "businesses",
        sa.Column("business_id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("employer_id", sa.String(), nullable=False),
        sa.Column("timezone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_businesses_employer_id", "businesses", ["employer_id"], unique=False)

    op.create_table(
        "employees",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_employees_user_id", "employees", ["user_id"], unique=True)

    op.create_table(
        "business_employees",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "business_id",
            sa.String(36),
            sa.ForeignKey("businesses.business_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "employee_id",
            sa.String(36),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("business_id", "employee_id", name="uq_business_employees_member"),
    )
    op.create_index("ix_business_employees_business_id", "business_employees", ["business_id"], unique=False)
    op.create_index("ix_business_employees_employee_id", "business_employees", ["employee_id"], unique=False)

    op.create_table(
        "weekly_schedules",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "business_id",
            sa.String(36),
            sa.ForeignKey("businesses.business_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("posted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("business_id", "week_start_date", name="uq_weekly_schedules_business_week"),
        sa.CheckConstraint("status in ('draft','posted')", name="ck_weekly_schedules_status_valid"),
        sa.CheckConstraint(
            "(status = 'posted' AND posted_at IS NOT NULL) OR (status = 'draft' AND posted_at IS NULL)",
            name="ck_weekly_schedules_posted_at_consistent",
        ),
    )
    op.create_index("ix_weekly_schedules_business_id", "weekly_schedules", ["business_id"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "schedule_id",
            sa.String(36),
            sa.ForeignKey("weekly_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "employee_id",
            sa.String(36),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_min", sa.Integer(), nullable=False),
        sa.Column("end_min", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_shifts_day_of_week_range"),
        sa.CheckConstraint("start_min >= 0 AND start_min < 1440", name="ck_shifts_start_min_range"),
        sa.CheckConstraint("end_min >= 0 AND end_min < 1440", name="ck_shifts_end_min_range"),
        sa.CheckConstraint("start_min <> end_min", name="ck_shifts_nonzero_duration"),
    )
    op.create_index("ix_shifts_schedule_id", "shifts", ["schedule_id"], unique=False)
    op.create_index("ix_shifts_employee_id", "shifts", ["employee_id"], unique=False)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS shifts")
    op.execute("DROP TABLE IF EXISTS weekly_schedules")
    op.execute("DROP TABLE IF EXISTS business_employees")
    op.execute("DROP TABLE IF EXISTS employees")
    op.execute("DROP TABLE IF EXISTS businesses")
