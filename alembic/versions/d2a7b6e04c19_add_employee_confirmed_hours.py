"""add employee_confirmed_hours

Revision ID: d2a7b6e04c19
Revises: 8c4e2d91f5a3
Create Date: 2026-03-04 16:02:51.730145

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "d2a7b6e04c19"
down_revision: Union[str, Sequence[str], None] = "8c4e2d91f5a3"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DAY_FIELDS = (
    "sunday_hours",
    "monday_hours",
    "tuesday_hours",
    "wednesday_hours",
    "thursday_hours",
    "friday_hours",
    "saturday_hours",
)


def upgrade() -> None:
    op.create_table(
        "employee_confirmed_hours",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "employee_id",
            sa.String(36),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "business_id",
            sa.String(36),
            sa.ForeignKey("businesses.business_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        *[sa.Column(f, sa.Numeric(4, 2), nullable=False, server_default="0") for f in DAY_FIELDS],
        sa.Column("total_hours", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint(
            "employee_id",
            "business_id",
            "week_start_date",
            name="uq_confirmed_hours_employee_week",
        ),
        *[
            sa.CheckConstraint(f"{f} >= 0 AND {f} <= 24", name=f"ck_confirmed_hours_{f}_range")
            for f in DAY_FIELDS
        ],
        sa.CheckConstraint(
            "ROUND(total_hours, 2) = ROUND(" + " + ".join(DAY_FIELDS) + ", 2)",
            name="ck_confirmed_hours_total_consistent",
        ),
        sa.CheckConstraint(
            "status in ('draft','submitted','approved','rejected')",
            name="ck_confirmed_hours_status_valid",
        ),
        sa.CheckConstraint(
            "status = 'draft' OR submitted_at IS NOT NULL",
            name="ck_confirmed_hours_submitted_at_present",
        ),
        sa.CheckConstraint(
            "status <> 'approved' OR (approved_at IS NOT NULL AND approved_by IS NOT NULL)",
            name="ck_confirmed_hours_approval_fields",
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR "
            "(rejection_reason IS NOT NULL AND rejected_at IS NOT NULL AND rejected_by IS NOT NULL)",
            name="ck_confirmed_hours_rejection_fields",
        ),
    )
    op.create_index("ix_employee_confirmed_hours_employee_id", "employee_confirmed_hours", ["employee_id"])
    op.create_index("ix_employee_confirmed_hours_business_id", "employee_confirmed_hours", ["business_id"])
    op.create_index("ix_confirmed_hours_business_status", "employee_confirmed_hours", ["business_id", "status"])
    op.create_index("ix_confirmed_hours_week_status", "employee_confirmed_hours", ["week_start_date", "status"])


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_confirmed_hours_week_status")
    op.execute("DROP INDEX IF EXISTS ix_confirmed_hours_business_status")
    op.execute("DROP INDEX IF EXISTS ix_employee_confirmed_hours_business_id")
    op.execute("DROP INDEX IF EXISTS ix_employee_confirmed_hours_employee_id")
    op.execute("DROP TABLE IF EXISTS employee_confirmed_hours")
