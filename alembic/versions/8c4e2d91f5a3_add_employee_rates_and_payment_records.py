"""add employee_rates and payment_records

Revision ID: 8c4e2d91f5a3
Revises: 3b1f0c2a7d10
Create Date: 2026-03-02 10:31:07.402911

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8c4e2d91f5a3"
down_revision: Union[str, Sequence[str], None] = "3b1f0c2a7d10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "employee_rates",
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
        sa.Column("hourly_rate", sa.Numeric(8, 2), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("business_id", "employee_id", "effective_from", name="uq_employee_rates_effective"),
        sa.CheckConstraint("hourly_rate > 0", name="ck_employee_rates_hourly_rate_positive"),
    )
    op.create_index(
        "ix_employee_rates_lookup",
        "employee_rates",
        ["business_id", "employee_id", "effective_from"],
        unique=False,
    )

    op.create_table(
        "payment_records",
        sa.Column("id", sa.String(36), primary_key=True, nullable=False),
        sa.Column(
            "business_id",
            sa.String(36),
            sa.ForeignKey("businesses.business_id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "employee_id",
            sa.String(36),
            sa.ForeignKey("employees.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("total_hours", sa.Numeric(6, 2), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(8, 2), nullable=False),
        sa.Column("gross_pay", sa.Numeric(10, 2), nullable=False),
        sa.Column("advances", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("bonuses", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("deductions", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("net_pay", sa.Numeric(10, 2), nullable=False),
        sa.Column("hours_source", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="calculated"),
        sa.Column("payment_method", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("period_end >= period_start", name="ck_payment_records_period_valid"),
        sa.CheckConstraint("total_hours >= 0", name="ck_payment_records_total_hours_nonnegative"),
        sa.CheckConstraint("hourly_rate > 0", name="ck_payment_records_hourly_rate_positive"),
        sa.CheckConstraint("gross_pay >= 0", name="ck_payment_records_gross_pay_nonnegative"),
        sa.CheckConstraint(
            "advances >= 0 AND bonuses >= 0 AND deductions >= 0",
            name="ck_payment_records_adjustments_nonnegative",
        ),
        sa.CheckConstraint(
            "ROUND(net_pay, 2) = ROUND(gross_pay + bonuses - advances - deductions, 2)",
            name="ck_payment_records_net_pay_consistent",
        ),
        sa.CheckConstraint("status in ('calculated','paid')", name="ck_payment_records_status_valid"),
        sa.CheckConstraint(
            "payment_method IS NULL OR payment_method in ('cash','check','bank_transfer','other')",
            name="ck_payment_records_payment_method_valid",
        ),
        sa.CheckConstraint(
            "(status = 'paid' AND paid_at IS NOT NULL AND payment_method IS NOT NULL) "
            "OR (status = 'calculated' AND paid_at IS NULL)",
            name="ck_payment_records_paid_fields_consistent",
        ),
    )
    op.create_index(
        "uq_payment_records_open_period",
        "payment_records",
        ["business_id", "employee_id", "period_start", "period_end"],
        unique=True,
        postgresql_where=sa.text("status = 'calculated'"),
    )
    op.create_index(
        "uq_payment_records_paid_period",
        "payment_records",
        ["business_id", "employee_id", "period_start", "period_end"],
        unique=True,
        postgresql_where=sa.text("status = 'paid'"),
    )
    op.create_index(
        "ix_payment_records_business_period",
        "payment_records",
        ["business_id", "period_start", "period_end"],
        unique=False,
    )
    op.create_index("ix_payment_records_employee_id", "payment_records", ["employee_id"], unique=False)


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_payment_records_employee_id")
    op.execute("DROP INDEX IF EXISTS ix_payment_records_business_period")
    op.execute("DROP INDEX IF EXISTS uq_payment_records_paid_period")
    op.execute("DROP INDEX IF EXISTS uq_payment_records_open_period")
    op.execute("DROP TABLE IF EXISTS payment_records")
    op.execute("DROP INDEX IF EXISTS ix_employee_rates_lookup")
    op.execute("DROP TABLE IF EXISTS employee_rates")
