import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text, text

from timecard.database import Base

PAYMENT_METHODS = ("cash", "check", "bank_transfer", "other")
HOURS_SOURCES = ("confirmed", "scheduled", "mixed", "manual")


class PaymentRecord(Base):
    __tablename__ = "payment_records"

    __table_args__ = (
        CheckConstraint("period_end >= period_start", name="ck_payment_records_period_valid"),
        CheckConstraint("total_hours >= 0", name="ck_payment_records_total_hours_nonnegative"),
        CheckConstraint("hourly_rate > 0", name="ck_payment_records_hourly_rate_positive"),
        CheckConstraint("gross_pay >= 0", name="ck_payment_records_gross_pay_nonnegative"),
        CheckConstraint(
            "advances >= 0 AND bonuses >= 0 AND deductions >= 0",
            name="ck_payment_records_adjustments_nonnegative",
        ),
        CheckConstraint(
            "ROUND(net_pay, 2) = ROUND(gross_pay + bonuses - advances - deductions, 2)",
            name="ck_payment_records_net_pay_consistent",
        ),
        CheckConstraint("status in ('calculated','paid')", name="ck_payment_records_status_valid"),
        CheckConstraint(
            "payment_method IS NULL OR payment_method in ('cash','check','bank_transfer','other')",
            name="ck_payment_records_payment_method_valid",
        ),
        CheckConstraint(
            "(status = 'paid' AND paid_at IS NOT NULL AND payment_method IS NOT NULL) "
            "OR (status = 'calculated' AND paid_at IS NULL)",
            name="ck_payment_records_paid_fields_consistent",
        ),
        # One open (calculated) record per employee/period; saves update it in place.
        Index(
            "uq_payment_records_open_period",
            "business_id",
            "employee_id",
            "period_start",
            "period_end",
            unique=True,
            postgresql_where=text("status = 'calculated'"),
            sqlite_where=text("status = 'calculated'"),
        ),
        # No double pay for the identical period.
        Index(
            "uq_payment_records_paid_period",
            "business_id",
            "employee_id",
            "period_start",
            "period_end",
            unique=True,
            postgresql_where=text("status = 'paid'"),
            sqlite_where=text("status = 'paid'"),
        ),
        Index("ix_payment_records_business_period", "business_id", "period_start", "period_end"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(
        String(36),
        ForeignKey("businesses.business_id", ondelete="RESTRICT"),
        nullable=False,
    )
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    total_hours = Column(Numeric(6, 2), nullable=False)
    hourly_rate = Column(Numeric(8, 2), nullable=False)
    gross_pay = Column(Numeric(10, 2), nullable=False)
    advances = Column(Numeric(10, 2), nullable=False, default=0)
    bonuses = Column(Numeric(10, 2), nullable=False, default=0)
    deductions = Column(Numeric(10, 2), nullable=False, default=0)
    net_pay = Column(Numeric(10, 2), nullable=False)
    hours_source = Column(String, nullable=False)

    status = Column(String, nullable=False, default="calculated")
    payment_method = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
