import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint

from timecard.database import Base

DAY_FIELDS = (
    "sunday_hours",
    "monday_hours",
    "tuesday_hours",
    "wednesday_hours",
    "thursday_hours",
    "friday_hours",
    "saturday_hours",
)

CONFIRMED_HOURS_STATUSES = ("draft", "submitted", "approved", "rejected")


def _day_range_check(field: str) -> CheckConstraint:
    return CheckConstraint(
        f"{field} >= 0 AND {field} <= 24",
        name=f"ck_confirmed_hours_{field}_range",
    )


class ConfirmedHours(Base):
    __tablename__ = "employee_confirmed_hours"

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "business_id",
            "week_start_date",
            name="uq_confirmed_hours_employee_week",
        ),
        *[_day_range_check(f) for f in DAY_FIELDS],
        CheckConstraint(
            "ROUND(total_hours, 2) = ROUND("
            + " + ".join(DAY_FIELDS)
            + ", 2)",
            name="ck_confirmed_hours_total_consistent",
        ),
        CheckConstraint(
            "status in ('draft','submitted','approved','rejected')",
            name="ck_confirmed_hours_status_valid",
        ),
        CheckConstraint(
            "status = 'draft' OR submitted_at IS NOT NULL",
            name="ck_confirmed_hours_submitted_at_present",
        ),
        CheckConstraint(
            "status <> 'approved' OR (approved_at IS NOT NULL AND approved_by IS NOT NULL)",
            name="ck_confirmed_hours_approval_fields",
        ),
        CheckConstraint(
            "status <> 'rejected' OR "
            "(rejection_reason IS NOT NULL AND rejected_at IS NOT NULL AND rejected_by IS NOT NULL)",
            name="ck_confirmed_hours_rejection_fields",
        ),
        Index("ix_confirmed_hours_business_status", "business_id", "status"),
        Index("ix_confirmed_hours_week_status", "week_start_date", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    business_id = Column(
        String(36),
        ForeignKey("businesses.business_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_start_date = Column(Date, nullable=False)

    sunday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    monday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    tuesday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    wednesday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    thursday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    friday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    saturday_hours = Column(Numeric(4, 2), nullable=False, default=0)
    total_hours = Column(Numeric(5, 2), nullable=False, default=0)

    status = Column(String, nullable=False, default="draft")
    notes = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String, nullable=True)
    # Kept after resubmission as the trail of the most recent rejection.
    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
