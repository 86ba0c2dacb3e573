import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Numeric, String, UniqueConstraint

from timecard.database import Base


class EmployeeRate(Base):
    """Append-only rate history; the current rate is the latest effective_from <= today."""

    __tablename__ = "employee_rates"

    __table_args__ = (
        UniqueConstraint(
            "business_id",
            "employee_id",
            "effective_from",
            name="uq_employee_rates_effective",
        ),
        CheckConstraint("hourly_rate > 0", name="ck_employee_rates_hourly_rate_positive"),
        Index("ix_employee_rates_lookup", "business_id", "employee_id", "effective_from"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(
        String(36),
        ForeignKey("businesses.business_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    hourly_rate = Column(Numeric(8, 2), nullable=False)
    effective_from = Column(Date, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
