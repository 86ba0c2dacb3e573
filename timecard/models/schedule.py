import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from timecard.database import Base


class WeeklySchedule(Base):
    __tablename__ = "weekly_schedules"

    __table_args__ = (
        UniqueConstraint("business_id", "week_start_date", name="uq_weekly_schedules_business_week"),
        CheckConstraint("status in ('draft','posted')", name="ck_weekly_schedules_status_valid"),
        CheckConstraint(
            "(status = 'posted' AND posted_at IS NOT NULL) OR (status = 'draft' AND posted_at IS NULL)",
            name="ck_weekly_schedules_posted_at_consistent",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(
        String(36),
        ForeignKey("businesses.business_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_start_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="draft")
    posted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    shifts = relationship("Shift", back_populates="schedule", order_by="Shift.day_of_week")


class Shift(Base):
    __tablename__ = "shifts"

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_shifts_day_of_week_range"),
        CheckConstraint("start_min >= 0 AND start_min < 1440", name="ck_shifts_start_min_range"),
        CheckConstraint("end_min >= 0 AND end_min < 1440", name="ck_shifts_end_min_range"),
        CheckConstraint("start_min <> end_min", name="ck_shifts_nonzero_duration"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    schedule_id = Column(
        String(36),
        ForeignKey("weekly_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    # Minutes since midnight; end_min < start_min runs past midnight.
    start_min = Column(Integer, nullable=False)
    end_min = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    schedule = relationship("WeeklySchedule", back_populates="shifts")
