import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from timecard.database import Base


class Business(Base):
    __tablename__ = "businesses"

    business_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    employer_id = Column(String, nullable=False, index=True)
    # IANA zone name resolved elsewhere; NULL means UTC.
    timezone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))


class BusinessEmployee(Base):
    __tablename__ = "business_employees"

    __table_args__ = (
        UniqueConstraint("business_id", "employee_id", name="uq_business_employees_member"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    business_id = Column(
        String(36),
        ForeignKey("businesses.business_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
