import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from timecard.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # Identity subject from the bearer token.
    user_id = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
