from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ScheduleCreate(BaseModel):
    business_id: str
    week_start: date


class ShiftCreate(BaseModel):
    employee_id: str
    day_of_week: int = Field(description="0 = Sunday .. 6 = Saturday")
    start: Union[int, str] = Field(description='Minutes since midnight, "HH:MM" or "H:MM AM/PM".')
    end: Union[int, str] = Field(description="Earlier than start means the shift runs past midnight.")


class ShiftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    schedule_id: str
    employee_id: str
    day_of_week: int
    start_min: int
    end_min: int
    created_at: datetime


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    week_start_date: date
    status: str
    posted_at: Optional[datetime]
    created_at: datetime
    shifts: list[ShiftResponse] = []
