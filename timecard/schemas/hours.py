from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DayHoursInput(BaseModel):
    sunday_hours: Optional[Decimal] = None
    monday_hours: Optional[Decimal] = None
    tuesday_hours: Optional[Decimal] = None
    wednesday_hours: Optional[Decimal] = None
    thursday_hours: Optional[Decimal] = None
    friday_hours: Optional[Decimal] = None
    saturday_hours: Optional[Decimal] = None


class ConfirmedHoursCreate(DayHoursInput):
    business_id: str
    week_start: date
    notes: Optional[str] = None


class ConfirmedHoursUpdate(DayHoursInput):
    notes: Optional[str] = None


class SubmitRequest(BaseModel):
    notes: Optional[str] = None


class RejectRequest(BaseModel):
    # Optional here so a missing reason gets the domain error body, not a schema error.
    reason: Optional[str] = None


class DayHours(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sunday_hours: Decimal
    monday_hours: Decimal
    tuesday_hours: Decimal
    wednesday_hours: Decimal
    thursday_hours: Decimal
    friday_hours: Decimal
    saturday_hours: Decimal
    total_hours: Decimal


class ConfirmedHoursResponse(DayHours):
    id: str
    employee_id: str
    business_id: str
    week_start_date: date
    status: str
    notes: Optional[str]
    submitted_at: Optional[datetime]
    approved_at: Optional[datetime]
    approved_by: Optional[str]
    rejection_reason: Optional[str]
    rejected_at: Optional[datetime]
    rejected_by: Optional[str]
    created_at: datetime
    updated_at: datetime


class EmployerHoursRow(ConfirmedHoursResponse):
    employee_name: str


class WeekInfo(BaseModel):
    week_start: date
    current_week_start: date
    is_current_week: bool
    is_past: bool
    is_editable: bool
    can_go_next: bool


class BusinessInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    business_id: str
    name: str
    timezone: Optional[str]


class WeeklyHoursResponse(BaseModel):
    business: BusinessInfo
    employee_id: str
    week: WeekInfo
    confirmed: Optional[ConfirmedHoursResponse]
    scheduled: DayHours
    has_schedule: bool
    has_discrepancy: bool
