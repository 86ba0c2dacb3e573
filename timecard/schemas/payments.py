from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreate(BaseModel):
    business_id: str
    employee_id: str
    period_start: date
    period_end: date
    total_hours: Optional[Decimal] = Field(
        default=None,
        description="Overrides resolved hours; the record's hours_source becomes 'manual'.",
    )
    hourly_rate: Optional[Decimal] = Field(
        default=None,
        description="If omitted, the employee's current rate is used.",
    )
    advances: Optional[Decimal] = None
    bonuses: Optional[Decimal] = None
    deductions: Optional[Decimal] = None
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    total_hours: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    advances: Optional[Decimal] = None
    bonuses: Optional[Decimal] = None
    deductions: Optional[Decimal] = None
    notes: Optional[str] = None


class MarkPaidRequest(BaseModel):
    payment_method: Optional[str] = None
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    employee_id: str
    period_start: date
    period_end: date
    total_hours: Decimal
    hourly_rate: Decimal
    gross_pay: Decimal
    advances: Decimal
    bonuses: Decimal
    deductions: Decimal
    net_pay: Decimal
    hours_source: str
    status: str
    payment_method: Optional[str]
    notes: Optional[str]
    paid_at: Optional[datetime]
    created_by: Optional[str]
    updated_by: Optional[str]
    created_at: datetime
    updated_at: datetime


class PaymentRow(PaymentResponse):
    employee_name: str


class WarningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    level: str
    message: str
    details: dict[str, Any]


class WeekResolutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    week_start: date
    source: str
    hours: Decimal
    confirmed_hours_id: Optional[str]
    scheduled_hours: Decimal


class HoursResolutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_hours: Decimal
    source: str
    confirmed_hours: Decimal
    scheduled_hours: Decimal
    has_discrepancy: bool
    weeks: list[WeekResolutionResponse]


class PaymentResultResponse(BaseModel):
    payment: PaymentResponse
    hours: HoursResolutionResponse
    warnings: list[WarningResponse]
    created: bool


class RateCreate(BaseModel):
    business_id: str
    employee_id: str
    hourly_rate: Decimal
    effective_from: Optional[date] = None


class RateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    employee_id: str
    hourly_rate: Decimal
    effective_from: date
    created_by: Optional[str]
    created_at: datetime


class CurrentRateRow(BaseModel):
    employee_id: str
    full_name: str
    hourly_rate: Optional[Decimal]
    effective_from: Optional[date]


class ReportTotals(BaseModel):
    total_hours: Decimal
    gross_pay: Decimal
    advances: Decimal
    bonuses: Decimal
    deductions: Decimal
    net_pay: Decimal


class ReportEmployeeRow(ReportTotals):
    employee_id: str
    full_name: str
    payment_count: int


class ReportTimelineRow(BaseModel):
    paid_on: date
    payment_count: int
    net_pay: Decimal


class PaymentReportResponse(BaseModel):
    business_id: str
    start_date: date
    end_date: date
    payment_count: int
    totals: ReportTotals
    employees: list[ReportEmployeeRow]
    timeline: list[ReportTimelineRow]


class HoursBreakdownRow(BaseModel):
    employee_id: str
    full_name: str
    hours: HoursResolutionResponse
    hourly_rate: Optional[Decimal]
    estimated_gross_pay: Optional[Decimal]
    overlapping_payment_ids: list[str]
    existing_payment: Optional[PaymentResponse]
