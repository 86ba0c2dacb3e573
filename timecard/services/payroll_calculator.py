from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from timecard.core.errors import InvalidInputError
from timecard.models.confirmed_hours import ConfirmedHours
from timecard.services.discrepancy_detector import has_discrepancy
from timecard.services.hours import WeekHours, quantize, to_decimal
from timecard.services.schedule_aggregator import posted_weeks, scheduled_hours_for_weeks
from timecard.services.week_window import week_start, week_starts_between

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PayBreakdown:
    total_hours: Decimal
    hourly_rate: Decimal
    gross_pay: Decimal
    advances: Decimal
    bonuses: Decimal
    deductions: Decimal
    net_pay: Decimal


def _non_negative(value: Any, field: str) -> Decimal:
    if value is None:
        return ZERO
    amount = to_decimal(value, field=field)
    if amount < 0:
        raise InvalidInputError(f"{field} cannot be negative", field=field, actual=str(amount))
    return quantize(amount)


def calculate_pay(
    hours: Any,
    rate: Any,
    advances: Any = None,
    bonuses: Any = None,
    deductions: Any = None,
) -> PayBreakdown:
    """
    gross = hours * rate, net = gross + bonuses - advances - deductions.

    Both are rounded half-up to cents. Net pay is not clamped at zero.
    """
    if rate is None:
        raise InvalidInputError("An hourly rate is required", field="hourly_rate")
    hourly_rate = to_decimal(rate, field="hourly_rate")
    if hourly_rate <= 0:
        raise InvalidInputError("hourly_rate must be greater than zero", field="hourly_rate", actual=str(hourly_rate))
    hourly_rate = quantize(hourly_rate)

    total_hours = _non_negative(hours, "total_hours")
    advances = _non_negative(advances, "advances")
    bonuses = _non_negative(bonuses, "bonuses")
    deductions = _non_negative(deductions, "deductions")

    gross = quantize(total_hours * hourly_rate)
    net = quantize(gross + bonuses - advances - deductions)

    return PayBreakdown(
        total_hours=total_hours,
        hourly_rate=hourly_rate,
        gross_pay=gross,
        advances=advances,
        bonuses=bonuses,
        deductions=deductions,
        net_pay=net,
    )


@dataclass(frozen=True)
class WeekResolution:
    week_start: date
    source: str
    hours: Decimal
    confirmed_hours_id: Optional[str]
    scheduled_hours: Decimal


@dataclass(frozen=True)
class HoursResolution:
    total_hours: Decimal
    source: str
    confirmed_hours: Decimal
    scheduled_hours: Decimal
    has_discrepancy: bool
    weeks: tuple[WeekResolution, ...]

    @property
    def weekly_hours(self) -> dict[date, Decimal]:
        return {w.week_start: w.hours for w in self.weeks}


def _source(used_confirmed: bool, used_scheduled: bool) -> str:
    if used_confirmed and used_scheduled:
        return "mixed"
    if used_confirmed:
        return "confirmed"
    return "scheduled"


def resolve_hours_for_period(
    *,
    business_id: str,
    employee_id: str,
    period_start: date,
    period_end: date,
    db: Session,
) -> HoursResolution:
    """
    Per calendar day: the approved confirmation's value for that day if the
    week has one, otherwise the posted schedule's value (zero when nothing
    is posted).

    The discrepancy check compares confirmed days against the schedule for
    the same days, and only for weeks that had a posted schedule.
    """
    if period_end < period_start:
        raise InvalidInputError(
            "period_end must be on or after period_start",
            field="period_end",
            actual=period_end.isoformat(),
        )

    weeks = week_starts_between(period_start, period_end)

    approved_rows = (
        db.query(ConfirmedHours)
        .filter(ConfirmedHours.business_id == str(business_id))
        .filter(ConfirmedHours.employee_id == str(employee_id))
        .filter(ConfirmedHours.status == "approved")
        .filter(ConfirmedHours.week_start_date.in_(weeks))
        .all()
    )
    approved = {r.week_start_date: r for r in approved_rows}
    approved_hours = {w: WeekHours.from_record(r) for w, r in approved.items()}

    scheduled = scheduled_hours_for_weeks(
        employee_id=employee_id,
        business_id=business_id,
        week_starts=weeks,
        db=db,
    )
    posted = posted_weeks(business_id=business_id, week_starts=weeks, db=db)

    per_week: dict[date, dict[str, Any]] = {
        w: {"hours": Decimal("0"), "scheduled": Decimal("0"), "confirmed": False, "scheduled_used": False}
        for w in weeks
    }
    confirmed_total = Decimal("0")
    scheduled_total = Decimal("0")
    compared_confirmed = Decimal("0")
    compared_scheduled = Decimal("0")
    compared = False

    day = period_start
    while day <= period_end:
        w = week_start(day)
        index = (day - w).days
        bucket = per_week[w]
        scheduled_value = scheduled[w].day(index)
        bucket["scheduled"] += scheduled_value
        scheduled_total += scheduled_value

        if w in approved_hours:
            value = approved_hours[w].day(index)
            confirmed_total += value
            bucket["confirmed"] = True
            if w in posted:
                compared = True
                compared_confirmed += value
                compared_scheduled += scheduled_value
        else:
            value = scheduled_value
            bucket["scheduled_used"] = True

        bucket["hours"] += value
        day += timedelta(days=1)

    week_rows = []
    used_confirmed = used_scheduled = False
    for w in weeks:
        bucket = per_week[w]
        used_confirmed = used_confirmed or bucket["confirmed"]
        used_scheduled = used_scheduled or bucket["scheduled_used"]
        week_rows.append(
            WeekResolution(
                week_start=w,
                source=_source(bucket["confirmed"], bucket["scheduled_used"]),
                hours=quantize(bucket["hours"]),
                confirmed_hours_id=approved[w].id if w in approved else None,
                scheduled_hours=quantize(bucket["scheduled"]),
            )
        )

    total = quantize(sum((row.hours for row in week_rows), Decimal("0")))

    return HoursResolution(
        total_hours=total,
        source=_source(used_confirmed, used_scheduled),
        confirmed_hours=quantize(confirmed_total),
        scheduled_hours=quantize(scheduled_total),
        has_discrepancy=compared and has_discrepancy(compared_confirmed, compared_scheduled),
        weeks=tuple(week_rows),
    )
