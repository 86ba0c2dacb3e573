from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from sqlalchemy.orm import Session

from timecard.models.schedule import Shift, WeeklySchedule
from timecard.services.hours import WeekHours, quantize

MINUTES_PER_DAY = 1440


def shift_duration_minutes(start_min: int, end_min: int) -> int:
    if end_min > start_min:
        return end_min - start_min
    # Overnight: runs from start_min to end_min on the following day.
    return (MINUTES_PER_DAY - start_min) + end_min


def shift_duration_hours(start_min: int, end_min: int) -> Decimal:
    return quantize(Decimal(shift_duration_minutes(start_min, end_min)) / Decimal(60))


def _bucket(shifts: Iterable[Shift]) -> WeekHours:
    days = [Decimal("0")] * 7
    for shift in shifts:
        days[int(shift.day_of_week)] += shift_duration_hours(int(shift.start_min), int(shift.end_min))
    return WeekHours(days=tuple(quantize(d) for d in days))


def scheduled_hours_for_weeks(
    *,
    employee_id: str,
    business_id: str,
    week_starts: Iterable[date],
    db: Session,
) -> dict[date, WeekHours]:
    """
    Read-only: bucket posted shift durations per day for each requested week.

    Weeks without a posted schedule map to zero hours. Draft schedules are
    invisible to this reader.
    """
    weeks = sorted(set(week_starts))
    result = {w: WeekHours.zero() for w in weeks}
    if not weeks:
        return result

    rows = (
        db.query(WeeklySchedule.week_start_date, Shift)
        .join(Shift, Shift.schedule_id == WeeklySchedule.id)
        .filter(WeeklySchedule.business_id == str(business_id))
        .filter(WeeklySchedule.status == "posted")
        .filter(WeeklySchedule.week_start_date.in_(weeks))
        .filter(Shift.employee_id == str(employee_id))
        .all()
    )

    by_week: dict[date, list[Shift]] = {}
    for week_start_date, shift in rows:
        by_week.setdefault(week_start_date, []).append(shift)

    for week_start_date, shifts in by_week.items():
        result[week_start_date] = _bucket(shifts)

    return result


def scheduled_hours_for_week(
    *,
    employee_id: str,
    business_id: str,
    week_start: date,
    db: Session,
) -> WeekHours:
    return scheduled_hours_for_weeks(
        employee_id=employee_id,
        business_id=business_id,
        week_starts=[week_start],
        db=db,
    )[week_start]


def posted_weeks(*, business_id: str, week_starts: Iterable[date], db: Session) -> set[date]:
    weeks = list(set(week_starts))
    if not weeks:
        return set()
    rows = (
        db.query(WeeklySchedule.week_start_date)
        .filter(WeeklySchedule.business_id == str(business_id))
        .filter(WeeklySchedule.status == "posted")
        .filter(WeeklySchedule.week_start_date.in_(weeks))
        .all()
    )
    return {r.week_start_date for r in rows}
