from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from timecard.core.errors import ConflictError, InvalidInputError, NotFoundError
from timecard.models.schedule import Shift, WeeklySchedule
from timecard.services import directory
from timecard.services.schedule_aggregator import MINUTES_PER_DAY, shift_duration_minutes
from timecard.services.week_window import WeekWindow

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def parse_clock(value: Any, *, field: str) -> int:
    """
    Minutes since midnight from an int, "HH:MM" (24h) or "H:MM AM/PM".
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a time of day", field=field, actual=value)
    if isinstance(value, int):
        minutes = value
    else:
        match = _CLOCK_RE.match(str(value))
        if match is None:
            raise InvalidInputError(f"{field} must be a time of day", field=field, actual=str(value))
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
        if minute > 59:
            raise InvalidInputError(f"{field} has invalid minutes", field=field, actual=str(value))
        if meridiem is not None:
            if not 1 <= hour <= 12:
                raise InvalidInputError(f"{field} has invalid hour", field=field, actual=str(value))
            hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
        elif hour > 23:
            raise InvalidInputError(f"{field} has invalid hour", field=field, actual=str(value))
        minutes = hour * 60 + minute

    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInputError(f"{field} must be within the day", field=field, actual=minutes)
    return minutes


def _interval(start_min: int, end_min: int) -> tuple[int, int]:
    return start_min, start_min + shift_duration_minutes(start_min, end_min)


def _get_schedule(db: Session, schedule_id: str) -> WeeklySchedule:
    schedule = db.get(WeeklySchedule, str(schedule_id))
    if schedule is None:
        raise NotFoundError("Schedule not found")
    return schedule


def create_schedule(
    *,
    user_id: str,
    business_id: str,
    week_start: date,
    db: Session,
    now: Optional[datetime] = None,
) -> WeeklySchedule:
    business = directory.get_owned_business(db, business_id, user_id)
    WeekWindow(business.timezone, now=now).ensure_editable(week_start)

    schedule = WeeklySchedule(
        business_id=business.business_id,
        week_start_date=week_start,
        status="draft",
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(schedule)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(
            "A schedule already exists for this week",
            field="week_start",
            actual=week_start.isoformat(),
        ) from exc

    logger.info(
        "schedule.created",
        extra={"schedule_id": schedule.id, "business_id": business.business_id, "week_start": week_start.isoformat()},
    )
    return schedule


def add_shift(
    *,
    user_id: str,
    schedule_id: str,
    employee_id: str,
    day_of_week: int,
    start: Any,
    end: Any,
    db: Session,
    now: Optional[datetime] = None,
) -> Shift:
    schedule = _get_schedule(db, schedule_id)
    business = directory.get_owned_business(db, schedule.business_id, user_id)
    employee = directory.get_business_employee(db, business.business_id, employee_id)

    if not 0 <= int(day_of_week) <= 6:
        raise InvalidInputError("day_of_week must be 0 (Sunday) to 6 (Saturday)", field="day_of_week", actual=day_of_week)
    start_min = parse_clock(start, field="start")
    end_min = parse_clock(end, field="end")
    if start_min == end_min:
        raise InvalidInputError("A shift cannot start and end at the same time", field="end")

    window = WeekWindow(business.timezone, now=now)
    window.ensure_editable(schedule.week_start_date)
    shift_date = schedule.week_start_date + timedelta(days=int(day_of_week))
    if shift_date < window.today:
        raise InvalidInputError(
            "Cannot add shifts to a day that has already passed",
            field="day_of_week",
            actual=shift_date.isoformat(),
        )

    new_start, new_end = _interval(start_min, end_min)
    same_day = (
        db.query(Shift)
        .filter(
            Shift.schedule_id == schedule.id,
            Shift.employee_id == employee.id,
            Shift.day_of_week == int(day_of_week),
        )
        .all()
    )
    for other in same_day:
        other_start, other_end = _interval(other.start_min, other.end_min)
        if new_start < other_end and other_start < new_end:
            raise ConflictError(
                "Shift overlaps an existing shift for this employee",
                field="start",
                actual={"shift_id": other.id},
            )

    shift = Shift(
        schedule_id=schedule.id,
        employee_id=employee.id,
        day_of_week=int(day_of_week),
        start_min=start_min,
        end_min=end_min,
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(shift)
    db.flush()

    logger.info(
        "schedule.shift_added",
        extra={
            "schedule_id": schedule.id,
            "shift_id": shift.id,
            "employee_id": employee.id,
            "day_of_week": int(day_of_week),
        },
    )
    return shift


def post_schedule(
    *,
    user_id: str,
    schedule_id: str,
    db: Session,
    now: Optional[datetime] = None,
) -> WeeklySchedule:
    schedule = _get_schedule(db, schedule_id)
    directory.get_owned_business(db, schedule.business_id, user_id)

    updated = (
        db.query(WeeklySchedule)
        .filter(WeeklySchedule.id == schedule.id, WeeklySchedule.status == "draft")
        .update({"status": "posted", "posted_at": now or datetime.now(timezone.utc)}, synchronize_session=False)
    )
    schedule = db.get(WeeklySchedule, schedule.id, populate_existing=True)
    if updated == 0:
        raise ConflictError("Schedule is already posted", field="status", expected="draft", actual=schedule.status)

    logger.info("schedule.posted", extra={"schedule_id": schedule.id, "business_id": schedule.business_id})
    return schedule


def get_schedule(
    *,
    user_id: str,
    role: str,
    business_id: str,
    week_start: date,
    db: Session,
) -> WeeklySchedule:
    """Employers read any of their schedules; employees only posted ones of their business."""
    if role == "employer":
        business = directory.get_owned_business(db, business_id, user_id)
    else:
        business = directory.get_business(db, business_id)
        employee = directory.get_employee_for_user(db, user_id)
        directory.require_member(db, business.business_id, employee.id)

    WeekWindow.ensure_week_start(week_start)
    q = (
        db.query(WeeklySchedule)
        .options(selectinload(WeeklySchedule.shifts))
        .filter(WeeklySchedule.business_id == business.business_id)
        .filter(WeeklySchedule.week_start_date == week_start)
    )
    if role != "employer":
        q = q.filter(WeeklySchedule.status == "posted")

    schedule = q.one_or_none()
    if schedule is None:
        raise NotFoundError("No schedule for this week", field="week_start")
    return schedule
