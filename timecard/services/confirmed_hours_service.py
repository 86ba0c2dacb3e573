"""
Employee-confirmed weekly hours and their approval workflow.

    draft -> submitted -> approved
                       -> rejected -> submitted (after re-edit)

Every transition is a conditional UPDATE filtered on the expected
pre-state, so two concurrent callers can never both win. Functions take
the caller's session and never commit; the router owns the transaction.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timecard.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from timecard.models.business import Business
from timecard.models.confirmed_hours import DAY_FIELDS, ConfirmedHours
from timecard.models.employee import Employee
from timecard.services import directory
from timecard.services.discrepancy_detector import has_discrepancy
from timecard.services.hours import MAX_DAY_HOURS, WeekHours, has_any_day_value, round_to_increment
from timecard.services.schedule_aggregator import posted_weeks, scheduled_hours_for_week
from timecard.services.week_window import WeekWindow

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = ("draft", "rejected")
EMPLOYER_DEFAULT_STATUSES = ("submitted", "approved")
EMPLOYER_VISIBLE_STATUSES = ("submitted", "approved", "rejected")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_record(db: Session, record_id: str) -> ConfirmedHours:
    record = db.get(ConfirmedHours, str(record_id))
    if record is None:
        raise NotFoundError("Confirmed hours record not found")
    return record


def _find_record(db: Session, employee_id: str, business_id: str, week_start: date) -> Optional[ConfirmedHours]:
    return (
        db.query(ConfirmedHours)
        .filter(
            ConfirmedHours.employee_id == str(employee_id),
            ConfirmedHours.business_id == str(business_id),
            ConfirmedHours.week_start_date == week_start,
        )
        .one_or_none()
    )


def _require_owner(db: Session, record: ConfirmedHours, user_id: str) -> Employee:
    employee = directory.get_employee_for_user(db, user_id)
    if record.employee_id != employee.id:
        raise ForbiddenError("Hours record belongs to another employee")
    return employee


def _require_employer(db: Session, record: ConfirmedHours, user_id: str) -> Business:
    return directory.get_owned_business(db, record.business_id, user_id)


def _require_status(record: ConfirmedHours, expected: Iterable[str], action: str) -> None:
    expected = tuple(expected)
    if record.status not in expected:
        raise ConflictError(
            f"Cannot {action} hours in status {record.status}",
            field="status",
            expected=list(expected),
            actual=record.status,
        )


def _compare_and_swap(
    db: Session,
    record_id: str,
    expected: Iterable[str],
    values: Mapping[str, Any],
    *,
    action: str,
) -> ConfirmedHours:
    expected = tuple(expected)
    updated = (
        db.query(ConfirmedHours)
        .filter(ConfirmedHours.id == str(record_id), ConfirmedHours.status.in_(expected))
        .update(dict(values), synchronize_session=False)
    )

    current = db.get(ConfirmedHours, str(record_id), populate_existing=True)
    if current is None:
        raise NotFoundError("Confirmed hours record not found")
    if updated == 0:
        # Lost the race: another writer moved the record after our pre-check.
        raise ConflictError(
            f"Cannot {action} hours in status {current.status}",
            field="status",
            expected=list(expected),
            actual=current.status,
        )
    return current


def _seed_from_schedule(scheduled: WeekHours) -> WeekHours:
    # Shifts are minute-precise; day fields only hold quarter hours.
    return WeekHours(days=tuple(min(round_to_increment(d), MAX_DAY_HOURS) for d in scheduled.days))


def get_weekly_hours(
    *,
    user_id: str,
    business_id: str,
    week_start: date,
    db: Session,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Employee weekly view: their confirmed record (if any) beside the posted
    schedule for the same week. Read-only; no draft is created here.
    """
    business = directory.get_business(db, business_id)
    employee = directory.get_employee_for_user(db, user_id)
    directory.require_member(db, business.business_id, employee.id)

    window = WeekWindow(business.timezone, now=now)
    window.ensure_addressable(week_start)

    record = _find_record(db, employee.id, business.business_id, week_start)
    scheduled = scheduled_hours_for_week(
        employee_id=employee.id,
        business_id=business.business_id,
        week_start=week_start,
        db=db,
    )
    has_schedule = week_start in posted_weeks(
        business_id=business.business_id,
        week_starts=[week_start],
        db=db,
    )

    discrepancy = False
    if record is not None and has_schedule:
        discrepancy = has_discrepancy(record.total_hours, scheduled.total)

    return {
        "business": business,
        "employee": employee,
        "week": window.describe(week_start),
        "confirmed": record,
        "scheduled": scheduled,
        "has_schedule": has_schedule,
        "has_discrepancy": discrepancy,
    }


def create_confirmed_hours(
    *,
    user_id: str,
    business_id: str,
    week_start: date,
    db: Session,
    day_hours: Optional[Mapping[str, Any]] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ConfirmedHours:
    business = directory.get_business(db, business_id)
    employee = directory.get_employee_for_user(db, user_id)
    directory.require_member(db, business.business_id, employee.id)

    window = WeekWindow(business.timezone, now=now)
    window.ensure_addressable(week_start)

    if _find_record(db, employee.id, business.business_id, week_start) is not None:
        raise ConflictError(
            "Hours for this week already exist",
            field="week_start",
            actual=week_start.isoformat(),
        )

    if has_any_day_value(day_hours):
        hours = WeekHours.from_mapping(day_hours)
    else:
        hours = _seed_from_schedule(
            scheduled_hours_for_week(
                employee_id=employee.id,
                business_id=business.business_id,
                week_start=week_start,
                db=db,
            )
        )

    timestamp = now or _now()
    record = ConfirmedHours(
        employee_id=employee.id,
        business_id=business.business_id,
        week_start_date=week_start,
        status="draft",
        notes=notes,
        created_at=timestamp,
        updated_at=timestamp,
        **hours.as_dict(),
    )
    db.add(record)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("Hours for this week already exist", field="week_start") from exc

    logger.info(
        "confirmed_hours.created",
        extra={
            "confirmed_hours_id": record.id,
            "employee_id": employee.id,
            "business_id": business.business_id,
            "week_start": week_start.isoformat(),
            "seeded_from_schedule": not has_any_day_value(day_hours),
        },
    )
    return record


def update_confirmed_hours(
    *,
    user_id: str,
    record_id: str,
    db: Session,
    day_hours: Optional[Mapping[str, Any]] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ConfirmedHours:
    record = _get_record(db, record_id)
    _require_owner(db, record, user_id)
    _require_status(record, EDITABLE_STATUSES, "edit")

    hours = WeekHours.from_record(record).replace(day_hours or {})
    values: dict[str, Any] = {**hours.as_dict(), "updated_at": now or _now()}
    if notes is not None:
        values["notes"] = notes

    record = _compare_and_swap(db, record.id, EDITABLE_STATUSES, values, action="edit")
    logger.info(
        "confirmed_hours.updated",
        extra={"confirmed_hours_id": record.id, "total_hours": str(record.total_hours)},
    )
    return record


def submit_confirmed_hours(
    *,
    user_id: str,
    record_id: str,
    db: Session,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ConfirmedHours:
    record = _get_record(db, record_id)
    _require_owner(db, record, user_id)
    _require_status(record, EDITABLE_STATUSES, "submit")
    # Every stored day must still sit on the quarter-hour grid.
    WeekHours.from_mapping({f: getattr(record, f) for f in DAY_FIELDS})

    timestamp = now or _now()
    values: dict[str, Any] = {
        "status": "submitted",
        "submitted_at": timestamp,
        "updated_at": timestamp,
    }
    if notes is not None:
        values["notes"] = notes

    previous_status = record.status
    record = _compare_and_swap(db, record.id, EDITABLE_STATUSES, values, action="submit")
    logger.info(
        "confirmed_hours.submitted",
        extra={
            "confirmed_hours_id": record.id,
            "previous_status": previous_status,
            "total_hours": str(record.total_hours),
        },
    )
    return record


def approve_confirmed_hours(
    *,
    user_id: str,
    record_id: str,
    db: Session,
    now: Optional[datetime] = None,
) -> ConfirmedHours:
    record = _get_record(db, record_id)
    _require_employer(db, record, user_id)
    _require_status(record, ("submitted",), "approve")

    timestamp = now or _now()
    record = _compare_and_swap(
        db,
        record.id,
        ("submitted",),
        {
            "status": "approved",
            "approved_at": timestamp,
            "approved_by": str(user_id),
            "updated_at": timestamp,
        },
        action="approve",
    )
    logger.info(
        "confirmed_hours.approved",
        extra={"confirmed_hours_id": record.id, "approved_by": str(user_id)},
    )
    return record


def reject_confirmed_hours(
    *,
    user_id: str,
    record_id: str,
    reason: Optional[str],
    db: Session,
    now: Optional[datetime] = None,
) -> ConfirmedHours:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidInputError("A rejection reason is required", field="reason")

    record = _get_record(db, record_id)
    _require_employer(db, record, user_id)
    _require_status(record, ("submitted",), "reject")

    timestamp = now or _now()
    record = _compare_and_swap(
        db,
        record.id,
        ("submitted",),
        {
            "status": "rejected",
            "rejection_reason": reason,
            "rejected_at": timestamp,
            "rejected_by": str(user_id),
            "updated_at": timestamp,
        },
        action="reject",
    )
    logger.info(
        "confirmed_hours.rejected",
        extra={"confirmed_hours_id": record.id, "rejected_by": str(user_id)},
    )
    return record


def list_for_employee(
    *,
    user_id: str,
    db: Session,
    business_id: Optional[str] = None,
) -> list[ConfirmedHours]:
    employee = directory.get_employee_for_user(db, user_id)
    q = db.query(ConfirmedHours).filter(ConfirmedHours.employee_id == employee.id)
    if business_id is not None:
        q = q.filter(ConfirmedHours.business_id == str(business_id))
    return q.order_by(ConfirmedHours.week_start_date.desc()).all()


def list_for_employer(
    *,
    user_id: str,
    business_id: str,
    db: Session,
    status: Optional[str] = None,
    week_start: Optional[date] = None,
) -> list[tuple[ConfirmedHours, str]]:
    """Records for review with the employee's name; drafts stay private to the employee."""
    business = directory.get_owned_business(db, business_id, user_id)

    if status is not None and status not in EMPLOYER_VISIBLE_STATUSES:
        raise InvalidInputError(
            "Status filter is not available to employers",
            field="status",
            expected=list(EMPLOYER_VISIBLE_STATUSES),
            actual=status,
        )

    q = (
        db.query(ConfirmedHours, Employee.full_name)
        .join(Employee, Employee.id == ConfirmedHours.employee_id)
        .filter(ConfirmedHours.business_id == business.business_id)
    )
    if status is not None:
        q = q.filter(ConfirmedHours.status == status)
    else:
        q = q.filter(ConfirmedHours.status.in_(EMPLOYER_DEFAULT_STATUSES))
    if week_start is not None:
        q = q.filter(ConfirmedHours.week_start_date == week_start)

    rows = q.order_by(ConfirmedHours.week_start_date.desc(), Employee.full_name.asc()).all()
    return [(record, full_name) for record, full_name in rows]
