"""
Payment records: calculate, recalculate, mark paid, and read back.

A record is `calculated` until the employer marks it `paid`; after that the
row is frozen (see payment_immutability). Writes go through conditional
UPDATEs on status so a concurrent mark-paid can never be overwritten by a
late recalculation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timecard.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from timecard.models.business import BusinessEmployee
from timecard.models.employee import Employee
from timecard.models.payment_record import PAYMENT_METHODS, PaymentRecord
from timecard.services import directory, rates_service
from timecard.services.discrepancy_detector import PaymentWarning, find_overlapping_paid, payment_warnings
from timecard.services.hours import quantize, to_decimal
from timecard.services.payroll_calculator import HoursResolution, PayBreakdown, calculate_pay, resolve_hours_for_period
from timecard.services.week_window import resolve_timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentResult:
    record: PaymentRecord
    resolution: HoursResolution
    warnings: list[PaymentWarning]
    created: bool = False


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_period(period_start: date, period_end: date) -> None:
    if period_end < period_start:
        raise InvalidInputError(
            "period_end must be on or after period_start",
            field="period_end",
            expected=f">= {period_start.isoformat()}",
            actual=period_end.isoformat(),
        )


def _get_payment(db: Session, payment_id: str) -> PaymentRecord:
    record = db.get(PaymentRecord, str(payment_id))
    if record is None:
        raise NotFoundError("Payment record not found")
    return record


def _find_for_period(
    db: Session,
    business_id: str,
    employee_id: str,
    period_start: date,
    period_end: date,
    status: str,
) -> Optional[PaymentRecord]:
    return (
        db.query(PaymentRecord)
        .filter(
            PaymentRecord.business_id == str(business_id),
            PaymentRecord.employee_id == str(employee_id),
            PaymentRecord.period_start == period_start,
            PaymentRecord.period_end == period_end,
            PaymentRecord.status == status,
        )
        .one_or_none()
    )


def _paid_conflict(record: PaymentRecord) -> ConflictError:
    return ConflictError(
        "Payment has already been marked paid",
        field="status",
        expected="calculated",
        actual=record.status,
    )


def _update_calculated(db: Session, payment_id: str, values: Mapping[str, Any]) -> PaymentRecord:
    updated = (
        db.query(PaymentRecord)
        .filter(PaymentRecord.id == str(payment_id), PaymentRecord.status == "calculated")
        .update(dict(values), synchronize_session=False)
    )
    current = db.get(PaymentRecord, str(payment_id), populate_existing=True)
    if current is None:
        raise NotFoundError("Payment record not found")
    if updated == 0:
        raise _paid_conflict(current)
    return current


def _breakdown_values(breakdown: PayBreakdown) -> dict[str, Any]:
    return {
        "total_hours": breakdown.total_hours,
        "hourly_rate": breakdown.hourly_rate,
        "gross_pay": breakdown.gross_pay,
        "advances": breakdown.advances,
        "bonuses": breakdown.bonuses,
        "deductions": breakdown.deductions,
        "net_pay": breakdown.net_pay,
    }


def _resolve_rate(
    db: Session,
    business_id: str,
    employee_id: str,
    override: Any,
    now: Optional[datetime],
) -> Decimal:
    if override is not None:
        return to_decimal(override, field="hourly_rate")
    rate = rates_service.current_rate(business_id=business_id, employee_id=employee_id, db=db, now=now)
    if rate is None:
        raise InvalidInputError("No hourly rate is set for this employee", field="hourly_rate")
    return rate.hourly_rate


def _warnings_for(
    db: Session,
    record: PaymentRecord,
    resolution: HoursResolution,
) -> list[PaymentWarning]:
    overlapping = find_overlapping_paid(
        business_id=record.business_id,
        employee_id=record.employee_id,
        period_start=record.period_start,
        period_end=record.period_end,
        db=db,
        exclude_id=record.id,
    )
    manual = record.hours_source == "manual"
    return payment_warnings(
        total_hours=record.total_hours,
        hourly_rate=record.hourly_rate,
        net_pay=record.net_pay,
        hours_source=record.hours_source,
        discrepancy=resolution.has_discrepancy and not manual,
        overlapping=overlapping,
        weekly_hours=None if manual else resolution.weekly_hours,
    )


def save_payment(
    *,
    user_id: str,
    business_id: str,
    employee_id: str,
    period_start: date,
    period_end: date,
    db: Session,
    total_hours: Any = None,
    hourly_rate: Any = None,
    advances: Any = None,
    bonuses: Any = None,
    deductions: Any = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PaymentResult:
    """
    Calculate pay for one employee and period and persist it as `calculated`.

    Re-saving the same period overwrites the open record in place. A period
    that is already paid is a conflict; warnings never block the save.
    """
    business = directory.get_owned_business(db, business_id, user_id)
    employee = directory.get_business_employee(db, business.business_id, employee_id)
    _validate_period(period_start, period_end)

    paid = _find_for_period(db, business.business_id, employee.id, period_start, period_end, "paid")
    if paid is not None:
        raise ConflictError(
            "This period has already been paid",
            field="period_start",
            actual={"payment_id": paid.id},
        )

    resolution = resolve_hours_for_period(
        business_id=business.business_id,
        employee_id=employee.id,
        period_start=period_start,
        period_end=period_end,
        db=db,
    )
    if total_hours is not None:
        hours, source = total_hours, "manual"
    else:
        hours, source = resolution.total_hours, resolution.source

    rate = _resolve_rate(db, business.business_id, employee.id, hourly_rate, now)
    breakdown = calculate_pay(hours, rate, advances=advances, bonuses=bonuses, deductions=deductions)

    timestamp = now or _now()
    values = {
        **_breakdown_values(breakdown),
        "hours_source": source,
        "notes": notes,
        "updated_by": str(user_id),
        "updated_at": timestamp,
    }

    existing = _find_for_period(db, business.business_id, employee.id, period_start, period_end, "calculated")
    created = existing is None
    if existing is not None:
        record = _update_calculated(db, existing.id, values)
    else:
        record = PaymentRecord(
            business_id=business.business_id,
            employee_id=employee.id,
            period_start=period_start,
            period_end=period_end,
            status="calculated",
            created_by=str(user_id),
            created_at=timestamp,
            **values,
        )
        db.add(record)
        try:
            db.flush()
        except IntegrityError as exc:
            raise ConflictError("A payment for this period is already being saved", field="period_start") from exc

    logger.info(
        "payment.calculated" if created else "payment.recalculated",
        extra={
            "payment_id": record.id,
            "business_id": record.business_id,
            "employee_id": record.employee_id,
            "period_start": period_start.isoformat(),
            "period_end": period_end.isoformat(),
            "hours_source": source,
            "net_pay": str(record.net_pay),
        },
    )

    return PaymentResult(
        record=record,
        resolution=resolution,
        warnings=_warnings_for(db, record, resolution),
        created=created,
    )


def update_payment(
    *,
    user_id: str,
    payment_id: str,
    db: Session,
    total_hours: Any = None,
    hourly_rate: Any = None,
    advances: Any = None,
    bonuses: Any = None,
    deductions: Any = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PaymentResult:
    record = _get_payment(db, payment_id)
    directory.get_owned_business(db, record.business_id, user_id)
    if record.status != "calculated":
        raise _paid_conflict(record)

    breakdown = calculate_pay(
        record.total_hours if total_hours is None else total_hours,
        record.hourly_rate if hourly_rate is None else hourly_rate,
        advances=record.advances if advances is None else advances,
        bonuses=record.bonuses if bonuses is None else bonuses,
        deductions=record.deductions if deductions is None else deductions,
    )

    values: dict[str, Any] = {
        **_breakdown_values(breakdown),
        "updated_by": str(user_id),
        "updated_at": now or _now(),
    }
    if total_hours is not None:
        values["hours_source"] = "manual"
    if notes is not None:
        values["notes"] = notes

    record = _update_calculated(db, record.id, values)
    logger.info(
        "payment.updated",
        extra={"payment_id": record.id, "net_pay": str(record.net_pay), "hours_source": record.hours_source},
    )

    resolution = resolve_hours_for_period(
        business_id=record.business_id,
        employee_id=record.employee_id,
        period_start=record.period_start,
        period_end=record.period_end,
        db=db,
    )
    return PaymentResult(record=record, resolution=resolution, warnings=_warnings_for(db, record, resolution))


def mark_paid(
    *,
    user_id: str,
    payment_id: str,
    payment_method: Optional[str],
    db: Session,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PaymentRecord:
    if payment_method not in PAYMENT_METHODS:
        raise InvalidInputError(
            "Unknown payment method",
            field="payment_method",
            expected=list(PAYMENT_METHODS),
            actual=payment_method,
        )

    record = _get_payment(db, payment_id)
    directory.get_owned_business(db, record.business_id, user_id)
    if record.status != "calculated":
        raise _paid_conflict(record)

    timestamp = now or _now()
    values: dict[str, Any] = {
        "status": "paid",
        "payment_method": payment_method,
        "paid_at": timestamp,
        "updated_by": str(user_id),
        "updated_at": timestamp,
    }
    if notes is not None:
        values["notes"] = notes

    try:
        record = _update_calculated(db, record.id, values)
    except IntegrityError as exc:
        raise ConflictError("This period has already been paid", field="status") from exc

    logger.info(
        "payment.marked_paid",
        extra={
            "payment_id": record.id,
            "business_id": record.business_id,
            "employee_id": record.employee_id,
            "payment_method": payment_method,
            "net_pay": str(record.net_pay),
        },
    )
    return record


def list_payments(
    *,
    user_id: str,
    role: str,
    business_id: str,
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[str] = None,
) -> list[tuple[PaymentRecord, str]]:
    """Employers see the whole business; an employee only ever sees their own records."""
    if role == "employer":
        business = directory.get_owned_business(db, business_id, user_id)
    else:
        business = directory.get_business(db, business_id)
        employee = directory.get_employee_for_user(db, user_id)
        directory.require_member(db, business.business_id, employee.id)
        if employee_id is not None and str(employee_id) != employee.id:
            raise ForbiddenError("Employees can only view their own payments", field="employee_id")
        employee_id = employee.id

    q = (
        db.query(PaymentRecord, Employee.full_name)
        .join(Employee, Employee.id == PaymentRecord.employee_id)
        .filter(PaymentRecord.business_id == business.business_id)
    )
    if employee_id is not None:
        q = q.filter(PaymentRecord.employee_id == str(employee_id))
    if start_date is not None:
        q = q.filter(PaymentRecord.period_end >= start_date)
    if end_date is not None:
        q = q.filter(PaymentRecord.period_start <= end_date)

    rows = q.order_by(PaymentRecord.period_start.desc(), Employee.full_name.asc()).all()
    return [(record, full_name) for record, full_name in rows]


def payment_report(
    *,
    user_id: str,
    business_id: str,
    start_date: date,
    end_date: date,
    db: Session,
) -> dict[str, Any]:
    """
    Read-only totals over paid records.

    Semantics:
      status = 'paid' AND period_start >= start_date AND period_end <= end_date
    Grouping:
      employee_id, plus a timeline keyed by the business-local paid date
    """
    business = directory.get_owned_business(db, business_id, user_id)
    _validate_period(start_date, end_date)

    base = (
        db.query(PaymentRecord)
        .filter(PaymentRecord.business_id == business.business_id)
        .filter(PaymentRecord.status == "paid")
        .filter(PaymentRecord.period_start >= start_date)
        .filter(PaymentRecord.period_end <= end_date)
    )

    rows = (
        base.join(Employee, Employee.id == PaymentRecord.employee_id)
        .with_entities(
            PaymentRecord.employee_id.label("employee_id"),
            Employee.full_name.label("full_name"),
            func.count(PaymentRecord.id).label("payment_count"),
            func.coalesce(func.sum(PaymentRecord.total_hours), 0).label("total_hours"),
            func.coalesce(func.sum(PaymentRecord.gross_pay), 0).label("gross_pay"),
            func.coalesce(func.sum(PaymentRecord.advances), 0).label("advances"),
            func.coalesce(func.sum(PaymentRecord.bonuses), 0).label("bonuses"),
            func.coalesce(func.sum(PaymentRecord.deductions), 0).label("deductions"),
            func.coalesce(func.sum(PaymentRecord.net_pay), 0).label("net_pay"),
        )
        .group_by(PaymentRecord.employee_id, Employee.full_name)
        .order_by(Employee.full_name.asc())
        .all()
    )

    money_fields = ("total_hours", "gross_pay", "advances", "bonuses", "deductions", "net_pay")
    totals = {f: Decimal("0") for f in money_fields}
    employees = []
    for r in rows:
        entry = {"employee_id": r.employee_id, "full_name": r.full_name, "payment_count": int(r.payment_count)}
        for f in money_fields:
            amount = quantize(to_decimal(getattr(r, f), field=f))
            entry[f] = amount
            totals[f] += amount
        employees.append(entry)

    tz = resolve_timezone(business.timezone)
    timeline: dict[date, dict[str, Any]] = defaultdict(lambda: {"payment_count": 0, "net_pay": Decimal("0")})
    for record in base.all():
        paid_on = record.paid_at
        if paid_on.tzinfo is None:
            paid_on = paid_on.replace(tzinfo=timezone.utc)
        bucket = timeline[paid_on.astimezone(tz).date()]
        bucket["payment_count"] += 1
        bucket["net_pay"] += record.net_pay

    return {
        "business_id": business.business_id,
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "payment_count": sum(e["payment_count"] for e in employees),
        "totals": {f: quantize(totals[f]) for f in money_fields},
        "employees": employees,
        "timeline": [
            {"paid_on": day.isoformat(), "payment_count": v["payment_count"], "net_pay": v["net_pay"]}
            for day, v in sorted(timeline.items())
        ],
    }


def hours_breakdown(
    *,
    user_id: str,
    business_id: str,
    start_date: date,
    end_date: date,
    db: Session,
    now: Optional[datetime] = None,
) -> list[dict[str, Any]]:
    """Per-employee preview of what a save for this period would use. Writes nothing."""
    business = directory.get_owned_business(db, business_id, user_id)
    _validate_period(start_date, end_date)

    employees = (
        db.query(Employee)
        .join(BusinessEmployee, BusinessEmployee.employee_id == Employee.id)
        .filter(BusinessEmployee.business_id == business.business_id)
        .order_by(Employee.full_name.asc())
        .all()
    )

    result = []
    for employee in employees:
        resolution = resolve_hours_for_period(
            business_id=business.business_id,
            employee_id=employee.id,
            period_start=start_date,
            period_end=end_date,
            db=db,
        )
        rate = rates_service.current_rate(business_id=business.business_id, employee_id=employee.id, db=db, now=now)
        overlapping = find_overlapping_paid(
            business_id=business.business_id,
            employee_id=employee.id,
            period_start=start_date,
            period_end=end_date,
            db=db,
        )
        existing = _find_for_period(
            db, business.business_id, employee.id, start_date, end_date, "paid"
        ) or _find_for_period(db, business.business_id, employee.id, start_date, end_date, "calculated")

        result.append(
            {
                "employee": employee,
                "resolution": resolution,
                "hourly_rate": None if rate is None else rate.hourly_rate,
                "overlapping_payment_ids": [p.id for p in overlapping],
                "existing_payment": existing,
            }
        )
    return result
