from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timecard.core.errors import ConflictError, InvalidInputError
from timecard.models.business import BusinessEmployee
from timecard.models.employee import Employee
from timecard.models.employee_rate import EmployeeRate
from timecard.services import directory
from timecard.services.hours import quantize, to_decimal
from timecard.services.week_window import WeekWindow

logger = logging.getLogger(__name__)


def _business_today(db: Session, business_id: str, now: Optional[datetime] = None) -> date:
    business = directory.get_business(db, business_id)
    return WeekWindow(business.timezone, now=now).today


def set_rate(
    *,
    user_id: str,
    business_id: str,
    employee_id: str,
    hourly_rate: Any,
    db: Session,
    effective_from: Optional[date] = None,
    now: Optional[datetime] = None,
) -> EmployeeRate:
    """Append a new effective rate. Earlier rows are never modified."""
    business = directory.get_owned_business(db, business_id, user_id)
    employee = directory.get_business_employee(db, business.business_id, employee_id)

    rate = to_decimal(hourly_rate, field="hourly_rate")
    if rate <= 0:
        raise InvalidInputError("hourly_rate must be greater than zero", field="hourly_rate", actual=str(rate))

    if effective_from is None:
        effective_from = WeekWindow(business.timezone, now=now).today

    row = EmployeeRate(
        business_id=business.business_id,
        employee_id=employee.id,
        hourly_rate=quantize(rate),
        effective_from=effective_from,
        created_by=str(user_id),
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(row)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError(
            "A rate already takes effect on this date",
            field="effective_from",
            actual=effective_from.isoformat(),
        ) from exc

    logger.info(
        "employee_rate.set",
        extra={
            "business_id": business.business_id,
            "employee_id": employee.id,
            "hourly_rate": str(row.hourly_rate),
            "effective_from": effective_from.isoformat(),
        },
    )
    return row


def current_rate(
    *,
    business_id: str,
    employee_id: str,
    db: Session,
    on: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Optional[EmployeeRate]:
    if on is None:
        on = _business_today(db, business_id, now)
    return (
        db.query(EmployeeRate)
        .filter(EmployeeRate.business_id == str(business_id))
        .filter(EmployeeRate.employee_id == str(employee_id))
        .filter(EmployeeRate.effective_from <= on)
        .order_by(EmployeeRate.effective_from.desc())
        .first()
    )


def current_rates(
    *,
    user_id: str,
    business_id: str,
    db: Session,
    now: Optional[datetime] = None,
) -> list[tuple[Employee, Optional[EmployeeRate]]]:
    business = directory.get_owned_business(db, business_id, user_id)
    today = WeekWindow(business.timezone, now=now).today

    employees = (
        db.query(Employee)
        .join(BusinessEmployee, BusinessEmployee.employee_id == Employee.id)
        .filter(BusinessEmployee.business_id == business.business_id)
        .order_by(Employee.full_name.asc())
        .all()
    )
    return [
        (e, current_rate(business_id=business.business_id, employee_id=e.id, db=db, on=today))
        for e in employees
    ]


def rate_history(
    *,
    user_id: str,
    business_id: str,
    employee_id: str,
    db: Session,
) -> list[EmployeeRate]:
    business = directory.get_owned_business(db, business_id, user_id)
    employee = directory.get_business_employee(db, business.business_id, employee_id)
    return (
        db.query(EmployeeRate)
        .filter(EmployeeRate.business_id == business.business_id)
        .filter(EmployeeRate.employee_id == employee.id)
        .order_by(EmployeeRate.effective_from.desc())
        .all()
    )
