import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timecard.core.errors import ConflictError, InvalidInputError
from timecard.models.business import Business, BusinessEmployee
from timecard.models.employee import Employee
from timecard.services import directory

logger = logging.getLogger(__name__)


def create_business(*, user_id: str, name: str, db: Session, timezone_name: Optional[str] = None) -> Business:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Business name is required", field="name")

    business = Business(
        name=name,
        employer_id=str(user_id),
        timezone=timezone_name or None,
        created_at=datetime.now(timezone.utc),
    )
    db.add(business)
    db.flush()

    logger.info("business.created", extra={"business_id": business.business_id, "employer_id": str(user_id)})
    return business


def read_business(*, user_id: str, role: str, business_id: str, db: Session) -> Business:
    if role == "employer":
        return directory.get_owned_business(db, business_id, user_id)
    business = directory.get_business(db, business_id)
    employee = directory.get_employee_for_user(db, user_id)
    directory.require_member(db, business.business_id, employee.id)
    return business


def add_employee(
    *,
    user_id: str,
    business_id: str,
    employee_user_id: str,
    full_name: str,
    db: Session,
) -> Employee:
    """Attach a worker to the business, creating their profile on first use."""
    business = directory.get_owned_business(db, business_id, user_id)

    employee = directory.find_employee_for_user(db, employee_user_id)
    if employee is None:
        full_name = (full_name or "").strip()
        if not full_name:
            raise InvalidInputError("full_name is required for a new employee", field="full_name")
        employee = Employee(user_id=str(employee_user_id), full_name=full_name)
        db.add(employee)
        db.flush()

    if directory.is_member(db, business.business_id, employee.id):
        raise ConflictError("Employee already belongs to this business", field="user_id")

    db.add(BusinessEmployee(business_id=business.business_id, employee_id=employee.id))
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("Employee already belongs to this business", field="user_id") from exc

    logger.info(
        "business.employee_added",
        extra={"business_id": business.business_id, "employee_id": employee.id},
    )
    return employee


def list_employees(*, user_id: str, business_id: str, db: Session) -> list[Employee]:
    business = directory.get_owned_business(db, business_id, user_id)
    return (
        db.query(Employee)
        .join(BusinessEmployee, BusinessEmployee.employee_id == Employee.id)
        .filter(BusinessEmployee.business_id == business.business_id)
        .order_by(Employee.full_name.asc())
        .all()
    )
