from typing import Optional

from sqlalchemy.orm import Session

from timecard.core.errors import ForbiddenError, NotFoundError
from timecard.models.business import Business, BusinessEmployee
from timecard.models.employee import Employee


def get_business(db: Session, business_id: str) -> Business:
    business = db.get(Business, str(business_id))
    if business is None:
        raise NotFoundError("Business not found", field="business_id")
    return business


def get_owned_business(db: Session, business_id: str, user_id: str) -> Business:
    business = get_business(db, business_id)
    if business.employer_id != str(user_id):
        raise ForbiddenError("Caller does not own this business", field="business_id")
    return business


def find_employee_for_user(db: Session, user_id: str) -> Optional[Employee]:
    return db.query(Employee).filter(Employee.user_id == str(user_id)).one_or_none()


def get_employee_for_user(db: Session, user_id: str) -> Employee:
    employee = find_employee_for_user(db, user_id)
    if employee is None:
        raise NotFoundError("Employee profile not found")
    return employee


def is_member(db: Session, business_id: str, employee_id: str) -> bool:
    row = (
        db.query(BusinessEmployee.id)
        .filter(
            BusinessEmployee.business_id == str(business_id),
            BusinessEmployee.employee_id == str(employee_id),
        )
        .first()
    )
    return row is not None


def require_member(db: Session, business_id: str, employee_id: str) -> None:
    if not is_member(db, business_id, employee_id):
        raise ForbiddenError("Employee is not associated with this business", field="business_id")


def get_business_employee(db: Session, business_id: str, employee_id: str) -> Employee:
    """Employer-side lookup: an employee id that is not in the business is simply not found."""
    employee = db.get(Employee, str(employee_id))
    if employee is None or not is_member(db, business_id, employee_id):
        raise NotFoundError("Employee not found in this business", field="employee_id")
    return employee
