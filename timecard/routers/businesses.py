from typing import List

from fastapi import APIRouter, Depends

from timecard.core.authorization import Role, require_role
from timecard.database import SessionLocal
from timecard.deps.auth import Caller, require_auth
from timecard.schemas.business import BusinessCreate, BusinessResponse
from timecard.schemas.employee import EmployeeCreate, EmployeeResponse
from timecard.services import businesses_service

router = APIRouter(prefix="/businesses", tags=["Businesses"])


@router.post("", response_model=BusinessResponse, status_code=201)
def create_business(
    payload: BusinessCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        row = businesses_service.create_business(
            user_id=caller.user_id,
            name=payload.name,
            timezone_name=payload.timezone,
            db=db,
        )
        db.commit()
        db.refresh(row)
        return row
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{business_id}", response_model=BusinessResponse)
def get_business(
    business_id: str,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        return businesses_service.read_business(
            user_id=caller.user_id,
            role=caller.role,
            business_id=business_id,
            db=db,
        )
    finally:
        db.close()


@router.post("/{business_id}/employees", response_model=EmployeeResponse, status_code=201)
def add_employee(
    business_id: str,
    payload: EmployeeCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        row = businesses_service.add_employee(
            user_id=caller.user_id,
            business_id=business_id,
            employee_user_id=payload.user_id,
            full_name=payload.full_name,
            db=db,
        )
        db.commit()
        db.refresh(row)
        return row
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/{business_id}/employees", response_model=List[EmployeeResponse])
def list_employees(
    business_id: str,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        return businesses_service.list_employees(user_id=caller.user_id, business_id=business_id, db=db)
    finally:
        db.close()
