from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from timecard.core.authorization import Role, require_role
from timecard.database import SessionLocal
from timecard.deps.auth import Caller
from timecard.models.confirmed_hours import DAY_FIELDS, ConfirmedHours
from timecard.schemas.hours import (
    BusinessInfo,
    ConfirmedHoursCreate,
    ConfirmedHoursResponse,
    ConfirmedHoursUpdate,
    DayHours,
    EmployerHoursRow,
    RejectRequest,
    SubmitRequest,
    WeeklyHoursResponse,
)
from timecard.services import confirmed_hours_service

router = APIRouter(prefix="/hours", tags=["Hours"])


def _day_values(payload) -> dict:
    return {field: getattr(payload, field) for field in DAY_FIELDS if getattr(payload, field) is not None}


def _to_response(record: ConfirmedHours) -> ConfirmedHoursResponse:
    return ConfirmedHoursResponse.model_validate(record)


@router.get("/weekly", response_model=WeeklyHoursResponse)
def get_weekly_hours(
    business_id: str,
    week_start: date,
    caller: Caller = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        view = confirmed_hours_service.get_weekly_hours(
            user_id=caller.user_id,
            business_id=business_id,
            week_start=week_start,
            db=db,
        )
        return WeeklyHoursResponse(
            business=BusinessInfo.model_validate(view["business"]),
            employee_id=view["employee"].id,
            week=view["week"],
            confirmed=None if view["confirmed"] is None else _to_response(view["confirmed"]),
            scheduled=DayHours(**view["scheduled"].as_dict()),
            has_schedule=view["has_schedule"],
            has_discrepancy=view["has_discrepancy"],
        )
    finally:
        db.close()


@router.post("", response_model=ConfirmedHoursResponse, status_code=201)
def create_hours(
    payload: ConfirmedHoursCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        record = confirmed_hours_service.create_confirmed_hours(
            user_id=caller.user_id,
            business_id=payload.business_id,
            week_start=payload.week_start,
            day_hours=_day_values(payload),
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return _to_response(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.put("/{record_id}", response_model=ConfirmedHoursResponse)
def update_hours(
    record_id: str,
    payload: ConfirmedHoursUpdate,
    caller: Caller = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        record = confirmed_hours_service.update_confirmed_hours(
            user_id=caller.user_id,
            record_id=record_id,
            day_hours=_day_values(payload),
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return _to_response(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{record_id}/submit", response_model=ConfirmedHoursResponse)
def submit_hours(
    record_id: str,
    payload: Optional[SubmitRequest] = None,
    caller: Caller = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        record = confirmed_hours_service.submit_confirmed_hours(
            user_id=caller.user_id,
            record_id=record_id,
            notes=None if payload is None else payload.notes,
            db=db,
        )
        db.commit()
        return _to_response(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/mine", response_model=list[ConfirmedHoursResponse])
def list_my_hours(
    business_id: Optional[str] = None,
    caller: Caller = Depends(require_role(Role.EMPLOYEE)),
):
    db = SessionLocal()
    try:
        rows = confirmed_hours_service.list_for_employee(user_id=caller.user_id, business_id=business_id, db=db)
        return [_to_response(r) for r in rows]
    finally:
        db.close()


@router.get("/employer", response_model=list[EmployerHoursRow])
def list_business_hours(
    business_id: str,
    status: Optional[str] = None,
    week_start: Optional[date] = None,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        rows = confirmed_hours_service.list_for_employer(
            user_id=caller.user_id,
            business_id=business_id,
            status=status,
            week_start=week_start,
            db=db,
        )
        return [
            EmployerHoursRow(**_to_response(record).model_dump(), employee_name=full_name)
            for record, full_name in rows
        ]
    finally:
        db.close()


@router.post("/{record_id}/approve", response_model=ConfirmedHoursResponse)
def approve_hours(
    record_id: str,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        record = confirmed_hours_service.approve_confirmed_hours(
            user_id=caller.user_id,
            record_id=record_id,
            db=db,
        )
        db.commit()
        return _to_response(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{record_id}/reject", response_model=ConfirmedHoursResponse)
def reject_hours(
    record_id: str,
    payload: RejectRequest,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        record = confirmed_hours_service.reject_confirmed_hours(
            user_id=caller.user_id,
            record_id=record_id,
            reason=payload.reason,
            db=db,
        )
        db.commit()
        return _to_response(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
