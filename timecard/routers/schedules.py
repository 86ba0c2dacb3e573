from datetime import date

from fastapi import APIRouter, Depends

from timecard.core.authorization import Role, require_role
from timecard.database import SessionLocal
from timecard.deps.auth import Caller, require_auth
from timecard.schemas.schedule import ScheduleCreate, ScheduleResponse, ShiftCreate, ShiftResponse
from timecard.services import schedules_service

router = APIRouter(prefix="/schedules", tags=["Schedules"])


@router.post("", response_model=ScheduleResponse, status_code=201)
def create_schedule(
    payload: ScheduleCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        schedule = schedules_service.create_schedule(
            user_id=caller.user_id,
            business_id=payload.business_id,
            week_start=payload.week_start,
            db=db,
        )
        db.commit()
        return ScheduleResponse.model_validate(schedule)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{schedule_id}/shifts", response_model=ShiftResponse, status_code=201)
def add_shift(
    schedule_id: str,
    payload: ShiftCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        shift = schedules_service.add_shift(
            user_id=caller.user_id,
            schedule_id=schedule_id,
            employee_id=payload.employee_id,
            day_of_week=payload.day_of_week,
            start=payload.start,
            end=payload.end,
            db=db,
        )
        db.commit()
        return ShiftResponse.model_validate(shift)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.post("/{schedule_id}/post", response_model=ScheduleResponse)
def post_schedule(
    schedule_id: str,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        schedule = schedules_service.post_schedule(user_id=caller.user_id, schedule_id=schedule_id, db=db)
        db.commit()
        return ScheduleResponse.model_validate(schedule)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=ScheduleResponse)
def get_schedule(
    business_id: str,
    week_start: date,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        schedule = schedules_service.get_schedule(
            user_id=caller.user_id,
            role=caller.role,
            business_id=business_id,
            week_start=week_start,
            db=db,
        )
        return ScheduleResponse.model_validate(schedule)
    finally:
        db.close()
