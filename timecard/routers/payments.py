from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from timecard.core.authorization import Role, require_role
from timecard.database import SessionLocal
from timecard.deps.auth import Caller, require_auth
from timecard.schemas.payments import (
    CurrentRateRow,
    HoursBreakdownRow,
    HoursResolutionResponse,
    MarkPaidRequest,
    PaymentCreate,
    PaymentReportResponse,
    PaymentResponse,
    PaymentResultResponse,
    PaymentRow,
    PaymentUpdate,
    RateCreate,
    RateResponse,
    WarningResponse,
)
from timecard.services import payments_service, rates_service
from timecard.services.hours import quantize
from timecard.services.payments_service import PaymentResult

router = APIRouter(prefix="/payments", tags=["Payments"])


def _result_response(result: PaymentResult) -> PaymentResultResponse:
    return PaymentResultResponse(
        payment=PaymentResponse.model_validate(result.record),
        hours=HoursResolutionResponse.model_validate(result.resolution),
        warnings=[WarningResponse.model_validate(w) for w in result.warnings],
        created=result.created,
    )


@router.post("", response_model=PaymentResultResponse)
def save_payment(
    payload: PaymentCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        result = payments_service.save_payment(
            user_id=caller.user_id,
            business_id=payload.business_id,
            employee_id=payload.employee_id,
            period_start=payload.period_start,
            period_end=payload.period_end,
            total_hours=payload.total_hours,
            hourly_rate=payload.hourly_rate,
            advances=payload.advances,
            bonuses=payload.bonuses,
            deductions=payload.deductions,
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return _result_response(result)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("", response_model=list[PaymentRow])
def list_payments(
    business_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[str] = None,
    caller: Caller = Depends(require_auth),
):
    db = SessionLocal()
    try:
        rows = payments_service.list_payments(
            user_id=caller.user_id,
            role=caller.role,
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            employee_id=employee_id,
            db=db,
        )
        return [
            PaymentRow(**PaymentResponse.model_validate(record).model_dump(), employee_name=full_name)
            for record, full_name in rows
        ]
    finally:
        db.close()


@router.get("/reports", response_model=PaymentReportResponse)
def payment_report(
    business_id: str,
    start_date: date,
    end_date: date,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        return payments_service.payment_report(
            user_id=caller.user_id,
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            db=db,
        )
    finally:
        db.close()


@router.get("/hours-breakdown", response_model=list[HoursBreakdownRow])
def hours_breakdown(
    business_id: str,
    start_date: date,
    end_date: date,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        rows = payments_service.hours_breakdown(
            user_id=caller.user_id,
            business_id=business_id,
            start_date=start_date,
            end_date=end_date,
            db=db,
        )
        return [
            HoursBreakdownRow(
                employee_id=row["employee"].id,
                full_name=row["employee"].full_name,
                hours=HoursResolutionResponse.model_validate(row["resolution"]),
                hourly_rate=row["hourly_rate"],
                estimated_gross_pay=(
                    None
                    if row["hourly_rate"] is None
                    else quantize(row["resolution"].total_hours * row["hourly_rate"])
                ),
                overlapping_payment_ids=row["overlapping_payment_ids"],
                existing_payment=(
                    None
                    if row["existing_payment"] is None
                    else PaymentResponse.model_validate(row["existing_payment"])
                ),
            )
            for row in rows
        ]
    finally:
        db.close()


@router.post("/rates", response_model=RateResponse, status_code=201)
def set_rate(
    payload: RateCreate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        row = rates_service.set_rate(
            user_id=caller.user_id,
            business_id=payload.business_id,
            employee_id=payload.employee_id,
            hourly_rate=payload.hourly_rate,
            effective_from=payload.effective_from,
            db=db,
        )
        db.commit()
        return RateResponse.model_validate(row)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.get("/rates", response_model=list[CurrentRateRow])
def current_rates(
    business_id: str,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        rows = rates_service.current_rates(user_id=caller.user_id, business_id=business_id, db=db)
        return [
            CurrentRateRow(
                employee_id=employee.id,
                full_name=employee.full_name,
                hourly_rate=None if rate is None else rate.hourly_rate,
                effective_from=None if rate is None else rate.effective_from,
            )
            for employee, rate in rows
        ]
    finally:
        db.close()


@router.get("/rates/history", response_model=list[RateResponse])
def rate_history(
    business_id: str,
    employee_id: str,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        rows = rates_service.rate_history(
            user_id=caller.user_id,
            business_id=business_id,
            employee_id=employee_id,
            db=db,
        )
        return [RateResponse.model_validate(r) for r in rows]
    finally:
        db.close()


@router.put("/{payment_id}", response_model=PaymentResultResponse)
def update_payment(
    payment_id: str,
    payload: PaymentUpdate,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        result = payments_service.update_payment(
            user_id=caller.user_id,
            payment_id=payment_id,
            total_hours=payload.total_hours,
            hourly_rate=payload.hourly_rate,
            advances=payload.advances,
            bonuses=payload.bonuses,
            deductions=payload.deductions,
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return _result_response(result)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@router.patch("/{payment_id}/mark-paid", response_model=PaymentResponse)
def mark_paid(
    payment_id: str,
    payload: MarkPaidRequest,
    caller: Caller = Depends(require_role(Role.EMPLOYER)),
):
    db = SessionLocal()
    try:
        record = payments_service.mark_paid(
            user_id=caller.user_id,
            payment_id=payment_id,
            payment_method=payload.payment_method,
            notes=payload.notes,
            db=db,
        )
        db.commit()
        return PaymentResponse.model_validate(record)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
