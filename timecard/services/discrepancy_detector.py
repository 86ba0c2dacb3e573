from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from timecard.core.config import get_settings
from timecard.models.payment_record import PaymentRecord
from timecard.services.hours import quantize


@dataclass(frozen=True)
class PaymentWarning:
    """Advisory only. Nothing in the payment flow is blocked by a warning."""

    code: str
    level: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "level": self.level, "message": self.message, "details": self.details}


def has_discrepancy(
    confirmed_total: Optional[Any],
    scheduled_total: Optional[Any],
    *,
    tolerance: Optional[Decimal] = None,
) -> bool:
    if confirmed_total is None or scheduled_total is None:
        return False
    if tolerance is None:
        tolerance = get_settings().hours_discrepancy_tolerance
    return abs(quantize(confirmed_total) - quantize(scheduled_total)) > tolerance


def periods_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Inclusive ranges; touching end-to-start on consecutive days is not an overlap."""
    return start <= other_end and end >= other_start


def find_overlapping_paid(
    *,
    business_id: str,
    employee_id: str,
    period_start: date,
    period_end: date,
    db: Session,
    exclude_id: Optional[str] = None,
) -> list[PaymentRecord]:
    q = (
        db.query(PaymentRecord)
        .filter(PaymentRecord.business_id == str(business_id))
        .filter(PaymentRecord.employee_id == str(employee_id))
        .filter(PaymentRecord.status == "paid")
        .filter(PaymentRecord.period_start <= period_end)
        .filter(PaymentRecord.period_end >= period_start)
    )
    if exclude_id is not None:
        q = q.filter(PaymentRecord.id != str(exclude_id))
    return q.order_by(PaymentRecord.period_start.asc()).all()


def payment_warnings(
    *,
    total_hours: Decimal,
    hourly_rate: Optional[Decimal],
    net_pay: Optional[Decimal],
    hours_source: str,
    discrepancy: bool = False,
    overlapping: Iterable[PaymentRecord] = (),
    weekly_hours: Optional[dict[date, Decimal]] = None,
) -> list[PaymentWarning]:
    settings = get_settings()
    warnings: list[PaymentWarning] = []

    overlapping = list(overlapping)
    if overlapping:
        warnings.append(
            PaymentWarning(
                code="overlapping_payment",
                level="error",
                message="A paid record already covers part of this period",
                details={
                    "payment_ids": [p.id for p in overlapping],
                    "periods": [
                        {"period_start": p.period_start.isoformat(), "period_end": p.period_end.isoformat()}
                        for p in overlapping
                    ],
                },
            )
        )

    if discrepancy:
        warnings.append(
            PaymentWarning(
                code="hours_discrepancy",
                level="warning",
                message="Confirmed hours differ from the posted schedule",
                details={"tolerance": str(settings.hours_discrepancy_tolerance)},
            )
        )

    if hours_source in ("scheduled", "mixed"):
        warnings.append(
            PaymentWarning(
                code="scheduled_hours_used",
                level="info",
                message="Scheduled hours were used where no approved confirmation exists",
                details={"hours_source": hours_source},
            )
        )

    if total_hours == 0:
        warnings.append(
            PaymentWarning(code="zero_hours", level="warning", message="No hours found for this period")
        )

    threshold = settings.overtime_threshold_hours
    if weekly_hours:
        over = {w.isoformat(): str(h) for w, h in sorted(weekly_hours.items()) if h > threshold}
    else:
        over = {"period": str(total_hours)} if total_hours > threshold else {}
    if over:
        warnings.append(
            PaymentWarning(
                code="overtime_hours",
                level="warning",
                message=f"Hours exceed {threshold} in a week",
                details={"weeks": over, "threshold": str(threshold)},
            )
        )

    if net_pay is not None and net_pay < 0:
        warnings.append(
            PaymentWarning(
                code="negative_net_pay",
                level="warning",
                message="Advances and deductions exceed gross pay",
                details={"net_pay": str(net_pay)},
            )
        )

    if hourly_rate is not None and hourly_rate < settings.minimum_hourly_wage:
        warnings.append(
            PaymentWarning(
                code="rate_below_minimum_wage",
                level="warning",
                message=f"Hourly rate is below the {settings.minimum_hourly_wage} minimum wage",
                details={"hourly_rate": str(hourly_rate)},
            )
        )

    return warnings
