from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import DBAPIError

from timecard.database import SessionLocal
from timecard.models import PaymentRecord


def _payment(business, employee, status):
    paid = status == "paid"
    return PaymentRecord(
        business_id=business.business_id,
        employee_id=employee.id,
        period_start=date(2025, 3, 2),
        period_end=date(2025, 3, 8),
        total_hours=Decimal("40.00"),
        hourly_rate=Decimal("15.00"),
        gross_pay=Decimal("600.00"),
        net_pay=Decimal("600.00"),
        hours_source="confirmed",
        status=status,
        payment_method="cash" if paid else None,
        paid_at=datetime.now(timezone.utc) if paid else None,
    )


@pytest.fixture
def worker(business_factory, employee_factory):
    business = business_factory()
    return business, employee_factory(business)


def test_paid_payment_update_is_blocked(worker):
    business, employee = worker
    db = SessionLocal()
    try:
        row = _payment(business, employee, "paid")
        db.add(row)
        db.commit()
        db.refresh(row)

        row.bonuses = Decimal("100.00")
        row.net_pay = Decimal("700.00")
        with pytest.raises(DBAPIError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_paid_payment_delete_is_blocked(worker):
    business, employee = worker
    db = SessionLocal()
    try:
        row = _payment(business, employee, "paid")
        db.add(row)
        db.commit()

        db.delete(row)
        with pytest.raises(DBAPIError):
            db.commit()
    finally:
        db.rollback()
        db.close()


def test_calculated_payment_can_still_be_updated(worker):
    business, employee = worker
    db = SessionLocal()
    try:
        row = _payment(business, employee, "calculated")
        db.add(row)
        db.commit()

        row.deductions = Decimal("10.00")
        row.net_pay = Decimal("590.00")
        db.commit()
        db.refresh(row)
        assert row.net_pay == Decimal("590.00")
    finally:
        db.rollback()
        db.close()
