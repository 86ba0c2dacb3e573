from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from timecard.models import PaymentRecord
from timecard.services.discrepancy_detector import (
    find_overlapping_paid,
    has_discrepancy,
    payment_warnings,
    periods_overlap,
)


@pytest.mark.parametrize(
    "confirmed, scheduled, expected",
    [
        ("40", "40", False),
        ("40.25", "40", False),
        ("39.75", "40", False),
        ("40.26", "40", True),
        ("39.5", "40", True),
        (None, "40", False),
        ("40", None, False),
    ],
)
def test_discrepancy_uses_quarter_hour_tolerance(confirmed, scheduled, expected):
    assert has_discrepancy(confirmed, scheduled) is expected


def test_tolerance_comes_from_settings(monkeypatch):
    monkeypatch.setenv("HOURS_DISCREPANCY_TOLERANCE", "1")
    assert has_discrepancy("39", "40") is False
    assert has_discrepancy("38.5", "40") is True


def test_adjacent_periods_do_not_overlap():
    assert periods_overlap(date(2025, 3, 2), date(2025, 3, 8), date(2025, 3, 8), date(2025, 3, 14))
    assert not periods_overlap(date(2025, 3, 2), date(2025, 3, 8), date(2025, 3, 9), date(2025, 3, 15))
    assert periods_overlap(date(2025, 3, 2), date(2025, 3, 31), date(2025, 3, 9), date(2025, 3, 15))


def _payment(business, employee, start, end, status="paid"):
    paid = status == "paid"
    return PaymentRecord(
        business_id=business.business_id,
        employee_id=employee.id,
        period_start=start,
        period_end=end,
        total_hours=Decimal("10.00"),
        hourly_rate=Decimal("15.00"),
        gross_pay=Decimal("150.00"),
        net_pay=Decimal("150.00"),
        hours_source="confirmed",
        status=status,
        payment_method="cash" if paid else None,
        paid_at=datetime(2025, 3, 10, tzinfo=timezone.utc) if paid else None,
    )


def test_find_overlapping_paid_ignores_calculated_and_self(db, business_factory, employee_factory):
    business = business_factory()
    worker = employee_factory(business)
    paid = _payment(business, worker, date(2025, 3, 2), date(2025, 3, 8))
    open_record = _payment(business, worker, date(2025, 3, 9), date(2025, 3, 15), status="calculated")
    db.add_all([paid, open_record])
    db.commit()

    def overlapping(start, end, exclude_id=None):
        return find_overlapping_paid(
            business_id=business.business_id,
            employee_id=worker.id,
            period_start=start,
            period_end=end,
            db=db,
            exclude_id=exclude_id,
        )

    assert [p.id for p in overlapping(date(2025, 3, 5), date(2025, 3, 11))] == [paid.id]
    assert overlapping(date(2025, 3, 9), date(2025, 3, 15)) == []
    assert overlapping(date(2025, 3, 2), date(2025, 3, 8), exclude_id=paid.id) == []


def _codes(warnings):
    return [w.code for w in warnings]


def test_clean_confirmed_payment_has_no_warnings():
    warnings = payment_warnings(
        total_hours=Decimal("40.00"),
        hourly_rate=Decimal("15.00"),
        net_pay=Decimal("630.00"),
        hours_source="confirmed",
    )
    assert warnings == []


def test_every_advisory_condition_is_reported():
    class Paid:
        id = "p-1"
        period_start = date(2025, 3, 2)
        period_end = date(2025, 3, 8)

    warnings = payment_warnings(
        total_hours=Decimal("45.00"),
        hourly_rate=Decimal("5.00"),
        net_pay=Decimal("-10.00"),
        hours_source="mixed",
        discrepancy=True,
        overlapping=[Paid()],
        weekly_hours={date(2025, 3, 2): Decimal("45.00"), date(2025, 3, 9): Decimal("0.00")},
    )

    assert _codes(warnings) == [
        "overlapping_payment",
        "hours_discrepancy",
        "scheduled_hours_used",
        "overtime_hours",
        "negative_net_pay",
        "rate_below_minimum_wage",
    ]
    assert warnings[0].level == "error"
    assert warnings[0].details["payment_ids"] == ["p-1"]
    assert warnings[3].details["weeks"] == {"2025-03-02": "45.00"}


def test_overtime_is_per_week_when_weeks_are_known():
    # 60 hours over two weeks is not overtime in either week.
    warnings = payment_warnings(
        total_hours=Decimal("60.00"),
        hourly_rate=Decimal("15.00"),
        net_pay=Decimal("900.00"),
        hours_source="confirmed",
        weekly_hours={date(2025, 3, 2): Decimal("30.00"), date(2025, 3, 9): Decimal("30.00")},
    )
    assert "overtime_hours" not in _codes(warnings)

    manual = payment_warnings(
        total_hours=Decimal("60.00"),
        hourly_rate=Decimal("15.00"),
        net_pay=Decimal("900.00"),
        hours_source="manual",
    )
    assert _codes(manual) == ["overtime_hours"]


def test_zero_hours_warns():
    warnings = payment_warnings(
        total_hours=Decimal("0.00"),
        hourly_rate=Decimal("15.00"),
        net_pay=Decimal("0.00"),
        hours_source="scheduled",
    )
    assert _codes(warnings) == ["scheduled_hours_used", "zero_hours"]
    assert all(w.as_dict()["level"] in ("info", "warning") for w in warnings)
