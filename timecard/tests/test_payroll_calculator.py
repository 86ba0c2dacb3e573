from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from timecard.core.errors import InvalidInputError
from timecard.models import ConfirmedHours
from timecard.services.hours import WeekHours
from timecard.services.payroll_calculator import calculate_pay, resolve_hours_for_period

STAMP = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_gross_and_net_follow_the_formula():
    pay = calculate_pay("40", "15", advances="20", bonuses="50", deductions="0")

    assert pay.gross_pay == Decimal("600.00")
    assert pay.net_pay == Decimal("630.00")


def test_net_pay_is_not_clamped():
    pay = calculate_pay("2", "10", advances="50", deductions="5")
    assert pay.gross_pay == Decimal("20.00")
    assert pay.net_pay == Decimal("-35.00")


def test_gross_rounds_half_up_to_cents():
    pay = calculate_pay("0.25", "10.01")
    assert pay.gross_pay == Decimal("2.50")

    pay = calculate_pay("1.5", "7.25")
    assert pay.gross_pay == Decimal("10.88")


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"hours": "8", "rate": None}, "hourly_rate"),
        ({"hours": "8", "rate": "0"}, "hourly_rate"),
        ({"hours": "-1", "rate": "15"}, "total_hours"),
        ({"hours": "8", "rate": "15", "advances": "-5"}, "advances"),
        ({"hours": "8", "rate": "15", "bonuses": "-5"}, "bonuses"),
        ({"hours": "8", "rate": "15", "deductions": "x"}, "deductions"),
    ],
)
def test_invalid_inputs_name_the_field(kwargs, field):
    with pytest.raises(InvalidInputError) as exc:
        calculate_pay(**kwargs)
    assert exc.value.field == field


def _approved(business, employee, week_start, **days):
    hours = WeekHours.from_mapping(days)
    return ConfirmedHours(
        employee_id=employee.id,
        business_id=business.business_id,
        week_start_date=week_start,
        status="approved",
        submitted_at=STAMP,
        approved_at=STAMP,
        approved_by="employer-1",
        **hours.as_dict(),
    )


def test_scheduled_hours_are_the_fallback(db, business_factory, employee_factory, schedule_factory):
    business = business_factory()
    worker = employee_factory(business)
    schedule_factory(business, date(2025, 3, 2), shifts=[(worker.id, d, 540, 1020) for d in range(1, 5)])

    result = resolve_hours_for_period(
        business_id=business.business_id,
        employee_id=worker.id,
        period_start=date(2025, 3, 2),
        period_end=date(2025, 3, 8),
        db=db,
    )

    assert result.total_hours == Decimal("32.00")
    assert result.source == "scheduled"
    assert result.has_discrepancy is False


def test_per_day_resolution_mixes_confirmed_and_scheduled(db, business_factory, employee_factory, schedule_factory):
    business = business_factory()
    worker = employee_factory(business)
    schedule_factory(business, date(2025, 3, 2), shifts=[(worker.id, d, 540, 1020) for d in range(1, 6)])
    schedule_factory(business, date(2025, 3, 9), shifts=[(worker.id, d, 540, 1020) for d in range(1, 6)])
    # Week one confirmed a short Friday; week two has nothing approved.
    db.add(
        _approved(
            business,
            worker,
            date(2025, 3, 2),
            monday_hours=8,
            tuesday_hours=8,
            wednesday_hours=8,
            thursday_hours=8,
            friday_hours=4,
        )
    )
    db.commit()

    result = resolve_hours_for_period(
        business_id=business.business_id,
        employee_id=worker.id,
        period_start=date(2025, 3, 6),  # Thursday
        period_end=date(2025, 3, 11),  # Tuesday
        db=db,
    )

    # Thu 8 + Fri 4 confirmed; Mon 8 + Tue 8 scheduled.
    assert result.total_hours == Decimal("28.00")
    assert result.source == "mixed"
    assert result.confirmed_hours == Decimal("12.00")
    assert result.has_discrepancy is True
    assert [w.source for w in result.weeks] == ["confirmed", "scheduled"]
    assert result.weekly_hours == {date(2025, 3, 2): Decimal("12.00"), date(2025, 3, 9): Decimal("16.00")}


def test_unapproved_confirmations_are_ignored(db, business_factory, employee_factory, schedule_factory):
    business = business_factory()
    worker = employee_factory(business)
    schedule_factory(business, date(2025, 3, 2), shifts=[(worker.id, 1, 540, 1020)])
    record = _approved(business, worker, date(2025, 3, 2), monday_hours=10)
    record.status = "submitted"
    record.approved_at = None
    record.approved_by = None
    db.add(record)
    db.commit()

    result = resolve_hours_for_period(
        business_id=business.business_id,
        employee_id=worker.id,
        period_start=date(2025, 3, 2),
        period_end=date(2025, 3, 8),
        db=db,
    )
    assert result.total_hours == Decimal("8.00")
    assert result.source == "scheduled"


def test_no_discrepancy_without_a_posted_schedule(db, business_factory, employee_factory):
    business = business_factory()
    worker = employee_factory(business)
    db.add(_approved(business, worker, date(2025, 3, 2), monday_hours=8))
    db.commit()

    result = resolve_hours_for_period(
        business_id=business.business_id,
        employee_id=worker.id,
        period_start=date(2025, 3, 2),
        period_end=date(2025, 3, 8),
        db=db,
    )
    assert result.source == "confirmed"
    assert result.total_hours == Decimal("8.00")
    assert result.has_discrepancy is False


def test_inverted_period_is_invalid(db):
    with pytest.raises(InvalidInputError):
        resolve_hours_for_period(
            business_id="b",
            employee_id="e",
            period_start=date(2025, 3, 8),
            period_end=date(2025, 3, 2),
            db=db,
        )
