from datetime import date
from decimal import Decimal

import pytest

from timecard.core.errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from timecard.database import SessionLocal
from timecard.models import ConfirmedHours
from timecard.models.confirmed_hours import DAY_FIELDS
from timecard.services import confirmed_hours_service as svc

EMPLOYER_USER_ID = "employer-1"
WEEK = date(2025, 3, 2)
WEEKDAYS_8H = {f"{d}_hours": 8 for d in ("monday", "tuesday", "wednesday", "thursday", "friday")}


@pytest.fixture
def setup(business_factory, employee_factory):
    business = business_factory()
    worker = employee_factory(business, user_id="worker-a")
    return business, worker


def _create(db, business, user_id="worker-a", **kwargs):
    record = svc.create_confirmed_hours(
        user_id=user_id,
        business_id=business.business_id,
        week_start=WEEK,
        db=db,
        **kwargs,
    )
    db.commit()
    return record


def test_create_seeds_from_posted_schedule(db, setup, schedule_factory):
    business, worker = setup
    schedule_factory(business, WEEK, shifts=[(worker.id, 1, 540, 1020), (worker.id, 3, 600, 840)])

    record = _create(db, business)

    assert record.status == "draft"
    assert record.monday_hours == Decimal("8.00")
    assert record.wednesday_hours == Decimal("4.00")
    assert record.total_hours == Decimal("12.00")


def test_seeded_minute_precise_shifts_round_to_quarter_hours(db, setup, schedule_factory):
    business, worker = setup
    # Mon 09:00-16:10 and Tue 09:00-16:05.
    schedule_factory(business, WEEK, shifts=[(worker.id, 1, 540, 970), (worker.id, 2, 540, 965)])

    record = _create(db, business)
    assert record.monday_hours == Decimal("7.25")
    assert record.tuesday_hours == Decimal("7.00")
    assert record.total_hours == Decimal("14.25")

    svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)
    record = svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db)
    db.commit()

    assert record.status == "approved"
    assert all(getattr(record, f) % Decimal("0.25") == 0 for f in DAY_FIELDS)


def test_submit_rejects_stored_hours_off_the_quarter_grid(db, setup):
    business, worker = setup
    record = ConfirmedHours(
        employee_id=worker.id,
        business_id=business.business_id,
        week_start_date=WEEK,
        monday_hours=Decimal("7.17"),
        total_hours=Decimal("7.17"),
        status="draft",
    )
    db.add(record)
    db.commit()

    with pytest.raises(InvalidInputError) as exc:
        svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)
    assert exc.value.field == "monday_hours"


def test_create_uses_supplied_hours_and_rejects_duplicates(db, setup):
    business, _ = setup

    record = _create(db, business, day_hours=WEEKDAYS_8H)
    assert record.total_hours == Decimal("40.00")

    with pytest.raises(ConflictError):
        _create(db, business, day_hours=WEEKDAYS_8H)


def test_create_requires_membership_and_a_sunday(db, setup, employee_factory, business_factory):
    business, _ = setup
    outsider_business = business_factory(employer_id="someone-else")
    employee_factory(outsider_business, user_id="outsider")

    with pytest.raises(ForbiddenError):
        _create(db, business, user_id="outsider")

    with pytest.raises(InvalidInputError) as exc:
        svc.create_confirmed_hours(
            user_id="worker-a",
            business_id=business.business_id,
            week_start=date(2025, 3, 3),
            db=db,
        )
    assert exc.value.field == "week_start"


def test_full_lifecycle_keeps_rejection_trail(db, setup):
    business, _ = setup
    record = _create(db, business, day_hours=WEEKDAYS_8H)

    record = svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)
    assert record.status == "submitted"
    assert record.submitted_at is not None

    record = svc.reject_confirmed_hours(
        user_id=EMPLOYER_USER_ID,
        record_id=record.id,
        reason="Hours do not match schedule",
        db=db,
    )
    assert record.status == "rejected"

    record = svc.update_confirmed_hours(
        user_id="worker-a",
        record_id=record.id,
        day_hours={"friday_hours": "6.5"},
        db=db,
    )
    assert record.status == "rejected"
    assert record.total_hours == Decimal("38.50")

    record = svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)
    record = svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db)
    db.commit()

    assert record.status == "approved"
    assert record.approved_by == EMPLOYER_USER_ID
    assert record.rejection_reason == "Hours do not match schedule"
    assert record.rejected_at is not None
    assert record.rejected_by == EMPLOYER_USER_ID


def test_guards_raise_instead_of_no_op(db, setup):
    business, _ = setup
    record = _create(db, business, day_hours=WEEKDAYS_8H)

    with pytest.raises(ConflictError):
        svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db)

    with pytest.raises(ConflictError):
        svc.reject_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, reason="no", db=db)

    svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)

    with pytest.raises(ConflictError):
        svc.update_confirmed_hours(user_id="worker-a", record_id=record.id, day_hours={"monday_hours": 1}, db=db)

    with pytest.raises(ConflictError):
        svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)

    svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db)

    with pytest.raises(ConflictError):
        svc.update_confirmed_hours(user_id="worker-a", record_id=record.id, notes="late edit", db=db)

    with pytest.raises(ConflictError):
        svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db)


def test_reject_without_reason_is_invalid_before_status_checks(db, setup):
    business, _ = setup
    record = _create(db, business, day_hours=WEEKDAYS_8H)

    for reason in (None, "", "   "):
        with pytest.raises(InvalidInputError) as exc:
            svc.reject_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, reason=reason, db=db)
        assert exc.value.field == "reason"


def test_only_owner_and_owning_employer_may_act(db, setup, employee_factory):
    business, _ = setup
    employee_factory(business, user_id="worker-b")
    record = _create(db, business, day_hours=WEEKDAYS_8H)

    with pytest.raises(ForbiddenError):
        svc.submit_confirmed_hours(user_id="worker-b", record_id=record.id, db=db)

    svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)

    with pytest.raises(ForbiddenError):
        svc.approve_confirmed_hours(user_id="another-employer", record_id=record.id, db=db)

    with pytest.raises(NotFoundError):
        svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id="missing", db=db)


def test_concurrent_approve_and_reject_only_one_wins(db, setup):
    business, _ = setup
    record = _create(db, business, day_hours=WEEKDAYS_8H)
    svc.submit_confirmed_hours(user_id="worker-a", record_id=record.id, db=db)
    db.commit()

    db1 = SessionLocal()
    db2 = SessionLocal()
    try:
        # Both sessions pass their status pre-check against the same submitted row.
        assert svc._get_record(db1, record.id).status == "submitted"
        assert svc._get_record(db2, record.id).status == "submitted"

        svc.approve_confirmed_hours(user_id=EMPLOYER_USER_ID, record_id=record.id, db=db1)
        db1.commit()

        with pytest.raises(ConflictError) as exc:
            svc._compare_and_swap(
                db2,
                record.id,
                ("submitted",),
                {"status": "rejected", "rejection_reason": "late", "rejected_by": "x"},
                action="reject",
            )
        assert exc.value.actual == "approved"
    finally:
        db1.rollback()
        db2.rollback()
        db1.close()
        db2.close()


def test_employer_listing_hides_drafts(db, setup, employee_factory):
    business, _ = setup
    employee_factory(business, user_id="worker-b", full_name="Bea")

    first = _create(db, business, day_hours=WEEKDAYS_8H)
    svc.submit_confirmed_hours(user_id="worker-a", record_id=first.id, db=db)
    _create(db, business, user_id="worker-b", day_hours=WEEKDAYS_8H)
    db.commit()

    rows = svc.list_for_employer(user_id=EMPLOYER_USER_ID, business_id=business.business_id, db=db)
    assert [r.id for r, _ in rows] == [first.id]

    for hidden in ("draft", "bogus"):
        with pytest.raises(InvalidInputError) as exc:
            svc.list_for_employer(user_id=EMPLOYER_USER_ID, business_id=business.business_id, status=hidden, db=db)
        assert exc.value.field == "status"

    submitted = svc.list_for_employer(
        user_id=EMPLOYER_USER_ID, business_id=business.business_id, status="submitted", db=db
    )
    assert [name for _, name in submitted] == ["Worker 1"]


def test_weekly_view_flags_discrepancy_against_posted_schedule(db, setup, schedule_factory):
    business, worker = setup
    schedule_factory(business, WEEK, shifts=[(worker.id, d, 540, 1020) for d in range(1, 6)])

    view = svc.get_weekly_hours(user_id="worker-a", business_id=business.business_id, week_start=WEEK, db=db)
    assert view["confirmed"] is None
    assert view["has_schedule"] is True
    assert view["scheduled"].total == Decimal("40.00")
    assert view["has_discrepancy"] is False

    record = _create(db, business, day_hours={**WEEKDAYS_8H, "friday_hours": "7.5"})
    view = svc.get_weekly_hours(user_id="worker-a", business_id=business.business_id, week_start=WEEK, db=db)
    assert view["confirmed"].id == record.id
    assert view["has_discrepancy"] is True
