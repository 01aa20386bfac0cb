from datetime import datetime, timedelta, timezone

import pytest

from agrorent.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from agrorent.models.booking import BookingStatus
from agrorent.models.equipment import PricingType
from agrorent.services import bookings as svc

START = datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def parties(make_user, make_equipment):
    owner = make_user(name="Ramesh Patil")
    taker = make_user(name="Suresh Jadhav")
    equipment = make_equipment(owner)
    return owner, taker, equipment


def _request(db, taker, equipment, start=START, end=None):
    return svc.create_booking(db, taker.phone, equipment.id, start, end or start + timedelta(days=3))


def _completed(db, owner, taker, equipment, **kwargs):
    booking = _request(db, taker, equipment, **kwargs)
    svc.approve_booking(db, owner.phone, booking.id)
    svc.start_booking(db, owner.phone, booking.id)
    return svc.complete_booking(db, owner.phone, booking.id)


def test_create_booking_prices_and_snapshots(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)

    assert booking.status == BookingStatus.PENDING
    assert booking.pricing_type == PricingType.DAILY
    assert booking.total_cost == 3000.0
    assert booking.duration_hours == 72
    assert booking.renter_id == owner.id
    assert booking.renter_name == "Ramesh Patil"
    assert booking.rent_taker_name == "Suresh Jadhav"
    assert booking.equipment_name == equipment.name
    assert booking.equipment_category == "TRACTOR"


def test_snapshots_survive_renames(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    owner.name = "Ramesh P."
    equipment.name = "Renamed tractor"
    db.commit()
    db.refresh(booking)
    assert booking.renter_name == "Ramesh Patil"
    assert booking.equipment_name == "Mahindra 575 DI"


def test_aware_datetimes_are_stored_as_utc(db, parties):
    _, taker, equipment = parties
    ist = timezone(timedelta(hours=5, minutes=30))
    start = datetime(2026, 3, 2, 14, 30, tzinfo=ist)
    booking = _request(db, taker, equipment, start=start, end=start + timedelta(hours=4))
    assert booking.start_date == datetime(2026, 3, 2, 9, 0)
    assert booking.pricing_type == PricingType.HOURLY
    assert booking.total_cost == 400.0


def test_overlapping_request_is_rejected(db, parties, make_user):
    _, taker, equipment = parties
    _request(db, taker, equipment)
    other = make_user()
    with pytest.raises(ConflictError, match="already booked"):
        _request(db, other, equipment, start=START + timedelta(days=3))


def test_cancelled_booking_frees_the_slot(db, parties):
    _, taker, equipment = parties
    booking = _request(db, taker, equipment)
    svc.cancel_booking(db, taker.phone, booking.id)
    assert _request(db, taker, equipment).status == BookingStatus.PENDING


def test_unknown_requester_or_equipment(db, parties):
    _, taker, equipment = parties
    with pytest.raises(NotFoundError):
        svc.create_booking(db, "0000000000", equipment.id, START, START + timedelta(days=1))
    with pytest.raises(NotFoundError):
        svc.create_booking(db, taker.phone, 9999, START, START + timedelta(days=1))


def test_end_before_start_is_rejected(db, parties):
    _, taker, equipment = parties
    with pytest.raises(ValidationError):
        svc.create_booking(db, taker.phone, equipment.id, START, START)


def test_unavailable_equipment_cannot_be_booked(db, parties):
    _, taker, equipment = parties
    equipment.available = False
    db.commit()
    with pytest.raises(ConflictError):
        _request(db, taker, equipment)


def test_equipment_without_rates_cannot_be_booked(db, parties):
    _, taker, equipment = parties
    equipment.price_per_hour = None
    equipment.price_per_day = None
    equipment.price_per_week = None
    db.commit()
    with pytest.raises(ValidationError):
        _request(db, taker, equipment)


def test_only_owner_can_approve(db, parties):
    _, taker, equipment = parties
    booking = _request(db, taker, equipment)
    with pytest.raises(UnauthorizedError):
        svc.approve_booking(db, taker.phone, booking.id)


def test_reject_stores_reason(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    booking = svc.reject_booking(db, owner.phone, booking.id, "  Tractor under <b>repair</b> ")
    assert booking.status == BookingStatus.REJECTED
    assert booking.rejection_reason == "Tractor under repair"


def test_start_counts_rental(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    svc.approve_booking(db, owner.phone, booking.id)
    booking = svc.start_booking(db, owner.phone, booking.id)
    db.refresh(equipment)
    assert booking.status == BookingStatus.ACTIVE
    assert equipment.times_rented == 1


def test_start_requires_approval(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    with pytest.raises(InvalidTransitionError):
        svc.start_booking(db, owner.phone, booking.id)
    db.refresh(equipment)
    assert equipment.times_rented == 0


def test_either_party_can_cancel(db, parties, make_user):
    owner, taker, equipment = parties
    first = _request(db, taker, equipment)
    assert svc.cancel_booking(db, owner.phone, first.id).status == BookingStatus.CANCELLED

    second = _request(db, taker, equipment)
    with pytest.raises(UnauthorizedError):
        svc.cancel_booking(db, make_user().phone, second.id)


def test_completed_booking_cannot_be_cancelled(db, parties):
    owner, taker, equipment = parties
    booking = _completed(db, owner, taker, equipment)
    with pytest.raises(InvalidStateError, match="Completed bookings"):
        svc.cancel_booking(db, taker.phone, booking.id)


def test_rejected_booking_cannot_be_cancelled(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    svc.reject_booking(db, owner.phone, booking.id)
    with pytest.raises(InvalidTransitionError):
        svc.cancel_booking(db, taker.phone, booking.id)


def test_rating_equipment_recomputes_average(db, parties):
    owner, taker, equipment = parties
    first = _completed(db, owner, taker, equipment)
    second = _completed(db, owner, taker, equipment, start=START + timedelta(days=10))

    svc.rate_by_rent_taker(db, taker.phone, first.id, 5, "Ran well")
    booking = svc.rate_by_rent_taker(db, taker.phone, second.id, 4)
    db.refresh(equipment)

    assert booking.rating_by_rent_taker == 4
    assert equipment.rating == 4.5
    assert equipment.total_ratings == 2


def test_rating_again_replaces_previous(db, parties):
    owner, taker, equipment = parties
    booking = _completed(db, owner, taker, equipment)
    svc.rate_by_rent_taker(db, taker.phone, booking.id, 2)
    svc.rate_by_rent_taker(db, taker.phone, booking.id, 5)
    db.refresh(equipment)
    assert (equipment.rating, equipment.total_ratings) == (5.0, 1)


def test_rating_requires_completed_booking(db, parties):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    with pytest.raises(InvalidStateError):
        svc.rate_by_rent_taker(db, taker.phone, booking.id, 5)
    with pytest.raises(InvalidStateError):
        svc.rate_by_renter(db, owner.phone, booking.id, 5)


def test_only_rent_taker_rates_equipment(db, parties):
    owner, taker, equipment = parties
    booking = _completed(db, owner, taker, equipment)
    with pytest.raises(UnauthorizedError):
        svc.rate_by_rent_taker(db, owner.phone, booking.id, 5)


@pytest.mark.parametrize("rating", [0, 6, 4.5, True])
def test_rating_out_of_range_is_rejected(db, parties, rating):
    owner, taker, equipment = parties
    booking = _completed(db, owner, taker, equipment)
    with pytest.raises(ValidationError):
        svc.rate_by_rent_taker(db, taker.phone, booking.id, rating)


def test_renter_rates_rent_taker(db, parties):
    owner, taker, equipment = parties
    booking = _completed(db, owner, taker, equipment)
    booking = svc.rate_by_renter(db, owner.phone, booking.id, 3, "Returned late")
    db.refresh(taker)
    assert booking.review_by_renter == "Returned late"
    assert (taker.rating, taker.total_ratings) == (3.0, 1)


def test_booking_lists(db, parties, make_user):
    owner, taker, equipment = parties
    first = _request(db, taker, equipment)
    second = _request(db, taker, equipment, start=START + timedelta(days=10))
    svc.approve_booking(db, owner.phone, first.id)

    assert [b.id for b in svc.get_rent_taker_bookings(db, taker.phone)] == [second.id, first.id]
    assert [b.id for b in svc.get_renter_bookings(db, owner.phone)] == [second.id, first.id]
    assert [b.id for b in svc.get_pending_bookings_for_renter(db, owner.phone)] == [second.id]
    assert [
        b.id for b in svc.get_renter_bookings(db, owner.phone, BookingStatus.APPROVED)
    ] == [first.id]
    assert svc.get_rent_taker_bookings(db, owner.phone) == []


def test_get_booking_is_limited_to_parties(db, parties, make_user):
    owner, taker, equipment = parties
    booking = _request(db, taker, equipment)
    assert svc.get_booking(db, owner.phone, booking.id).id == booking.id
    with pytest.raises(UnauthorizedError):
        svc.get_booking(db, make_user().phone, booking.id)
    with pytest.raises(NotFoundError):
        svc.get_booking(db, owner.phone, 9999)
