# AgroRent - Farm Equipment Rental Marketplace Backend
# Copyright (C) 2025 AgroRent contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Booking requests and lifecycle operations.

Every operation reads and writes a single booking record (plus the
equipment or user summary its side effect touches) and commits once.

The conflict check in :func:`create_booking` and the insert that follows
are not one atomic step: two overlapping requests that arrive together can
both pass the check before either commits.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from agrorent.config import get_settings
from agrorent.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from agrorent.models.booking import Booking, BookingStatus
from agrorent.models.equipment import Equipment
from agrorent.models.user import User
from agrorent.services.conflicts import find_conflicting_bookings
from agrorent.services.lifecycle import BookingAction, next_status
from agrorent.services.pricing import quote_for_equipment
from agrorent.services.ratings import recompute_equipment_rating, recompute_user_rating
from agrorent.services.users import get_user_by_phone
from agrorent.utils.helpers import sanitize_optional, to_naive_utc

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def get_booking_or_404(db: Session, booking_id: int) -> Booking:
    """Get booking by id.

    Raises:
        NotFoundError: If the booking does not exist.
    """
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def _get_booking_for_renter(db: Session, renter_phone: str, booking_id: int) -> Booking:
    renter = get_user_by_phone(db, renter_phone)
    booking = get_booking_or_404(db, booking_id)
    if booking.renter_id != renter.id:
        raise UnauthorizedError("This booking does not belong to you")
    return booking


def _apply_transition(booking: Booking, action: BookingAction) -> BookingStatus:
    previous = booking.status
    booking.status = next_status(booking.status, action)
    logger.info(
        "Booking %s: %s -> %s (%s)",
        booking.id,
        previous.value,
        booking.status.value,
        action.value,
    )
    return booking.status


def create_booking(
    db: Session,
    requester_phone: str,
    equipment_id: int,
    start: datetime,
    end: datetime,
    notes: Optional[str] = None,
) -> Booking:
    """Request a rental of ``equipment_id`` from ``start`` to ``end``.

    Raises:
        NotFoundError: Unknown requester or equipment.
        ValidationError: End not after start, or equipment has no rates.
        ConflictError: Equipment unavailable or the interval is already held.
    """
    settings = get_settings()
    rent_taker = get_user_by_phone(db, requester_phone)

    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise NotFoundError("Equipment not found")

    start = to_naive_utc(start)
    end = to_naive_utc(end)
    if end <= start:
        raise ValidationError("End date must be after start date")

    if not equipment.available:
        raise ConflictError("Equipment is not available for booking")

    if not equipment.has_rates:
        raise ValidationError("Equipment has no rental rates set")

    conflicts = find_conflicting_bookings(db, equipment.id, start, end)
    if conflicts:
        raise ConflictError("Equipment is already booked for the selected dates")

    quote = quote_for_equipment(equipment, start, end)

    booking = Booking(
        equipment_id=equipment.id,
        equipment_name=equipment.name,
        equipment_category=equipment.category.value,
        renter_id=equipment.owner_id,
        renter_name=equipment.owner_name,
        renter_phone=equipment.owner_phone,
        rent_taker_id=rent_taker.id,
        rent_taker_name=rent_taker.name,
        rent_taker_phone=rent_taker.phone,
        start_date=start,
        end_date=end,
        duration_hours=quote.duration_hours,
        total_cost=quote.total_cost,
        pricing_type=quote.pricing_type,
        notes=sanitize_optional(notes, settings.booking.max_notes_length),
        status=BookingStatus.PENDING,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)

    logger.info(
        "Booking %s requested by user %s for equipment %s: %s %.2f",
        booking.id,
        rent_taker.id,
        equipment.id,
        quote.pricing_type.value,
        quote.total_cost,
    )
    return booking


def approve_booking(db: Session, renter_phone: str, booking_id: int) -> Booking:
    """Approve a pending request. Renter only."""
    booking = _get_booking_for_renter(db, renter_phone, booking_id)
    _apply_transition(booking, BookingAction.APPROVE)
    db.commit()
    db.refresh(booking)
    return booking


def reject_booking(
    db: Session, renter_phone: str, booking_id: int, reason: Optional[str] = None
) -> Booking:
    """Reject a pending request, recording the reason. Renter only."""
    settings = get_settings()
    booking = _get_booking_for_renter(db, renter_phone, booking_id)
    _apply_transition(booking, BookingAction.REJECT)
    booking.rejection_reason = sanitize_optional(reason, settings.booking.max_reason_length)
    db.commit()
    db.refresh(booking)
    return booking


def start_booking(db: Session, renter_phone: str, booking_id: int) -> Booking:
    """Hand over approved equipment and count the rental. Renter only."""
    booking = _get_booking_for_renter(db, renter_phone, booking_id)
    _apply_transition(booking, BookingAction.START)

    equipment = db.query(Equipment).filter(Equipment.id == booking.equipment_id).first()
    if equipment is not None:
        equipment.times_rented = (equipment.times_rented or 0) + 1

    db.commit()
    db.refresh(booking)
    return booking


def complete_booking(db: Session, renter_phone: str, booking_id: int) -> Booking:
    """Close an active rental. Renter only."""
    booking = _get_booking_for_renter(db, renter_phone, booking_id)
    _apply_transition(booking, BookingAction.COMPLETE)
    db.commit()
    db.refresh(booking)
    return booking


def cancel_booking(db: Session, actor_phone: str, booking_id: int) -> Booking:
    """Cancel a pending, approved or active booking. Either party."""
    actor = get_user_by_phone(db, actor_phone)
    booking = get_booking_or_404(db, booking_id)

    if not booking.is_party(actor.id):
        raise UnauthorizedError("You can only cancel your own bookings")

    if booking.status == BookingStatus.COMPLETED:
        raise InvalidStateError("Completed bookings cannot be cancelled")

    _apply_transition(booking, BookingAction.CANCEL)
    db.commit()
    db.refresh(booking)
    return booking


def _validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be a whole number")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def rate_by_rent_taker(
    db: Session,
    rent_taker_phone: str,
    booking_id: int,
    rating: int,
    review: Optional[str] = None,
) -> Booking:
    """Rate the equipment of a completed booking and refresh its average.

    Rating again replaces the earlier rating.
    """
    settings = get_settings()
    rating = _validate_rating(rating)
    rent_taker = get_user_by_phone(db, rent_taker_phone)
    booking = get_booking_or_404(db, booking_id)

    if booking.rent_taker_id != rent_taker.id:
        raise UnauthorizedError("You can only rate your own bookings")

    if booking.status != BookingStatus.COMPLETED:
        raise InvalidStateError("Can only rate completed bookings")

    booking.rating_by_rent_taker = rating
    booking.review_by_rent_taker = sanitize_optional(review, settings.booking.max_review_length)
    db.flush()

    recompute_equipment_rating(db, booking.equipment_id)
    db.commit()
    db.refresh(booking)
    return booking


def rate_by_renter(
    db: Session,
    renter_phone: str,
    booking_id: int,
    rating: int,
    review: Optional[str] = None,
) -> Booking:
    """Rate the rent taker of a completed booking and refresh their average.

    Rating again replaces the earlier rating.
    """
    settings = get_settings()
    rating = _validate_rating(rating)
    booking = _get_booking_for_renter(db, renter_phone, booking_id)

    if booking.status != BookingStatus.COMPLETED:
        raise InvalidStateError("Can only rate completed bookings")

    booking.rating_by_renter = rating
    booking.review_by_renter = sanitize_optional(review, settings.booking.max_review_length)
    db.flush()

    recompute_user_rating(db, booking.rent_taker_id)
    db.commit()
    db.refresh(booking)
    return booking


def get_booking(db: Session, actor_phone: str, booking_id: int) -> Booking:
    """Get a booking visible to one of its parties (or an admin)."""
    actor = get_user_by_phone(db, actor_phone)
    booking = get_booking_or_404(db, booking_id)
    if not booking.is_party(actor.id) and not actor.is_admin:
        raise UnauthorizedError("Cannot view this booking")
    return booking


def _user_bookings(db: Session, user: User, column, status: Optional[BookingStatus] = None):
    query = db.query(Booking).filter(column == user.id)
    if status is not None:
        query = query.filter(Booking.status == status)
    return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def get_renter_bookings(
    db: Session, renter_phone: str, status: Optional[BookingStatus] = None
) -> List[Booking]:
    """List bookings on equipment the user owns, newest first."""
    renter = get_user_by_phone(db, renter_phone)
    return _user_bookings(db, renter, Booking.renter_id, status)


def get_rent_taker_bookings(
    db: Session, rent_taker_phone: str, status: Optional[BookingStatus] = None
) -> List[Booking]:
    """List bookings the user requested, newest first."""
    rent_taker = get_user_by_phone(db, rent_taker_phone)
    return _user_bookings(db, rent_taker, Booking.rent_taker_id, status)


def get_pending_bookings_for_renter(db: Session, renter_phone: str) -> List[Booking]:
    """List requests awaiting the owner's decision, newest first."""
    return get_renter_bookings(db, renter_phone, BookingStatus.PENDING)
