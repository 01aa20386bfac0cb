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

"""Booking management routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from agrorent.database import get_db
from agrorent.middleware.auth import get_current_user
from agrorent.models.booking import BookingStatus
from agrorent.models.user import User
from agrorent.services import bookings as booking_service
from agrorent.utils.helpers import to_naive_utc

router = APIRouter(prefix="/api/bookings")


class BookingCreate(BaseModel):
    """Booking creation request."""

    equipment_id: int
    start_date: datetime
    end_date: datetime
    notes: Optional[str] = None

    @field_validator("end_date")
    @classmethod
    def validate_dates(cls, v, info):
        start = info.data.get("start_date")
        if start is not None and to_naive_utc(v) <= to_naive_utc(start):
            raise ValueError("End date must be after start date")
        return v


class RejectRequest(BaseModel):
    """Booking rejection request."""

    reason: Optional[str] = None


class RatingRequest(BaseModel):
    """Rating submission request."""

    rating: int = Field(ge=1, le=5)
    review: Optional[str] = None


def _booking_response(booking, message: Optional[str] = None) -> dict:
    result = {"success": True, "booking": booking.to_dict()}
    if message:
        result["message"] = message
    return result


# Rent taker routes
@router.post("")
async def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Request a booking."""
    booking = booking_service.create_booking(
        db,
        current_user.phone,
        data.equipment_id,
        data.start_date,
        data.end_date,
        data.notes,
    )
    return _booking_response(booking, "Booking request submitted")


@router.get("/my")
async def list_my_bookings(
    status_filter: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List bookings requested by the current user."""
    bookings = booking_service.get_rent_taker_bookings(db, current_user.phone, status_filter)
    return {
        "success": True,
        "bookings": [b.to_dict() for b in bookings],
    }


@router.post("/my/{booking_id}/rate")
async def rate_as_rent_taker(
    booking_id: int,
    data: RatingRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rate the equipment of a completed booking."""
    booking = booking_service.rate_by_rent_taker(
        db, current_user.phone, booking_id, data.rating, data.review
    )
    return _booking_response(booking, "Rating submitted")


# Renter (equipment owner) routes
@router.get("/renter")
async def list_renter_bookings(
    status_filter: Optional[BookingStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List bookings on the current user's equipment."""
    bookings = booking_service.get_renter_bookings(db, current_user.phone, status_filter)
    return {
        "success": True,
        "bookings": [b.to_dict() for b in bookings],
    }


@router.get("/renter/pending")
async def list_pending_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List requests awaiting the current user's decision."""
    bookings = booking_service.get_pending_bookings_for_renter(db, current_user.phone)
    return {
        "success": True,
        "bookings": [b.to_dict() for b in bookings],
    }


@router.patch("/renter/{booking_id}/approve")
async def approve_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Approve a pending request."""
    booking = booking_service.approve_booking(db, current_user.phone, booking_id)
    return _booking_response(booking, "Booking approved")


@router.patch("/renter/{booking_id}/reject")
async def reject_booking(
    booking_id: int,
    data: Optional[RejectRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Reject a pending request."""
    reason = data.reason if data else None
    booking = booking_service.reject_booking(db, current_user.phone, booking_id, reason)
    return _booking_response(booking, "Booking rejected")


@router.patch("/renter/{booking_id}/start")
async def start_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark an approved booking as handed over."""
    booking = booking_service.start_booking(db, current_user.phone, booking_id)
    return _booking_response(booking, "Rental started")


@router.patch("/renter/{booking_id}/complete")
async def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark an active rental as returned."""
    booking = booking_service.complete_booking(db, current_user.phone, booking_id)
    return _booking_response(booking, "Rental completed")


@router.post("/renter/{booking_id}/rate")
async def rate_as_renter(
    booking_id: int,
    data: RatingRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Rate the rent taker of a completed booking."""
    booking = booking_service.rate_by_renter(
        db, current_user.phone, booking_id, data.rating, data.review
    )
    return _booking_response(booking, "Rating submitted")


# Shared routes
@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get booking details."""
    booking = booking_service.get_booking(db, current_user.phone, booking_id)
    return _booking_response(booking)


@router.patch("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Cancel a booking as either party."""
    booking = booking_service.cancel_booking(db, current_user.phone, booking_id)
    return _booking_response(booking, "Booking cancelled")
