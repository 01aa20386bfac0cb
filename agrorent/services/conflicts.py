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

"""Booking conflict detection."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from agrorent.models.booking import BLOCKING_STATUSES, Booking


def find_conflicting_bookings(
    db: Session,
    equipment_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> List[Booking]:
    """Find bookings that hold any part of ``[start, end]`` on an equipment.

    Only PENDING, APPROVED and ACTIVE bookings hold a slot. Bounds are
    inclusive: a booking ending exactly when the candidate starts conflicts.
    """
    query = db.query(Booking).filter(
        Booking.equipment_id == equipment_id,
        Booking.status.in_(BLOCKING_STATUSES),
        Booking.start_date <= end,
        Booking.end_date >= start,
    )

    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)

    return query.order_by(Booking.start_date).all()


def has_conflict(
    db: Session,
    equipment_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """Check if a candidate interval overlaps a slot-holding booking."""
    return bool(find_conflicting_bookings(db, equipment_id, start, end, exclude_booking_id))
