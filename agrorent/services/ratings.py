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

"""Rating aggregation.

Ratings are always recomputed from the full set of completed, rated
bookings instead of being adjusted incrementally, so concurrent rating
submissions can interleave without leaving a drifted average behind.
"""

import logging
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from agrorent.models.booking import Booking, BookingStatus
from agrorent.models.equipment import Equipment
from agrorent.models.user import User
from agrorent.utils.helpers import round_half_up

logger = logging.getLogger(__name__)


def average_rating(ratings: Iterable[Optional[int]]) -> Tuple[Optional[float], int]:
    """Mean of the present ratings, rounded to one decimal, and their count.

    Returns ``(None, 0)`` when no rating is present.
    """
    present = [r for r in ratings if r is not None]
    if not present:
        return None, 0
    return round_half_up(sum(present) / float(len(present)), 1), len(present)


def recompute_equipment_rating(db: Session, equipment_id: int) -> Tuple[Optional[float], int]:
    """Recompute an equipment's rating from rent-taker ratings.

    Changes are flushed to the session; the caller commits.
    """
    rows = (
        db.query(Booking.rating_by_rent_taker)
        .filter(
            Booking.equipment_id == equipment_id,
            Booking.status == BookingStatus.COMPLETED,
            Booking.rating_by_rent_taker.isnot(None),
        )
        .all()
    )
    rating, count = average_rating(r[0] for r in rows)

    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if equipment is None:
        logger.warning("Equipment %s no longer exists, rating not stored", equipment_id)
        return rating, count

    equipment.rating = rating
    equipment.total_ratings = count
    db.flush()
    logger.debug("Equipment %s rating recomputed: %s over %d", equipment_id, rating, count)
    return rating, count


def recompute_user_rating(db: Session, user_id: int) -> Tuple[Optional[float], int]:
    """Recompute a rent taker's rating from renter ratings.

    Changes are flushed to the session; the caller commits.
    """
    rows = (
        db.query(Booking.rating_by_renter)
        .filter(
            Booking.rent_taker_id == user_id,
            Booking.status == BookingStatus.COMPLETED,
            Booking.rating_by_renter.isnot(None),
        )
        .all()
    )
    rating, count = average_rating(r[0] for r in rows)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.warning("User %s no longer exists, rating not stored", user_id)
        return rating, count

    user.rating = rating
    user.total_ratings = count
    db.flush()
    logger.debug("User %s rating recomputed: %s over %d", user_id, rating, count)
    return rating, count
