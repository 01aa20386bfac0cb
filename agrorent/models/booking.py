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

"""Booking model."""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)

from agrorent.database import Base
from agrorent.models.equipment import PricingType
from agrorent.utils.helpers import utcnow


class BookingStatus(str, enum.Enum):
    """Booking lifecycle states."""

    PENDING = "PENDING"  # Request submitted, awaiting owner approval
    APPROVED = "APPROVED"  # Owner approved the request
    REJECTED = "REJECTED"  # Owner rejected the request
    ACTIVE = "ACTIVE"  # Rental is currently ongoing
    COMPLETED = "COMPLETED"  # Rental completed successfully
    CANCELLED = "CANCELLED"  # Booking was cancelled by either party


# Statuses that hold the equipment's calendar slot
BLOCKING_STATUSES = (BookingStatus.PENDING, BookingStatus.APPROVED, BookingStatus.ACTIVE)


class Booking(Base):
    """Equipment booking model.

    Equipment, renter and rent taker details are snapshots taken when the
    request is created. ``equipment_id`` is a plain reference so bookings
    outlive a deleted listing.
    """

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    equipment_id = Column(Integer, nullable=False, index=True)
    equipment_name = Column(String(255), nullable=False)
    equipment_category = Column(String(50), nullable=False)

    renter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    renter_name = Column(String(255), nullable=False)
    renter_phone = Column(String(20), nullable=False)

    rent_taker_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rent_taker_name = Column(String(255), nullable=False)
    rent_taker_phone = Column(String(20), nullable=False)

    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    duration_hours = Column(Integer, nullable=False)
    total_cost = Column(Float, nullable=False)
    pricing_type = Column(Enum(PricingType), nullable=False)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING, index=True)
    notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Rating given to the equipment by the rent taker
    rating_by_rent_taker = Column(Integer, nullable=True)
    review_by_rent_taker = Column(Text, nullable=True)
    # Rating given to the rent taker by the renter
    rating_by_renter = Column(Integer, nullable=True)
    review_by_renter = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_booking_dates"),
        CheckConstraint(
            "rating_by_rent_taker IS NULL OR rating_by_rent_taker BETWEEN 1 AND 5",
            name="ck_booking_rent_taker_rating",
        ),
        CheckConstraint(
            "rating_by_renter IS NULL OR rating_by_renter BETWEEN 1 AND 5",
            name="ck_booking_renter_rating",
        ),
    )

    def is_party(self, user_id: int) -> bool:
        """Check if the user is the renter or the rent taker."""
        return user_id in (self.renter_id, self.rent_taker_id)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": self.equipment_name,
            "equipment_category": self.equipment_category,
            "renter_id": self.renter_id,
            "renter_name": self.renter_name,
            "renter_phone": self.renter_phone,
            "rent_taker_id": self.rent_taker_id,
            "rent_taker_name": self.rent_taker_name,
            "rent_taker_phone": self.rent_taker_phone,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "duration_hours": self.duration_hours,
            "total_cost": self.total_cost,
            "pricing_type": self.pricing_type.value if self.pricing_type else None,
            "status": self.status.value if self.status else None,
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "rating_by_rent_taker": self.rating_by_rent_taker,
            "review_by_rent_taker": self.review_by_rent_taker,
            "rating_by_renter": self.rating_by_renter,
            "review_by_renter": self.review_by_renter,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, equipment_id={self.equipment_id}, "
            f"rent_taker_id={self.rent_taker_id}, status='{self.status}')>"
        )
