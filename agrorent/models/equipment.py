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

"""Equipment model."""

import enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from agrorent.database import Base
from agrorent.utils.helpers import utcnow


class EquipmentCategory(str, enum.Enum):
    """Closed set of equipment categories."""

    TRACTOR = "TRACTOR"
    HARVESTER = "HARVESTER"
    TILLER = "TILLER"
    CULTIVATOR = "CULTIVATOR"
    SEEDER = "SEEDER"
    SPRAYER = "SPRAYER"
    PUMP = "PUMP"
    TRAILER = "TRAILER"
    THRESHER = "THRESHER"
    PLOUGH = "PLOUGH"
    ROTAVATOR = "ROTAVATOR"
    OTHER = "OTHER"


class PricingType(str, enum.Enum):
    """Rate tier used to price a booking."""

    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


# Rate column backing each pricing tier
PRICE_FIELDS = {
    PricingType.HOURLY: "price_per_hour",
    PricingType.DAILY: "price_per_day",
    PricingType.WEEKLY: "price_per_week",
}


class Equipment(Base):
    """Equipment listed by an owner.

    ``owner_name`` and ``owner_phone`` are copied from the owner when the
    listing is created and are not kept in sync with later profile changes.
    """

    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    owner_name = Column(String(255), nullable=False)
    owner_phone = Column(String(20), nullable=False)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(Enum(EquipmentCategory), nullable=False, index=True)
    images = Column(JSON, nullable=False, default=list)
    verified = Column(Boolean, nullable=False, default=False)

    price_per_hour = Column(Float, nullable=True)
    price_per_day = Column(Float, nullable=True)
    price_per_week = Column(Float, nullable=True)

    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    address = Column(String(500), nullable=True)
    village = Column(String(255), nullable=True)
    district = Column(String(255), nullable=True)
    state = Column(String(255), nullable=True)
    pincode = Column(String(20), nullable=True)

    available = Column(Boolean, nullable=False, default=True, index=True)
    rating = Column(Float, nullable=True)  # None until first rated rental
    total_ratings = Column(Integer, nullable=False, default=0)
    times_rented = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    owner = relationship("User", back_populates="equipment")

    @property
    def has_rates(self) -> bool:
        """Check if at least one rate is set, which makes the item bookable."""
        return any(
            rate is not None
            for rate in (self.price_per_hour, self.price_per_day, self.price_per_week)
        )

    def price_for(self, pricing_type: PricingType) -> Optional[float]:
        """Get the rate for a pricing tier."""
        return getattr(self, PRICE_FIELDS[PricingType(pricing_type)])

    def to_dict(self, distance_km: Optional[float] = None) -> dict:
        """Convert to dictionary.

        Args:
            distance_km: Distance from a search center, attached only for
                geographic queries.
        """
        result = {
            "id": self.id,
            "owner_id": self.owner_id,
            "owner_name": self.owner_name,
            "owner_phone": self.owner_phone,
            "name": self.name,
            "description": self.description,
            "category": self.category.value if self.category else None,
            "images": list(self.images or []),
            "verified": self.verified,
            "price_per_hour": self.price_per_hour,
            "price_per_day": self.price_per_day,
            "price_per_week": self.price_per_week,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "village": self.village,
            "district": self.district,
            "state": self.state,
            "pincode": self.pincode,
            "available": self.available,
            "rating": self.rating,
            "total_ratings": self.total_ratings,
            "times_rented": self.times_rented,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "distance_km": distance_km,
        }
        return result

    def __repr__(self):
        return f"<Equipment(id={self.id}, name='{self.name}')>"
