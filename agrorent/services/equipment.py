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

"""Equipment listing management."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from agrorent.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from agrorent.models.booking import BLOCKING_STATUSES, Booking
from agrorent.models.equipment import Equipment, EquipmentCategory
from agrorent.services.users import get_user_by_phone
from agrorent.utils.helpers import sanitize_input, sanitize_optional

logger = logging.getLogger(__name__)


class EquipmentData(BaseModel):
    """Equipment listing fields supplied by an owner."""

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: EquipmentCategory
    images: Optional[List[str]] = None

    price_per_hour: Optional[float] = Field(default=None, gt=0)
    price_per_day: Optional[float] = Field(default=None, gt=0)
    price_per_week: Optional[float] = Field(default=None, gt=0)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    address: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Equipment name is required")
        return v


def _check_rates(data: EquipmentData) -> None:
    if data.price_per_hour is None and data.price_per_day is None and data.price_per_week is None:
        raise ValidationError("At least one of hourly, daily or weekly price is required")


def _apply(equipment: Equipment, data: EquipmentData) -> None:
    equipment.name = sanitize_input(data.name, 255)
    equipment.description = sanitize_optional(data.description, 5000)
    equipment.category = data.category
    if data.images is not None:
        equipment.images = list(data.images)
    equipment.price_per_hour = data.price_per_hour
    equipment.price_per_day = data.price_per_day
    equipment.price_per_week = data.price_per_week
    equipment.latitude = data.latitude
    equipment.longitude = data.longitude
    equipment.address = sanitize_optional(data.address, 500)
    equipment.village = sanitize_optional(data.village, 255)
    equipment.district = sanitize_optional(data.district, 255)
    equipment.state = sanitize_optional(data.state, 255)
    equipment.pincode = sanitize_optional(data.pincode, 20)


def get_equipment(db: Session, equipment_id: int) -> Equipment:
    """Get equipment by id.

    Raises:
        NotFoundError: If the equipment does not exist.
    """
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise NotFoundError("Equipment not found")
    return equipment


def _get_owned_equipment(db: Session, owner_phone: str, equipment_id: int) -> Equipment:
    equipment = get_equipment(db, equipment_id)
    owner = get_user_by_phone(db, owner_phone)
    if equipment.owner_id != owner.id:
        raise UnauthorizedError("You can only manage your own equipment")
    return equipment


def create_equipment(db: Session, owner_phone: str, data: EquipmentData) -> Equipment:
    """List new equipment for the owner identified by ``owner_phone``.

    The owner's name and phone are copied onto the listing as a snapshot.
    """
    owner = get_user_by_phone(db, owner_phone)
    _check_rates(data)

    equipment = Equipment(
        owner_id=owner.id,
        owner_name=owner.name,
        owner_phone=owner.phone,
        images=[],
    )
    _apply(equipment, data)
    db.add(equipment)
    db.commit()
    db.refresh(equipment)

    logger.info("User %s listed equipment %s (%s)", owner.id, equipment.id, equipment.category.value)
    return equipment


def update_equipment(
    db: Session, owner_phone: str, equipment_id: int, data: EquipmentData
) -> Equipment:
    """Replace an equipment's listing fields. Owner only."""
    equipment = _get_owned_equipment(db, owner_phone, equipment_id)
    _check_rates(data)

    _apply(equipment, data)
    db.commit()
    db.refresh(equipment)
    return equipment


def delete_equipment(db: Session, owner_phone: str, equipment_id: int) -> None:
    """Delete a listing. Owner only.

    Raises:
        ConflictError: While a pending, approved or active booking holds it.
    """
    equipment = _get_owned_equipment(db, owner_phone, equipment_id)

    open_bookings = (
        db.query(Booking)
        .filter(Booking.equipment_id == equipment.id, Booking.status.in_(BLOCKING_STATUSES))
        .count()
    )
    if open_bookings:
        raise ConflictError("Equipment has open bookings and cannot be deleted")

    db.delete(equipment)
    db.commit()
    logger.info("Equipment %s deleted by its owner", equipment_id)


def toggle_availability(db: Session, owner_phone: str, equipment_id: int) -> Equipment:
    """Flip whether the equipment accepts new bookings. Owner only."""
    equipment = _get_owned_equipment(db, owner_phone, equipment_id)
    equipment.available = not equipment.available
    db.commit()
    db.refresh(equipment)
    return equipment


def get_my_equipment(db: Session, owner_phone: str) -> List[Equipment]:
    """List all equipment owned by a user."""
    owner = get_user_by_phone(db, owner_phone)
    return (
        db.query(Equipment)
        .filter(Equipment.owner_id == owner.id)
        .order_by(Equipment.created_at.desc(), Equipment.id.desc())
        .all()
    )


def get_equipment_by_category(db: Session, category: EquipmentCategory) -> List[Equipment]:
    """List available equipment in a category."""
    return (
        db.query(Equipment)
        .filter(Equipment.category == category, Equipment.available == True)  # noqa: E712
        .order_by(Equipment.id)
        .all()
    )
