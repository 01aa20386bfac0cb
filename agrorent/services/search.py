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

"""Equipment search and ranking."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from agrorent.config import get_settings
from agrorent.exceptions import ValidationError
from agrorent.models.equipment import PRICE_FIELDS, Equipment, EquipmentCategory, PricingType
from agrorent.services.geo_index import find_near
from agrorent.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

SORT_KEYS = ("distance", "price", "rating")

# Direction used when the caller gives none; higher ratings come first
DEFAULT_DESCENDING = {"distance": False, "price": False, "rating": True}


class SearchCriteria(BaseModel):
    """Equipment search filters and sort directive."""

    category: Optional[EquipmentCategory] = None
    min_price: Optional[float] = Field(default=None, ge=0)
    max_price: Optional[float] = Field(default=None, ge=0)
    pricing_type: Optional[PricingType] = None

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    radius_km: Optional[float] = Field(default=None, gt=0)

    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    @field_validator("sort_by", "sort_order", mode="before")
    @classmethod
    def lowercase(cls, v):
        return v.strip().lower() if isinstance(v, str) and v.strip() else None

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v):
        if v is not None and v not in SORT_KEYS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_KEYS)}")
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v):
        if v is not None and v not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")
        return v

    @model_validator(mode="after")
    def validate_ranges(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price cannot exceed max_price")
        return self

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


def _resolve_pricing_type(pricing_type: Optional[PricingType]) -> PricingType:
    if pricing_type is not None:
        return PricingType(pricing_type)
    return PricingType(get_settings().search.default_pricing_type.upper())


def _resolve_radius(radius_km: Optional[float]) -> float:
    settings = get_settings()
    radius = radius_km if radius_km is not None else settings.search.default_radius_km
    if radius <= 0:
        raise ValidationError("Search radius must be positive")
    if radius > settings.search.max_radius_km:
        raise ValidationError(
            f"Search radius cannot exceed {settings.search.max_radius_km:g} km"
        )
    return radius


def sort_results(
    items: List[dict],
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    pricing_type: PricingType = PricingType.DAILY,
) -> List[dict]:
    """Order search results.

    ``distance`` and ``price`` default to ascending, ``rating`` to
    descending. Items with no value for the key always go last, in their
    original order, whichever direction is used.
    """
    sort_by = (sort_by or "distance").lower()
    if sort_by == "price":
        field = PRICE_FIELDS[PricingType(pricing_type)]
    elif sort_by == "rating":
        field = "rating"
    else:
        field = "distance_km"

    if sort_order:
        descending = sort_order.lower() == "desc"
    else:
        descending = DEFAULT_DESCENDING.get(sort_by, False)

    present = [item for item in items if item.get(field) is not None]
    missing = [item for item in items if item.get(field) is None]
    present.sort(key=lambda item: item[field], reverse=descending)
    return present + missing


def search_equipment(db: Session, criteria: SearchCriteria) -> List[dict]:
    """Search available equipment and rank the results.

    Price filters apply to the rate of the requested pricing type (daily by
    default); listings without that rate are excluded while a price filter is
    active. With a center point, results are limited to the radius and carry
    ``distance_km`` rounded to 0.1 km.
    """
    pricing_type = _resolve_pricing_type(criteria.pricing_type)

    query = db.query(Equipment).filter(Equipment.available == True)  # noqa: E712

    if criteria.category is not None:
        query = query.filter(Equipment.category == criteria.category)

    price_column = getattr(Equipment, PRICE_FIELDS[pricing_type])
    if criteria.min_price is not None:
        query = query.filter(price_column >= criteria.min_price)
    if criteria.max_price is not None:
        query = query.filter(price_column <= criteria.max_price)

    if criteria.has_location:
        radius = _resolve_radius(criteria.radius_km)
        pairs = find_near(db, criteria.latitude, criteria.longitude, radius, base_query=query)
        items = [eq.to_dict(distance_km=round_half_up(d, 1)) for eq, d in pairs]
    else:
        items = [eq.to_dict() for eq in query.order_by(Equipment.id).all()]

    logger.debug("Equipment search matched %d items", len(items))
    return sort_results(items, criteria.sort_by, criteria.sort_order, pricing_type)


def get_nearby_equipment(
    db: Session,
    latitude: float,
    longitude: float,
    radius_km: Optional[float] = None,
) -> List[dict]:
    """List available equipment near a point, nearest first.

    Distances are reported as the geo store computed them, unrounded.
    """
    radius = _resolve_radius(radius_km)
    return [
        eq.to_dict(distance_km=d)
        for eq, d in find_near(db, latitude, longitude, radius)
        if eq.available
    ]
