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

"""Geo nearness queries over stored equipment points.

The relational store has no native spherical index, so radius queries run
as an indexed bounding-box filter on latitude/longitude followed by an
exact Haversine check.
"""

from typing import List, Optional, Tuple

from sqlalchemy.orm import Query, Session

from agrorent.models.equipment import Equipment
from agrorent.utils.geo import bounding_box, haversine_km


def query_within_radius(
    query: Query,
    latitude: float,
    longitude: float,
    radius_km: float,
) -> List[Tuple[Equipment, float]]:
    """Restrict an equipment query to a radius around a point.

    Args:
        query: Equipment query, possibly already filtered.
        latitude: Center latitude.
        longitude: Center longitude.
        radius_km: Search radius in kilometres (inclusive).

    Returns:
        ``(equipment, distance_km)`` pairs, nearest first, with unrounded
        distances.
    """
    if radius_km <= 0:
        return []

    min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_km)
    candidates = query.filter(
        Equipment.latitude >= min_lat,
        Equipment.latitude <= max_lat,
        Equipment.longitude >= min_lon,
        Equipment.longitude <= max_lon,
    ).all()

    results = []
    for equipment in candidates:
        d = haversine_km(latitude, longitude, equipment.latitude, equipment.longitude)
        if d <= radius_km:
            results.append((equipment, d))

    results.sort(key=lambda pair: (pair[1], pair[0].id))
    return results


def find_near(
    db: Session,
    latitude: float,
    longitude: float,
    radius_km: float,
    base_query: Optional[Query] = None,
) -> List[Tuple[Equipment, float]]:
    """Find equipment near a point, nearest first."""
    query = base_query if base_query is not None else db.query(Equipment)
    return query_within_radius(query, latitude, longitude, radius_km)
