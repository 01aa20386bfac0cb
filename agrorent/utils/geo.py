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

"""Great-circle distance helpers.

Coordinates are decimal degrees. Kept dependency-free so the search engine
and the geo index share one distance definition.
"""

from math import asin, atan2, cos, degrees, radians, sin, sqrt
from typing import Tuple

from agrorent.utils.helpers import round_half_up

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute great-circle distance in kilometres between two points."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    h = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(h), sqrt(1 - h))


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance rounded to 0.1 km."""
    return round_half_up(haversine_km(lat1, lon1, lat2, lon2), 1)


def bounding_box(lat: float, lon: float, radius_km: float) -> Tuple[float, float, float, float]:
    """Get a (min_lat, max_lat, min_lon, max_lon) window enclosing a radius.

    The window is a superset of the circle, so callers still filter by
    ``haversine_km``. When the circle reaches a pole or crosses the
    antimeridian the longitude span covers the whole globe.
    """
    angular = radius_km / EARTH_RADIUS_KM
    min_lat = lat - degrees(angular)
    max_lat = lat + degrees(angular)
    if min_lat <= -90.0 or max_lat >= 90.0:
        return max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0

    d_lon = degrees(asin(min(1.0, sin(angular) / cos(radians(lat)))))
    min_lon = lon - d_lon
    max_lon = lon + d_lon
    if min_lon < -180.0 or max_lon > 180.0:
        return min_lat, max_lat, -180.0, 180.0
    return min_lat, max_lat, min_lon, max_lon
