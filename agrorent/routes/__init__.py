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

"""API routes package."""

from fastapi import APIRouter

from agrorent.routes import auth, bookings, equipment

# Create main API router
api_router = APIRouter()

# Include all API routes
api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(equipment.router, tags=["Equipment"])
api_router.include_router(bookings.router, tags=["Bookings"])

__all__ = ["api_router"]
