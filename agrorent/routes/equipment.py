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

"""Equipment listing and search routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from agrorent.database import get_db
from agrorent.middleware.auth import get_current_user
from agrorent.models.equipment import EquipmentCategory
from agrorent.models.user import User
from agrorent.services import equipment as equipment_service
from agrorent.services.equipment import EquipmentData
from agrorent.services.search import SearchCriteria, get_nearby_equipment, search_equipment

router = APIRouter()


# Public routes
@router.get("/api/categories")
async def list_categories():
    """List equipment categories."""
    return {
        "success": True,
        "categories": [c.value for c in EquipmentCategory],
    }


@router.get("/api/equipment/public/category/{category}")
async def list_equipment_by_category(
    category: EquipmentCategory,
    db: Session = Depends(get_db),
):
    """List available equipment in a category."""
    items = equipment_service.get_equipment_by_category(db, category)
    return {
        "success": True,
        "equipment": [e.to_dict() for e in items],
    }


@router.get("/api/equipment/public/{equipment_id}")
async def get_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
):
    """Get equipment details."""
    equipment = equipment_service.get_equipment(db, equipment_id)
    return {
        "success": True,
        "equipment": equipment.to_dict(),
    }


@router.post("/api/equipment/search")
async def search(
    criteria: SearchCriteria,
    db: Session = Depends(get_db),
):
    """Search available equipment with filters, radius and sorting."""
    results = search_equipment(db, criteria)
    return {
        "success": True,
        "count": len(results),
        "equipment": results,
    }


@router.get("/api/equipment/search/nearby")
async def nearby(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    db: Session = Depends(get_db),
):
    """List available equipment near a point, nearest first."""
    results = get_nearby_equipment(db, latitude, longitude, radius_km)
    return {
        "success": True,
        "count": len(results),
        "equipment": results,
    }


# Owner routes
@router.get("/api/equipment/my")
async def list_my_equipment(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List equipment owned by the current user."""
    items = equipment_service.get_my_equipment(db, current_user.phone)
    return {
        "success": True,
        "equipment": [e.to_dict() for e in items],
    }


@router.post("/api/equipment/my")
async def create_equipment(
    data: EquipmentData,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List new equipment."""
    equipment = equipment_service.create_equipment(db, current_user.phone, data)
    return {
        "success": True,
        "equipment": equipment.to_dict(),
        "message": "Equipment added successfully",
    }


@router.put("/api/equipment/my/{equipment_id}")
async def update_equipment(
    equipment_id: int,
    data: EquipmentData,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update an owned listing."""
    equipment = equipment_service.update_equipment(db, current_user.phone, equipment_id, data)
    return {
        "success": True,
        "equipment": equipment.to_dict(),
        "message": "Equipment updated successfully",
    }


@router.delete("/api/equipment/my/{equipment_id}")
async def delete_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete an owned listing."""
    equipment_service.delete_equipment(db, current_user.phone, equipment_id)
    return {
        "success": True,
        "message": "Equipment deleted successfully",
    }


@router.patch("/api/equipment/my/{equipment_id}/toggle-availability")
async def toggle_availability(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Toggle whether an owned listing accepts bookings."""
    equipment = equipment_service.toggle_availability(db, current_user.phone, equipment_id)
    return {
        "success": True,
        "equipment": equipment.to_dict(),
        "message": (
            "Equipment is now available" if equipment.available else "Equipment is now unavailable"
        ),
    }
