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

"""Authentication routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from agrorent.config import get_settings
from agrorent.database import get_db
from agrorent.middleware.auth import get_current_user, get_token_from_request
from agrorent.models.auth import AuthToken
from agrorent.models.user import User
from agrorent.services import users as user_service

router = APIRouter(prefix="/api/auth")


class RegisterRequest(BaseModel):
    """Registration request."""

    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=7, max_length=20)
    password: str = Field(min_length=1)
    email: Optional[str] = None
    address: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    preferred_language: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request."""

    phone: str
    password: str


def _set_auth_cookie(response: Response, auth_token: AuthToken) -> None:
    settings = get_settings()
    response.set_cookie(
        key="auth_token",
        value=auth_token.token,
        httponly=True,
        secure=not settings.app.debug,
        samesite="lax",
        max_age=settings.security.auth_token_days * 24 * 60 * 60,
    )


def _client_info(request: Request):
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("User-Agent")


@router.post("/register")
async def register(
    request: Request,
    response: Response,
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Register a new user and start a session."""
    user = user_service.register_user(db, **data.model_dump())
    ip_address, user_agent = _client_info(request)
    auth_token = user_service.issue_auth_token(db, user, ip_address, user_agent)
    _set_auth_cookie(response, auth_token)

    return {
        "success": True,
        "message": "Registration successful",
        "token": auth_token.token,
        "user": user.to_dict(),
    }


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """Login with phone number and password."""
    ip_address, user_agent = _client_info(request)
    user, auth_token = user_service.login(db, data.phone, data.password, ip_address, user_agent)
    _set_auth_cookie(response, auth_token)

    return {
        "success": True,
        "message": "Login successful",
        "token": auth_token.token,
        "user": user.to_dict(),
    }


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return {"success": True, "user": current_user.to_dict()}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Logout and revoke current session."""
    token = get_token_from_request(request)
    if token:
        user_service.revoke_token(db, token)

    response.delete_cookie("auth_token")

    return {"success": True, "message": "Logged out successfully"}
