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

"""Request authentication dependencies.

Requests carry an opaque token either in the ``auth_token`` cookie set at
login or as an ``Authorization: Bearer`` header for API clients.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from agrorent.database import get_db
from agrorent.exceptions import AuthenticationError
from agrorent.models.user import User
from agrorent.services.users import resolve_token

AUTH_COOKIE = "auth_token"
BEARER_PREFIX = "Bearer "


def get_token_from_request(request: Request) -> Optional[str]:
    """Extract the auth token, preferring the cookie over the header."""
    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token

    header = request.headers.get("Authorization", "")
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):] or None
    return None


async def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the requesting user.

    Missing, unknown, expired and revoked tokens answer 401; a deactivated
    account answers 403.
    """
    token = get_token_from_request(request)
    if not token:
        raise AuthenticationError("Not authenticated")
    return resolve_token(db, token)
