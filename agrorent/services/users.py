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

"""User identity lookup and account management."""

import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from agrorent.config import get_settings
from agrorent.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from agrorent.models.auth import AuthToken
from agrorent.models.user import User
from agrorent.utils.helpers import generate_token, is_valid_phone, sanitize_optional, utcnow

logger = logging.getLogger(__name__)


def normalize_phone(phone: str) -> str:
    """Strip spaces and dashes from a phone number."""
    return "".join(ch for ch in (phone or "") if ch not in " -()")


def get_user_by_phone(db: Session, phone: str) -> User:
    """Resolve a principal's phone number to a user record.

    Raises:
        NotFoundError: If no user has that phone number.
    """
    user = db.query(User).filter(User.phone == normalize_phone(phone)).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def register_user(
    db: Session,
    name: str,
    phone: str,
    password: str,
    email: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    **profile,
) -> User:
    """Create a user account.

    Raises:
        ValidationError: On a malformed phone number or a short password.
        ConflictError: If the phone number is already registered.
    """
    settings = get_settings()
    phone = normalize_phone(phone)

    if not is_valid_phone(phone):
        raise ValidationError("Invalid phone number format")
    if len(password or "") < settings.security.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.security.min_password_length} characters"
        )
    if db.query(User).filter(User.phone == phone).first():
        raise ConflictError("Phone number already registered")

    user = User(
        name=sanitize_optional(name, 255) or phone,
        phone=phone,
        email=email.lower().strip() if email else None,
        password_hash=generate_password_hash(password),
        address=sanitize_optional(profile.get("address"), 500),
        village=sanitize_optional(profile.get("village"), 255),
        district=sanitize_optional(profile.get("district"), 255),
        state=sanitize_optional(profile.get("state"), 255),
        pincode=sanitize_optional(profile.get("pincode"), 20),
        preferred_language=profile.get("preferred_language") or "en",
    )
    # Location is only stored as a complete pair
    if latitude is not None and longitude is not None:
        user.latitude = latitude
        user.longitude = longitude

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def issue_auth_token(
    db: Session,
    user: User,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuthToken:
    """Create a bearer token for a user, pruning the oldest beyond the limit."""
    settings = get_settings()

    active_tokens = (
        db.query(AuthToken)
        .filter(AuthToken.user_id == user.id, AuthToken.is_revoked == False)  # noqa: E712
        .order_by(AuthToken.created_at.desc(), AuthToken.id.desc())
        .all()
    )
    for stale in active_tokens[settings.security.max_tokens_per_user - 1 :]:
        stale.is_revoked = True

    auth_token = AuthToken(
        user_id=user.id,
        token=generate_token(32),
        expires_at=utcnow() + timedelta(days=settings.security.auth_token_days),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(auth_token)
    user.last_login_at = utcnow()
    db.commit()
    db.refresh(auth_token)
    return auth_token


def authenticate(db: Session, phone: str, password: str) -> User:
    """Check a phone/password pair.

    Raises:
        AuthenticationError: On unknown phone or wrong password.
        UnauthorizedError: If the account is deactivated.
    """
    user = db.query(User).filter(User.phone == normalize_phone(phone)).first()
    if not user or not check_password_hash(user.password_hash, password or ""):
        raise AuthenticationError("Invalid phone number or password")
    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")
    return user


def login(
    db: Session,
    phone: str,
    password: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Tuple[User, AuthToken]:
    """Authenticate and issue a token."""
    user = authenticate(db, phone, password)
    return user, issue_auth_token(db, user, ip_address, user_agent)


def resolve_token(db: Session, token: str) -> User:
    """Map a bearer token to its user and stamp the token as used.

    Raises:
        AuthenticationError: If the token is unknown, expired or revoked.
        UnauthorizedError: If the account behind it is deactivated.
    """
    auth_token = db.query(AuthToken).filter(AuthToken.token == token).first()
    if auth_token is None:
        raise AuthenticationError("Invalid authentication token")
    if not auth_token.is_valid():
        raise AuthenticationError("Authentication token expired or revoked")

    user = auth_token.user
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise UnauthorizedError("User account is deactivated")

    auth_token.last_used_at = utcnow()
    db.commit()
    return user


def revoke_token(db: Session, token: str) -> None:
    """Revoke a bearer token."""
    auth_token = db.query(AuthToken).filter(AuthToken.token == token).first()
    if auth_token and not auth_token.is_revoked:
        auth_token.is_revoked = True
        db.commit()
