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

"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to so the application-level
exception handler can turn it into a structured JSON failure.
"""

from typing import Optional

from fastapi import status


class AgroRentError(Exception):
    """Base class for recoverable domain failures."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to response payload."""
        return {"success": False, "error": self.code, "detail": self.message}


class NotFoundError(AgroRentError):
    """Unknown user, equipment or booking identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class AuthenticationError(AgroRentError):
    """Missing, unknown, expired or revoked credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class UnauthorizedError(AgroRentError):
    """Actor does not own the resource or is not a party to the booking."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"


class InvalidStateError(AgroRentError):
    """Action not permitted in the booking's current lifecycle state."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_state"


class InvalidTransitionError(InvalidStateError):
    """Requested status change is not an edge of the lifecycle graph."""

    code = "invalid_transition"

    def __init__(self, current, requested, message: Optional[str] = None):
        self.current = current
        self.requested = requested
        super().__init__(
            message
            or f"Cannot change booking status from {_name(current)} to {_name(requested)}"
        )


class ConflictError(AgroRentError):
    """Overlapping booking interval, unavailable equipment or duplicate record."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class ValidationError(AgroRentError):
    """Malformed input that passed request parsing."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


def _name(value) -> str:
    return getattr(value, "value", str(value))
