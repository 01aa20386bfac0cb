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

"""Booking lifecycle state machine.

PENDING -> APPROVED -> ACTIVE -> COMPLETED, PENDING -> REJECTED, and
PENDING/APPROVED/ACTIVE -> CANCELLED. REJECTED, COMPLETED and CANCELLED are
terminal. The graph is acyclic, so a booking never returns to a status it
already held.
"""

import enum
from typing import Dict, Tuple

from agrorent.exceptions import InvalidTransitionError
from agrorent.models.booking import BookingStatus


class BookingAction(str, enum.Enum):
    """Actions that move a booking through its lifecycle."""

    APPROVE = "approve"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


# Status each action asks for
ACTION_TARGETS: Dict[BookingAction, BookingStatus] = {
    BookingAction.APPROVE: BookingStatus.APPROVED,
    BookingAction.REJECT: BookingStatus.REJECTED,
    BookingAction.START: BookingStatus.ACTIVE,
    BookingAction.COMPLETE: BookingStatus.COMPLETED,
    BookingAction.CANCEL: BookingStatus.CANCELLED,
}

TRANSITIONS: Dict[Tuple[BookingStatus, BookingAction], BookingStatus] = {
    (BookingStatus.PENDING, BookingAction.APPROVE): BookingStatus.APPROVED,
    (BookingStatus.PENDING, BookingAction.REJECT): BookingStatus.REJECTED,
    (BookingStatus.APPROVED, BookingAction.START): BookingStatus.ACTIVE,
    (BookingStatus.ACTIVE, BookingAction.COMPLETE): BookingStatus.COMPLETED,
    (BookingStatus.PENDING, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.APPROVED, BookingAction.CANCEL): BookingStatus.CANCELLED,
    (BookingStatus.ACTIVE, BookingAction.CANCEL): BookingStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset(
    {BookingStatus.REJECTED, BookingStatus.COMPLETED, BookingStatus.CANCELLED}
)

# Actions only the equipment owner may perform
RENTER_ACTIONS = frozenset(
    {BookingAction.APPROVE, BookingAction.REJECT, BookingAction.START, BookingAction.COMPLETE}
)


def next_status(current: BookingStatus, action: BookingAction) -> BookingStatus:
    """Resolve the status an action leads to.

    Raises:
        InvalidTransitionError: If the action is not allowed from ``current``.
    """
    current = BookingStatus(current)
    action = BookingAction(action)
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidTransitionError(current, ACTION_TARGETS[action]) from None


def can_transition(current: BookingStatus, action: BookingAction) -> bool:
    """Check whether an action is allowed from a status."""
    return (BookingStatus(current), BookingAction(action)) in TRANSITIONS


def allowed_actions(current: BookingStatus) -> list:
    """List the actions allowed from a status."""
    return [action for (status, action) in TRANSITIONS if status == BookingStatus(current)]
