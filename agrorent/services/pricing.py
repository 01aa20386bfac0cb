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

"""Tiered rental pricing.

The cheapest-looking tier is not searched for; tiers are tried in a fixed
priority order and the first one whose rate is set wins:

1. WEEKLY when the rental lasts at least 7 whole days.
2. DAILY when it lasts at least 1 whole day.
3. HOURLY whenever an hourly rate exists, however long the rental.
4. DAILY at a minimum of one day, costing 0 without a daily rate.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from agrorent.exceptions import ValidationError
from agrorent.models.equipment import PricingType
from agrorent.utils.helpers import round_half_up

HOURS_PER_DAY = 24
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class PriceQuote:
    """Resolved tier and cost for a rental interval."""

    pricing_type: PricingType
    total_cost: float
    duration_hours: int


def duration_hours(start: datetime, end: datetime) -> int:
    """Whole hours between two timestamps, truncated."""
    return int((end - start).total_seconds() // 3600)


def calculate_price(
    start: datetime,
    end: datetime,
    price_per_hour: Optional[float] = None,
    price_per_day: Optional[float] = None,
    price_per_week: Optional[float] = None,
) -> PriceQuote:
    """Price a rental from ``start`` to ``end`` against a rate sheet.

    Raises:
        ValidationError: If ``end`` is not after ``start``.
    """
    if end <= start:
        raise ValidationError("End date must be after start date")

    hours = duration_hours(start, end)
    days = hours // HOURS_PER_DAY

    if days >= DAYS_PER_WEEK and price_per_week is not None:
        pricing_type = PricingType.WEEKLY
        cost = (days / float(DAYS_PER_WEEK)) * price_per_week
    elif days >= 1 and price_per_day is not None:
        pricing_type = PricingType.DAILY
        cost = days * price_per_day
    elif price_per_hour is not None:
        pricing_type = PricingType.HOURLY
        cost = hours * price_per_hour
    else:
        pricing_type = PricingType.DAILY
        cost = max(1, days) * (price_per_day if price_per_day is not None else 0)

    return PriceQuote(
        pricing_type=pricing_type,
        total_cost=round_half_up(cost, 2),
        duration_hours=hours,
    )


def quote_for_equipment(equipment, start: datetime, end: datetime) -> PriceQuote:
    """Price a rental using an equipment's rate sheet."""
    return calculate_price(
        start,
        end,
        price_per_hour=equipment.price_per_hour,
        price_per_day=equipment.price_per_day,
        price_per_week=equipment.price_per_week,
    )
