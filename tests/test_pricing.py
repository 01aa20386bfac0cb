from datetime import datetime, timedelta

import pytest

from agrorent.exceptions import ValidationError
from agrorent.models.equipment import PricingType
from agrorent.services.pricing import calculate_price, duration_hours

START = datetime(2026, 3, 2, 9, 0)
RATES = {"price_per_hour": 100.0, "price_per_day": 1000.0, "price_per_week": 6000.0}


def test_ten_days_with_weekly_rate_uses_fractional_weeks():
    quote = calculate_price(START, START + timedelta(days=10), **RATES)
    assert quote.pricing_type == PricingType.WEEKLY
    # 10 / 7 * 6000
    assert quote.total_cost == 8571.43
    assert quote.duration_hours == 240


def test_three_days_uses_daily_rate():
    quote = calculate_price(START, START + timedelta(days=3), **RATES)
    assert quote.pricing_type == PricingType.DAILY
    assert quote.total_cost == 3000.0


def test_week_without_weekly_rate_falls_to_daily():
    quote = calculate_price(
        START, START + timedelta(days=8), price_per_hour=100.0, price_per_day=1000.0
    )
    assert quote.pricing_type == PricingType.DAILY
    assert quote.total_cost == 8000.0


def test_partial_days_are_dropped_from_daily_cost():
    quote = calculate_price(START, START + timedelta(days=2, hours=23), **RATES)
    assert quote.pricing_type == PricingType.DAILY
    assert quote.total_cost == 2000.0
    assert quote.duration_hours == 71


def test_five_hours_uses_hourly_rate():
    quote = calculate_price(START, START + timedelta(hours=5), **RATES)
    assert quote.pricing_type == PricingType.HOURLY
    assert quote.total_cost == 500.0


def test_hourly_only_listing_bills_long_rentals_by_the_hour():
    quote = calculate_price(START, START + timedelta(days=9), price_per_hour=50.0)
    assert quote.pricing_type == PricingType.HOURLY
    assert quote.total_cost == 9 * 24 * 50.0


def test_short_rental_without_hourly_rate_costs_one_day():
    quote = calculate_price(START, START + timedelta(hours=5), price_per_day=1000.0)
    assert quote.pricing_type == PricingType.DAILY
    assert quote.total_cost == 1000.0


def test_short_rental_with_weekly_rate_only_costs_nothing():
    quote = calculate_price(START, START + timedelta(hours=5), price_per_week=6000.0)
    assert quote.pricing_type == PricingType.DAILY
    assert quote.total_cost == 0.0


def test_duration_truncates_to_whole_hours():
    assert duration_hours(START, START + timedelta(hours=2, minutes=59)) == 2
    quote = calculate_price(START, START + timedelta(minutes=30), **RATES)
    assert quote.duration_hours == 0
    assert quote.total_cost == 0.0


def test_cost_rounds_half_up():
    quote = calculate_price(START, START + timedelta(hours=1), price_per_hour=10.005)
    assert quote.total_cost == 10.01


@pytest.mark.parametrize("end", [START, START - timedelta(hours=1)])
def test_end_not_after_start_is_rejected(end):
    with pytest.raises(ValidationError):
        calculate_price(START, end, **RATES)
