import pytest
from pydantic import ValidationError as PydanticValidationError

from agrorent.exceptions import ValidationError
from agrorent.models.equipment import EquipmentCategory, PricingType
from agrorent.services.search import (
    SearchCriteria,
    get_nearby_equipment,
    search_equipment,
    sort_results,
)

PUNE = (18.5204, 73.8567)


def test_rating_sort_defaults_to_descending_with_unrated_last():
    items = [{"id": 1, "rating": 3.0}, {"id": 2, "rating": 4.5}, {"id": 3, "rating": None}]
    assert [i["id"] for i in sort_results(items, "rating")] == [2, 1, 3]


def test_explicit_ascending_keeps_unrated_last():
    items = [{"id": 1, "rating": None}, {"id": 2, "rating": 4.5}, {"id": 3, "rating": 3.0}]
    assert [i["id"] for i in sort_results(items, "rating", "asc")] == [3, 2, 1]


def test_price_sort_uses_requested_tier():
    items = [
        {"id": 1, "price_per_day": 900.0, "price_per_hour": 50.0},
        {"id": 2, "price_per_day": None, "price_per_hour": 40.0},
        {"id": 3, "price_per_day": 700.0, "price_per_hour": 90.0},
    ]
    assert [i["id"] for i in sort_results(items, "price")] == [3, 1, 2]
    assert [i["id"] for i in sort_results(items, "price", "desc")] == [1, 3, 2]
    assert [i["id"] for i in sort_results(items, "price", None, PricingType.HOURLY)] == [2, 1, 3]


def test_distance_sort_is_ascending_by_default():
    items = [{"id": 1, "distance_km": 7.5}, {"id": 2, "distance_km": 1.2}]
    assert [i["id"] for i in sort_results(items)] == [2, 1]


def test_criteria_require_both_coordinates():
    with pytest.raises(PydanticValidationError):
        SearchCriteria(latitude=18.5)


def test_criteria_reject_inverted_price_range():
    with pytest.raises(PydanticValidationError):
        SearchCriteria(min_price=500, max_price=100)


def test_criteria_normalize_sort_fields():
    criteria = SearchCriteria(sort_by=" Rating ", sort_order="DESC")
    assert criteria.sort_by == "rating"
    assert criteria.sort_order == "desc"
    with pytest.raises(PydanticValidationError):
        SearchCriteria(sort_by="popularity")


@pytest.fixture
def listings(make_user, make_equipment):
    owner = make_user()
    lat, lon = PUNE
    return {
        "near": make_equipment(owner, name="Near tractor", latitude=lat + 0.1, longitude=lon,
                               price_per_day=1200.0, rating=3.0),
        "mid": make_equipment(owner, name="Mid harvester", latitude=lat + 0.3, longitude=lon,
                              category=EquipmentCategory.HARVESTER, price_per_day=800.0,
                              rating=4.5),
        "far": make_equipment(owner, name="Far tractor", latitude=lat + 1.0, longitude=lon,
                              price_per_day=500.0),
        "off": make_equipment(owner, name="Idle tractor", latitude=lat, longitude=lon,
                              available=False),
    }


def test_search_without_location_returns_available_items(db, listings):
    results = search_equipment(db, SearchCriteria())
    names = {r["name"] for r in results}
    assert names == {"Near tractor", "Mid harvester", "Far tractor"}
    assert all(r["distance_km"] is None for r in results)


def test_search_limits_to_default_radius(db, listings):
    criteria = SearchCriteria(latitude=PUNE[0], longitude=PUNE[1])
    results = search_equipment(db, criteria)
    assert [r["name"] for r in results] == ["Near tractor", "Mid harvester"]
    assert [r["distance_km"] for r in results] == [11.1, 33.4]


def test_search_by_rating_ranks_highest_first(db, listings):
    criteria = SearchCriteria(
        latitude=PUNE[0], longitude=PUNE[1], radius_km=200, sort_by="rating"
    )
    results = search_equipment(db, criteria)
    assert [r["name"] for r in results] == ["Mid harvester", "Near tractor", "Far tractor"]


def test_search_filters_category_and_price(db, listings):
    results = search_equipment(db, SearchCriteria(category=EquipmentCategory.TRACTOR))
    assert {r["name"] for r in results} == {"Near tractor", "Far tractor"}

    results = search_equipment(db, SearchCriteria(min_price=600, max_price=1000))
    assert [r["name"] for r in results] == ["Mid harvester"]

    results = search_equipment(db, SearchCriteria(max_price=900, sort_by="price"))
    assert [r["name"] for r in results] == ["Far tractor", "Mid harvester"]


def test_search_rejects_radius_above_limit(db, listings):
    with pytest.raises(ValidationError):
        search_equipment(db, SearchCriteria(latitude=0, longitude=0, radius_km=10000))


def test_nearby_reports_unrounded_distances(db, listings):
    results = get_nearby_equipment(db, PUNE[0], PUNE[1], 50)
    assert [r["name"] for r in results] == ["Near tractor", "Mid harvester"]
    assert results[0]["distance_km"] == pytest.approx(11.1195, abs=1e-3)
    assert results[0]["distance_km"] != 11.1
