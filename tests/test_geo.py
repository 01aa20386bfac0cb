import pytest

from agrorent.utils.geo import bounding_box, distance_km, haversine_km


def test_tenth_of_a_degree_of_latitude_at_equator():
    assert distance_km(0.0, 0.0, 0.1, 0.0) == 11.1


def test_same_point_is_zero():
    assert haversine_km(18.52, 73.85, 18.52, 73.85) == 0.0


def test_distance_is_symmetric():
    d1 = haversine_km(18.5204, 73.8567, 19.0760, 72.8777)
    d2 = haversine_km(19.0760, 72.8777, 18.5204, 73.8567)
    assert d1 == pytest.approx(d2)
    # Pune to Mumbai
    assert 110 < d1 < 130


def test_bounding_box_encloses_radius():
    lat, lon, radius = 18.52, 73.85, 50.0
    min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius)
    assert min_lat < lat < max_lat
    assert min_lon < lon < max_lon
    # Points on the circle along each axis fall inside the box
    assert haversine_km(lat, lon, max_lat, lon) == pytest.approx(radius, rel=1e-6)
    assert haversine_km(lat, lon, lat, max_lon) >= radius - 1e-6


def test_bounding_box_near_pole_spans_all_longitudes():
    _, max_lat, min_lon, max_lon = bounding_box(89.9, 10.0, 50.0)
    assert max_lat == 90.0
    assert (min_lon, max_lon) == (-180.0, 180.0)


def test_bounding_box_across_antimeridian_spans_all_longitudes():
    _, _, min_lon, max_lon = bounding_box(0.0, 179.9, 50.0)
    assert (min_lon, max_lon) == (-180.0, 180.0)
