from types import SimpleNamespace

import pytest

from algorithms.haversine import (
    Coordinates,
    distance_between,
    extract_coordinates,
    first_coordinates,
    haversine_distance,
)


def test_same_point_is_zero():
    assert haversine_distance(23.81, 90.41, 23.81, 90.41) == pytest.approx(0.0)


def test_dhaka_to_chattogram():
    distance = distance_between(Coordinates(23.8103, 90.4125), Coordinates(22.3569, 91.7832))
    assert 190 < distance < 230


def test_distance_is_symmetric():
    a, b = Coordinates(23.8103, 90.4125), Coordinates(24.8949, 91.8687)
    assert distance_between(a, b) == pytest.approx(distance_between(b, a))


def test_extract_requires_both_parts():
    assert extract_coordinates(SimpleNamespace(latitude=23.0, longitude=None)) is None
    assert extract_coordinates(None) is None
    assert extract_coordinates(SimpleNamespace(latitude=23, longitude=90)) == Coordinates(23.0, 90.0)


def test_first_coordinates_skips_missing():
    upazila = SimpleNamespace(latitude=None, longitude=None)
    district = SimpleNamespace(latitude=22.0, longitude=91.0)
    division = SimpleNamespace(latitude=21.0, longitude=92.0)
    assert first_coordinates(upazila, district, division) == Coordinates(22.0, 91.0)
    assert first_coordinates(None, upazila) is None
