import pytest

from candidates import (
    CandidateCourseGenerator,
    estimated_time_label,
    pool_for_distance,
    snap_to_grid,
    suggest_destinations,
)
from models import DifficultyTier, LatLng
from utils import haversine


@pytest.fixture
def generator():
    return CandidateCourseGenerator()


@pytest.mark.parametrize("radius", [500, 1000, 1500, 2000, 3000, 5000])
def test_candidate_count(generator, seoul, radius):
    candidates = generator.generate(seoul, radius)

    assert 5 <= len(candidates) <= 8
    for candidate in candidates:
        assert candidate.difficulty_tier in DifficultyTier
        assert candidate.center == seoul
        assert candidate.path[0] == candidate.path[-1] == seoul
        assert candidate.total_distance > 0
        assert candidate.estimated_time_label.endswith("min")


def test_endpoints_are_on_the_grid(generator, seoul):
    for candidate in generator.generate(seoul):
        for point in candidate.endpoints:
            assert point.lat * 1000 == pytest.approx(round(point.lat * 1000), abs=1e-6)
            assert point.lng * 1000 == pytest.approx(round(point.lng * 1000), abs=1e-6)


def test_round_trip_distance(generator, seoul):
    candidate = generator.generate(seoul, 500)[0]
    first, second = candidate.endpoints

    expected = haversine(seoul, first) + haversine(first, second) + haversine(second, seoul)
    assert candidate.total_distance == pytest.approx(expected)


def test_small_radius_gives_easy_courses(generator, seoul):
    candidates = generator.generate(seoul, 500)

    assert {candidate.difficulty_tier for candidate in candidates} == {DifficultyTier.EASY}


def test_large_radius_mixes_difficulties(generator, seoul):
    tiers = {candidate.difficulty_tier for candidate in generator.generate(seoul, 3000)}

    assert len(tiers) > 1


def test_generation_is_deterministic(generator, seoul):
    assert generator.generate(seoul, 2000) == generator.generate(seoul, 2000)


def test_tiny_radius_falls_back_to_out_and_back(generator, seoul):
    candidates = generator.generate(seoul, 100)

    assert len(candidates) == 4
    assert all(len(candidate.endpoints) == 1 for candidate in candidates)
    assert [candidate.difficulty_tier for candidate in candidates] == [
        DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.MEDIUM, DifficultyTier.HARD,
    ]


def test_snap_to_grid():
    assert snap_to_grid(LatLng(37.56649, 126.97804)) == LatLng(37.566, 126.978)
    assert snap_to_grid(LatLng(37.5666, 126.9786)) == LatLng(37.567, 126.979)


@pytest.mark.parametrize("distance, pool", [
    (500, "short"), (1500, "short"), (1501, "medium"), (3000, "medium"), (3001, "long"),
])
def test_pool_for_distance(distance, pool):
    assert pool_for_distance(distance) == pool


def test_estimated_time_label():
    assert estimated_time_label(5000) == "30 min"
    assert estimated_time_label(12000) == "1 h 12 min"


def test_suggest_destinations_default_radius(seoul):
    destinations = suggest_destinations(seoul)

    assert len(destinations) == 8
    assert [d.distance for d in destinations] == sorted(d.distance for d in destinations)
    assert [d.category for d in destinations] == ["near"] * 3 + ["middle"] * 3 + ["far"] * 2
    assert destinations[0].distance == pytest.approx(1500, abs=5)


def test_suggest_destinations_small_radius(seoul):
    destinations = suggest_destinations(seoul, 1000)

    assert len(destinations) == 6
    assert "far" not in {d.category for d in destinations}


def test_suggest_destinations_bearings(seoul):
    near = [d for d in suggest_destinations(seoul) if d.category == "near"]

    assert sorted(d.bearing for d in near) == pytest.approx([0, 120, 240])
    north = next(d for d in near if d.bearing == 0)
    assert north.location.lat > seoul.lat
    assert north.name.startswith("N ")
