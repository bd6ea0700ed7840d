from datetime import datetime

import gpxpy
import pytest

from models import ActivityType, DifficultyTier, LatLng, SessionSummary
from routing import synthesize_straight_route
from utils import (
    bounds_from_points,
    calculate_bearing,
    create_gpx,
    estimate_route_calories,
    format_distance,
    format_minutes,
    format_time,
    get_compass_direction,
    haversine,
    offset_point,
    parse_pace,
    route_difficulty,
    validate_coordinates,
)

START = LatLng(37.50, 127.00)
END = LatLng(37.51, 127.00)


def test_haversine():
    assert haversine(START, END) == pytest.approx(1111.95, abs=0.1)
    assert haversine(START, START) == 0


def test_offset_point_round_trips_distance():
    moved = offset_point(START, 1000, 0)

    assert moved.lng == START.lng
    assert haversine(START, moved) == pytest.approx(1000, rel=0.01)


@pytest.mark.parametrize("bearing, direction", [
    (0, "N"), (22, "N"), (23, "NE"), (90, "E"), (180, "S"), (270, "W"), (338, "N"), (-45, "NW"),
])
def test_compass_direction(bearing, direction):
    assert get_compass_direction(bearing) == direction


def test_calculate_bearing():
    assert calculate_bearing(START, END) == pytest.approx(0, abs=1e-6)
    assert calculate_bearing(END, START) == pytest.approx(180, abs=1e-6)


def test_format_time():
    assert format_time(6) == "06:00"
    assert format_time(5.5) == "05:30"
    assert format_time(90.5) == "01:30:30"
    assert format_time(5.9999) == "06:00"
    assert format_time(6.198) == "06:12"


def test_format_distance_and_minutes():
    assert format_distance(850) == "850 m"
    assert format_distance(1234) == "1.23 km"
    assert format_minutes(23.4) == "23 min"
    assert format_minutes(65) == "1 h 05 min"


def test_parse_pace():
    assert parse_pace("5:30") == 5.5
    assert parse_pace("fast") == 6.0
    assert parse_pace(None) == 6.0


def test_validate_coordinates():
    assert validate_coordinates(90, 180)
    assert not validate_coordinates(90.1, 0)
    assert not validate_coordinates(0, -180.1)


def test_bounds():
    bounds = bounds_from_points([START, END, LatLng(37.505, 126.99)])

    assert (bounds.north, bounds.south, bounds.east, bounds.west) == (37.51, 37.50, 127.00, 126.99)
    with pytest.raises(ValueError):
        bounds_from_points([])


def test_route_difficulty_and_calories():
    assert route_difficulty(1999) is DifficultyTier.EASY
    assert route_difficulty(2000) is DifficultyTier.MEDIUM
    assert route_difficulty(5000) is DifficultyTier.HARD
    assert estimate_route_calories(5000, ActivityType.RUN) == 400
    assert estimate_route_calories(5000, "walk") == 250
    assert estimate_route_calories(5000, ActivityType.BIKE) == 150


def test_route_gpx():
    route = synthesize_straight_route(START, END)

    gpx = gpxpy.parse(create_gpx(route, "Test route"))

    assert gpx.tracks[0].name == "Test route"
    assert gpx.tracks[0].type == "run"
    assert len(gpx.tracks[0].segments[0].points) == len(route.path)


def test_session_gpx_timestamps():
    summary = SessionSummary(
        course_id="oncheonjang",
        completed=True,
        distance=1500,
        elapsed_seconds=540.0,
        avg_speed_kmh=10.0,
        max_speed_kmh=11.2,
        calories_kcal=75,
        heart_rate_samples=(120, 130),
        step_count=1950,
        path=(START, LatLng(37.505, 127.00), END),
    )

    gpx = gpxpy.parse(create_gpx(summary, "Session", datetime(2024, 5, 1, 7, 0, 0)))

    points = gpx.tracks[0].segments[0].points
    assert len(points) == 3
    assert (points[-1].time - points[0].time).total_seconds() == 540
