import pytest

from courses import get_course
from models import CourseDefinition, LatLng, PaceSegment, Waypoint
from simulation import ManualScheduler


@pytest.fixture
def oncheonjang():
    """1.5 km course planned for 9 minutes"""
    return get_course("oncheonjang")


@pytest.fixture
def simple_course():
    return CourseDefinition(
        id="simple",
        name="Simple course",
        total_distance=1000,
        path=[
            Waypoint(37.500, 127.000, 0, "Start"),
            Waypoint(37.5045, 127.000, 500, "Turn"),
            Waypoint(37.509, 127.000, 1000, "Finish"),
        ],
        segments=[
            PaceSegment(0, 500, 6.0, "Easy"),
            PaceSegment(500, 1000, 5.0, "Fast"),
        ],
        target_duration=330,
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def seoul():
    return LatLng(37.5665, 126.9780)
