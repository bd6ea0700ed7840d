import pytest

from courses import COURSES, TARGET_DURATIONS, course_from_route, get_course, list_courses
from exceptions import InvalidCourseDefinition
from models import ActivityType, LatLng
from routing import synthesize_straight_route

START = LatLng(37.50, 127.00)
END = LatLng(37.51, 127.00)


def test_builtin_courses():
    assert set(COURSES) == {"oncheonjang", "geumjeong", "dongnae"}
    for course_id, duration in TARGET_DURATIONS.items():
        course = get_course(course_id)
        assert course.target_duration == duration
        assert course.path[0].label == "Start"
        assert course.path[-1].label == "Finish"
        assert course.path[-1].cumulative_distance == course.total_distance


def test_list_courses_sorted_by_distance():
    assert [course.id for course in list_courses()] == ["oncheonjang", "geumjeong", "dongnae"]


def test_unknown_course():
    with pytest.raises(KeyError):
        get_course("hallasan")


def test_course_from_straight_route():
    route = synthesize_straight_route(START, END, ActivityType.RUN)

    course = course_from_route(route, "6:00")

    assert course.total_distance == pytest.approx(route.distance, rel=1e-6)
    assert course.path[0].label == "Start"
    assert course.path[-1].label == "Finish"
    assert len(course.path) == len(route.path)
    assert [segment.description for segment in course.segments] == ["Warm-up", "Main run", "Cool-down"]
    assert course.segments[1].pace_min_per_km == 6.0
    # 15% at 6:36, 70% at 6:00 and 15% at 6:18 per km
    assert course.target_duration == pytest.approx(409, abs=2)
    assert "Run route" in course.name


def test_course_from_route_uses_name():
    route = synthesize_straight_route(START, END, ActivityType.WALK)

    course = course_from_route(route, "8:00", name="Evening walk", course_id="walk-1")

    assert course.name == "Evening walk"
    assert course.id == "walk-1"
    assert course.segments[1].pace_min_per_km == 8.0


def test_zero_length_route_is_rejected():
    route = synthesize_straight_route(START, START)

    with pytest.raises(InvalidCourseDefinition):
        course_from_route(route)
