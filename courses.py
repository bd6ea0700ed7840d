"""
Built-in courses and conversion of resolved routes into courses
"""

import logging
from typing import Dict, List, Optional

from config import DEFAULT_PACE
from exceptions import InvalidCourseDefinition
from models import CourseDefinition, PaceSegment, RouteResult, Waypoint
from utils import cumulative_distances, parse_pace

logger = logging.getLogger(__name__)

# Planned duration of every built-in course
TARGET_DURATIONS: Dict[str, int] = {
    "oncheonjang": 540,
    "geumjeong": 1200,
    "dongnae": 2100,
}

_COURSE_DATA = {
    "oncheonjang": {
        "name": "Oncheonjang running course",
        "description": "Straight one-way course through Oncheonjang, Dongnae-gu",
        "total_distance": 1500,
        "path": [
            (35.220462, 129.086192, 0, "Start"),
            (35.221462, 129.086792, 75),
            (35.222462, 129.087392, 150),
            (35.223462, 129.087992, 225),
            (35.224462, 129.088592, 300),
            (35.225462, 129.089192, 375),
            (35.226462, 129.089792, 450),
            (35.227462, 129.090192, 525),
            (35.228462, 129.090592, 600),
            (35.229162, 129.090992, 675),
            (35.229843, 129.091357, 750, "Waypoint"),
            (35.230243, 129.091407, 800),
            (35.230643, 129.091457, 850),
            (35.231043, 129.091507, 900),
            (35.231443, 129.091557, 950),
            (35.231843, 129.091607, 1000),
            (35.232243, 129.091657, 1050),
            (35.232643, 129.091707, 1100),
            (35.233043, 129.091737, 1150),
            (35.233443, 129.091757, 1200),
            (35.233643, 129.091767, 1250),
            (35.233843, 129.091772, 1300),
            (35.234004, 129.091775, 1500, "Finish"),
        ],
        "segments": [
            (0, 200, 6.5, "Warm-up"),
            (200, 750, 5.5, "Main run"),
            (750, 1300, 5.8, "Steady pace"),
            (1300, 1500, 6.2, "Finish"),
        ],
    },
    "geumjeong": {
        "name": "Geumjeong one-way course",
        "description": "3.2 km one-way course through Geumjeong-gu",
        "total_distance": 3200,
        "path": [
            (35.214154, 129.108309, 0, "Start"),
            (35.214254, 129.107809, 200),
            (35.214354, 129.107309, 400),
            (35.214454, 129.106809, 600),
            (35.214554, 129.106309, 800),
            (35.214654, 129.105809, 1000),
            (35.214754, 129.105309, 1200),
            (35.214854, 129.104809, 1400),
            (35.214878, 129.103751, 1600),
            (35.214978, 129.102751, 1800, "Waypoint"),
            (35.215178, 129.102151, 2000),
            (35.215378, 129.101551, 2200),
            (35.215578, 129.100951, 2400),
            (35.215778, 129.100351, 2600),
            (35.215978, 129.099751, 2800),
            (35.216178, 129.099351, 3000),
            (35.216415, 129.099082, 3200, "Finish"),
        ],
        "segments": [
            (0, 800, 6.0, "Warm-up"),
            (800, 1800, 5.5, "Main run"),
            (1800, 2800, 5.3, "Tempo"),
            (2800, 3200, 5.8, "Finish"),
        ],
    },
    "dongnae": {
        "name": "Dongnae circuit",
        "description": "5.5 km circuit through Dongnae-gu with two waypoints",
        "total_distance": 5500,
        "path": [
            (35.218211, 129.100694, 0, "Start"),
            (35.217911, 129.101194, 200),
            (35.217611, 129.101694, 400),
            (35.217311, 129.102194, 600),
            (35.217011, 129.102694, 800),
            (35.216711, 129.103194, 1000),
            (35.216411, 129.103694, 1200),
            (35.216111, 129.104194, 1400),
            (35.215811, 129.104494, 1600),
            (35.215311, 129.104794, 1800),
            (35.214617, 129.105082, 2000, "Waypoint 1"),
            (35.214597, 129.105282, 2200),
            (35.214587, 129.105482, 2400),
            (35.214574, 129.105726, 2600, "Waypoint 2"),
            (35.214774, 129.107726, 2800),
            (35.214974, 129.109726, 3200),
            (35.215174, 129.111726, 3600),
            (35.215374, 129.113726, 4000),
            (35.215574, 129.115726, 4400),
            (35.215774, 129.117726, 4800),
            (35.215974, 129.119726, 5000),
            (35.216374, 129.125726, 5200),
            (35.216774, 129.129726, 5400),
            (35.217063, 129.133719, 5500, "Finish"),
        ],
        "segments": [
            (0, 1000, 6.2, "Warm-up"),
            (1000, 2600, 5.4, "Moderate"),
            (2600, 4500, 5.0, "Tempo"),
            (4500, 5500, 5.8, "Cool-down"),
        ],
    },
}


def _build_course(course_id: str) -> CourseDefinition:
    data = _COURSE_DATA[course_id]
    return CourseDefinition(
        id=course_id,
        name=data["name"],
        description=data["description"],
        total_distance=data["total_distance"],
        path=[Waypoint(*point) for point in data["path"]],
        segments=[PaceSegment(*segment) for segment in data["segments"]],
        target_duration=TARGET_DURATIONS[course_id],
    )


COURSES: Dict[str, CourseDefinition] = {course_id: _build_course(course_id) for course_id in _COURSE_DATA}


def get_course(course_id: str) -> CourseDefinition:
    """
    Look up a built-in course

    Raises:
        KeyError: if the course does not exist
    """
    try:
        return COURSES[course_id]
    except KeyError:
        raise KeyError(f"Unknown course '{course_id}'") from None


def list_courses() -> List[CourseDefinition]:
    return sorted(COURSES.values(), key=lambda course: course.total_distance)


def course_from_route(
    route: RouteResult,
    pace: str = DEFAULT_PACE,
    name: Optional[str] = None,
    course_id: str = "resolved-route"
) -> CourseDefinition:
    """
    Turn a resolved route into a course that can be simulated

    Cumulative distances are measured along the route's own path. The course
    gets a warm-up (first 15%, 10% slower), a main part at the given pace and
    a cool-down (last 15%, 5% slower).

    Args:
        route: Resolved RouteResult
        pace: Target pace like "5:30"
        name: Course name, defaults to a description of the route
        course_id: Identifier for the new course

    Returns:
        CourseDefinition

    Raises:
        InvalidCourseDefinition: if the route has no length
    """
    if len(route.path) < 2:
        raise InvalidCourseDefinition(f"Route from {route.provider_used} has fewer than 2 points")

    distances = cumulative_distances(route.path)
    total = distances[-1]
    if total <= 0:
        raise InvalidCourseDefinition(f"Route from {route.provider_used} has zero length")

    path = [
        Waypoint(point.lat, point.lng, distance)
        for point, distance in zip(route.path, distances)
    ]
    path[0] = Waypoint(path[0].lat, path[0].lng, 0.0, "Start")
    path[-1] = Waypoint(path[-1].lat, path[-1].lng, total, "Finish")

    pace_min = parse_pace(pace)
    warmup_end = total * 0.15
    cooldown_start = total * 0.85
    segments = [
        PaceSegment(0.0, warmup_end, pace_min * 1.1, "Warm-up"),
        PaceSegment(warmup_end, cooldown_start, pace_min, "Main run"),
        PaceSegment(cooldown_start, total, pace_min * 1.05, "Cool-down"),
    ]
    target_duration = sum(
        (segment.end_distance - segment.start_distance) / 1000 * segment.pace_min_per_km * 60
        for segment in segments
    )

    logger.info(
        "Built course %s from %s route: %.0f m, %.0f s",
        course_id, route.provider_used, total, target_duration
    )
    return CourseDefinition(
        id=course_id,
        name=name or f"{route.activity.value.capitalize()} route {total/1000:.2f} km",
        total_distance=total,
        path=path,
        segments=segments,
        target_duration=target_duration,
        description=f"Resolved by {route.provider_name or route.provider_used}",
    )
