"""
Position interpolation along a course path
"""

import math
from typing import Sequence

from models import Position, Waypoint


def interpolate(path: Sequence[Waypoint], progress_percent: float) -> Position:
    """
    Position at a given progress along a path

    The progress is mapped to a fractional index over the path points and
    lat, lng and cumulative distance are blended linearly between the two
    neighbouring points. Labels are only carried when the index lands
    exactly on a labelled point.

    Args:
        path: Waypoints of the course (at least one)
        progress_percent: Progress, clamped to 0-100

    Returns:
        Interpolated Position
    """
    if not path:
        raise ValueError("Cannot interpolate on an empty path")

    if math.isnan(progress_percent):
        progress_percent = 0.0
    progress_percent = min(max(progress_percent, 0.0), 100.0)

    last = len(path) - 1
    exact = progress_percent / 100 * last
    index = math.floor(exact)
    fraction = exact - index

    if index >= last:
        return _as_position(path[last])
    if fraction == 0:
        return _as_position(path[index])

    point1 = path[index]
    point2 = path[index + 1]
    return Position(
        lat=point1.lat + (point2.lat - point1.lat) * fraction,
        lng=point1.lng + (point2.lng - point1.lng) * fraction,
        cumulative_distance=(
            point1.cumulative_distance
            + (point2.cumulative_distance - point1.cumulative_distance) * fraction
        ),
    )


def _as_position(point: Waypoint) -> Position:
    return Position(
        lat=point.lat,
        lng=point.lng,
        cumulative_distance=point.cumulative_distance,
        label=point.label,
    )
