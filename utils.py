"""
Helper functions for the workout route simulator
"""

import math
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Union

import gpxpy
import gpxpy.gpx

from config import CALORIES_PER_KM, METERS_PER_DEGREE
from models import ActivityType, Bounds, DifficultyTier, LatLng, RouteResult, SessionSummary

EARTH_RADIUS_M = 6371000


def haversine(point1, point2) -> float:
    """
    Great-circle distance between two points (Haversine formula)

    Args:
        point1: Anything with lat and lng attributes
        point2: Anything with lat and lng attributes

    Returns:
        Distance in meters
    """
    lat1, lon1 = math.radians(point1.lat), math.radians(point1.lng)
    lat2, lon2 = math.radians(point2.lat), math.radians(point2.lng)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_M * c


def calculate_distance_from_points(points: Sequence) -> float:
    """
    Total length of a polyline

    Args:
        points: Points with lat and lng attributes

    Returns:
        Total distance in meters
    """
    if len(points) < 2:
        return 0.0
    return sum(haversine(a, b) for a, b in zip(points, points[1:]))


def cumulative_distances(points: Sequence) -> List[float]:
    """Running distance along a polyline, starting at 0"""
    distances = [0.0]
    for a, b in zip(points, points[1:]):
        distances.append(distances[-1] + haversine(a, b))
    return distances


def bounds_from_points(points: Iterable) -> Bounds:
    """
    Bounding box of a set of points

    Raises:
        ValueError: if there are no points
    """
    points = list(points)
    if not points:
        raise ValueError("Cannot compute bounds of an empty path")
    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    return Bounds(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs))


def offset_point(origin, north_m: float, east_m: float) -> LatLng:
    """
    Move a point by a metric offset using a flat-earth approximation

    Args:
        origin: Start point (lat, lng attributes)
        north_m: Meters north (negative for south)
        east_m: Meters east (negative for west)

    Returns:
        The offset point
    """
    dlat = north_m / METERS_PER_DEGREE
    dlng = east_m / (METERS_PER_DEGREE * math.cos(math.radians(origin.lat)))
    return LatLng(origin.lat + dlat, origin.lng + dlng)


def parse_pace(pace_str: str) -> float:
    """
    Convert a pace string to minutes per km

    Args:
        pace_str: Pace like "5:30"

    Returns:
        Minutes per km, 6.0 if the string cannot be parsed
    """
    try:
        parts = pace_str.split(":")
        if len(parts) == 2:
            minutes = int(parts[0])
            seconds = int(parts[1])
            return minutes + seconds / 60
    except (AttributeError, ValueError):
        pass
    return 6.0


def format_time(minutes: float) -> str:
    """
    Format a duration given in minutes

    Args:
        minutes: Number of minutes

    Returns:
        HH:MM:SS or MM:SS
    """
    # Nearest second, a rounded 60 carries into the minutes
    total_seconds = round(minutes * 60)
    hours, rest = divmod(total_seconds, 3600)
    mins, secs = divmod(rest, 60)

    if hours > 0:
        return f"{hours:02d}:{mins:02d}:{secs:02d}"
    else:
        return f"{mins:02d}:{secs:02d}"


def format_distance(meters: float) -> str:
    """Human readable distance, meters below 1 km"""
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.2f} km"


def format_minutes(minutes: float) -> str:
    """Duration label like '23 min' or '1 h 05 min'"""
    minutes = round(minutes)
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours} h {mins:02d} min"
    return f"{mins} min"


def calculate_bearing(point1, point2) -> float:
    """
    Initial bearing from one point to another

    Args:
        point1: Start point (lat, lng attributes)
        point2: End point (lat, lng attributes)

    Returns:
        Bearing in degrees (0-360)
    """
    lat1, lon1 = math.radians(point1.lat), math.radians(point1.lng)
    lat2, lon2 = math.radians(point2.lat), math.radians(point2.lng)

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    bearing = math.atan2(y, x)
    bearing = math.degrees(bearing)
    bearing = (bearing + 360) % 360

    return bearing


def get_compass_direction(bearing: float) -> str:
    """
    Convert a bearing to an eight-point compass direction

    Args:
        bearing: Bearing in degrees

    Returns:
        Compass direction (N, NE, E, etc.)
    """
    directions = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
    index = int(((bearing % 360) + 22.5) / 45) % 8
    return directions[index]


def validate_coordinates(lat: float, lng: float) -> bool:
    """
    Check that coordinates are valid

    Args:
        lat: Latitude
        lng: Longitude

    Returns:
        True if the coordinates are valid
    """
    return -90 <= lat <= 90 and -180 <= lng <= 180


def exercise_minutes(distance_m: float, speed_kmh: float) -> float:
    """Minutes needed to cover a distance at a given speed"""
    return (distance_m / 1000) / speed_kmh * 60


def route_difficulty(distance_m: float) -> DifficultyTier:
    """Difficulty of a navigation route by length"""
    if distance_m < 2000:
        return DifficultyTier.EASY
    if distance_m < 5000:
        return DifficultyTier.MEDIUM
    return DifficultyTier.HARD


def estimate_route_calories(distance_m: float, activity: str) -> int:
    """Rough energy estimate for a route, kcal"""
    per_km = CALORIES_PER_KM.get(ActivityType(activity).value, 60)
    return round(distance_m / 1000 * per_km)


def create_gpx(
    source: Union[RouteResult, SessionSummary],
    name: str = "Workout",
    start_time: Optional[datetime] = None
) -> str:
    """
    Create a GPX document from a route or a finished session

    Args:
        source: RouteResult or SessionSummary
        name: Track name
        start_time: Timestamp of the first point; session points are spread
            evenly over the elapsed time

    Returns:
        GPX as a string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.creator = "Workout route simulator"

    gpx_track = gpxpy.gpx.GPXTrack()
    gpx_track.name = name
    gpx.tracks.append(gpx_track)

    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    points = list(source.path)
    if isinstance(source, SessionSummary):
        gpx.description = f"Session of {source.distance/1000:.2f} km"
        gpx_track.type = "running"
        gpx_track.description = (
            f"Time: {format_time(source.elapsed_seconds / 60)}, "
            f"calories: {source.calories_kcal} kcal, steps: {source.step_count}"
        )
        step = source.elapsed_seconds / (len(points) - 1) if len(points) > 1 else 0
    else:
        gpx.description = f"Route of {source.distance/1000:.2f} km ({source.provider_used})"
        gpx_track.type = source.activity.value
        step = 0

    for index, point in enumerate(points):
        time = None
        if start_time is not None:
            time = start_time + timedelta(seconds=index * step)
        gpx_segment.points.append(gpxpy.gpx.GPXTrackPoint(point.lat, point.lng, time=time))

    return gpx.to_xml()
