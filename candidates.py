"""
Nearby round-trip course candidates and destination suggestions

Candidates are built without asking any routing provider: points are
sampled around the center and snapped to a coarse grid so they roughly line
up with the street network.
"""

import logging
import math
from itertools import zip_longest
from typing import Dict, List

from config import (
    CANDIDATE_GRID_DEGREES,
    CANDIDATE_MAX_COUNT,
    CANDIDATE_MIN_COUNT,
    CANDIDATE_RADII,
    DEFAULT_CANDIDATE_RADIUS,
    MEDIUM_POOL_LIMIT,
    REFERENCE_SPEEDS,
    SHORT_POOL_LIMIT,
)
from models import CourseCandidate, Destination, DifficultyTier, LatLng
from utils import (
    calculate_bearing,
    exercise_minutes,
    format_minutes,
    get_compass_direction,
    haversine,
    offset_point,
)

logger = logging.getLogger(__name__)

# Unit vectors (north, east) for the eight compass directions
COMPASS_DIRECTIONS = [
    (1, 0), (0.7071, 0.7071), (0, 1), (-0.7071, 0.7071),
    (-1, 0), (-0.7071, -0.7071), (0, -1), (0.7071, -0.7071),
]

# Out-and-back candidates used to top up a short list: (north, east, distance)
PADDING_CANDIDATES = [
    (1, 0, 800),
    (0, 1, 1600),
    (-1, 0, 2400),
    (0, -1, 3200),
]

POOL_TIERS = {
    "short": DifficultyTier.EASY,
    "medium": DifficultyTier.MEDIUM,
    "long": DifficultyTier.HARD,
}

DESTINATION_BANDS = [
    ("near", 1000, 2000, 3),
    ("middle", 2000, 5000, 3),
    ("far", 5000, 10000, 2),
]


def snap_to_grid(point: LatLng) -> LatLng:
    """Round a point to the nearest grid cell (about 100 m)"""
    return LatLng(
        round(round(point.lat / CANDIDATE_GRID_DEGREES) * CANDIDATE_GRID_DEGREES, 6),
        round(round(point.lng / CANDIDATE_GRID_DEGREES) * CANDIDATE_GRID_DEGREES, 6),
    )


def pool_for_distance(distance_m: float) -> str:
    if distance_m <= SHORT_POOL_LIMIT:
        return "short"
    if distance_m <= MEDIUM_POOL_LIMIT:
        return "medium"
    return "long"


def estimated_time_label(distance_m: float) -> str:
    return format_minutes(exercise_minutes(distance_m, REFERENCE_SPEEDS["run"]))


class CandidateCourseGenerator:
    """Generates a short list of round-trip courses around a center point"""

    def generate(self, center: LatLng, radius_m: float = DEFAULT_CANDIDATE_RADIUS) -> List[CourseCandidate]:
        """
        Round-trip candidates center -> p1 -> p2 -> center

        Args:
            center: Where the runner starts
            radius_m: Largest sampling radius in meters

        Returns:
            Between 5 and 8 candidates for any radius of at least 500 m
        """
        pools = self._sample_pools(center, radius_m)

        by_pool: Dict[str, List[CourseCandidate]] = {}
        for pool, points in pools.items():
            by_pool[pool] = [
                self._round_trip(center, first, second, POOL_TIERS[pool])
                for first, second in zip(points, points[1:])
            ]

        # Interleave the pools so the list keeps a mix of difficulties
        candidates = [
            candidate
            for group in zip_longest(*(by_pool[pool] for pool in POOL_TIERS))
            for candidate in group
            if candidate is not None
        ]

        for north, east, distance in PADDING_CANDIDATES:
            if len(candidates) >= CANDIDATE_MIN_COUNT:
                break
            candidates.append(self._out_and_back(center, north, east, distance))

        result = candidates[:CANDIDATE_MAX_COUNT]
        logger.info("Generated %d course candidates around %.5f, %.5f", len(result), center.lat, center.lng)
        return result

    def _sample_pools(self, center: LatLng, radius_m: float) -> Dict[str, List[LatLng]]:
        pools: Dict[str, List[LatLng]] = {pool: [] for pool in POOL_TIERS}
        seen = set()
        for radius in CANDIDATE_RADII:
            if radius > radius_m:
                break
            for north, east in COMPASS_DIRECTIONS:
                snapped = snap_to_grid(offset_point(center, north * radius, east * radius))
                if snapped in seen:
                    continue
                seen.add(snapped)
                actual_distance = haversine(center, snapped)
                pools[pool_for_distance(actual_distance)].append(snapped)
        return pools

    def _round_trip(self, center: LatLng, first: LatLng, second: LatLng, tier: DifficultyTier) -> CourseCandidate:
        total = haversine(center, first) + haversine(first, second) + haversine(second, center)
        direction = get_compass_direction(calculate_bearing(center, first))
        return CourseCandidate(
            center=center,
            endpoints=(first, second),
            difficulty_tier=tier,
            total_distance=total,
            estimated_time_label=estimated_time_label(total),
            name=f"{direction} loop {total / 1000:.1f} km",
        )

    def _out_and_back(self, center: LatLng, north: float, east: float, distance: float) -> CourseCandidate:
        point = snap_to_grid(offset_point(center, north * distance, east * distance))
        actual_distance = haversine(center, point)
        total = actual_distance * 2
        direction = get_compass_direction(calculate_bearing(center, point))
        return CourseCandidate(
            center=center,
            endpoints=(point,),
            difficulty_tier=POOL_TIERS[pool_for_distance(actual_distance)],
            total_distance=total,
            estimated_time_label=estimated_time_label(total),
            name=f"{direction} out-and-back {total / 1000:.1f} km",
        )


def suggest_destinations(center: LatLng, radius_m: float = DEFAULT_CANDIDATE_RADIUS) -> List[Destination]:
    """
    Turnaround points for out-and-back routes, spread over three distance bands

    A band is offered when its lower bound lies within twice the radius.

    Returns:
        Destinations sorted by distance from the center
    """
    suggestions = []
    for category, min_distance, max_distance, count in DESTINATION_BANDS:
        if min_distance > radius_m * 2:
            continue
        distance = (min_distance + max_distance) / 2
        for i in range(count):
            bearing = 360 / count * i
            north = math.cos(math.radians(bearing)) * distance
            east = math.sin(math.radians(bearing)) * distance
            location = offset_point(center, north, east)
            direction = get_compass_direction(bearing)
            suggestions.append(Destination(
                name=f"{direction} {distance / 1000:.1f} km",
                location=location,
                distance=round(haversine(center, location)),
                category=category,
                bearing=bearing,
            ))

    suggestions.sort(key=lambda destination: destination.distance)
    return suggestions
