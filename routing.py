"""
Route resolution across an ordered chain of providers, with a straight-line fallback
"""

import logging
from typing import List, Optional, Sequence

from config import (
    FALLBACK_CHECKPOINTS,
    FALLBACK_MIN_SAMPLES,
    FALLBACK_SAMPLE_SPACING_M,
    PROVIDER_ROLES,
    REFERENCE_SPEEDS,
)
from exceptions import ProviderError
from models import (
    ActivityType,
    Instruction,
    LatLng,
    ProviderRoute,
    RouteRequest,
    RouteResult,
)
from routing_providers import RoutingProvider
from utils import (
    bounds_from_points,
    calculate_bearing,
    calculate_distance_from_points,
    cumulative_distances,
    exercise_minutes,
    format_distance,
    get_compass_direction,
    validate_coordinates,
)

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER = "fallback-straight"


def provider_role(index: int) -> str:
    if index < len(PROVIDER_ROLES):
        return PROVIDER_ROLES[index]
    return f"provider-{index + 1}"


def exercise_duration_minutes(distance_m: float, activity: ActivityType) -> int:
    """Workout duration at the activity's reference speed, not the provider's travel speed"""
    return round(exercise_minutes(distance_m, REFERENCE_SPEEDS[ActivityType(activity).value]))


def normalize_route(
    raw: ProviderRoute,
    activity: ActivityType,
    provider_used: str,
    provider_name: str = ""
) -> RouteResult:
    """Convert a provider answer into a RouteResult"""
    path = list(raw.path)
    return RouteResult(
        path=path,
        distance=raw.distance,
        duration=raw.duration,
        exercise_duration_minutes=exercise_duration_minutes(raw.distance, activity),
        instructions=list(raw.instructions),
        bounds=bounds_from_points(path),
        provider_used=provider_used,
        activity=ActivityType(activity),
        provider_name=provider_name or provider_used,
    )


def _sample_leg(start: LatLng, end: LatLng, samples: int) -> List[LatLng]:
    return [
        LatLng(
            start.lat + (end.lat - start.lat) * i / samples,
            start.lng + (end.lng - start.lng) * i / samples,
        )
        for i in range(samples + 1)
    ]


def _point_at_distance(path: Sequence[LatLng], distances: Sequence[float], target: float) -> LatLng:
    for i in range(1, len(path)):
        if distances[i] >= target:
            span = distances[i] - distances[i - 1]
            fraction = (target - distances[i - 1]) / span if span > 0 else 0.0
            a, b = path[i - 1], path[i]
            return LatLng(a.lat + (b.lat - a.lat) * fraction, a.lng + (b.lng - a.lng) * fraction)
    return path[-1]


def _checkpoint_instructions(path: Sequence[LatLng], total: float) -> List[Instruction]:
    """
    Turn-by-turn steps at evenly spaced checkpoints along a path

    The first step departs, the last arrives and the ones between alternate
    between continuing and turning.
    """
    distances = cumulative_distances(path)
    count = FALLBACK_CHECKPOINTS
    checkpoints = [
        _point_at_distance(path, distances, total * i / (count - 1))
        for i in range(count)
    ]
    leg_length = total / (count - 1)

    instructions = []
    for i, location in enumerate(checkpoints):
        if i == count - 1:
            instructions.append(Instruction(
                text="Arrive at destination",
                distance_label=format_distance(0),
                start_location=location,
                end_location=location,
                maneuver="arrive",
            ))
            continue

        next_location = checkpoints[i + 1]
        direction = get_compass_direction(calculate_bearing(location, next_location))
        if i == 0:
            text, maneuver = f"Depart heading {direction}", "depart"
        elif i % 2 == 1:
            text, maneuver = f"Continue {direction} for {format_distance(leg_length)}", "continue"
        else:
            text, maneuver = f"Turn to head {direction}", "turn"
        instructions.append(Instruction(
            text=text,
            distance_label=format_distance(leg_length),
            start_location=location,
            end_location=next_location,
            maneuver=maneuver,
        ))
    return instructions


def synthesize_straight_route(
    start: LatLng,
    end: LatLng,
    activity: ActivityType = ActivityType.RUN,
    waypoints: Sequence[LatLng] = ()
) -> RouteResult:
    """
    Straight-line route used when no provider could answer

    Each leg (start, waypoints, end) is sampled every 50 m, with at least
    20 samples over the whole route.

    Returns:
        RouteResult tagged "fallback-straight"
    """
    stops = [start, *waypoints, end]
    leg_lengths = [calculate_distance_from_points([a, b]) for a, b in zip(stops, stops[1:])]
    total = sum(leg_lengths)

    total_samples = max(FALLBACK_MIN_SAMPLES, int(total / FALLBACK_SAMPLE_SPACING_M))
    path = [start]
    for (a, b), length in zip(zip(stops, stops[1:]), leg_lengths):
        if total > 0:
            samples = max(1, round(total_samples * length / total))
        else:
            samples = max(1, total_samples // len(leg_lengths))
        path.extend(_sample_leg(a, b, samples)[1:])

    logger.info("Synthesized straight-line route: %.0f m, %d points", total, len(path))
    return RouteResult(
        path=path,
        distance=total,
        duration=exercise_minutes(total, REFERENCE_SPEEDS[ActivityType(activity).value]) * 60,
        exercise_duration_minutes=exercise_duration_minutes(total, activity),
        instructions=_checkpoint_instructions(path, total),
        bounds=bounds_from_points(path),
        provider_used=FALLBACK_PROVIDER,
        activity=ActivityType(activity),
        provider_name=FALLBACK_PROVIDER,
    )


class RouteResolver:
    """
    Resolves routes by asking providers in order.

    A provider that finds no route (or times out) hands over to the next
    one. Any other failure, including an answer that cannot be parsed,
    skips the rest of the chain and the route is synthesized as a straight
    line, so resolve() always returns a route.
    """

    def __init__(self, providers: Optional[Sequence[RoutingProvider]] = None):
        self.providers = list(providers or [])

    def resolve(
        self,
        start: LatLng,
        end: LatLng,
        activity: ActivityType = ActivityType.RUN,
        waypoints: Sequence[LatLng] = ()
    ) -> RouteResult:
        """
        Resolve a route between two points

        Args:
            start: Start point
            end: End point (may equal start for a round trip)
            activity: walk, run or bike
            waypoints: Points to pass on the way

        Returns:
            RouteResult

        Raises:
            ValueError: if a coordinate is outside the valid range
        """
        for point in (start, end, *waypoints):
            if not validate_coordinates(point.lat, point.lng):
                raise ValueError(f"Invalid coordinates: {point.lat}, {point.lng}")

        activity = ActivityType(activity)
        request = RouteRequest(start=start, end=end, activity=activity, waypoints=tuple(waypoints))

        for index, provider in enumerate(self.providers):
            role = provider_role(index)
            try:
                raw = provider.route(request)
            except ProviderError as e:
                if e.recoverable:
                    logger.warning("%s provider %s found no route: %s", role, provider.name, e)
                    continue
                logger.warning("%s provider %s failed, skipping remaining providers: %s", role, provider.name, e)
                break
            except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
                # Malformed answer from the provider
                logger.warning(
                    "%s provider %s returned an unreadable route, skipping remaining providers: %r",
                    role, provider.name, e
                )
                break

            logger.info("Route from %s provider %s: %.0f m", role, provider.name, raw.distance)
            return normalize_route(raw, activity, role, provider.name)

        return synthesize_straight_route(start, end, activity, waypoints)

    def resolve_round_trip(
        self,
        start: LatLng,
        destination: LatLng,
        activity: ActivityType = ActivityType.RUN
    ) -> RouteResult:
        """Route from start to a turnaround point and back"""
        return self.resolve(start, start, activity, [destination])
