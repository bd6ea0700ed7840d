"""
Physiological simulation: speed, heart rate, calories and steps for a course
"""

import math

from config import (
    COMPLETION_CALORIES_PER_METER,
    COMPLETION_HEART_RATE,
    COMPLETION_SPEED_KMH,
    DEFAULT_BODY_WEIGHT_KG,
    MAX_HEART_RATE,
    MIN_HEART_RATE,
    MIN_SPEED_KMH,
    SPEED_VARIATION_KMH,
    STEPS_PER_METER,
)
from interpolation import interpolate
from models import CourseDefinition, Metrics, PaceSegment, Position
from utils import format_time

WARMUP_FRACTION = 0.15
COOLDOWN_FRACTION = 0.85


def active_segment(course: CourseDefinition, distance_covered: float) -> PaceSegment:
    """Pace segment containing the covered distance, the last one at or past the finish"""
    for segment in course.segments:
        if segment.start_distance <= distance_covered < segment.end_distance:
            return segment
    return course.segments[-1]


def speed(course: CourseDefinition, distance_covered: float, elapsed_seconds: float) -> float:
    """
    Current running speed

    Args:
        course: The course being run
        distance_covered: Meters run so far
        elapsed_seconds: Simulated seconds since start

    Returns:
        Speed in km/h, never below MIN_SPEED_KMH
    """
    segment = active_segment(course, distance_covered)
    base_speed = 60 / segment.pace_min_per_km
    variation = SPEED_VARIATION_KMH * math.sin(0.1 * elapsed_seconds)
    return max(base_speed + variation, MIN_SPEED_KMH)


def heart_rate(elapsed_seconds: float, target_duration: float, speed_kmh: float) -> int:
    """
    Heart rate following a warm-up, steady and cool-down curve

    Args:
        elapsed_seconds: Simulated seconds since start
        target_duration: Planned duration of the course in seconds
        speed_kmh: Current speed

    Returns:
        Beats per minute, clamped to MIN_HEART_RATE-MAX_HEART_RATE
    """
    warmup_end = target_duration * WARMUP_FRACTION
    cooldown_start = target_duration * COOLDOWN_FRACTION

    if elapsed_seconds < warmup_end:
        target = 95 + (elapsed_seconds / warmup_end) * 40
    elif elapsed_seconds < cooldown_start:
        target = 135 + (speed_kmh / 12) * 30
    else:
        cooldown = (elapsed_seconds - cooldown_start) / (target_duration - cooldown_start)
        target = 155 - min(cooldown, 1.0) * 25

    variation = 5 * math.sin(0.2 * elapsed_seconds)
    return round(min(max(target + variation, MIN_HEART_RATE), MAX_HEART_RATE))


def met_for_speed(speed_kmh: float) -> float:
    if speed_kmh < 8:
        return 7.0
    if speed_kmh < 10:
        return 9.8
    return 11.5


def calories(
    elapsed_seconds: float,
    speed_kmh: float,
    body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG
) -> float:
    """
    Energy burned so far, recomputed from the total elapsed time

    Args:
        elapsed_seconds: Simulated seconds since start
        speed_kmh: Current speed, selects the MET tier
        body_weight_kg: Runner's weight

    Returns:
        Kilocalories
    """
    return met_for_speed(speed_kmh) * body_weight_kg / 3600 * max(elapsed_seconds, 0.0)


def steps(distance_covered: float) -> int:
    return round(distance_covered * STEPS_PER_METER)


def pace_label(speed_kmh: float) -> str:
    """Pace as mm:ss per km"""
    if speed_kmh <= 0:
        return "--:--"
    return format_time(60 / speed_kmh)


def completion_metrics(course: CourseDefinition) -> Metrics:
    """Fixed metrics reported once the course is finished"""
    finish = course.path[-1]
    return Metrics(
        progress_percent=100.0,
        position=Position(
            lat=finish.lat,
            lng=finish.lng,
            cumulative_distance=finish.cumulative_distance,
            label=finish.label,
        ),
        distance_covered=course.total_distance,
        speed_kmh=COMPLETION_SPEED_KMH,
        heart_rate_bpm=COMPLETION_HEART_RATE,
        calories_kcal=round(course.total_distance * COMPLETION_CALORIES_PER_METER),
        step_count=steps(course.total_distance),
        pace_label=pace_label(COMPLETION_SPEED_KMH),
        completed=True,
    )


def compute_metrics(
    course: CourseDefinition,
    elapsed_seconds: float,
    body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG
) -> Metrics:
    """
    Everything the simulator reports for one moment of a run

    Distance is proportional to elapsed time, so the course is finished
    exactly at its target duration.
    """
    elapsed_seconds = max(elapsed_seconds, 0.0)
    if elapsed_seconds >= course.target_duration:
        return completion_metrics(course)

    progress = min(elapsed_seconds / course.target_duration * 100, 100.0)
    distance_covered = progress / 100 * course.total_distance
    current_speed = speed(course, distance_covered, elapsed_seconds)

    return Metrics(
        progress_percent=progress,
        position=interpolate(course.path, progress),
        distance_covered=distance_covered,
        speed_kmh=current_speed,
        heart_rate_bpm=heart_rate(elapsed_seconds, course.target_duration, current_speed),
        calories_kcal=round(calories(elapsed_seconds, current_speed, body_weight_kg)),
        step_count=steps(distance_covered),
        pace_label=pace_label(current_speed),
    )
