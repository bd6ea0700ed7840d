import math

import pytest

from courses import list_courses
from models import CourseDefinition, PaceSegment
from physiology import (
    active_segment,
    calories,
    compute_metrics,
    heart_rate,
    met_for_speed,
    pace_label,
    speed,
    steps,
)


def test_speed_follows_segment_pace(simple_course):
    # sin(0) = 0, so no variation at the start
    assert speed(simple_course, 0, 0) == pytest.approx(10.0)
    assert speed(simple_course, 600, 0) == pytest.approx(12.0)


def test_speed_is_floored(simple_course):
    course = CourseDefinition(
        id="slow",
        name="Slow",
        total_distance=1000,
        path=simple_course.path,
        segments=[PaceSegment(0, 1000, 10.0)],
        target_duration=600,
    )
    assert speed(course, 100, 0) == 8.0


def test_speed_variation_is_bounded(oncheonjang):
    for elapsed in range(0, 540):
        base = 60 / active_segment(oncheonjang, 750).pace_min_per_km
        assert abs(speed(oncheonjang, 750, elapsed) - max(base, 8)) <= 0.3 + 1e-9


def test_last_segment_at_finish(oncheonjang):
    assert active_segment(oncheonjang, oncheonjang.total_distance) is oncheonjang.segments[-1]
    assert active_segment(oncheonjang, 0) is oncheonjang.segments[0]
    assert active_segment(oncheonjang, 200) is oncheonjang.segments[1]


def test_heart_rate_warmup_starts_at_95():
    assert heart_rate(0, 540, 10) == 95


@pytest.mark.parametrize("course", list_courses(), ids=lambda course: course.id)
def test_heart_rate_stays_in_range(course):
    for elapsed in range(0, int(course.target_duration) + 1):
        for current_speed in (8.0, 10.0, 12.0, 14.0):
            assert 60 <= heart_rate(elapsed, course.target_duration, current_speed) <= 185


def test_heart_rate_steady_phase():
    # At 270 s the sinusoid is 5*sin(54)
    expected = round(135 + (12 / 12) * 30 + 5 * math.sin(54))
    assert heart_rate(270, 540, 12) == expected


def test_met_tiers():
    assert met_for_speed(7.9) == 7.0
    assert met_for_speed(8.0) == 9.8
    assert met_for_speed(9.99) == 9.8
    assert met_for_speed(10.0) == 11.5


def test_calories_start_at_zero():
    assert calories(0, 10) == 0


def test_calories_from_total_elapsed_time():
    assert calories(3600, 12) == pytest.approx(11.5 * 70)
    assert calories(1800, 9, body_weight_kg=60) == pytest.approx(9.8 * 60 / 2)


def test_calories_never_decrease_for_fixed_speed():
    values = [calories(elapsed, 10.5) for elapsed in range(0, 3600, 30)]
    assert values == sorted(values)


def test_steps_and_pace():
    assert steps(1000) == 1300
    assert steps(0) == 0
    assert pace_label(10) == "06:00"
    assert pace_label(12) == "05:00"
    assert pace_label(0) == "--:--"


def test_pace_label_rounds_to_nearest_second():
    assert pace_label(60 / 6.198) == "06:12"
    assert pace_label(60 / 5.999) == "06:00"


def test_halfway_scenario(oncheonjang):
    metrics = compute_metrics(oncheonjang, 270)
    assert metrics.progress_percent == 50.0
    assert metrics.distance_covered == pytest.approx(750)
    assert metrics.step_count == 975
    assert not metrics.completed


def test_completion_is_stable(oncheonjang):
    at_finish = compute_metrics(oncheonjang, 540)
    later = compute_metrics(oncheonjang, 900)
    assert at_finish == later
    assert at_finish.completed
    assert at_finish.progress_percent == 100.0
    assert at_finish.distance_covered == 1500
    assert at_finish.speed_kmh == 10.0
    assert at_finish.heart_rate_bpm == 145
    assert at_finish.calories_kcal == 75
    assert at_finish.step_count == 1950
    assert at_finish.pace_label == "06:00"
    assert at_finish.position.label == "Finish"
