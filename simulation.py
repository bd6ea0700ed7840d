"""
Tick-driven workout simulation ("virtual GPS")

A TickController owns one running course at a time. A scheduler calls its
tick on a fixed cadence; every tick advances the simulated clock, computes
position and metrics and publishes a read-only SimulationState.
"""

import heapq
import itertools
import logging
import math
import threading
from typing import Callable, List, Optional

from config import (
    COACH_MAX_HEART_RATE,
    COACHING_INTERVAL_LONG,
    COACHING_INTERVAL_SHORT,
    COACHING_SHORT_COURSE_LIMIT,
    COMPLETION_GRACE_PERIOD,
    DEFAULT_BODY_WEIGHT_KG,
    PATH_SAMPLE_INTERVAL,
    TICK_INTERVAL,
)
from exceptions import GeolocationUnavailable, SimulationStateError
from models import (
    CoachingFeedback,
    CourseDefinition,
    LatLng,
    Metrics,
    SessionSummary,
    SimulationState,
    SimulationStatus,
)
from physiology import compute_metrics
from utils import haversine

logger = logging.getLogger(__name__)

ACTIVE_STATES = (SimulationStatus.RUNNING, SimulationStatus.PAUSED, SimulationStatus.COMPLETED)


class ThreadingScheduler:
    """Runs callbacks on daemon timer threads"""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualHandle:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler driven by an explicit clock.

    Nothing fires until advance() is called, which makes runs deterministic
    and lets a front-end step through a workout at its own speed.
    """

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle()
        heapq.heappush(self._queue, (self.now + delay, next(self._counter), callback, handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[3].cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and fire every callback that falls due

        Returns:
            Number of callbacks fired
        """
        # Small epsilon so accumulated float error does not skip a tick
        target = self.now + seconds + 1e-9
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, callback, handle = heapq.heappop(self._queue)
            self.now = max(self.now, due)
            if handle.cancelled:
                continue
            callback()
            fired += 1
        self.now = max(self.now, target - 1e-9)
        return fired


def generate_coaching(speed_kmh: float, heart_rate_bpm: int, elapsed_seconds: float) -> CoachingFeedback:
    """Coaching messages for the current speed and heart rate"""
    messages = []

    if speed_kmh < 6:
        messages.append("Pick up the pace a little!")
    elif speed_kmh > 12:
        messages.append("Too fast! Ease off the pace")
    else:
        messages.append("Perfect pace, keep it up!")

    zone_min = COACH_MAX_HEART_RATE * 0.5
    zone_max = COACH_MAX_HEART_RATE * 0.85
    if heart_rate_bpm < zone_min:
        messages.append("Raise the intensity a bit")
    elif heart_rate_bpm > zone_max:
        messages.append("Heart rate is high, slow down")
    else:
        messages.append("You are in the optimal heart rate zone")

    whole_seconds = int(elapsed_seconds)
    if whole_seconds > 0 and whole_seconds % 300 == 0:
        messages.append("Another five minutes done, keep going!")

    return CoachingFeedback(
        elapsed_seconds=elapsed_seconds,
        speed_kmh=speed_kmh,
        heart_rate_bpm=heart_rate_bpm,
        messages=tuple(messages),
    )


class TickController:
    """
    State machine for one simulated workout.

    Idle -> Running <-> Paused -> Completed, and stop() from any active state.
    Only the controller mutates its state; consumers get SimulationState
    snapshots through on_snapshot and the finished session through
    on_session_end.
    """

    def __init__(
        self,
        scheduler=None,
        on_snapshot: Optional[Callable[[SimulationState], None]] = None,
        on_complete: Optional[Callable[[SimulationState], None]] = None,
        on_coaching: Optional[Callable[[CoachingFeedback], None]] = None,
        on_auto_stop: Optional[Callable[[SessionSummary], None]] = None,
        on_session_end: Optional[Callable[[SessionSummary], None]] = None,
        location_source: Optional[Callable[[], Optional[LatLng]]] = None,
        body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG,
        tick_interval: float = TICK_INTERVAL,
        grace_period: float = COMPLETION_GRACE_PERIOD
    ):
        self._scheduler = scheduler or ThreadingScheduler()
        self._on_snapshot = on_snapshot
        self._on_complete = on_complete
        self._on_coaching = on_coaching
        self._on_auto_stop = on_auto_stop
        self._on_session_end = on_session_end
        self._location_source = location_source
        self._body_weight_kg = body_weight_kg
        self._tick_interval = tick_interval
        self._grace_period = grace_period
        self._path_sample_ticks = max(1, round(PATH_SAMPLE_INTERVAL / tick_interval))

        self._lock = threading.RLock()
        self._status = SimulationStatus.IDLE
        self._course: Optional[CourseDefinition] = None
        self._timer = None
        self._grace_timer = None
        self._summary: Optional[SessionSummary] = None
        self._clear()

    def _clear(self):
        self._ticks = 0
        self._metrics: Optional[Metrics] = None
        self._snapshot: Optional[SimulationState] = None
        self._max_speed = 0.0
        self._heart_rate_samples: List[int] = []
        self._visited: List[LatLng] = []
        self._tracked_distance = 0.0
        self._last_sample: Optional[LatLng] = None

    # ----------------
    # Read-only views
    # ----------------

    @property
    def status(self) -> SimulationStatus:
        return self._status

    @property
    def snapshot(self) -> Optional[SimulationState]:
        return self._snapshot

    @property
    def elapsed_seconds(self) -> float:
        return round(self._ticks * self._tick_interval, 6)

    @property
    def course(self) -> Optional[CourseDefinition]:
        return self._course

    def coaching_interval(self) -> int:
        if self._course and self._course.target_duration < COACHING_SHORT_COURSE_LIMIT:
            return COACHING_INTERVAL_SHORT
        return COACHING_INTERVAL_LONG

    # ----------------
    # Transitions
    # ----------------

    def start(self, course: CourseDefinition) -> SimulationState:
        """
        Start simulating a course from zero

        Raises:
            SimulationStateError: if a course is still active; stop() it first
        """
        with self._lock:
            if self._status in ACTIVE_STATES:
                raise SimulationStateError(
                    f"Course {self._course.id} is still {self._status.value}; stop it before starting another"
                )
            self._course = course
            self._summary = None
            self._clear()
            self._status = SimulationStatus.RUNNING
            self._metrics = compute_metrics(course, 0.0, self._body_weight_kg)
            self._visited.append(LatLng(self._metrics.position.lat, self._metrics.position.lng))
            self._timer = self._scheduler.call_later(self._tick_interval, self._tick)
            logger.info("Started course %s (%.0f m, %.0f s)", course.id, course.total_distance, course.target_duration)
            return self._publish()

    def pause(self):
        with self._lock:
            if self._status is not SimulationStatus.RUNNING:
                raise SimulationStateError(f"Cannot pause while {self._status.value}")
            self._status = SimulationStatus.PAUSED
            logger.info("Paused course %s at %.1f s", self._course.id, self.elapsed_seconds)
            self._publish()

    def resume(self):
        with self._lock:
            if self._status is not SimulationStatus.PAUSED:
                raise SimulationStateError(f"Cannot resume while {self._status.value}")
            self._status = SimulationStatus.RUNNING
            logger.info("Resumed course %s at %.1f s", self._course.id, self.elapsed_seconds)
            self._publish()

    def stop(self) -> Optional[SessionSummary]:
        """
        Cancel the timer and finalize the session

        No tick runs after this returns. Calling stop() again returns the
        same summary without emitting it a second time.

        Returns:
            SessionSummary, or None if nothing was started
        """
        with self._lock:
            if self._status is SimulationStatus.IDLE:
                return None
            if self._status is SimulationStatus.STOPPED:
                return self._summary

            self._cancel_timers()
            completed = self._status is SimulationStatus.COMPLETED
            self._status = SimulationStatus.STOPPED
            self._summary = self._build_summary(completed)
            logger.info(
                "Stopped course %s after %.1f s, %.0f m (completed=%s)",
                self._course.id, self._summary.elapsed_seconds, self._summary.distance, completed
            )
            if self._on_session_end:
                self._on_session_end(self._summary)
            return self._summary

    def reset(self):
        """Return a stopped controller to Idle"""
        with self._lock:
            if self._status in ACTIVE_STATES:
                raise SimulationStateError(f"Cannot reset while {self._status.value}; stop first")
            self._status = SimulationStatus.IDLE
            self._course = None
            self._summary = None
            self._clear()

    # ----------------
    # Internals
    # ----------------

    def _cancel_timers(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._grace_timer is not None:
            self._grace_timer.cancel()
            self._grace_timer = None

    def _tick(self):
        with self._lock:
            self._timer = None
            if self._status not in (SimulationStatus.RUNNING, SimulationStatus.PAUSED):
                return
            self._timer = self._scheduler.call_later(self._tick_interval, self._tick)
            if self._status is SimulationStatus.PAUSED:
                return
            self._advance()

    def _advance(self):
        previous_second = math.floor(self.elapsed_seconds)
        self._ticks += 1
        elapsed = self.elapsed_seconds
        course = self._course

        metrics = compute_metrics(course, elapsed, self._body_weight_kg)
        self._metrics = metrics
        self._max_speed = max(self._max_speed, metrics.speed_kmh)
        self._track_location()

        whole_second = math.floor(elapsed)
        crossed_second = whole_second != previous_second
        if crossed_second:
            self._heart_rate_samples.append(metrics.heart_rate_bpm)
        if self._ticks % self._path_sample_ticks == 0 or metrics.completed:
            self._visited.append(LatLng(metrics.position.lat, metrics.position.lng))

        self._publish()
        if self._status is not SimulationStatus.RUNNING:
            # A consumer stopped or paused the run from on_snapshot
            return

        if crossed_second and whole_second % self.coaching_interval() == 0 and self._on_coaching:
            self._on_coaching(generate_coaching(metrics.speed_kmh, metrics.heart_rate_bpm, elapsed))

        if metrics.progress_percent >= 100 and self._status is SimulationStatus.RUNNING:
            self._complete()

    def _complete(self):
        if self._status is not SimulationStatus.RUNNING:
            return
        self._status = SimulationStatus.COMPLETED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Completed course %s in %.1f s", self._course.id, self.elapsed_seconds)
        final = self._publish()
        if self._on_complete:
            self._on_complete(final)
        self._grace_timer = self._scheduler.call_later(self._grace_period, self._auto_stop)

    def _auto_stop(self):
        with self._lock:
            self._grace_timer = None
            if self._status is not SimulationStatus.COMPLETED:
                return
            summary = self.stop()
        if self._on_auto_stop:
            self._on_auto_stop(summary)

    def _track_location(self):
        if self._location_source is None:
            return
        try:
            sample = self._location_source()
        except GeolocationUnavailable:
            logger.debug("No location sample at %.1f s", self.elapsed_seconds)
            return
        if sample is None:
            return
        if self._last_sample is not None:
            self._tracked_distance += haversine(self._last_sample, sample)
        self._last_sample = sample

    def _publish(self) -> SimulationState:
        metrics = self._metrics
        self._snapshot = SimulationState(
            course=self._course,
            status=self._status,
            elapsed_seconds=self.elapsed_seconds,
            paused=self._status is SimulationStatus.PAUSED,
            position=metrics.position,
            distance_covered=metrics.distance_covered,
            speed_kmh=metrics.speed_kmh,
            heart_rate_bpm=metrics.heart_rate_bpm,
            calories_kcal=metrics.calories_kcal,
            step_count=metrics.step_count,
            pace_label=metrics.pace_label,
            progress_percent=metrics.progress_percent,
            completed=metrics.completed,
            tracked_distance=self._tracked_distance,
        )
        if self._on_snapshot:
            self._on_snapshot(self._snapshot)
        return self._snapshot

    def _build_summary(self, completed: bool) -> SessionSummary:
        metrics = self._metrics
        elapsed = self.elapsed_seconds
        avg_speed = (metrics.distance_covered / 1000) / (elapsed / 3600) if elapsed > 0 else 0.0
        return SessionSummary(
            course_id=self._course.id,
            completed=completed,
            distance=metrics.distance_covered,
            elapsed_seconds=elapsed,
            avg_speed_kmh=avg_speed,
            max_speed_kmh=self._max_speed,
            calories_kcal=metrics.calories_kcal,
            heart_rate_samples=tuple(self._heart_rate_samples),
            step_count=metrics.step_count,
            path=tuple(self._visited),
        )
