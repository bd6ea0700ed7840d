"""
Data models for the workout route simulator
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from exceptions import InvalidCourseDefinition

# Tolerance when comparing distances in metres
DISTANCE_EPSILON = 1e-6


class ActivityType(str, Enum):
    WALK = "walk"
    RUN = "run"
    BIKE = "bike"


class DifficultyTier(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SimulationStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class LatLng:
    """A geographic point"""
    lat: float
    lng: float


@dataclass(frozen=True)
class Waypoint:
    """A point on a course, tagged with the distance run to reach it"""
    lat: float
    lng: float
    cumulative_distance: float  # meter
    label: Optional[str] = None


@dataclass(frozen=True)
class PaceSegment:
    """A distance interval of a course with its target pace"""
    start_distance: float
    end_distance: float
    pace_min_per_km: float
    description: str = ""


@dataclass(frozen=True)
class CourseDefinition:
    """
    An immutable course: its path, its pace segments and the time it takes.

    Raises InvalidCourseDefinition on construction if the path or the
    segments are malformed.
    """
    id: str
    name: str
    total_distance: float  # meter
    path: Tuple[Waypoint, ...]
    segments: Tuple[PaceSegment, ...]
    target_duration: float  # seconds
    description: str = ""

    def __post_init__(self):
        # Accept lists from callers but store tuples
        object.__setattr__(self, "path", tuple(self.path))
        object.__setattr__(self, "segments", tuple(self.segments))
        self._validate()

    def _validate(self):
        if self.target_duration <= 0:
            raise InvalidCourseDefinition(
                f"Course {self.id}: target duration must be positive, got {self.target_duration}"
            )
        if self.total_distance <= 0:
            raise InvalidCourseDefinition(
                f"Course {self.id}: total distance must be positive, got {self.total_distance}"
            )
        if len(self.path) < 2:
            raise InvalidCourseDefinition(f"Course {self.id}: path needs at least 2 points")

        if abs(self.path[0].cumulative_distance) > DISTANCE_EPSILON:
            raise InvalidCourseDefinition(f"Course {self.id}: path must start at distance 0")
        for prev, point in zip(self.path, self.path[1:]):
            if point.cumulative_distance < prev.cumulative_distance:
                raise InvalidCourseDefinition(
                    f"Course {self.id}: path distances decrease at {point.cumulative_distance} m"
                )
        if abs(self.path[-1].cumulative_distance - self.total_distance) > DISTANCE_EPSILON:
            raise InvalidCourseDefinition(
                f"Course {self.id}: path ends at {self.path[-1].cumulative_distance} m, "
                f"expected {self.total_distance} m"
            )

        if not self.segments:
            raise InvalidCourseDefinition(f"Course {self.id}: no pace segments")
        if abs(self.segments[0].start_distance) > DISTANCE_EPSILON:
            raise InvalidCourseDefinition(f"Course {self.id}: first segment must start at 0")
        for segment in self.segments:
            if segment.end_distance <= segment.start_distance:
                raise InvalidCourseDefinition(
                    f"Course {self.id}: empty segment {segment.start_distance}-{segment.end_distance}"
                )
            if segment.pace_min_per_km <= 0:
                raise InvalidCourseDefinition(
                    f"Course {self.id}: pace must be positive in segment '{segment.description}'"
                )
        for prev, segment in zip(self.segments, self.segments[1:]):
            if abs(segment.start_distance - prev.end_distance) > DISTANCE_EPSILON:
                raise InvalidCourseDefinition(
                    f"Course {self.id}: gap between segments at {prev.end_distance} m"
                )
        if abs(self.segments[-1].end_distance - self.total_distance) > DISTANCE_EPSILON:
            raise InvalidCourseDefinition(
                f"Course {self.id}: segments end at {self.segments[-1].end_distance} m, "
                f"expected {self.total_distance} m"
            )


@dataclass(frozen=True)
class Position:
    """An interpolated position along a path"""
    lat: float
    lng: float
    cumulative_distance: float
    label: Optional[str] = None


@dataclass(frozen=True)
class Metrics:
    """Simulated metrics for one moment of a workout"""
    progress_percent: float
    position: Position
    distance_covered: float
    speed_kmh: float
    heart_rate_bpm: int
    calories_kcal: int
    step_count: int
    pace_label: str
    completed: bool = False


@dataclass(frozen=True)
class SimulationState:
    """Read-only snapshot published by the tick controller"""
    course: CourseDefinition
    status: SimulationStatus
    elapsed_seconds: float
    paused: bool
    position: Position
    distance_covered: float
    speed_kmh: float
    heart_rate_bpm: int
    calories_kcal: int
    step_count: int
    pace_label: str
    progress_percent: float
    completed: bool
    tracked_distance: float = 0.0


@dataclass(frozen=True)
class CoachingFeedback:
    elapsed_seconds: float
    speed_kmh: float
    heart_rate_bpm: int
    messages: Tuple[str, ...]


@dataclass(frozen=True)
class SessionSummary:
    """Finalized session handed to the storage collaborator"""
    course_id: str
    completed: bool
    distance: float  # meter
    elapsed_seconds: float
    avg_speed_kmh: float
    max_speed_kmh: float
    calories_kcal: int
    heart_rate_samples: Tuple[int, ...]
    step_count: int
    path: Tuple[LatLng, ...]

    @property
    def avg_heart_rate_bpm(self) -> int:
        if not self.heart_rate_samples:
            return 0
        return round(sum(self.heart_rate_samples) / len(self.heart_rate_samples))


@dataclass(frozen=True)
class Bounds:
    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class Instruction:
    """One turn-by-turn step"""
    text: str
    distance_label: str
    start_location: LatLng
    end_location: LatLng
    maneuver: str = "straight"


@dataclass(frozen=True)
class RouteResult:
    """A normalized navigation route"""
    path: List[LatLng]
    distance: float  # meter
    duration: float  # seconds, as reported by the provider
    exercise_duration_minutes: int
    instructions: List[Instruction]
    bounds: Bounds
    provider_used: str
    activity: ActivityType = ActivityType.RUN
    provider_name: str = ""

    @property
    def is_straight_line(self) -> bool:
        return self.provider_used == "fallback-straight"


@dataclass(frozen=True)
class CourseCandidate:
    """A nearby round-trip course suggestion"""
    center: LatLng
    endpoints: Tuple[LatLng, ...]
    difficulty_tier: DifficultyTier
    total_distance: float  # meter
    estimated_time_label: str
    name: str = ""

    @property
    def path(self) -> List[LatLng]:
        return [self.center, *self.endpoints, self.center]


@dataclass(frozen=True)
class Destination:
    """A suggested out-and-back destination"""
    name: str
    location: LatLng
    distance: float
    category: str
    bearing: float = 0.0


@dataclass(frozen=True)
class RouteRequest:
    """What a routing provider is asked for"""
    start: LatLng
    end: LatLng
    activity: ActivityType = ActivityType.RUN
    waypoints: Tuple[LatLng, ...] = ()

    @property
    def is_foot(self) -> bool:
        return self.activity is not ActivityType.BIKE

    @property
    def points(self) -> List[LatLng]:
        return [self.start, *self.waypoints, self.end]


@dataclass(frozen=True)
class ProviderRoute:
    """A provider's answer before normalization"""
    path: Tuple[LatLng, ...]
    distance: float  # meter
    duration: float  # seconds in the provider's travel mode
    instructions: Tuple[Instruction, ...] = ()
