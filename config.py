"""
Configuration and constants for the workout route simulator
"""

# Defaults
DEFAULT_PACE = "6:00"
DEFAULT_CENTER = [35.220462, 129.086192]  # Oncheonjang, Busan
DEFAULT_BODY_WEIGHT_KG = 70.0
DEFAULT_CANDIDATE_RADIUS = 3000

# API URLs
GOOGLE_DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
TMAP_PEDESTRIAN_URL = "https://apis.openapi.sk.com/tmap/routes/pedestrian"
ORS_BASE_URL = "https://api.openrouteservice.org"
GRAPHHOPPER_BASE_URL = "https://graphhopper.com/api/1"
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"

# Provider settings
PROVIDER_TIMEOUT = 8  # seconds per provider call
PROVIDER_ROLES = ("primary", "secondary", "tertiary", "quaternary")
PROVIDER_LANGUAGE = "ko"
PROVIDER_REGION = "KR"

# Exercise reference speeds (km/h), independent of the provider's travel mode
REFERENCE_SPEEDS = {
    "walk": 5.0,
    "run": 10.0,
    "bike": 20.0,
}

# Estimated energy per kilometre for route statistics
CALORIES_PER_KM = {
    "walk": 50,
    "run": 80,
    "bike": 30,
}

# Straight-line fallback
FALLBACK_SAMPLE_SPACING_M = 50.0
FALLBACK_MIN_SAMPLES = 20
FALLBACK_CHECKPOINTS = 5

# Simulation timing
TICK_INTERVAL = 0.1  # seconds
COMPLETION_GRACE_PERIOD = 3.0  # seconds before the auto-stop callback
COACHING_INTERVAL_SHORT = 10  # simulated seconds
COACHING_INTERVAL_LONG = 15
COACHING_SHORT_COURSE_LIMIT = 20 * 60  # courses shorter than this use the short interval
PATH_SAMPLE_INTERVAL = 0.5  # seconds between visited-path samples

# Physiology
MIN_SPEED_KMH = 8.0
SPEED_VARIATION_KMH = 0.3
STEPS_PER_METER = 1.3
MIN_HEART_RATE = 60
MAX_HEART_RATE = 185
COACH_MAX_HEART_RATE = 190  # 220 - 30 years

# Fixed metrics reported once a course is complete
COMPLETION_SPEED_KMH = 10.0
COMPLETION_HEART_RATE = 145
COMPLETION_CALORIES_PER_METER = 0.05

# Candidate course generation
CANDIDATE_RADII = (500, 1000, 1500, 2000, 2500, 3000)
CANDIDATE_GRID_DEGREES = 0.001  # roughly 100 m
CANDIDATE_MIN_COUNT = 5
CANDIDATE_MAX_COUNT = 8
SHORT_POOL_LIMIT = 1500
MEDIUM_POOL_LIMIT = 3000
METERS_PER_DEGREE = 111320
