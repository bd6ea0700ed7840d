"""
Map rendering for routes, course candidates and simulation snapshots
"""

from typing import List, Optional, Sequence

import folium

from models import CourseCandidate, CourseDefinition, DifficultyTier, RouteResult, SimulationState

# Line colour per provider role
PROVIDER_COLORS = {
    "primary": "blue",
    "secondary": "purple",
    "tertiary": "darkpurple",
    "quaternary": "cadetblue",
    "fallback-straight": "gray",
}

TIER_COLORS = {
    DifficultyTier.EASY: "green",
    DifficultyTier.MEDIUM: "orange",
    DifficultyTier.HARD: "red",
}


def _fit(m: folium.Map, coords: List[List[float]]):
    if len(coords) > 1:
        bounds = [[min(p[0] for p in coords), min(p[1] for p in coords)],
                  [max(p[0] for p in coords), max(p[1] for p in coords)]]
        m.fit_bounds(bounds)


def create_map(
    center: Sequence[float],
    route: Optional[RouteResult] = None,
    candidates: Sequence[CourseCandidate] = (),
    zoom_start: int = 14
) -> folium.Map:
    """
    Folium map with a resolved route and/or course candidates

    Args:
        center: Map center [lat, lng]
        route: Resolved route
        candidates: Course candidates drawn as loops

    Returns:
        Folium Map
    """
    m = folium.Map(location=list(center), zoom_start=zoom_start, control_scale=True)
    fit_coords = []

    if route and route.path:
        coords = [[p.lat, p.lng] for p in route.path]
        folium.PolyLine(
            coords,
            color=PROVIDER_COLORS.get(route.provider_used, "blue"),
            weight=4,
            opacity=0.8,
            dash_array="8" if route.is_straight_line else None,
            popup=f"{route.provider_name}: {route.distance/1000:.2f} km"
        ).add_to(m)
        folium.Marker(coords[0], popup="Start", icon=folium.Icon(color="green", icon="play")).add_to(m)
        folium.Marker(coords[-1], popup="Finish", icon=folium.Icon(color="red", icon="stop")).add_to(m)
        fit_coords.extend(coords)

    for candidate in candidates:
        coords = [[p.lat, p.lng] for p in candidate.path]
        folium.PolyLine(
            coords,
            color=TIER_COLORS[candidate.difficulty_tier],
            weight=3,
            opacity=0.7,
            popup=f"{candidate.name} ({candidate.estimated_time_label})"
        ).add_to(m)
        fit_coords.extend(coords)

    _fit(m, fit_coords)
    return m


def create_simulation_map(course: CourseDefinition, state: Optional[SimulationState] = None) -> folium.Map:
    """Course polyline with the simulated runner's current position"""
    coords = [[p.lat, p.lng] for p in course.path]
    m = folium.Map(location=coords[0], zoom_start=15, control_scale=True)

    folium.PolyLine(coords, color="blue", weight=4, opacity=0.6).add_to(m)
    for point in course.path:
        if point.label:
            folium.Marker([point.lat, point.lng], popup=point.label).add_to(m)

    if state is not None:
        folium.CircleMarker(
            [state.position.lat, state.position.lng],
            radius=8,
            color="red",
            fill=True,
            popup=f"{state.distance_covered:.0f} m, {state.pace_label}/km"
        ).add_to(m)

    _fit(m, coords)
    return m
