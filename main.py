"""
Streamlit front-end for the workout route simulator
"""

import logging
from datetime import datetime

import streamlit as st
from streamlit_folium import st_folium

from candidates import CandidateCourseGenerator, suggest_destinations
from config import DEFAULT_CANDIDATE_RADIUS, DEFAULT_CENTER, DEFAULT_PACE
from courses import course_from_route, list_courses
from exceptions import InvalidCourseDefinition, SimulationStateError
from geocoding import geocode_address, reverse_geocode
from map_utils import create_map, create_simulation_map
from models import ActivityType, LatLng, SimulationStatus
from routing import RouteResolver
from routing_providers import build_providers
from simulation import ManualScheduler, TickController
from utils import create_gpx, estimate_route_calories, format_time, route_difficulty

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

ACTIVITY_LABELS = {
    ActivityType.WALK: "Walk",
    ActivityType.RUN: "Run",
    ActivityType.BIKE: "Bike",
}


def init_session_state():
    """Initialise session state"""
    if "start_coords" not in st.session_state:
        st.session_state.start_coords = LatLng(*DEFAULT_CENTER)
    if "end_coords" not in st.session_state:
        st.session_state.end_coords = None
    if "route" not in st.session_state:
        st.session_state.route = None
    if "candidates" not in st.session_state:
        st.session_state.candidates = []
    if "coach_message" not in st.session_state:
        st.session_state.coach_message = ""
    if "summary" not in st.session_state:
        st.session_state.summary = None
    if "scheduler" not in st.session_state:
        st.session_state.scheduler = ManualScheduler()
        st.session_state.controller = TickController(
            scheduler=st.session_state.scheduler,
            on_coaching=_on_coaching,
            on_session_end=_on_session_end,
        )


def _on_coaching(feedback):
    st.session_state.coach_message = " ".join(feedback.messages)


def _on_session_end(summary):
    st.session_state.summary = summary


def _geocode_input(label: str, key: str):
    address = st.text_input(label, key=key)
    if address and address != st.session_state.get(f"last_{key}"):
        with st.spinner("Looking up address..."):
            coords = geocode_address(address)
        if coords:
            st.session_state[f"last_{key}"] = address
            return coords
        st.error("Could not find the address")
    return None


def navigation_tab(activity: ActivityType):
    st.subheader("Navigation route")
    col1, col2 = st.columns(2)
    with col1:
        start = _geocode_input("Start address", "start_address")
        if start:
            st.session_state.start_coords = start
    with col2:
        end = _geocode_input("Destination address", "end_address")
        if end:
            st.session_state.end_coords = end

    round_trip = st.checkbox("Round trip (back to start)", value=False)

    if st.button("Find route", type="primary"):
        end_coords = st.session_state.end_coords
        if end_coords is None:
            st.error("Choose a destination first!")
        else:
            resolver = RouteResolver(build_providers(st.secrets))
            with st.spinner("Resolving route..."):
                if round_trip:
                    route = resolver.resolve_round_trip(st.session_state.start_coords, end_coords, activity)
                else:
                    route = resolver.resolve(st.session_state.start_coords, end_coords, activity)
            st.session_state.route = route

    route = st.session_state.route
    center = [st.session_state.start_coords.lat, st.session_state.start_coords.lng]
    map_data = st_folium(create_map(center, route=route), key="route_map", width=None, height=450)
    clicked = (map_data or {}).get("last_clicked")
    if clicked and clicked != st.session_state.get("last_clicked"):
        # A click on the map picks the destination
        st.session_state.last_clicked = clicked
        st.session_state.end_coords = LatLng(clicked["lat"], clicked["lng"])
        address = reverse_geocode(clicked["lat"], clicked["lng"])
        st.caption(f"Destination: {address or st.session_state.end_coords}")

    if route:
        if route.is_straight_line:
            st.warning("No routing service could answer, showing a straight line")
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Distance", f"{route.distance/1000:.2f} km")
        col2.metric("Workout time", f"{route.exercise_duration_minutes} min")
        col3.metric("Calories", f"{estimate_route_calories(route.distance, route.activity)} kcal")
        col4.metric("Difficulty", route_difficulty(route.distance).value)
        st.caption(f"Provider: {route.provider_name} ({route.provider_used})")

        with st.expander(f"{len(route.instructions)} instructions"):
            for instruction in route.instructions:
                st.text(f"{instruction.text} ({instruction.distance_label})")

        pace = st.text_input("Target pace (min/km)", value=DEFAULT_PACE, key="route_pace")
        if st.button("Simulate this route"):
            try:
                course = course_from_route(route, pace)
            except InvalidCourseDefinition as e:
                st.error(str(e))
            else:
                _start_course(course)

        st.download_button(
            label="Download GPX",
            data=create_gpx(route, f"Route {datetime.now().strftime('%Y-%m-%d')}"),
            file_name="route.gpx",
            mime="application/gpx+xml"
        )


def candidates_tab():
    st.subheader("Courses nearby")
    radius = st.slider("Radius (m)", 500, 3000, DEFAULT_CANDIDATE_RADIUS, step=500)
    if st.button("Suggest courses"):
        st.session_state.candidates = CandidateCourseGenerator().generate(st.session_state.start_coords, radius)

    center = [st.session_state.start_coords.lat, st.session_state.start_coords.lng]
    st_folium(create_map(center, candidates=st.session_state.candidates), key="candidate_map", width=None, height=450)

    for candidate in st.session_state.candidates:
        st.markdown(
            f"**{candidate.name}**, {candidate.difficulty_tier.value}, "
            f"{candidate.total_distance/1000:.2f} km, about {candidate.estimated_time_label}"
        )

    with st.expander("Destinations for out-and-back routes"):
        for destination in suggest_destinations(st.session_state.start_coords, radius):
            st.text(f"{destination.name} ({destination.category}, {destination.distance} m)")


def _start_course(course):
    controller = st.session_state.controller
    if controller.status is not SimulationStatus.IDLE:
        controller.stop()
        controller.reset()
    st.session_state.summary = None
    st.session_state.coach_message = "Let's go!"
    controller.start(course)


def workout_tab():
    st.subheader("Virtual workout")
    controller = st.session_state.controller
    scheduler = st.session_state.scheduler

    courses = {course.name: course for course in list_courses()}
    selected = st.selectbox("Course", list(courses))
    if st.button("Start course", type="primary"):
        _start_course(courses[selected])

    col1, col2, col3, col4 = st.columns(4)
    try:
        if col1.button("Pause / resume"):
            if controller.status is SimulationStatus.RUNNING:
                controller.pause()
            else:
                controller.resume()
        if col2.button("+10 s"):
            scheduler.advance(10)
        if col3.button("+60 s"):
            scheduler.advance(60)
        if col4.button("Stop"):
            controller.stop()
    except SimulationStateError as e:
        st.warning(str(e))

    if controller.status is SimulationStatus.COMPLETED:
        # Let the grace period run out so the session is finalized
        scheduler.advance(5)

    state = controller.snapshot
    if controller.course is not None:
        st_folium(create_simulation_map(controller.course, state), key="sim_map", width=None, height=450)

    if state:
        st.progress(min(int(state.progress_percent), 100))
        col1, col2, col3, col4, col5 = st.columns(5)
        col1.metric("Time", format_time(state.elapsed_seconds / 60))
        col2.metric("Distance", f"{state.distance_covered/1000:.2f} km")
        col3.metric("Pace", f"{state.pace_label}/km")
        col4.metric("Heart rate", f"{state.heart_rate_bpm} bpm")
        col5.metric("Calories", f"{state.calories_kcal} kcal")
        st.caption(f"Status: {state.status.value}, steps: {state.step_count}")
    if st.session_state.coach_message:
        st.info(st.session_state.coach_message)

    summary = st.session_state.summary
    if summary:
        st.success("Course completed!" if summary.completed else "Workout stopped")
        st.json({
            "distance_m": round(summary.distance),
            "time": format_time(summary.elapsed_seconds / 60),
            "avg_speed_kmh": round(summary.avg_speed_kmh, 1),
            "max_speed_kmh": round(summary.max_speed_kmh, 1),
            "avg_heart_rate": summary.avg_heart_rate_bpm,
            "calories_kcal": summary.calories_kcal,
            "steps": summary.step_count,
        })
        st.download_button(
            label="Download session GPX",
            data=create_gpx(summary, f"Workout {summary.course_id}", datetime.now()),
            file_name=f"{summary.course_id}.gpx",
            mime="application/gpx+xml"
        )


def main():
    """Main function for the Streamlit app"""
    st.set_page_config(
        page_title="Workout route simulator",
        page_icon="🏃",
        layout="wide"
    )

    init_session_state()

    st.title("Workout route simulator")

    with st.sidebar:
        st.header("Settings")
        activity = st.radio(
            "Activity",
            list(ACTIVITY_LABELS),
            index=1,
            format_func=ACTIVITY_LABELS.get,
            key="activity"
        )
        start = st.session_state.start_coords
        st.caption(f"Start: {start.lat:.5f}, {start.lng:.5f}")

    nav, nearby, workout = st.tabs(["Navigation", "Nearby courses", "Virtual workout"])
    with nav:
        navigation_tab(activity)
    with nearby:
        candidates_tab()
    with workout:
        workout_tab()


if __name__ == "__main__":
    main()
