from unittest.mock import patch

import pytest

from exceptions import ProviderTimeout, ProviderUnavailable, ZeroResultRoute
from models import ActivityType, Bounds, Instruction, LatLng, ProviderRoute
from routing import (
    FALLBACK_PROVIDER,
    RouteResolver,
    exercise_duration_minutes,
    synthesize_straight_route,
)
from routing_providers import GoogleDirectionsProvider, RoutingProvider

START = LatLng(37.50, 127.00)
END = LatLng(37.51, 127.00)


class FakeProvider(RoutingProvider):
    """Provider answering from a script instead of the network"""

    def __init__(self, name, result=None, error=None):
        super().__init__(api_key="test")
        self.name = name
        self.result = result
        self.error = error
        self.requests = []

    def route(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


def provider_route(distance=5000.0):
    return ProviderRoute(
        path=(START, LatLng(37.505, 127.001), END),
        distance=distance,
        duration=3600,
        instructions=(Instruction("Head north", "1.11 km", START, END),),
    )


@pytest.mark.parametrize("activity, minutes", [
    (ActivityType.WALK, 60),
    (ActivityType.RUN, 30),
    (ActivityType.BIKE, 15),
])
def test_exercise_duration_uses_reference_speed(activity, minutes):
    assert exercise_duration_minutes(5000, activity) == minutes


def test_primary_provider_answers():
    primary = FakeProvider("alpha", result=provider_route())
    secondary = FakeProvider("beta", result=provider_route())

    route = RouteResolver([primary, secondary]).resolve(START, END, ActivityType.RUN)

    assert route.provider_used == "primary"
    assert route.provider_name == "alpha"
    assert route.distance == 5000
    # Provider travel time is kept, workout time comes from the reference speed
    assert route.duration == 3600
    assert route.exercise_duration_minutes == 30
    assert route.bounds == Bounds(north=37.51, south=37.50, east=127.001, west=127.00)
    assert not route.is_straight_line
    assert secondary.requests == []


def test_zero_result_moves_to_next_provider():
    primary = FakeProvider("alpha", error=ZeroResultRoute("alpha"))
    secondary = FakeProvider("beta", result=provider_route())

    route = RouteResolver([primary, secondary]).resolve(START, END)

    assert route.provider_used == "secondary"
    assert route.provider_name == "beta"


def test_timeout_moves_to_next_provider():
    primary = FakeProvider("alpha", error=ProviderTimeout("alpha", "slow"))
    secondary = FakeProvider("beta", result=provider_route())

    assert RouteResolver([primary, secondary]).resolve(START, END).provider_used == "secondary"


def test_every_provider_without_route_falls_back():
    primary = FakeProvider("alpha", error=ZeroResultRoute("alpha"))
    secondary = FakeProvider("beta", error=ProviderUnavailable("beta", "quota exceeded"))

    route = RouteResolver([primary, secondary]).resolve(START, END)

    assert route.provider_used == FALLBACK_PROVIDER
    assert route.is_straight_line
    assert len(route.path) >= 20


def test_unavailable_provider_skips_the_rest():
    primary = FakeProvider("alpha", error=ProviderUnavailable("alpha", "bad key"))
    secondary = FakeProvider("beta", result=provider_route())

    route = RouteResolver([primary, secondary]).resolve(START, END)

    assert route.provider_used == FALLBACK_PROVIDER
    assert secondary.requests == []


def test_later_providers_get_role_names():
    providers = [FakeProvider(name, error=ZeroResultRoute(name)) for name in ("a", "b")]
    providers.append(FakeProvider("c", result=provider_route()))

    assert RouteResolver(providers).resolve(START, END).provider_used == "tertiary"


def test_no_providers_falls_back():
    route = RouteResolver().resolve(START, END, ActivityType.WALK)

    assert route.provider_used == FALLBACK_PROVIDER
    assert route.activity is ActivityType.WALK


def test_missing_key_falls_back_without_request():
    with patch("routing_providers.requests.request") as request:
        route = RouteResolver([GoogleDirectionsProvider(api_key=None)]).resolve(START, END)

    request.assert_not_called()
    assert route.provider_used == FALLBACK_PROVIDER


def test_straight_line_fallback_shape():
    route = synthesize_straight_route(START, END, ActivityType.RUN)

    assert route.distance == pytest.approx(1112, abs=5)
    assert len(route.path) >= 20
    assert route.path[0] == START
    assert route.path[-1] == END
    assert route.bounds == Bounds(north=37.51, south=37.50, east=127.00, west=127.00)
    assert [step.maneuver for step in route.instructions] == [
        "depart", "continue", "turn", "continue", "arrive",
    ]
    assert route.instructions[0].text == "Depart heading N"
    assert route.instructions[0].start_location == START
    assert route.instructions[-1].end_location.lat == pytest.approx(END.lat)
    assert route.exercise_duration_minutes == 7
    assert route.duration == pytest.approx(route.distance / 1000 / 10 * 3600)


def test_fallback_for_identical_points():
    route = RouteResolver().resolve(START, START)

    assert route.distance == 0
    assert len(route.path) >= 20
    assert all(point == START for point in route.path)
    assert route.exercise_duration_minutes == 0


def test_fallback_passes_waypoints():
    turnaround = LatLng(37.51, 127.01)

    route = synthesize_straight_route(START, START, ActivityType.RUN, [turnaround])

    assert turnaround in route.path
    assert route.path[0] == START
    assert route.path[-1] == START
    assert route.distance > 2000


@pytest.mark.parametrize("point", [LatLng(91, 0), LatLng(0, 181), LatLng(-90.5, 10)])
def test_invalid_coordinates_raise(point):
    with pytest.raises(ValueError):
        RouteResolver().resolve(point, END)
    with pytest.raises(ValueError):
        RouteResolver().resolve(START, point)


def test_round_trip_sends_destination_as_waypoint():
    provider = FakeProvider("alpha", result=provider_route())
    turnaround = LatLng(37.52, 127.02)

    RouteResolver([provider]).resolve_round_trip(START, turnaround, ActivityType.BIKE)

    request = provider.requests[0]
    assert request.start == START
    assert request.end == START
    assert request.waypoints == (turnaround,)
    assert request.activity is ActivityType.BIKE


@pytest.mark.parametrize("error", [KeyError("routes"), TypeError("bad value"), IndexError("empty")])
def test_unreadable_answer_skips_the_rest(error):
    primary = FakeProvider("alpha", error=error)
    secondary = FakeProvider("beta", result=provider_route())

    route = RouteResolver([primary, secondary]).resolve(START, END)

    assert route.provider_used == FALLBACK_PROVIDER
    assert secondary.requests == []
