"""
Routing providers: Google Directions, T map, OpenRouteService and GraphHopper

Every provider answers route(request) with a ProviderRoute or raises a
ProviderError subclass. Missing credentials count as an unavailable provider.
"""

import logging
import re
from typing import List, Mapping, Optional

import polyline
import requests

from config import (
    GOOGLE_DIRECTIONS_URL,
    GRAPHHOPPER_BASE_URL,
    ORS_BASE_URL,
    PROVIDER_LANGUAGE,
    PROVIDER_REGION,
    PROVIDER_TIMEOUT,
    TMAP_PEDESTRIAN_URL,
)
from exceptions import ProviderTimeout, ProviderUnavailable, ZeroResultRoute
from models import Instruction, LatLng, ProviderRoute, RouteRequest
from utils import calculate_distance_from_points, format_distance

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]*>")


def _dedupe(points: List[LatLng]) -> List[LatLng]:
    """Drop consecutive duplicates where route steps share an endpoint"""
    result = []
    for point in points:
        if not result or result[-1] != point:
            result.append(point)
    return result


class RoutingProvider:
    """Base class for routing providers"""

    name = "provider"
    api_key_name = ""

    def __init__(self, api_key: Optional[str] = None, timeout: float = PROVIDER_TIMEOUT):
        self.api_key = api_key
        self.timeout = timeout

    def route(self, request: RouteRequest) -> ProviderRoute:
        raise NotImplementedError

    def _require_key(self):
        if not self.api_key:
            raise ProviderUnavailable(self.name, f"{self.api_key_name} is not configured")

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Perform an HTTP request with the provider timeout

        Raises:
            ProviderTimeout: if the provider does not answer in time
            ProviderUnavailable: on connection errors, bad credentials or quota
        """
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise ProviderTimeout(self.name, f"no answer within {self.timeout} s") from e
        except requests.RequestException as e:
            raise ProviderUnavailable(self.name, str(e)) from e

        if response.status_code in (401, 403):
            raise ProviderUnavailable(self.name, f"credentials rejected (HTTP {response.status_code})")
        if response.status_code == 429:
            raise ProviderUnavailable(self.name, "quota exceeded")
        if response.status_code >= 500:
            raise ProviderUnavailable(self.name, f"service error (HTTP {response.status_code})")
        return response

    def _json(self, response: requests.Response) -> dict:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(self.name, "response is not JSON") from e


class GoogleDirectionsProvider(RoutingProvider):
    """Google Directions web service"""

    name = "google"
    api_key_name = "GOOGLE_MAPS_API_KEY"

    # Statuses that mean the request was fine but no route exists
    ZERO_RESULT_STATUSES = ("ZERO_RESULTS",)

    def route(self, request: RouteRequest) -> ProviderRoute:
        self._require_key()

        params = {
            "origin": f"{request.start.lat},{request.start.lng}",
            "destination": f"{request.end.lat},{request.end.lng}",
            "mode": "walking" if request.is_foot else "bicycling",
            "avoid": "highways|tolls" if request.is_foot else "tolls",
            "units": "metric",
            "region": PROVIDER_REGION.lower(),
            "language": PROVIDER_LANGUAGE,
            "alternatives": "true",
            "key": self.api_key,
        }
        if request.waypoints:
            params["waypoints"] = "|".join(
                f"{point.lat},{point.lng}" for point in request.waypoints
            )

        data = self._json(self._send("GET", GOOGLE_DIRECTIONS_URL, params=params))
        status = data.get("status", "UNKNOWN_ERROR")
        if status in self.ZERO_RESULT_STATUSES:
            raise ZeroResultRoute(self.name, "no route between the points")
        if status != "OK":
            raise ProviderUnavailable(self.name, f"{status}: {data.get('error_message', '')}".strip())
        if not data.get("routes"):
            raise ZeroResultRoute(self.name, "empty route list")

        return self._parse_route(data["routes"][0])

    def _parse_route(self, route: dict) -> ProviderRoute:
        points = []
        instructions = []
        distance = 0.0
        duration = 0.0

        for leg in route.get("legs", []):
            distance += leg.get("distance", {}).get("value", 0)
            duration += leg.get("duration", {}).get("value", 0)

            for step in leg.get("steps", []):
                encoded = step.get("polyline", {}).get("points")
                if encoded:
                    points.extend(LatLng(lat, lng) for lat, lng in polyline.decode(encoded))

                start = step.get("start_location", {})
                end = step.get("end_location", {})
                instructions.append(Instruction(
                    text=TAG_RE.sub("", step.get("html_instructions", "")),
                    distance_label=step.get("distance", {}).get("text", ""),
                    start_location=LatLng(start.get("lat", 0.0), start.get("lng", 0.0)),
                    end_location=LatLng(end.get("lat", 0.0), end.get("lng", 0.0)),
                    maneuver=step.get("maneuver") or "straight",
                ))

        points = _dedupe(points)
        if len(points) < 2:
            raise ZeroResultRoute(self.name, "route has no geometry")

        return ProviderRoute(
            path=tuple(points),
            distance=distance or calculate_distance_from_points(points),
            duration=duration,
            instructions=tuple(instructions),
        )


class TmapPedestrianProvider(RoutingProvider):
    """T map pedestrian routing, specialised for Korean roads"""

    name = "tmap"
    api_key_name = "TMAP_API_KEY"

    MAX_PASS_POINTS = 5

    def route(self, request: RouteRequest) -> ProviderRoute:
        self._require_key()
        if not request.is_foot:
            raise ZeroResultRoute(self.name, "pedestrian routing only")
        if len(request.waypoints) > self.MAX_PASS_POINTS:
            raise ZeroResultRoute(self.name, f"at most {self.MAX_PASS_POINTS} waypoints, got {len(request.waypoints)}")

        body = {
            "startX": request.start.lng,
            "startY": request.start.lat,
            "endX": request.end.lng,
            "endY": request.end.lat,
            "startName": "Start",
            "endName": "Finish",
            "searchOption": "0",
            "reqCoordType": "WGS84GEO",
            "resCoordType": "WGS84GEO",
            "sort": "index",
        }
        if request.waypoints:
            body["passList"] = "_".join(
                f"{point.lng},{point.lat}" for point in request.waypoints
            )
        headers = {
            "Accept": "application/json",
            "appKey": self.api_key,
        }

        response = self._send("POST", TMAP_PEDESTRIAN_URL, params={"version": 1}, data=body, headers=headers)
        if response.status_code == 204:
            raise ZeroResultRoute(self.name, "no route between the points")
        if response.status_code != 200:
            data = self._json(response)
            message = data.get("error", {}).get("message", f"HTTP {response.status_code}")
            if response.status_code in (400, 404):
                raise ZeroResultRoute(self.name, message)
            raise ProviderUnavailable(self.name, message)

        data = self._json(response)
        if not data.get("features"):
            raise ZeroResultRoute(self.name, "no features in response")
        return self._parse_features(data["features"])

    def _parse_features(self, features: List[dict]) -> ProviderRoute:
        points = []
        turn_points = []
        distance = 0.0
        duration = 0.0

        for feature in features:
            geometry = feature.get("geometry", {})
            properties = feature.get("properties", {})

            if "totalDistance" in properties:
                distance = properties["totalDistance"]
            if "totalTime" in properties:
                duration = properties["totalTime"]

            if geometry.get("type") == "LineString":
                points.extend(LatLng(lat, lng) for lng, lat, *_ in geometry.get("coordinates", []))
            elif geometry.get("type") == "Point" and properties.get("description"):
                lng, lat = geometry["coordinates"][:2]
                turn_points.append((LatLng(lat, lng), properties["description"], properties.get("turnType", 0)))

        points = _dedupe(points)
        if len(points) < 2:
            raise ZeroResultRoute(self.name, "route has no geometry")

        instructions = []
        for index, (location, text, turn_type) in enumerate(turn_points):
            end_location = turn_points[index + 1][0] if index + 1 < len(turn_points) else location
            instructions.append(Instruction(
                text=text,
                distance_label=format_distance(calculate_distance_from_points([location, end_location])),
                start_location=location,
                end_location=end_location,
                maneuver=f"turn-{turn_type}",
            ))

        return ProviderRoute(
            path=tuple(points),
            distance=distance or calculate_distance_from_points(points),
            duration=duration,
            instructions=tuple(instructions),
        )


class OpenRouteServiceProvider(RoutingProvider):
    """OpenRouteService routing provider"""

    name = "ors"
    api_key_name = "ORS_API_KEY"

    # ORS error code for "route could not be found"
    ROUTE_NOT_FOUND_CODES = (2009, 2010)

    def route(self, request: RouteRequest) -> ProviderRoute:
        self._require_key()

        profile = "foot-walking" if request.is_foot else "cycling-regular"
        url = f"{ORS_BASE_URL}/v2/directions/{profile}/geojson"
        headers = {
            "Authorization": self.api_key,
            "Content-Type": "application/json"
        }
        body = {
            "coordinates": [[point.lng, point.lat] for point in request.points],
            "instructions": True,
            "language": "en",
        }

        response = self._send("POST", url, json=body, headers=headers)
        data = self._json(response)
        if response.status_code != 200:
            error = data.get("error", {})
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            if code in self.ROUTE_NOT_FOUND_CODES or response.status_code == 404:
                raise ZeroResultRoute(self.name, message)
            raise ProviderUnavailable(self.name, message)

        if not data.get("features"):
            raise ZeroResultRoute(self.name, "no features in response")
        return self._parse_ors_response(data["features"][0])

    def _parse_ors_response(self, feature: dict) -> ProviderRoute:
        coordinates = feature.get("geometry", {}).get("coordinates", [])
        properties = feature.get("properties", {})

        points = [LatLng(coord[1], coord[0]) for coord in coordinates if len(coord) >= 2]
        if len(points) < 2:
            raise ZeroResultRoute(self.name, "route has no geometry")

        instructions = []
        for segment in properties.get("segments", []):
            for step in segment.get("steps", []):
                first, last = step.get("way_points", [0, 0])
                instructions.append(Instruction(
                    text=step.get("instruction", ""),
                    distance_label=format_distance(step.get("distance", 0)),
                    start_location=points[min(first, len(points) - 1)],
                    end_location=points[min(last, len(points) - 1)],
                    maneuver=f"type-{step.get('type', 0)}",
                ))

        summary = properties.get("summary", {})
        return ProviderRoute(
            path=tuple(points),
            distance=summary.get("distance") or calculate_distance_from_points(points),
            duration=summary.get("duration", 0),
            instructions=tuple(instructions),
        )


class GraphHopperProvider(RoutingProvider):
    """GraphHopper routing provider"""

    name = "graphhopper"
    api_key_name = "GRAPHHOPPER_API_KEY"

    def route(self, request: RouteRequest) -> ProviderRoute:
        self._require_key()

        params = {
            "key": self.api_key,
            "point": [f"{point.lat},{point.lng}" for point in request.points],
            "profile": "foot" if request.is_foot else "bike",
            "points_encoded": "false",
            "instructions": "true",
            "locale": PROVIDER_LANGUAGE,
        }

        response = self._send("GET", f"{GRAPHHOPPER_BASE_URL}/route", params=params)
        data = self._json(response)
        if response.status_code != 200:
            message = data.get("message", f"HTTP {response.status_code}")
            if response.status_code == 400 and "not found" in message.lower():
                raise ZeroResultRoute(self.name, message)
            raise ProviderUnavailable(self.name, message)

        if not data.get("paths"):
            raise ZeroResultRoute(self.name, "no paths in response")
        return self._parse_graphhopper_response(data["paths"][0])

    def _parse_graphhopper_response(self, path: dict) -> ProviderRoute:
        coordinates = path.get("points", {}).get("coordinates", [])
        # GraphHopper format: [lon, lat, elevation]
        points = [LatLng(coord[1], coord[0]) for coord in coordinates if len(coord) >= 2]
        if len(points) < 2:
            raise ZeroResultRoute(self.name, "route has no geometry")

        instructions = []
        for step in path.get("instructions", []):
            first, last = step.get("interval", [0, 0])
            instructions.append(Instruction(
                text=step.get("text", ""),
                distance_label=format_distance(step.get("distance", 0)),
                start_location=points[min(first, len(points) - 1)],
                end_location=points[min(last, len(points) - 1)],
                maneuver=f"sign-{step.get('sign', 0)}",
            ))

        # GraphHopper reports time in milliseconds
        return ProviderRoute(
            path=tuple(points),
            distance=path.get("distance") or calculate_distance_from_points(points),
            duration=path.get("time", 0) / 1000,
            instructions=tuple(instructions),
        )


PROVIDER_CLASSES = (
    GoogleDirectionsProvider,
    TmapPedestrianProvider,
    OpenRouteServiceProvider,
    GraphHopperProvider,
)


def build_providers(secrets: Mapping[str, str], timeout: float = PROVIDER_TIMEOUT) -> List[RoutingProvider]:
    """
    Ordered provider chain for the given credentials

    Every provider keeps its place in the chain. One whose key is missing
    raises ProviderUnavailable when asked, like any other provider failure.

    Args:
        secrets: Mapping of credential names to keys (e.g. st.secrets)
        timeout: Per-call timeout in seconds

    Returns:
        All providers in fallback order
    """
    providers = [
        provider_class(api_key=secrets.get(provider_class.api_key_name) or None, timeout=timeout)
        for provider_class in PROVIDER_CLASSES
    ]
    missing = [provider.name for provider in providers if not provider.api_key]
    if missing:
        logger.warning("Routing providers without credentials: %s", missing)
    return providers
