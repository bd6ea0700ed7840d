"""
Geocoding: addresses to coordinates and back, for the front-end
"""

import logging
import time
from typing import Optional

import requests
import streamlit as st

from config import NOMINATIM_BASE_URL, PROVIDER_LANGUAGE
from models import LatLng

logger = logging.getLogger(__name__)

USER_AGENT = "WorkoutRouteSimulator/1.0"
CACHE_TTL = 3600  # 1 hour


@st.cache_data(ttl=CACHE_TTL)
def geocode_address(address: str) -> Optional[LatLng]:
    """
    Geocode an address with Nominatim

    Args:
        address: Address to look up

    Returns:
        LatLng or None if nothing was found
    """
    params = {
        "q": address,
        "format": "json",
        "limit": 1,
        "accept-language": PROVIDER_LANGUAGE,
    }
    try:
        response = requests.get(
            f"{NOMINATIM_BASE_URL}/search",
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=10
        )
        time.sleep(1)  # Nominatim rate limit
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Geocoding '%s' failed: %s", address, e)
        return None

    if not data:
        return None
    return LatLng(float(data[0]["lat"]), float(data[0]["lon"]))


@st.cache_data(ttl=CACHE_TTL)
def reverse_geocode(lat: float, lng: float) -> Optional[str]:
    """
    Reverse geocoding: coordinates to a display name

    Returns:
        Address or None on failure
    """
    params = {
        "lat": lat,
        "lon": lng,
        "format": "json",
        "accept-language": PROVIDER_LANGUAGE,
    }
    try:
        response = requests.get(
            f"{NOMINATIM_BASE_URL}/reverse",
            params=params,
            headers={"User-Agent": USER_AGENT},
            timeout=10
        )
        time.sleep(1)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("Reverse geocoding %.5f, %.5f failed: %s", lat, lng, e)
        return None
    return data.get("display_name")
