#!/usr/bin/env python3
"""
IP based geolocation lookup
Asks a public "where am I" service for the caller's coordinates, once.
"""

import logging
from typing import NamedTuple, Optional

import requests

logger = logging.getLogger(__name__)

GEOLOCATION_URL = "http://ip-api.com/json"
GEOLOCATION_FIELDS = "status,message,lat,lon,city"
REQUEST_TIMEOUT = 10


class GeolocationError(Exception):
    """The coordinate lookup failed or returned something unusable."""


class Coordinate(NamedTuple):
    longitude: float
    latitude: Optional[float] = None
    label: Optional[str] = None

    def describe(self) -> str:
        """Short human readable form, e.g. ``Lisbon (38.72, -9.13)``."""
        if self.latitude is None:
            position = f"lon {self.longitude:.2f}"
        else:
            position = f"{self.latitude:.2f}, {self.longitude:.2f}"
        if self.label:
            return f"{self.label} ({position})"
        return position


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_coordinate(payload) -> Coordinate:
    """Build a Coordinate from a decoded ip-api style JSON body."""
    if not isinstance(payload, dict):
        raise GeolocationError(f"Expected a JSON object, got {type(payload).__name__}")

    if payload.get("status") == "fail":
        message = payload.get("message", "unknown reason")
        raise GeolocationError(f"Lookup refused: {message}")

    lon = payload.get("lon")
    if not _is_number(lon):
        raise GeolocationError(f"Missing or non-numeric 'lon' field: {lon!r}")

    lat = payload.get("lat")
    if lat is not None and not _is_number(lat):
        raise GeolocationError(f"Non-numeric 'lat' field: {lat!r}")

    city = payload.get("city")
    if city is not None and not isinstance(city, str):
        raise GeolocationError(f"Non-string 'city' field: {city!r}")

    return Coordinate(
        longitude=float(lon),
        latitude=float(lat) if lat is not None else None,
        label=city or None,
    )


def fetch_coordinate(url: str = GEOLOCATION_URL, timeout: float = REQUEST_TIMEOUT) -> Coordinate:
    """Look up the coordinate of this machine's public address.

    Makes exactly one request. Any failure is raised as GeolocationError;
    there is no retry and no offline fallback.
    """
    logger.info("Requesting coordinates from %s", url)
    try:
        response = requests.get(url, params={"fields": GEOLOCATION_FIELDS}, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except requests.exceptions.RequestException as e:
        raise GeolocationError(f"Request to {url} failed: {e}") from e
    except ValueError as e:
        raise GeolocationError(f"Response from {url} is not valid JSON: {e}") from e

    coordinate = parse_coordinate(payload)
    logger.info("Resolved coordinate: %s", coordinate.describe())
    return coordinate
