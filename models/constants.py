"""Transportation modes and routing provider constants."""

from enum import Enum
from typing import Dict

# Google Maps Platform endpoints
GEOCODE_URL = "https://geocode.googleapis.com/v4beta/geocode/address"
ROUTE_MATRIX_URL = "https://routes.googleapis.com/distanceMatrix/v2:computeRouteMatrix"

GEOCODE_FIELD_MASK = "results.location"
ROUTE_MATRIX_FIELD_MASK = "originIndex,destinationIndex,duration,condition"

# Route matrix element conditions
ROUTE_EXISTS = "ROUTE_EXISTS"
ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
CONDITION_UNSPECIFIED = "ROUTE_MATRIX_ELEMENT_CONDITION_UNSPECIFIED"
KNOWN_CONDITIONS = {ROUTE_EXISTS, ROUTE_NOT_FOUND, CONDITION_UNSPECIFIED}

# Departure time used for every matrix request (local time of day)
DEPARTURE_HOUR = 8
DEPARTURE_MINUTE = 0


class TransportationMode(str, Enum):
    """Ways of travelling between a building and a criterion address."""

    CYCLING = "cycling"
    WALKING = "walking"
    DRIVING = "driving"
    PUBLIC = "public"

    @classmethod
    def parse(cls, value: str) -> "TransportationMode":
        """Parse a mode name as used in config.json and stored criteria."""
        text = str(value).strip().lower()
        text = MODE_ALIASES.get(text, text)
        for mode in cls:
            if mode.value == text:
                return mode
        raise ValueError(
            f"Unknown transportation mode: {value}. "
            f"Supported modes: {', '.join(m.value for m in cls)}"
        )

    @property
    def provider_mode(self) -> str:
        """Travel mode name in the Routes API vocabulary."""
        return PROVIDER_MODES[self]

    @property
    def batch_limit(self) -> int:
        """Maximum destinations per route matrix request."""
        return BATCH_LIMITS[self]

    @property
    def label(self) -> str:
        return MODE_LABELS[self]


MODE_ALIASES: Dict[str, str] = {
    "bicycle": "cycling",
    "bike": "cycling",
    "walk": "walking",
    "drive": "driving",
    "car": "driving",
    "transit": "public",
    "public_transport": "public",
}

PROVIDER_MODES: Dict[TransportationMode, str] = {
    TransportationMode.CYCLING: "BICYCLE",
    TransportationMode.WALKING: "WALK",
    TransportationMode.DRIVING: "DRIVE",
    TransportationMode.PUBLIC: "TRANSIT",
}

# Provider ceilings on elements per request (one origin, N destinations)
BATCH_LIMITS: Dict[TransportationMode, int] = {
    TransportationMode.CYCLING: 625,
    TransportationMode.WALKING: 625,
    TransportationMode.DRIVING: 625,
    TransportationMode.PUBLIC: 100,
}

MODE_LABELS: Dict[TransportationMode, str] = {
    TransportationMode.CYCLING: "Bicycle",
    TransportationMode.WALKING: "Walking",
    TransportationMode.DRIVING: "Driving",
    TransportationMode.PUBLIC: "Public transportation",
}
