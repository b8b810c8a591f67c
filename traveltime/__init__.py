"""Travel-time resolution: geocoding, route matrix batching and reachability."""

from .errors import (
    CacheError,
    GeocodeError,
    ParseError,
    PartialResultError,
    ResolutionError,
    RoutingError,
    ScrapeError,
    TravelTimeError,
)
from .departure import next_monday_morning
from .geocoder import Geocoder
from .matrix import MatrixBatcher
from .reachability import admit
from .resolver import TravelTimeResolver

__all__ = [
    "Geocoder",
    "MatrixBatcher",
    "TravelTimeResolver",
    "admit",
    "next_monday_morning",
    "TravelTimeError",
    "GeocodeError",
    "RoutingError",
    "CacheError",
    "ParseError",
    "PartialResultError",
    "ScrapeError",
    "ResolutionError",
]
