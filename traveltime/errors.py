"""Error types raised while resolving travel times."""

from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from models.building import Building
    from models.criterion import Criterion


class TravelTimeError(Exception):
    """Base class for all travel-time resolution errors."""


class GeocodeError(TravelTimeError):
    """Geocoding returned no candidate, a malformed body or failed outright."""


class PartialResultError(TravelTimeError):
    """
    Duration resolution failed for part of a request.

    ``durations`` holds the destination address -> seconds results of the
    chunks that did succeed before the error surfaced.
    """

    def __init__(self, message: str, durations: Optional[Dict[str, int]] = None):
        super().__init__(message)
        self.durations = durations or {}


class RoutingError(PartialResultError):
    """Route matrix request failed or returned an unusable response."""


class CacheError(TravelTimeError):
    """The persistent store failed. Treated as fatal."""


class ParseError(PartialResultError):
    """A numeric field (duration, count) could not be parsed."""


class ScrapeError(TravelTimeError):
    """A required element was missing from a listing page."""


class ResolutionError(TravelTimeError):
    """
    Resolution stopped on an error.

    Carries the buildings resolved so far so that callers may still show a
    degraded view. Results already admitted are valid.
    """

    def __init__(
        self,
        message: str,
        buildings: Optional[List["Building"]] = None,
        criterion: Optional["Criterion"] = None,
    ):
        super().__init__(message)
        self.buildings = buildings or []
        self.criterion = criterion
