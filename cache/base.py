"""Abstract storage interfaces for cached coordinates and durations."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from models.constants import TransportationMode
from models.credentials import Credentials
from models.criterion import Criterion


class CoordinateCache(ABC):
    """Address -> (longitude, latitude). Entries are written once."""

    @abstractmethod
    def get_coords(self, address: str) -> Optional[Tuple[float, float]]:
        """
        Look up cached coordinates.

        Returns:
            (lng, lat) or None when the address has never been resolved
        """

    @abstractmethod
    def set_coords(self, address: str, lng: float, lat: float) -> None:
        """Store coordinates unless the address already has an entry."""


class DurationCache(ABC):
    """(origin, destination, mode) -> travel seconds. Entries are written once."""

    @abstractmethod
    def get_time(
        self, origin: str, destination: str, mode: TransportationMode
    ) -> Optional[int]:
        """
        Look up a cached travel duration.

        Returns:
            Duration in seconds or None on a miss
        """

    @abstractmethod
    def set_time(
        self, origin: str, destination: str, mode: TransportationMode, seconds: int
    ) -> None:
        """Store a duration unless the route already has an entry."""


class Store(CoordinateCache, DurationCache):
    """
    Full persistent store used by the application.

    Besides the two caches it keeps the API credentials and the user's
    criteria between runs.
    """

    @abstractmethod
    def save_credentials(self, credentials: Credentials) -> None:
        """Replace the stored credential pair."""

    @abstractmethod
    def get_credentials(self) -> Optional[Credentials]:
        """Return stored credentials or None."""

    @abstractmethod
    def set_criteria(self, criteria: List[Criterion]) -> None:
        """Replace the stored criteria, preserving order."""

    @abstractmethod
    def get_criteria(self) -> List[Criterion]:
        """Return stored criteria in the order they were entered."""

    def close(self) -> None:
        """Release underlying resources. Default: nothing to release."""
