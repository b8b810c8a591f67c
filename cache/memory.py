"""In-process store for tests and dry runs."""

import threading
from typing import Dict, List, Optional, Tuple

from cache.base import Store
from models.constants import TransportationMode
from models.credentials import Credentials
from models.criterion import Criterion


class MemoryStore(Store):
    """Dictionary-backed store with the same first-write-wins semantics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._coords: Dict[str, Tuple[float, float]] = {}
        self._times: Dict[Tuple[str, str, str], int] = {}
        self._credentials: Optional[Credentials] = None
        self._criteria: List[dict] = []

    def get_coords(self, address: str) -> Optional[Tuple[float, float]]:
        return self._coords.get(address)

    def set_coords(self, address: str, lng: float, lat: float) -> None:
        with self._lock:
            self._coords.setdefault(address, (lng, lat))

    def get_time(
        self, origin: str, destination: str, mode: TransportationMode
    ) -> Optional[int]:
        return self._times.get((origin, destination, mode.value))

    def set_time(
        self, origin: str, destination: str, mode: TransportationMode, seconds: int
    ) -> None:
        with self._lock:
            self._times.setdefault((origin, destination, mode.value), int(seconds))

    def save_credentials(self, credentials: Credentials) -> None:
        self._credentials = Credentials(credentials.app_id, credentials.api_key)

    def get_credentials(self) -> Optional[Credentials]:
        return self._credentials

    def set_criteria(self, criteria: List[Criterion]) -> None:
        self._criteria = [c.to_dict() for c in criteria]

    def get_criteria(self) -> List[Criterion]:
        return [Criterion.from_dict(dict(data)) for data in self._criteria]
