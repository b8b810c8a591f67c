"""Route matrix batching with a persistent duration cache."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from cache.base import DurationCache
from models.building import Building
from models.constants import (
    KNOWN_CONDITIONS,
    ROUTE_EXISTS,
    ROUTE_MATRIX_FIELD_MASK,
    ROUTE_MATRIX_URL,
)
from models.credentials import Credentials
from models.criterion import Criterion
from traveltime.departure import next_monday_morning
from traveltime.errors import ParseError, PartialResultError, RoutingError
from traveltime.http import client_session, make_timeout

logger = logging.getLogger(__name__)


def parse_duration(value: Any) -> int:
    """
    Parse a protobuf duration string such as ``"1234s"`` or ``"12.5s"``.

    Returns:
        Whole seconds (fractions truncated)

    Raises:
        ParseError: If the value is not a duration string
    """
    if not isinstance(value, str) or not value.endswith("s"):
        raise ParseError(f"Invalid duration: {value!r}")
    try:
        seconds = float(value[:-1])
    except ValueError as e:
        raise ParseError(f"Invalid duration: {value!r}") from e
    if seconds < 0 or seconds != seconds:
        raise ParseError(f"Invalid duration: {value!r}")
    return int(seconds)


def chunk_buildings(buildings: Sequence[Building], limit: int) -> List[List[Building]]:
    """Split buildings into ordered chunks of at most ``limit`` destinations."""
    if limit <= 0:
        raise ValueError(f"Chunk limit must be positive, got {limit}")
    return [list(buildings[i : i + limit]) for i in range(0, len(buildings), limit)]


def _waypoint(coordinates: Tuple[float, float]) -> Dict[str, Any]:
    lng, lat = coordinates
    return {
        "waypoint": {
            "location": {
                "latLng": {
                    "latitude": lat,
                    "longitude": lng,
                }
            }
        }
    }


class MatrixBatcher:
    """
    Resolves travel durations from one criterion to many buildings.

    Cached durations are used as-is. The remaining buildings are sent to the
    route matrix API in chunks no larger than the mode's provider limit.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_CONCURRENT_CHUNKS = 4

    def __init__(
        self,
        credentials: Credentials,
        cache: DurationCache,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrent_chunks: int = DEFAULT_MAX_CONCURRENT_CHUNKS,
        departure_time: Optional[str] = None,
        url: str = ROUTE_MATRIX_URL,
    ):
        """
        Initialize the batcher.

        Args:
            credentials: API credentials (the Google API key is used)
            cache: Duration cache consulted before any request
            client: Optional shared httpx client
            timeout: Per-request timeout in seconds
            max_concurrent_chunks: Chunk requests in flight per criterion
            departure_time: Fixed RFC 3339 departure (default: next Monday 08:00)
            url: Route matrix endpoint
        """
        self.credentials = credentials
        self.cache = cache
        self.client = client
        self.timeout = timeout
        self.max_concurrent_chunks = max(1, max_concurrent_chunks)
        self.departure_time = departure_time
        self.url = url
        self.request_count = 0

    async def resolve_durations(
        self, criterion: Criterion, buildings: Sequence[Building]
    ) -> Dict[str, int]:
        """
        Resolve durations between the criterion address and each building.

        Args:
            criterion: Criterion with a resolved location
            buildings: Buildings with coordinates

        Returns:
            Mapping of building address -> seconds. Buildings without a route
            are absent.

        Raises:
            RoutingError: A chunk request failed
            ParseError: A returned duration could not be parsed

            Either way ``durations`` on the error holds everything resolved
            by the other chunks.
        """
        if criterion.location is None:
            raise RoutingError(f"Criterion address {criterion.address!r} is not geocoded")

        durations: Dict[str, int] = {}
        uncached: List[Building] = []
        seen = set()

        for building in buildings:
            if building.address in seen:
                continue
            seen.add(building.address)

            cached = self.cache.get_time(criterion.address, building.address, criterion.mode)
            if cached is not None:
                durations[building.address] = cached
            elif building.coordinates is None:
                logger.warning(f"Skipping {building.address}: no coordinates")
            else:
                uncached.append(building)

        logger.debug(
            f"{criterion.mode.value} from {criterion.address}: "
            f"{len(durations)} cached, {len(uncached)} to fetch"
        )
        if not uncached:
            return durations

        chunks = chunk_buildings(uncached, criterion.mode.batch_limit)
        departure = self.departure_time or next_monday_morning()
        semaphore = asyncio.Semaphore(self.max_concurrent_chunks)

        async def _limited(index: int, chunk: List[Building]) -> Dict[str, int]:
            async with semaphore:
                logger.info(
                    f"Route matrix chunk {index + 1}/{len(chunks)} "
                    f"({len(chunk)} destinations, {criterion.mode.provider_mode})"
                )
                return await self._resolve_chunk(criterion, chunk, departure)

        results = await asyncio.gather(
            *(_limited(i, chunk) for i, chunk in enumerate(chunks)),
            return_exceptions=True,
        )

        first_error: Optional[BaseException] = None
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                if first_error is None:
                    first_error = result
                continue
            durations.update(result)

        if first_error is not None:
            if isinstance(first_error, PartialResultError):
                first_error.durations = {**durations, **first_error.durations}
            raise first_error

        return durations

    async def _resolve_chunk(
        self, criterion: Criterion, chunk: List[Building], departure: str
    ) -> Dict[str, int]:
        """Issue one matrix request and cache its routed rows."""
        body = {
            "origins": [_waypoint(criterion.location)],
            "destinations": [_waypoint(b.coordinates) for b in chunk],
            "travelMode": criterion.mode.provider_mode,
            "departureTime": departure,
        }
        rows = await self._request(body)

        # Parse everything before writing so a bad row leaves the cache untouched
        parsed: List[Tuple[Building, int]] = []
        for row in rows:
            if not isinstance(row, dict):
                raise RoutingError(f"Malformed route matrix row: {row!r}")

            condition = row.get("condition")
            if condition not in KNOWN_CONDITIONS:
                raise RoutingError(f"Unexpected route condition: {condition!r}")

            index = row.get("destinationIndex", 0)
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(chunk):
                raise RoutingError(f"Destination index out of range: {index!r}")

            if condition != ROUTE_EXISTS:
                logger.debug(f"No route to {chunk[index].address} ({condition})")
                continue

            parsed.append((chunk[index], parse_duration(row.get("duration", "0s"))))

        durations: Dict[str, int] = {}
        for building, seconds in parsed:
            self.cache.set_time(criterion.address, building.address, criterion.mode, seconds)
            durations[building.address] = seconds
        return durations

    async def _request(self, body: Dict[str, Any]) -> List[Any]:
        headers = {
            "X-Goog-Api-Key": self.credentials.api_key,
            "X-Goog-FieldMask": ROUTE_MATRIX_FIELD_MASK,
        }
        self.request_count += 1
        try:
            async with client_session(self.client, self.timeout) as client:
                response = await client.post(
                    self.url,
                    json=body,
                    headers=headers,
                    timeout=make_timeout(self.timeout),
                )
        except httpx.TimeoutException as e:
            raise RoutingError(f"Route matrix request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise RoutingError(f"Route matrix request failed: {e}") from e

        if response.status_code != 200:
            raise RoutingError(
                f"Route matrix request failed: HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RoutingError("Malformed route matrix response") from e

        if not isinstance(data, list):
            raise RoutingError(f"Route matrix response is not a list: {type(data).__name__}")
        return data
