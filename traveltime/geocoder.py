"""Address geocoding backed by the coordinate cache."""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import httpx

from cache.base import CoordinateCache
from models.constants import GEOCODE_FIELD_MASK, GEOCODE_URL
from models.credentials import Credentials
from traveltime.errors import GeocodeError
from traveltime.http import client_session, make_timeout

logger = logging.getLogger(__name__)


class Geocoder:
    """Resolves free-text addresses to (longitude, latitude)."""

    DEFAULT_TIMEOUT = 10.0
    DEFAULT_CONCURRENCY = 8

    def __init__(
        self,
        credentials: Credentials,
        cache: CoordinateCache,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        url: str = GEOCODE_URL,
    ):
        """
        Initialize the geocoder.

        Args:
            credentials: API credentials (the Google API key is used)
            cache: Coordinate cache consulted before every request
            client: Optional shared httpx client
            timeout: Request timeout in seconds
            url: Geocoding endpoint
        """
        self.credentials = credentials
        self.cache = cache
        self.client = client
        self.timeout = timeout
        self.url = url
        self.request_count = 0
        self._pending: Dict[str, "asyncio.Future[Tuple[float, float]]"] = {}

    async def resolve(self, address: str) -> Tuple[float, float]:
        """
        Resolve an address, using the cache when possible.

        Concurrent calls for the same uncached address share one request.

        Returns:
            (lng, lat)

        Raises:
            GeocodeError: No candidate, malformed response or network failure
        """
        cached = self.cache.get_coords(address)
        if cached is not None:
            logger.debug(f"Coordinate cache hit: {address}")
            return cached

        task = self._pending.get(address)
        if task is None:
            logger.debug(f"Coordinate cache miss: {address}")
            task = asyncio.ensure_future(self._fetch_and_store(address))
            self._pending[address] = task

            def _forget(done, address=address):
                if self._pending.get(address) is done:
                    del self._pending[address]

            task.add_done_callback(_forget)

        return await asyncio.shield(task)

    async def resolve_many(
        self, addresses: Iterable[str], concurrency: int = DEFAULT_CONCURRENCY
    ) -> Dict[str, Tuple[float, float]]:
        """
        Resolve several addresses concurrently.

        Args:
            addresses: Addresses to resolve (duplicates are resolved once)
            concurrency: Maximum requests in flight

        Returns:
            Mapping of address -> (lng, lat). Addresses that fail with
            ``GeocodeError`` are logged and left out.

        Raises:
            TravelTimeError: Any other failure, raised once every lookup
                has finished
        """
        unique = list(dict.fromkeys(addresses))
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _one(address: str) -> Tuple[float, float]:
            async with semaphore:
                return await self.resolve(address)

        results = await asyncio.gather(*(_one(a) for a in unique), return_exceptions=True)

        resolved: Dict[str, Tuple[float, float]] = {}
        for address, result in zip(unique, results):
            if isinstance(result, GeocodeError):
                logger.warning(f"Could not geocode {address}: {result}")
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved[address] = result
        return resolved

    async def _fetch_and_store(self, address: str) -> Tuple[float, float]:
        data = await self._request(address)
        lng, lat = self._parse_location(data, address)
        self.cache.set_coords(address, lng, lat)
        logger.info(f"Geocoded {address} -> ({lng:.6f}, {lat:.6f})")
        return lng, lat

    async def _request(self, address: str) -> Any:
        headers = {
            "X-Goog-Api-Key": self.credentials.api_key,
            "X-Goog-FieldMask": GEOCODE_FIELD_MASK,
        }
        self.request_count += 1
        try:
            async with client_session(self.client, self.timeout) as client:
                response = await client.get(
                    self.url,
                    params={"addressQuery": address},
                    headers=headers,
                    timeout=make_timeout(self.timeout),
                )
        except httpx.TimeoutException as e:
            raise GeocodeError(
                f"Geocoding timed out after {self.timeout}s for {address!r}"
            ) from e
        except httpx.HTTPError as e:
            raise GeocodeError(f"Geocoding request failed for {address!r}: {e}") from e

        if response.status_code != 200:
            raise GeocodeError(
                f"Geocoding failed for {address!r}: HTTP {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise GeocodeError(f"Malformed geocoding response for {address!r}") from e

    @staticmethod
    def _parse_location(data: Any, address: str) -> Tuple[float, float]:
        """Extract (lng, lat) of the first candidate."""
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            raise GeocodeError(f"No geocoding result for {address!r}")

        first = results[0] if isinstance(results, list) else None
        location = first.get("location") if isinstance(first, dict) else None
        if not isinstance(location, dict):
            raise GeocodeError(f"Geocoding result for {address!r} has no location")

        lng = location.get("longitude")
        lat = location.get("latitude")
        for value in (lng, lat):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise GeocodeError(
                    f"Geocoding result for {address!r} has invalid coordinates: {location}"
                )
        return float(lng), float(lat)
