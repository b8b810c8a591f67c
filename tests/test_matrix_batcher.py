"""Unit tests for route matrix batching."""

import sys
from pathlib import Path

# Add parent directory to path to import project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio

import httpx
import pytest
from cache import MemoryStore
from fakes import FakeMapsAPI, make_buildings
from models.building import Building
from models.constants import TransportationMode
from models.credentials import Credentials
from models.criterion import Criterion
from traveltime.errors import ParseError, RoutingError
from traveltime.matrix import MatrixBatcher, chunk_buildings, parse_duration

CREDENTIALS = Credentials(app_id="app", api_key="secret-key")
DEPARTURE = "2026-10-26T08:00:00+09:00"


def make_criterion(mode=TransportationMode.DRIVING, minutes=30):
    criterion = Criterion(mode=mode, address="Office", time=minutes)
    criterion.location = (139.767, 35.681)
    return criterion


def run_batcher(api, store, criterion, buildings):
    async def _run():
        async with api.client() as client:
            batcher = MatrixBatcher(
                CREDENTIALS, store, client=client, departure_time=DEPARTURE
            )
            return await batcher.resolve_durations(criterion, buildings)

    return asyncio.run(_run())


class TestChunking:
    """Test provider-limited chunking."""

    def test_driving_700_buildings_two_requests(self):
        api = FakeMapsAPI(default_seconds=600)
        buildings = make_buildings(700)

        durations = run_batcher(api, MemoryStore(), make_criterion(), buildings)

        sizes = sorted(len(call["destinations"]) for call in api.matrix_calls)
        assert sizes == [75, 625]
        assert len(durations) == 700

    def test_transit_150_buildings_two_requests(self):
        api = FakeMapsAPI(default_seconds=600)
        criterion = make_criterion(TransportationMode.PUBLIC)

        run_batcher(api, MemoryStore(), criterion, make_buildings(150))

        sizes = sorted(len(call["destinations"]) for call in api.matrix_calls)
        assert sizes == [50, 100]

    def test_exact_limit_single_request(self):
        api = FakeMapsAPI(default_seconds=600)
        run_batcher(api, MemoryStore(), make_criterion(TransportationMode.WALKING), make_buildings(625))
        assert len(api.matrix_calls) == 1

    def test_chunk_buildings_keeps_order(self):
        buildings = make_buildings(5)
        chunks = chunk_buildings(buildings, 2)

        assert [len(c) for c in chunks] == [2, 2, 1]
        assert [b for chunk in chunks for b in chunk] == buildings

    def test_chunk_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            chunk_buildings(make_buildings(1), 0)


class TestCaching:
    """Test interaction with the duration cache."""

    def test_cached_durations_skip_network(self):
        store = MemoryStore()
        buildings = make_buildings(3)
        criterion = make_criterion()
        for i, b in enumerate(buildings):
            store.set_time("Office", b.address, TransportationMode.DRIVING, 100 + i)
        api = FakeMapsAPI(default_seconds=999)

        durations = run_batcher(api, store, criterion, buildings)

        assert api.matrix_calls == []
        assert durations == {b.address: 100 + i for i, b in enumerate(buildings)}

    def test_only_uncached_buildings_are_requested(self):
        store = MemoryStore()
        buildings = make_buildings(3)
        store.set_time("Office", buildings[0].address, TransportationMode.DRIVING, 50)
        api = FakeMapsAPI(default_seconds=700)

        durations = run_batcher(api, store, make_criterion(), buildings)

        assert len(api.matrix_calls[0]["destinations"]) == 2
        assert durations[buildings[0].address] == 50
        assert durations[buildings[1].address] == 700

    def test_fetched_durations_are_cached(self):
        store = MemoryStore()
        buildings = make_buildings(2)
        api = FakeMapsAPI(default_seconds=321)

        run_batcher(api, store, make_criterion(), buildings)

        for b in buildings:
            assert store.get_time("Office", b.address, TransportationMode.DRIVING) == 321

    def test_no_route_rows_are_omitted(self):
        """Buildings without a route stay unknown and uncached."""
        store = MemoryStore()
        buildings = make_buildings(2)
        api = FakeMapsAPI(durations={buildings[0].coordinates: 400, buildings[1].coordinates: None})

        durations = run_batcher(api, store, make_criterion(), buildings)

        assert durations == {buildings[0].address: 400}
        assert store.get_time("Office", buildings[1].address, TransportationMode.DRIVING) is None

    def test_buildings_without_coordinates_are_skipped(self):
        api = FakeMapsAPI(default_seconds=100)
        buildings = [Building(name="Unknown", address="nowhere")] + make_buildings(1)

        durations = run_batcher(api, MemoryStore(), make_criterion(), buildings)

        assert "nowhere" not in durations
        assert len(api.matrix_calls[0]["destinations"]) == 1


class TestRequest:
    """Test the request body sent to the routing API."""

    @pytest.mark.parametrize(
        "mode,provider",
        [
            (TransportationMode.CYCLING, "BICYCLE"),
            (TransportationMode.WALKING, "WALK"),
            (TransportationMode.DRIVING, "DRIVE"),
            (TransportationMode.PUBLIC, "TRANSIT"),
        ],
    )
    def test_travel_mode(self, mode, provider):
        api = FakeMapsAPI(default_seconds=100)
        run_batcher(api, MemoryStore(), make_criterion(mode), make_buildings(1))
        assert api.matrix_calls[0]["travelMode"] == provider

    def test_body_and_headers(self):
        api = FakeMapsAPI(default_seconds=100)
        buildings = make_buildings(2)

        run_batcher(api, MemoryStore(), make_criterion(), buildings)

        body = api.matrix_calls[0]
        assert body["departureTime"] == DEPARTURE
        assert body["origins"] == [
            {"waypoint": {"location": {"latLng": {"latitude": 35.681, "longitude": 139.767}}}}
        ]
        destination = body["destinations"][1]["waypoint"]["location"]["latLng"]
        assert (destination["longitude"], destination["latitude"]) == buildings[1].coordinates

        request = api.requests[0]
        assert request.method == "POST"
        assert request.headers["X-Goog-Api-Key"] == "secret-key"
        assert request.headers["X-Goog-FieldMask"] == "originIndex,destinationIndex,duration,condition"

    def test_default_departure_is_next_monday(self):
        api = FakeMapsAPI(default_seconds=100)

        async def _run():
            async with api.client() as client:
                batcher = MatrixBatcher(CREDENTIALS, MemoryStore(), client=client)
                await batcher.resolve_durations(make_criterion(), make_buildings(1))

        asyncio.run(_run())
        assert "T08:00:00" in api.matrix_calls[0]["departureTime"]


class TestErrors:
    """Test routing failures."""

    def test_http_error_raises_routing_error(self):
        api = FakeMapsAPI(matrix_status=500)
        with pytest.raises(RoutingError, match="HTTP 500"):
            run_batcher(api, MemoryStore(), make_criterion(), make_buildings(2))

    def test_failed_chunk_keeps_other_chunks(self):
        """One failing chunk aborts only itself; the others are reported on the error."""
        store = MemoryStore()
        buildings = make_buildings(700)
        api = FakeMapsAPI(
            default_seconds=200,
            fail_matrix_when=lambda body: len(body["destinations"]) == 75,
        )

        with pytest.raises(RoutingError) as excinfo:
            run_batcher(api, store, make_criterion(), buildings)

        assert len(excinfo.value.durations) == 625
        assert store.get_time("Office", buildings[0].address, TransportationMode.DRIVING) == 200
        assert store.get_time("Office", buildings[-1].address, TransportationMode.DRIVING) is None

    def test_malformed_chunk_keeps_other_chunks(self):
        """An unparsable duration in one chunk still reports the other chunks."""
        store = MemoryStore()
        buildings = make_buildings(150)
        api = FakeMapsAPI(
            default_seconds=200,
            bad_duration_when=lambda body: len(body["destinations"]) == 50,
        )

        with pytest.raises(ParseError) as excinfo:
            run_batcher(api, store, make_criterion(TransportationMode.PUBLIC), buildings)

        assert len(excinfo.value.durations) == 100
        assert store.get_time("Office", buildings[0].address, TransportationMode.PUBLIC) == 200
        assert store.get_time("Office", buildings[-1].address, TransportationMode.PUBLIC) is None

    def test_ungeocoded_criterion(self):
        criterion = Criterion(mode=TransportationMode.DRIVING, address="Office", time=10)
        with pytest.raises(RoutingError, match="not geocoded"):
            run_batcher(FakeMapsAPI(), MemoryStore(), criterion, make_buildings(1))

    def _run_with_rows(self, payload, store=None):
        store = store or MemoryStore()

        async def _run():
            transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
            async with httpx.AsyncClient(transport=transport) as client:
                batcher = MatrixBatcher(CREDENTIALS, store, client=client, departure_time=DEPARTURE)
                return await batcher.resolve_durations(make_criterion(), make_buildings(2))

        return asyncio.run(_run())

    def test_unexpected_condition(self):
        with pytest.raises(RoutingError, match="Unexpected route condition"):
            self._run_with_rows([{"destinationIndex": 0, "condition": "MAYBE"}])

    def test_index_out_of_range(self):
        with pytest.raises(RoutingError, match="out of range"):
            self._run_with_rows(
                [{"destinationIndex": 5, "condition": "ROUTE_EXISTS", "duration": "10s"}]
            )

    def test_response_not_a_list(self):
        with pytest.raises(RoutingError):
            self._run_with_rows({"error": "nope"})

    def test_unparsable_duration_leaves_chunk_uncached(self):
        """A bad row aborts the chunk before any duration is written."""
        store = MemoryStore()
        rows = [
            {"destinationIndex": 0, "condition": "ROUTE_EXISTS", "duration": "100s"},
            {"destinationIndex": 1, "condition": "ROUTE_EXISTS", "duration": "soon"},
        ]
        with pytest.raises(ParseError):
            self._run_with_rows(rows, store)

        assert store.get_time("Office", "Building address 0", TransportationMode.DRIVING) is None

    def test_missing_destination_index_defaults_to_first(self):
        durations = self._run_with_rows([{"condition": "ROUTE_EXISTS", "duration": "60s"}])
        assert durations == {"Building address 0": 60}


class TestParseDuration:
    """Test duration string parsing."""

    @pytest.mark.parametrize("value,expected", [("1234s", 1234), ("0s", 0), ("12.7s", 12)])
    def test_valid(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["abc", "12", "s", "-5s", 1234, None])
    def test_invalid(self, value):
        with pytest.raises(ParseError):
            parse_duration(value)
