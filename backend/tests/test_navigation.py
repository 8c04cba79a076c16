"""
Tests for the route planner and the navigation session.
"""
import asyncio
import json

import httpx
import pytest

from app.client.locations import SavedLocationsClient
from app.client.route_planner import RoutePlanner
from app.client.session import NavigationSession, format_distance, format_duration
from app.client.storage import MemoryStore, RecentSearches
from app.client.suggestions import SuggestionPipeline
from app.schemas.route import Point, RouteMode, RouteResult
from app.schemas.search import Suggestion
from app.schemas.visit import LocationSample

START = Point(latitude=28.6139, longitude=77.2090)
END = Point(latitude=28.6129, longitude=77.2295)


def route_for(mode: RouteMode, distance: float = 1000.0) -> RouteResult:
    return RouteResult(
        coordinates=[(START.latitude, START.longitude), (END.latitude, END.longitude)],
        distance=distance,
        duration=distance / 10,
        mode=mode,
    )


class ScriptedRouteService:
    """Route service whose calls complete when the test releases them."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.gates: dict[RouteMode, asyncio.Event] = {}

    async def get_route(self, start, end, mode=RouteMode.ROAD):
        self.calls.append((start, end, mode))
        gate = self.gates.get(mode)
        if gate is not None:
            await gate.wait()
        return route_for(mode)


class TestRoutePlanner:
    async def test_incomplete_inputs_do_not_route(self):
        service = ScriptedRouteService()
        planner = RoutePlanner(service)

        assert await planner.set_start(START) is None
        assert service.calls == []
        assert planner.result is None

    async def test_route_recomputed_on_each_change(self):
        service = ScriptedRouteService()
        planner = RoutePlanner(service)

        await planner.set_start(START)
        await planner.set_end(END)
        result = await planner.set_mode(RouteMode.WALKING)

        assert result.mode is RouteMode.WALKING
        assert len(service.calls) == 2
        assert planner.is_calculating is False

    async def test_superseded_result_is_discarded(self):
        service = ScriptedRouteService()
        service.gates[RouteMode.ROAD] = asyncio.Event()
        planner = RoutePlanner(service)
        planner.start, planner.end = START, END

        slow = asyncio.create_task(planner.refresh())
        await asyncio.sleep(0)
        walking = await planner.set_mode(RouteMode.WALKING)
        service.gates[RouteMode.ROAD].set()

        assert await slow is None
        assert walking.mode is RouteMode.WALKING
        assert planner.result.mode is RouteMode.WALKING

    async def test_clearing_endpoint_clears_result(self):
        planner = RoutePlanner(ScriptedRouteService())
        await planner.set_start(START)
        await planner.set_end(END)

        await planner.set_end(None)

        assert planner.result is None


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0 min"), (720, "12 min"), (3900, "1 hr 5 min"), (7199, "1 hr 59 min")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize("meters, expected", [(0, "0.0 km"), (1234, "1.2 km"), (15060, "15.1 km")])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


class FakeTracker:
    def __init__(self, granted: bool, sample=None):
        self.granted = granted
        self.sample = sample
        self.queries: list[str] = []
        self.saves = 0

    async def request_location_permission(self):
        return self.granted, self.sample

    def track_search_query(self, query):
        self.queries.append(query)

    def track_location_save(self):
        self.saves += 1


class FakeGeocoder:
    def __init__(self, results=None):
        self.results = results or []

    async def suggest(self, query, limit=None):
        return self.results

    async def search(self, query):
        return self.results[0] if self.results else None


INDIA_GATE = Suggestion(
    place_id=1001,
    display_name="India Gate, Kartavya Path, New Delhi",
    lat="28.6129",
    lon="77.2295",
)


def locations_api(store: list):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            body = json.loads(request.content)
            if body.get("name") == "fail":
                return httpx.Response(500, json={"success": False, "error": "Server error"})
            store.append({
                "id": "7f1d7a40-0a57-4d2e-9d1c-6c8b2d1f0a11",
                "name": body["name"],
                "address": body["address"],
                "coordinates": body["coordinates"],
            })
            return httpx.Response(201, json={"success": True, "data": store[-1]})
        return httpx.Response(200, json={"success": True, "data": store})

    return SavedLocationsClient(
        url="http://testserver/api/locations",
        transport=httpx.MockTransport(handler),
    )


def make_session(tracker: FakeTracker, geocoder=None, saved=None) -> NavigationSession:
    return NavigationSession(
        tracker=tracker,
        planner=RoutePlanner(ScriptedRouteService()),
        suggestions=SuggestionPipeline(
            geocoder or FakeGeocoder([INDIA_GATE]),
            RecentSearches(MemoryStore()),
            tracker=tracker,
            debounce=0,
        ),
        saved_locations=saved or locations_api([]),
    )


class TestNavigationSession:
    async def test_granted_location_becomes_start(self):
        sample = LocationSample(latitude=19.076, longitude=72.8777)
        session = make_session(FakeTracker(True, sample))

        start = await session.locate_user()

        assert start == Point(latitude=19.076, longitude=72.8777)
        assert session.planner.start == start

    async def test_denied_location_uses_default(self):
        session = make_session(FakeTracker(False))

        start = await session.locate_user()

        assert start == Point(latitude=28.6139, longitude=77.2090)

    async def test_search_sets_destination_and_routes(self):
        tracker = FakeTracker(False)
        session = make_session(tracker)
        await session.locate_user()

        result = await session.search("india gate")

        assert result is not None
        assert session.destination.name == "India Gate"
        assert session.planner.end == INDIA_GATE.point
        assert tracker.queries == ["india gate"]

    async def test_failed_search_keeps_destination(self):
        session = make_session(FakeTracker(False), geocoder=FakeGeocoder([]))

        assert await session.search("nowhere") is None
        assert session.destination is None

    async def test_choose_suggestion(self):
        tracker = FakeTracker(False)
        session = make_session(tracker)

        await session.choose_suggestion(INDIA_GATE)

        assert session.destination.address == INDIA_GATE.display_name
        assert session.suggestions.recent.items == ["India Gate"]

    async def test_save_destination(self):
        tracker = FakeTracker(False)
        store: list = []
        session = make_session(tracker, saved=locations_api(store))
        await session.choose_suggestion(INDIA_GATE)

        assert await session.save_destination("  Monument  ") is True

        assert tracker.saves == 1
        assert [f.name for f in session.favorites] == ["Monument"]
        assert session.favorites[0].coordinates.lat == 28.6129

    async def test_save_failure_reports_false(self):
        tracker = FakeTracker(False)
        session = make_session(tracker)
        await session.choose_suggestion(INDIA_GATE)

        assert await session.save_destination("fail") is False
        assert tracker.saves == 0

    async def test_save_without_destination(self):
        session = make_session(FakeTracker(False))

        assert await session.save_destination("Home") is False


async def test_locations_client_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = SavedLocationsClient(
        url="http://testserver/api/locations",
        transport=httpx.MockTransport(handler),
    )

    assert await client.list() == []
    assert await client.save("Home", "Somewhere", START) is False
