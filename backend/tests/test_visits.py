"""
Tests for visit tracking endpoints and the visit service.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import UserVisit, VisitState
from app.routers.visits import get_client_ip
from app.schemas.visit import DeviceInfo, LocationSample
from app.services.visit_service import VisitService, elapsed_seconds

DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

DELHI = {"latitude": 28.6139, "longitude": 77.2090, "accuracy": 12.5}


async def post_event(
    client: AsyncClient,
    session_id,
    event_type,
    data=None,
    user_agent: str = DESKTOP_UA,
):
    return await client.post(
        "/api/user-visits",
        json={"sessionId": session_id, "type": event_type, "data": data or {}},
        headers={"User-Agent": user_agent},
    )


async def start_visit(client: AsyncClient, session_id: str, user_agent: str = DESKTOP_UA):
    return await post_event(
        client,
        session_id,
        "initial_visit",
        {"deviceInfo": {"userAgent": user_agent, "language": "en-US"}},
        user_agent=user_agent,
    )


async def get_visit(client: AsyncClient, session_id: str) -> dict:
    response = await client.get("/api/user-visits", params={"sessionId": session_id})
    assert response.status_code == 200
    return response.json()["data"]


class TestTrackingEvents:
    async def test_initial_visit_creates_record(self, async_client: AsyncClient):
        response = await start_visit(async_client, "s-1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["sessionId"] == "s-1"
        assert body["data"]["id"]

        visit = await get_visit(async_client, "s-1")
        assert visit["state"] == VisitState.IDENTIFIED.value
        assert visit["pageViews"] == 1
        assert visit["interactionCount"] == 0
        assert visit["locations"] == []
        assert visit["locationPermissionGranted"] is None
        assert visit["deviceType"] == "desktop"
        assert visit["browser"] == "Chrome"
        assert visit["deviceInfo"]["language"] == "en-US"
        assert visit["deviceInfo"]["platform"] == "Unknown"

    async def test_initial_visit_is_idempotent(self, async_client: AsyncClient):
        first = await start_visit(async_client, "s-dup")
        second = await start_visit(async_client, "s-dup", user_agent=IPHONE_UA)

        assert first.json()["data"]["id"] == second.json()["data"]["id"]
        visit = await get_visit(async_client, "s-dup")
        assert visit["deviceType"] == "desktop"
        assert visit["pageViews"] == 1

    async def test_concurrent_initial_visits_create_one_record(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
    ):
        responses = await asyncio.gather(*(start_visit(async_client, "s-race") for _ in range(5)))

        assert all(r.status_code == 200 for r in responses)
        assert len({r.json()["data"]["id"] for r in responses}) == 1
        result = await db_session.execute(
            select(UserVisit).where(UserVisit.session_id == "s-race")
        )
        assert len(result.scalars().all()) == 1

    @pytest.mark.parametrize(
        "event_type, data",
        [
            ("interaction", {"searchQuery": "x"}),
            ("location_permission", {"granted": True, "location": DELHI}),
            ("location_update", {"location": DELHI}),
        ],
    )
    async def test_event_for_unknown_session_is_noop(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        event_type,
        data,
    ):
        response = await post_event(async_client, "ghost", event_type, data)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["sessionId"] is None
        assert body["data"]["id"] is None
        assert await get_visit(async_client, "ghost") is None
        result = await db_session.execute(select(UserVisit))
        assert result.scalars().all() == []

    async def test_missing_session_id_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/user-visits",
            json={"type": "interaction", "data": {}},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Session ID is required"}

    async def test_unknown_event_type_is_rejected(self, async_client: AsyncClient):
        response = await post_event(async_client, "s-2", "teleport")

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_malformed_body_is_rejected(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/user-visits",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_permission_granted_records_first_sample(self, async_client: AsyncClient):
        await start_visit(async_client, "s-grant")
        await post_event(
            async_client,
            "s-grant",
            "location_permission",
            {"granted": True, "location": DELHI},
        )

        visit = await get_visit(async_client, "s-grant")
        assert visit["locationPermissionGranted"] is True
        assert visit["locationPermissionTime"] is not None
        assert len(visit["locations"]) == 1
        assert visit["currentLocation"]["latitude"] == DELHI["latitude"]
        assert visit["state"] == VisitState.TRACKING.value

    async def test_permission_denied_keeps_locations_empty(self, async_client: AsyncClient):
        await start_visit(async_client, "s-deny")
        await post_event(
            async_client,
            "s-deny",
            "location_permission",
            {"granted": False, "error": "User denied Geolocation"},
        )

        visit = await get_visit(async_client, "s-deny")
        assert visit["locationPermissionGranted"] is False
        assert visit["locations"] == []
        assert visit["currentLocation"] is None
        assert visit["state"] == VisitState.LOCATION_DECIDED.value

    async def test_location_updates_append_in_order(self, async_client: AsyncClient):
        await start_visit(async_client, "s-move")
        for lat in (28.61, 28.62, 28.63):
            await post_event(
                async_client,
                "s-move",
                "location_update",
                {"location": {"latitude": lat, "longitude": 77.2}},
            )

        visit = await get_visit(async_client, "s-move")
        assert [loc["latitude"] for loc in visit["locations"]] == [28.61, 28.62, 28.63]
        assert visit["currentLocation"]["latitude"] == 28.63
        assert all(loc["timestamp"] for loc in visit["locations"])

    async def test_interactions_accumulate(self, async_client: AsyncClient):
        await start_visit(async_client, "s-int")
        await post_event(async_client, "s-int", "interaction")
        await post_event(async_client, "s-int", "interaction", {"searchQuery": "India Gate"})
        await post_event(async_client, "s-int", "interaction", {"savedLocation": True})

        visit = await get_visit(async_client, "s-int")
        assert visit["interactionCount"] == 3
        assert visit["searchQueries"] == ["India Gate"]
        assert visit["savedLocationsCount"] == 1

    async def test_concurrent_interactions_are_not_lost(self, async_client: AsyncClient):
        await start_visit(async_client, "s-burst")
        await asyncio.gather(*(
            post_event(async_client, "s-burst", "interaction", {"searchQuery": f"q{i}"})
            for i in range(10)
        ))

        visit = await get_visit(async_client, "s-burst")
        assert visit["interactionCount"] == 10
        assert sorted(visit["searchQueries"]) == sorted(f"q{i}" for i in range(10))

    async def test_duration_measured_from_first_visit(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
    ):
        await start_visit(async_client, "s-dur")
        result = await db_session.execute(
            select(UserVisit).where(UserVisit.session_id == "s-dur")
        )
        visit = result.scalar_one()
        visit.first_visit = datetime.now(timezone.utc) - timedelta(seconds=90)
        await db_session.commit()

        await post_event(async_client, "s-dur", "interaction")

        data = await get_visit(async_client, "s-dur")
        assert 90 <= data["totalDuration"] < 120

    async def test_location_update_refreshes_duration(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
    ):
        await start_visit(async_client, "s-dur-loc")
        result = await db_session.execute(
            select(UserVisit).where(UserVisit.session_id == "s-dur-loc")
        )
        visit = result.scalar_one()
        visit.first_visit = datetime.now(timezone.utc) - timedelta(seconds=45)
        await db_session.commit()

        await post_event(async_client, "s-dur-loc", "location_update", {"location": DELHI})

        data = await get_visit(async_client, "s-dur-loc")
        assert 45 <= data["totalDuration"] < 75
        assert data["interactionCount"] == 0


class TestVisitQueries:
    async def test_overview_with_no_visits(self, async_client: AsyncClient):
        response = await async_client.get("/api/user-visits", params={"stats": "overview"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalVisits"] == 0
        assert data["visitsWithLocation"] == 0
        assert data["locationPermissionRate"] == 0
        assert data["recentVisits"] == []

    async def test_overview_rate_and_breakdown(self, async_client: AsyncClient):
        await start_visit(async_client, "o-1")
        await start_visit(async_client, "o-2", user_agent=IPHONE_UA)
        await start_visit(async_client, "o-3")
        await post_event(async_client, "o-1", "location_permission", {"granted": True})
        await post_event(async_client, "o-2", "location_permission", {"granted": False})

        response = await async_client.get("/api/user-visits", params={"stats": "overview"})

        data = response.json()["data"]
        assert data["totalVisits"] == 3
        assert data["visitsWithLocation"] == 1
        assert data["locationPermissionRate"] == 33.3
        assert len(data["recentVisits"]) == 3
        assert data["deviceBreakdown"] == {"desktop": 2, "mobile": 1}

    async def test_pagination(self, async_client: AsyncClient):
        for i in range(5):
            await start_visit(async_client, f"p-{i}")

        response = await async_client.get("/api/user-visits", params={"page": 2, "limit": 2})

        data = response.json()["data"]
        assert len(data["visits"]) == 2
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    async def test_unknown_session_lookup_returns_null(self, async_client: AsyncClient):
        response = await async_client.get("/api/user-visits", params={"sessionId": "nope"})

        assert response.status_code == 200
        assert response.json()["data"] is None


class TestVisitService:
    async def test_geo_enrichment_for_public_address(self, db_session, geoip_client):
        service = VisitService(db_session, geoip_client)

        visit = await service.record_initial_visit(
            "geo-1",
            device_info=DeviceInfo(),
            ip_address="8.8.8.8",
            user_agent=DESKTOP_UA,
        )

        assert visit.city == "New Delhi"
        assert visit.country == "India"
        assert visit.region == "Delhi"

    async def test_private_address_is_not_looked_up(self, db_session, geoip_client):
        service = VisitService(db_session, geoip_client)

        visit = await service.record_initial_visit(
            "geo-2",
            device_info=DeviceInfo(),
            ip_address="192.168.1.10",
        )

        assert visit.city == "Unknown"
        assert visit.user_agent == "Unknown"

    async def test_permission_time_set_once(self, db_session, geoip_client):
        service = VisitService(db_session, geoip_client)
        await service.record_initial_visit("perm", device_info=DeviceInfo())

        first = await service.record_permission_decision("perm", granted=False)
        first_time = first.location_permission_time
        second = await service.record_permission_decision(
            "perm",
            granted=True,
            location=LocationSample(latitude=1.0, longitude=2.0),
        )

        assert second.location_permission_time == first_time
        assert second.location_permission_granted is True
        assert len(second.locations) == 1

    async def test_creation_race_returns_existing_row(self, session_factory, geoip_client):
        async with session_factory() as other_worker:
            winner = await VisitService(other_worker, geoip_client).record_initial_visit(
                "race-db",
                device_info=DeviceInfo(),
            )

        async with session_factory() as session:
            service = VisitService(session, geoip_client)
            real_lookup = service.repo.get_by_session_id
            lookups = []

            async def stale_then_real(session_id):
                lookups.append(session_id)
                return None if len(lookups) == 1 else await real_lookup(session_id)

            with patch.object(service.repo, "get_by_session_id", side_effect=stale_then_real):
                visit = await service.record_initial_visit("race-db", device_info=DeviceInfo())

        assert visit.id == winner.id
        assert len(lookups) == 2

    async def test_update_without_location_is_ignored(self, db_session, geoip_client):
        service = VisitService(db_session, geoip_client)
        await service.record_initial_visit("noloc", device_info=DeviceInfo())

        assert await service.record_location_update("noloc", location=None) is None


@pytest.mark.parametrize(
    "since, now, expected",
    [
        (datetime(2024, 1, 1, 12, 0, 0), datetime(2024, 1, 1, 12, 1, 30, 900000), 90),
        (datetime(2024, 1, 1, 12, 0, 5), datetime(2024, 1, 1, 12, 0, 0), 0),
    ],
)
def test_elapsed_seconds(since, now, expected):
    assert elapsed_seconds(since, now) == expected


class _FakeRequest:
    def __init__(self, headers, host="10.0.0.1"):
        self.headers = headers
        self.client = type("Peer", (), {"host": host})() if host else None


@pytest.mark.parametrize(
    "headers, host, expected",
    [
        ({"x-forwarded-for": "203.0.113.7, 10.0.0.2"}, "10.0.0.1", "203.0.113.7"),
        ({"x-real-ip": "198.51.100.4"}, "10.0.0.1", "198.51.100.4"),
        ({"cf-connecting-ip": "192.0.2.9"}, "10.0.0.1", "192.0.2.9"),
        ({}, "10.0.0.1", "10.0.0.1"),
        ({}, None, "unknown"),
    ],
)
def test_get_client_ip(headers, host, expected):
    assert get_client_ip(_FakeRequest(headers, host)) == expected
