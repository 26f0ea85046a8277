"""Tests for the geo services (mock, Mapbox, Google Maps)."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from googlemaps.exceptions import ApiError, Timeout

from takeaway.core.config import get_settings
from takeaway.services.geo import (
    Coordinate,
    GoogleGeoService,
    MapboxGeoService,
    MockGeoService,
    haversine_miles,
)

STORE = Coordinate(lat=53.5958, lng=-1.2835)
CUSTOMER = Coordinate(lat=53.61, lng=-1.30)


@pytest.fixture
def provider_env(monkeypatch):
    """Provider credentials in the environment, with settings reloaded."""
    monkeypatch.setenv("MAPBOX_TOKEN", "pk.test-token")
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "AIzaTestKey")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestHaversine:
    def test_zero_distance(self):
        assert haversine_miles(STORE, STORE) == 0

    def test_known_distance(self):
        # London to Manchester is roughly 163 miles as the crow flies
        london = Coordinate(lat=51.5074, lng=-0.1278)
        manchester = Coordinate(lat=53.4808, lng=-2.2426)
        assert haversine_miles(london, manchester) == pytest.approx(163, abs=3)


class TestMockGeoService:
    """Tests for MockGeoService."""

    async def test_geocode_is_deterministic_per_postcode(self, mock_geo):
        first = await mock_geo.geocode("WF9 4PY")
        assert first == await mock_geo.geocode("wf94py")
        assert first != await mock_geo.geocode("DN6 7AB")

    async def test_geocode_stays_near_centre(self, mock_geo):
        point = await mock_geo.geocode("LS1 4AP")
        assert abs(point.lat - STORE.lat) <= mock_geo.spread_degrees
        assert abs(point.lng - STORE.lng) <= mock_geo.spread_degrees

    async def test_known_locations(self):
        geo = MockGeoService(center=STORE, known_locations={"wf9 4py": CUSTOMER})
        assert await geo.geocode("WF9 4PY") == CUSTOMER

    async def test_empty_query(self, mock_geo):
        assert await mock_geo.geocode("   ") is None

    async def test_driving_distance_uses_road_factor(self, mock_geo):
        miles = await mock_geo.driving_distance_miles(STORE, CUSTOMER)
        assert miles == round(haversine_miles(STORE, CUSTOMER) * 1.3, 2)

    async def test_simulated_failures(self):
        geo = MockGeoService(center=STORE, failure_rate=1.0)
        assert await geo.geocode("WF9 4PY") is None
        assert await geo.driving_distance_miles(STORE, CUSTOMER) is None
        assert await geo.health_check() is True


class TestMapboxGeoService:
    """Tests for MapboxGeoService over a mocked transport."""

    def _service(self, handler) -> MapboxGeoService:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return MapboxGeoService(client=client)

    async def test_requires_token(self, monkeypatch):
        monkeypatch.delenv("MAPBOX_TOKEN", raising=False)
        get_settings.cache_clear()
        try:
            with pytest.raises(ValueError):
                MapboxGeoService()
        finally:
            get_settings.cache_clear()

    async def test_geocode(self, provider_env):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            return httpx.Response(200, json={"features": [{"center": [-1.30, 53.61]}]})

        service = self._service(handler)
        assert await service.geocode("WF9 4PY") == CUSTOMER
        assert seen["url"].params["access_token"] == "pk.test-token"
        assert seen["url"].params["country"] == "gb"
        assert "WF9%204PY" in str(seen["url"])
        await service.aclose()

    async def test_geocode_no_match(self, provider_env):
        service = self._service(lambda request: httpx.Response(200, json={"features": []}))
        assert await service.geocode("ZZ99 9ZZ") is None

    async def test_geocode_malformed_feature(self, provider_env):
        service = self._service(
            lambda request: httpx.Response(200, json={"features": [{"place_name": "Hemsworth"}]})
        )
        assert await service.geocode("WF9 4PY") is None

    async def test_geocode_http_error(self, provider_env):
        service = self._service(lambda request: httpx.Response(401, json={"message": "Not Authorized"}))
        assert await service.geocode("WF9 4PY") is None

    async def test_geocode_transport_error(self, provider_env):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        assert await self._service(handler).geocode("WF9 4PY") is None

    async def test_geocode_timeout(self, provider_env):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await self._service(handler).geocode("WF9 4PY") is None

    async def test_driving_distance(self, provider_env):
        def handler(request: httpx.Request) -> httpx.Response:
            assert "-1.2835,53.5958;-1.3,53.61" in request.url.path
            return httpx.Response(200, json={"distances": [[0, 3218.688], [3218.688, 0]]})

        miles = await self._service(handler).driving_distance_miles(STORE, CUSTOMER)
        assert miles == pytest.approx(2.0)

    async def test_no_route(self, provider_env):
        service = self._service(lambda request: httpx.Response(200, json={"distances": [[0, None]]}))
        assert await service.driving_distance_miles(STORE, CUSTOMER) is None


class TestGoogleGeoService:
    """Tests for GoogleGeoService with the googlemaps client mocked."""

    @pytest.fixture
    def client(self, provider_env):
        with patch("takeaway.services.geo.google.googlemaps.Client") as client_cls:
            client = MagicMock()
            client_cls.return_value = client
            yield client

    async def test_geocode(self, client):
        client.geocode.return_value = [{"geometry": {"location": {"lat": 53.61, "lng": -1.30}}}]
        service = GoogleGeoService()

        assert await service.geocode("WF9 4PY") == CUSTOMER
        client.geocode.assert_called_once_with("WF9 4PY", components={"country": "GB"})

    async def test_geocode_no_results(self, client):
        client.geocode.return_value = []
        assert await GoogleGeoService().geocode("ZZ99 9ZZ") is None

    async def test_geocode_errors_absorbed(self, client):
        client.geocode.side_effect = Timeout()
        assert await GoogleGeoService().geocode("WF9 4PY") is None
        client.geocode.side_effect = ApiError("REQUEST_DENIED")
        assert await GoogleGeoService().geocode("WF9 4PY") is None

    async def test_driving_distance(self, client):
        client.distance_matrix.return_value = {
            "rows": [{"elements": [{"status": "OK", "distance": {"value": 1609.344}}]}]
        }
        assert await GoogleGeoService().driving_distance_miles(STORE, CUSTOMER) == pytest.approx(1.0)

    async def test_driving_distance_not_found(self, client):
        client.distance_matrix.return_value = {"rows": [{"elements": [{"status": "ZERO_RESULTS"}]}]}
        assert await GoogleGeoService().driving_distance_miles(STORE, CUSTOMER) is None

    async def test_driving_distance_missing_value(self, client):
        client.distance_matrix.return_value = {"rows": [{"elements": [{"status": "OK"}]}]}
        assert await GoogleGeoService().driving_distance_miles(STORE, CUSTOMER) is None

    async def test_requires_key(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
        get_settings.cache_clear()
        try:
            with pytest.raises(ValueError):
                GoogleGeoService()
        finally:
            get_settings.cache_clear()
