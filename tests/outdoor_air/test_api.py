"""Tests for the HTTP endpoints (FastAPI TestClient, no network)."""

import pytest
from fastapi.testclient import TestClient

from src.outdoor_air.aggregation import AQIAggregator
from src.outdoor_air.api import NO_SPOTS_NOTE, SPOTS_NOTE, create_app
from src.outdoor_air.config import OutdoorAirConfig
from src.outdoor_air.models import Activity, CompositeOutcome, Coordinate, RankedSpot
from src.outdoor_air.providers import WAQIProvider


class StubSpotFinder:
    def __init__(self, spots=None, error=None):
        self.spots = spots or []
        self.error = error
        self.calls = []

    def find_spots(self, center, activity):
        self.calls.append((center, activity))
        if self.error is not None:
            raise self.error
        return self.spots


@pytest.fixture
def client_for():
    def _make(providers=None, spot_finder=None, aggregator=None):
        if aggregator is None:
            aggregator = AQIAggregator(providers if providers is not None else [], OutdoorAirConfig())
        app = create_app(aggregator, spot_finder or StubSpotFinder())
        return TestClient(app)

    return _make


class TestCurrentAQI:
    def test_missing_params_400(self, client_for):
        resp = client_for().get("/api/aqi/current", params={"lat": "12.97"})
        assert resp.status_code == 400
        assert "lat and lon" in resp.json()["error"]

    def test_malformed_params_400(self, client_for):
        resp = client_for().get("/api/aqi/current", params={"lat": "north", "lon": "77.5"})
        assert resp.status_code == 400

    def test_success(self, client_for, fake_provider, make_reading):
        providers = [
            fake_provider("WAQI", make_reading("WAQI", 100, 0.0, "Hebbal")),
            fake_provider("IQAir", make_reading("IQAir", 50, 0.0, "Bengaluru, Karnataka")),
        ]
        resp = client_for(providers).get("/api/aqi/current", params={"lat": "12.97", "lon": "77.59"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["aqi"] == 80
        assert body["confidence"] == "high"
        assert body["nearestStation"] == "Hebbal"
        assert [s["name"] for s in body["sources"]] == ["WAQI", "IQAir"]
        assert body["recommendations"]["bestTime"] == "Early morning or evening"

    def test_nan_pollutant_served_as_null(self, client_for, make_session):
        payload = {
            "status": "ok",
            "data": {
                "aqi": 60,
                "city": {"name": "Hebbal", "distance": 1.0},
                "time": {"iso": "2024-06-01T10:00:00+05:30"},
                "iaqi": {"pm25": {"v": "NaN"}, "pm10": {"v": 30}},
            },
        }
        waqi = WAQIProvider("key", session=make_session(payload))
        resp = client_for([waqi]).get("/api/aqi/current", params={"lat": "12.97", "lon": "77.59"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["aqi"] == 60
        assert body["pollutants"]["pm25"] is None
        assert body["pollutants"]["pm10"] == 30.0

    def test_zero_sources_is_200_with_null_aqi(self, client_for, fake_provider):
        resp = client_for([fake_provider("WAQI")]).get("/api/aqi/current", params={"lat": "1", "lon": "2"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["aqi"] is None
        assert body["confidence"] == "low"
        assert body["sources"] == []

    def test_engine_fault_404(self, client_for):
        class FailingAggregator(AQIAggregator):
            def get_composite_aqi(self, coord):
                return CompositeOutcome(error="RuntimeError: boom")

        resp = client_for(aggregator=FailingAggregator([])).get("/api/aqi/current", params={"lat": "1", "lon": "2"})
        assert resp.status_code == 404
        assert resp.json() == {"error": "Unable to fetch AQI data for this location"}

    def test_unexpected_error_500(self, client_for):
        class ExplodingAggregator(AQIAggregator):
            def get_composite_aqi(self, coord):
                raise RuntimeError("kaboom")

        resp = client_for(aggregator=ExplodingAggregator([])).get("/api/aqi/current", params={"lat": "1", "lon": "2"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error", "message": "kaboom"}


class TestSpots:
    def test_empty_spots_note(self, client_for):
        finder = StubSpotFinder()
        resp = client_for(spot_finder=finder).get(
            "/api/spots", params={"lat": "12.97", "lon": "77.59", "activity": "jogging"}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["spots"] == []
        assert body["note"] == NO_SPOTS_NOTE
        assert "timestamp" in body
        assert finder.calls == [(Coordinate(12.97, 77.59), Activity.JOGGING)]

    def test_spots_listed(self, client_for):
        spot = RankedSpot(
            location=Coordinate(12.98, 77.6),
            aqi=42,
            distance_km=1.234567,
            confidence="medium",
            amenities={"walking": 0.9},
            score=0.91234,
            best_time="Any time during the day",
        )
        resp = client_for(spot_finder=StubSpotFinder([spot])).get(
            "/api/spots", params={"lat": "12.97", "lon": "77.59", "activity": "walking"}
        )

        body = resp.json()
        assert body["note"] == SPOTS_NOTE
        assert body["spots"][0]["aqi"] == 42
        assert body["spots"][0]["distance"] == 1.235
        assert body["spots"][0]["location"] == {"lat": 12.98, "lon": 77.6}

    def test_unknown_activity_400(self, client_for):
        resp = client_for().get("/api/spots", params={"lat": "1", "lon": "2", "activity": "skydiving"})
        assert resp.status_code == 400
        assert "skydiving" in resp.json()["error"]

    def test_missing_lat_400(self, client_for):
        resp = client_for().get("/api/spots", params={"lon": "2", "activity": "walking"})
        assert resp.status_code == 400

    def test_spot_finder_error_500(self, client_for):
        finder = StubSpotFinder(error=RuntimeError("grid exploded"))
        resp = client_for(spot_finder=finder).get("/api/spots", params={"lat": "1", "lon": "2", "activity": "walking"})
        assert resp.status_code == 500
        assert resp.json()["message"] == "grid exploded"
