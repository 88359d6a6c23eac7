"""Shared fixtures for outdoor_air tests."""

from __future__ import annotations

from typing import Optional
from unittest.mock import MagicMock

import pytest
import requests

from src.outdoor_air.models import POLLUTANT_KEYS, SourceReading


class FakeProvider:
    """Provider double returning a fixed reading (or raising)."""

    def __init__(self, name: str, reading: Optional[SourceReading] = None, error: Optional[Exception] = None):
        self.name = name
        self.reading = reading
        self.error = error
        self.calls = []

    def fetch(self, coord):
        self.calls.append(coord)
        if self.error is not None:
            raise self.error
        return self.reading


@pytest.fixture
def make_reading():
    def _make(name="WAQI", aqi=50, distance_km=0.0, station="Station", **pollutants):
        values = {key: None for key in POLLUTANT_KEYS}
        values.update(pollutants)
        return SourceReading(
            source_name=name,
            aqi=aqi,
            distance_km=distance_km,
            station_label=station,
            timestamp="2024-06-01T10:00:00+05:30",
            pollutants=values,
        )

    return _make


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def make_session():
    """MagicMock session whose get() returns the given JSON payload (or raises)."""

    def _make(payload=None, status_code=200, error=None):
        session = MagicMock()
        if error is not None:
            session.get.side_effect = error
            return session

        resp = MagicMock()
        resp.status_code = status_code
        resp.url = "https://api.example.test/feed?token=secret"
        resp.json.return_value = payload
        if status_code >= 400:
            resp.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
        else:
            resp.raise_for_status.return_value = None
        session.get.return_value = resp
        return session

    return _make
