"""
Domain types for AQI aggregation and spot ranking.

Everything here is built fresh per request and never mutated after it is
returned, so the dataclasses are frozen. `to_dict()` renders the camelCase
shape served by the HTTP API.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidRequest, NoDataAvailable

POLLUTANT_KEYS: Tuple[str, ...] = ("pm25", "pm10", "o3", "no2", "so2", "co")

Pollutants = Dict[str, Optional[float]]


def empty_pollutants() -> Pollutants:
    return {key: None for key in POLLUTANT_KEYS}


class Activity(str, Enum):
    JOGGING = "jogging"
    WALKING = "walking"
    CYCLING = "cycling"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Activity":
        if not value:
            raise InvalidRequest("Missing required parameter: activity")
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            allowed = ", ".join(a.value for a in cls)
            raise InvalidRequest(f"Unknown activity '{value}'. Expected one of: {allowed}") from e


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidRequest(f"Latitude out of range [-90, 90]: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise InvalidRequest(f"Longitude out of range [-180, 180]: {self.lon}")

    @classmethod
    def parse(cls, lat: Optional[str], lon: Optional[str]) -> "Coordinate":
        """Build a coordinate from raw query-string values."""
        if lat in (None, "") or lon in (None, ""):
            raise InvalidRequest("Missing required parameters: lat and lon")
        try:
            lat_f, lon_f = float(lat), float(lon)
        except (TypeError, ValueError) as e:
            raise InvalidRequest(f"lat and lon must be numbers, got lat={lat!r} lon={lon!r}") from e
        return cls(lat_f, lon_f)

    def offset(self, dlat: float, dlon: float) -> "Coordinate":
        return Coordinate(self.lat + dlat, self.lon + dlon)

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class SourceReading:
    """A fully-populated reading from one provider."""
    source_name: str
    aqi: int
    distance_km: float
    station_label: str
    timestamp: str
    pollutants: Pollutants = field(default_factory=empty_pollutants)


@dataclass(frozen=True)
class NearbyStation:
    """A monitoring station found by a bounding-box search."""
    name: str
    location: Coordinate
    aqi: Optional[int]
    distance_km: float


@dataclass(frozen=True)
class SourceSummary:
    name: str
    aqi: int
    distance_km: float
    station: str
    pollutants: Pollutants

    @classmethod
    def from_reading(cls, reading: SourceReading) -> "SourceSummary":
        return cls(
            name=reading.source_name,
            aqi=reading.aqi,
            distance_km=reading.distance_km,
            station=reading.station_label,
            pollutants=dict(reading.pollutants),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "aqi": self.aqi,
            "distance": self.distance_km,
            "station": self.station,
            "pollutants": dict(self.pollutants),
        }


@dataclass(frozen=True)
class ActivityAdvice:
    suitable: bool


@dataclass(frozen=True)
class Recommendation:
    jogging: ActivityAdvice
    walking: ActivityAdvice
    cycling: ActivityAdvice
    best_time: str
    alternatives: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jogging": {"suitable": self.jogging.suitable},
            "walking": {"suitable": self.walking.suitable},
            "cycling": {"suitable": self.cycling.suitable},
            "bestTime": self.best_time,
            "alternatives": list(self.alternatives),
        }


@dataclass(frozen=True)
class AggregatedAQI:
    aqi: Optional[int]
    confidence: str
    nearest_station: Optional[str]
    sources: Tuple[SourceSummary, ...]
    pollutants: Pollutants
    recommendations: Recommendation
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aqi": self.aqi,
            "confidence": self.confidence,
            "recommendations": self.recommendations.to_dict(),
            "nearestStation": self.nearest_station,
            "sources": [s.to_dict() for s in self.sources],
            "pollutants": dict(self.pollutants),
            "category": self.category,
        }


@dataclass(frozen=True)
class CompositeOutcome:
    """
    Result/error wrapper returned by the aggregation engine.

    `ok` with `result.aqi is None` means every provider was unavailable;
    `not ok` means the fan-out itself failed and there is no result at all.
    """
    result: Optional[AggregatedAQI] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def aqi(self) -> Optional[int]:
        return self.result.aqi if self.result is not None else None

    def require_aqi(self) -> int:
        if self.result is None or self.result.aqi is None:
            raise NoDataAvailable(self.error or "No provider returned a reading")
        return self.result.aqi


@dataclass(frozen=True)
class RankedSpot:
    location: Coordinate
    aqi: int
    distance_km: float
    confidence: str
    amenities: Dict[str, float]
    score: float
    best_time: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "aqi": self.aqi,
            "distance": round(self.distance_km, 3),
            "bestTime": self.best_time,
            "confidence": self.confidence,
            "amenities": dict(self.amenities),
            "score": round(self.score, 4),
        }
