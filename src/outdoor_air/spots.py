# file: src/outdoor_air/spots.py
"""
Grid sweep + outdoor spot ranking.

The sweep is strictly sequential and rate-limited: each grid cell costs one
composite-AQI lookup (itself a concurrent fan-out to every provider), so a
default 11x11 sweep takes roughly two minutes at 1 request/second.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .aggregation import AQIAggregator
from .config import OutdoorAirConfig
from .errors import InvalidRequest
from .geo import haversine_km
from .models import Activity, Coordinate, RankedSpot
from .rate_limit import TokenBucket
from .recommendations import recommended_time

logger = logging.getLogger(__name__)

SWEEP_COLUMNS = [
    "grid_order",
    "lat",
    "lon",
    "aqi",
    "distance_km",
    "confidence",
    "amenities",
    "amenity_score",
    "score",
]


class AmenityStrategy:
    """Per-activity suitability (0-1) of the surroundings of a coordinate."""

    def scores(self, coord: Coordinate) -> Dict[str, float]:
        raise NotImplementedError


class StaticAmenities(AmenityStrategy):
    """Constant scores everywhere; stands in until a places data source exists."""

    DEFAULT_SCORES = {
        Activity.JOGGING.value: 0.8,
        Activity.WALKING.value: 0.9,
        Activity.CYCLING.value: 0.7,
    }

    def __init__(self, scores: Optional[Dict[str, float]] = None):
        self._scores = dict(scores if scores is not None else self.DEFAULT_SCORES)

    def scores(self, coord: Coordinate) -> Dict[str, float]:
        return dict(self._scores)


def build_grid(center: Coordinate, step_deg: float, radius_steps: int) -> List[Coordinate]:
    """
    Square lattice around `center`, bounds inclusive on both axes.

    Cells are ordered row-major (latitude outer, longitude inner). Cells that
    fall outside valid lat/lon ranges are dropped.
    """
    offsets = np.arange(-radius_steps, radius_steps + 1) * step_deg
    cells: List[Coordinate] = []
    for dlat in offsets:
        for dlon in offsets:
            try:
                cells.append(center.offset(float(dlat), float(dlon)))
            except InvalidRequest:
                logger.debug("[spots] skipping out-of-range cell dlat=%.4f dlon=%.4f", dlat, dlon)
    return cells


def score_spot(aqi, distance_km, amenity_score, config: Optional[OutdoorAirConfig] = None):
    """
    Weighted spot score from AQI, distance from center and amenities.

    Works element-wise on pandas Series as well as on scalars.
    """
    config = config or OutdoorAirConfig()
    aqi_score = np.maximum(0.0, 1 - aqi / config.aqi_score_ceiling)
    distance_score = np.maximum(0.0, 1 - distance_km / config.search_radius_km)
    return (
        config.aqi_weight * aqi_score
        + config.distance_weight * distance_score
        + config.amenity_weight * amenity_score
    )


class SpotFinder:
    def __init__(
        self,
        aggregator: AQIAggregator,
        config: Optional[OutdoorAirConfig] = None,
        *,
        amenities: Optional[AmenityStrategy] = None,
        rate_limiter: Optional[TokenBucket] = None,
    ):
        self.aggregator = aggregator
        self.config = config or aggregator.config
        self.amenities = amenities or StaticAmenities()
        self.rate_limiter = rate_limiter

    def _limiter(self) -> TokenBucket:
        if self.rate_limiter is not None:
            return self.rate_limiter
        return TokenBucket(self.config.requests_per_second)

    def sweep(self, center: Coordinate, activity: Activity) -> pd.DataFrame:
        """
        Composite AQI for every grid cell, scored for `activity`.

        Cells with no composite AQI are left out; nothing else is filtered.
        """
        cells = build_grid(center, self.config.grid_step_deg, self.config.grid_radius_steps)
        limiter = self._limiter()
        logger.info(
            "[spots] sweep center=(%.4f, %.4f) activity=%s cells=%d",
            center.lat, center.lon, activity.value, len(cells),
        )

        rows = []
        for grid_order, cell in enumerate(cells):
            limiter.acquire()
            outcome = self.aggregator.get_composite_aqi(cell)
            if not outcome.ok:
                logger.warning("[spots] cell (%.4f, %.4f) failed: %s", cell.lat, cell.lon, outcome.error)
                continue
            if outcome.aqi is None:
                continue

            amenities = self.amenities.scores(cell)
            rows.append({
                "grid_order": grid_order,
                "lat": cell.lat,
                "lon": cell.lon,
                "aqi": outcome.aqi,
                "distance_km": haversine_km(center, cell),
                "confidence": outcome.result.confidence,
                "amenities": amenities,
                "amenity_score": float(amenities.get(activity.value, 0.0)),
            })

        df = pd.DataFrame(rows, columns=SWEEP_COLUMNS)
        if not df.empty:
            df["score"] = score_spot(df["aqi"], df["distance_km"], df["amenity_score"], self.config)
        logger.info("[spots] sweep done: %d/%d cells with AQI", len(df), len(cells))
        return df

    def rank(self, sweep: pd.DataFrame) -> List[RankedSpot]:
        """Filter a sweep to acceptable AQI and return the top spots, best first."""
        good = sweep[sweep["aqi"] <= self.config.max_aqi_for_spot]
        # mergesort is stable, so equal scores keep grid order
        good = good.sort_values("score", ascending=False, kind="mergesort")
        top = good.head(self.config.max_spots)

        return [
            RankedSpot(
                location=Coordinate(float(row.lat), float(row.lon)),
                aqi=int(row.aqi),
                distance_km=float(row.distance_km),
                confidence=row.confidence,
                amenities=dict(row.amenities),
                score=float(row.score),
                best_time=recommended_time(int(row.aqi)),
            )
            for row in top.itertuples(index=False)
        ]

    def find_spots(self, center: Coordinate, activity: Activity) -> List[RankedSpot]:
        spots = self.rank(self.sweep(center, activity))
        if not spots:
            logger.info("[spots] no suitable outdoor spots around (%.4f, %.4f)", center.lat, center.lon)
        return spots
