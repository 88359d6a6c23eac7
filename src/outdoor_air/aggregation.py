# file: src/outdoor_air/aggregation.py
"""
Composite AQI from several providers.

Fan-out is concurrent with settle-all semantics: every adapter runs to
completion, and an adapter that raises only loses its own reading.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from .config import OutdoorAirConfig
from .models import (
    AggregatedAQI,
    CompositeOutcome,
    Coordinate,
    Pollutants,
    SourceReading,
    SourceSummary,
    empty_pollutants,
)
from .recommendations import DEFAULT_RECOMMENDATION, aqi_category, recommend

logger = logging.getLogger(__name__)

CONFIDENCE_LOW = "low"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_HIGH = "high"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def effective_weight(base_weight: float, distance_km: float, config: OutdoorAirConfig) -> float:
    """Base weight decayed linearly with station distance, floored at `decay_floor`."""
    decay = max(config.decay_floor, 1 - distance_km / config.decay_distance_km)
    return base_weight * decay


def weighted_aqi(sources: Sequence[SourceSummary], config: Optional[OutdoorAirConfig] = None) -> Optional[int]:
    """
    Distance-adjusted weighted mean of source AQIs.

    Sources without a configured provider weight are ignored; if none has
    one, the first source's AQI is returned unchanged.
    """
    if not sources:
        return None
    config = config or OutdoorAirConfig()

    total_weight = 0.0
    weighted_sum = 0.0
    for source in sources:
        base = config.provider_weights.get(source.name)
        if not base:
            continue
        weight = effective_weight(base, source.distance_km, config)
        weighted_sum += source.aqi * weight
        total_weight += weight

    if total_weight > 0:
        return _round_half_up(weighted_sum / total_weight)
    return sources[0].aqi


def confidence_tier(sources: Sequence[SourceSummary], config: Optional[OutdoorAirConfig] = None) -> str:
    config = config or OutdoorAirConfig()
    if len(sources) >= 2 and all(s.distance_km < config.high_confidence_km for s in sources):
        return CONFIDENCE_HIGH
    if sources and any(s.distance_km < config.medium_confidence_km for s in sources):
        return CONFIDENCE_MEDIUM
    return CONFIDENCE_LOW


def merge_pollutants(by_provider: Dict[str, Pollutants], priority: Sequence[str]) -> Pollutants:
    """
    First non-null value per pollutant, walking providers in `priority` order.

    Providers missing from `priority` are consulted afterwards in the order
    they appear in `by_provider`.
    """
    order = [name for name in priority if name in by_provider]
    order += [name for name in by_provider if name not in order]

    merged = empty_pollutants()
    for key in merged:
        for name in order:
            value = by_provider[name].get(key)
            if value is not None:
                merged[key] = value
                break
    return merged


class AQIAggregator:
    def __init__(self, providers: Sequence, config: Optional[OutdoorAirConfig] = None):
        self.providers = list(providers)
        self.config = config or OutdoorAirConfig()

    def _fan_out(self, coord: Coordinate) -> List[Optional[SourceReading]]:
        """Run every provider concurrently; results keep provider order."""
        if not self.providers:
            return []

        with ThreadPoolExecutor(max_workers=len(self.providers), thread_name_prefix="aqi-provider") as executor:
            futures = [executor.submit(provider.fetch, coord) for provider in self.providers]

        results: List[Optional[SourceReading]] = []
        for provider, future in zip(self.providers, futures):
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(
                    "[aggregate] provider=%s raised %s: %s (treated as unavailable)",
                    getattr(provider, "name", type(provider).__name__), type(e).__name__, e,
                )
                results.append(None)
        return results

    def aggregate(self, readings: Sequence[SourceReading]) -> AggregatedAQI:
        """Merge successful readings (in provider order) into one composite result."""
        if not readings:
            return AggregatedAQI(
                aqi=None,
                confidence=CONFIDENCE_LOW,
                nearest_station=None,
                sources=(),
                pollutants=empty_pollutants(),
                recommendations=DEFAULT_RECOMMENDATION,
            )

        sources = tuple(SourceSummary.from_reading(r) for r in readings)
        by_provider: Dict[str, Pollutants] = {}
        for reading in readings:
            by_provider.setdefault(reading.source_name, reading.pollutants)

        aqi = weighted_aqi(sources, self.config)
        return AggregatedAQI(
            aqi=aqi,
            confidence=confidence_tier(sources, self.config),
            # first successful provider, not the geographically nearest station
            nearest_station=sources[0].station,
            sources=sources,
            pollutants=merge_pollutants(by_provider, self.config.pollutant_priority),
            recommendations=recommend(aqi),
            category=aqi_category(aqi),
        )

    def get_composite_aqi(self, coord: Coordinate) -> CompositeOutcome:
        try:
            readings = [r for r in self._fan_out(coord) if r is not None]
            result = self.aggregate(readings)
        except Exception as e:
            logger.exception("[aggregate] composite AQI failed lat=%.4f lon=%.4f", coord.lat, coord.lon)
            return CompositeOutcome(error=f"{type(e).__name__}: {e}")

        logger.info(
            "[aggregate] lat=%.4f lon=%.4f sources=%d aqi=%s confidence=%s",
            coord.lat, coord.lon, len(result.sources), result.aqi, result.confidence,
        )
        return CompositeOutcome(result=result)
