from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderCredentials:
    """API keys per provider. A missing key disables that provider."""
    waqi_api_key: Optional[str] = None
    iqair_api_key: Optional[str] = None


@dataclass(frozen=True)
class OutdoorAirConfig:
    # Provider endpoints
    waqi_base_url: str = "https://api.waqi.info"
    iqair_base_url: str = "https://api.airvisual.com"
    request_timeout: float = 10.0
    max_retries: int = 0

    # Composite AQI
    provider_weights: Dict[str, float] = field(
        default_factory=lambda: {"WAQI": 0.6, "IQAir": 0.4}
    )
    pollutant_priority: Tuple[str, ...] = ("WAQI", "IQAir")
    decay_distance_km: float = 20.0
    decay_floor: float = 0.5

    # Confidence tier
    high_confidence_km: float = 5.0
    medium_confidence_km: float = 10.0

    # Grid sweep
    grid_step_deg: float = 0.01  # ~1.1 km
    grid_radius_steps: int = 5
    search_radius_km: float = 5.0
    requests_per_second: float = 1.0
    max_aqi_for_spot: int = 100
    max_spots: int = 5

    # Spot score weights
    aqi_weight: float = 0.4
    distance_weight: float = 0.3
    amenity_weight: float = 0.3
    aqi_score_ceiling: float = 150.0

    # WAQI station search
    station_box_deg: float = 0.5

    def grid_size(self) -> int:
        side = 2 * self.grid_radius_steps + 1
        return side * side


def load_credentials() -> ProviderCredentials:
    """
    Read provider API keys from the environment (.env locally).

    Missing keys are not an error: the matching provider reports itself
    unavailable on every call.
    """
    load_dotenv()

    creds = ProviderCredentials(
        waqi_api_key=os.getenv("WAQI_API_KEY") or None,
        iqair_api_key=os.getenv("IQAIR_API_KEY") or None,
    )
    if not creds.waqi_api_key:
        logger.warning("[config] WAQI_API_KEY not set; WAQI provider disabled")
    if not creds.iqair_api_key:
        logger.warning("[config] IQAIR_API_KEY not set; IQAir provider disabled")
    return creds


def load_config(**overrides) -> Tuple[OutdoorAirConfig, ProviderCredentials]:
    """Build the runtime config plus credentials. Keyword overrides replace defaults."""
    return OutdoorAirConfig(**overrides), load_credentials()
