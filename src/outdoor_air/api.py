from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .aggregation import AQIAggregator
from .config import OutdoorAirConfig, load_credentials
from .errors import InvalidRequest
from .models import Activity, Coordinate
from .providers import build_providers
from .spots import SpotFinder

logger = logging.getLogger(__name__)

NO_SPOTS_NOTE = "No suitable outdoor locations found. Consider indoor activities."
SPOTS_NOTE = "Listed spots are ordered by suitability."


def _error(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def create_app(
    aggregator: Optional[AQIAggregator] = None,
    spot_finder: Optional[SpotFinder] = None,
    config: Optional[OutdoorAirConfig] = None,
) -> FastAPI:
    """Build the API. Without an aggregator, providers are built from env credentials."""
    config = config or (aggregator.config if aggregator is not None else OutdoorAirConfig())
    if aggregator is None:
        aggregator = AQIAggregator(build_providers(config, load_credentials()), config)
    if spot_finder is None:
        spot_finder = SpotFinder(aggregator, config)

    app = FastAPI(title="Outdoor Air API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/")
    def read_root():
        return {"message": "Outdoor Air API running"}

    @app.get("/api/aqi/current")
    def current_aqi(lat: Optional[str] = None, lon: Optional[str] = None):
        """Composite AQI, confidence and activity advice for one location."""
        try:
            coord = Coordinate.parse(lat, lon)
        except InvalidRequest as e:
            return _error(400, str(e))

        try:
            outcome = aggregator.get_composite_aqi(coord)
            if not outcome.ok:
                return _error(404, "Unable to fetch AQI data for this location")
            return outcome.result.to_dict()
        except Exception as e:
            logger.exception("[api] /api/aqi/current failed lat=%s lon=%s", lat, lon)
            return _error(500, "Internal server error", message=str(e))

    @app.get("/api/spots")
    def find_spots(lat: Optional[str] = None, lon: Optional[str] = None, activity: Optional[str] = None):
        """Best nearby outdoor spots for an activity, ranked by suitability."""
        try:
            coord = Coordinate.parse(lat, lon)
            activity_key = Activity.parse(activity)
        except InvalidRequest as e:
            return _error(400, str(e))

        try:
            spots = spot_finder.find_spots(coord, activity_key)
        except Exception as e:
            logger.exception("[api] /api/spots failed lat=%s lon=%s activity=%s", lat, lon, activity)
            return _error(500, "Internal server error", message=str(e))

        return {
            "spots": [s.to_dict() for s in spots],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "note": NO_SPOTS_NOTE if not spots else SPOTS_NOTE,
        }

    return app
