# file: src/outdoor_air/providers.py
"""
Provider adapters: fetch one provider's current reading and normalize it.

Every adapter honours the same contract: `fetch(coord)` returns a complete
SourceReading or None. Network errors, HTTP errors, a provider status other
than its success value, and malformed payloads are logged and become None.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import OutdoorAirConfig, ProviderCredentials
from .errors import ProviderUnavailable
from .geo import haversine_km
from .models import POLLUTANT_KEYS, Coordinate, NearbyStation, Pollutants, SourceReading

logger = logging.getLogger(__name__)

_SECRET_PARAMS = {"token", "key", "api_key"}


def _sanitize_url(url: str) -> str:
    parts = urlsplit(url)
    q = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k.lower() not in _SECRET_PARAMS]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(q), parts.fragment))


def _create_session(max_retries: int = 0) -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=max_retries,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_float(value: Any) -> Optional[float]:
    """Finite numeric value or None. Strings like '-' (offline sensor) and NaN/inf become None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_aqi(provider: str, value: Any) -> int:
    number = _to_float(value)
    if number is None:
        raise ProviderUnavailable(provider, f"non-numeric aqi {value!r}")
    return int(round(number))


class AQIProvider:
    """Base adapter: session handling, request/response plumbing, failure policy."""

    name = ""

    def __init__(
        self,
        api_key: Optional[str],
        config: Optional[OutdoorAirConfig] = None,
        *,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.config = config or OutdoorAirConfig()
        self.timeout = self.config.request_timeout
        self.session = session or _create_session(self.config.max_retries)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.get(url, params=params, timeout=self.timeout)
        logger.debug("[%s] status=%s url=%s", self.name, resp.status_code, _sanitize_url(resp.url))
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise ProviderUnavailable(self.name, f"payload is not an object: {type(payload).__name__}")
        return payload

    def fetch_payload(self, coord: Coordinate) -> Dict[str, Any]:
        raise NotImplementedError

    def parse(self, payload: Dict[str, Any], coord: Coordinate) -> SourceReading:
        raise NotImplementedError

    def fetch(self, coord: Coordinate) -> Optional[SourceReading]:
        if not self.enabled:
            logger.debug("[%s] no API key configured; provider unavailable", self.name)
            return None

        try:
            return self.parse(self.fetch_payload(coord), coord)
        except requests.exceptions.RequestException as e:
            logger.warning(
                "[%s] request failed lat=%.4f lon=%.4f: %s: %s",
                self.name, coord.lat, coord.lon, type(e).__name__, e,
            )
        except ProviderUnavailable as e:
            logger.warning("[%s] unavailable lat=%.4f lon=%.4f: %s", self.name, coord.lat, coord.lon, e.reason)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(
                "[%s] malformed payload lat=%.4f lon=%.4f: %s: %s",
                self.name, coord.lat, coord.lon, type(e).__name__, e,
            )
        return None


class WAQIProvider(AQIProvider):
    """World Air Quality Index project (aqicn.org) geo feed."""

    name = "WAQI"

    def fetch_payload(self, coord: Coordinate) -> Dict[str, Any]:
        url = f"{self.config.waqi_base_url}/feed/geo:{coord.lat};{coord.lon}/"
        return self._get_json(url, {"token": self.api_key})

    @staticmethod
    def _iaqi_value(iaqi: Dict[str, Any], key: str) -> Optional[float]:
        entry = iaqi.get(key)
        if not isinstance(entry, dict):
            return None
        return _to_float(entry.get("v"))

    def parse(self, payload: Dict[str, Any], coord: Coordinate) -> SourceReading:
        status = payload.get("status")
        if status != "ok":
            raise ProviderUnavailable(self.name, f"status={status!r} data={payload.get('data')!r}")

        data = payload["data"]
        city = data.get("city") or {}
        station = city.get("name")
        if not station:
            raise ProviderUnavailable(self.name, "response has no station name")

        iaqi = data.get("iaqi") or {}
        pollutants: Pollutants = {key: self._iaqi_value(iaqi, key) for key in POLLUTANT_KEYS}

        return SourceReading(
            source_name=self.name,
            aqi=_to_aqi(self.name, data.get("aqi")),
            distance_km=max(0.0, _to_float(city.get("distance")) or 0.0),
            station_label=str(station),
            timestamp=(data.get("time") or {}).get("iso") or _now_iso(),
            pollutants=pollutants,
        )

    def stations_in_radius(self, coord: Coordinate, radius_km: float = 25.0) -> List[NearbyStation]:
        """
        List WAQI stations within `radius_km`, nearest first.

        Searches a bounding box of +/- `station_box_deg` around the coordinate,
        then filters by great-circle distance.
        """
        if not self.enabled:
            logger.debug("[%s] no API key configured; station search skipped", self.name)
            return []

        box = self.config.station_box_deg
        latlng = f"{coord.lat - box},{coord.lon - box},{coord.lat + box},{coord.lon + box}"
        try:
            payload = self._get_json(
                f"{self.config.waqi_base_url}/map/bounds/",
                {"token": self.api_key, "latlng": latlng},
            )
            if payload.get("status") != "ok":
                raise ProviderUnavailable(self.name, f"status={payload.get('status')!r}")
            records = payload.get("data") or []
        except requests.exceptions.RequestException as e:
            logger.warning("[%s] station search failed: %s: %s", self.name, type(e).__name__, e)
            return []
        except ProviderUnavailable as e:
            logger.warning("[%s] station search unavailable: %s", self.name, e.reason)
            return []

        stations: List[NearbyStation] = []
        for record in records:
            lat, lon = _to_float(record.get("lat")), _to_float(record.get("lon"))
            if lat is None or lon is None:
                continue
            location = Coordinate(lat, lon)
            distance = haversine_km(coord, location)
            if distance > radius_km:
                continue
            aqi = _to_float(record.get("aqi"))
            stations.append(
                NearbyStation(
                    name=(record.get("station") or {}).get("name") or str(record.get("uid", "unknown")),
                    location=location,
                    aqi=int(round(aqi)) if aqi is not None else None,
                    distance_km=distance,
                )
            )

        stations.sort(key=lambda s: s.distance_km)
        logger.info("[%s] %d stations within %.1f km", self.name, len(stations), radius_km)
        return stations


class IQAirProvider(AQIProvider):
    """IQAir AirVisual nearest-city endpoint."""

    name = "IQAir"

    def fetch_payload(self, coord: Coordinate) -> Dict[str, Any]:
        url = f"{self.config.iqair_base_url}/v2/nearest_city"
        return self._get_json(url, {"lat": coord.lat, "lon": coord.lon, "key": self.api_key})

    def parse(self, payload: Dict[str, Any], coord: Coordinate) -> SourceReading:
        status = payload.get("status")
        if status != "success":
            raise ProviderUnavailable(self.name, f"status={status!r} data={payload.get('data')!r}")

        data = payload["data"]
        pollution = data["current"]["pollution"]
        pollutants: Pollutants = {key: _to_float(pollution.get(key)) for key in POLLUTANT_KEYS}

        return SourceReading(
            source_name=self.name,
            aqi=_to_aqi(self.name, pollution.get("aqius")),
            # nearest_city does not report station distance
            distance_km=0.0,
            station_label=f"{data['city']}, {data['state']}",
            timestamp=pollution.get("ts") or _now_iso(),
            pollutants=pollutants,
        )


def build_providers(
    config: OutdoorAirConfig,
    credentials: ProviderCredentials,
    *,
    session: Optional[requests.Session] = None,
) -> List[AQIProvider]:
    """Adapters in invocation order (this order is the order of `sources`)."""
    return [
        WAQIProvider(credentials.waqi_api_key, config, session=session),
        IQAirProvider(credentials.iqair_api_key, config, session=session),
    ]
