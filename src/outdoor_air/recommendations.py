from __future__ import annotations

from typing import Optional

from .models import ActivityAdvice, Recommendation

NOT_RECOMMENDED = "Not recommended"

_SUITABLE = ActivityAdvice(suitable=True)
_UNSUITABLE = ActivityAdvice(suitable=False)


def _advice(jogging: bool, walking: bool, cycling: bool, best_time: str, alternatives=()) -> Recommendation:
    return Recommendation(
        jogging=_SUITABLE if jogging else _UNSUITABLE,
        walking=_SUITABLE if walking else _UNSUITABLE,
        cycling=_SUITABLE if cycling else _UNSUITABLE,
        best_time=best_time,
        alternatives=tuple(alternatives),
    )


DEFAULT_RECOMMENDATION = _advice(False, False, False, NOT_RECOMMENDED)


def recommend(aqi: Optional[int]) -> Recommendation:
    """
    Map a composite AQI to per-activity suitability and timing advice.

    Bands use inclusive upper bounds: 0-50, 51-100, 101-150, 151+.
    A missing AQI gets the all-unsuitable default.
    """
    if aqi is None:
        return DEFAULT_RECOMMENDATION
    if aqi <= 50:
        return _advice(True, True, True, "Any time during the day")
    if aqi <= 100:
        return _advice(True, True, True, "Early morning or evening", ["Indoor gym"])
    if aqi <= 150:
        return _advice(False, True, False, "Early morning only", ["Indoor activities"])
    return _advice(
        False, False, False, NOT_RECOMMENDED,
        ["Indoor activities", "Swimming", "Indoor sports"],
    )


def recommended_time(aqi: Optional[int]) -> str:
    return recommend(aqi).best_time


def aqi_category(aqi: Optional[int]) -> Optional[str]:
    """US EPA category label for an AQI value."""
    if aqi is None:
        return None
    if aqi <= 50:
        return "Good"
    if aqi <= 100:
        return "Moderate"
    if aqi <= 150:
        return "Unhealthy for Sensitive Groups"
    if aqi <= 200:
        return "Unhealthy"
    if aqi <= 300:
        return "Very Unhealthy"
    return "Hazardous"
