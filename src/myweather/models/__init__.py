"""Weather data model and published state records."""

from myweather.models.state import (
    Failure,
    FetchState,
    Idle,
    Loading,
    LocationState,
    Published,
    Success,
)
from myweather.models.weather import (
    Alert,
    Coordinate,
    CurrentConditions,
    DailyPoint,
    HourlyPoint,
    MinutelyPoint,
    WeatherCondition,
    WeatherSnapshot,
)

__all__ = [
    "Alert",
    "Coordinate",
    "CurrentConditions",
    "DailyPoint",
    "Failure",
    "FetchState",
    "HourlyPoint",
    "Idle",
    "Loading",
    "LocationState",
    "MinutelyPoint",
    "Published",
    "Success",
    "WeatherCondition",
    "WeatherSnapshot",
]
