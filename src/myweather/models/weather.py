"""Typed schema of the One Call API response.

Field names follow the provider's JSON keys. Keys that are not valid Python
identifiers (the ``"1h"`` precipitation volumes) are mapped through
``PRECIPITATION_KEYS`` when decoding and serializing.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OneCallModel(BaseModel):
    """Immutable base for all decoded payloads."""

    model_config = ConfigDict(frozen=True)


class Coordinate(OneCallModel):
    """Geographic coordinate in degrees."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude")


PRECIPITATION_KEYS = {
    "one_hour": "1h",
    "three_hours": "3h",
}


class PrecipitationVolume(OneCallModel):
    """Rain or snow volume in mm."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=lambda name: PRECIPITATION_KEYS.get(name, name),
        populate_by_name=True,
    )

    one_hour: float | None = None
    three_hours: float | None = None


class WeatherCondition(OneCallModel):
    """Weather condition entry (id, group, description, icon code)."""

    id: int
    main: str
    description: str
    icon: str


class CurrentConditions(OneCallModel):
    """Current weather conditions."""

    dt: int
    sunrise: int | None = None
    sunset: int | None = None
    temp: float
    feels_like: float
    pressure: int
    humidity: int = Field(..., ge=0, le=100)
    dew_point: float | None = None
    uvi: float
    clouds: int
    visibility: int | None = None
    wind_speed: float
    wind_deg: int
    wind_gust: float | None = None
    rain: PrecipitationVolume | None = None
    snow: PrecipitationVolume | None = None
    weather: list[WeatherCondition]

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.dt, tz=UTC)

    @property
    def primary_condition(self) -> WeatherCondition | None:
        """The first reported condition, which consumers treat as primary."""
        return self.weather[0] if self.weather else None


class MinutelyPoint(OneCallModel):
    """Minute-level precipitation forecast."""

    dt: int
    precipitation: float


class HourlyPoint(OneCallModel):
    """Hour-level forecast."""

    dt: int
    temp: float
    feels_like: float
    pressure: int
    humidity: int = Field(..., ge=0, le=100)
    dew_point: float | None = None
    uvi: float
    clouds: int
    visibility: int | None = None
    wind_speed: float
    wind_deg: int
    wind_gust: float | None = None
    weather: list[WeatherCondition]
    pop: float
    rain: PrecipitationVolume | None = None
    snow: PrecipitationVolume | None = None

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.dt, tz=UTC)


class DailyTemperature(OneCallModel):
    """Temperatures over the course of one day."""

    day: float
    min: float
    max: float
    night: float
    eve: float
    morn: float


class DailyFeelsLike(OneCallModel):
    """Feels-like temperatures over the course of one day.

    The provider does not send min/max for feels-like, so those are optional.
    """

    day: float
    night: float
    eve: float
    morn: float
    min: float | None = None
    max: float | None = None


class DailyPoint(OneCallModel):
    """One calendar day's forecast, identified by its timestamp."""

    dt: int
    sunrise: int
    sunset: int
    moonrise: int
    moonset: int
    moon_phase: float
    summary: str | None = None
    temp: DailyTemperature
    feels_like: DailyFeelsLike
    pressure: int
    humidity: int = Field(..., ge=0, le=100)
    dew_point: float
    wind_speed: float
    wind_deg: int
    wind_gust: float | None = None
    weather: list[WeatherCondition]
    clouds: int
    pop: float
    rain: float | None = None
    snow: float | None = None
    uvi: float

    @property
    def id(self) -> int:
        return self.dt

    @property
    def timestamp(self) -> datetime:
        return datetime.fromtimestamp(self.dt, tz=UTC)


class Alert(OneCallModel):
    """Government weather alert."""

    sender_name: str
    event: str
    start: int
    end: int
    description: str
    tags: list[str] | None = None


class WeatherSnapshot(OneCallModel):
    """Decoded One Call response.

    Forecast lists keep the provider's ordering. An empty list is treated the
    same as an absent one, so a present list always has entries.
    """

    lat: float
    lon: float
    timezone: str
    timezone_offset: int
    current: CurrentConditions
    minutely: list[MinutelyPoint] | None = None
    hourly: list[HourlyPoint] | None = None
    daily: list[DailyPoint] | None = None
    alerts: list[Alert] | None = None

    @field_validator("minutely", "hourly", "daily", "alerts", mode="before")
    @classmethod
    def _empty_as_missing(cls, value: object) -> object:
        if isinstance(value, list) and not value:
            return None
        return value

    @field_validator("daily")
    @classmethod
    def _unique_days(cls, value: list[DailyPoint] | None) -> list[DailyPoint] | None:
        if value is None:
            return value
        seen: set[int] = set()
        for day in value:
            if day.dt in seen:
                raise ValueError(f"duplicate daily timestamp {day.dt}")
            seen.add(day.dt)
        return value

    @property
    def today(self) -> DailyPoint | None:
        """The first daily entry, if any."""
        return self.daily[0] if self.daily else None
