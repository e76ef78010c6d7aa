"""API response schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from myweather.models.state import Failure, FetchState, LocationState, Success
from myweather.models.weather import WeatherSnapshot


class LocationStatus(BaseModel):
    """Published location state."""

    latitude: float | None = Field(default=None, description="Latitude")
    longitude: float | None = Field(default=None, description="Longitude")
    placeName: str = Field(..., description="Human-readable place name")  # noqa: N815
    loading: bool = Field(default=False, description="Location request in progress")
    error: str | None = Field(default=None, description="Location error message")

    @classmethod
    def from_state(cls, state: LocationState) -> "LocationStatus":
        coordinate = state.coordinate
        return cls(
            latitude=coordinate.latitude if coordinate else None,
            longitude=coordinate.longitude if coordinate else None,
            placeName=state.place_name,
            loading=state.loading,
            error=state.error,
        )


class WeatherStateResponse(BaseModel):
    """Combined location and weather state."""

    status: Literal["idle", "loading", "success", "failure"] = Field(
        ..., description="Weather fetch state"
    )
    loading: bool = Field(..., description="Any request in progress")
    error: str | None = Field(default=None, description="Weather error message")
    location: LocationStatus
    weather: WeatherSnapshot | None = None

    @classmethod
    def from_states(cls, location: LocationState, fetch: FetchState) -> "WeatherStateResponse":
        return cls(
            status=fetch.status,
            loading=location.loading or fetch.status == "loading",
            error=fetch.message if isinstance(fetch, Failure) else None,
            location=LocationStatus.from_state(location),
            weather=fetch.snapshot if isinstance(fetch, Success) else None,
        )


class IconResponse(BaseModel):
    """Resolved icon for a provider icon code."""

    code: str = Field(..., description="Provider icon code")
    asset: str = Field(..., description="Bundled asset name")
    night: bool = Field(..., description="Night variant")
    url: str = Field(..., description="Remote icon URL")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")
