"""API route definitions."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Path

from myweather.api.dependencies import ControllerDep, SettingsDep
from myweather.api.schemas import (
    HealthResponse,
    IconResponse,
    ReadinessResponse,
    WeatherStateResponse,
)
from myweather.services.controller import WeatherController
from myweather.services.icons import is_night, remote_icon_url, resolve_icon

logger = structlog.get_logger()

# API router for weather endpoints
api_router = APIRouter(prefix="/api/v1", tags=["weather"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])


def _state(controller: WeatherController) -> WeatherStateResponse:
    return WeatherStateResponse.from_states(
        controller.location.current,
        controller.weather.current,
    )


@api_router.get("/weather", response_model=WeatherStateResponse)
async def get_weather(controller: ControllerDep) -> WeatherStateResponse:
    """Current location and weather state.

    Nothing is fetched; use the refresh endpoint to run the pipeline.
    """
    return _state(controller)


@api_router.post("/weather/refresh", response_model=WeatherStateResponse)
async def refresh_weather(controller: ControllerDep) -> WeatherStateResponse:
    """Request the location if unknown, then fetch the weather.

    Failures are reported in the returned state rather than as HTTP errors.
    """
    await controller.refresh()
    result = _state(controller)
    if result.error or result.location.error:
        logger.warning(
            "Refresh finished with errors",
            weather_error=result.error,
            location_error=result.location.error,
        )
    return result


@api_router.get("/icons/{code}", response_model=IconResponse)
async def get_icon(
    settings: SettingsDep,
    code: Annotated[str, Path(min_length=1, max_length=8, description="Provider icon code")],
) -> IconResponse:
    """Resolve a provider icon code to a bundled asset and a CDN URL."""
    return IconResponse(
        code=code,
        asset=resolve_icon(code),
        night=is_night(code),
        url=remote_icon_url(code, settings.icon_base_url),
    )


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe - checks if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(controller: ControllerDep) -> ReadinessResponse:
    """Readiness probe - reports pipeline state.

    Location and weather failures are user-facing outcomes that a refresh can
    clear, so they are reported in ``checks`` and never fail readiness.
    """
    location = controller.location.current
    checks = {
        "location": "error" if location.error else "ok",
        "weather": controller.weather.current.status,
    }
    return ReadinessResponse(status="ok", checks=checks)
