"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from myweather.config import Settings, get_settings
from myweather.services.controller import WeatherController
from myweather.services.location import LocationProvider
from myweather.services.location_service import IpLocationService
from myweather.services.openweather import OpenWeatherClient
from myweather.services.weather import WeatherService

# Singleton pipeline shared by all requests
_controller: WeatherController | None = None


def build_controller(settings: Settings) -> WeatherController:
    """Wire location provider, weather service and controller."""
    location = LocationProvider(IpLocationService(settings), settings)
    weather = WeatherService(OpenWeatherClient(settings))
    return WeatherController(location, weather)


def get_controller(settings: Annotated[Settings, Depends(get_settings)]) -> WeatherController:
    """Get pipeline controller instance (singleton)."""
    global _controller
    if _controller is None:
        _controller = build_controller(settings)
    return _controller


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ControllerDep = Annotated[WeatherController, Depends(get_controller)]


async def shutdown_singletons() -> None:
    """Close the pipeline and forget it."""
    global _controller
    if _controller is not None:
        await _controller.close()
    _controller = None


def reset_singletons() -> None:
    """Reset singleton instances (for testing)."""
    global _controller
    _controller = None
