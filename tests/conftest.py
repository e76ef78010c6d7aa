"""Test fixtures."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from myweather.api.dependencies import get_controller, reset_singletons
from myweather.config import Settings, get_settings
from myweather.main import create_app
from myweather.services.controller import WeatherController
from myweather.services.location import LocationProvider
from myweather.services.openweather import OpenWeatherClient
from myweather.services.weather import WeatherService
from tests.fakes import FakeLocationService

FIXTURES = Path(__file__).parent / "fixtures"

BASE_URL = "https://api.test/data/3.0/onecall"


def load_fixture(name: str) -> dict[str, Any]:
    """Load a JSON fixture from tests/fixtures."""
    return json.loads((FIXTURES / name).read_text())


@pytest.fixture
def onecall_payload() -> dict[str, Any]:
    """One Call response with current, hourly, 7 daily entries and an alert."""
    return load_fixture("onecall.json")


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        api_key="test-key",
        base_url=BASE_URL,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def location_service() -> FakeLocationService:
    """Create a fake location service that grants access."""
    return FakeLocationService()


@pytest.fixture
def openweather_client(settings: Settings) -> OpenWeatherClient:
    """Create test One Call client."""
    return OpenWeatherClient(settings)


@pytest.fixture
def controller(
    settings: Settings,
    location_service: FakeLocationService,
    openweather_client: OpenWeatherClient,
) -> WeatherController:
    """Create a pipeline backed by the fake location service."""
    return WeatherController(
        LocationProvider(location_service, settings),
        WeatherService(openweather_client),
    )


@pytest.fixture
def app(
    settings: Settings,
    controller: WeatherController,
    monkeypatch: pytest.MonkeyPatch,
):
    """Create test application."""
    monkeypatch.setenv("API_KEY", "test-key")
    monkeypatch.setenv("BASE_URL", BASE_URL)
    reset_singletons()
    get_settings.cache_clear()
    application = create_app(settings)
    application.dependency_overrides[get_controller] = lambda: controller
    yield application
    get_settings.cache_clear()
    reset_singletons()


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    """Create test client."""
    with TestClient(app) as test_client:
        yield test_client
