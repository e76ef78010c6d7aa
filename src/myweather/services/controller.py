"""Pipeline wiring location changes to weather fetches."""

import asyncio

import structlog

from myweather.models.state import LocationState
from myweather.models.weather import Coordinate
from myweather.services.location import LocationProvider
from myweather.services.weather import WeatherService

logger = structlog.get_logger()


class WeatherController:
    """Fetches weather once per location change.

    Subscribes to the location provider and starts a fetch whenever a new
    coordinate is published.
    """

    def __init__(self, location: LocationProvider, weather: WeatherService) -> None:
        """Wire the pipeline and start listening for location updates."""
        self.location = location
        self.weather = weather
        self._last_coordinate: Coordinate | None = None
        self._fetch_tasks: set[asyncio.Task[object]] = set()
        self._unsubscribe = location.state.subscribe(self._on_location)

    def _on_location(self, state: LocationState) -> None:
        coordinate = state.coordinate
        if coordinate is None or coordinate == self._last_coordinate:
            return
        self._last_coordinate = coordinate
        logger.debug("Location changed", lat=coordinate.latitude, lon=coordinate.longitude)
        self._schedule_fetch(coordinate)

    def _schedule_fetch(self, coordinate: Coordinate) -> None:
        task = asyncio.create_task(self.weather.fetch_weather(coordinate))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)

    async def refresh(self) -> None:
        """Retry the pipeline from the earliest step that is missing.

        With a known coordinate the weather is fetched again; otherwise the
        location is requested, which triggers a fetch once it resolves.
        """
        coordinate = self.location.current.coordinate
        if coordinate is None:
            await self.location.request_location()
        else:
            self._last_coordinate = coordinate
            self._schedule_fetch(coordinate)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until pending fetches and place-name lookups complete."""
        while self._fetch_tasks:
            await asyncio.gather(*list(self._fetch_tasks))
        await self.location.wait_idle()

    async def close(self) -> None:
        """Detach from the location provider and cancel pending work."""
        self._unsubscribe()
        tasks = list(self._fetch_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._fetch_tasks.clear()
        await self.location.close()
