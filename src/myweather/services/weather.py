"""Weather service owning the published fetch state."""

import structlog

from myweather.models.state import Failure, FetchState, Idle, Loading, Published, Success
from myweather.models.weather import Coordinate
from myweather.services.openweather import (
    DecodeError,
    EmptyBodyError,
    HTTPStatusError,
    InvalidURLError,
    NetworkError,
    OpenWeatherClient,
)

logger = structlog.get_logger()


class WeatherService:
    """Fetches weather for a coordinate and publishes the outcome."""

    def __init__(self, client: OpenWeatherClient) -> None:
        """Initialize service with a One Call client."""
        self._client = client
        self.state: Published[FetchState] = Published(Idle())

    @property
    def current(self) -> FetchState:
        """Latest published fetch state."""
        return self.state.value

    async def fetch_weather(self, coordinate: Coordinate) -> FetchState:
        """Fetch weather for coordinates and publish the result.

        Overlapping calls are independent; whichever response completes last
        determines the published state.

        Args:
            coordinate: Location to fetch weather for

        Returns:
            The state published by this call
        """
        self.state.set(Loading())
        logger.info(
            "Fetching weather",
            lat=coordinate.latitude,
            lon=coordinate.longitude,
        )

        try:
            snapshot = await self._client.fetch(coordinate)

        except InvalidURLError as e:
            logger.error("Invalid request URL", error=str(e))
            result: FetchState = Failure("invalid URL")

        except NetworkError as e:
            logger.error("Weather request failed", error=str(e))
            result = Failure(f"network error: {e}")

        except HTTPStatusError as e:
            logger.error("Weather API error", status_code=e.status_code)
            result = Failure(f"server error: HTTP {e.status_code}")

        except EmptyBodyError:
            logger.error("Weather API returned no data")
            result = Failure("no data received")

        except DecodeError as e:
            logger.error("Failed to decode weather data", error=str(e))
            logger.debug("Raw weather response", body=e.raw_body)
            result = Failure(f"failed to decode data: {e}", raw_body=e.raw_body)

        else:
            logger.info(
                "Weather updated",
                lat=snapshot.lat,
                lon=snapshot.lon,
                daily=len(snapshot.daily or ()),
                hourly=len(snapshot.hourly or ()),
            )
            result = Success(snapshot)

        self.state.set(result)
        return result
