"""OpenWeatherMap One Call API client."""

from decimal import Decimal

import httpx
import structlog
from prometheus_client import Counter, Histogram
from pydantic import ValidationError

from myweather.config import Settings
from myweather.models.weather import Coordinate, WeatherSnapshot

logger = structlog.get_logger()


class OpenWeatherError(Exception):
    """Base exception for One Call client errors."""


class InvalidURLError(OpenWeatherError):
    """Raised when the request URL cannot be built from the configured base URL."""


class NetworkError(OpenWeatherError):
    """Raised when no response was received."""


class HTTPStatusError(OpenWeatherError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyBodyError(OpenWeatherError):
    """Raised when a successful response has no body."""


class DecodeError(OpenWeatherError):
    """Raised when the response body does not match the schema."""

    def __init__(self, message: str, raw_body: str) -> None:
        super().__init__(message)
        self.raw_body = raw_body


# Metrics
upstream_requests = Counter(
    "onecall_requests_total",
    "Total One Call API requests",
    ["status"],
)
upstream_duration = Histogram(
    "onecall_request_duration_seconds",
    "One Call API request duration in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0],
)


def format_degrees(value: float) -> str:
    """Format a coordinate in plain decimal notation (never ``1e-05``)."""
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class OpenWeatherClient:
    """HTTP client for the One Call API."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._base_url = settings.base_url
        self._api_key = settings.api_key

    def build_url(self, coordinate: Coordinate) -> str:
        """Build the One Call request URL for a coordinate.

        Minutely data is always excluded and units are fixed to metric.

        Raises:
            InvalidURLError: If the base URL is not an absolute http(s) URL
        """
        try:
            url = httpx.URL(self._base_url)
        except httpx.InvalidURL as e:
            raise InvalidURLError(f"Invalid base URL {self._base_url!r}: {e}") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError(f"Invalid base URL {self._base_url!r}")

        params = {
            "lat": format_degrees(coordinate.latitude),
            "lon": format_degrees(coordinate.longitude),
            "units": "metric",
            "appid": self._api_key,
            "exclude": "minutely",
        }
        return str(url.copy_with(params=params))

    async def fetch(self, coordinate: Coordinate) -> WeatherSnapshot:
        """Fetch and decode current and forecast weather for a coordinate.

        Args:
            coordinate: Location to fetch weather for

        Returns:
            Decoded weather snapshot

        Raises:
            InvalidURLError: If the request URL cannot be built
            NetworkError: If no response was received
            HTTPStatusError: If the API returns a non-2xx status
            EmptyBodyError: If a 2xx response has no body
            DecodeError: If the body does not match the schema
        """
        url = self.build_url(coordinate)
        logger.debug(
            "One Call request",
            lat=coordinate.latitude,
            lon=coordinate.longitude,
        )

        with upstream_duration.time():
            try:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url)
            except httpx.TimeoutException as e:
                upstream_requests.labels(status="timeout").inc()
                raise NetworkError(f"request timed out: {e}") from e
            except httpx.RequestError as e:
                upstream_requests.labels(status="error").inc()
                raise NetworkError(str(e) or type(e).__name__) from e

        if not response.is_success:
            upstream_requests.labels(status="error").inc()
            raise HTTPStatusError(
                f"One Call API returned {response.status_code}",
                response.status_code,
            )

        if not response.content:
            upstream_requests.labels(status="empty").inc()
            raise EmptyBodyError("One Call API returned an empty body")

        return self._parse_response(response.content)

    def _parse_response(self, body: bytes) -> WeatherSnapshot:
        """Decode a One Call response body.

        Raises:
            DecodeError: If the body is not valid JSON or misses required fields
        """
        try:
            snapshot = WeatherSnapshot.model_validate_json(body)
        except ValidationError as e:
            upstream_requests.labels(status="invalid").inc()
            raise DecodeError(
                _describe_validation_error(e),
                body.decode("utf-8", errors="replace"),
            ) from e

        upstream_requests.labels(status="success").inc()
        return snapshot


def _describe_validation_error(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "body"
        details.append(f"{location}: {item['msg']}")
    return "; ".join(details)
