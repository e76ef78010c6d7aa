"""Location service capability and an IP-based implementation."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

import httpx
import structlog
from pydantic import ValidationError

from myweather.config import Settings
from myweather.models.weather import Coordinate

logger = structlog.get_logger()


class AuthorizationStatus(StrEnum):
    """Location authorization as reported by the platform."""

    NOT_DETERMINED = "not_determined"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"
    DENIED = "denied"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


class LocationError(Exception):
    """Base exception for location failures."""


class PermissionDeniedError(LocationError):
    """Raised when location access is denied or restricted."""


class UnknownAuthorizationError(LocationError):
    """Raised for an authorization status the provider does not understand."""


class GeocodeError(LocationError):
    """Raised when a coordinate cannot be turned into a place name."""


@dataclass(frozen=True)
class Placemark:
    """Reverse geocoding result."""

    locality: str | None = None
    administrative_area: str | None = None
    country: str | None = None


class LocationService(Protocol):
    """Platform location capability used by the location provider."""

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> AuthorizationStatus: ...

    async def request_one_shot_location(self) -> Coordinate: ...

    async def reverse_geocode(self, coordinate: Coordinate) -> list[Placemark]: ...


class IpLocationService:
    """Locates the host by IP address and names places via OpenWeather geocoding."""

    def __init__(self, settings: Settings) -> None:
        """Initialize the service with lookup endpoints and consent from settings."""
        self._lookup_url = settings.ip_lookup_url
        self._geocode_url = settings.geocode_url
        self._api_key = settings.api_key
        self._authorized = settings.location_authorized

    @property
    def authorization_status(self) -> AuthorizationStatus:
        if self._authorized:
            return AuthorizationStatus.AUTHORIZED_WHEN_IN_USE
        return AuthorizationStatus.DENIED

    async def request_authorization(self) -> AuthorizationStatus:
        return self.authorization_status

    async def request_one_shot_location(self) -> Coordinate:
        """Look up the current coordinate from the public IP address.

        Raises:
            PermissionDeniedError: If location access is not authorized
            LocationError: If the lookup fails or returns no usable coordinate
        """
        if not self._authorized:
            raise PermissionDeniedError("location access denied by configuration")

        data = await self._get_json(self._lookup_url, params=None, error=LocationError)
        if not isinstance(data, dict) or data.get("status") == "fail":
            message = data.get("message") if isinstance(data, dict) else None
            raise LocationError(f"IP lookup failed: {message or 'no location in response'}")

        try:
            return Coordinate(latitude=data["lat"], longitude=data["lon"])
        except (KeyError, ValidationError) as e:
            raise LocationError(f"IP lookup returned an invalid coordinate: {e}") from e

    async def reverse_geocode(self, coordinate: Coordinate) -> list[Placemark]:
        """Resolve a coordinate to place names.

        Raises:
            GeocodeError: If the geocoding request fails
        """
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "limit": 1,
            "appid": self._api_key,
        }
        data = await self._get_json(self._geocode_url, params=params, error=GeocodeError)
        if not isinstance(data, list):
            raise GeocodeError("Unexpected reverse geocoding response")

        return [
            Placemark(
                locality=entry.get("name"),
                administrative_area=entry.get("state"),
                country=entry.get("country"),
            )
            for entry in data
            if isinstance(entry, dict)
        ]

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None,
        error: type[LocationError],
    ) -> Any:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, params=params)
        except httpx.RequestError as e:
            logger.warning("Location request failed", url=url, error=str(e))
            raise error(f"request to {url} failed: {e}") from e

        if response.status_code != 200:
            logger.warning("Location request rejected", url=url, status_code=response.status_code)
            raise error(f"{url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise error(f"{url} returned invalid JSON") from e
