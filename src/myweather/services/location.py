"""Location provider: authorization state machine and place naming."""

import asyncio
from dataclasses import replace

import structlog
from prometheus_client import Counter

from myweather.config import Settings
from myweather.models.state import LocationState, Published
from myweather.models.weather import Coordinate
from myweather.services.location_service import (
    AuthorizationStatus,
    GeocodeError,
    LocationError,
    LocationService,
    PermissionDeniedError,
    Placemark,
    UnknownAuthorizationError,
)

logger = structlog.get_logger()

PERMISSION_REQUIRED = "location permission required"
UNKNOWN_AUTHORIZATION = "unknown location authorization status"
GEOCODE_FAILED = "error getting location name"
UNKNOWN_PLACE = "Unknown Location"

AUTHORIZED = frozenset(
    {AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS}
)
REFUSED = frozenset({AuthorizationStatus.DENIED, AuthorizationStatus.RESTRICTED})

# Metrics
location_requests = Counter(
    "location_requests_total",
    "Location requests by outcome",
    ["outcome"],
)


def check_authorization(status: AuthorizationStatus) -> None:
    """Raise unless the status allows requesting a fix.

    Raises:
        PermissionDeniedError: If access is denied or restricted
        UnknownAuthorizationError: If the status is not recognized
    """
    if status in AUTHORIZED:
        return
    if status in REFUSED:
        raise PermissionDeniedError(f"location access {status}")
    raise UnknownAuthorizationError(f"unexpected authorization status {status!r}")


def place_name(placemarks: list[Placemark]) -> str:
    """Pick the display name: locality, then administrative area."""
    if placemarks:
        first = placemarks[0]
        if first.locality:
            return first.locality
        if first.administrative_area:
            return first.administrative_area
    return UNKNOWN_PLACE


class LocationProvider:
    """Publishes the device location and its human-readable name.

    ``request_location`` asks for authorization first. A ``NOT_DETERMINED``
    answer leaves the request pending until the platform reports a decision
    through ``authorization_changed``. In a sandboxed environment the fixed
    fallback location is published instead of consulting the service.
    """

    def __init__(self, service: LocationService, settings: Settings) -> None:
        """Start idle with no coordinate and the loading placeholder name."""
        self._service = service
        self._sandboxed = settings.sandboxed
        self._fallback = Coordinate(
            latitude=settings.fallback_latitude,
            longitude=settings.fallback_longitude,
        )
        self._fallback_name = settings.fallback_place_name
        self._geocode_tasks: set[asyncio.Task[None]] = set()
        self._closed = False
        self.state: Published[LocationState] = Published(LocationState())

    @property
    def current(self) -> LocationState:
        """Latest published location state."""
        return self.state.value

    @property
    def closed(self) -> bool:
        """Whether ``close()`` has been called."""
        return self._closed

    def _update(self, **changes: object) -> None:
        self.state.set(replace(self.state.value, **changes))

    async def request_location(self) -> None:
        """Start a location request; the outcome is published to ``state``."""
        if self._closed:
            return

        self._update(loading=True, error=None)

        if self._sandboxed:
            logger.info("Sandboxed environment, using fallback location")
            self._use_fallback()
            return

        status = await self._service.request_authorization()
        await self.authorization_changed(status)

    async def authorization_changed(self, status: AuthorizationStatus) -> None:
        """Handle an authorization decision delivered by the platform."""
        if self._closed:
            return

        logger.debug("Location authorization", status=str(status))

        if status == AuthorizationStatus.NOT_DETERMINED:
            # Wait for the user to answer the permission prompt
            return

        try:
            check_authorization(status)
        except PermissionDeniedError:
            self._permission_denied()
            return
        except UnknownAuthorizationError as e:
            logger.warning("Unexpected location authorization", error=str(e))
            location_requests.labels(outcome="unknown_authorization").inc()
            self._update(loading=False, error=UNKNOWN_AUTHORIZATION)
            return

        await self._acquire()

    async def _acquire(self) -> None:
        try:
            coordinate = await self._service.request_one_shot_location()
        except PermissionDeniedError:
            if not self._closed:
                self._permission_denied()
            return
        except LocationError as e:
            logger.warning("Location request failed", error=str(e))
            self._location_failed(e)
            return
        except Exception as e:
            logger.exception("Location service raised an unexpected error")
            self._location_failed(e)
            return

        if self._closed:
            return

        location_requests.labels(outcome="fix").inc()
        logger.info("Location acquired", lat=coordinate.latitude, lon=coordinate.longitude)
        self._update(coordinate=coordinate, loading=False)

        task = asyncio.create_task(self._resolve_name(coordinate))
        self._geocode_tasks.add(task)
        task.add_done_callback(self._geocode_tasks.discard)

    def _permission_denied(self) -> None:
        location_requests.labels(outcome="denied").inc()
        self._update(loading=False, error=PERMISSION_REQUIRED)

    def _location_failed(self, error: Exception) -> None:
        if self._closed:
            return
        if self._sandboxed:
            self._use_fallback()
            return
        location_requests.labels(outcome="error").inc()
        self._update(loading=False, error=f"error getting location: {error}")

    async def _resolve_name(self, coordinate: Coordinate) -> None:
        try:
            placemarks = await self._service.reverse_geocode(coordinate)
        except GeocodeError as e:
            logger.warning("Reverse geocoding failed", error=str(e))
            self._geocode_failed()
            return
        except Exception:
            logger.exception("Reverse geocoding raised an unexpected error")
            self._geocode_failed()
            return

        if self._closed:
            return
        self._update(place_name=place_name(placemarks))

    def _geocode_failed(self) -> None:
        # The coordinate already published stays valid
        if not self._closed:
            self._update(error=GEOCODE_FAILED)

    def _use_fallback(self) -> None:
        location_requests.labels(outcome="fallback").inc()
        self._update(
            coordinate=self._fallback,
            place_name=self._fallback_name,
            loading=False,
            error=None,
        )

    async def wait_idle(self) -> None:
        """Wait for pending reverse geocoding to finish."""
        while self._geocode_tasks:
            await asyncio.gather(*list(self._geocode_tasks))

    async def close(self) -> None:
        """Stop publishing; pending geocoding results are discarded."""
        self._closed = True
        tasks = list(self._geocode_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._geocode_tasks.clear()
