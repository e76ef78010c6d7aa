"""Observable state records published to consumers."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import structlog

from myweather.models.weather import Coordinate, WeatherSnapshot

logger = structlog.get_logger()

T = TypeVar("T")

LOADING_PLACE_NAME = "Loading..."


@dataclass(frozen=True)
class LocationState:
    """Location provider state."""

    coordinate: Coordinate | None = None
    place_name: str = LOADING_PLACE_NAME
    loading: bool = False
    error: str | None = None


@dataclass(frozen=True)
class Idle:
    """No fetch has been issued yet."""

    status = "idle"


@dataclass(frozen=True)
class Loading:
    """A fetch is in flight."""

    status = "loading"


@dataclass(frozen=True)
class Success:
    """The last completed fetch decoded successfully."""

    snapshot: WeatherSnapshot
    status = "success"


@dataclass(frozen=True)
class Failure:
    """The last completed fetch failed.

    ``raw_body`` carries the undecodable payload for diagnostics only.
    """

    message: str
    raw_body: str | None = field(default=None, repr=False)
    status = "failure"


FetchState = Idle | Loading | Success | Failure


class Published(Generic[T]):
    """A single-writer state record with change notification.

    The record binds to the event loop that first writes to it from inside a
    running loop. Later writes from other threads are scheduled onto that
    loop, so observers always run on the owning loop.
    """

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._observers: list[Callable[[T], None]] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def value(self) -> T:
        """Most recently applied value."""
        return self._value

    def subscribe(self, observer: Callable[[T], None]) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def set(self, value: T) -> None:
        """Publish a new value on the owning loop."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if self._loop is None or self._loop.is_closed():
            self._loop = running

        if self._loop is not None and running is not self._loop:
            self._loop.call_soon_threadsafe(self._apply, value)
            return

        self._apply(value)

    def _apply(self, value: T) -> None:
        self._value = value
        for observer in list(self._observers):
            try:
                observer(value)
            except Exception:
                logger.exception("State observer failed", observer=repr(observer))
