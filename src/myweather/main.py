"""Application entry point."""

import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from pydantic import ValidationError

from myweather import __version__
from myweather.api.dependencies import shutdown_singletons
from myweather.api.routes import api_router, health_router
from myweather.config import Settings, describe_configuration_error, get_settings
from myweather.middleware.logging import LoggingMiddleware, configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the weather pipeline when the application shuts down."""
    yield
    await shutdown_singletons()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Raises:
        ValidationError: If required settings such as API_KEY are missing
    """
    settings = settings or get_settings()

    configure_logging(settings)

    app = FastAPI(
        title="MyWeather API",
        description="Location-aware weather from the OpenWeatherMap One Call API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router)
    app.include_router(health_router)

    # Mount Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    return app


def load_settings_or_exit() -> Settings:
    """Load settings, terminating with a diagnostic if they are invalid."""
    try:
        return get_settings()
    except ValidationError as e:
        message = describe_configuration_error(e)
        structlog.get_logger().critical("Startup aborted", reason=message)
        sys.exit(message)


def run() -> None:
    """Run the application with uvicorn."""
    settings = load_settings_or_exit()
    uvicorn.run(
        "myweather.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
