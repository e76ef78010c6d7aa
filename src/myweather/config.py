"""Application configuration management."""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # OpenWeatherMap credentials and endpoints
    api_key: str = Field(..., description="OpenWeatherMap API key")
    base_url: str = Field(
        default="https://api.openweathermap.org/data/3.0/onecall",
        description="One Call API base URL",
    )
    icon_base_url: str = Field(
        default="https://openweathermap.org/img/wn",
        description="Weather icon CDN base URL",
    )
    geocode_url: str = Field(
        default="https://api.openweathermap.org/geo/1.0/reverse",
        description="Reverse geocoding endpoint",
    )
    ip_lookup_url: str = Field(
        default="http://ip-api.com/json/",
        description="IP geolocation endpoint used for location fixes",
    )

    # Location settings
    location_authorized: bool = Field(
        default=True,
        description="Whether the user granted access to their location",
    )
    sandboxed: bool = Field(
        default=False,
        description="Use the fixed fallback location instead of real location services",
    )
    fallback_latitude: float = Field(default=-37.8136, ge=-90, le=90)
    fallback_longitude: float = Field(default=144.9631, ge=-180, le=180)
    fallback_place_name: str = Field(default="Melbourne")

    # Server settings
    app_host: str = Field(default="0.0.0.0", description="Server bind host")
    app_port: int = Field(default=8080, description="Server bind port")

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )

    @field_validator("api_key")
    @classmethod
    def _api_key_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("API_KEY must not be empty")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


def describe_configuration_error(error: ValidationError) -> str:
    """Build a startup diagnostic naming the offending settings."""
    problems = []
    for item in error.errors():
        name = ".".join(str(part) for part in item["loc"]).upper() or "SETTINGS"
        problems.append(f"{name}: {item['msg']}")
    hint = ""
    if any(item["loc"] and item["loc"][0] == "api_key" for item in error.errors()):
        hint = " Set API_KEY in the environment or in a .env file."
    return "Invalid configuration: " + "; ".join(problems) + "." + hint
