"""Weather client for the OpenWeatherMap One Call API."""

__version__ = "0.1.0"
