"""Weather icon code resolution."""

from enum import StrEnum

DEFAULT_ICON_BASE_URL = "https://openweathermap.org/img/wn"


class IconAsset(StrEnum):
    """Bundled icon asset names."""

    CLEAR = "clear"
    PARTLY_CLOUDY = "partly-cloudy"
    RAIN = "rain"
    THUNDERSTORM = "thunderstorm"
    SNOW = "snow"
    CLOUDY = "cloudy"


# Keyed on the two-digit prefix; the d/n suffix does not change the asset
ICON_PREFIXES = {
    "01": IconAsset.CLEAR,
    "02": IconAsset.PARTLY_CLOUDY,
    "03": IconAsset.PARTLY_CLOUDY,
    "04": IconAsset.PARTLY_CLOUDY,
    "09": IconAsset.RAIN,
    "10": IconAsset.RAIN,
    "11": IconAsset.THUNDERSTORM,
    "13": IconAsset.SNOW,
    "50": IconAsset.CLOUDY,
}


def resolve_icon(code: str) -> IconAsset:
    """Map a provider icon code such as ``"10d"`` to a local asset name.

    Unknown codes fall back to ``partly-cloudy``.
    """
    return ICON_PREFIXES.get(code[:2], IconAsset.PARTLY_CLOUDY)


def is_night(code: str) -> bool:
    """Return True for night variants (codes ending in ``n``)."""
    return code.endswith("n")


def remote_icon_url(code: str, base_url: str = DEFAULT_ICON_BASE_URL) -> str:
    """Build the CDN URL for an icon code."""
    return f"{base_url.rstrip('/')}/{code}@2x.png"
