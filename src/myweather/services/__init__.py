"""Location, weather and icon services."""
