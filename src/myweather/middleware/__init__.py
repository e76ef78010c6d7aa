"""Request logging and metrics."""
