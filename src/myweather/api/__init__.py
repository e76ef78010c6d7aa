"""HTTP surface exposing the published weather state."""
