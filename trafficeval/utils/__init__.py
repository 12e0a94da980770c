"""Small self-contained helpers used across trafficeval."""
