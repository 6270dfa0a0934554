"""Route group exports."""

from . import health, items, routes, schedule

__all__ = ["health", "items", "routes", "schedule"]
