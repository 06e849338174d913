"""Route group exports."""

from . import assignments, health, routes

__all__ = ["assignments", "routes", "health"]
