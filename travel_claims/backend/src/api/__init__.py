"""Public API routers exposed by the FastAPI application."""

from . import claims, employees, health, roles, travel_limits

__all__ = [
    "claims",
    "employees",
    "health",
    "roles",
    "travel_limits",
]
