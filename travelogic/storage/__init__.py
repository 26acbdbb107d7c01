"""Persistence adapters for saved routes and places."""

from .repository import (
    InMemoryRouteRepository,
    JsonRouteRepository,
    RouteRepository,
    repository_from_profile,
)

__all__ = [
    "InMemoryRouteRepository",
    "JsonRouteRepository",
    "RouteRepository",
    "repository_from_profile",
]
