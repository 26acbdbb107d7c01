"""Current-location access for search and optimize flows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from .errors import NoLocationError

if TYPE_CHECKING:
    from .routing.models import Coordinate


class LocationProvider(Protocol):
    def current_location(self) -> Optional[Coordinate]:
        """Latest fix, or ``None`` when no fix is available."""
        ...


class StaticLocationProvider:
    """Location provider fed explicitly by the caller (e.g. from a request payload)."""

    def __init__(self, location: Optional[Coordinate] = None):
        self._location = location

    def update(self, location: Optional[Coordinate]) -> None:
        self._location = location

    def current_location(self) -> Optional[Coordinate]:
        return self._location


def require_location(provider: Optional[LocationProvider]) -> Coordinate:
    """
    Return the current fix or reject the request.

    Raises:
        NoLocationError: If there is no provider or it has no fix
    """
    location = provider.current_location() if provider is not None else None
    if location is None:
        raise NoLocationError("Current location is not available")
    return location
