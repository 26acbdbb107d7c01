"""
Exception hierarchy shared by the planning engine and its adapters.

Three families matter to callers:

- ``ProviderError``: a directions or search provider failed. Recoverable;
  the engine degrades the result instead of aborting.
- ``PreconditionError``: the request was rejected before any external call
  (too few waypoints, empty route, no location fix).
- ``PersistenceError``: the route repository could not read or write.
  In-memory state is left unchanged when this is raised.
"""


class TravelogicError(Exception):
    """Base class for all errors raised by travelogic."""


class ProviderError(TravelogicError):
    """An external provider call failed or returned nothing usable."""


class DirectionsError(ProviderError):
    """A directions request could not be resolved into a segment."""


class NoRouteFoundError(DirectionsError):
    """The directions provider answered but returned no route."""


class SearchError(ProviderError):
    """A place search request failed."""


class PreconditionError(TravelogicError):
    """An operation was called in a state where it cannot run."""


class EmptyRouteError(PreconditionError):
    """Persisting a route with no waypoints."""


class NoLocationError(PreconditionError):
    """No current location fix is available."""


class PersistenceError(TravelogicError):
    """The route repository failed to read or write."""


class RouteNotFoundError(PersistenceError):
    """The requested route does not exist in the repository."""


class StaleAggregateError(TravelogicError):
    """A saved route's totals do not match its waypoints."""
