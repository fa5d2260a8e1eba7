"""Route table keeping registration order and name lookups."""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from routekit.core.exceptions import DuplicateRouteNameError, RouteNotFoundError
from routekit.core.route import Route

logger = logging.getLogger(__name__)


class RouteCollection:
    """Ordered list of routes plus a unique name to route mapping.

    Routes with an empty name are kept in the ordered list only; they can be
    matched but never looked up, removed or replaced by name.
    """

    def __init__(self, routes: Optional[Iterable[Route]] = None):
        """Initialize the collection.

        Args:
            routes: Optional routes to add in order

        Raises:
            TypeError: If an item is not a Route
            DuplicateRouteNameError: If two routes share a name
        """
        self._routes: List[Route] = []
        self._named: Dict[str, Route] = {}

        for route in routes or ():
            if not isinstance(route, Route):
                raise TypeError(f"Route must be an instance of [{Route.__name__}]")
            self.add(route)

    def add(self, route: Route) -> "RouteCollection":
        """Add a route.

        The route is appended to the ordered list before the name check, so a
        rejected duplicate still takes part in matching.

        Args:
            route: Route to add

        Returns:
            This collection

        Raises:
            DuplicateRouteNameError: If the route's name is already registered
        """
        self._routes.append(route)

        if route.name:
            if route.name in self._named:
                raise DuplicateRouteNameError(f"Route [{route.name}] already added")
            self._named[route.name] = route

        logger.debug(
            f"Route registered: {route.pattern}",
            extra={"route_name": route.name, "methods": list(route.methods)},
        )
        return self

    def get(self, name: str) -> Route:
        """Get a route by name.

        Raises:
            RouteNotFoundError: If no route has this name
        """
        if name not in self._named:
            raise RouteNotFoundError(f"Route [{name}] not found")
        return self._named[name]

    def has(self, name: str) -> bool:
        return name in self._named

    def remove(self, name: str) -> Route:
        """Remove a route from name lookups and return it.

        Raises:
            RouteNotFoundError: If no route has this name
        """
        if name not in self._named:
            raise RouteNotFoundError(f"Route [{name}] not found")
        return self._named.pop(name)

    def all(self) -> List[Route]:
        """Return every route, named or not, in registration order."""
        return list(self._routes)

    def clear(self) -> None:
        self._routes.clear()
        self._named.clear()

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __contains__(self, name: object) -> bool:
        return name in self._named
