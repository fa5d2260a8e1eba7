"""Middleware components for the routing pipeline."""

from routekit.middleware.dispatch import DispatchMiddleware
from routekit.middleware.route_match import RouteMatchMiddleware

__all__ = [
    "DispatchMiddleware",
    "RouteMatchMiddleware",
]
