"""Exception hierarchy for the routing engine.

Shared by the route table, the router and the aiohttp integration so that
every module raises and catches the same types.
"""


class RouteError(Exception):
    """Base for all routekit errors."""


class DuplicateRouteNameError(RouteError):
    """A second route was registered under an already used name.

    Raised at registration time; usually a fatal configuration error.
    """


class RouteNotFoundError(RouteError, LookupError):
    """No route is registered under the requested name."""


class InvalidRouteMethodError(RouteError, TypeError):
    """A declared HTTP method is not a string."""


class InvalidRouteParameterError(RouteError, ValueError):
    """A URL could not be built because a parameter is missing or invalid."""

    def __init__(self, parameter: str, message: str | None = None):
        self.parameter = parameter
        super().__init__(message or f"Parameter [{parameter}] is not passed or is invalid")
