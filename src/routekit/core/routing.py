"""Routing engine.

This module implements the router including:
- Route registration helpers (per-method shortcuts, forms, resources)
- Route groups with composable path prefixes
- Request dispatch (first match wins, method-mismatch fallback)
- Name-based URL generation
"""

import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from yarl import URL

from routekit.core.collection import RouteCollection
from routekit.core.config import RoutekitConfig
from routekit.core.exceptions import RouteNotFoundError
from routekit.core.route import Handler, Route, RouteMatch

logger = logging.getLogger(__name__)

Attributes = Optional[Dict[str, Any]]


class RouteRegistrar:
    """Registration API shared by the router and its groups.

    Every pattern registered through a registrar is prefixed with the
    registrar's ``prefix``.
    """

    def __init__(self, routes: RouteCollection, prefix: str = ""):
        self._routes = routes
        self.prefix = prefix

    def group(self, prefix: str, callback: Callable[["RouteGroup"], Any]) -> "RouteGroup":
        """Register routes under a shared path prefix.

        The callback receives a RouteGroup bound to the combined prefix.
        Nested groups concatenate their prefixes.

        Args:
            prefix: Path prefix for the group (e.g., /admin)
            callback: Function registering the group's routes

        Returns:
            The RouteGroup passed to the callback
        """
        group = RouteGroup(self._routes, self.prefix + prefix)
        callback(group)
        return group

    def add(
        self,
        pattern: str,
        handler: Handler,
        methods: Iterable[str],
        name: str = "",
        attributes: Optional[Dict[str, Any]] = None,
    ) -> Route:
        """Register a route.

        Args:
            pattern: Route pattern, relative to the current prefix
            handler: Named action or callable
            methods: Allowed HTTP methods, empty for all
            name: Optional unique route name
            attributes: Optional route attributes

        Returns:
            The created Route

        Raises:
            DuplicateRouteNameError: If the name is already registered
        """
        route = Route(self.prefix + pattern, handler, name, methods, attributes)
        self._routes.add(route)
        return route

    def any(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, [], name, attributes)

    def get(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["GET"], name, attributes)

    def post(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["POST"], name, attributes)

    def put(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["PUT"], name, attributes)

    def patch(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["PATCH"], name, attributes)

    def delete(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["DELETE"], name, attributes)

    def head(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["HEAD"], name, attributes)

    def options(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        return self.add(pattern, handler, ["OPTIONS"], name, attributes)

    def form(
        self, pattern: str, handler: Handler, name: str = "", attributes: Attributes = None
    ) -> Route:
        """Register a route serving a form: GET to display, POST to submit."""
        return self.add(pattern, handler, ["GET", "POST"], name, attributes)

    def resource(
        self,
        pattern: str,
        handler: str,
        name: str = "",
        use_permission_attribute: bool = True,
    ) -> "RouteGroup":
        """Register the conventional list/detail/create/update/delete routes.

        Routes are named ``<name>_list``, ``<name>_detail`` and so on, and
        dispatch to ``<handler>@index``, ``<handler>@detail``... When no name
        is given it is derived from the pattern (``/admin/user`` becomes
        ``admin_user``).

        Args:
            pattern: Base pattern of the resource (e.g., /user)
            handler: Named action prefix
            name: Route name prefix
            use_permission_attribute: Set a ``permission`` attribute holding
                the route name on every route

        Returns:
            The RouteGroup holding the resource routes

        Raises:
            TypeError: If handler is not a string
        """
        if not isinstance(handler, str):
            raise TypeError("Resource handler must be a string naming the action prefix")

        base_name = name or pattern.strip("/").replace("/", "_")

        def register(group: "RouteGroup") -> None:
            for suffix, action, route_name, methods in (
                ("", "index", "list", ["GET"]),
                ("/detail/{id}", "detail", "detail", ["GET"]),
                ("/create", "create", "create", ["GET", "POST"]),
                ("/update/{id}", "update", "update", ["GET", "POST"]),
                ("/delete/{id}", "delete", "delete", ["GET"]),
            ):
                full_name = f"{base_name}_{route_name}"
                attributes: Dict[str, Any] = {}
                if use_permission_attribute:
                    attributes["permission"] = full_name
                if action == "delete":
                    attributes["csrf"] = True
                group.add(suffix, f"{handler}@{action}", methods, full_name, attributes)

        return self.group(pattern, register)


class RouteGroup(RouteRegistrar):
    """Registrar bound to a group prefix; handed to group callbacks."""

    def __repr__(self) -> str:
        return f"RouteGroup(prefix={self.prefix!r})"


class Router(RouteRegistrar):
    """Routes incoming requests to registered routes.

    Responsibilities:
    - Holding the route table and the application base path
    - Matching request paths and methods to routes
    - Generating URLs for named routes
    """

    def __init__(self, routes: Optional[RouteCollection] = None, base_path: str = "/"):
        """Initialize the router.

        Args:
            routes: Route table, a new empty one if None
            base_path: Application mount point (e.g., /app)
        """
        super().__init__(routes if routes is not None else RouteCollection())
        self.base_path = base_path.rstrip("/") or "/"

    @property
    def routes(self) -> RouteCollection:
        return self._routes

    def set_base_path(self, base_path: str) -> "Router":
        self.base_path = base_path.rstrip("/") or "/"
        return self

    def match(
        self, path: str, method: str, check_allowed_methods: bool = True
    ) -> Optional[RouteMatch]:
        """Match a request to a route.

        Routes are tried in registration order; the first route matching both
        path and method wins. The first route matching the path only is kept
        as a fallback.

        Args:
            path: Raw request path
            method: HTTP method
            check_allowed_methods: When False, return the fallback route if no
                route accepts the method, so the caller can answer 405

        Returns:
            RouteMatch if a route is found, None otherwise
        """
        fallback: Optional[RouteMatch] = None

        for route in self._routes:
            route_match = route.match(path, self.base_path)
            if route_match is None:
                continue

            if route.is_allowed_method(method):
                logger.debug(
                    f"Route matched: {route.pattern}",
                    extra={
                        "route_name": route.name,
                        "path": path,
                        "method": method,
                        "params": route_match.path_params,
                    },
                )
                return route_match

            if fallback is None:
                fallback = route_match

        if fallback is not None and not check_allowed_methods:
            logger.debug(
                f"Method {method} not allowed for {path}",
                extra={"path": path, "method": method, "allowed": list(fallback.route.methods)},
            )
            return fallback

        logger.debug(
            f"No route matched for {method} {path}",
            extra={"path": path, "method": method},
        )
        return None

    def get_uri(self, name: str, parameters: Optional[Mapping[str, Any]] = None) -> URL:
        """Build the URI of a named route.

        Args:
            name: Route name
            parameters: Placeholder values keyed by name

        Returns:
            Generated URI, including the base path

        Raises:
            RouteNotFoundError: If no route has this name
            InvalidRouteParameterError: If a parameter is missing or invalid
        """
        if not self._routes.has(name):
            raise RouteNotFoundError(f"Route [{name}] not found")
        return self._routes.get(name).get_uri(parameters, self.base_path)

    def path(self, name: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        """Build the URL path of a named route (see get_uri)."""
        return self.get_uri(name, parameters).raw_path

    @classmethod
    def from_config(cls, config: RoutekitConfig) -> "Router":
        """Create a router holding the routes and resources declared in configuration.

        Args:
            config: Routekit configuration

        Returns:
            Configured Router instance
        """
        router = cls(base_path=config.router.base_path)

        for definition in config.routes:
            router.add(
                definition.pattern,
                definition.handler,
                definition.methods,
                definition.name,
                definition.attributes,
            )

        for resource in config.resources:
            router.resource(resource.pattern, resource.handler, resource.name, resource.permission)

        logger.info(
            f"Initialized router with {len(router.routes)} routes",
            extra={"route_count": len(router.routes), "base_path": router.base_path},
        )
        return router


def create_router(config: RoutekitConfig) -> Router:
    """Create a router instance from configuration (convenience function).

    Args:
        config: Routekit configuration

    Returns:
        Configured Router instance
    """
    return Router.from_config(config)
