"""Application integration module.

This module integrates all components:
- Router (built from configuration unless provided)
- Middleware chain
- Structured logging
- Metrics
- aiohttp Application
"""

import logging
from typing import Any, Mapping, Optional

from aiohttp import web

from routekit.core.config import RoutekitConfig
from routekit.core.exceptions import RouteError
from routekit.core.handler import create_handler_middleware
from routekit.core.logging import RoutekitLogger
from routekit.core.metrics import RoutekitMetrics
from routekit.core.middleware import (
    AccessLogMiddleware,
    ErrorHandlingMiddleware,
    Middleware,
    MiddlewareChain,
)
from routekit.core.routing import Router
from routekit.middleware.dispatch import Action, DispatchMiddleware
from routekit.middleware.route_match import RouteMatchMiddleware

logger = logging.getLogger(__name__)


class RoutekitApp:
    """Wires the router and the middleware chain into an aiohttp application."""

    def __init__(
        self,
        config: RoutekitConfig,
        router: Optional[Router] = None,
        actions: Optional[Mapping[str, Action]] = None,
    ):
        """Initialize the application.

        Args:
            config: Routekit configuration
            router: Router to serve, built from configuration if None
            actions: Named actions available to string handlers
        """
        self.config = config
        self.structured_logger = RoutekitLogger(config.logging)
        self.metrics = RoutekitMetrics(config.metrics) if config.metrics.enabled else None
        self.router = router if router is not None else Router.from_config(config)
        self.actions = dict(actions or {})
        self.middleware_chain = self._create_middleware_chain()

        if self.metrics:
            self.metrics.set_routes_registered(len(self.router.routes))

    def _create_middleware_chain(self) -> MiddlewareChain:
        """Create the middleware chain.

        Middleware execution order:
        1. Access logging (sees the final response of every request)
        2. Error handling
        3. Route matching (404 pass-through, 405 short-circuit)
        4. Dispatch to the route handler

        Returns:
            MiddlewareChain instance
        """
        middlewares: list[Middleware] = [
            AccessLogMiddleware(self.config),
            ErrorHandlingMiddleware(self.config),
            RouteMatchMiddleware(self.config, self.router),
            DispatchMiddleware(self.config, self.actions),
        ]
        return MiddlewareChain(middlewares)

    def create_app(self) -> web.Application:
        """Create and configure the aiohttp application.

        Returns:
            Configured aiohttp Application instance
        """
        app = web.Application(
            middlewares=[create_handler_middleware(self.middleware_chain, self.config)]
        )

        # Store references for access in handlers and middleware
        app["config"] = self.config
        app["router"] = self.router
        app["logger"] = self.structured_logger
        app["metrics"] = self.metrics

        if self.metrics:
            app.router.add_get(self.config.metrics.endpoint, self._metrics_handler)

        logger.info(
            "Application created",
            extra={
                "route_count": len(self.router.routes),
                "base_path": self.router.base_path,
                "environment": self.config.environment,
            },
        )
        return app

    async def _metrics_handler(self, request: web.Request) -> web.Response:
        assert self.metrics is not None
        return web.Response(
            body=self.metrics.export_metrics(),
            headers={"Content-Type": "text/plain; version=0.0.4; charset=utf-8"},
        )


def url_for(request: web.Request, name: str, **parameters: Any) -> str:
    """Build the path of a named route from inside a request handler.

    Failures are logged as structured events and re-raised.

    Args:
        request: Current aiohttp request
        name: Route name
        **parameters: Placeholder values

    Returns:
        Generated URL path

    Raises:
        RouteNotFoundError: If no route has this name
        InvalidRouteParameterError: If a parameter is missing or invalid
    """
    router: Router = request.app["router"]
    try:
        return router.path(name, parameters)
    except RouteError as e:
        structured_logger = request.app.get("logger")
        if structured_logger:
            structured_logger.log_url_generation_failure(name, str(e))
        raise


def create_app(
    config: RoutekitConfig,
    router: Optional[Router] = None,
    actions: Optional[Mapping[str, Action]] = None,
) -> web.Application:
    """Create an aiohttp application (convenience function).

    Args:
        config: Routekit configuration
        router: Optional router, built from configuration if None
        actions: Named actions available to string handlers

    Returns:
        Configured aiohttp Application instance
    """
    return RoutekitApp(config, router, actions).create_app()
