"""Route matching middleware.

Matches the request against the router and:
- answers ``405 Method Not Allowed`` with an ``Allow`` header when only the
  method disagrees
- stores the RouteMatch on the request context
- copies every extracted path parameter into the context attributes
"""

import logging
from typing import Iterable, List, Optional

from aiohttp import web

from routekit.core.config import RoutekitConfig
from routekit.core.middleware import Middleware, MiddlewareHandler, RequestContext
from routekit.core.routing import Router

logger = logging.getLogger(__name__)


class RouteMatchMiddleware(Middleware):
    """Middleware resolving the route of each request."""

    def __init__(
        self,
        config: RoutekitConfig,
        router: Router,
        allowed_methods: Optional[Iterable[str]] = None,
    ):
        """Initialize the middleware.

        Args:
            config: Routekit configuration
            router: Router holding the route table
            allowed_methods: Methods never answered with 405 and always listed
                in the Allow header. Defaults to the configured
                ``always_allowed_methods``.
        """
        super().__init__(config)
        self.router = router
        if allowed_methods is None:
            allowed_methods = config.router.always_allowed_methods
        self.allowed_methods: List[str] = [
            method.upper() for method in allowed_methods if isinstance(method, str)
        ]

    async def process(
        self, request: web.Request, context: RequestContext, next_handler: MiddlewareHandler
    ) -> web.StreamResponse:
        route_match = self.router.match(
            context.path,
            context.method,
            check_allowed_methods=self.config.router.check_allowed_methods,
        )

        if route_match is None:
            context.dispatch_outcome = "not_found"
            return await next_handler(request, context)

        route = route_match.route
        if not self.is_allowed_method(context.method) and not route.is_allowed_method(
            context.method
        ):
            context.dispatch_outcome = "method_not_allowed"
            context.route_match = route_match
            logger.debug(
                f"Method {context.method} not allowed for {context.path}",
                extra={"route_name": route.name, "allowed": list(route.methods)},
            )
            return web.Response(
                status=405, headers={"Allow": self.allow_header(route.methods)}
            )

        context.route_match = route_match
        for parameter in route_match.parameters:
            context.attributes[parameter.name] = parameter.value

        return await next_handler(request, context)

    def is_allowed_method(self, method: str) -> bool:
        """Check whether a method is always allowed by this middleware."""
        return method.upper() in self.allowed_methods

    def allow_header(self, route_methods: Iterable[str]) -> str:
        """Build the Allow header value.

        Args:
            route_methods: Methods declared by the matched route

        Returns:
            Comma separated, de-duplicated method list
        """
        methods: List[str] = []
        for method in [*route_methods, *self.allowed_methods]:
            if method and method not in methods:
                methods.append(method)
        return ", ".join(methods)
