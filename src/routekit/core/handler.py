"""Request handler for routekit.

This module connects aiohttp to the middleware chain: it builds the request
context, runs the chain and stamps the correlation ID on every response.
"""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from routekit.core.config import RoutekitConfig
from routekit.core.middleware import MiddlewareChain, create_request_context

logger = logging.getLogger(__name__)


class RequestHandler:
    """Main request handler.

    Coordinates:
    - Request context creation
    - Middleware chain execution
    - Correlation ID propagation
    """

    def __init__(self, middleware_chain: MiddlewareChain, config: RoutekitConfig):
        """Initialize the request handler.

        Args:
            middleware_chain: Middleware chain instance
            config: Routekit configuration
        """
        self.middleware_chain = middleware_chain
        self.config = config

    async def handle_request(self, request: web.Request) -> web.StreamResponse:
        """Handle an incoming HTTP request.

        Args:
            request: aiohttp Request object

        Returns:
            aiohttp response
        """
        header = self.config.logging.correlation_id_header
        context = create_request_context(request, header)
        request["context"] = context

        structured_logger = request.app.get("logger")
        if structured_logger:
            structured_logger.set_correlation_id(context.correlation_id)

        try:
            response = await self.middleware_chain.execute(request, context)
        except web.HTTPException as e:
            e.headers[header] = context.correlation_id
            raise
        finally:
            if structured_logger:
                structured_logger.clear_correlation_id()

        if header not in response.headers:
            response.headers[header] = context.correlation_id

        return response


def create_handler_middleware(
    middleware_chain: MiddlewareChain, config: RoutekitConfig
) -> Callable[
    [web.Request, Callable[[web.Request], Awaitable[web.StreamResponse]]],
    Awaitable[web.StreamResponse],
]:
    """Create an aiohttp middleware that routes every request through our chain.

    Args:
        middleware_chain: Middleware chain instance
        config: Routekit configuration

    Returns:
        aiohttp middleware function
    """
    request_handler = RequestHandler(middleware_chain, config)

    @web.middleware
    async def middleware(
        request: web.Request,
        handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
    ) -> web.StreamResponse:
        # Paths registered directly on the aiohttp router (e.g. metrics) bypass the chain
        if request.match_info.route.resource is not None:
            return await handler(request)
        return await request_handler.handle_request(request)

    return middleware
