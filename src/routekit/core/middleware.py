"""Middleware framework for routekit.

This module implements the middleware framework including:
- Middleware interface and execution chain
- Request context propagation
- Error handling and access logging middleware
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from aiohttp import web

from routekit.core.config import RoutekitConfig
from routekit.core.route import RouteMatch

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Request context that flows through the middleware chain.

    This context accumulates data as the request flows through middleware:
    - HTTP request data
    - Correlation and timing information
    - The route match and its extracted parameters
    - Custom attributes
    """

    # HTTP Request Data
    method: str
    path: str
    query_params: Dict[str, str]
    headers: Dict[str, str]
    client_ip: str

    # Correlation and Timing
    correlation_id: str
    start_time: float = field(default_factory=time.time)

    # Route Information (populated by route match middleware)
    route_match: Optional[RouteMatch] = None
    dispatch_outcome: Optional[str] = None

    # Route parameters and any other data attached by middleware
    attributes: Dict[str, Any] = field(default_factory=dict)

    def elapsed_ms(self) -> float:
        """Calculate elapsed time since request start in milliseconds."""
        return (time.time() - self.start_time) * 1000


# Type alias for middleware handler functions
MiddlewareHandler = Callable[[web.Request, RequestContext], Awaitable[web.StreamResponse]]


class Middleware(ABC):
    """Abstract base class for middleware components.

    Middleware can:
    - Inspect and modify the request context
    - Short-circuit the request flow by returning a response
    - Execute logic before and after the next middleware in the chain
    """

    def __init__(self, config: RoutekitConfig):
        self.config = config

    @abstractmethod
    async def process(
        self, request: web.Request, context: RequestContext, next_handler: MiddlewareHandler
    ) -> web.StreamResponse:
        """Process the request.

        Args:
            request: aiohttp Request object
            context: Request context
            next_handler: Next middleware handler in the chain

        Returns:
            aiohttp response
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewareChain:
    """Executes middleware in a chain/pipeline pattern.

    Middleware are executed in order, with each middleware having the opportunity
    to call the next handler or short-circuit the chain by returning a response.
    """

    def __init__(self, middlewares: List[Middleware]):
        """Initialize the middleware chain.

        Args:
            middlewares: List of middleware in execution order
        """
        self.middlewares = middlewares
        logger.info(
            f"Middleware chain initialized with {len(middlewares)} middleware",
            extra={"middleware": [m.name for m in middlewares]},
        )

    async def execute(self, request: web.Request, context: RequestContext) -> web.StreamResponse:
        """Execute the middleware chain.

        Args:
            request: aiohttp Request object
            context: Request context

        Returns:
            aiohttp response
        """
        return await self._handler_at(0)(request, context)

    def _handler_at(self, index: int) -> MiddlewareHandler:
        if index >= len(self.middlewares):

            async def end_handler(req: web.Request, ctx: RequestContext) -> web.StreamResponse:
                # End of chain - no middleware produced a response
                return web.json_response(
                    {
                        "error": "internal_error",
                        "message": "End of middleware chain reached without response",
                    },
                    status=500,
                )

            return end_handler

        middleware = self.middlewares[index]

        async def handler(req: web.Request, ctx: RequestContext) -> web.StreamResponse:
            return await middleware.process(req, ctx, self._handler_at(index + 1))

        return handler


class ErrorHandlingMiddleware(Middleware):
    """Middleware for handling errors and exceptions.

    Catches exceptions from downstream middleware and converts them
    to JSON error responses.
    """

    async def process(
        self, request: web.Request, context: RequestContext, next_handler: MiddlewareHandler
    ) -> web.StreamResponse:
        try:
            return await next_handler(request, context)
        except web.HTTPException:
            # HTTP exceptions are already proper responses
            raise
        except Exception as e:
            logger.exception(
                f"Unhandled exception in middleware chain: {e}",
                extra={
                    "correlation_id": context.correlation_id,
                    "path": context.path,
                    "method": context.method,
                },
            )
            context.dispatch_outcome = "error"

            metrics = request.app.get("metrics")
            if metrics:
                metrics.record_error(type(e).__name__)

            return error_response(
                500, "internal_error", "An unexpected error occurred", context.correlation_id
            )


class AccessLogMiddleware(Middleware):
    """Middleware logging every dispatched request and recording dispatch metrics.

    Should be placed right after error handling so that it sees the final
    outcome of every request.
    """

    async def process(
        self, request: web.Request, context: RequestContext, next_handler: MiddlewareHandler
    ) -> web.StreamResponse:
        response = await next_handler(request, context)

        outcome = context.dispatch_outcome or "matched"
        route_name = context.route_match.route.name if context.route_match else None

        structured_logger = request.app.get("logger")
        if structured_logger:
            structured_logger.log_dispatch(
                method=context.method,
                path=context.path,
                outcome=outcome,
                status_code=response.status,
                latency_ms=context.elapsed_ms(),
                route_name=route_name or None,
            )

        metrics = request.app.get("metrics")
        if metrics:
            metrics.record_dispatch(
                method=context.method,
                outcome=outcome,
                duration_seconds=context.elapsed_ms() / 1000,
            )

        return response


def error_response(
    status: int,
    error: str,
    message: str,
    correlation_id: str,
    headers: Optional[Dict[str, str]] = None,
) -> web.Response:
    """Build a JSON error response.

    Args:
        status: HTTP status code
        error: Machine readable error code
        message: Human readable message
        correlation_id: Request correlation ID
        headers: Optional extra response headers

    Returns:
        web.Response object
    """
    return web.json_response(
        {
            "error": error,
            "message": message,
            "correlation_id": correlation_id,
            "timestamp": datetime.now(UTC).isoformat(),
        },
        status=status,
        headers=headers,
    )


def create_request_context(
    request: web.Request, correlation_id_header: str = "X-Request-ID"
) -> RequestContext:
    """Create a request context from an aiohttp request.

    The path is taken undecoded; route matching does its own decoding.

    Args:
        request: aiohttp Request object
        correlation_id_header: Header carrying a client supplied correlation ID

    Returns:
        RequestContext instance
    """
    correlation_id = request.headers.get(correlation_id_header)
    if not correlation_id:
        correlation_id = f"req-{uuid.uuid4().hex[:16]}"

    # Extract client IP (handle proxies)
    client_ip = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if not client_ip:
        client_ip = request.remote or "unknown"

    return RequestContext(
        method=request.method,
        path=request.rel_url.raw_path,
        query_params=dict(request.query),
        headers=dict(request.headers),
        client_ip=client_ip,
        correlation_id=correlation_id,
    )
