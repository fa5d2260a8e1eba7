"""Dispatch middleware.

Resolves the matched route's handler and invokes it. Handlers are either
callables or names looked up in an action registry (``"user@index"``).
"""

import inspect
from typing import Any, Callable, Mapping, Optional

from aiohttp import web

from routekit.core.config import RoutekitConfig
from routekit.core.middleware import (
    Middleware,
    MiddlewareHandler,
    RequestContext,
    error_response,
)
from routekit.core.route import Handler

Action = Callable[[web.Request, RequestContext], Any]


class DispatchMiddleware(Middleware):
    """Terminal middleware invoking the matched route's handler."""

    def __init__(self, config: RoutekitConfig, actions: Optional[Mapping[str, Action]] = None):
        """Initialize the middleware.

        Args:
            config: Routekit configuration
            actions: Named actions available to string handlers
        """
        super().__init__(config)
        self.actions = dict(actions or {})

    async def process(
        self, request: web.Request, context: RequestContext, next_handler: MiddlewareHandler
    ) -> web.StreamResponse:
        if context.route_match is None:
            return error_response(
                404,
                "not_found",
                "The requested resource was not found",
                context.correlation_id,
            )

        action = self.resolve(context.route_match.handler)
        result = action(request, context)
        if inspect.isawaitable(result):
            result = await result

        return self._to_response(result)

    def resolve(self, handler: Handler) -> Action:
        """Turn a route handler into a callable action.

        Args:
            handler: Callable or named action

        Returns:
            Callable action

        Raises:
            RuntimeError: If a named action is not registered
        """
        if callable(handler):
            return handler

        action = self.actions.get(handler)
        if action is None:
            raise RuntimeError(f"No action registered for handler [{handler}]")
        return action

    @staticmethod
    def _to_response(result: Any) -> web.StreamResponse:
        if isinstance(result, web.StreamResponse):
            return result
        if isinstance(result, (dict, list)):
            return web.json_response(result)
        if result is None:
            return web.Response(status=204)
        return web.Response(text=str(result))
