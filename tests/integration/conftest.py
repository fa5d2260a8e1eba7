"""Shared fixtures for integration tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

from routekit.core.app import RoutekitApp, url_for
from routekit.core.config import (
    LoggingConfig,
    ResourceDefinition,
    RouteDefinition,
    RouterConfig,
    RoutekitConfig,
)
from routekit.core.middleware import RequestContext


@pytest.fixture
def actions() -> dict[str, Any]:
    """Named actions referenced by the configured routes."""

    async def hello(request: web.Request, context: RequestContext) -> dict[str, Any]:
        return {"message": "hello"}

    async def show_user(request: web.Request, context: RequestContext) -> dict[str, Any]:
        return {
            "id": context.attributes["id"],
            "route": context.route_match.route.name if context.route_match else None,
            "self": url_for(request, "user", id=context.attributes["id"]),
        }

    def echo(request: web.Request, context: RequestContext) -> str:
        return context.attributes["message"]

    async def explode(request: web.Request, context: RequestContext) -> None:
        raise RuntimeError("handler failure")

    async def broken_link(request: web.Request, context: RequestContext) -> str:
        return url_for(request, "user")

    def post_action(name: str):
        async def action(request: web.Request, context: RequestContext) -> dict[str, Any]:
            return {
                "action": name,
                "params": dict(context.attributes),
                "permission": context.route_match.route.get_attribute("permission")
                if context.route_match
                else None,
            }

        return action

    registry: dict[str, Any] = {
        "hello": hello,
        "users@show": show_user,
        "echo": echo,
        "explode": explode,
        "broken_link": broken_link,
    }
    for suffix in ("index", "detail", "create", "update", "delete"):
        registry[f"posts@{suffix}"] = post_action(suffix)
    return registry


@pytest.fixture
def integration_config() -> RoutekitConfig:
    """Create routekit configuration for integration tests."""
    return RoutekitConfig(
        environment="test",
        router=RouterConfig(base_path="/"),
        routes=[
            RouteDefinition(pattern="/api/hello", handler="hello", methods=["GET"], name="hello"),
            RouteDefinition(
                pattern="/api/users/{id:i}", handler="users@show", methods=["GET"], name="user"
            ),
            RouteDefinition(pattern="/api/echo/{message}", handler="echo", name="echo"),
            RouteDefinition(pattern="/api/explode", handler="explode", methods=["GET"]),
            RouteDefinition(pattern="/api/broken", handler="broken_link", methods=["GET"]),
        ],
        resources=[ResourceDefinition(pattern="/posts", handler="posts")],
        logging=LoggingConfig(level="DEBUG", format="json", output="stderr"),
    )


@pytest.fixture
def routekit_app(integration_config: RoutekitConfig, actions: dict[str, Any]) -> RoutekitApp:
    """Create the routekit application wrapper."""
    return RoutekitApp(integration_config, actions=actions)


@pytest.fixture
async def routekit_client(routekit_app: RoutekitApp) -> AsyncGenerator[TestClient, None]:
    """Create a test client for the routekit application."""
    server = TestServer(routekit_app.create_app())
    client = TestClient(server)
    await client.start_server()
    yield client
    await client.close()
