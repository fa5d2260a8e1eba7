"""Unit tests for the routing engine."""

import pytest

from routekit.core.collection import RouteCollection
from routekit.core.config import ResourceDefinition, RouteDefinition, RouterConfig, RoutekitConfig
from routekit.core.exceptions import (
    DuplicateRouteNameError,
    InvalidRouteParameterError,
    RouteNotFoundError,
)
from routekit.core.route import Route
from routekit.core.routing import RouteGroup, Router, create_router


class TestRouterRegistration:
    """Tests for route registration helpers."""

    def test_constructor(self) -> None:
        router = Router()
        assert isinstance(router.routes, RouteCollection)
        assert router.base_path == "/"

        collection = RouteCollection()
        router = Router(collection)
        assert router.routes is collection

    def test_base_path(self) -> None:
        router = Router()
        assert router.set_base_path("/foo") is router
        assert router.base_path == "/foo"

    def test_add(self) -> None:
        router = Router()
        route = router.add("/foo", "handler", ["GET"], "name")

        assert router.routes.all() == [route]
        assert route.pattern == "/foo"
        assert route.handler == "handler"
        assert route.name == "name"

        router.add("/bar", "handler", ["GET"])
        assert len(router.routes.all()) == 2

        with pytest.raises(RouteNotFoundError):
            router.routes.get("not_found")

    def test_add_duplicate_name(self) -> None:
        router = Router()
        router.add("/foo", "handler", ["GET"], "name")

        with pytest.raises(DuplicateRouteNameError):
            router.add("/bar", "handler", ["GET"], "name")

    @pytest.mark.parametrize(
        "helper,expected_methods",
        [
            ("get", ("GET",)),
            ("post", ("POST",)),
            ("put", ("PUT",)),
            ("delete", ("DELETE",)),
            ("patch", ("PATCH",)),
            ("head", ("HEAD",)),
            ("options", ("OPTIONS",)),
            ("any", ()),
        ],
    )
    def test_method_helpers(self, helper, expected_methods) -> None:
        router = Router()
        route = getattr(router, helper)("/foo", "handler", "name")

        assert router.routes.get("name") is route
        assert route.pattern == "/foo"
        assert route.handler == "handler"
        assert route.methods == expected_methods

    def test_form(self) -> None:
        router = Router()
        router.form("/foo", "handler", "name")

        route = router.routes.get("name")
        assert route.pattern == "/foo"
        assert set(route.methods) == {"GET", "POST"}

    def test_helpers_accept_attributes(self) -> None:
        router = Router()
        route = router.post("/foo", "handler", "name", {"csrf": True})
        assert route.get_attribute("csrf") is True


class TestRouteGroups:
    """Tests for route groups."""

    def test_group(self) -> None:
        router = Router()
        router.group("/foo", lambda group: group.add("/bar", "handler", ["GET"], "name"))

        assert len(router.routes.all()) == 1
        assert router.routes.get("name").pattern == "/foo/bar"

    def test_nested_groups_concatenate_prefixes(self) -> None:
        router = Router()
        router.group(
            "/a",
            lambda a: a.group("/b", lambda b: b.add("/c", "handler", [], "abc")),
        )

        assert router.routes.get("abc").pattern == "/a/b/c"

    def test_group_prefix_does_not_leak(self) -> None:
        """Test that registrations after a group are not prefixed."""
        router = Router()
        router.group("/admin", lambda group: group.get("/users", "handler", "admin_users"))
        router.get("/users", "handler", "users")

        assert router.routes.get("admin_users").pattern == "/admin/users"
        assert router.routes.get("users").pattern == "/users"
        assert router.prefix == ""

    def test_group_is_returned(self) -> None:
        router = Router()
        group = router.group("/api", lambda group: None)

        assert isinstance(group, RouteGroup)
        assert group.prefix == "/api"

    def test_group_can_be_used_after_callback(self) -> None:
        router = Router()
        group = router.group("/api", lambda group: None)
        group.get("/late", "handler", "late")

        assert router.routes.get("late").pattern == "/api/late"


class TestResource:
    """Tests for resource registration."""

    def test_resource(self) -> None:
        router = Router()
        router.resource("/user", "handler", "")

        assert len(router.routes.all()) == 5
        for suffix in ("list", "detail", "create", "update", "delete"):
            assert router.routes.has(f"user_{suffix}")

        expected = {
            "user_list": ("/user", "handler@index", ("GET",)),
            "user_detail": ("/user/detail/{id}", "handler@detail", ("GET",)),
            "user_create": ("/user/create", "handler@create", ("GET", "POST")),
            "user_update": ("/user/update/{id}", "handler@update", ("GET", "POST")),
            "user_delete": ("/user/delete/{id}", "handler@delete", ("GET",)),
        }
        for name, (pattern, handler, methods) in expected.items():
            route = router.routes.get(name)
            assert route.pattern == pattern
            assert route.handler == handler
            assert route.methods == methods
            assert route.get_attribute("permission") == name

        for name in ("user_list", "user_detail", "user_create", "user_update"):
            assert router.routes.get(name).get_attribute("csrf") is None
        assert router.routes.get("user_delete").get_attribute("csrf") is True

    def test_resource_with_name(self) -> None:
        router = Router()
        router.resource("/users", "users", "member")

        assert router.routes.has("member_list")
        assert router.routes.get("member_detail").pattern == "/users/detail/{id}"

    def test_resource_name_from_nested_pattern(self) -> None:
        router = Router()
        router.resource("/admin/user", "handler")

        assert router.routes.has("admin_user_list")

    def test_resource_without_permission_attribute(self) -> None:
        router = Router()
        router.resource("/user", "handler", use_permission_attribute=False)

        assert not router.routes.get("user_list").has_attribute("permission")
        assert router.routes.get("user_delete").get_attribute("csrf") is True

    def test_resource_inside_group(self) -> None:
        router = Router()
        router.group("/admin", lambda group: group.resource("/user", "handler"))

        assert router.routes.get("user_list").pattern == "/admin/user"
        assert router.routes.get("user_update").pattern == "/admin/user/update/{id}"

    def test_resource_requires_string_handler(self) -> None:
        with pytest.raises(TypeError):
            Router().resource("/user", lambda request, context: None)


class TestRouterMatch:
    """Tests for Router.match."""

    @pytest.mark.parametrize(
        "pattern,method,path,methods,check,matched",
        [
            ("/foo", "GET", "/foo", ["GET", "POST"], True, True),
            ("/foo/{name}/{id:i}", "GET", "/foo/bar/12", ["GET", "POST"], True, True),
            ("/foo", "GET", "/foobar", ["GET", "POST"], True, False),
            ("/foo", "PUT", "/foo", ["GET", "POST"], True, False),
            ("/foo", "PUT", "/foo", ["GET", "POST"], False, True),
            ("/foo", "DELETE", "/foo", [], True, True),
        ],
    )
    def test_match(self, pattern, method, path, methods, check, matched) -> None:
        route = Route(pattern, "handler", "name", methods)
        router = Router(RouteCollection([route]))

        route_match = router.match(path, method, check)

        if matched:
            assert route_match is not None
            assert route_match.route is route
        else:
            assert route_match is None

    def test_path_params(self) -> None:
        router = Router()
        router.get("/users/{user_id}/posts/{post_id}", "handler")

        route_match = router.match("/users/123/posts/456", "GET")

        assert route_match.path_params == {"user_id": "123", "post_id": "456"}

    def test_first_match_wins(self) -> None:
        """Test that routes are tried in registration order."""
        router = Router()
        generic = router.get("/api/{resource}", "generic")
        router.get("/api/users", "specific")

        route_match = router.match("/api/users", "GET")

        assert route_match.route is generic

    def test_first_method_agreeing_route_wins(self) -> None:
        router = Router()
        router.post("/api/users", "create")
        listing = router.get("/api/users", "list")
        router.any("/api/{resource}", "fallback")

        assert router.match("/api/users", "GET").route is listing

    def test_method_fallback_is_first_mismatch(self) -> None:
        router = Router()
        first = router.post("/foo", "first")
        router.put("/foo", "second")

        assert router.match("/foo", "GET") is None
        assert router.match("/foo", "GET", check_allowed_methods=False).route is first

    def test_method_agreeing_route_beats_fallback(self) -> None:
        router = Router()
        router.post("/foo", "post")
        get_route = router.get("/foo", "get")

        assert router.match("/foo", "GET", check_allowed_methods=False).route is get_route

    def test_method_case_insensitive(self) -> None:
        router = Router()
        router.get("/api/users", "handler")

        assert router.match("/api/users", "get") is not None
        assert router.match("/api/users", "Get") is not None

    def test_no_route_match(self) -> None:
        router = Router()
        router.get("/api/users", "handler")

        assert router.match("/api/unknown", "GET") is None
        assert router.match("/api/unknown", "GET", check_allowed_methods=False) is None

    def test_base_path(self) -> None:
        router = Router(base_path="/app")
        router.get("/users/{id}", "handler")

        route_match = router.match("/app/users/7", "GET")
        assert route_match.path_params == {"id": "7"}

    def test_unnamed_routes_are_matched(self) -> None:
        router = Router()
        route = router.get("/foo", "handler")

        assert router.match("/foo", "GET").route is route


class TestRouterPath:
    """Tests for name-based URL generation."""

    @pytest.mark.parametrize(
        "pattern,name,parameters,expected",
        [
            ("/foo", "myname", {}, "/foo"),
            ("/foo/{id}", "name", {"id": 15}, "/foo/15"),
            ("/foo/{id}/{name}", "baz", {"id": 60, "name": "foobar"}, "/foo/60/foobar"),
        ],
    )
    def test_path(self, pattern, name, parameters, expected) -> None:
        router = Router(RouteCollection([Route(pattern, "handler", name)]))
        assert router.path(name, parameters) == expected

    def test_missing_parameter(self) -> None:
        router = Router(RouteCollection([Route("/foo/{name}", "handler", "foobar")]))

        with pytest.raises(InvalidRouteParameterError):
            router.path("foobar", {})

    def test_unknown_route(self) -> None:
        router = Router()

        with pytest.raises(RouteNotFoundError):
            router.path("notfound_route_name", {})
        with pytest.raises(RouteNotFoundError):
            router.get_uri("notfound_route_name")

    def test_base_path_is_prepended(self) -> None:
        router = Router(base_path="/app")
        router.get("/users/{id:i}", "handler", "user")

        assert router.path("user", {"id": 3}) == "/app/users/3"
        assert str(router.get_uri("user", {"id": 3})) == "/app/users/3"

    def test_trailing_slash_base_path_is_normalized(self) -> None:
        router = Router(base_path="/app/")
        router.get("/foo/{id}", "handler", "foo")

        assert router.base_path == "/app"
        assert router.set_base_path("/").base_path == "/"

        router.set_base_path("/app/")
        path = router.path("foo", {"id": "1"})

        assert path == "/app/foo/1"
        assert router.match(path, "GET").path_params == {"id": "1"}

    def test_round_trip_through_router(self) -> None:
        router = Router(base_path="/app")
        router.get("/users/{id:i}/{slug:al}", "handler", "user")

        path = router.path("user", {"id": "9", "slug": "jane.doe"})

        assert router.match(path, "GET").path_params == {"id": "9", "slug": "jane.doe"}


class TestRouterFromConfig:
    """Tests for building routers from configuration."""

    def test_from_config(self) -> None:
        config = RoutekitConfig(
            router=RouterConfig(base_path="/app"),
            routes=[
                RouteDefinition(
                    pattern="/health", handler="health", methods=["GET"], name="health"
                ),
                RouteDefinition(pattern="/echo/{msg}", handler="echo"),
            ],
            resources=[ResourceDefinition(pattern="/user", handler="user")],
        )

        router = create_router(config)

        assert router.base_path == "/app"
        assert len(router.routes.all()) == 7
        assert router.routes.get("health").methods == ("GET",)
        assert router.routes.all()[1].methods == ()
        assert router.routes.get("user_delete").get_attribute("csrf") is True
        assert router.match("/app/echo/hi", "POST").path_params == {"msg": "hi"}
