"""Route definition, matching and URL building.

A Route is built once at registration time. Its pattern is compiled in the
constructor; ``match`` only runs the compiled expression and returns a new
RouteMatch, so a Route holds no per-request state.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote

from yarl import URL

from routekit.core.exceptions import InvalidRouteMethodError, InvalidRouteParameterError
from routekit.core.parameters import Parameter, ParameterCollection
from routekit.core.pattern import compile_pattern, expand_shortcuts, scan_placeholders, substitute


# A handler is either a named action resolved by the dispatch layer or a callable.
Handler = Union[str, Callable[..., Any]]


class Route:
    """A URL pattern bound to a handler, methods, a name and attributes."""

    def __init__(
        self,
        pattern: str,
        handler: Handler,
        name: Optional[str] = None,
        methods: Iterable[Any] = (),
        attributes: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the route.

        Args:
            pattern: Route pattern (e.g., /users/{id:i})
            handler: Named action or callable
            name: Route name, empty or None for an unnamed route
            methods: Allowed HTTP methods, empty to allow every method
            attributes: Free-form metadata used by middleware

        Raises:
            InvalidRouteMethodError: If a method is not a string
            ValueError: If the pattern does not compile
        """
        self.pattern = pattern
        self.handler = handler
        self.name = name or ""
        self.attributes: Dict[str, Any] = dict(attributes or {})

        normalized = []
        for method in methods:
            if not isinstance(method, str):
                raise InvalidRouteMethodError(
                    f"Invalid request method [{method!r}], must be a string"
                )
            normalized.append(method.upper())
        self.methods: Tuple[str, ...] = tuple(normalized)

        self._compiled = compile_pattern(pattern)

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: Any) -> "Route":
        self.attributes[name] = value
        return self

    def remove_attribute(self, name: str) -> "Route":
        self.attributes.pop(name, None)
        return self

    @property
    def parameters(self) -> ParameterCollection:
        """Parameters declared by the pattern, without values."""
        return ParameterCollection(Parameter(name) for name in self._compiled.parameter_names)

    def is_allowed_method(self, method: str) -> bool:
        """Check whether the route accepts an HTTP method.

        Args:
            method: HTTP method, any case

        Returns:
            True if the method set is empty or contains the method
        """
        return not self.methods or method.upper() in self.methods

    def match(self, path: str, base_path: str = "/") -> Optional["RouteMatch"]:
        """Match a request path against this route.

        Args:
            path: Raw, possibly percent-encoded, request path
            base_path: Application mount point stripped from the path

        Returns:
            RouteMatch with the extracted parameters, or None
        """
        prefix = base_path.rstrip("/")
        if prefix and path.startswith(prefix):
            path = path[len(prefix) :]

        values = self._compiled.match(unquote(path))
        if values is None:
            return None

        parameters = ParameterCollection()
        for name, value in zip(self._compiled.parameter_names, values):
            parameters.add(Parameter(name, value))

        return RouteMatch(route=self, parameters=parameters)

    def get_uri(self, parameters: Optional[Mapping[str, Any]] = None, base_path: str = "/") -> URL:
        """Build a URI from this route's pattern.

        Args:
            parameters: Values keyed by placeholder name
            base_path: Application mount point prepended to the path

        Returns:
            The generated URI

        Raises:
            InvalidRouteParameterError: If a value is missing or does not
                satisfy its placeholder's subpattern
        """
        parameters = parameters or {}
        uri = expand_shortcuts(base_path.rstrip("/") + self.pattern)
        placeholders = scan_placeholders(uri)

        values = []
        for placeholder in placeholders:
            value = parameters.get(placeholder.name)
            if value is None or not re.fullmatch(f"(?:{placeholder.regex})", str(value)):
                raise InvalidRouteParameterError(placeholder.name)
            # match() unquotes the path, so every value is stored percent-encoded
            values.append(quote(str(value), safe=""))

        return URL(substitute(uri, placeholders, values), encoded=True)

    def path(self, parameters: Optional[Mapping[str, Any]] = None, base_path: str = "/") -> str:
        """Build the URL path for this route (see get_uri)."""
        return self.get_uri(parameters, base_path).raw_path

    def __repr__(self) -> str:
        return (
            f"Route(pattern={self.pattern!r}, name={self.name!r}, "
            f"methods={list(self.methods)!r})"
        )


@dataclass(frozen=True)
class RouteMatch:
    """Result of a successful route match.

    Each match owns its ParameterCollection; nothing is shared with the
    Route or with other matches.
    """

    route: Route
    parameters: ParameterCollection = field(default_factory=ParameterCollection)

    @property
    def path_params(self) -> Dict[str, Optional[str]]:
        """Extracted parameter values keyed by name."""
        return self.parameters.to_dict()

    @property
    def handler(self) -> Handler:
        return self.route.handler
