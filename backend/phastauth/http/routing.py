import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, NamedTuple

from .request import ApiRequest
from .response import ResponseSink

logger = logging.getLogger(__name__)

# handler(request, response, *captured)
Handler = Callable[..., None]
# handler(request, response, allowed_method)
MethodNotAllowedHandler = Callable[[ApiRequest, ResponseSink, str], None]

METHODS = ("GET", "POST", "PUT", "DELETE")
PLACEHOLDER = "{id}"
PLACEHOLDER_PATTERN = r"([\w-]+)"


def compile_uri(uri: str) -> re.Pattern:
    """
    Turns a route URI into a full-match pattern; every `{id}` captures one
    path segment of word characters and hyphens.
    """
    return re.compile(PLACEHOLDER_PATTERN.join(re.escape(part) for part in uri.split(PLACEHOLDER)))


def normalize_path(path: str | None) -> str:
    path = path or "/"
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return path


@dataclass(frozen=True)
class Route:
    method: str
    uri: str
    handler: Handler
    pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.method not in METHODS:
            raise ValueError(f"Unsupported method: {self.method}")
        object.__setattr__(self, "pattern", compile_uri(self.uri))

    def match(self, path: str) -> tuple[str, ...] | None:
        found = self.pattern.fullmatch(path)
        if found is None:
            return None
        return found.groups()


class RouteMatch(NamedTuple):
    route: Route
    args: tuple[str, ...]


class Router:
    """
    Immutable, ordered route table with dispatch.

    The first route whose URI matches wins. If its method differs from the
    request's, the method-not-allowed handler answers; later routes with the
    same URI are never consulted.
    """

    def __init__(
        self,
        routes: Iterable[Route],
        not_found: Handler,
        method_not_allowed: MethodNotAllowedHandler,
    ):
        self._routes = tuple(routes)
        self._not_found = not_found
        self._method_not_allowed = method_not_allowed

    @property
    def routes(self) -> tuple[Route, ...]:
        return self._routes

    def match(self, path: str) -> RouteMatch | None:
        path = normalize_path(path)
        for route in self._routes:
            args = route.match(path)
            if args is not None:
                return RouteMatch(route, args)
        return None

    def dispatch(self, request: ApiRequest, response: ResponseSink) -> None:
        found = self.match(request.path)

        if found is None:
            self._not_found(request, response)
            return

        route, args = found
        if route.method != request.method.upper():
            logger.debug("%s %s only allows %s", request.method, request.path, route.method)
            self._method_not_allowed(request, response, route.method)
            return

        route.handler(request, response, *args)


class RouteTable:
    """
    Collects routes at startup. Groups push a URI prefix for the duration of
    their registration callback.
    """

    def __init__(self):
        self._routes: list[Route] = []
        self._prefixes: list[str] = []

    def get(self, uri: str, handler: Handler) -> None:
        self.add("GET", uri, handler)

    def post(self, uri: str, handler: Handler) -> None:
        self.add("POST", uri, handler)

    def put(self, uri: str, handler: Handler) -> None:
        self.add("PUT", uri, handler)

    def delete(self, uri: str, handler: Handler) -> None:
        self.add("DELETE", uri, handler)

    def add(self, method: str, uri: str, handler: Handler) -> None:
        self._routes.append(Route(method, "".join(self._prefixes) + uri, handler))

    def group(self, prefix: str, callback: Callable[["RouteTable"], None]) -> None:
        self._prefixes.append(prefix)
        try:
            callback(self)
        finally:
            self._prefixes.pop()

    def build(self, not_found: Handler, method_not_allowed: MethodNotAllowedHandler) -> Router:
        return Router(self._routes, not_found, method_not_allowed)
