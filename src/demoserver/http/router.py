"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) pairs to handler functions.

    GET /         → index
    GET /health   → health
    GET /info     → info
    GET /metrics  → metrics
    anything else → 404 {"error": "Not Found"}

Paths are matched exactly: no trailing-slash folding, no parameters. A
known path requested with the wrong method is a miss like any other and
gets the same 404 body, not a 405.

Registration uses Flask-style decorators:

    router = Router()

    @router.get("/health")
    def health(request):
        return ResponseBuilder().json({"status": "healthy"}).build()

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Optional, Dict, List
import logging

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)

# All route handlers take a request and return a response
Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A registered route: exact path + method bound to a handler."""

    path: str
    method: str
    handler: Handler
    name: Optional[str] = None


class Router:
    """
    Exact-match HTTP router.

    Routes are stored in a dict keyed by (METHOD, path), so lookup cost does
    not grow with the number of routes. Registering the same pair twice
    replaces the earlier handler.
    """

    def __init__(self):
        self._routes: Dict[tuple[str, str], Route] = {}

    @property
    def routes(self) -> List[Route]:
        """Registered routes in registration order."""
        return list(self._routes.values())

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: str = "GET",
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a handler for an exact (method, path) pair.

        Raises:
            ValueError: If path does not start with "/".
        """
        if not path.startswith("/"):
            raise ValueError(f"Route path must start with '/': {path!r}")

        route = Route(
            path=path,
            method=method.upper(),
            handler=handler,
            name=name or handler.__name__,
        )
        self._routes[(route.method, route.path)] = route
        return route

    def match(self, method: str, path: str) -> Optional[Route]:
        """Find the route for this method and path, or None."""
        return self._routes.get((method.upper(), path))

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch a request to its handler, or answer 404."""
        route = self.match(request.method, request.path)
        if route is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return not_found()
        return route.handler(request)

    # =========================================================================
    # DECORATOR-STYLE REGISTRATION
    # =========================================================================

    def route(
        self,
        path: str,
        method: str = "GET",
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """
        Decorator for registering routes.

            @router.route("/health", method="GET")
            def health(request):
                ...
        """
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route(path, "GET", name)

    def describe(self) -> List[str]:
        """One "METHOD path -> name" line per route, for startup logs."""
        return [
            f"{route.method:<6} {route.path:<12} -> {route.name}"
            for route in self._routes.values()
        ]

    def __len__(self) -> int:
        return len(self._routes)
