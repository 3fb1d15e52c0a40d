"""
=============================================================================
MIDDLEWARE BASE CLASSES
=============================================================================

Middleware wraps the router like layers of an onion:

    request ──► Logging ──► ... ──► Router.handle ──► handler
    response ◄── Logging ◄── ... ◄──────────────────────┘

Each layer receives the request and `next`, the rest of the chain. It may
inspect the request, call next(request), and adjust the response on the way
out. First added = outermost.

=============================================================================
"""

from abc import ABC, abstractmethod
from functools import partial
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

# The next middleware or the final handler
NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class Timing(Middleware):
            def __call__(self, request, next):
                start = time.monotonic()
                response = next(request)       # continue the chain
                response.set_header("X-Elapsed", f"{time.monotonic() - start:.3f}")
                return response
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Process the request; call next(request) unless short-circuiting."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append middleware (inner to everything added before it)."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Fold the middleware around `handler`, innermost first, so that
        [outer, inner] behaves like outer(inner(handler)).
        """
        chain = handler
        for middleware in reversed(self._middleware):
            chain = partial(_call_layer, middleware, chain)
        return chain

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


def _call_layer(middleware: Middleware, next_handler: NextHandler, request: HTTPRequest) -> HTTPResponse:
    return middleware(request, next_handler)
