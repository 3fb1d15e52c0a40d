"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

Everything between raw bytes and handler functions:

    request.py       bytes → HTTPRequest      (RequestParser)
    response.py      HTTPResponse → bytes     (ResponseBuilder, helpers)
    router.py        HTTPRequest → handler    (Router)
    status_codes.py  HTTPStatus enum with reason phrases

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    not_found,      # 404 {"error": "Not Found"}
    error_response, # any status, {"error": message}
    format_http_date,
)
from .router import Router, Route, Handler
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "not_found",
    "error_response",
    "format_http_date",

    # Routing
    "Router",
    "Route",
    "Handler",

    # Status codes
    "HTTPStatus",
]
