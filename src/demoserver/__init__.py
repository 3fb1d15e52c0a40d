"""
=============================================================================
DEMOSERVER - Minimal HTTP Demo Service
=============================================================================

A small HTTP/1.1 service for exercising deployment pipelines: health
checks and metrics scraping. Built on raw sockets, with prometheus_client
rendering the metrics exposition.

=============================================================================
ENDPOINTS
=============================================================================

    GET /          HTML page containing "Demo HTTP Service is running"
    GET /health    {"status": "healthy", "uptime": ..., "timestamp": ...}
    GET /info      {"platform": ..., "pid": ..., ...}
    GET /metrics   http_requests_total in Prometheus text format
    anything else  404 {"error": "Not Found"}

Every response carries Access-Control-Allow-Origin: * and
X-Content-Type-Options: nosniff.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    demoserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m demoserver)
    ├── app.py               # create_app(): routes + middleware
    ├── server.py            # HTTPServer
    ├── config.py            # ServerConfig, environment parsing
    ├── state.py             # ServiceState, RequestCounter
    ├── errors.py            # ServerError, ServerBindError
    ├── core/                # socket_server, connection, thread_pool
    ├── http/                # request, response, router, status_codes
    ├── middleware/          # base pipeline, access logging
    └── handlers/            # index, health, info, metrics

=============================================================================
QUICK START
=============================================================================

    from demoserver import create_app, ServerConfig

    server = create_app(ServerConfig(port=8080))
    server.run()

or from a shell:

    PORT=8080 python -m demoserver

=============================================================================
"""

__version__ = "1.0.0"

from .app import create_app
from .config import ServerConfig
from .errors import ServerError, ServerBindError
from .server import HTTPServer
from .state import ServiceState, RequestCounter

__all__ = [
    "create_app",
    "HTTPServer",
    "ServerConfig",
    "ServiceState",
    "RequestCounter",
    "ServerError",
    "ServerBindError",
    "__version__",
]
