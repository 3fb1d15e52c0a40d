"""
=============================================================================
APPLICATION FACTORY
=============================================================================

Builds the demo service: an HTTPServer with access logging and the four
public routes, all sharing one ServiceState.

    server = create_app(ServerConfig.from_env())
    server.run()

Tests call create_app() with port=0 and their own ServiceState, so every
test gets a fresh counter and its own port.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .handlers import HealthHandler, MetricsHandler, index, info
from .middleware import LoggingMiddleware
from .server import HTTPServer
from .state import ServiceState


def create_app(
    config: Optional[ServerConfig] = None,
    state: Optional[ServiceState] = None,
) -> HTTPServer:
    """
    Create the demo service, ready to run().

    Args:
        config: Server configuration; ServerConfig.from_env() if omitted.
        state: Shared request counter and uptime clock.
    """
    config = config or ServerConfig.from_env()
    server = HTTPServer(config, state)

    server.use(LoggingMiddleware(log_format=config.log_format, log_level=logging.INFO))

    health = HealthHandler(server.state)
    metrics = MetricsHandler(server.state)

    server.get("/", name="index")(index)
    server.get("/health", name="health")(health.handle)
    server.get("/info", name="info")(info)
    server.get("/metrics", name="metrics")(metrics.handle)

    return server
