"""
=============================================================================
HEALTH CHECK HANDLER
=============================================================================

GET /health answers "is this process up and serving?" for load balancers,
container healthchecks and Kubernetes liveness checks:

    200 OK
    {
        "status": "healthy",
        "uptime": 3600.42,
        "timestamp": "2026-10-16T12:00:00.000000+00:00"
    }

The service has no downstream dependencies, so there is nothing that could
make it unhealthy while it is still able to answer; the status is always
"healthy". Uptime comes from the monotonic clock in ServiceState and never
decreases within a process.

Responses are marked no-store: a cached health result is worse than none.

=============================================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..state import ServiceState


HEALTHY = "healthy"


class HealthHandler:
    """
    Health check endpoint handler.

        health = HealthHandler(state)
        router.get("/health")(health.handle)
    """

    def __init__(self, state: ServiceState):
        self.state = state

    def payload(self) -> Dict[str, Any]:
        return {
            "status": HEALTHY,
            "uptime": round(self.state.uptime, 3),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .json(self.payload())
            .no_cache()
            .build())
