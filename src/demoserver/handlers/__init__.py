"""
Route handlers for the four public endpoints.

    GET /         index           HTML landing page
    GET /health   HealthHandler   status + uptime
    GET /info     info            platform + pid
    GET /metrics  MetricsHandler  request counter (Prometheus text)

Handlers that read ServiceState are classes constructed with it; the
stateless ones are plain functions.
"""

from .index import index, INDEX_MARKER
from .health import HealthHandler
from .info import info, system_info
from .metrics import MetricsHandler

__all__ = [
    "index",
    "INDEX_MARKER",
    "HealthHandler",
    "info",
    "system_info",
    "MetricsHandler",
]
