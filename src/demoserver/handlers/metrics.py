"""
=============================================================================
METRICS HANDLER
=============================================================================

GET /metrics returns the request counter in the Prometheus text
exposition format, so a scraper can read it without an adapter:

    # HELP http_requests_total Total HTTP requests received.
    # TYPE http_requests_total counter
    http_requests_total 42.0
    # HELP process_uptime_seconds Seconds since the server started listening.
    # TYPE process_uptime_seconds gauge
    process_uptime_seconds 12.345

The values live in ServiceState, not in prometheus_client metric objects.
ServiceCollector reads them at scrape time, and each handler owns its own
CollectorRegistry, so two servers in one process never share a counter and
the process-wide default registry is left alone.

The counter is incremented by the server before routing, so the value
includes the /metrics request being answered.

=============================================================================
"""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..state import ServiceState


class ServiceCollector:
    """Exposes a ServiceState as Prometheus metric families."""

    def __init__(self, state: ServiceState):
        self.state = state

    def collect(self):
        # CounterMetricFamily appends the _total suffix
        yield CounterMetricFamily(
            "http_requests",
            "Total HTTP requests received.",
            value=self.state.request_count,
        )
        yield GaugeMetricFamily(
            "process_uptime_seconds",
            "Seconds since the server started listening.",
            value=round(self.state.uptime, 3),
        )


class MetricsHandler:
    """Serves a private registry holding one ServiceCollector."""

    def __init__(self, state: ServiceState):
        self.state = state
        self.registry = CollectorRegistry()
        self.registry.register(ServiceCollector(state))

    def render(self) -> bytes:
        return generate_latest(self.registry)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .body(self.render())
            .header("Content-Type", CONTENT_TYPE_LATEST)
            .no_cache()
            .build())
