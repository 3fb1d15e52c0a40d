"""
pytest configuration and fixtures.
"""

import http.client
import socket
import threading
from typing import Callable, Dict, Generator, List, Optional, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from demoserver import HTTPServer, ServerConfig, ServiceState, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /health?verbose=1&source=k8s HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b'{"check": "readiness"}'
    return (
        b"POST /health HTTP/1.1\r\n"
        b"Host: localhost:3000\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        + b"\r\n"
        + body
    )


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def state() -> ServiceState:
    return ServiceState()


@pytest.fixture
def app(config: ServerConfig, state: ServiceState) -> HTTPServer:
    """The demo service, not listening. Drive it with app.process(raw)."""
    return create_app(config, state)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestServer:
    """Runs an HTTPServer in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self.host = "127.0.0.1"
        self.port: Optional[int] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "TestServer":
        # Bind on this thread so the port is known (and listening) on return
        _, self.port = self.server.start()
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()
        return self

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[bytes] = None,
    ) -> Tuple[int, Dict[str, str], bytes]:
        """One request on a fresh connection: (status, headers, body)."""
        conn = http.client.HTTPConnection(self.host, self.port, timeout=5.0)
        try:
            conn.request(method, path, body=body)
            response = conn.getresponse()
            return response.status, dict(response.getheaders()), response.read()
        finally:
            conn.close()


@pytest.fixture
def serve() -> Generator[Callable[[HTTPServer], TestServer], None, None]:
    """Start servers in the background; all are stopped on teardown."""
    started: List[TestServer] = []

    def _serve(server: HTTPServer) -> TestServer:
        test_srv = TestServer(server).start()
        started.append(test_srv)
        return test_srv

    yield _serve

    for test_srv in started:
        test_srv.stop()


@pytest.fixture
def running_app(serve, config: ServerConfig, state: ServiceState) -> TestServer:
    """The demo service listening on an ephemeral port."""
    return serve(create_app(config, state))
