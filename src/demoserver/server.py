"""
=============================================================================
HTTP SERVER
=============================================================================

Wires the layers together:

    SocketServer ──► ThreadPool ──► Connection ──► RequestParser
                                                        │
        socket ◄── HTTPResponse.to_bytes ◄── Router ◄── Middleware

=============================================================================
REQUEST FLOW
=============================================================================

    1. ACCEPT       SocketServer accepts a TCP connection (main thread)
    2. QUEUE        the Connection goes to the ThreadPool (503 if full)
    3. READ         a worker reads one whole request off the socket
    4. COUNT        ServiceState.counter is incremented, before parsing
    5. PARSE        bytes → HTTPRequest (400/413/505 on bad input)
    6. DISPATCH     Middleware → Router → handler (500 if it raises)
    7. HEADERS      the fixed response headers are applied
    8. SEND         bytes go out; loop on keep-alive, otherwise close

Step 4 runs for every request that was read, whatever happens next, so
404s and rejected requests all show up in http_requests_total. Errors sent
without a parsed request (408 for a request cut off part way, 413
oversized read, 503 overload) are counted too. A connection that times out
without sending a byte is closed unanswered and not counted.

=============================================================================
LIFECYCLE
=============================================================================

    server = HTTPServer(config)
    server.start()          bind + listen (ServerBindError if impossible),
                            start the uptime clock and the worker pool
    server.serve_forever()  accept loop, blocks until shutdown()
    server.shutdown()       stop accepting; serve_forever() then drains the
                            pool and releases the port

run() does all of it with logging configured, for the CLI.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router, Handler,
    error_response,
)
from .middleware import MiddlewarePipeline, Middleware
from .state import ServiceState


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Queued connections get this long to be served once shutdown starts
DRAIN_TIMEOUT = 10.0


class HTTPServer:
    """
    Multi-threaded HTTP/1.1 server around one ServiceState.

        server = HTTPServer(ServerConfig(port=3000))

        @server.get("/")
        def index(request):
            return ResponseBuilder().json({"hello": "world"}).build()

        server.run()

    Args:
        config: Server configuration, validated on construction.
        state: Shared state; a fresh ServiceState if omitted.
    """

    def __init__(self, config: Optional[ServerConfig] = None, state: Optional[ServiceState] = None):
        self.config = config or ServerConfig()
        self.config.validate()
        self.state = state or ServiceState()

        self._listener = SocketServer(self.config)
        self._workers = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            max_queue=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._pipeline = MiddlewarePipeline()

        self._handler: Optional[Handler] = None
        self._running = False

    # =========================================================================
    # SETUP
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware; the first one added is the outermost."""
        self._pipeline.add(middleware)
        self._handler = None
        return self

    def get(self, path: str, name: Optional[str] = None):
        """Decorator registering a GET route."""
        return self._router.get(path, name)

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> Tuple[str, int]:
        """
        Bind, then start the uptime clock and the workers.

        Returns:
            The bound (host, port).

        Raises:
            ServerBindError: Nothing has been started in that case.
        """
        address = self._listener.bind()
        self.state.mark_started()
        self._handler = self._pipeline.wrap(self._router.handle)
        self._workers.start()
        self._running = True
        return address

    def serve_forever(self):
        """Accept connections until shutdown(), then stop the workers."""
        if not self._running:
            self.start()
        try:
            self._listener.serve_forever(self._enqueue)
        finally:
            self._stop_workers()

    def run(self):
        """
        Configure logging, bind and serve until SIGTERM/SIGINT. Blocks.

        Raises:
            ServerBindError: The port could not be bound.
        """
        self._configure_logging()
        host, port = self.start()

        logger.info(
            f"{self.config.server_name} serving on http://{host}:{port} "
            f"(env={self.config.environment}, "
            f"workers={self.config.min_workers}-{self.config.max_workers})"
        )
        for line in self._router.describe():
            logger.info(f"  {line}")

        try:
            self.serve_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted")

    def shutdown(self):
        """Ask the accept loop to stop. Safe from any thread."""
        self._listener.shutdown()

    def _configure_logging(self):
        level = logging.getLevelName(self.config.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        logging.getLogger("demoserver").setLevel(level)

    def _stop_workers(self):
        if not self._running:
            return
        self._running = False
        logger.info("Draining worker pool")
        self._workers.shutdown(wait=True, timeout=DRAIN_TIMEOUT)
        logger.info(f"Server stopped after {self.state.request_count} requests")

    # =========================================================================
    # REQUESTS
    # =========================================================================

    def process(
        self,
        raw: bytes,
        client_address: Tuple[str, int] = ("", 0),
    ) -> Tuple[Optional[HTTPRequest], HTTPResponse]:
        """
        Count, parse and dispatch one raw request. No socket involved.

        Returns:
            (request, response); request is None when parsing failed.
        """
        self.state.counter.increment()

        try:
            request = self._parser.parse(raw, client_address)
        except HTTPParseError as e:
            logger.debug(f"Rejected request from {client_address[0]}: {e}")
            response = self._with_fixed_headers(error_response(HTTPStatus(e.status_code), str(e)))
            response.headers["Connection"] = "close"
            return None, response

        return request, self.dispatch(request)

    def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """Middleware and router for a parsed request; 500 if a handler raises."""
        if self._handler is None:
            self._handler = self._pipeline.wrap(self._router.handle)

        try:
            response = self._handler(request)
        except Exception:
            logger.exception(f"Unhandled error in {request.method} {request.path}")
            response = error_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

        return self._with_fixed_headers(response)

    def _with_fixed_headers(self, response: HTTPResponse) -> HTTPResponse:
        response.headers.update(self.config.response_headers)
        return response

    # =========================================================================
    # CONNECTIONS
    # =========================================================================

    def _enqueue(self, conn: Connection):
        """Accept-thread side: queue the connection or turn it away."""
        if self._workers.submit(self._serve_connection, args=(conn,)):
            return
        logger.warning(f"[{conn.id}] Worker queue full, answering 503")
        self._reject(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        conn.close()

    def _serve_connection(self, conn: Connection):
        """Worker side: answer requests until either end stops keep-alive."""
        with conn:
            while self._running:
                raw = self._read(conn)
                if raw is None:
                    return

                conn.state = conn.state.PROCESSING
                request, response = self.process(raw, conn.address)
                keep_alive = self._set_persistence(request, response)

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    return
                if not keep_alive:
                    return
                conn.set_keep_alive()

    def _read(self, conn: Connection) -> Optional[bytes]:
        """Next raw request, or None once the connection is done."""
        try:
            return conn.read_request()
        except TimeoutError:
            self._reject(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
        except HTTPParseError as e:
            self._reject(conn, HTTPStatus(e.status_code), str(e))
        return None

    def _set_persistence(self, request: Optional[HTTPRequest], response: HTTPResponse) -> bool:
        """Set Connection/Keep-Alive headers; True if the connection stays open."""
        keep_alive = self.config.keep_alive and request is not None and request.is_keep_alive
        if keep_alive:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault("Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}")
        else:
            response.headers["Connection"] = "close"
        return keep_alive

    def _reject(self, conn: Connection, status: HTTPStatus, message: str):
        """
        Answer an error that never reached process() (partial-request
        timeout, oversized read, overload). Counted like any other request.
        """
        self.state.counter.increment()
        response = self._with_fixed_headers(error_response(status, message))
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
