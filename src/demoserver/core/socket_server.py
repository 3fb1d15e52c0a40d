"""
=============================================================================
LISTENING SOCKET AND ACCEPT LOOP
=============================================================================

    bind()            socket, SO_REUSEADDR, bind, listen
        │             ServerBindError if the address is unavailable
        ▼
    serve_forever()   SIGTERM/SIGINT now call shutdown()
        │             accept() → Connection → handler, until shutdown()
        ▼
    (on exit)         previous signal handlers back, listening socket
                      closed, port free again

bind() is its own step so the caller learns the real port before serving
(port 0 asks the OS to pick one) and can mark the service as listening
before the first request can arrive.

accept() times out every `poll_interval` seconds, so a shutdown() from
another thread is noticed even when nobody connects.

=============================================================================
"""

import socket
import signal
import logging
import threading
from contextlib import contextmanager
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..errors import ServerBindError
from .connection import Connection


logger = logging.getLogger(__name__)

ConnectionHandler = Callable[[Connection], None]

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class SocketServer:
    """
    The listening half of the server.

        server = SocketServer(config)
        server.bind()                        # raises ServerBindError
        server.serve_forever(on_connection)  # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig, poll_interval: float = 0.5):
        self.config = config
        self.poll_interval = poll_interval

        self._listener: Optional[socket.socket] = None
        self._stop = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port) once bound, so port 0 shows the real port."""
        if self._listener is None:
            return (self.config.host, self.config.port)
        host, port = self._listener.getsockname()[:2]
        return (host, port)

    def bind(self) -> Tuple[str, int]:
        """
        Bind and listen on the configured address. A no-op when bound.

        SO_REUSEADDR lets a restart bind over TIME_WAIT leftovers. There is
        no SO_REUSEPORT, so a second process on the same port fails here.

        Raises:
            ServerBindError: Address in use, not permitted or unavailable.
        """
        if self._listener is not None:
            return self.address

        host, port = self.config.host, self.config.port
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Cannot bind {host}:{port}: {e}")
            raise ServerBindError(host, port, e) from e

        sock.settimeout(self.poll_interval)
        self._listener = sock
        self._stop.clear()
        logger.info("Listening on %s:%d", *self.address)
        return self.address

    def serve_forever(self, connection_handler: ConnectionHandler):
        """
        Hand every accepted Connection to connection_handler until
        shutdown(). Binds first if needed.
        """
        self.bind()
        try:
            with self._stop_on_signals():
                self._accept_loop(connection_handler)
        finally:
            self._close_listener()
            logger.info("Stopped accepting connections")

    def shutdown(self):
        """Make serve_forever() return. Any thread, any number of times."""
        if not self._stop.is_set():
            logger.info("Shutdown requested")
        self._stop.set()

    @contextmanager
    def _stop_on_signals(self):
        """
        Route SIGTERM (docker stop, kubectl delete) and SIGINT (Ctrl+C) to
        shutdown() for the duration. Only the main thread may install
        handlers, so a server in a background thread is left alone and
        must be stopped with shutdown().
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        previous = {sig: signal.signal(sig, on_signal) for sig in STOP_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    def _accept_loop(self, connection_handler: ConnectionHandler):
        while not self._stop.is_set():
            try:
                client, peer = self._listener.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._stop.is_set():
                    logger.error(f"accept() failed: {e}")
                break

            logger.debug(f"Accepted {peer[0]}:{peer[1]}")
            connection_handler(Connection(
                socket=client,
                address=peer,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            ))

    def _close_listener(self):
        sock, self._listener = self._listener, None
        if sock is not None:
            sock.close()
