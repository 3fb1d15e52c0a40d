"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

One accepted client socket plus the bytes read from it but not yet used.

recv() knows nothing about HTTP messages. A single call can stop in the
middle of a header line or return two pipelined requests at once, so the
connection keeps a buffer and cuts whole requests off its front:

    buffer: b"GET /health HTTP/1.1\\r\\n\\r\\nGET /metr"
             └──────── returned now ───────┘└ stays ┘

A request ends after the blank line that closes its headers plus
Content-Length bytes of body.

=============================================================================
STATES AND TIMEOUTS
=============================================================================

    NEW ─► READING ─► PROCESSING ─► WRITING ─► KEEP_ALIVE ─► READING ...
                                                   └──────► CLOSING ─► CLOSED

The first request may take up to `timeout` to arrive, later ones on the
same connection only `keep_alive_timeout`. If the timer fires before the
peer has sent anything, there is no request to answer and read_request()
returns None. If it fires part way through a request, TimeoutError is
raised so the server can answer 408.

=============================================================================
"""

import socket
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional

from ..http.request import HTTPParseError


logger = logging.getLogger(__name__)

HEADER_TERMINATOR = b"\r\n\r\n"


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


def declared_body_length(head: bytes) -> int:
    """
    Content-Length from raw header bytes, before any real parsing.

    Missing or unreadable values give 0; RequestParser reports them.
    """
    for line in head.split(b"\r\n")[1:]:
        name, sep, value = line.partition(b":")
        if sep and name.strip().lower() == b"content-length":
            try:
                return max(0, int(value.strip()))
            except ValueError:
                return 0
    return 0


@dataclass
class Connection:
    """
    A client connection served by one worker thread.

    Attributes:
        socket: The accepted client socket.
        address: Peer (ip, port).
        id: Eight hex characters tagging this connection's log lines.
        requests_handled: Whole requests returned by read_request().
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _pending: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    def read_request(self) -> Optional[bytes]:
        """
        Return the next whole request from the socket.

        Returns:
            Raw request bytes. None when the peer closed the connection or
            went quiet without starting another request.

        Raises:
            TimeoutError: The peer stopped sending in the middle of a request.
            HTTPParseError: More than max_request_size bytes arrived (413).
        """
        self.state = ConnectionState.READING
        if self.requests_handled:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            head_end = self._fill_until_headers()
            if head_end < 0:
                return None

            body_start = head_end + len(HEADER_TERMINATOR)
            end = body_start + declared_body_length(bytes(self._pending[:head_end]))
            # A short body is left for the parser to reject
            self._fill_to(end)

        except socket.timeout:
            if not self._pending:
                logger.debug(f"[{self.id}] Idle timeout after {self.requests_handled} requests")
                return None
            raise TimeoutError(f"Request read timeout with {len(self._pending)} bytes buffered")

        finally:
            self.socket.settimeout(self.timeout)

        request = bytes(self._pending[:end])
        del self._pending[:end]
        self.requests_handled += 1
        return request

    def _fill_until_headers(self) -> int:
        """Read until the header terminator is buffered; -1 on EOF."""
        while True:
            head_end = self._pending.find(HEADER_TERMINATOR)
            if head_end >= 0:
                return head_end
            if not self._receive():
                return -1

    def _fill_to(self, size: int):
        while len(self._pending) < size:
            if not self._receive():
                return

    def _receive(self) -> bool:
        """One recv() into the buffer. False once the peer is gone."""
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False
        if not data:
            return False

        self._pending += data
        if len(self._pending) > self.max_request_size:
            received = len(self._pending)
            self._pending.clear()
            raise HTTPParseError(f"Request too large: {received} bytes", status_code=413)
        return True

    def send_response(self, data: bytes) -> bool:
        """sendall() the response; False if the peer has disconnected."""
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """
        Half-close, let the peer's last bytes drain for up to half a
        second, then release the socket. Calling it again does nothing.
        """
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        sock = self.socket
        try:
            sock.shutdown(socket.SHUT_WR)
            sock.settimeout(0.5)
            while sock.recv(1024):
                pass
        except OSError:
            pass  # peer already gone or drain timed out
        finally:
            sock.close()

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.requests_handled} requests")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
