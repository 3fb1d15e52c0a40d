"""
Server-level exceptions.

Request-level problems never surface as exceptions to the caller: they
become HTTP responses (see HTTPParseError in http.request). What remains
here are conditions that stop the server itself.
"""

from typing import Optional


class ServerError(Exception):
    """Base class for errors that prevent the server from running."""


class ServerBindError(ServerError):
    """
    The listening socket could not be bound.

    This is the service's only fatal startup condition. The message names
    the address and the OS reason so it can be diagnosed from logs alone:

        Cannot listen on 0.0.0.0:3000: [Errno 98] Address already in use
    """

    def __init__(self, host: str, port: int, cause: Optional[OSError] = None):
        self.host = host
        self.port = port
        self.cause = cause
        reason = cause if cause is not None else "unknown error"
        super().__init__(f"Cannot listen on {host}:{port}: {reason}")

    @property
    def errno(self) -> Optional[int]:
        return self.cause.errno if self.cause is not None else None
