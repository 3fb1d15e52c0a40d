"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Writes one access line per request to the "demoserver.access" logger, in
one of two shapes chosen by ServerConfig.log_format:

    text:  127.0.0.1 - - [16/Oct/2026:12:00:00 +0000] "GET /health" 200 61 0.42ms a1b2c3d4
    json:  {"request_id": "a1b2c3d4", "method": "GET", "path": "/health", ...}

Access lines have their own logger name so they can be filtered apart
from the server's operational messages:

    logging.getLogger("demoserver.access").setLevel(logging.WARNING)

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Iterable, Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("demoserver.access")

CLF_TIME_FORMAT = "%d/%b/%Y:%H:%M:%S %z"


@dataclass
class RequestLog:
    """What gets recorded about one request/response exchange."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    @classmethod
    def capture(
        cls,
        request: HTTPRequest,
        response: HTTPResponse,
        request_id: str,
        duration_ms: float,
    ) -> "RequestLog":
        return cls(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime(CLF_TIME_FORMAT),
        )

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def to_text(self) -> str:
        """Common Log Format, followed by the duration and request id."""
        client = self.client_ip or "-"
        request_line = f"{self.method} {self.path}"
        return (
            f'{client} - - [{self.timestamp}] "{request_line}" '
            f"{self.status_code} {self.content_length} "
            f"{self.duration_ms:.2f}ms {self.request_id}"
        )


class LoggingMiddleware(Middleware):
    """
    Times the rest of the chain and logs the outcome.

    Register it first so the timing includes every other middleware. Each
    response gets an X-Request-ID header matching its log line.

    Args:
        log_format: "text" or "json".
        include_request_id: Set X-Request-ID on responses.
        log_level: Level the access lines are logged at.
        skip_paths: Paths that are served but never logged.
    """

    FORMATTERS = {
        "text": RequestLog.to_text,
        "json": RequestLog.to_json,
    }

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[Iterable[str]] = None,
    ):
        if log_format not in self.FORMATTERS:
            raise ValueError(f"Unknown access log format: {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = frozenset(skip_paths or ())

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(
                f"{request.method} {request.path} raised {type(e).__name__}: {e} "
                f"after {elapsed_ms:.2f}ms {request_id}"
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path not in self.skip_paths and logger.isEnabledFor(self.log_level):
            entry = RequestLog.capture(request, response, request_id, elapsed_ms)
            logger.log(self.log_level, self.FORMATTERS[self.log_format](entry))

        return response
