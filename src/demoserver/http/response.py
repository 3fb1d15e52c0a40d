"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

What handlers return, and how it becomes bytes on the wire:

    HTTP/1.1 200 OK\\r\\n                          <- status line
    Content-Type: application/json; charset=utf-8\\r\\n
    Content-Length: 41\\r\\n                       <- from the body
    Date: Fri, 16 Oct 2026 12:00:00 GMT\\r\\n      <- added if missing
    Server: demoserver/1.0\\r\\n                   <- added if missing
    \\r\\n
    {"status": "healthy", "uptime": 12.5}        <- body

HTTPResponse holds the data and serializes it. ResponseBuilder is the
chained way handlers put one together.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Dict, Any, Union
import json

from .status_codes import HTTPStatus


NOT_FOUND_BODY = {"error": "Not Found"}

JSON_TYPE = "application/json; charset=utf-8"
HTML_TYPE = "text/html; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    One response, built by ResponseBuilder or the helpers at the bottom
    of this module.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "demoserver/1.0") -> bytes:
        """
        Wire form for socket.sendall(). Content-Length, Date and Server are
        filled in unless set; self.headers is left as it was.
        """
        defaults = {
            "Content-Length": str(len(self.body)),
            "Date": format_http_date(datetime.now(timezone.utc)),
            "Server": server_name,
        }
        fields = {**self.headers}
        for name, value in defaults.items():
            fields.setdefault(name, value)

        head = "".join(f"{name}: {value}\r\n" for name, value in fields.items())
        return f"{self.status_line}\r\n{head}\r\n".encode("utf-8") + self.body


class ResponseBuilder:
    """
    Chained construction, finished by build():

        (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"status": "healthy"})
            .no_cache()
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Raw body; str is encoded as UTF-8. Set Content-Type separately."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def html(self, html: str) -> "ResponseBuilder":
        return self.body(html).header("Content-Type", HTML_TYPE)

    def json(self, data: Any) -> "ResponseBuilder":
        return self.body(json.dumps(data, ensure_ascii=False)).header("Content-Type", JSON_TYPE)

    def no_cache(self) -> "ResponseBuilder":
        """Health and metrics answers must never come from a cache."""
        self._headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
        self._headers["Pragma"] = "no-cache"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(status=self._status, headers=self._headers, body=self._body)


def format_http_date(dt: datetime) -> str:
    """RFC 7231 HTTP-date, e.g. "Fri, 16 Oct 2026 12:00:00 GMT"."""
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def not_found() -> HTTPResponse:
    """The 404 for every unmatched method or path."""
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).json(NOT_FOUND_BODY).build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """{"error": message} with the given status."""
    return ResponseBuilder().status(status).json({"error": message}).build()
