"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of one request, as cut out by Connection.read_request(),
into an HTTPRequest.

    GET /health?verbose=1 HTTP/1.1\r\n      <- request line
    Host: localhost:3000\r\n                 <- header fields
    Connection: keep-alive\r\n
    \r\n                                     <- end of head
    (optional body, Content-Length bytes)

Routing only looks at the method and the path. The rest is parsed so that
keep-alive and Content-Length framing work.

=============================================================================
PARSING RULES
=============================================================================

1. Field names are matched case-insensitively and stored lowercase.
2. A field sent twice becomes one value joined with ", ".
3. The body is exactly Content-Length bytes; anything after it belongs to
   the next pipelined request.
4. The method may be any uppercase token. An unknown method is not a
   parse error; the router answers it with 404 like any other miss.
5. HTTP/1.0 and HTTP/1.1 are accepted, any other version gets 505.
6. The path is the request target up to "?", percent-decoded and nothing
   else: "//health" stays "//health" and does not match "/health".
   Absolute-form targets ("http://host/health") are reduced to their path.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple
from urllib.parse import parse_qs, urlsplit, unquote
import re


class HTTPParseError(Exception):
    """
    A request that cannot be served as sent.

    status_code is what the client gets back:

        400 Bad Request                - Malformed request syntax
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method:         Request method token ("GET", "BREW", ...)
        path:           Decoded path, query string removed ("/health")
        version:        "HTTP/1.1" or "HTTP/1.0", drives keep-alive default
        headers:        Lowercase field name -> value
        query_params:   "?a=1&a=2" -> {"a": ["1", "2"]}
        body:           Content-Length bytes of body
        client_address: Peer (ip, port), for access logs
        raw:            The request exactly as received
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: Tuple[str, int] = ("", 0)
    raw: bytes = field(default=b"", repr=False)

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    @property
    def user_agent(self) -> str:
        return self.get_header("user-agent")

    @property
    def is_keep_alive(self) -> bool:
        """
        HTTP/1.1 connections persist unless the client says "close";
        HTTP/1.0 ones close unless it asks for "keep-alive".
        """
        token = self.get_header("connection").lower()
        if self.version == "HTTP/1.0":
            return token == "keep-alive"
        return token != "close"


class RequestParser:
    """
    Bytes in, HTTPRequest out, HTTPParseError for anything unusable.

        size limit       413
        head/body split  400 if the blank line is missing
        request line     400 if malformed, 505 for other HTTP versions
        header fields    lowercased, repeats joined, folding unwrapped
        body             400 if shorter than Content-Length
    """

    REQUEST_LINE = re.compile(r"(?P<method>[A-Z]+) (?P<target>[^ ]+) (?P<version>HTTP/\d\.\d)")
    VERSIONS = frozenset({"HTTP/1.0", "HTTP/1.1"})

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(self, data: bytes, client_address: Tuple[str, int] = ("", 0)) -> HTTPRequest:
        """
        Parse one complete request.

        Raises:
            HTTPParseError: With the status code to answer.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        head, separator, rest = data.partition(b"\r\n\r\n")
        if not separator:
            raise HTTPParseError("Incomplete request: no header terminator")

        request_line, *field_lines = head.decode("utf-8", errors="replace").split("\r\n")
        method, target, version = self.parse_request_line(request_line)
        path, query_params = self.split_target(target)
        headers = self.parse_headers(field_lines)

        declared = headers.get("content-length", "0")
        if not declared.isdigit():
            raise HTTPParseError(f"Invalid Content-Length: {declared!r}")
        length = int(declared)
        if len(rest) < length:
            raise HTTPParseError(f"Incomplete body: expected {length} bytes, got {len(rest)}")

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=rest[:length],
            client_address=client_address,
            raw=data,
        )

    def parse_request_line(self, line: str) -> Tuple[str, str, str]:
        """"METHOD SP request-target SP HTTP-version" -> its three parts."""
        match = self.REQUEST_LINE.fullmatch(line)
        if match is None:
            raise HTTPParseError(f"Invalid request line: {line!r}")

        if match["version"] not in self.VERSIONS:
            raise HTTPParseError(f"Unsupported HTTP version: {match['version']}", status_code=505)

        return match["method"], match["target"], match["version"]

    @staticmethod
    def split_target(target: str) -> Tuple[str, Dict[str, List[str]]]:
        """Request target -> (decoded path, query parameters)."""
        if target.startswith(("http://", "https://")):
            # Absolute form: route on the path, drop the authority
            parts = urlsplit(target)
            path, query = parts.path or "/", parts.query
        else:
            path, _, query = target.partition("?")
        return unquote(path), parse_qs(query, keep_blank_values=True)

    @staticmethod
    def parse_headers(lines: List[str]) -> Dict[str, str]:
        """
        "Name: value" lines -> {name: value}.

        A line starting with whitespace continues the previous field
        (obsolete folding). Lines without a colon are ignored.
        """
        headers: Dict[str, str] = {}
        last = None

        for line in lines:
            if line[:1] in (" ", "\t"):
                if last is not None:
                    headers[last] = f"{headers[last]} {line.strip()}"
                continue

            name, colon, value = line.partition(":")
            name = name.strip().lower()
            if not colon or not name:
                continue

            value = value.strip()
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
            last = name

        return headers
