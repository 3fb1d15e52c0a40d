"""
Unit tests for HTTP request parsing.
"""

import pytest

from demoserver.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
)


def parse(raw: bytes) -> HTTPRequest:
    return RequestParser().parse(raw)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/health"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse(sample_get_request)

        assert request.headers["host"] == "localhost:3000"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "application/json"
        assert request.is_keep_alive is True

    def test_query_string_is_not_part_of_path(self, sample_get_request: bytes):
        request = parse(sample_get_request)

        assert request.path == "/health"
        assert request.query_params == {"verbose": ["1"], "source": ["k8s"]}

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing POST request with a body."""
        request = parse(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/health"
        assert request.body == b'{"check": "readiness"}'
        assert request.is_keep_alive is False

    def test_parse_percent_encoded_path(self):
        """Test URL-encoded path parsing."""
        raw = b"GET /hello%20world?q=a%20b HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse(raw)

        assert request.path == "/hello world"
        assert request.query_params["q"] == ["a b"]

    @pytest.mark.parametrize("method", ["GET", "POST", "DELETE", "PATCH", "BREW"])
    def test_any_method_token_is_accepted(self, method: str):
        """Unknown methods are routed (and 404'd), not rejected here."""
        raw = f"{method} /health HTTP/1.1\r\nHost: test\r\n\r\n".encode()

        assert parse(raw).method == method

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw)

        assert exc_info.value.status_code == 400

    def test_lowercase_method_is_malformed(self):
        raw = b"get / HTTP/1.1\r\n\r\n"

        with pytest.raises(HTTPParseError):
            parse(raw)

    def test_missing_header_terminator(self):
        with pytest.raises(HTTPParseError) as exc_info:
            parse(b"GET / HTTP/1.1\r\nHost: test\r\n")

        assert exc_info.value.status_code == 400

    def test_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw)

        assert exc_info.value.status_code == 505

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        raw = b"GET / HTTP/1.1\r\n\r\n"
        request = parse(raw)

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0

    def test_dot_segments_are_left_alone(self):
        """No filesystem behind the router, so nothing to traverse."""
        raw = b"GET /../health HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse(raw).path == "/../health"

    @pytest.mark.parametrize("target, path", [
        ("//health", "//health"),
        ("//", "//"),
        ("//example.com/health?a=1", "//example.com/health"),
    ])
    def test_double_slash_target_is_a_path(self, target: str, path: str):
        """A leading "//" is not an authority in origin-form targets."""
        raw = f"GET {target} HTTP/1.1\r\nHost: test\r\n\r\n".encode()

        assert parse(raw).path == path

    @pytest.mark.parametrize("target, path", [
        ("http://example.com/health?verbose=1", "/health"),
        ("https://example.com", "/"),
    ])
    def test_absolute_form_target(self, target: str, path: str):
        raw = f"GET {target} HTTP/1.1\r\nHost: test\r\n\r\n".encode()

        assert parse(raw).path == path

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        """Test HTTP/1.0 and HTTP/1.1 version handling."""
        # HTTP/1.0 (Connection: close by default)
        request_10 = parse(b"GET / HTTP/1.0\r\nHost: test\r\n\r\n")
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        # HTTP/1.1 (keep-alive by default)
        request_11 = parse(b"GET / HTTP/1.1\r\nHost: test\r\n\r\n")
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

    def test_content_length_handling(self):
        """Test Content-Length validation."""
        body = b"test body"
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
        ) + body

        request = parse(raw)
        assert request.body == body

    @pytest.mark.parametrize("value", [b"abc", b"-1"])
    def test_invalid_content_length(self, value: bytes):
        raw = b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse(raw)

        assert exc_info.value.status_code == 400

    def test_truncated_body(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc"

        with pytest.raises(HTTPParseError, match="Incomplete body"):
            parse(raw)

    def test_case_insensitive_headers(self):
        """Test that header names are case-insensitive."""
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parse(raw)

        assert request.get_header("Content-Type") == "text/html"
        assert request.get_header("content-type") == "text/html"

    def test_repeated_headers_are_joined(self):
        raw = b"GET / HTTP/1.1\r\nAccept: text/html\r\nAccept: application/json\r\n\r\n"

        assert parse(raw).headers["accept"] == "text/html, application/json"

    def test_folded_header_continuation(self):
        raw = b"GET / HTTP/1.1\r\nX-Long: first\r\n  second\r\n\r\n"

        assert parse(raw).headers["x-long"] == "first second"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_http10_keep_alive_opt_in(self):
        request = HTTPRequest(
            method="GET",
            path="/",
            version="HTTP/1.0",
            headers={"connection": "Keep-Alive"},
        )

        assert request.is_keep_alive is True

