"""
Unit tests for HTTP response building and serialization.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from demoserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    NOT_FOUND_BODY,
    not_found,
    error_response,
    format_http_date,
)
from demoserver.http.status_codes import HTTPStatus


def split_wire(data: bytes):
    head, _, body = data.partition(b"\r\n\r\n")
    status_line, *fields = head.decode().split("\r\n")
    return status_line, dict(f.split(": ", 1) for f in fields), body


class TestHTTPResponse:
    """Tests for HTTPResponse serialization."""

    @pytest.mark.parametrize("status, line", [
        (HTTPStatus.OK, "HTTP/1.1 200 OK"),
        (HTTPStatus.NOT_FOUND, "HTTP/1.1 404 Not Found"),
        (HTTPStatus.REQUEST_TIMEOUT, "HTTP/1.1 408 Request Timeout"),
    ])
    def test_status_line(self, status: HTTPStatus, line: str):
        assert HTTPResponse(status=status).status_line == line

    def test_wire_format(self):
        response = HTTPResponse(headers={"X-Custom": "value"}, body=b"test")

        status_line, fields, body = split_wire(response.to_bytes())

        assert status_line == "HTTP/1.1 200 OK"
        assert fields["X-Custom"] == "value"
        assert fields["Content-Length"] == "4"
        assert fields["Server"] == "demoserver/1.0"
        assert fields["Date"].endswith(" GMT")
        assert body == b"test"

    def test_explicit_headers_win(self):
        response = HTTPResponse(headers={"Server": "mine", "Date": "then"})

        _, fields, _ = split_wire(response.to_bytes(server_name="ignored"))

        assert fields["Server"] == "mine"
        assert fields["Date"] == "then"

    def test_to_bytes_leaves_headers_untouched(self):
        response = HTTPResponse(body=b"x")
        response.to_bytes()

        assert response.headers == {}

    def test_server_name(self):
        _, fields, _ = split_wire(HTTPResponse().to_bytes(server_name="custom/2.0"))

        assert fields["Server"] == "custom/2.0"

    def test_set_header_chains(self):
        response = HTTPResponse().set_header("X-One", "1").set_header("X-Two", "2")

        assert response.headers == {"X-One": "1", "X-Two": "2"}


class TestResponseBuilder:
    """Tests for ResponseBuilder."""

    def test_defaults(self):
        response = ResponseBuilder().build()

        assert response.status is HTTPStatus.OK
        assert response.body == b""

    def test_status_from_int(self):
        assert ResponseBuilder().status(503).build().status is HTTPStatus.SERVICE_UNAVAILABLE

    def test_json(self):
        data = {"status": "healthy", "uptime": 1.5, "note": "café"}
        response = ResponseBuilder().json(data).build()

        assert response.content_type == "application/json; charset=utf-8"
        assert json.loads(response.body) == data
        assert "café".encode("utf-8") in response.body

    def test_html(self):
        response = ResponseBuilder().html("<h1>Hi</h1>").build()

        assert response.content_type == "text/html; charset=utf-8"
        assert response.body == b"<h1>Hi</h1>"

    def test_raw_body_keeps_bytes(self):
        response = ResponseBuilder().body(b"a 1\n").header("Content-Type", "text/plain").build()

        assert response.body == b"a 1\n"
        assert response.content_type == "text/plain"

    def test_no_cache(self):
        headers = ResponseBuilder().no_cache().build().headers

        assert "no-store" in headers["Cache-Control"]
        assert headers["Pragma"] == "no-cache"


class TestHelpers:
    """Tests for not_found() and error_response()."""

    def test_not_found(self):
        response = not_found()

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.content_type == "application/json; charset=utf-8"
        assert json.loads(response.body) == NOT_FOUND_BODY == {"error": "Not Found"}

    def test_error_response(self):
        response = error_response(HTTPStatus.BAD_REQUEST, "Invalid request line")

        assert response.status == HTTPStatus.BAD_REQUEST
        assert json.loads(response.body) == {"error": "Invalid request line"}


class TestHTTPStatus:
    """Tests for HTTPStatus."""

    def test_every_status_has_a_phrase(self):
        assert HTTPStatus.INTERNAL_SERVER_ERROR.phrase == "Internal Server Error"
        assert all(status.phrase != "Unknown" for status in HTTPStatus)

    def test_compares_as_int(self):
        assert HTTPStatus.NOT_FOUND == 404
        assert HTTPStatus(505) is HTTPStatus.HTTP_VERSION_NOT_SUPPORTED


class TestFormatHTTPDate:
    """Tests for format_http_date()."""

    def test_utc(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_other_offsets_are_converted(self):
        dt = datetime(2026, 1, 15, 14, 30, 45, tzinfo=timezone(timedelta(hours=2)))

        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"
