"""Landing page for GET /."""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder

# Smoke tests look for this text in the page body
INDEX_MARKER = "Demo HTTP Service is running"

INDEX_PAGE = f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Demo HTTP Service</title>
</head>
<body>
    <h1>{INDEX_MARKER}</h1>
    <ul>
        <li><a href="/health">/health</a> - liveness and uptime</li>
        <li><a href="/info">/info</a> - platform and process id</li>
        <li><a href="/metrics">/metrics</a> - request counter</li>
    </ul>
</body>
</html>
"""


def index(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().html(INDEX_PAGE).build()
