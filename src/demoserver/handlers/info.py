"""
GET /info: which host and process answered.

Useful behind a load balancer to see which replica served a request.

    {"platform": "linux", "pid": 4242, "hostname": "web-7d9f", "python_version": "3.12.3"}

`platform` is sys.platform ("linux", "darwin", "win32", ...), the OS family
the interpreter was built for.
"""

import os
import platform
import sys
from typing import Any, Dict

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder


def system_info() -> Dict[str, Any]:
    return {
        "platform": sys.platform,
        "pid": os.getpid(),
        "hostname": platform.node(),
        "python_version": platform.python_version(),
    }


def info(request: HTTPRequest) -> HTTPResponse:
    return ResponseBuilder().json(system_info()).build()
