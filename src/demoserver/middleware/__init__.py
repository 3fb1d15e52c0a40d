"""
Middleware components (Chain of Responsibility around the router).

    base.py      Middleware ABC, MiddlewarePipeline
    logging.py   LoggingMiddleware: access log + X-Request-ID
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
]
