"""
Math Tutor Middleware Package

Contains:
- request_logging: Per-request access log with request ids
"""

from mathtutor.middleware.request_logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
