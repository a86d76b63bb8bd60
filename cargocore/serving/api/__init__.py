"""
API Module
"""
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .responses import error_response, success_response

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "error_response",
    "success_response",
]
