"""
HTTP Client Module

Thread-safe HTTP client used to reach the delegated hash service.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
