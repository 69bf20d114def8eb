"""HTTP server and client for ipaspeak.

The server exposes the pronunciation pipeline over FastAPI; the client
fetches audio through a local persistent store and plays it.
"""

from .app import create_app, run_server
from .client import (
    ClientError,
    FetchResult,
    PronunciationClient,
    PronunciationUnavailableError,
    RateLimitedError,
    ReportNotRecordedError,
    RequestRejectedError,
)
from .ratelimit import RateLimiter, RateLimits

__all__ = [
    "ClientError",
    "FetchResult",
    "PronunciationClient",
    "PronunciationUnavailableError",
    "RateLimitedError",
    "RateLimiter",
    "RateLimits",
    "ReportNotRecordedError",
    "RequestRejectedError",
    "create_app",
    "run_server",
]
