"""
Aircall API integration package

Provides paginated, rate-limited access to Aircall users and calls.
"""

from .auth import AircallAuth
from .client import AircallClient, CallBatch, is_excluded
from .rate_limiter import RateLimiter
from .retry import call_with_retry, is_rate_limited
from .exceptions import (
    UpstreamError,
    UpstreamRateLimited,
    AuthenticationError
)

__all__ = [
    'AircallAuth',
    'AircallClient',
    'CallBatch',
    'is_excluded',
    'RateLimiter',
    'call_with_retry',
    'is_rate_limited',
    'UpstreamError',
    'UpstreamRateLimited',
    'AuthenticationError'
]
