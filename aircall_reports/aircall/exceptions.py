"""
Custom exceptions for Aircall API integration
"""


class UpstreamError(Exception):
    """
    Base exception for Aircall API errors
    """
    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class AuthenticationError(UpstreamError):
    """
    Raised when Aircall rejects the API credentials
    """
    pass


class UpstreamRateLimited(UpstreamError):
    """
    Raised when API rate limit is exceeded
    """
    def __init__(self, message: str, retry_after: int = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
